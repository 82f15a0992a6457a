"""Users: storage, pagination and the service that hashes passwords."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import bcrypt

from webporto.store import RecordNotFound, Table

logger = logging.getLogger(__name__)

DEFAULT_COST = 10


@dataclass
class User:
    id: int = 0
    username: str = ""
    email: str = ""
    password_hash: str = ""
    role: str = ""


@dataclass(frozen=True)
class PaginationInfo:
    page: int
    limit: int
    total: int
    total_pages: int


def calculate_pagination(total: int, page: int, limit: int) -> PaginationInfo:
    """Pagination metadata; the last partial page counts as a page."""
    if limit <= 0:
        raise ValueError("limit must be positive")
    total_pages, remainder = divmod(total, limit)
    if remainder:
        total_pages += 1
    return PaginationInfo(page=page, limit=limit, total=total, total_pages=total_pages)


class UserRepository:
    """Stores users; reads hand out copies."""

    def __init__(self) -> None:
        self._table: Table[User] = Table()

    def find_all(self) -> list[User]:
        users = [replace(u) for u in self._table]
        logger.info("fetched users", extra={"repo": "user", "count": len(users)})
        return users

    def find_by_id(self, user_id: int) -> User:
        try:
            user = self._table.get(user_id)
        except RecordNotFound as exc:
            logger.error("db error", extra={"repo": "user", "id": user_id, "error": str(exc)})
            raise
        logger.info("found user", extra={"repo": "user", "id": user_id})
        return replace(user)

    def find_by_email(self, email: str) -> User:
        try:
            user = self._table.first(lambda u: u.email == email)
        except RecordNotFound as exc:
            logger.error("db error", extra={"repo": "user", "email": email, "error": str(exc)})
            raise
        logger.info("found user", extra={"repo": "user", "email": email})
        return replace(user)

    def create(self, user: User) -> User:
        stored = self._table.insert(replace(user))
        user.id = stored.id
        logger.info("created user", extra={"repo": "user", "id": user.id})
        return user

    def update(self, user: User) -> User:
        stored = self._table.save(replace(user))
        user.id = stored.id
        logger.info("updated user", extra={"repo": "user", "id": user.id})
        return user

    def delete(self, user_id: int) -> None:
        self._table.delete(user_id)
        logger.info("deleted user", extra={"repo": "user", "id": user_id})


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=DEFAULT_COST)).decode("ascii")


class UserService:
    """User operations; plain passwords passed in ``password_hash`` are hashed on write."""

    def __init__(self, repository: UserRepository) -> None:
        self._repo = repository

    def get_all(self, page: int, limit: int) -> tuple[list[User], PaginationInfo]:
        if page < 1:
            raise ValueError("page must be at least 1")
        pagination = calculate_pagination(0, page, limit)
        users = self._repo.find_all()
        start = (page - 1) * limit
        window = users[start:start + limit] if start < len(users) else []
        pagination = calculate_pagination(len(users), page, limit)
        return window, pagination

    def get_by_id(self, user_id: int) -> User:
        return self._repo.find_by_id(user_id)

    def get_by_email(self, email: str) -> User:
        return self._repo.find_by_email(email)

    def get_default_admin(self) -> User:
        """The first admin, else the first user at all."""
        users = self._repo.find_all()
        for user in users:
            if user.role == "admin":
                return user
        if users:
            return users[0]
        raise RecordNotFound("no users found in database")

    def create(self, user: User) -> User:
        user.password_hash = _hash_password(user.password_hash)
        return self._repo.create(user)

    def update(self, user_id: int, user: User) -> User:
        existing = self._repo.find_by_id(user_id)
        existing.username = user.username
        existing.email = user.email
        existing.role = user.role
        if user.password_hash:
            existing.password_hash = _hash_password(user.password_hash)
        return self._repo.update(existing)

    def delete(self, user_id: int) -> None:
        self._repo.delete(user_id)

    def check_password(self, hashed_password: str, password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            return False