"""Comments on posts: storage and service."""

from __future__ import annotations

from dataclasses import dataclass, replace

from webporto.store import Table


@dataclass
class Comment:
    id: int = 0
    post_id: int = 0
    author_name: str = ""
    content: str = ""


class CommentRepository:
    """Stores comments; reads hand out copies."""

    def __init__(self) -> None:
        self._table: Table[Comment] = Table()

    def find_all(self) -> list[Comment]:
        return [replace(c) for c in self._table]

    def find_by_id(self, comment_id: int) -> Comment:
        return replace(self._table.get(comment_id))

    def find_by_post_id(self, post_id: int) -> list[Comment]:
        return [replace(c) for c in self._table.select(lambda c: c.post_id == post_id)]

    def create(self, comment: Comment) -> Comment:
        stored = self._table.insert(replace(comment))
        comment.id = stored.id
        return comment

    def update(self, comment: Comment) -> Comment:
        stored = self._table.save(replace(comment))
        comment.id = stored.id
        return comment

    def delete(self, comment_id: int) -> None:
        self._table.delete(comment_id)


class CommentService:
    """Comment operations."""

    def __init__(self, repository: CommentRepository) -> None:
        self._repo = repository

    def get_all(self) -> list[Comment]:
        return self._repo.find_all()

    def get_by_id(self, comment_id: int) -> Comment:
        return self._repo.find_by_id(comment_id)

    def get_by_post_id(self, post_id: int) -> list[Comment]:
        return self._repo.find_by_post_id(post_id)

    def create(self, comment: Comment) -> Comment:
        return self._repo.create(comment)

    def update(self, comment: Comment) -> Comment:
        return self._repo.update(comment)

    def delete(self, comment_id: int) -> None:
        self._repo.delete(comment_id)