"""Categories: storage, service and initial seed data."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, replace

from webporto.store import Table

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^a-z0-9\-]")
_HYPHENS = re.compile(r"-+")


@dataclass
class Category:
    id: int = 0
    name: str = ""
    slug: str = ""
    description: str = ""


def generate_slug(text: str) -> str:
    """Make a URL-friendly slug from a category name."""
    slug = text.lower().replace(" ", "-")
    slug = _DISALLOWED.sub("", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def _timestamp_suffix() -> str:
    return str(time.time_ns() % 100000)


class CategoryRepository:
    """Stores categories; reads hand out copies."""

    def __init__(self) -> None:
        self._table: Table[Category] = Table()

    def find_all(self) -> list[Category]:
        return [replace(c) for c in self._table]

    def find_by_id(self, category_id: int) -> Category:
        return replace(self._table.get(category_id))

    def find_by_slug(self, slug: str) -> Category:
        return replace(self._table.first(lambda c: c.slug == slug))

    def find_by_name(self, name: str) -> Category:
        return replace(self._table.first(lambda c: c.name == name))

    def create(self, category: Category) -> Category:
        """Store a new category, deriving a unique slug from the name if none is set."""
        if not category.slug and category.name:
            category.slug = generate_slug(category.name)
            if self._table.count(lambda c: c.slug == category.slug) > 0:
                category.slug = f"{category.slug}-{_timestamp_suffix()}"
        stored = self._table.insert(replace(category))
        category.id = stored.id
        return category

    def update(self, category: Category) -> Category:
        if not category.slug and category.name:
            category.slug = generate_slug(category.name)
        stored = self._table.save(replace(category))
        category.id = stored.id
        return category

    def delete(self, category_id: int) -> None:
        self._table.delete(category_id)


class CategoryService:
    """Category operations."""

    def __init__(self, repository: CategoryRepository) -> None:
        self._repo = repository

    def get_all(self) -> list[Category]:
        return self._repo.find_all()

    def get_by_id(self, category_id: int) -> Category:
        return self._repo.find_by_id(category_id)

    def create(self, category: Category) -> Category:
        return self._repo.create(category)

    def update(self, category: Category) -> Category:
        return self._repo.update(category)

    def delete(self, category_id: int) -> None:
        self._repo.delete(category_id)


_INITIAL_CATEGORIES = (
    ("Web Development", "web-development", "Projects related to web development"),
    ("Mobile Development", "mobile-development", "Projects related to mobile app development"),
    ("Data Science", "data-science", "Projects related to data science and analytics"),
    ("DevOps", "devops", "Projects related to DevOps and infrastructure"),
    ("Machine Learning", "machine-learning", "Projects related to machine learning and AI"),
)


def seed_categories(repository: CategoryRepository) -> list[Category]:
    """Create the initial categories when none exist; return those created."""
    if repository.find_all():
        return []
    created = [
        repository.create(Category(name=name, slug=slug, description=description))
        for name, slug, description in _INITIAL_CATEGORIES
    ]
    logger.info("Seeded %d initial categories", len(created))
    return created