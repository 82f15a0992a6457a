"""Tags: storage and the service that names and slugs them."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from webporto.store import Table

_DISALLOWED = re.compile(r"[^a-z0-9-]+")


def slugify(text: str) -> str:
    """Make a URL-friendly slug: lower case, hyphens for spaces, only [a-z0-9-]."""
    text = text.lower().replace(" ", "-")
    text = _DISALLOWED.sub("", text)
    while "--" in text:
        text = text.replace("--", "-")
    return text.strip("-")


@dataclass
class Tag:
    id: int = 0
    name: str = ""
    slug: str = ""


@dataclass(frozen=True)
class TagResponse:
    id: int
    name: str
    slug: str

    @classmethod
    def from_tag(cls, tag: Tag) -> TagResponse:
        return cls(id=tag.id, name=tag.name, slug=tag.slug)


class TagRepository:
    """Stores tags; reads hand out copies so callers cannot alter stored rows."""

    def __init__(self) -> None:
        self._table: Table[Tag] = Table()

    def get_all(self) -> list[Tag]:
        return [replace(tag) for tag in self._table]

    def get_by_id(self, tag_id: int) -> Tag:
        return replace(self._table.get(tag_id))

    def get_by_name(self, name: str) -> Tag:
        return replace(self._table.first(lambda tag: tag.name == name))

    def get_by_slug(self, slug: str) -> Tag:
        return replace(self._table.first(lambda tag: tag.slug == slug))

    def create(self, tag: Tag) -> Tag:
        stored = self._table.insert(replace(tag))
        tag.id = stored.id
        return tag

    def update(self, tag: Tag) -> Tag:
        stored = self._table.save(replace(tag))
        tag.id = stored.id
        return tag

    def delete(self, tag_id: int) -> None:
        self._table.delete(tag_id)


class TagService:
    """Tag operations returning response objects."""

    def __init__(self, repository: TagRepository) -> None:
        self._repo = repository

    def get_all(self) -> list[TagResponse]:
        return [TagResponse.from_tag(tag) for tag in self._repo.get_all()]

    def get_by_id(self, tag_id: int) -> TagResponse:
        return TagResponse.from_tag(self._repo.get_by_id(tag_id))

    def get_by_name(self, name: str) -> TagResponse:
        return TagResponse.from_tag(self._repo.get_by_name(name))

    def get_by_slug(self, slug: str) -> TagResponse:
        return TagResponse.from_tag(self._repo.get_by_slug(slug))

    def create(self, name: str, slug: str = "") -> TagResponse:
        tag = Tag(name=name, slug=slug or slugify(name))
        return TagResponse.from_tag(self._repo.create(tag))

    def update(self, tag_id: int, name: str, slug: str = "") -> TagResponse:
        """Rename a tag; the slug changes only when one is given."""
        existing = self._repo.get_by_id(tag_id)
        existing.name = name
        if slug:
            existing.slug = slug
        return TagResponse.from_tag(self._repo.update(existing))

    def delete(self, tag_id: int) -> None:
        self._repo.delete(tag_id)