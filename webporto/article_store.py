"""Article storage with categories, tags, images and videos attached on read."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from webporto.categories import Category, CategoryRepository
from webporto.store import RecordNotFound, Table
from webporto.tags import Tag, TagRepository
from webporto.users import User, UserRepository

TEMP_PREFIX = "temp-"


@dataclass
class ArticleImage:
    id: str = ""
    article_id: str = ""
    url: str = ""
    caption: str = ""
    alt_text: str = ""
    sort_order: int = 0


@dataclass
class ArticleVideo:
    id: str = ""
    article_id: str = ""
    url: str = ""
    caption: str = ""
    sort_order: int = 0


@dataclass
class Article:
    id: str = ""
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    featured_image_url: str = ""
    status: str = ""
    author_id: int = 0
    read_time: int = 0
    view_count: int = 0
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: str = ""
    author: User = field(default_factory=User)
    categories: list[Category] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    images: list[ArticleImage] = field(default_factory=list)
    videos: list[ArticleVideo] = field(default_factory=list)


def _is_temporary(article_id: str) -> bool:
    return article_id.startswith(TEMP_PREFIX)


def _bare(article: Article) -> Article:
    return replace(article, author=User(), categories=[], tags=[], images=[], videos=[])


def _with_ids(items: Iterable[Any], article_id: str) -> list[Any]:
    stored = []
    for item in items:
        copy = replace(item, article_id=article_id)
        if not copy.id:
            copy.id = str(uuid.uuid4())
        stored.append(copy)
    return stored


class ArticleRepository:
    """Stores articles; reads return copies with their associations loaded."""

    def __init__(
        self,
        categories: CategoryRepository | None = None,
        tags: TagRepository | None = None,
        users: UserRepository | None = None,
    ) -> None:
        self._categories = categories
        self._tags = tags
        self._users = users
        self._articles: Table[Article] = Table()
        self._category_links: dict[str, list[int]] = {}
        self._tag_links: dict[str, list[int]] = {}
        self._images: dict[str, list[ArticleImage]] = {}
        self._videos: dict[str, list[ArticleVideo]] = {}
        self._lock = threading.RLock()

    # -- loading -------------------------------------------------------

    def _author(self, author_id: int) -> User:
        if self._users is None:
            return User()
        try:
            return self._users.find_by_id(author_id)
        except RecordNotFound:
            return User()

    @staticmethod
    def _resolve(lookup: Callable[[int], Any] | None, ids: Iterable[int]) -> list[Any]:
        if lookup is None:
            return []
        found = []
        for item_id in ids:
            try:
                found.append(lookup(item_id))
            except RecordNotFound:
                continue
        return found

    def _load(self, row: Article) -> Article:
        article = replace(row)
        article.author = self._author(row.author_id)
        article.categories = self._resolve(
            self._categories.find_by_id if self._categories else None,
            self._category_links.get(row.id, []),
        )
        article.tags = self._resolve(
            self._tags.get_by_id if self._tags else None,
            self._tag_links.get(row.id, []),
        )
        article.images = [replace(i) for i in self._images.get(row.id, [])]
        article.videos = [replace(v) for v in self._videos.get(row.id, [])]
        return article

    def _page(self, rows: list[Article], limit: int, offset: int) -> tuple[list[Article], int]:
        ordered = [
            row
            for _, row in sorted(
                enumerate(rows),
                key=lambda pair: (pair[1].created_at or datetime.min, pair[0]),
                reverse=True,
            )
        ]
        start = max(offset, 0)
        window = ordered[start:] if limit < 0 else ordered[start:start + limit]
        return [self._load(row) for row in window], len(rows)

    def _exists(self, article_id: str) -> Article:
        return self._articles.get(article_id)

    # -- writes --------------------------------------------------------

    def create(self, article: Article) -> Article:
        """Store a new article, giving it an id and timestamps when missing."""
        with self._lock:
            if not article.id:
                article.id = str(uuid.uuid4())
            now = datetime.now()
            if article.created_at is None:
                article.created_at = now
            if article.updated_at is None:
                article.updated_at = now
            self._articles.insert(_bare(article))
            if article.categories:
                self._category_links[article.id] = [c.id for c in article.categories]
            if article.tags:
                self._tag_links[article.id] = [t.id for t in article.tags]
            if article.images:
                self._images[article.id] = _with_ids(article.images, article.id)
            if article.videos:
                self._videos[article.id] = _with_ids(article.videos, article.id)
        return article

    def update(self, article: Article) -> Article:
        with self._lock:
            if not article.id:
                article.id = str(uuid.uuid4())
            article.updated_at = datetime.now()
            if article.created_at is None:
                article.created_at = article.updated_at
            self._articles.save(_bare(article))
        return article

    def delete(self, article_id: str) -> None:
        """Remove an article; temporary or unknown ids are ignored."""
        if _is_temporary(article_id):
            return
        with self._lock:
            if not self._articles.delete(article_id):
                return
            self._category_links.pop(article_id, None)
            self._tag_links.pop(article_id, None)
            self._images.pop(article_id, None)
            self._videos.pop(article_id, None)

    # -- reads ---------------------------------------------------------

    def get_by_id(self, article_id: str) -> Article:
        if _is_temporary(article_id):
            raise RecordNotFound(f"article {article_id!r} not found")
        with self._lock:
            return self._load(self._exists(article_id))

    def get_by_slug(self, slug: str) -> Article:
        with self._lock:
            return self._load(self._articles.first(lambda a: a.slug == slug))

    def get_all(self, limit: int, offset: int) -> tuple[list[Article], int]:
        with self._lock:
            return self._page(self._articles.select(), limit, offset)

    def get_by_author_id(self, author_id: int, limit: int, offset: int) -> tuple[list[Article], int]:
        with self._lock:
            return self._page(self._articles.select(lambda a: a.author_id == author_id), limit, offset)

    def get_published(self, limit: int, offset: int) -> tuple[list[Article], int]:
        with self._lock:
            return self._page(self._articles.select(lambda a: a.status == "published"), limit, offset)

    def get_by_category(self, category_id: int, limit: int, offset: int) -> tuple[list[Article], int]:
        with self._lock:
            rows = self._articles.select(lambda a: category_id in self._category_links.get(a.id, []))
            return self._page(rows, limit, offset)

    def get_by_tag(self, tag_id: int, limit: int, offset: int) -> tuple[list[Article], int]:
        with self._lock:
            rows = self._articles.select(lambda a: tag_id in self._tag_links.get(a.id, []))
            return self._page(rows, limit, offset)

    # -- associations --------------------------------------------------

    def _existing_ids(self, lookup: Callable[[int], Any] | None, ids: Iterable[int]) -> list[int]:
        return list(dict.fromkeys(item.id for item in self._resolve(lookup, ids)))

    def update_article_categories(self, article_id: str, category_ids: Iterable[int]) -> None:
        """Replace the article's categories with those of the ids that exist."""
        with self._lock:
            self._exists(article_id)
            lookup = self._categories.find_by_id if self._categories else None
            self._category_links[article_id] = self._existing_ids(lookup, category_ids)

    def update_article_tags(self, article_id: str, tag_ids: Iterable[int]) -> None:
        """Replace the article's tags with those of the ids that exist."""
        with self._lock:
            self._exists(article_id)
            lookup = self._tags.get_by_id if self._tags else None
            self._tag_links[article_id] = self._existing_ids(lookup, tag_ids)

    def update_article_images(self, article_id: str, images: Iterable[ArticleImage]) -> list[ArticleImage]:
        """Replace all images of the article; return the stored images."""
        stored = _with_ids(images, article_id)
        with self._lock:
            self._images[article_id] = stored
        return [replace(i) for i in stored]

    def update_article_videos(self, article_id: str, videos: Iterable[ArticleVideo]) -> list[ArticleVideo]:
        """Replace all videos of the article; return the stored videos."""
        stored = _with_ids(videos, article_id)
        with self._lock:
            self._videos[article_id] = stored
        return [replace(v) for v in stored]