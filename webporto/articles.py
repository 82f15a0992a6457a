"""Article service: creating, reading, updating and paging articles."""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from slugify import slugify as make_slug

from webporto.article_mapping import (
    ArticleImageResponse,
    ArticleListResponse,
    ArticleResponse,
    ArticleVideoResponse,
    map_article_to_list_response,
    map_article_to_response,
)
from webporto.article_store import TEMP_PREFIX, Article, ArticleImage, ArticleRepository, ArticleVideo
from webporto.categories import Category, CategoryRepository
from webporto.store import RecordNotFound
from webporto.tags import Tag, TagRepository
from webporto.users import UserService

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass
class ImageData:
    url: str
    caption: str = ""
    alt_text: str = ""
    sort_order: int = 0


@dataclass
class VideoData:
    url: str
    caption: str = ""
    sort_order: int = 0


@dataclass
class CreateArticleRequest:
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    featured_image_url: str = ""
    status: str = ""
    author_id: int = 0
    publish_at: datetime | None = None
    categories: list[int] = field(default_factory=list)
    category_ids: list[int] = field(default_factory=list)
    category_id_strs: list[str] = field(default_factory=list)
    tags: list[int] = field(default_factory=list)
    tag_ids: list[int] = field(default_factory=list)
    tag_id_strs: list[str] = field(default_factory=list)
    metadata: dict[str, Any] | None = None
    images: list[ImageData] = field(default_factory=list)
    videos: list[VideoData] = field(default_factory=list)


@dataclass
class UpdateArticleRequest:
    """Fields left as None are not changed."""

    title: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content: str | None = None
    featured_image_url: str | None = None
    status: str | None = None
    publish_at: datetime | None = None
    categories: list[int] = field(default_factory=list)
    category_ids: list[int] = field(default_factory=list)
    category_id_strs: list[str] = field(default_factory=list)
    tags: list[int] = field(default_factory=list)
    tag_ids: list[int] = field(default_factory=list)
    tag_id_strs: list[str] = field(default_factory=list)
    metadata: dict[str, Any] | None = None
    images: list[ImageData] | None = None
    videos: list[VideoData] | None = None


@dataclass(frozen=True)
class PaginationResponse:
    total_count: int
    current_page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


@dataclass
class PaginatedResponse:
    data: list[Any]
    pagination: PaginationResponse


def read_time(content: str) -> int:
    """Minutes to read at 200 words a minute, at least one."""
    return max(1, len(content.split()) // WORDS_PER_MINUTE)


def _deduplicate(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(i for i in ids if i > 0))


def _pagination(total: int, page: int, size: int) -> PaginationResponse:
    return PaginationResponse(
        total_count=total,
        current_page=page,
        page_size=size,
        total_pages=(total + size - 1) // size,
        has_next=page * size < total,
        has_previous=page > 1,
    )


def _check_page(page: int, size: int) -> int:
    if size <= 0:
        raise ValueError("page size must be positive")
    if page < 1:
        raise ValueError("page must be at least 1")
    return (page - 1) * size


def _image_models(article_id: str, images: Iterable[ImageData]) -> list[ArticleImage]:
    return [
        ArticleImage(article_id=article_id, url=i.url, caption=i.caption, alt_text=i.alt_text, sort_order=i.sort_order)
        for i in images
    ]


def _video_models(article_id: str, videos: Iterable[VideoData]) -> list[ArticleVideo]:
    return [
        ArticleVideo(article_id=article_id, url=v.url, caption=v.caption, sort_order=v.sort_order)
        for v in videos
    ]


class ArticleService:
    """Business rules for articles on top of the article, category, tag and user stores."""

    def __init__(
        self,
        articles: ArticleRepository,
        categories: CategoryRepository,
        tags: TagRepository,
        users: UserService,
    ) -> None:
        self._articles = articles
        self._categories = categories
        self._tags = tags
        self._users = users

    # -- id resolution -------------------------------------------------

    def _tag_id(self, name: str) -> int:
        try:
            return self._tags.get_by_name(name).id
        except RecordNotFound:
            try:
                return self._tags.create(Tag(name=name, slug=make_slug(name))).id
            except ValueError as exc:
                raise ValueError(f"failed to create tag '{name}': {exc}") from exc

    def _category_id(self, name: str) -> int:
        try:
            return self._categories.find_by_name(name).id
        except RecordNotFound:
            try:
                return self._categories.create(Category(name=name, slug=make_slug(name))).id
            except ValueError as exc:
                raise ValueError(f"failed to create category '{name}': {exc}") from exc

    def _convert(self, values: Iterable[str], for_tags: bool) -> list[int]:
        """Numeric strings are ids; other strings are names, created when missing."""
        ids = []
        for value in values:
            if not value:
                continue
            if _INTEGER.fullmatch(value):
                ids.append(int(value))
            elif for_tags:
                ids.append(self._tag_id(value))
            else:
                ids.append(self._category_id(value))
        return ids

    def _resolve(self, first: list[int], second: list[int], names: list[str], for_tags: bool) -> list[int]:
        return _deduplicate([*first, *second, *self._convert(names, for_tags)])

    def _sync_categories(self, article_id: str, ids: list[int]) -> None:
        try:
            self._articles.update_article_categories(article_id, ids)
        except RecordNotFound as exc:
            logger.error("Error updating categories: %s", exc)

    def _sync_tags(self, article_id: str, ids: list[int]) -> None:
        try:
            self._articles.update_article_tags(article_id, ids)
        except RecordNotFound as exc:
            logger.error("Error updating tags: %s", exc)

    def _unique_slug(self, base: str) -> str:
        candidate = base
        for i in range(2, 101):
            try:
                self._articles.get_by_slug(candidate)
            except RecordNotFound:
                return candidate
            candidate = f"{base}-{i}"
        return f"{base}-{str(uuid.uuid4())[:8]}"

    # -- operations ----------------------------------------------------

    def create_article(self, request: CreateArticleRequest) -> ArticleResponse:
        slug = self._unique_slug(request.slug or make_slug(request.title))

        author_id = request.author_id
        if author_id == 0:
            try:
                author_id = self._users.get_default_admin().id
            except RecordNotFound as exc:
                raise RecordNotFound(f"failed to get default admin user: {exc}") from exc

        article = Article(
            title=request.title,
            slug=slug,
            excerpt=request.excerpt,
            content=request.content,
            featured_image_url=request.featured_image_url,
            status=request.status,
            author_id=author_id,
            read_time=read_time(request.content),
        )
        if request.publish_at is not None:
            article.published_at = request.publish_at
        elif request.status == "published":
            article.published_at = datetime.now()

        article.metadata = json.dumps(dict(request.metadata or {}), sort_keys=True, separators=(",", ":"))
        self._articles.create(article)

        try:
            category_ids = self._resolve(
                request.categories, request.category_ids, request.category_id_strs, for_tags=False
            )
        except ValueError as exc:
            logger.error("Error resolving categories: %s", exc)
            category_ids = []
        if category_ids:
            self._sync_categories(article.id, category_ids)

        try:
            tag_ids = self._resolve(request.tags, request.tag_ids, request.tag_id_strs, for_tags=True)
        except ValueError as exc:
            logger.error("Error resolving tags: %s", exc)
            tag_ids = []
        if tag_ids:
            self._sync_tags(article.id, tag_ids)

        if request.images:
            self._articles.update_article_images(article.id, _image_models(article.id, request.images))
        if request.videos:
            self._articles.update_article_videos(article.id, _video_models(article.id, request.videos))

        return map_article_to_response(self._articles.get_by_id(article.id))

    def get_article_by_id(self, article_id: str) -> ArticleResponse:
        return map_article_to_response(self._articles.get_by_id(article_id))

    def get_article_by_slug(self, slug: str) -> ArticleResponse:
        """Fetch by slug and count the read as a view."""
        article = self._articles.get_by_slug(slug)
        article.view_count += 1
        self._articles.update(article)
        return map_article_to_response(article)

    def _listing(self, articles: list[Article], total: int, page: int, size: int) -> PaginatedResponse:
        data: list[ArticleListResponse] = [map_article_to_list_response(a) for a in articles]
        return PaginatedResponse(data=data, pagination=_pagination(total, page, size))

    def get_articles_by_category_slug(self, slug: str, page: int, size: int) -> PaginatedResponse:
        offset = _check_page(page, size)
        try:
            category = self._categories.find_by_slug(slug)
        except RecordNotFound as exc:
            raise RecordNotFound(f"category not found: {exc}") from exc
        articles, total = self._articles.get_by_category(category.id, size, offset)
        return self._listing(articles, total, page, size)

    def list_articles(self, page: int, size: int) -> PaginatedResponse:
        offset = _check_page(page, size)
        articles, total = self._articles.get_all(size, offset)
        return self._listing(articles, total, page, size)

    def update_article(self, article_id: str, request: UpdateArticleRequest) -> ArticleResponse:
        """Apply the given fields; a temporary id creates a new article instead."""
        if article_id.startswith(TEMP_PREFIX):
            return self.create_article(
                CreateArticleRequest(
                    title=request.title or "",
                    slug=request.slug or "",
                    excerpt=request.excerpt or "",
                    content=request.content or "",
                    featured_image_url=request.featured_image_url or "",
                    status=request.status or "",
                    author_id=1,
                    publish_at=request.publish_at,
                    categories=list(request.categories),
                    category_ids=list(request.category_ids),
                    category_id_strs=list(request.category_id_strs),
                    tags=list(request.tags),
                    tag_ids=list(request.tag_ids),
                    tag_id_strs=list(request.tag_id_strs),
                    metadata=request.metadata,
                )
            )

        article = self._articles.get_by_id(article_id)

        if request.title is not None:
            article.title = request.title
        if request.excerpt is not None:
            article.excerpt = request.excerpt
        if request.content is not None:
            article.content = request.content
        if request.featured_image_url is not None:
            article.featured_image_url = request.featured_image_url
        if request.slug:
            article.slug = request.slug

        if request.status:
            article.status = request.status
            if request.status == "published" and article.published_at is None:
                article.published_at = datetime.now()
        if request.publish_at is not None:
            article.published_at = request.publish_at
        if request.content:
            article.read_time = read_time(request.content)

        try:
            category_ids = self._resolve(
                request.categories, request.category_ids, request.category_id_strs, for_tags=False
            )
        except ValueError as exc:
            logger.error("Error resolving categories: %s", exc)
        else:
            if category_ids or request.category_id_strs:
                self._sync_categories(article.id, category_ids)

        try:
            tag_ids = self._resolve(request.tags, request.tag_ids, request.tag_id_strs, for_tags=True)
        except ValueError as exc:
            logger.error("Error resolving tags: %s", exc)
        else:
            if tag_ids or request.tag_id_strs:
                self._sync_tags(article.id, tag_ids)

        if request.metadata is not None:
            try:
                json.dumps(request.metadata)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"failed to marshal metadata: {exc}") from exc
            article.metadata = "{}"

        if request.images is not None:
            self._articles.update_article_images(article.id, _image_models(article.id, request.images))
        if request.videos is not None:
            self._articles.update_article_videos(article.id, _video_models(article.id, request.videos))

        self._articles.update(article)

        try:
            return map_article_to_response(self._articles.get_by_id(article_id))
        except RecordNotFound:
            return map_article_to_response(article)

    def delete_article(self, article_id: str) -> None:
        self._articles.delete(article_id)

    def add_article_image(self, article_id: str, image: ImageData) -> ArticleImageResponse:
        article = self._articles.get_by_id(article_id)
        new_image = _image_models(article_id, [image])[0]
        stored = self._articles.update_article_images(article_id, [*article.images, new_image])
        added = stored[-1]
        return ArticleImageResponse(
            id=added.id, url=added.url, caption=added.caption, alt_text=added.alt_text, sort_order=added.sort_order
        )

    def add_article_video(self, article_id: str, video: VideoData) -> ArticleVideoResponse:
        article = self._articles.get_by_id(article_id)
        new_video = _video_models(article_id, [video])[0]
        stored = self._articles.update_article_videos(article_id, [*article.videos, new_video])
        added = stored[-1]
        return ArticleVideoResponse(id=added.id, url=added.url, caption=added.caption, sort_order=added.sort_order)