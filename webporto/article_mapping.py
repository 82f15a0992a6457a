"""Turning stored articles into response objects."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from webporto.article_store import Article
from webporto.tags import TagResponse


@dataclass(frozen=True)
class ArticleImageResponse:
    id: str
    url: str
    caption: str = ""
    alt_text: str = ""
    sort_order: int = 0


@dataclass(frozen=True)
class ArticleVideoResponse:
    id: str
    url: str
    caption: str = ""
    sort_order: int = 0


@dataclass(frozen=True)
class AuthorResponse:
    id: int
    username: str


@dataclass(frozen=True)
class CategoryResponse:
    id: int
    name: str
    slug: str


@dataclass
class ArticleResponse:
    id: str
    title: str
    slug: str
    excerpt: str
    content: str
    featured_image_url: str
    status: str
    read_time: int
    view_count: int
    published_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    author: AuthorResponse
    images: list[ArticleImageResponse] = field(default_factory=list)
    videos: list[ArticleVideoResponse] = field(default_factory=list)
    categories: list[CategoryResponse] = field(default_factory=list)
    tags: list[TagResponse] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ArticleListResponse:
    id: str
    title: str
    slug: str
    excerpt: str
    featured_image_url: str
    status: str
    author_name: str
    read_time: int
    view_count: int
    published_at: datetime | None
    created_at: datetime | None
    content: str
    categories: list[str] = field(default_factory=list)
    category_models: list[CategoryResponse] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    tag_models: list[TagResponse] = field(default_factory=list)
    images: list[ArticleImageResponse] = field(default_factory=list)
    videos: list[ArticleVideoResponse] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


def _get_string(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _get_int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _image_responses(article: Article) -> list[ArticleImageResponse]:
    return [
        ArticleImageResponse(id=i.id, url=i.url, caption=i.caption, alt_text=i.alt_text, sort_order=i.sort_order)
        for i in article.images
    ]


def _video_responses(article: Article) -> list[ArticleVideoResponse]:
    return [
        ArticleVideoResponse(id=v.id, url=v.url, caption=v.caption, sort_order=v.sort_order)
        for v in article.videos
    ]


def _parse_metadata(text: str) -> dict[str, Any] | None:
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _restore_from_metadata(response: ArticleResponse | ArticleListResponse, metadata: dict[str, Any]) -> None:
    """Fill media and the featured image from metadata where the stored data has none."""
    response.metadata = metadata
    if not response.images:
        response.images = [
            ArticleImageResponse(
                id=_get_string(m, "id"),
                url=_get_string(m, "url"),
                caption=_get_string(m, "caption"),
                alt_text=_get_string(m, "altText"),
                sort_order=_get_int(m, "sortOrder"),
            )
            for m in _dicts(metadata.get("images"))
        ]
    if not response.videos:
        response.videos = [
            ArticleVideoResponse(
                id=_get_string(m, "id"),
                url=_get_string(m, "url"),
                caption=_get_string(m, "caption"),
                sort_order=_get_int(m, "sortOrder"),
            )
            for m in _dicts(metadata.get("videos"))
        ]
    if not response.featured_image_url:
        featured = _get_string(metadata, "featuredImageUrl")
        if featured:
            response.featured_image_url = featured


def map_article_to_response(article: Article) -> ArticleResponse:
    response = ArticleResponse(
        id=article.id,
        title=article.title,
        slug=article.slug,
        excerpt=article.excerpt,
        content=article.content,
        featured_image_url=article.featured_image_url,
        status=article.status,
        read_time=article.read_time,
        view_count=article.view_count,
        published_at=article.published_at,
        created_at=article.created_at,
        updated_at=article.updated_at,
        author=AuthorResponse(id=article.author_id, username=article.author.username),
        images=_image_responses(article),
        videos=_video_responses(article),
        categories=[CategoryResponse(id=c.id, name=c.name, slug=c.slug) for c in article.categories],
        tags=[TagResponse(id=t.id, name=t.name, slug="") for t in article.tags],
    )
    metadata = _parse_metadata(article.metadata)
    if metadata is not None:
        _restore_from_metadata(response, metadata)
    return response


def map_article_to_list_response(article: Article) -> ArticleListResponse:
    response = ArticleListResponse(
        id=article.id,
        title=article.title,
        slug=article.slug,
        excerpt=article.excerpt,
        featured_image_url=article.featured_image_url,
        status=article.status,
        author_name=article.author.username,
        read_time=article.read_time,
        view_count=article.view_count,
        published_at=article.published_at,
        created_at=article.created_at,
        content=article.content,
        categories=[c.name for c in article.categories],
        category_models=[CategoryResponse(id=c.id, name=c.name, slug=c.slug) for c in article.categories],
        tags=[t.name for t in article.tags],
        tag_models=[TagResponse.from_tag(t) for t in article.tags],
        images=_image_responses(article),
        videos=_video_responses(article),
    )
    metadata = _parse_metadata(article.metadata)
    if metadata is not None:
        _restore_from_metadata(response, metadata)
    return response