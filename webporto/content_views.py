"""Per-content view tracking and simple period aggregates."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from webporto.store import Table


class ContentType(str, Enum):
    ARTICLE = "article"
    PROJECT = "project"
    PAGE = "page"


@dataclass
class PageView:
    page: str = ""
    visitor_id: str = ""
    user_agent: str = ""
    referrer: str = ""
    ip: str = ""
    country: str = ""
    city: str = ""
    timestamp: datetime | None = None
    id: int = 0


@dataclass
class ContentView:
    content_id: str
    type: str
    visitor_id: str = ""
    user_agent: str = ""
    referrer: str = ""
    ip: str = ""
    timestamp: datetime | None = None
    id: int = 0


@dataclass(frozen=True)
class AnalyticsDataPoint:
    date: str
    count: int


@dataclass(frozen=True)
class PageTrackResult:
    page: str
    total_views: int
    unique_visitors: int


def _period_key(period: str, moment: datetime) -> str:
    if period == "week":
        return f"{moment.year}-W{moment.isocalendar()[1]:02d}"
    if period == "month":
        return moment.strftime("%Y-%m")
    return moment.date().isoformat()


class ContentViewService:
    """Records views of articles, projects and pages."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._views: Table[ContentView] = Table()

    def _matching(self, content_id: str, content_type: ContentType | str) -> list[ContentView]:
        kind = ContentType(content_type).value
        return self._views.select(lambda v: v.content_id == content_id and v.type == kind)

    def track_content_view(
        self,
        content_id: str,
        content_type: ContentType | str,
        visitor_id: str = "",
        user_agent: str = "",
        referrer: str = "",
        ip: str = "",
    ) -> ContentView:
        view = ContentView(
            content_id=content_id,
            type=ContentType(content_type).value,
            visitor_id=visitor_id,
            user_agent=user_agent,
            referrer=referrer,
            ip=ip,
            timestamp=self._clock(),
        )
        return self._views.insert(view)

    def get_content_view_count(self, content_id: str, content_type: ContentType | str) -> int:
        return len(self._matching(content_id, content_type))

    def get_content_view_analytics(
        self,
        content_id: str,
        content_type: ContentType | str,
        period: str = "day",
        limit: int = -1,
    ) -> list[AnalyticsDataPoint]:
        """Counts per day, ISO week or month, newest first; a negative limit means all."""
        counts = Counter(
            _period_key(period, view.timestamp)
            for view in self._matching(content_id, content_type)
            if view.timestamp is not None
        )
        points = [AnalyticsDataPoint(date=key, count=counts[key]) for key in sorted(counts, reverse=True)]
        return points if limit < 0 else points[:limit]

    def track_page_view(self, view: PageView) -> PageTrackResult:
        """Record a page view and return the page's total and unique counts."""
        self._views.insert(
            ContentView(
                content_id=view.page,
                type=ContentType.PAGE.value,
                visitor_id=view.visitor_id,
                user_agent=view.user_agent,
                referrer=view.referrer,
                ip=view.ip,
                timestamp=view.timestamp or self._clock(),
            )
        )
        matching = self._matching(view.page, ContentType.PAGE)
        return PageTrackResult(
            page=view.page,
            total_views=len(matching),
            unique_visitors=len({v.visitor_id for v in matching}),
        )