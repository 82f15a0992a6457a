"""Page-view analytics: tracking, cached counts, time series and top pages."""

from __future__ import annotations

import calendar
import logging
import threading
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Protocol

from webporto.content_views import AnalyticsDataPoint, ContentType, ContentViewService, PageView
from webporto.store import Table

logger = logging.getLogger(__name__)

STATS_TTL = timedelta(minutes=5)
FILTERED_STATS_TTL = timedelta(minutes=2)
DEDUP_WINDOW = timedelta(seconds=30)
_BOT_MARKERS = ("bot", "crawl", "spider")


@dataclass(frozen=True)
class ViewStats:
    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0
    unique: int = 0


@dataclass(frozen=True)
class TimeSeriesPoint:
    bucket: datetime
    count: int


@dataclass(frozen=True)
class PageCount:
    page: str
    count: int


@dataclass(frozen=True)
class ViewCountsUpdate:
    total: int
    today: int
    week: int
    month: int
    unique: int
    page: str


class ViewCountsListener(Protocol):
    def update_view_counts(self, update: ViewCountsUpdate, page: str) -> Any: ...


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.astimezone()


def _months_ago(moment: datetime, months: int) -> datetime:
    """Shift by whole months, letting an overflowing day roll into the next month."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    shifted = date(year, month + 1, 1) + timedelta(days=moment.day - 1)
    return moment.replace(year=shifted.year, month=shifted.month, day=shifted.day)


def _is_bot(user_agent: str) -> bool:
    ua = user_agent.lower()
    return any(marker in ua for marker in _BOT_MARKERS)


@dataclass
class _CacheEntry:
    stats: ViewStats
    stored_at: datetime


class AnalyticsRepository:
    """Stores page views and answers aggregate queries with a short-lived cache."""

    def __init__(self, clock: Callable[[], datetime] = _local_now) -> None:
        self._clock = clock
        self._views: Table[PageView] = Table()
        self._cache: dict[str, _CacheEntry] = {}
        self._cache_lock = threading.RLock()

    def _now(self) -> datetime:
        return _aware(self._clock())

    def track_view(self, view: PageView) -> bool:
        """Record a view; return False when it is skipped as a bot or a duplicate."""
        if view.user_agent and _is_bot(view.user_agent):
            logger.debug("skip bot user-agent", extra={"ua": view.user_agent})
            return False
        now = self._now()
        window = now - DEDUP_WINDOW
        recent = self._views.count(
            lambda v: v.page == view.page
            and v.visitor_id == view.visitor_id
            and v.timestamp is not None
            and v.timestamp >= window
        )
        if recent > 0:
            logger.debug("dedup skip within window", extra={"page": view.page, "visitor": view.visitor_id})
            return False
        view.timestamp = _aware(view.timestamp) if view.timestamp is not None else now
        self._views.insert(view)

        marker = f"p:{view.page}:"
        with self._cache_lock:
            for key in list(self._cache):
                if (
                    key == "all"
                    or (view.page and key == view.page)
                    or (key.startswith("filter:") and marker in key)
                ):
                    del self._cache[key]
        logger.info("view tracked, cache invalidated", extra={"page": view.page, "visitor": view.visitor_id})
        return True

    def _cached(self, key: str, ttl: timedelta, now: datetime) -> ViewStats | None:
        with self._cache_lock:
            entry = self._cache.get(key)
            if entry is not None and now - entry.stored_at < ttl:
                return entry.stats
        return None

    def _store(self, key: str, stats: ViewStats, now: datetime) -> None:
        with self._cache_lock:
            self._cache[key] = _CacheEntry(stats, now)

    def _compute(self, views: list[PageView], now: datetime) -> ViewStats:
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)
        month_ago = _months_ago(now, 1)
        stamps = [v.timestamp for v in views if v.timestamp is not None]
        return ViewStats(
            total=len(views),
            today=sum(1 for t in stamps if t >= today_start),
            week=sum(1 for t in stamps if t >= week_ago),
            month=sum(1 for t in stamps if t >= month_ago),
            unique=len({v.visitor_id for v in views}),
        )

    def get_stats(self, page: str = "") -> ViewStats:
        key = page or "all"
        now = self._now()
        cached = self._cached(key, STATS_TTL, now)
        if cached is not None:
            return cached
        views = self._views.select(lambda v: not page or v.page == page)
        stats = self._compute(views, now)
        self._store(key, stats, now)
        return stats

    def get_stats_with_filter(
        self,
        page: str = "",
        start: datetime | None = None,
        end: datetime | None = None,
        country: str = "",
    ) -> ViewStats:
        key = "filter:"
        if page:
            key += f"p:{page}:"
        if start is not None:
            key += f"s:{start.isoformat()}:"
        if end is not None:
            key += f"e:{end.isoformat()}:"
        if country:
            key += f"c:{country}"
        now = self._now()
        cached = self._cached(key, FILTERED_STATS_TTL, now)
        if cached is not None:
            return cached

        lower = _aware(start) if start is not None else None
        upper = _aware(end) if end is not None else None

        def matches(v: PageView) -> bool:
            if page and v.page != page:
                return False
            if country and v.country != country:
                return False
            if lower is not None and (v.timestamp is None or v.timestamp < lower):
                return False
            if upper is not None and (v.timestamp is None or v.timestamp > upper):
                return False
            return True

        stats = self._compute(self._views.select(matches), now)
        self._store(key, stats, now)
        return stats

    def get_time_series(
        self,
        page: str,
        start: datetime,
        end: datetime,
        interval: str = "day",
    ) -> list[TimeSeriesPoint]:
        """Counts per hour or per day (the default) between start and end inclusive."""
        hourly = interval.lower() == "hour"
        lower, upper = _aware(start), _aware(end)

        def bucket(moment: datetime) -> datetime:
            if hourly:
                return moment.replace(minute=0, second=0, microsecond=0)
            return moment.replace(hour=0, minute=0, second=0, microsecond=0)

        counts = Counter(
            bucket(v.timestamp)
            for v in self._views.select(
                lambda v: v.timestamp is not None
                and lower <= v.timestamp <= upper
                and (not page or v.page == page)
            )
        )
        return [TimeSeriesPoint(bucket=b, count=counts[b]) for b in sorted(counts)]

    def get_top_pages(self, limit: int) -> list[PageCount]:
        counts = Counter(v.page for v in self._views)
        return [PageCount(page=p, count=c) for p, c in counts.most_common(max(limit, 0))]


def _parse_rfc3339(text: str) -> datetime:
    value = text.strip()
    if value[-1:] in ("Z", "z"):
        value = value[:-1] + "+00:00"
    if "T" not in value and "t" not in value:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")
    parsed = datetime.fromisoformat(value.replace("t", "T"))
    if parsed.tzinfo is None:
        raise ValueError(f"RFC 3339 timestamp needs an offset: {text!r}")
    return parsed


class AnalyticsService:
    """Analytics operations, broadcasting fresh counts to a listener when one is set."""

    def __init__(
        self,
        repository: AnalyticsRepository,
        content_views: ContentViewService | None = None,
    ) -> None:
        self._repo = repository
        self._content_views = content_views
        self._manager: ViewCountsListener | None = None

    def set_websocket_manager(self, manager: ViewCountsListener | None) -> None:
        self._manager = manager

    def track_view(self, view: PageView) -> ViewStats:
        self._repo.track_view(view)
        stats = self._repo.get_stats(view.page)
        if self._manager is not None:
            update = ViewCountsUpdate(
                total=stats.total,
                today=stats.today,
                week=stats.week,
                month=stats.month,
                unique=stats.unique,
                page=view.page,
            )
            self._manager.update_view_counts(update, view.page)
        return stats

    def get_stats(self, page: str = "") -> ViewStats:
        return self._repo.get_stats(page)

    def get_stats_with_filter(
        self,
        page: str = "",
        start: str | None = None,
        end: str | None = None,
        country: str = "",
    ) -> ViewStats:
        """Unparseable start or end bounds are ignored."""

        def bound(text: str | None) -> datetime | None:
            if not text:
                return None
            try:
                return _parse_rfc3339(text)
            except ValueError:
                return None

        return self._repo.get_stats_with_filter(page, bound(start), bound(end), country)

    def get_time_series(self, page: str, start: str, end: str, interval: str = "day") -> list[TimeSeriesPoint]:
        if not start or not end:
            return []
        return self._repo.get_time_series(page, _parse_rfc3339(start), _parse_rfc3339(end), interval)

    def get_top_pages(self, limit: int) -> list[PageCount]:
        return self._repo.get_top_pages(limit)

    def track_content_view(
        self,
        content_id: str,
        content_type: ContentType | str,
        visitor_id: str = "",
        user_agent: str = "",
        referrer: str = "",
        ip: str = "",
    ) -> None:
        if self._content_views is None:
            return
        self._content_views.track_content_view(content_id, content_type, visitor_id, user_agent, referrer, ip)

    def get_content_view_count(self, content_id: str, content_type: ContentType | str) -> int:
        if self._content_views is None:
            return 0
        return self._content_views.get_content_view_count(content_id, content_type)

    def get_content_view_analytics(
        self,
        content_id: str,
        content_type: ContentType | str,
        period: str = "day",
        limit: int = -1,
    ) -> list[AnalyticsDataPoint]:
        if self._content_views is None:
            return []
        return self._content_views.get_content_view_analytics(content_id, content_type, period, limit)