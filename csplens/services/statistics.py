from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from csplens.core.config import get_settings
from csplens.core.errors import StoreUnavailableError
from csplens.persistence.repos import violations as violations_repo
from csplens.services.tenants import resolve_tenant


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyCount:
    key: str
    count: int


@dataclass(frozen=True)
class DayCount:
    day: str
    count: int


@dataclass(frozen=True)
class ViolationStats:
    # All groupings come from the same window, so directive and day sums equal total.
    total: int
    by_directive: list[KeyCount]
    by_blocked_uri: list[KeyCount]
    by_day: list[DayCount]

    def as_payload(self) -> dict[str, Any]:
        return {
            "totalViolations": self.total,
            "byDirective": [{"key": item.key, "count": item.count} for item in self.by_directive],
            "byUri": [{"key": item.key, "count": item.count} for item in self.by_blocked_uri],
            "byDay": [{"day": item.day, "count": item.count} for item in self.by_day],
        }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def window_bounds(window_days: int, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the inclusive ``[now - window_days, now]`` window.

    Non-positive values produce an empty or inverted window rather than an
    error.
    """
    end = now or _utc_now()
    try:
        start = end - timedelta(days=window_days)
    except OverflowError:
        start = (
            datetime.min.replace(tzinfo=timezone.utc)
            if window_days > 0
            else datetime.max.replace(tzinfo=timezone.utc)
        )
    return start, end


def _ranked(counter: Counter, limit: int | None = None) -> list[KeyCount]:
    # Count descending, key ascending as a stable tie-break.
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ordered = ordered[: max(0, limit)]
    return [KeyCount(key=key, count=count) for key, count in ordered]


def summarize_rows(
    rows: Iterable[tuple[Any, Any, datetime]],
    *,
    top_uri_limit: int = 10,
) -> ViolationStats:
    # Rows are (violated_directive, blocked_uri, observed_at) within one window.
    by_directive: Counter = Counter()
    by_blocked_uri: Counter = Counter()
    by_day: Counter = Counter()
    total = 0
    for directive, blocked_uri, observed_at in rows:
        by_directive[str(directive)] += 1
        by_blocked_uri[str(blocked_uri)] += 1
        by_day[_as_utc(observed_at).date().isoformat()] += 1
        total += 1
    return ViolationStats(
        total=total,
        by_directive=_ranked(by_directive),
        by_blocked_uri=_ranked(by_blocked_uri, top_uri_limit),
        by_day=[DayCount(day=day, count=count) for day, count in sorted(by_day.items())],
    )


async def compute_stats(
    session: AsyncSession,
    tenant_id: str,
    *,
    window_days: int | None = None,
    now: datetime | None = None,
) -> ViolationStats:
    settings = get_settings()
    days = settings.stats_default_window_days if window_days is None else window_days
    tenant = await resolve_tenant(session, tenant_id)
    start, end = window_bounds(days, now)
    if start > end:
        return summarize_rows([], top_uri_limit=settings.stats_top_uri_limit)
    try:
        rows = await violations_repo.window_rows(session, tenant.id, start=start, end=end)
    except SQLAlchemyError as exc:
        logger.error("stats_query_failed tenant=%s", tenant.id, exc_info=exc)
        raise StoreUnavailableError("Statistics query failed") from exc
    return summarize_rows(rows, top_uri_limit=settings.stats_top_uri_limit)
