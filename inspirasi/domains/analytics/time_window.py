"""Sliding time-window filtering for named ranges."""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from .models import AnalyticsEvent, TimeRange

RANGE_DAYS: dict[TimeRange, int] = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.QUARTER: 90,
    TimeRange.YEAR: 365,
}


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _now(now: datetime | None) -> datetime:
    return as_utc(now) if now is not None else datetime.now(UTC)


def range_length(time_range: TimeRange | str) -> timedelta:
    return timedelta(days=RANGE_DAYS[TimeRange(time_range)])


def cutoff_for(time_range: TimeRange | str, now: datetime | None = None) -> datetime:
    """Earliest instant still inside the window ending at ``now``."""
    return _now(now) - range_length(time_range)


def is_within_range(
    timestamp: datetime, time_range: TimeRange | str, now: datetime | None = None
) -> bool:
    """True iff ``timestamp`` falls on or after the range cutoff."""
    return as_utc(timestamp) >= cutoff_for(time_range, now)


def is_within_prior_range(
    timestamp: datetime, time_range: TimeRange | str, now: datetime | None = None
) -> bool:
    """True iff ``timestamp`` falls in the equal-length window just before the current one."""
    current_cutoff = cutoff_for(time_range, now)
    prior_cutoff = current_cutoff - range_length(time_range)
    return prior_cutoff <= as_utc(timestamp) < current_cutoff


def filter_events(
    events: Iterable[AnalyticsEvent],
    time_range: TimeRange | str,
    now: datetime | None = None,
    user_id: str | None = None,
) -> list[AnalyticsEvent]:
    """Scope events to a window, optionally to a single user, keeping stored order."""
    cutoff = cutoff_for(time_range, now)
    return [
        e
        for e in events
        if e.timestamp >= cutoff and (user_id is None or e.user_id == user_id)
    ]


def filter_prior_events(
    events: Iterable[AnalyticsEvent],
    time_range: TimeRange | str,
    now: datetime | None = None,
) -> list[AnalyticsEvent]:
    return [e for e in events if is_within_prior_range(e.timestamp, time_range, now)]


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA name; "UTC" never needs the tz database."""
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)
