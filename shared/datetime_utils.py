"""
Date/time helpers - framework-agnostic.

Every timestamp the lifecycle code compares is a timezone-aware UTC
datetime. The Mongo client is opened with ``tz_aware=True``; ``ensure_utc``
covers documents and inputs that still carry naive values.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime.

    Naive datetimes (no ``tzinfo``) are assumed to be UTC. ``None`` passes
    through unchanged.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_left(expires: datetime, now: datetime) -> int:
    """Whole days until *expires*, rounded up (0 once it has passed)."""
    remaining = (ensure_utc(expires) - ensure_utc(now)).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining / SECONDS_PER_DAY)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of calendar *year* in UTC."""
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return start, end


def next_aligned_run(now: datetime, interval: timedelta) -> datetime:
    """Next epoch-aligned boundary of *interval* strictly after *now*.

    A one-day interval lands on 00:00 UTC, a one-hour interval on the top of
    the hour, matching ``0 0 * * *`` and ``0 * * * *`` cron schedules.
    """
    step = interval.total_seconds()
    if step <= 0:
        raise ValueError("interval must be positive")
    ts = ensure_utc(now).timestamp()
    next_ts = (math.floor(ts / step) + 1) * step
    return datetime.fromtimestamp(next_ts, tz=timezone.utc)
