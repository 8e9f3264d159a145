from __future__ import annotations

from datetime import date, datetime, time, timedelta


def now() -> datetime:
    """Current server-local wall-clock time."""

    return datetime.now()


def today() -> date:
    return now().date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return ``[midnight, next midnight)`` for ``day``."""

    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
