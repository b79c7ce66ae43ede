"""
Time sources.
Everything that needs "now" receives a clock instead of reading system time.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """System clock, timezone aware UTC."""
    return datetime.now(timezone.utc)


def fixed_clock(instant: datetime) -> Clock:
    """
    Build a clock frozen at a given instant.

    Args:
        instant: Timezone aware instant the clock always returns

    Returns:
        Clock callable
    """
    if instant.tzinfo is None:
        raise ValueError("fixed_clock requires a timezone aware instant")

    def clock() -> datetime:
        return instant

    return clock


def to_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC."""
    if value.tzinfo is None:
        raise ValueError(f"Naive datetime not allowed: {value!r}")
    return value.astimezone(timezone.utc)
