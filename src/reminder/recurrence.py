"""
Recurrence arithmetic.
Computes the next occurrence of a recurring reminder from its last one.

DAY and WEEK advance by fixed 24h/168h durations. MONTH and YEAR advance
on the calendar with relativedelta, clamping to the last valid day of the
target month (Jan 31 + 1 month = Feb 28/29, Feb 29 + 1 year = Feb 28).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from src.reminder.clock import Clock, to_utc
from src.reminder.errors import InvalidFrequency, InvalidInterval
from src.reminder.models import RecurrenceFrequency, coerce_frequency


def validate_frequency(frequency: Union[RecurrenceFrequency, int]) -> RecurrenceFrequency:
    """
    Resolve a frequency code.

    Raises:
        InvalidFrequency: code outside DAY, WEEK, MONTH, YEAR
    """
    if isinstance(frequency, bool):
        raise InvalidFrequency(frequency)
    resolved = coerce_frequency(frequency)
    if not isinstance(resolved, RecurrenceFrequency):
        raise InvalidFrequency(frequency)
    return resolved


def validate_interval(interval: int) -> int:
    """
    Check a recurrence interval.

    Raises:
        InvalidInterval: interval is not a positive integer
    """
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise InvalidInterval(interval)
    return interval


def next_occurrence(frequency: Union[RecurrenceFrequency, int], interval: int,
                    last_timestamp: datetime, clock: Optional[Clock] = None) -> datetime:
    """
    Compute the occurrence following last_timestamp.

    Args:
        frequency: Recurrence unit (enum or wire code)
        interval: Number of units between occurrences
        last_timestamp: Most recent occurrence, or the reminder's base timestamp
        clock: Reference clock; its time zone is the calendar used for
            MONTH and YEAR arithmetic (UTC when omitted)

    Returns:
        Timestamp of the next occurrence, in UTC

    Raises:
        InvalidFrequency: unsupported unit code
        InvalidInterval: non-positive interval
    """
    unit = validate_frequency(frequency)
    interval = validate_interval(interval)
    last_timestamp = to_utc(last_timestamp)

    if unit is RecurrenceFrequency.DAY:
        return last_timestamp + timedelta(days=interval)
    if unit is RecurrenceFrequency.WEEK:
        return last_timestamp + timedelta(weeks=interval)

    zone = (clock().tzinfo if clock is not None else None) or timezone.utc
    local = last_timestamp.astimezone(zone)

    if unit is RecurrenceFrequency.MONTH:
        return to_utc(local + relativedelta(months=interval))
    return to_utc(local + relativedelta(years=interval))
