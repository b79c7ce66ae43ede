"""Builders shared by the test modules."""

import uuid
from datetime import datetime, timezone

from src.reminder.models import RecurrenceFrequency, Reminder


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Create a UTC datetime for testing."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


NOW = utc(2024, 3, 15, 12)


def one_off(employee_id: uuid.UUID, timestamp: datetime, text: str = "Submit timesheet") -> Reminder:
    return Reminder.create(employee_id=employee_id, text=text, timestamp=timestamp)


def recurring(employee_id: uuid.UUID, timestamp: datetime, interval=1,
              frequency=RecurrenceFrequency.DAY, text: str = "Stand-up") -> Reminder:
    return Reminder(
        id=uuid.uuid4(),
        employee_id=employee_id,
        text=text,
        timestamp=timestamp,
        is_recurring=True,
        recurrence_interval=interval,
        recurrence_frequency=frequency
    )
