"""
Data models for reminders and their occurrences.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional, Union

from src.reminder.clock import to_utc
from src.reminder.errors import InvalidOccurrence, InvalidReminder


class RecurrenceFrequency(IntEnum):
    """Calendar unit of a recurrence, valued by its wire code."""
    DAY = 1
    WEEK = 2
    MONTH = 3
    YEAR = 4


class OccurrenceState(Enum):
    """Lifecycle states of an occurrence."""
    CREATED = "created"
    NOTIFIED = "notified"
    ACKNOWLEDGED = "acknowledged"


def coerce_frequency(value: Union[RecurrenceFrequency, int, None]):
    """
    Map a wire code to RecurrenceFrequency when it is a known code.

    Unknown codes are returned unchanged so that they surface as
    InvalidFrequency when a next occurrence is computed.
    """
    if value is None or isinstance(value, RecurrenceFrequency):
        return value
    try:
        return RecurrenceFrequency(value)
    except ValueError:
        return value


@dataclass
class Reminder:
    """Reminder data model. Immutable once stored."""

    id: uuid.UUID
    employee_id: uuid.UUID
    text: str
    timestamp: datetime
    is_recurring: bool = False
    recurrence_interval: Optional[int] = None
    recurrence_frequency: Optional[Union[RecurrenceFrequency, int]] = None

    def __post_init__(self):
        if self.timestamp is None or self.timestamp.tzinfo is None:
            raise InvalidReminder(f"Reminder {self.id} needs a timezone aware timestamp")
        self.timestamp = to_utc(self.timestamp)
        self.recurrence_frequency = coerce_frequency(self.recurrence_frequency)

        has_interval = self.recurrence_interval is not None
        has_frequency = self.recurrence_frequency is not None
        if self.is_recurring and not (has_interval and has_frequency):
            raise InvalidReminder(
                f"Recurring reminder {self.id} needs both interval and frequency"
            )
        if not self.is_recurring and (has_interval or has_frequency):
            raise InvalidReminder(
                f"Non-recurring reminder {self.id} cannot carry interval or frequency"
            )

    @classmethod
    def create(cls, employee_id: uuid.UUID, text: str, timestamp: datetime,
               recurrence_interval: Optional[int] = None,
               recurrence_frequency: Optional[Union[RecurrenceFrequency, int]] = None
               ) -> 'Reminder':
        """
        Build a new reminder with a fresh id.

        A reminder is recurring exactly when an interval and a frequency
        are given.
        """
        return cls(
            id=uuid.uuid4(),
            employee_id=employee_id,
            text=text,
            timestamp=timestamp,
            is_recurring=recurrence_interval is not None or recurrence_frequency is not None,
            recurrence_interval=recurrence_interval,
            recurrence_frequency=recurrence_frequency
        )

    def __str__(self) -> str:
        """String representation."""
        time_str = self.timestamp.strftime("%Y-%m-%d %H:%M")
        if self.is_recurring:
            unit = getattr(self.recurrence_frequency, "name", self.recurrence_frequency)
            return f"↻ {self.text} @ {time_str} every {self.recurrence_interval} {unit}"
        return f"● {self.text} @ {time_str}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': str(self.id),
            'employee_id': str(self.employee_id),
            'text': self.text,
            'date': self.timestamp.isoformat(),
            'is_recurring': self.is_recurring,
            'recurrence_interval': self.recurrence_interval,
            'recurrence_frequency': (
                int(self.recurrence_frequency)
                if self.recurrence_frequency is not None else None
            )
        }


@dataclass
class Occurrence:
    """One materialized firing of a reminder."""

    id: uuid.UUID
    reminder: Reminder
    timestamp: datetime
    is_acknowledged: bool = False
    is_notification_sent: bool = False

    def __post_init__(self):
        self.timestamp = to_utc(self.timestamp)
        if self.timestamp < self.reminder.timestamp:
            raise InvalidOccurrence(
                f"Occurrence {self.id} at {self.timestamp.isoformat()} precedes "
                f"reminder {self.reminder.id} base {self.reminder.timestamp.isoformat()}"
            )

    @property
    def state(self) -> OccurrenceState:
        if self.is_acknowledged:
            return OccurrenceState.ACKNOWLEDGED
        if self.is_notification_sent:
            return OccurrenceState.NOTIFIED
        return OccurrenceState.CREATED

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': str(self.id),
            'reminder': self.reminder.to_dict(),
            'date': self.timestamp.isoformat(),
            'is_acknowledged': self.is_acknowledged,
            'is_notification_sent': self.is_notification_sent
        }
