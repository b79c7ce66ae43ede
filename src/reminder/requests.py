"""
Reminder creation payloads.
Parses the JSON body accepted at the request boundary into a Reminder.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dateutil.parser import isoparse

from config.logging_config import get_logger
from src.reminder.errors import InvalidReminder, RecurrenceError
from src.reminder.models import Reminder
from src.reminder.recurrence import validate_frequency, validate_interval
from src.reminder.store import OccurrenceStore

logger = get_logger(__name__)


@dataclass
class CreateReminderRequest:
    """Body of a reminder creation request."""

    text: str
    employee_id: uuid.UUID
    date: str
    is_recurring: bool
    recurrence_interval: Optional[int] = None
    recurrence_frequency: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'CreateReminderRequest':
        """
        Build a request from a decoded JSON object.

        Args:
            payload: Mapping with text, employee_id, date, is_recurring and
                optional recurrence_interval / recurrence_frequency

        Raises:
            InvalidReminder: missing or malformed fields
        """
        missing = [k for k in ('text', 'employee_id', 'date', 'is_recurring') if k not in payload]
        if missing:
            raise InvalidReminder(f"Missing fields: {', '.join(missing)}")

        text = payload['text']
        if not isinstance(text, str) or not text.strip():
            raise InvalidReminder("text must be a non-empty string")

        try:
            employee_id = uuid.UUID(str(payload['employee_id']))
        except ValueError as e:
            raise InvalidReminder(f"employee_id is not a UUID: {payload['employee_id']!r}") from e

        is_recurring = payload['is_recurring']
        if not isinstance(is_recurring, bool):
            raise InvalidReminder("is_recurring must be a boolean")

        return cls(
            text=text,
            employee_id=employee_id,
            date=payload['date'],
            is_recurring=is_recurring,
            recurrence_interval=payload.get('recurrence_interval'),
            recurrence_frequency=payload.get('recurrence_frequency')
        )

    def to_reminder(self) -> Reminder:
        """
        Validate the request and build a new Reminder.

        Raises:
            InvalidReminder: bad date or recurrence configuration
        """
        try:
            timestamp = isoparse(self.date)
        except (TypeError, ValueError) as e:
            raise InvalidReminder(f"date is not an ISO-8601 instant: {self.date!r}") from e
        if timestamp.tzinfo is None:
            raise InvalidReminder(f"date must carry a UTC offset: {self.date!r}")

        interval = None
        frequency = None
        if self.is_recurring:
            try:
                interval = validate_interval(self.recurrence_interval)
                frequency = validate_frequency(self.recurrence_frequency)
            except RecurrenceError as e:
                raise InvalidReminder(str(e)) from e
        elif self.recurrence_interval is not None or self.recurrence_frequency is not None:
            raise InvalidReminder(
                "recurrence_interval and recurrence_frequency require is_recurring"
            )

        return Reminder(
            id=uuid.uuid4(),
            employee_id=self.employee_id,
            text=self.text,
            timestamp=timestamp,
            is_recurring=self.is_recurring,
            recurrence_interval=interval,
            recurrence_frequency=frequency
        )


def create_reminder(store: OccurrenceStore, payload: Mapping[str, Any]) -> Reminder:
    """
    Validate a creation payload and store the resulting reminder.

    Args:
        store: Persistence collaborator
        payload: Decoded JSON request body

    Returns:
        The stored reminder
    """
    request = CreateReminderRequest.from_payload(payload)
    logger.debug(f"Creating reminder for employee {request.employee_id}")
    return store.insert_reminder(request.to_reminder())
