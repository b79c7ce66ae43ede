"""
Occurrence store interface and in-memory reference implementation.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from config.logging_config import get_logger
from src.reminder.clock import to_utc
from src.reminder.errors import InvalidOccurrence, InvalidReminder
from src.reminder.models import Occurrence, Reminder

logger = get_logger(__name__)


class OccurrenceStore(ABC):
    """
    Persistence collaborator for reminders and their occurrences.

    Implementations must enforce at most one occurrence per
    (reminder_id, timestamp); a duplicate insert returns None.
    """

    @abstractmethod
    def insert_reminder(self, reminder: Reminder) -> Reminder:
        """
        Persist a new reminder.

        Raises:
            InvalidReminder: a reminder with the same id already exists
        """

    @abstractmethod
    def select_reminder_by_id(self, reminder_id: uuid.UUID) -> Optional[Reminder]:
        """Get a reminder by id, None if missing."""

    @abstractmethod
    def select_reminders_for_employee(self, employee_id: uuid.UUID) -> List[Reminder]:
        """All reminders of one employee, oldest first."""

    @abstractmethod
    def insert_occurrence(self, reminder_id: uuid.UUID,
                          timestamp: datetime) -> Optional[uuid.UUID]:
        """
        Create an occurrence.

        Returns:
            New occurrence id, or None if (reminder_id, timestamp) already exists

        Raises:
            InvalidOccurrence: unknown reminder or timestamp before its base
        """

    @abstractmethod
    def select_occurrences_before(self, timestamp: datetime,
                                  employee_id: Optional[uuid.UUID] = None,
                                  unacknowledged_only: bool = False) -> List[Occurrence]:
        """
        Occurrences strictly before timestamp, optionally for one employee.
        Stored rows that no longer hydrate are logged and skipped.
        """

    @abstractmethod
    def select_pending_notifications(self, timestamp: datetime) -> List[Occurrence]:
        """Unacknowledged, not yet notified occurrences strictly before timestamp."""

    @abstractmethod
    def select_occurrence_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]:
        """
        Get an occurrence joined with its reminder.

        Returns None if the id is unknown or the stored row no longer
        hydrates into a valid occurrence.
        """

    @abstractmethod
    def select_reminders_with_last_occurrence(
            self, recurring_only: bool = False
    ) -> List[Tuple[Reminder, Optional[datetime]]]:
        """Reminders paired with their latest occurrence timestamp (None if none)."""

    @abstractmethod
    def update_notified(self, occurrence_id: uuid.UUID) -> bool:
        """Set is_notification_sent. Returns False if the id is unknown."""

    @abstractmethod
    def update_acknowledged(self, occurrence_id: uuid.UUID) -> bool:
        """Set is_acknowledged. Returns False if the id is unknown."""


class InMemoryOccurrenceStore(OccurrenceStore):
    """
    Dict-backed store with the same contract as the SQLite repository.
    """

    def __init__(self):
        self.reminders: Dict[uuid.UUID, Reminder] = {}
        self.occurrences: Dict[uuid.UUID, Occurrence] = {}
        self._keys: Dict[Tuple[uuid.UUID, datetime], uuid.UUID] = {}
        self.lock = threading.Lock()

        logger.debug("InMemoryOccurrenceStore initialized")

    def insert_reminder(self, reminder: Reminder) -> Reminder:
        with self.lock:
            if reminder.id in self.reminders:
                raise InvalidReminder(f"Reminder {reminder.id} already exists")
            self.reminders[reminder.id] = reminder
        logger.info(f"Created reminder: {reminder}")
        return reminder

    def select_reminder_by_id(self, reminder_id: uuid.UUID) -> Optional[Reminder]:
        with self.lock:
            return self.reminders.get(reminder_id)

    def select_reminders_for_employee(self, employee_id: uuid.UUID) -> List[Reminder]:
        with self.lock:
            found = [r for r in self.reminders.values() if r.employee_id == employee_id]
        return sorted(found, key=lambda r: r.timestamp)

    def insert_occurrence(self, reminder_id: uuid.UUID,
                          timestamp: datetime) -> Optional[uuid.UUID]:
        timestamp = to_utc(timestamp)

        with self.lock:
            reminder = self.reminders.get(reminder_id)
            if reminder is None:
                raise InvalidOccurrence(f"Unknown reminder {reminder_id}")

            key = (reminder_id, timestamp)
            if key in self._keys:
                logger.debug(
                    f"Occurrence of {reminder_id} at {timestamp.isoformat()} already exists"
                )
                return None

            occurrence = Occurrence(id=uuid.uuid4(), reminder=reminder, timestamp=timestamp)
            self.occurrences[occurrence.id] = occurrence
            self._keys[key] = occurrence.id

        return occurrence.id

    def select_occurrences_before(self, timestamp: datetime,
                                  employee_id: Optional[uuid.UUID] = None,
                                  unacknowledged_only: bool = False) -> List[Occurrence]:
        timestamp = to_utc(timestamp)

        with self.lock:
            found = [
                o for o in self.occurrences.values()
                if o.timestamp < timestamp
                and (employee_id is None or o.reminder.employee_id == employee_id)
                and not (unacknowledged_only and o.is_acknowledged)
            ]
        return [replace(o) for o in sorted(found, key=lambda o: o.timestamp)]

    def select_pending_notifications(self, timestamp: datetime) -> List[Occurrence]:
        return [
            o for o in self.select_occurrences_before(timestamp, unacknowledged_only=True)
            if not o.is_notification_sent
        ]

    def select_occurrence_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]:
        with self.lock:
            occurrence = self.occurrences.get(occurrence_id)
            return replace(occurrence) if occurrence is not None else None

    def select_reminders_with_last_occurrence(
            self, recurring_only: bool = False
    ) -> List[Tuple[Reminder, Optional[datetime]]]:
        with self.lock:
            last: Dict[uuid.UUID, datetime] = {}
            for occurrence in self.occurrences.values():
                reminder_id = occurrence.reminder.id
                if reminder_id not in last or occurrence.timestamp > last[reminder_id]:
                    last[reminder_id] = occurrence.timestamp

            return [
                (reminder, last.get(reminder.id))
                for reminder in self.reminders.values()
                if reminder.is_recurring or not recurring_only
            ]

    def update_notified(self, occurrence_id: uuid.UUID) -> bool:
        with self.lock:
            occurrence = self.occurrences.get(occurrence_id)
            if occurrence is None:
                return False
            occurrence.is_notification_sent = True
            return True

    def update_acknowledged(self, occurrence_id: uuid.UUID) -> bool:
        with self.lock:
            occurrence = self.occurrences.get(occurrence_id)
            if occurrence is None:
                return False
            occurrence.is_acknowledged = True
            return True
