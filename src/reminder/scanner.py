"""
Due occurrence scanner.
Finds reminders whose next occurrence has come due, and materializes them.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from config.logging_config import get_logger
from src.reminder.clock import Clock, utc_now
from src.reminder.errors import RecurrenceError
from src.reminder.models import Occurrence, Reminder
from src.reminder.recurrence import next_occurrence
from src.reminder.store import OccurrenceStore

logger = get_logger(__name__)


class DueOccurrenceScanner:
    """
    Computes which reminders are due for a new occurrence.

    Computing is free of side effects; creating the occurrences is the
    separate materialize step, so a failed scan can simply be re-run.
    """

    def __init__(self, store: OccurrenceStore, clock: Clock = utc_now):
        """
        Initialize scanner.

        Args:
            store: Persistence collaborator
            clock: Reference time source
        """
        self.store = store
        self.clock = clock

    def compute_next_occurrence_timestamps(self) -> Dict[uuid.UUID, datetime]:
        """
        Map each due reminder to the timestamp of its next occurrence.

        Reminders whose recurrence configuration is invalid are logged
        and skipped. Storage failures propagate.

        Returns:
            Dict of reminder id -> next occurrence timestamp (<= now)
        """
        now = self.clock()
        due: Dict[uuid.UUID, datetime] = {}

        for reminder, last_timestamp in self.store.select_reminders_with_last_occurrence():
            try:
                candidate = self._candidate(reminder, last_timestamp)
            except RecurrenceError as e:
                logger.warning(f"Skipping reminder {reminder.id}: {e}")
                continue

            if candidate is not None and candidate <= now:
                due[reminder.id] = candidate

        logger.debug(f"{len(due)} reminder(s) due at {now.isoformat()}")
        return due

    def _candidate(self, reminder: Reminder,
                   last_timestamp: Optional[datetime]) -> Optional[datetime]:
        """Next firing of a reminder, None when it never fires again."""
        if last_timestamp is None:
            return reminder.timestamp

        # One-off reminders fire once
        if not reminder.is_recurring:
            return None

        return next_occurrence(
            reminder.recurrence_frequency,
            reminder.recurrence_interval,
            last_timestamp,
            self.clock
        )

    def materialize(self, due: Mapping[uuid.UUID, datetime]) -> List[Occurrence]:
        """
        Create one occurrence per due entry.

        An entry that already exists (e.g. created by another replica)
        is skipped.

        Args:
            due: Output of compute_next_occurrence_timestamps

        Returns:
            Newly created occurrences
        """
        created = []

        for reminder_id, timestamp in due.items():
            occurrence_id = self.store.insert_occurrence(reminder_id, timestamp)
            if occurrence_id is None:
                logger.debug(f"Occurrence of {reminder_id} already materialized")
                continue

            occurrence = self.store.select_occurrence_by_id(occurrence_id)
            if occurrence is not None:
                logger.info(
                    f"Created occurrence {occurrence_id} of reminder {reminder_id} "
                    f"at {timestamp.isoformat()}"
                )
                created.append(occurrence)

        return created

    def scan(self) -> List[Occurrence]:
        """Compute due reminders and materialize their occurrences."""
        return self.materialize(self.compute_next_occurrence_timestamps())
