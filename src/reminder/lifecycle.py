"""
Occurrence lifecycle: created -> notified -> acknowledged.
Query surface used by the API and notification layers.

An occurrence is due before a cutoff when its timestamp is strictly
earlier than the cutoff. Acknowledgment and notification state are
separate filters, each applied only by the query that names it.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from config.logging_config import get_logger
from src.reminder.models import Occurrence
from src.reminder.store import OccurrenceStore

logger = get_logger(__name__)


class OccurrenceLifecycle:
    """State transitions and lookups for occurrences."""

    def __init__(self, store: OccurrenceStore):
        self.store = store

    def find_due_before(self, cutoff: datetime) -> List[Occurrence]:
        """All occurrences before cutoff, acknowledged or not."""
        return self.store.select_occurrences_before(cutoff)

    def find_unacknowledged_due_before(self, cutoff: datetime,
                                       employee_id: uuid.UUID) -> List[Occurrence]:
        """One employee's unacknowledged occurrences before cutoff."""
        return self.store.select_occurrences_before(
            cutoff,
            employee_id=employee_id,
            unacknowledged_only=True
        )

    def find_pending_notifications(self, cutoff: datetime) -> List[Occurrence]:
        """Unacknowledged occurrences before cutoff whose notification is not sent yet."""
        return self.store.select_pending_notifications(cutoff)

    def find_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]:
        return self.store.select_occurrence_by_id(occurrence_id)

    def mark_notified(self, occurrence_id: uuid.UUID) -> bool:
        """
        Record that the notification for an occurrence was delivered.

        Args:
            occurrence_id: Occurrence to update

        Returns:
            True if the occurrence exists (already notified counts)
        """
        found = self.store.update_notified(occurrence_id)
        if found:
            logger.info(f"Occurrence {occurrence_id} marked as notified")
        else:
            logger.debug(f"mark_notified: occurrence {occurrence_id} not found")
        return found

    def acknowledge(self, occurrence_id: uuid.UUID) -> bool:
        """
        Acknowledge an occurrence on behalf of its employee.

        Unknown ids are a no-op; reporting them is up to the caller.

        Args:
            occurrence_id: Occurrence to acknowledge

        Returns:
            True if the occurrence exists (already acknowledged counts)
        """
        found = self.store.update_acknowledged(occurrence_id)
        if found:
            logger.info(f"Occurrence {occurrence_id} acknowledged")
        else:
            logger.debug(f"acknowledge: occurrence {occurrence_id} not found")
        return found
