"""
Database repository for reminders and occurrences.
Uses SQLite with repository pattern for thread-safe CRUD operations.
"""

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from dateutil.parser import isoparse

from config.logging_config import get_logger
from config import settings
from src.reminder.clock import to_utc
from src.reminder.errors import (
    InvalidOccurrence,
    InvalidReminder,
    ReminderError,
    StorageUnavailable,
)
from src.reminder.models import Occurrence, Reminder
from src.reminder.store import OccurrenceStore

logger = get_logger(__name__)

REMINDER_COLUMNS = """
    r.id AS reminder_id,
    r.employee_id AS employee_id,
    r.text AS text,
    r.timestamp AS reminder_timestamp,
    r.is_recurring AS is_recurring,
    r.recurrence_interval AS recurrence_interval,
    r.recurrence_frequency AS recurrence_frequency
"""

OCCURRENCE_QUERY = f"""
    SELECT
        o.id AS occurrence_id,
        o.timestamp AS occurrence_timestamp,
        o.is_acknowledged AS is_acknowledged,
        o.notification_sent AS notification_sent,
        {REMINDER_COLUMNS}
    FROM occurrences o
    JOIN reminders r ON r.id = o.reminder_id
"""


def format_timestamp(value: datetime) -> str:
    """
    Serialize a timestamp as fixed-width UTC text.
    Fixed width keeps lexical and chronological order identical.
    """
    value = to_utc(value)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}T"
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}.{value.microsecond:06d}Z"
    )


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime."""
    return to_utc(isoparse(value))


class SqliteOccurrenceStore(OccurrenceStore):
    """
    Thread-safe SQLite repository for reminders and their occurrences.
    """

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS reminders (
        id TEXT PRIMARY KEY,
        employee_id TEXT NOT NULL,
        text TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        is_recurring BOOLEAN NOT NULL DEFAULT 0,
        recurrence_interval INTEGER,
        recurrence_frequency INTEGER
    );

    CREATE TABLE IF NOT EXISTS occurrences (
        id TEXT PRIMARY KEY,
        reminder_id TEXT NOT NULL REFERENCES reminders(id),
        timestamp TEXT NOT NULL,
        is_acknowledged BOOLEAN NOT NULL DEFAULT 0,
        notification_sent BOOLEAN NOT NULL DEFAULT 0,
        UNIQUE (reminder_id, timestamp)
    );

    CREATE INDEX IF NOT EXISTS idx_reminders_employee ON reminders(employee_id);
    CREATE INDEX IF NOT EXISTS idx_occurrences_timestamp ON occurrences(timestamp);
    """

    def __init__(self, db_path: str = None):
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database (default from settings)
        """
        self.db_path = db_path or str(settings.DB_PATH)
        self.lock = threading.Lock()

        logger.info(f"SqliteOccurrenceStore initialized: {self.db_path}")
        self._initialize_database()

    def _initialize_database(self) -> None:
        """Create database schema if it doesn't exist."""
        try:
            with self._get_connection() as conn:
                conn.executescript(self.SCHEMA)
                conn.commit()
            logger.info("Database schema initialized")

        except StorageUnavailable as e:
            logger.error(f"Failed to initialize database: {e}", exc_info=True)
            raise

    @contextmanager
    def _get_connection(self):
        """
        Get database connection (context manager).
        Integrity errors pass through; every other SQLite failure
        is raised as StorageUnavailable.

        Yields:
            SQLite connection
        """
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Access columns by name
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn

        except sqlite3.IntegrityError:
            raise

        except sqlite3.Error as e:
            raise StorageUnavailable(f"SQLite failure on {self.db_path}: {e}") from e

        finally:
            if conn is not None:
                conn.close()

    def insert_reminder(self, reminder: Reminder) -> Reminder:
        """
        Persist a new reminder.

        Args:
            reminder: Validated reminder

        Returns:
            The stored reminder
        """
        frequency = reminder.recurrence_frequency
        with self.lock:
            with self._get_connection() as conn:
                try:
                    conn.execute(
                        """
                        INSERT INTO reminders (id, employee_id, text, timestamp, is_recurring,
                                               recurrence_interval, recurrence_frequency)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            str(reminder.id),
                            str(reminder.employee_id),
                            reminder.text,
                            format_timestamp(reminder.timestamp),
                            reminder.is_recurring,
                            reminder.recurrence_interval,
                            int(frequency) if frequency is not None else None
                        )
                    )
                    conn.commit()

                except sqlite3.IntegrityError as e:
                    raise InvalidReminder(f"Reminder {reminder.id} already exists") from e

        logger.info(f"Created reminder: {reminder}")
        return reminder

    def select_reminder_by_id(self, reminder_id: uuid.UUID) -> Optional[Reminder]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT {REMINDER_COLUMNS} FROM reminders r WHERE r.id = ?",
                (str(reminder_id),)
            ).fetchone()

        if row:
            return self._row_to_reminder(row)
        return None

    def select_reminders_for_employee(self, employee_id: uuid.UUID) -> List[Reminder]:
        with self._get_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {REMINDER_COLUMNS} FROM reminders r
                WHERE r.employee_id = ?
                ORDER BY r.timestamp ASC
                """,
                (str(employee_id),)
            ).fetchall()

        return [self._row_to_reminder(row) for row in rows]

    def insert_occurrence(self, reminder_id: uuid.UUID,
                          timestamp: datetime) -> Optional[uuid.UUID]:
        """
        Create an occurrence of a reminder.

        Args:
            reminder_id: Owning reminder
            timestamp: When the occurrence fires

        Returns:
            New occurrence id, or None if one already exists at this timestamp
        """
        occurrence_id = uuid.uuid4()
        stamp = format_timestamp(timestamp)

        with self.lock:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT timestamp FROM reminders WHERE id = ?",
                    (str(reminder_id),)
                ).fetchone()
                if row is None:
                    raise InvalidOccurrence(f"Unknown reminder {reminder_id}")
                if stamp < row['timestamp']:
                    raise InvalidOccurrence(
                        f"Occurrence at {stamp} precedes reminder {reminder_id} "
                        f"base {row['timestamp']}"
                    )

                try:
                    conn.execute(
                        """
                        INSERT INTO occurrences (id, reminder_id, timestamp,
                                                 is_acknowledged, notification_sent)
                        VALUES (?, ?, ?, 0, 0)
                        """,
                        (str(occurrence_id), str(reminder_id), stamp)
                    )
                    conn.commit()

                except sqlite3.IntegrityError:
                    logger.debug(f"Occurrence of {reminder_id} at {stamp} already exists")
                    return None

        return occurrence_id

    def select_occurrences_before(self, timestamp: datetime,
                                  employee_id: Optional[uuid.UUID] = None,
                                  unacknowledged_only: bool = False) -> List[Occurrence]:
        query = OCCURRENCE_QUERY + " WHERE o.timestamp < ?"
        params = [format_timestamp(timestamp)]

        if employee_id is not None:
            query += " AND r.employee_id = ?"
            params.append(str(employee_id))
        if unacknowledged_only:
            query += " AND o.is_acknowledged = 0"
        query += " ORDER BY o.timestamp ASC"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return self._hydrate_occurrences(rows)

    def select_pending_notifications(self, timestamp: datetime) -> List[Occurrence]:
        with self._get_connection() as conn:
            rows = conn.execute(
                OCCURRENCE_QUERY + """
                WHERE o.timestamp < ?
                AND o.is_acknowledged = 0
                AND o.notification_sent = 0
                ORDER BY o.timestamp ASC
                """,
                (format_timestamp(timestamp),)
            ).fetchall()

        return self._hydrate_occurrences(rows)

    def select_occurrence_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]:
        with self._get_connection() as conn:
            row = conn.execute(
                OCCURRENCE_QUERY + " WHERE o.id = ?",
                (str(occurrence_id),)
            ).fetchone()

        if row:
            found = self._hydrate_occurrences([row])
            return found[0] if found else None
        return None

    def select_reminders_with_last_occurrence(
            self, recurring_only: bool = False
    ) -> List[Tuple[Reminder, Optional[datetime]]]:
        """
        Pair each reminder with its latest occurrence timestamp.
        Rows that no longer hydrate into a valid reminder are logged and skipped.

        Args:
            recurring_only: Restrict to reminders flagged as recurring

        Returns:
            List of (reminder, last occurrence timestamp or None)
        """
        query = f"""
            SELECT {REMINDER_COLUMNS}, MAX(o.timestamp) AS last_occurrence_timestamp
            FROM reminders r
            LEFT JOIN occurrences o ON o.reminder_id = r.id
        """
        if recurring_only:
            query += " WHERE r.is_recurring = 1"
        query += " GROUP BY r.id"

        with self._get_connection() as conn:
            rows = conn.execute(query).fetchall()

        result = []
        for row in rows:
            try:
                reminder = self._row_to_reminder(row)
                last = row['last_occurrence_timestamp']
                last = parse_timestamp(last) if last else None
            except (ReminderError, ValueError) as e:
                logger.warning(f"Skipping unreadable reminder {row['reminder_id']}: {e}")
                continue

            result.append((reminder, last))

        return result

    def update_notified(self, occurrence_id: uuid.UUID) -> bool:
        return self._set_flag(occurrence_id, "notification_sent")

    def update_acknowledged(self, occurrence_id: uuid.UUID) -> bool:
        return self._set_flag(occurrence_id, "is_acknowledged")

    def _set_flag(self, occurrence_id: uuid.UUID, column: str) -> bool:
        """
        Set a boolean occurrence column to true.

        Returns:
            True if the occurrence exists
        """
        with self.lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    f"UPDATE occurrences SET {column} = 1 WHERE id = ?",
                    (str(occurrence_id),)
                )
                conn.commit()

                success = cursor.rowcount > 0
                if success:
                    logger.debug(f"Set {column} on occurrence {occurrence_id}")
                return success

    def _hydrate_occurrences(self, rows) -> List[Occurrence]:
        """Convert joined rows, logging and skipping any that no longer hydrate."""
        occurrences = []
        for row in rows:
            try:
                occurrences.append(self._row_to_occurrence(row))
            except (ReminderError, ValueError) as e:
                logger.warning(f"Skipping unreadable occurrence {row['occurrence_id']}: {e}")
        return occurrences

    def _row_to_reminder(self, row: sqlite3.Row) -> Reminder:
        """
        Convert database row to Reminder object.

        Args:
            row: SQLite row carrying the reminder columns

        Returns:
            Reminder object
        """
        return Reminder(
            id=uuid.UUID(row['reminder_id']),
            employee_id=uuid.UUID(row['employee_id']),
            text=row['text'],
            timestamp=parse_timestamp(row['reminder_timestamp']),
            is_recurring=bool(row['is_recurring']),
            recurrence_interval=row['recurrence_interval'],
            recurrence_frequency=row['recurrence_frequency']
        )

    def _row_to_occurrence(self, row: sqlite3.Row) -> Occurrence:
        """
        Convert joined database row to Occurrence object.

        Args:
            row: SQLite row carrying occurrence and reminder columns

        Returns:
            Occurrence object
        """
        return Occurrence(
            id=uuid.UUID(row['occurrence_id']),
            reminder=self._row_to_reminder(row),
            timestamp=parse_timestamp(row['occurrence_timestamp']),
            is_acknowledged=bool(row['is_acknowledged']),
            is_notification_sent=bool(row['notification_sent'])
        )
