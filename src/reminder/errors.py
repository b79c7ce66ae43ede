"""
Error taxonomy for reminder scheduling.
"""


class ReminderError(Exception):
    """Base class for all reminder scheduling errors."""


class RecurrenceError(ReminderError):
    """A recurrence configuration cannot produce a next occurrence."""


class InvalidFrequency(RecurrenceError):
    """Frequency code outside DAY, WEEK, MONTH, YEAR."""

    def __init__(self, frequency):
        super().__init__(f"Invalid recurrence frequency: {frequency!r}")
        self.frequency = frequency


class InvalidInterval(RecurrenceError):
    """Recurrence interval is not a positive integer."""

    def __init__(self, interval):
        super().__init__(f"Invalid recurrence interval: {interval!r}")
        self.interval = interval


class InvalidReminder(ReminderError):
    """Reminder fields are inconsistent or malformed."""


class InvalidOccurrence(ReminderError):
    """Occurrence would break its reminder's invariants."""


class StorageUnavailable(ReminderError):
    """The persistence collaborator failed; the caller may retry later."""
