"""
APScheduler wrapper for periodic occurrence scans.
Materializes due occurrences and hands them to the notification callback.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from config.logging_config import get_logger
from config import settings
from src.reminder.clock import Clock, utc_now
from src.reminder.lifecycle import OccurrenceLifecycle
from src.reminder.models import Occurrence
from src.reminder.scanner import DueOccurrenceScanner

logger = get_logger(__name__)

SCAN_JOB_ID = "occurrence_scan"

Notifier = Callable[[Occurrence], Awaitable[None]]


async def log_notifier(occurrence: Occurrence) -> None:
    """Default delivery: write the reminder to the log."""
    reminder = occurrence.reminder
    logger.info(
        f"Reminder for employee {reminder.employee_id}: {reminder.text} "
        f"(due {occurrence.timestamp.isoformat()})"
    )


class ScanScheduler:
    """
    Runs the occurrence scan on a fixed interval.
    A failed scan is logged and retried by the next trigger.
    """

    def __init__(self, scanner: DueOccurrenceScanner, lifecycle: OccurrenceLifecycle,
                 notifier: Optional[Notifier] = None, clock: Clock = utc_now,
                 interval_seconds: int = None):
        """
        Initialize scheduler.

        Args:
            scanner: Computes and materializes due occurrences
            lifecycle: Occurrence queries and state transitions
            notifier: Async function delivering one occurrence
                     Signature: async def notifier(occurrence: Occurrence) -> None
            clock: Reference time source
            interval_seconds: Seconds between scans (default from settings)
        """
        self.scanner = scanner
        self.lifecycle = lifecycle
        self.notifier = notifier or log_notifier
        self.clock = clock
        self.interval_seconds = interval_seconds or settings.SCAN_INTERVAL_SECONDS

        # Configure scheduler
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                'coalesce': settings.SCHEDULER_COALESCE,
                'max_instances': settings.SCHEDULER_MAX_INSTANCES,
                'misfire_grace_time': settings.SCHEDULER_MISFIRE_GRACE_TIME
            }
        )

        # Add event listeners
        self.scheduler.add_listener(
            self._job_executed,
            EVENT_JOB_EXECUTED
        )
        self.scheduler.add_listener(
            self._job_error,
            EVENT_JOB_ERROR
        )

        logger.info(f"ScanScheduler initialized (every {self.interval_seconds}s)")

    def start(self, run_now: bool = True) -> None:
        """
        Start the scheduler.

        Args:
            run_now: Run the first scan immediately instead of after one interval
        """
        if not self.scheduler.running:
            trigger = IntervalTrigger(seconds=self.interval_seconds)
            job_options = {}
            if run_now:
                job_options["next_run_time"] = datetime.now(timezone.utc)

            self.scheduler.add_job(
                func=self.run_scan,
                trigger=trigger,
                id=SCAN_JOB_ID,
                replace_existing=True,
                **job_options
            )
            self.scheduler.start()
            logger.info("Scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        """
        Shutdown the scheduler.

        Args:
            wait: Wait for running jobs to complete
        """
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Scheduler shutdown")

    async def run_scan(self) -> int:
        """
        One scan: materialize due occurrences, then deliver pending ones.

        An occurrence is marked notified only after the notifier returns;
        on failure it stays pending for the next scan.

        Returns:
            Number of occurrences notified
        """
        created = self.scanner.scan()
        if created:
            logger.info(f"Materialized {len(created)} occurrence(s)")

        notified = 0
        for occurrence in self.lifecycle.find_pending_notifications(self.clock()):
            try:
                await self.notifier(occurrence)
            except Exception as e:
                logger.error(
                    f"Error delivering occurrence {occurrence.id}: {e}",
                    exc_info=True
                )
                continue

            self.lifecycle.mark_notified(occurrence.id)
            notified += 1

        return notified

    def get_next_run_time(self) -> Optional[datetime]:
        """
        Get next scan time.

        Returns:
            Next run time or None if not scheduled
        """
        job = self.scheduler.get_job(SCAN_JOB_ID)

        if job:
            return job.next_run_time

        return None

    def _job_executed(self, event) -> None:
        """
        Event listener for successful job execution.

        Args:
            event: Job execution event
        """
        logger.debug(f"Job executed: {event.job_id}, notified: {event.retval}")

    def _job_error(self, event) -> None:
        """
        Event listener for job errors.

        Args:
            event: Job error event
        """
        logger.error(
            f"Job error: {event.job_id}, "
            f"exception: {event.exception}",
            exc_info=event.exception
        )
