"""Cleanup of a single calendar."""
import logging
import time
from typing import Callable

from processor.dispositioner import EventDispositioner
from processor.event_filter import EventFilter
from processor.models import CalendarHandle, CalendarResult, Configuration, DateRange

logger = logging.getLogger(__name__)


class CalendarProcessor:
    """Fetches, filters and dispositions the old events of one calendar."""

    def __init__(
        self,
        provider,
        config: Configuration,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the processor.

        Args:
            provider: Calendar provider exposing get_events(calendar, start, end)
            config: Run configuration
            sleep: Blocking pause used between deletions
        """
        self.provider = provider
        self.config = config
        self.sleep = sleep
        self.event_filter = EventFilter(config)
        self.dispositioner = EventDispositioner(config.permission_phrases)

    def process(self, calendar: CalendarHandle, date_range: DateRange) -> CalendarResult:
        """
        Clean up one calendar.

        Fetch or filter failures are recorded on the result, never raised.

        Args:
            calendar: Calendar to process
            date_range: Scan window; events in [start, cutoff) are candidates

        Returns:
            CalendarResult for this calendar
        """
        result = CalendarResult(calendar_name=calendar.name)

        try:
            events = list(
                self.provider.get_events(calendar, date_range.start, date_range.cutoff)
            )
            logger.info(f"Found {len(events)} old events in '{calendar.name}'")

            if not events:
                return result

            filtered = self.event_filter.filter(events)
        except Exception as e:
            logger.error(
                f"Error reading calendar '{calendar.name}': {e}",
                exc_info=True
            )
            result.add_error(f"Calendar '{calendar.name}': {e}")
            return result

        if not filtered:
            logger.info(f"All {len(events)} events in '{calendar.name}' were filtered out")
            result.add_skips('filtered_out', len(events))
            return result

        batch = filtered[:self.config.max_deletes_per_run]
        if len(batch) < len(filtered):
            logger.info(
                f"Capping '{calendar.name}' at {len(batch)} of "
                f"{len(filtered)} eligible events"
            )

        for index, event in enumerate(batch):
            if index > 0 and self.config.pause_seconds > 0:
                self.sleep(self.config.pause_seconds)

            disposition = self.dispositioner.dispose(event, self.config.dry_run)
            result.record(event, disposition, self.config.max_sample_events)

        logger.info(
            f"Calendar '{calendar.name}' complete: {result.processed} processed, "
            f"{result.deleted} deleted, {result.skipped} skipped, "
            f"{result.errors} errors"
        )
        return result
