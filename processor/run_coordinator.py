"""Orchestration of a full cleanup run across calendars."""
import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from processor.calendar_processor import CalendarProcessor
from processor.date_range import compute_date_range, validate_config
from processor.errors import FatalRunError, ProviderAccessError
from processor.event_filter import EventFilter
from processor.models import CalendarHandle, Configuration, DateRange, RunResult
from processor.report_builder import ReportBuilder

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunCoordinator:
    """Runs the cleanup over every target calendar and aggregates results."""

    def __init__(
        self,
        provider,
        backup_sink=None,
        notifier=None,
        report_builder: Optional[ReportBuilder] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now
    ):
        """
        Initialize the coordinator.

        Args:
            provider: Calendar provider (list_calendars, get_events)
            backup_sink: Optional sink with create_table and append_rows
            notifier: Optional notifier with send(recipient, subject, body)
            report_builder: Report renderer (default ReportBuilder)
            sleep: Blocking pause used between deletions
            clock: Returns the current timezone-aware time
        """
        self.provider = provider
        self.backup_sink = backup_sink
        self.notifier = notifier
        self.report_builder = report_builder or ReportBuilder()
        self.sleep = sleep
        self.clock = clock
        self.last_summary: Optional[dict] = None

    def run(self, config: Configuration) -> RunResult:
        """
        Execute one cleanup run.

        Args:
            config: Run configuration

        Returns:
            RunResult, possibly partial if the run failed midway

        Raises:
            ConfigurationError: If the configuration is invalid; raised
                before any calendar is accessed
        """
        validate_config(config)

        result = RunResult(started_at=self.clock(), dry_run=config.dry_run)
        mode = 'DRY RUN' if config.dry_run else 'LIVE'
        logger.info(f"Starting calendar cleanup ({mode})")

        try:
            self._run_calendars(config, result)
        except Exception as e:
            error = FatalRunError(f"{type(e).__name__}: {e}")
            logger.error(f"Cleanup run failed: {error}", exc_info=True)
            result.error_log.append(str(error))

        result.finished_at = self.clock()
        logger.info(
            f"Cleanup finished: {result.processed} processed, "
            f"{result.deleted} deleted, {result.skipped} skipped, "
            f"{result.errors} errors",
            extra={'duration_seconds': round(result.duration_seconds, 2)}
        )

        self.last_summary = self.report_builder.summarize(result)
        if config.email_report and config.email_recipient:
            self._notify(config, result)

        return result

    def _run_calendars(self, config: Configuration, result: RunResult) -> None:
        calendars = self.resolve_calendars(config)
        if not calendars:
            logger.warning("No calendars matched the configuration; nothing to do")
            result.aborted_reason = 'no_calendars'
            return

        date_range = compute_date_range(config, result.started_at)
        logger.info(
            f"Processing {len(calendars)} calendars for events before "
            f"{date_range.cutoff.strftime('%Y-%m-%d')}"
        )

        if config.create_backup and not config.dry_run:
            if self.backup_sink is None:
                raise FatalRunError(
                    "Backup requested but no backup sink is configured; "
                    "refusing to delete"
                )
            result.backup_id = self.capture_backup(config, calendars, date_range)

        processor = CalendarProcessor(self.provider, config, sleep=self.sleep)
        for calendar in calendars:
            logger.info(f"Processing calendar '{calendar.name}'")
            result.add_calendar_result(processor.process(calendar, date_range))

    def resolve_calendars(self, config: Configuration) -> List[CalendarHandle]:
        """
        Pick the calendars to process, in provider order.

        A non-empty allow-list wins over the exclude-list.

        Args:
            config: Run configuration

        Returns:
            List of target CalendarHandle objects

        Raises:
            ProviderAccessError: If the provider cannot list calendars
        """
        try:
            calendars = list(self.provider.list_calendars())
        except ProviderAccessError:
            raise
        except Exception as e:
            raise ProviderAccessError(f"Failed to list calendars: {e}") from e

        if config.calendars_to_process:
            wanted = set(config.calendars_to_process)
            return [c for c in calendars if c.name in wanted]

        excluded = set(config.calendars_to_exclude)
        return [c for c in calendars if c.name not in excluded]

    def capture_backup(
        self,
        config: Configuration,
        calendars: List[CalendarHandle],
        date_range: DateRange
    ) -> str:
        """
        Snapshot the events about to be deleted into the backup sink.

        Args:
            config: Run configuration
            calendars: Target calendars
            date_range: Scan window

        Returns:
            Identifier of the created backup table
        """
        event_filter = EventFilter(config)
        rows = []

        for calendar in calendars:
            if len(rows) >= config.max_backup_rows:
                break
            events = self.provider.get_events(calendar, date_range.start, date_range.cutoff)
            for event in event_filter.filter(events):
                if len(rows) >= config.max_backup_rows:
                    logger.warning(
                        f"Backup capped at {config.max_backup_rows} rows"
                    )
                    break
                rows.append({
                    'calendar_name': calendar.name,
                    'title': event.title,
                    'start_time': event.start_time.isoformat(),
                    'end_time': event.end_time.isoformat(),
                    'all_day': event.is_all_day,
                    'attendee_emails': list(event.attendee_emails),
                })

        table_name = (
            f"{config.backup_table_prefix}-"
            f"{date_range.now.strftime('%Y%m%d-%H%M%S')}"
        )
        backup_id = self.backup_sink.create_table(table_name)
        written = self.backup_sink.append_rows(backup_id, rows)
        if written < len(rows):
            raise FatalRunError(
                f"Backup {backup_id} stored {written} of {len(rows)} events; "
                f"refusing to delete"
            )

        logger.info(f"Backed up {written} events to {backup_id}")
        return backup_id

    def _notify(self, config: Configuration, result: RunResult) -> None:
        if self.notifier is None:
            logger.warning("Email report requested but no notifier is configured")
            return

        try:
            self.notifier.send(
                config.email_recipient,
                self.report_builder.email_subject(result),
                self.report_builder.render_email_body(result)
            )
            logger.info(f"Sent cleanup report to {config.email_recipient}")
        except Exception as e:
            logger.error(f"Failed to send cleanup report: {e}", exc_info=True)
            result.error_log.append(f"Notification failed: {e}")
