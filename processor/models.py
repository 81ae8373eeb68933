"""Data models for calendar cleanup runs."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Configuration:
    """Immutable settings for one cleanup run."""
    days_to_keep: Optional[int] = None
    months_to_keep: Optional[int] = None
    years_to_keep: Optional[int] = None
    dry_run: bool = True
    max_deletes_per_run: int = 500
    pause_seconds: float = 0.1
    delete_recurring: bool = False
    skip_all_day: bool = False
    skip_with_attendees: bool = False
    exclude_keywords: Tuple[str, ...] = ()
    include_keywords: Tuple[str, ...] = ()
    min_title_length: int = 0
    calendars_to_process: Tuple[str, ...] = ()
    calendars_to_exclude: Tuple[str, ...] = ()
    build_report: bool = True
    email_report: bool = False
    email_recipient: str = ''
    create_backup: bool = False
    backup_table_prefix: str = 'calendar-cleanup-backup'
    max_sample_events: int = 5
    max_backup_rows: int = 1000
    permission_phrases: Tuple[str, ...] = ('action not allowed',)

    def simulated(self) -> 'Configuration':
        """Return a copy of this configuration forced into dry-run mode."""
        return replace(self, dry_run=True)


@dataclass(frozen=True)
class DateRange:
    """Scan window: events in [start, cutoff) are cleanup candidates."""
    start: datetime
    cutoff: datetime
    now: datetime


@dataclass(frozen=True)
class CalendarHandle:
    """Reference to a calendar supplied by a provider."""
    calendar_id: str
    name: str


@dataclass
class EventView:
    """Read-only projection of a calendar event."""
    title: str
    start_time: datetime
    end_time: datetime
    is_all_day: bool
    attendee_count: int
    is_recurring: bool
    delete: Callable[[], None]
    attendee_emails: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EventDisposition:
    """Outcome of processing one event: deleted, skipped or error."""
    status: str
    reason: Optional[str] = None
    message: Optional[str] = None

    DELETED = 'deleted'
    SKIPPED = 'skipped'
    ERROR = 'error'

    @classmethod
    def deleted(cls) -> 'EventDisposition':
        return cls(status=cls.DELETED)

    @classmethod
    def skipped(cls, reason: str = 'unknown') -> 'EventDisposition':
        return cls(status=cls.SKIPPED, reason=reason)

    @classmethod
    def error(cls, message: str) -> 'EventDisposition':
        return cls(status=cls.ERROR, message=message)

    def label(self) -> str:
        if self.status == self.SKIPPED:
            return f"skipped ({self.reason})"
        if self.status == self.ERROR:
            return f"error ({self.message})"
        return self.status


@dataclass
class CalendarResult:
    """Per-calendar counters, skip reasons and a bounded event sample."""
    calendar_name: str
    processed: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0
    skip_reasons: Dict[str, int] = field(default_factory=dict)
    sample_events: List[dict] = field(default_factory=list)
    error_messages: List[str] = field(default_factory=list)

    def record(
        self,
        event: EventView,
        disposition: EventDisposition,
        sample_limit: int
    ) -> None:
        """
        Account for one dispositioned event.

        Args:
            event: The event that was processed
            disposition: Outcome of processing it
            sample_limit: Maximum number of sample entries to keep
        """
        self.processed += 1

        if disposition.status == EventDisposition.DELETED:
            self.deleted += 1
        elif disposition.status == EventDisposition.SKIPPED:
            self.add_skips(disposition.reason or 'unknown', 1)
        else:
            self.errors += 1
            self.error_messages.append(f"{event.title}: {disposition.message}")

        if len(self.sample_events) < sample_limit:
            self.sample_events.append({
                'title': event.title,
                'date': event.start_time.strftime('%Y-%m-%d'),
                'disposition': disposition.label()
            })

    def add_skips(self, reason: str, count: int) -> None:
        self.skipped += count
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + count

    def add_error(self, message: str) -> None:
        self.errors += 1
        self.error_messages.append(message)


@dataclass
class RunResult:
    """Aggregate of all calendar results for one run."""
    started_at: datetime
    dry_run: bool
    finished_at: Optional[datetime] = None
    processed: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0
    skip_reasons: Dict[str, int] = field(default_factory=dict)
    calendar_results: List[CalendarResult] = field(default_factory=list)
    backup_id: Optional[str] = None
    error_log: List[str] = field(default_factory=list)
    aborted_reason: Optional[str] = None

    def add_calendar_result(self, result: CalendarResult) -> None:
        self.calendar_results.append(result)
        self.processed += result.processed
        self.deleted += result.deleted
        self.skipped += result.skipped
        self.errors += result.errors
        for reason, count in result.skip_reasons.items():
            self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + count

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
