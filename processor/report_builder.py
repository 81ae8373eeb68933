"""Run summaries and email report rendering."""
from typing import List

from processor.models import RunResult


def success_rate(deleted: int, processed: int) -> float:
    """Percentage of processed events that were deleted (0 when none)."""
    if processed <= 0:
        return 0.0
    return round(deleted / processed * 100, 1)


class ReportBuilder:
    """Renders a RunResult as a summary dict and a plain-text email."""

    def summarize(self, result: RunResult) -> dict:
        """
        Build a structured summary of a run.

        Args:
            result: Completed (or partial) run result

        Returns:
            Summary dictionary suitable for JSON serialization
        """
        return {
            'mode': self._mode(result),
            'started_at': result.started_at.isoformat(),
            'finished_at': result.finished_at.isoformat() if result.finished_at else None,
            'duration_seconds': round(result.duration_seconds, 2),
            'totals': {
                'processed': result.processed,
                'deleted': result.deleted,
                'skipped': result.skipped,
                'errors': result.errors,
            },
            'success_rate': success_rate(result.deleted, result.processed),
            'skip_reasons': dict(result.skip_reasons),
            'calendars': [
                {
                    'name': calendar.calendar_name,
                    'processed': calendar.processed,
                    'deleted': calendar.deleted,
                    'skipped': calendar.skipped,
                    'errors': calendar.errors,
                    'skip_reasons': dict(calendar.skip_reasons),
                    'sample_events': list(calendar.sample_events),
                    'error_messages': list(calendar.error_messages),
                }
                for calendar in result.calendar_results
            ],
            'recommendations': self.recommendations(result),
            'backup_id': result.backup_id,
            'aborted_reason': result.aborted_reason,
            'errors': list(result.error_log),
        }

    def recommendations(self, result: RunResult) -> List[str]:
        """Suggestions driven by the aggregate counts and run mode."""
        tips = []

        if result.dry_run:
            tips.append(
                "Review the events listed above, then set DRY_RUN=false "
                "to delete them."
            )
        elif result.deleted > 0:
            tips.append(
                "Schedule this cleanup to run periodically to keep "
                "calendars tidy."
            )

        if result.skipped > 0:
            tips.append(
                "Some events were skipped; review the filter and calendar "
                "settings if that was not expected."
            )

        if result.errors > 0 or result.error_log:
            tips.append("Errors occurred; check the logs for details.")

        return tips

    def email_subject(self, result: RunResult) -> str:
        return (
            f"Calendar cleanup report ({self._mode(result)}): "
            f"{result.deleted} deleted"
        )

    def render_email_body(self, result: RunResult) -> str:
        """
        Render a plain-text report for email delivery.

        Args:
            result: Completed (or partial) run result

        Returns:
            Email body text
        """
        lines = [
            "Calendar Cleanup Report",
            "=" * 40,
            f"Mode: {self._mode(result)}",
            f"Started: {result.started_at.strftime('%Y-%m-%d %H:%M:%S %Z')}",
            f"Duration: {result.duration_seconds:.1f} seconds",
            "",
            "Totals",
            f"  Processed: {result.processed}",
            f"  Deleted: {result.deleted}",
            f"  Skipped: {result.skipped}",
            f"  Errors: {result.errors}",
            f"  Success rate: {success_rate(result.deleted, result.processed)}%",
        ]

        if result.aborted_reason == 'no_calendars':
            lines += ["", "No calendars matched the configuration."]

        if result.skip_reasons:
            lines += ["", "Skip reasons"]
            for reason, count in sorted(result.skip_reasons.items()):
                lines.append(f"  {reason}: {count}")

        for calendar in result.calendar_results:
            lines += [
                "",
                f"Calendar: {calendar.calendar_name}",
                f"  Processed {calendar.processed}, deleted {calendar.deleted}, "
                f"skipped {calendar.skipped}, errors {calendar.errors}",
            ]
            for sample in calendar.sample_events:
                lines.append(
                    f"  - {sample['date']} {sample['title']} [{sample['disposition']}]"
                )
            for message in calendar.error_messages:
                lines.append(f"  ! {message}")

        if result.backup_id:
            lines += ["", f"Backup: {result.backup_id}"]

        if result.error_log:
            lines += ["", "Run errors"]
            lines += [f"  {message}" for message in result.error_log]

        tips = self.recommendations(result)
        if tips:
            lines += ["", "Recommendations"]
            lines += [f"  * {tip}" for tip in tips]

        return "\n".join(lines) + "\n"

    def _mode(self, result: RunResult) -> str:
        return 'DRY RUN' if result.dry_run else 'LIVE'
