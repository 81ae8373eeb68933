"""Per-event deletion with permission failure classification."""
import logging
from typing import Iterable, Sequence

from processor.models import EventDisposition, EventView

logger = logging.getLogger(__name__)

DEFAULT_PERMISSION_PHRASES = ('action not allowed',)


def is_permission_denied(message: str, phrases: Iterable[str]) -> bool:
    """
    Decide whether a deletion failure message is an authorization refusal.

    Args:
        message: Failure message reported by the calendar provider
        phrases: Known refusal phrases, matched case-insensitively

    Returns:
        True if any phrase occurs in the message
    """
    lowered = (message or '').lower()
    return any(phrase.lower() in lowered for phrase in phrases if phrase)


class EventDispositioner:
    """Deletes (or simulates deleting) a single event."""

    def __init__(self, permission_phrases: Sequence[str] = DEFAULT_PERMISSION_PHRASES):
        self.permission_phrases = tuple(permission_phrases)

    def dispose(self, event: EventView, dry_run: bool) -> EventDisposition:
        """
        Process one filtered event.

        Never raises; every outcome is returned as an EventDisposition.

        Args:
            event: Event to delete
            dry_run: When True, report the event as deleted without touching it

        Returns:
            EventDisposition describing the outcome
        """
        if dry_run:
            logger.debug(f"[dry run] Would delete '{event.title}'")
            return EventDisposition.deleted()

        try:
            event.delete()
        except Exception as e:
            message = str(e)
            if is_permission_denied(message, self.permission_phrases):
                logger.info(f"No permission to delete '{event.title}': {message}")
                return EventDisposition.skipped('permission_denied')

            logger.warning(f"Failed to delete '{event.title}': {message}")
            return EventDisposition.error(message)

        logger.debug(f"Deleted '{event.title}'")
        return EventDisposition.deleted()
