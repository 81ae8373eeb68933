"""Rule chain deciding which old events are cleanup candidates."""
import logging
from typing import Iterable, List, Optional

from processor.models import Configuration, EventView

logger = logging.getLogger(__name__)


class EventFilter:
    """Applies the configured keep/drop rules to calendar events."""

    def __init__(self, config: Configuration):
        """
        Initialize the filter.

        Args:
            config: Run configuration supplying the filter toggles
        """
        self.config = config
        self.exclude_keywords = [k.lower() for k in config.exclude_keywords if k]
        self.include_keywords = [k.lower() for k in config.include_keywords if k]

    def filter(self, events: Iterable[EventView]) -> List[EventView]:
        """
        Keep the events that pass every rule, preserving their order.

        Args:
            events: Events fetched from a calendar

        Returns:
            List of events eligible for deletion
        """
        kept = []

        for event in events:
            reason = self.rejection_reason(event)
            if reason is None:
                kept.append(event)
            else:
                logger.debug(f"Filtered out event: {reason}")

        return kept

    def rejection_reason(self, event: EventView) -> Optional[str]:
        """
        Name the first rule that drops an event.

        Args:
            event: Event to check

        Returns:
            Rule name, or None if the event passes every rule
        """
        try:
            return self._check_rules(event)
        except Exception as e:
            logger.warning(f"Could not read event attributes, skipping it: {e}")
            return 'inaccessible'

    def _check_rules(self, event: EventView) -> Optional[str]:
        config = self.config

        if config.skip_all_day and event.is_all_day:
            return 'all_day'

        if config.skip_with_attendees and event.attendee_count > 0:
            return 'has_attendees'

        if not config.delete_recurring and event.is_recurring:
            return 'recurring'

        title = event.title or ''
        lowered = title.lower()

        if any(keyword in lowered for keyword in self.exclude_keywords):
            return 'excluded_keyword'

        if self.include_keywords and not any(
            keyword in lowered for keyword in self.include_keywords
        ):
            return 'missing_include_keyword'

        if len(title) < config.min_title_length:
            return 'title_too_short'

        return None
