"""Calendar provider backed by the Google Calendar REST API."""
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

import requests

from processor.errors import DeletionError, ProviderAccessError
from processor.models import CalendarHandle, EventView

logger = logging.getLogger(__name__)


class GoogleCalendarProvider:
    """Lists calendars and old events, and deletes events, for one account."""

    BASE_URL = "https://www.googleapis.com/calendar/v3"
    MAX_RETRIES = 3

    def __init__(self, access_token: str, timeout: int = 30):
        """
        Initialize the provider.

        Args:
            access_token: OAuth2 bearer token with calendar scope
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers['Authorization'] = f"Bearer {access_token}"

    def list_calendars(self) -> List[CalendarHandle]:
        """
        List every calendar visible to the account.

        Returns:
            List of CalendarHandle objects in API order

        Raises:
            ProviderAccessError: If the calendar list cannot be fetched
        """
        items = self._get_paginated(f"{self.BASE_URL}/users/me/calendarList", {})
        calendars = [
            CalendarHandle(calendar_id=item['id'], name=item.get('summary', item['id']))
            for item in items
        ]
        logger.info(f"Found {len(calendars)} calendars")
        return calendars

    def get_events(
        self,
        calendar: CalendarHandle,
        start: datetime,
        end: datetime
    ) -> List[EventView]:
        """
        Fetch single event instances starting within [start, end).

        Args:
            calendar: Calendar to read
            start: Lower bound of the window
            end: Upper bound of the window

        Returns:
            List of EventView objects ordered by start time

        Raises:
            ProviderAccessError: If the events cannot be fetched
        """
        params = {
            'timeMin': start.isoformat(),
            'timeMax': end.isoformat(),
            'singleEvents': 'true',
            'orderBy': 'startTime',
        }
        url = f"{self.BASE_URL}/calendars/{quote(calendar.calendar_id, safe='')}/events"
        items = self._get_paginated(url, params)

        events = []
        for item in items:
            if item.get('status') == 'cancelled':
                continue
            event = self._to_event_view(calendar, item)
            if event:
                events.append(event)

        return events

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        """
        Delete a single event.

        Raises:
            DeletionError: If the API refuses or fails the deletion. A 403
                response is reported as "Action not allowed".
        """
        url = (
            f"{self.BASE_URL}/calendars/{quote(calendar_id, safe='')}"
            f"/events/{quote(event_id, safe='')}"
        )
        try:
            response = self.session.delete(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise DeletionError(f"Delete request failed: {e}") from e

        if response.status_code == 403:
            raise DeletionError(f"Action not allowed: {self._error_message(response)}")
        if response.status_code >= 400:
            raise DeletionError(
                f"HTTP {response.status_code}: {self._error_message(response)}"
            )

    def _get_paginated(self, url: str, params: dict) -> List[dict]:
        items = []
        page_token = None

        while True:
            page_params = dict(params)
            if page_token:
                page_params['pageToken'] = page_token

            data = self._get_json(url, page_params)
            items.extend(data.get('items', []))

            page_token = data.get('nextPageToken')
            if not page_token:
                return items

    def _get_json(self, url: str, params: dict) -> dict:
        """
        GET a JSON document with retry logic.

        Raises:
            ProviderAccessError: If all retry attempts fail
        """
        base_delay = 1  # seconds

        for attempt in range(self.MAX_RETRIES):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise ProviderAccessError(str(e)) from e

    def _to_event_view(self, calendar: CalendarHandle, item: dict) -> Optional[EventView]:
        try:
            start_info = item['start']
            end_info = item.get('end', start_info)
            is_all_day = 'date' in start_info and 'dateTime' not in start_info
            attendees = tuple(
                a['email'] for a in item.get('attendees', []) if a.get('email')
            )
            event_id = item['id']
            start_time = self._parse_time(start_info)
            end_time = self._parse_time(end_info)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed event in '{calendar.name}': {e}")
            return None

        return EventView(
            title=item.get('summary', ''),
            start_time=start_time,
            end_time=end_time,
            is_all_day=is_all_day,
            attendee_count=len(attendees),
            is_recurring='recurringEventId' in item,
            delete=lambda: self.delete_event(calendar.calendar_id, event_id),
            attendee_emails=attendees,
        )

    def _parse_time(self, info: dict) -> datetime:
        if 'dateTime' in info:
            return datetime.fromisoformat(info['dateTime'].replace('Z', '+00:00'))
        return datetime.strptime(info['date'], '%Y-%m-%d').replace(tzinfo=timezone.utc)

    def _error_message(self, response: requests.Response) -> str:
        try:
            return response.json()['error']['message']
        except (ValueError, KeyError, TypeError):
            return response.text or response.reason or 'unknown error'
