"""Unit tests for GoogleCalendarProvider."""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import responses

from processor.errors import DeletionError, ProviderAccessError
from processor.models import CalendarHandle
from provider.google_calendar import GoogleCalendarProvider

BASE = "https://www.googleapis.com/calendar/v3"
CALENDAR = CalendarHandle(calendar_id='primary', name='Me')
START = datetime(1970, 1, 1, tzinfo=timezone.utc)
CUTOFF = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def provider():
    return GoogleCalendarProvider(access_token='token-123', timeout=5)


class TestListCalendars:
    """Test cases for calendar enumeration."""

    @responses.activate
    def test_list_calendars_paginated(self, provider):
        """Test every page of the calendar list is read."""
        responses.add(
            responses.GET,
            f"{BASE}/users/me/calendarList",
            json={
                'items': [{'id': 'primary', 'summary': 'Me'}],
                'nextPageToken': 'page-2'
            },
            status=200
        )
        responses.add(
            responses.GET,
            f"{BASE}/users/me/calendarList",
            json={'items': [{'id': 'team-cal'}]},
            status=200
        )

        calendars = provider.list_calendars()

        assert calendars == [
            CalendarHandle(calendar_id='primary', name='Me'),
            CalendarHandle(calendar_id='team-cal', name='team-cal'),
        ]
        assert 'pageToken=page-2' in responses.calls[1].request.url
        assert responses.calls[0].request.headers['Authorization'] == 'Bearer token-123'

    @responses.activate
    @patch('provider.google_calendar.time.sleep')
    def test_list_calendars_retries_then_fails(self, mock_sleep, provider):
        """Test ProviderAccessError after all retries fail."""
        for _ in range(3):
            responses.add(
                responses.GET,
                f"{BASE}/users/me/calendarList",
                body="Server Error",
                status=500
            )

        with pytest.raises(ProviderAccessError):
            provider.list_calendars()

        assert len(responses.calls) == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]


class TestGetEvents:
    """Test cases for event listing."""

    @responses.activate
    def test_get_events_projects_items(self, provider):
        """Test API items are turned into EventView objects."""
        responses.add(
            responses.GET,
            f"{BASE}/calendars/primary/events",
            json={'items': [
                {
                    'id': 'evt-1',
                    'summary': 'Planning',
                    'start': {'dateTime': '2023-05-01T10:00:00Z'},
                    'end': {'dateTime': '2023-05-01T11:00:00Z'},
                    'attendees': [{'email': 'a@example.com'}, {'email': 'b@example.com'}],
                    'recurringEventId': 'series-1'
                },
                {
                    'id': 'evt-2',
                    'start': {'date': '2023-06-01'},
                    'end': {'date': '2023-06-02'}
                },
                {'id': 'evt-3', 'status': 'cancelled'},
                {'id': 'evt-4', 'summary': 'No times'},
            ]},
            status=200
        )

        events = provider.get_events(CALENDAR, START, CUTOFF)

        assert len(events) == 2
        first, second = events
        assert first.title == 'Planning'
        assert first.start_time == datetime(2023, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert first.is_all_day is False
        assert first.attendee_count == 2
        assert first.attendee_emails == ('a@example.com', 'b@example.com')
        assert first.is_recurring is True
        assert second.title == ''
        assert second.is_all_day is True
        assert second.is_recurring is False

        query = responses.calls[0].request.url
        assert 'singleEvents=true' in query
        assert 'orderBy=startTime' in query
        assert 'timeMax=2024-01-01' in query

    @responses.activate
    def test_event_delete_capability(self, provider):
        """Test the EventView delete callable issues a DELETE request."""
        responses.add(
            responses.GET,
            f"{BASE}/calendars/primary/events",
            json={'items': [{
                'id': 'evt-1',
                'summary': 'Planning',
                'start': {'dateTime': '2023-05-01T10:00:00Z'},
                'end': {'dateTime': '2023-05-01T11:00:00Z'}
            }]},
            status=200
        )
        responses.add(
            responses.DELETE,
            f"{BASE}/calendars/primary/events/evt-1",
            status=204
        )

        event = provider.get_events(CALENDAR, START, CUTOFF)[0]
        event.delete()

        assert responses.calls[1].request.method == 'DELETE'


class TestDeleteEvent:
    """Test cases for event deletion."""

    @responses.activate
    def test_forbidden_reports_action_not_allowed(self, provider):
        """Test a 403 is reported with the permission phrase."""
        responses.add(
            responses.DELETE,
            f"{BASE}/calendars/primary/events/evt-1",
            json={'error': {'code': 403, 'message': 'Forbidden'}},
            status=403
        )

        with pytest.raises(DeletionError, match='Action not allowed: Forbidden'):
            provider.delete_event('primary', 'evt-1')

    @responses.activate
    def test_other_http_errors(self, provider):
        """Test other failures carry the status code."""
        responses.add(
            responses.DELETE,
            f"{BASE}/calendars/primary/events/evt-1",
            json={'error': {'code': 410, 'message': 'Resource has been deleted'}},
            status=410
        )

        with pytest.raises(DeletionError, match='HTTP 410: Resource has been deleted'):
            provider.delete_event('primary', 'evt-1')
