"""Shared fixtures and fakes for the cleanup tests."""
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from processor.models import CalendarHandle, EventView

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_event(
    title='Team sync',
    days_ago=400,
    all_day=False,
    attendees=0,
    recurring=False,
    delete=None
):
    """Create an EventView with a Mock deletion capability."""
    start = NOW - timedelta(days=days_ago)
    emails = tuple(f"guest{i}@example.com" for i in range(attendees))
    return EventView(
        title=title,
        start_time=start,
        end_time=start + timedelta(hours=1),
        is_all_day=all_day,
        attendee_count=attendees,
        is_recurring=recurring,
        delete=delete or Mock(),
        attendee_emails=emails
    )


class FakeProvider:
    """In-memory calendar provider that records every call."""

    def __init__(self, events_by_calendar=None, fail_listing=False):
        self.events_by_calendar = events_by_calendar or {}
        self.fail_listing = fail_listing
        self.list_calls = 0
        self.event_calls = []

    def list_calendars(self):
        self.list_calls += 1
        if self.fail_listing:
            raise RuntimeError('calendar service unavailable')
        return [
            CalendarHandle(calendar_id=f"id-{name}", name=name)
            for name in self.events_by_calendar
        ]

    def get_events(self, calendar, start, end):
        self.event_calls.append((calendar.name, start, end))
        events = self.events_by_calendar[calendar.name]
        if isinstance(events, Exception):
            raise events
        return list(events)

    @property
    def was_called(self):
        return self.list_calls > 0 or bool(self.event_calls)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so moto never reaches real AWS."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
