"""Shared fixtures for icalfilter tests."""
import pytest

from processor.models import CalendarEvent, Property


SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//icalfilter//tests//EN
BEGIN:VEVENT
UID:standup@example.com
DTSTART:20240301T090000Z
DTEND:20240301T110000Z
SUMMARY:Standup
DESCRIPTION:Daily sync
END:VEVENT
BEGIN:VEVENT
UID:release@example.com
DTSTART:20240302T140000Z
DTEND:20240302T150000Z
SUMMARY:Release
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def make_event():
    """Build a CalendarEvent from (name, value) pairs."""
    def _make(*pairs):
        return CalendarEvent(
            properties=[Property(name=name, value=value) for name, value in pairs]
        )
    return _make


@pytest.fixture
def sample_ics():
    return SAMPLE_ICS
