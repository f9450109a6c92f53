"""Derived temporal fields of a raw calendar event."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from processor.models import CalendarEvent

TIMESTAMP_FORMAT = '%Y%m%dT%H%M%SZ'


class TemporalError(ValueError):
    """Raised when a start or end time cannot be derived."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class MissingPropertyError(TemporalError):
    def __init__(self, name: str):
        super().__init__(name, f"could not find {name} property")


class EmptyPropertyError(TemporalError):
    def __init__(self, name: str):
        super().__init__(name, f"{name} property is empty")


class TimestampFormatError(TemporalError):
    def __init__(self, name: str, value: str):
        self.value = value
        super().__init__(name, f"failed to parse {name} value '{value}'")


def parse_timestamp(value: str) -> datetime:
    """Parse a UTC ``YYYYMMDDTHHMMSSZ`` timestamp."""
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class EventView:
    """
    Read-only view over a CalendarEvent.

    Every accessor recomputes from the wrapped properties; the event is
    never modified.
    """

    def __init__(self, event: CalendarEvent):
        self.event = event

    def prop(self, name: str) -> Optional[str]:
        """Value of the first property called ``name``, if it has one."""
        for p in self.event.properties:
            if p.name == name:
                return p.value
        return None

    def has_prop(self, name: str) -> bool:
        return any(p.name == name for p in self.event.properties)

    @property
    def summary(self) -> Optional[str]:
        return self.prop('SUMMARY')

    @property
    def description(self) -> Optional[str]:
        return self.prop('DESCRIPTION')

    def _timestamp(self, name: str) -> datetime:
        if not self.has_prop(name):
            raise MissingPropertyError(name)
        value = self.prop(name)
        if value is None:
            raise EmptyPropertyError(name)
        try:
            return parse_timestamp(value)
        except ValueError as e:
            raise TimestampFormatError(name, value) from e

    def start(self) -> datetime:
        """
        Parse DTSTART.

        Raises:
            TemporalError: If DTSTART is missing, empty or malformed
        """
        return self._timestamp('DTSTART')

    def end(self) -> datetime:
        """
        Parse DTEND.

        Raises:
            TemporalError: If DTEND is missing, empty or malformed
        """
        return self._timestamp('DTEND')

    def duration(self) -> timedelta:
        return self.end() - self.start()
