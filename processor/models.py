"""Data models for event filtering."""
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, List, Optional


@dataclass(frozen=True)
class Property:
    """A single calendar property as read from the source."""
    name: str
    value: Optional[str]


@dataclass
class CalendarEvent:
    """Raw event: ordered properties, names not necessarily unique."""
    properties: List[Property]
    component: Any = None


@dataclass
class EventCollection:
    """Events parsed from one calendar object."""
    events: List[CalendarEvent]
    calendar: Any = None


@dataclass(frozen=True)
class MatchRule:
    """Include events whose property matches a pattern."""
    property: str
    pattern: re.Pattern
    group_id: int = 0


class RemoveMode(Enum):
    """How a remove rule compares an event's start date."""
    ALWAYS = 'always'
    SINGLE_DAY = 'single-day'
    RANGE = 'range'


@dataclass(frozen=True)
class RemoveRule:
    """Remove events of a group whose start date falls in a window."""
    group_id: int
    mode: RemoveMode
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class TableRow:
    """Fields projected from a retained event for tabular output."""
    start: str
    end: str
    summary: str
    description: str
    duration_minutes: str

    def as_list(self) -> List[str]:
        return [
            self.start,
            self.end,
            self.summary,
            self.description,
            self.duration_minutes,
        ]


@dataclass
class FilterResult:
    """Outcome of filtering one event collection."""
    collection: EventCollection
    retained: List[CalendarEvent] = field(default_factory=list)
    dropped: int = 0
