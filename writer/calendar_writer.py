"""Calendar writer for iCalendar pass-through and CSV output."""
import csv
import logging
from enum import Enum
from typing import List, TextIO, Tuple

from icalendar import Calendar

from processor.event_processor import to_table_row
from processor.models import FilterResult

logger = logging.getLogger(__name__)

CSV_HEADER = ['start', 'end', 'summary', 'description', 'duration_minutes']


class OutputFormat(Enum):
    """Output rendering, chosen once per run."""
    ICS = 'ics'
    CSV = 'csv'


def retained_calendar(result: FilterResult) -> Calendar:
    """
    Copy a calendar keeping only its retained events.

    Non-event components and calendar properties are carried over
    unchanged; the source calendar is left untouched.

    Args:
        result: Filtered collection

    Returns:
        New Calendar
    """
    source = result.collection.calendar
    keep = {id(event.component) for event in result.retained}

    calendar = Calendar()
    calendar.update(source)
    calendar.subcomponents = [
        component for component in source.subcomponents
        if component.name != 'VEVENT' or id(component) in keep
    ]
    return calendar


class CalendarWriter:
    """Writer rendering filtered collections to a text stream."""

    def __init__(self, stream: TextIO, output_format: OutputFormat = OutputFormat.ICS):
        """
        Initialize the writer.

        Args:
            stream: Destination text stream
            output_format: ICS pass-through or CSV rows
        """
        self.stream = stream
        self.output_format = output_format
        self._csv = None

    def write(self, result: FilterResult) -> None:
        """Write one filtered collection."""
        if self.output_format is OutputFormat.CSV:
            self._write_csv(result)
        else:
            self._write_ics(result)

    def _write_ics(self, result: FilterResult) -> None:
        calendar = retained_calendar(result)
        self.stream.write(calendar.to_ical().decode('utf-8'))

    def _csv_writer(self):
        if self._csv is None:
            self._csv = csv.writer(self.stream)
            self._csv.writerow(CSV_HEADER)
        return self._csv

    def _write_csv(self, result: FilterResult) -> None:
        writer = self._csv_writer()
        for event in result.retained:
            writer.writerow(to_table_row(event).as_list())

    def finish(self) -> None:
        # A CSV with no collections still gets its header.
        if self.output_format is OutputFormat.CSV:
            self._csv_writer()
        self.stream.flush()


def write_statistics(stream: TextIO, hours: List[Tuple[int, int]]) -> None:
    """
    Write per-group duration totals, one line per group.

    Args:
        stream: Diagnostic stream, usually stderr
        hours: (group_id, hours) pairs in ascending group order
    """
    for group_id, total in hours:
        stream.write(f"group {group_id}: {total}h\n")
    logger.debug(f"Reported statistics for {len(hours)} groups")
