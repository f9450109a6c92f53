"""Calendar reader for iCalendar files, standard input and URLs."""
import logging
import sys
import time
from typing import List, Optional

import requests
from icalendar import Calendar

from processor.models import CalendarEvent, EventCollection, Property

logger = logging.getLogger(__name__)


class CalendarReadError(Exception):
    """Raised when input cannot be parsed as iCalendar data."""


def _value_text(value) -> str:
    # Text values are already unescaped strings.
    if isinstance(value, str):
        return str(value)
    to_ical = getattr(value, 'to_ical', None)
    if to_ical is None:
        return str(value)
    raw = to_ical()
    return raw.decode('utf-8') if isinstance(raw, bytes) else str(raw)


def component_to_event(component) -> CalendarEvent:
    """
    Flatten an icalendar VEVENT into ordered properties.

    Args:
        component: icalendar Event component

    Returns:
        CalendarEvent referencing the original component
    """
    properties = []
    for name, value in component.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            properties.append(Property(name=name, value=_value_text(item)))
    return CalendarEvent(properties=properties, component=component)


class CalendarReader:
    """Reader turning iCalendar text into event collections."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, timeout: int = 30):
        """
        Initialize the reader.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def read(self, source: Optional[str] = None) -> List[EventCollection]:
        """
        Read calendars from a path, a URL, or standard input.

        Args:
            source: File path or http(s) URL; None or '-' for stdin

        Returns:
            One EventCollection per VCALENDAR

        Raises:
            CalendarReadError: If the data is not valid iCalendar
            requests.RequestException: If all fetch attempts fail
            OSError: If the file cannot be read
        """
        if source is None or source == '-':
            logger.info("Reading calendar from standard input")
            content = sys.stdin.buffer.read()
        elif source.startswith(('http://', 'https://')):
            content = self._fetch(source)
        else:
            logger.info(f"Reading calendar from {source}")
            with open(source, 'rb') as f:
                content = f.read()

        return self.parse(content)

    def _fetch(self, url: str) -> bytes:
        """
        Fetch calendar data with retry logic.

        Args:
            url: Calendar URL

        Returns:
            Response body

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(
                    f"Fetching calendar {url} "
                    f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.content

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): "
                        f"{e}. Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise

    def parse(self, content: bytes) -> List[EventCollection]:
        """
        Parse iCalendar data into event collections.

        Args:
            content: Raw iCalendar data

        Returns:
            One EventCollection per VCALENDAR, events in source order

        Raises:
            CalendarReadError: If the data cannot be parsed
        """
        if not content.strip():
            return []

        try:
            components = Calendar.from_ical(content, multiple=True)
        except ValueError as e:
            raise CalendarReadError(f"failed to parse calendar: {e}") from e

        collections = []
        for calendar in components:
            if calendar.name != 'VCALENDAR':
                logger.warning(f"Skipping top-level {calendar.name} component")
                continue
            events = [
                component_to_event(component)
                for component in calendar.subcomponents
                if component.name == 'VEVENT'
            ]
            collections.append(EventCollection(events=events, calendar=calendar))

        logger.info(f"Read {len(collections)} calendars")
        return collections
