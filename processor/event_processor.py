"""Event filter for classifying, excluding and totalling calendar events."""
import logging
from datetime import timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from processor.event import EventView, TemporalError
from processor.models import CalendarEvent, EventCollection, FilterResult, TableRow
from processor.trees import MatchTree, RemoveTree

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = '%Y-%m-%d %H:%M:%S'


class GroupStatistics:
    """Accumulated duration of retained events per group, for one run."""

    def __init__(self):
        self._totals: Dict[int, timedelta] = {}

    def add(self, group_id: int, duration: timedelta) -> None:
        self._totals[group_id] = self._totals.get(group_id, timedelta()) + duration

    def total(self, group_id: int) -> timedelta:
        return self._totals.get(group_id, timedelta())

    def hours(self) -> List[Tuple[int, int]]:
        """
        Totals in whole hours, truncated toward zero.

        Returns:
            (group_id, hours) pairs sorted by ascending group id
        """
        return [
            (group_id, int(total.total_seconds() / 3600))
            for group_id, total in sorted(self._totals.items())
        ]

    def __len__(self) -> int:
        return len(self._totals)


class EventFilter:
    """Filter for deciding which calendar events are kept."""

    def __init__(self, match_tree: MatchTree, remove_tree: RemoveTree):
        """
        Initialize the filter.

        Args:
            match_tree: Include rules by group
            remove_tree: Remove rules by group
        """
        self.match_tree = match_tree
        self.remove_tree = remove_tree

    def decide(self, event: CalendarEvent) -> Optional[int]:
        """
        Decide whether a single event is kept.

        Args:
            event: Raw event

        Returns:
            Group id of a kept event, or None if it is dropped
        """
        view = EventView(event)

        group_id = self.match_tree.classify(view)
        if group_id is None:
            logger.debug(f"Dropping unmatched event '{view.summary}'")
            return None

        if self.remove_tree.is_removed(group_id, view):
            logger.debug(f"Removing event '{view.summary}' from group {group_id}")
            return None

        return group_id

    def filter_events(
        self,
        events: Iterable[CalendarEvent],
        stats: Optional[GroupStatistics] = None
    ) -> List[CalendarEvent]:
        """
        Filter events, preserving their order.

        Args:
            events: Raw events of one collection
            stats: Duration totals to update, or None to skip durations

        Returns:
            Retained events
        """
        retained = []

        for event in events:
            group_id = self.decide(event)
            if group_id is None:
                continue

            retained.append(event)
            if stats is not None:
                self._account(group_id, event, stats)

        return retained

    def _account(
        self,
        group_id: int,
        event: CalendarEvent,
        stats: GroupStatistics
    ) -> None:
        view = EventView(event)
        try:
            stats.add(group_id, view.duration())
        except TemporalError as e:
            logger.warning(
                f"Failed to compute duration for event '{view.summary}': {e}"
            )

    def process_collections(
        self,
        collections: Iterable[EventCollection],
        stats: Optional[GroupStatistics] = None
    ) -> Iterator[FilterResult]:
        """
        Filter each collection in turn.

        A collection is fully filtered, and its durations added to
        ``stats``, before it is yielded.

        Args:
            collections: Parsed event collections
            stats: Duration totals to update, or None to skip durations

        Yields:
            FilterResult per collection
        """
        for collection in collections:
            retained = self.filter_events(collection.events, stats)
            dropped = len(collection.events) - len(retained)
            logger.info(
                f"Kept {len(retained)} events out of "
                f"{len(collection.events)} total events"
            )
            yield FilterResult(
                collection=collection,
                retained=retained,
                dropped=dropped
            )


def to_table_row(event: CalendarEvent) -> TableRow:
    """
    Project an event to tabular fields.

    Unparsable timestamps fall back to the raw property text, and the
    duration is left empty when it cannot be computed.

    Args:
        event: Retained event

    Returns:
        TableRow
    """
    view = EventView(event)

    def timestamp(accessor, name: str) -> str:
        try:
            return accessor().strftime(DISPLAY_FORMAT)
        except TemporalError:
            return view.prop(name) or ''

    try:
        minutes = str(int(view.duration().total_seconds() / 60))
    except TemporalError:
        minutes = ''

    return TableRow(
        start=timestamp(view.start, 'DTSTART'),
        end=timestamp(view.end, 'DTEND'),
        summary=view.summary or '',
        description=view.description or '',
        duration_minutes=minutes
    )
