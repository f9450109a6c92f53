"""Group classification and date-window exclusion."""
import logging
import re
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from processor.event import EventView, TemporalError
from processor.models import MatchRule, RemoveMode, RemoveRule
from processor.rules import WILDCARD_GROUP

logger = logging.getLogger(__name__)


class MatchGroup:
    """Property patterns that must all match for an event to join a group."""

    def __init__(self, patterns: Optional[Dict[str, re.Pattern]] = None):
        self._patterns = dict(patterns or {})

    @property
    def patterns(self) -> Mapping[str, re.Pattern]:
        return MappingProxyType(self._patterns)

    def is_match(self, view: EventView) -> bool:
        # An empty group matches every event.
        return all(
            self._property_matches(view, name, pattern)
            for name, pattern in self._patterns.items()
        )

    @staticmethod
    def _property_matches(view: EventView, name: str, pattern: re.Pattern) -> bool:
        return any(
            p.name == name and p.value is not None and pattern.search(p.value)
            for p in view.event.properties
        )


class MatchTree:
    """
    Include rules grouped by group id.

    Groups are tried in ascending id order, so when an event satisfies
    several groups the lowest id wins.
    """

    def __init__(self, groups: Optional[Dict[int, MatchGroup]] = None):
        self._groups: Tuple[Tuple[int, MatchGroup], ...] = tuple(
            sorted((groups or {}).items())
        )

    @classmethod
    def from_rules(cls, rules: Iterable[MatchRule]) -> 'MatchTree':
        """Build a tree; a later rule for the same group and property wins."""
        patterns: Dict[int, Dict[str, re.Pattern]] = {}
        for rule in rules:
            patterns.setdefault(rule.group_id, {})[rule.property] = rule.pattern
        return cls({gid: MatchGroup(p) for gid, p in patterns.items()})

    @property
    def group_ids(self) -> List[int]:
        return [gid for gid, _ in self._groups]

    def group(self, group_id: int) -> Optional[MatchGroup]:
        for gid, group in self._groups:
            if gid == group_id:
                return group
        return None

    def classify(self, view: EventView) -> Optional[int]:
        """
        Find the group an event belongs to.

        Args:
            view: Event to classify

        Returns:
            Group id, or None if no group matches
        """
        for gid, group in self._groups:
            if group.is_match(view):
                return gid
        return None


def remove_rule_matches(rule: RemoveRule, view: EventView) -> bool:
    """
    Check whether an event's start date falls in a remove rule's window.

    An event whose start date cannot be derived never matches a dated
    rule; a warning is logged instead.
    """
    if rule.mode is RemoveMode.ALWAYS:
        return True

    try:
        day = view.start().date()
    except TemporalError as e:
        logger.warning(
            f"Remove rule for group {rule.group_id} skipped for event "
            f"'{view.summary}': {e}"
        )
        return False

    if rule.mode is RemoveMode.SINGLE_DAY:
        return rule.start_date is not None and rule.start_date == day

    return _in_window(day, rule.start_date, rule.end_date)


def _in_window(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


class RemoveTree:
    """Remove rules grouped by group id; group -1 applies to every group."""

    def __init__(self, rules: Optional[Dict[int, List[RemoveRule]]] = None):
        self._rules: Dict[int, Tuple[RemoveRule, ...]] = {
            gid: tuple(group_rules) for gid, group_rules in (rules or {}).items()
        }

    @classmethod
    def from_rules(cls, rules: Iterable[RemoveRule]) -> 'RemoveTree':
        grouped: Dict[int, List[RemoveRule]] = {}
        for rule in rules:
            grouped.setdefault(rule.group_id, []).append(rule)
        return cls(grouped)

    def rules_for(self, group_id: int) -> Tuple[RemoveRule, ...]:
        return self._rules.get(group_id, ())

    def excludes(self, group_id: int, view: EventView) -> Optional[bool]:
        """
        Evaluate the rules of one group against an event.

        Args:
            group_id: Group whose rules are evaluated
            view: Event to check

        Returns:
            True if any rule matches, False if none does, None if the
            group has no rules
        """
        rules = self._rules.get(group_id)
        if rules is None:
            return None
        return any(remove_rule_matches(rule, view) for rule in rules)

    def is_removed(self, group_id: int, view: EventView) -> bool:
        """True if the group's own rules or the wildcard rules exclude the event."""
        return (
            self.excludes(group_id, view) is True
            or self.excludes(WILDCARD_GROUP, view) is True
        )
