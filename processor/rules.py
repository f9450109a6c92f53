"""Parsing of include and remove rules given on the command line."""
import re
from datetime import date, datetime

from processor.models import MatchRule, RemoveMode, RemoveRule

DATE_FORMAT = '%Y-%m-%d'
WILDCARD_GROUP = -1

_GROUP_ID_RE = re.compile(r'[+-]?[0-9]+')


class RuleParseError(ValueError):
    """Base class for rule parsing failures."""

    reason = 'invalid rule'

    def __init__(self, rule: str, detail: str = ''):
        self.rule = rule
        self.detail = detail
        message = f"{self.reason} in rule '{rule}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MissingSeparatorError(RuleParseError):
    reason = 'missing equal sign'


class InvalidGroupIdError(RuleParseError):
    reason = 'failed to parse group id'


class InvalidDateError(RuleParseError):
    reason = 'failed to parse date'


class InvalidPatternError(RuleParseError):
    reason = 'failed to parse regex'


def _parse_group_id(text: str, rule: str) -> int:
    if not _GROUP_ID_RE.fullmatch(text):
        raise InvalidGroupIdError(rule, repr(text))
    return int(text)


def _parse_date(text: str, rule: str) -> date:
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateError(rule, str(e)) from e


def parse_match_rule(text: str) -> MatchRule:
    """
    Parse an include rule of the form ``[group_id,]property=pattern``.

    A comma only separates the group id when it comes before the first
    equal sign, so patterns may contain commas.

    Args:
        text: Rule text

    Returns:
        MatchRule with the compiled pattern

    Raises:
        RuleParseError: If the text does not follow the grammar
    """
    eq = text.find('=')
    if eq < 0:
        raise MissingSeparatorError(text)

    group_id = 0
    body = text
    comma = text.find(',', 0, eq)
    if comma >= 0:
        group_id = _parse_group_id(text[:comma], text)
        body = text[comma + 1:]

    prop, pattern = body.split('=', 1)
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(text, str(e)) from e

    return MatchRule(property=prop, pattern=compiled, group_id=group_id)


def parse_remove_rule(text: str) -> RemoveRule:
    """
    Parse a remove rule of the form ``group_id[,start_date[,end_date]]``.

    One field removes the whole group, two fields a single day, three
    fields an inclusive range where an empty bound is open.

    Args:
        text: Rule text

    Returns:
        RemoveRule

    Raises:
        RuleParseError: If the group id or a date is invalid
    """
    fields = text.split(',', 2)
    group_id = _parse_group_id(fields[0], text)

    if len(fields) == 1:
        return RemoveRule(group_id=group_id, mode=RemoveMode.ALWAYS)

    if len(fields) == 2:
        return RemoveRule(
            group_id=group_id,
            mode=RemoveMode.SINGLE_DAY,
            start_date=_parse_date(fields[1], text),
        )

    start, end = fields[1], fields[2]
    return RemoveRule(
        group_id=group_id,
        mode=RemoveMode.RANGE,
        start_date=_parse_date(start, text) if start else None,
        end_date=_parse_date(end, text) if end else None,
    )
