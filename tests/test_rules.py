"""Unit tests for rule parsing."""
from datetime import date

import pytest

from processor.models import RemoveMode
from processor.rules import (
    InvalidDateError,
    InvalidGroupIdError,
    InvalidPatternError,
    MissingSeparatorError,
    RuleParseError,
    parse_match_rule,
    parse_remove_rule,
)


class TestParseMatchRule:
    """Test cases for include rule parsing."""

    def test_rule_with_group(self):
        """Test that a leading group id is parsed."""
        rule = parse_match_rule("3,SUMMARY=Stand.*")

        assert rule.group_id == 3
        assert rule.property == "SUMMARY"
        assert rule.pattern.pattern == "Stand.*"

    def test_rule_without_group_defaults_to_zero(self):
        """Test that the group id defaults to 0."""
        rule = parse_match_rule("LOCATION=Room 1")

        assert rule.group_id == 0
        assert rule.property == "LOCATION"
        assert rule.pattern.search("Room 12")

    def test_negative_group(self):
        """Test that signed group ids are accepted."""
        assert parse_match_rule("-4,SUMMARY=x").group_id == -4

    def test_comma_in_pattern_without_group(self):
        """Test that a comma after the equal sign belongs to the pattern."""
        rule = parse_match_rule("SUMMARY=a,b")

        assert rule.group_id == 0
        assert rule.pattern.pattern == "a,b"

    def test_equal_sign_in_pattern(self):
        """Test that only the first equal sign separates property and pattern."""
        rule = parse_match_rule("1,DESCRIPTION=x=y")

        assert rule.property == "DESCRIPTION"
        assert rule.pattern.pattern == "x=y"

    def test_missing_separator(self):
        """Test that a rule without '=' is rejected."""
        with pytest.raises(MissingSeparatorError) as exc_info:
            parse_match_rule("SUMMARY")

        assert exc_info.value.rule == "SUMMARY"
        assert "missing equal sign" in str(exc_info.value)

    def test_missing_separator_with_group(self):
        """Test that a grouped rule without '=' is rejected."""
        with pytest.raises(MissingSeparatorError):
            parse_match_rule("1,SUMMARY")

    @pytest.mark.parametrize("text", ["x,SUMMARY=a", "1.5,SUMMARY=a", ",SUMMARY=a", " 1,SUMMARY=a"])
    def test_invalid_group_id(self, text):
        """Test that non-integer group ids are rejected."""
        with pytest.raises(InvalidGroupIdError):
            parse_match_rule(text)

    def test_invalid_regex(self):
        """Test that an uncompilable pattern is rejected."""
        with pytest.raises(InvalidPatternError):
            parse_match_rule("SUMMARY=(unclosed")

    def test_errors_are_value_errors(self):
        """Test that parse errors share a common base."""
        with pytest.raises(ValueError):
            parse_match_rule("SUMMARY")
        assert issubclass(InvalidPatternError, RuleParseError)


class TestParseRemoveRule:
    """Test cases for remove rule parsing."""

    def test_group_only(self):
        """Test that a bare group id removes unconditionally."""
        rule = parse_remove_rule("2")

        assert rule.group_id == 2
        assert rule.mode is RemoveMode.ALWAYS
        assert rule.start_date is None
        assert rule.end_date is None

    def test_single_day(self):
        """Test that one date makes a single-day rule."""
        rule = parse_remove_rule("2,2024-03-01")

        assert rule.mode is RemoveMode.SINGLE_DAY
        assert rule.start_date == date(2024, 3, 1)

    def test_range(self):
        """Test that two dates make an inclusive range."""
        rule = parse_remove_rule("2,2024-03-01,2024-03-10")

        assert rule.mode is RemoveMode.RANGE
        assert rule.start_date == date(2024, 3, 1)
        assert rule.end_date == date(2024, 3, 10)

    def test_open_start(self):
        """Test that an empty start date leaves the range open."""
        rule = parse_remove_rule("2,,2024-03-10")

        assert rule.mode is RemoveMode.RANGE
        assert rule.start_date is None
        assert rule.end_date == date(2024, 3, 10)

    def test_open_end(self):
        """Test that an empty end date leaves the range open."""
        rule = parse_remove_rule("2,2024-03-01,")

        assert rule.mode is RemoveMode.RANGE
        assert rule.start_date == date(2024, 3, 1)
        assert rule.end_date is None

    def test_wildcard_group(self):
        """Test that the wildcard group parses like any other id."""
        assert parse_remove_rule("-1,2024-03-01").group_id == -1

    @pytest.mark.parametrize("text", ["", "a", "1,2024-03-01,2024-03-10,x"])
    def test_invalid_group_or_trailing_fields(self, text):
        """Test that a bad group id, or extra fields folded into the end date, are rejected."""
        with pytest.raises(RuleParseError):
            parse_remove_rule(text)

    @pytest.mark.parametrize("text", ["1,", "1,2024-13-01", "1,03/01/2024", "1,2024-03-01,tomorrow"])
    def test_invalid_dates(self, text):
        """Test that malformed dates are rejected."""
        with pytest.raises(InvalidDateError):
            parse_remove_rule(text)
