"""Tests for due-date parsing and roll-forward arithmetic."""

from datetime import date, datetime

import pytest

from recurctl.domain.dates import (
    FALLBACK_FORMATS,
    InvalidDateError,
    candidate_formats,
    next_due_date,
    parse_due_date,
)
from recurctl.domain.rules import DEFAULT_RULES, RecurrenceRule

RULES = {rule.key: rule for rule in DEFAULT_RULES}
ISO = "%Y-%m-%d"


class TestCandidateFormats:
    def test_configured_format_first(self) -> None:
        formats = candidate_formats("%d.%m.%Y")
        assert formats[0] == "%d.%m.%Y"
        assert formats[1:] == list(FALLBACK_FORMATS)

    def test_no_duplicates(self) -> None:
        formats = candidate_formats(ISO)
        assert formats.count(ISO) == 1


class TestParseDueDate:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024-03-01", datetime(2024, 3, 1)),
            ("2024/03/01", datetime(2024, 3, 1)),
            ("15-03-2024", datetime(2024, 3, 15)),
            ("15/03/2024", datetime(2024, 3, 15)),
            ("2024-03-01 14:30", datetime(2024, 3, 1, 14, 30)),
            ("2024-03-01T08:00:00", datetime(2024, 3, 1, 8, 0)),
        ],
    )
    def test_fallback_formats(self, raw: str, expected: datetime) -> None:
        assert parse_due_date(raw, ISO) == expected

    def test_day_first_wins_over_month_first(self) -> None:
        assert parse_due_date("01/03/2024", ISO) == datetime(2024, 3, 1)

    def test_configured_format(self) -> None:
        assert parse_due_date("01.03.2024", "%d.%m.%Y") == datetime(2024, 3, 1)

    def test_permissive_last_resort(self) -> None:
        assert parse_due_date("March 1, 2024", ISO) == datetime(2024, 3, 1)

    def test_yaml_dates_pass_through(self) -> None:
        assert parse_due_date(date(2024, 3, 1)) == datetime(2024, 3, 1)
        stamp = datetime(2024, 3, 1, 12, 0)
        assert parse_due_date(stamp) is stamp

    @pytest.mark.parametrize("raw", ["someday", "2024-02-30", "", "   "])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidDateError):
            parse_due_date(raw, ISO)


class TestNextDueDate:
    @pytest.mark.parametrize(
        ("due", "key", "expected"),
        [
            ("2024-03-01", "daily", "2024-03-02"),
            ("2024-03-01", "weekly", "2024-03-08"),
            ("2024-03-01", "biweekly", "2024-03-15"),
            ("2024-03-01", "monthly", "2024-04-01"),
            ("2024-03-01", "yearly", "2025-03-01"),
            ("2024-12-31", "daily", "2025-01-01"),
        ],
    )
    def test_default_rules(self, due: str, key: str, expected: str) -> None:
        assert next_due_date(due, RULES[key], ISO) == expected

    def test_month_end_clamps(self) -> None:
        # relativedelta clamps to the last day of the target month.
        assert next_due_date("2024-01-31", RULES["monthly"], ISO) == "2024-02-29"
        assert next_due_date("2023-01-31", RULES["monthly"], ISO) == "2023-02-28"
        assert next_due_date("2024-10-31", RULES["quarterly"], ISO) == "2025-02-28"

    def test_leap_day_plus_year(self) -> None:
        assert next_due_date("2024-02-29", RULES["yearly"], ISO) == "2025-02-28"

    def test_empty_due_uses_now(self) -> None:
        frozen = datetime(2024, 6, 15, 9, 30)
        assert next_due_date("", RULES["daily"], ISO, now=lambda: frozen) == "2024-06-16"
        assert next_due_date(None, RULES["weekly"], ISO, now=lambda: frozen) == "2024-06-22"

    def test_unparseable_due_does_not_fall_back_to_now(self) -> None:
        with pytest.raises(InvalidDateError):
            next_due_date("someday", RULES["daily"], ISO, now=lambda: datetime(2024, 6, 15))

    def test_output_format(self) -> None:
        assert next_due_date("2024-03-01", RULES["daily"], "%d/%m/%Y") == "02/03/2024"

    def test_datetime_input_keeps_configured_output(self) -> None:
        assert next_due_date("2024-03-01 14:30", RULES["daily"], ISO) == "2024-03-02"

    def test_yaml_date_input(self) -> None:
        assert next_due_date(date(2024, 3, 1), RULES["monthly"], ISO) == "2024-04-01"

    @pytest.mark.parametrize("key", ["daily", "yearly"])
    def test_overflow_is_invalid(self, key: str) -> None:
        with pytest.raises(InvalidDateError):
            next_due_date("9999-12-31", RULES[key], ISO)

    def test_none_rule_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="does not recur"):
            next_due_date("2024-03-01", RULES["none"], ISO)

    def test_custom_rule(self) -> None:
        rule = RecurrenceRule(key="every-3-days", amount=3, unit="day")
        assert next_due_date("2024-03-01", rule, ISO) == "2024-03-04"
