"""Due-date parsing and roll-forward arithmetic.

Month and year steps use :class:`dateutil.relativedelta.relativedelta`,
which clamps to the last valid day of the target month instead of
overflowing into the next one::

    2024-01-31 + 1 month  -> 2024-02-29
    2023-01-31 + 1 month  -> 2023-02-28
    2024-02-29 + 1 year   -> 2025-02-28

Day and week steps are plain fixed-length offsets.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from recurctl.domain.rules import RecurrenceRule, RecurrenceUnit

DEFAULT_DATE_FORMAT = "%Y-%m-%d"

# Tried in order after the configured format.
FALLBACK_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%m-%d-%Y",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
)


class InvalidDateError(ValueError):
    """A due date could not be parsed, or the rolled date is not representable."""


def candidate_formats(date_format: str | None) -> list[str]:
    """Configured format first, then the fallbacks, without duplicates."""
    formats = [date_format or DEFAULT_DATE_FORMAT, *FALLBACK_FORMATS]
    return list(dict.fromkeys(formats))


def parse_due_date(value: str | date, date_format: str | None = None) -> datetime:
    """Parse a due-date value from frontmatter.

    YAML may already have decoded unquoted dates into :class:`date` or
    :class:`datetime` objects; those pass straight through. Strings are
    tried strictly against :func:`candidate_formats`, then handed to
    ``dateutil`` as a last resort.

    Raises:
        InvalidDateError: If no strategy yields a valid date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        msg = f"Invalid due date: {value!r}"
        raise InvalidDateError(msg)

    text = value.strip()
    for fmt in candidate_formats(date_format):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError) as exc:
        msg = f"Invalid due date: {value!r}"
        raise InvalidDateError(msg) from exc


def step_for(rule: RecurrenceRule) -> relativedelta:
    """Offset described by *rule*."""
    if rule.amount <= 0:
        msg = f"Rule {rule.key!r} does not recur"
        raise ValueError(msg)
    match rule.unit:
        case RecurrenceUnit.DAY:
            return relativedelta(days=rule.amount)
        case RecurrenceUnit.WEEK:
            return relativedelta(weeks=rule.amount)
        case RecurrenceUnit.MONTH:
            return relativedelta(months=rule.amount)
        case RecurrenceUnit.YEAR:
            return relativedelta(years=rule.amount)
    msg = f"Unknown recurrence unit: {rule.unit!r}"
    raise ValueError(msg)


def next_due_date(
    current_due: str | date | None,
    rule: RecurrenceRule,
    output_format: str = DEFAULT_DATE_FORMAT,
    *,
    date_format: str | None = None,
    now: Callable[[], datetime] = datetime.now,
) -> str:
    """Roll *current_due* forward by *rule* and format it.

    An empty due date starts from ``now()``. An unparseable one is an
    error; it never falls back to today.

    Args:
        current_due: Raw frontmatter value, or None/"" when absent.
        rule: A recurring rule (never the ``none`` sentinel).
        output_format: ``strftime`` format of the result.
        date_format: Preferred input format; defaults to *output_format*.
        now: Clock used when there is no due date.

    Raises:
        InvalidDateError: Unparseable input or unrepresentable result.
        ValueError: *rule* does not recur.
    """
    step = step_for(rule)

    if current_due is None or (isinstance(current_due, str) and not current_due.strip()):
        base = now()
    else:
        base = parse_due_date(current_due, date_format or output_format)

    try:
        rolled = base + step
        return rolled.strftime(output_format)
    except (ValueError, OverflowError) as exc:
        msg = f"Cannot compute next due date from {current_due!r} (+{rule.amount} {rule.unit})"
        raise InvalidDateError(msg) from exc
