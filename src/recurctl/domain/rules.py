"""Recurrence rules and the rule matcher.

A rule is a named offset (amount + calendar unit). Users write free-form
recurrence values in frontmatter ("weekly", "Every 2 Weeks", "هر ماه"),
so resolution runs in two passes:

1. Exact: the normalized value equals a rule's normalized key or label.
2. Fuzzy: approximate matching over the same fields, location-agnostic,
   accepting candidates whose score is at most :data:`FUZZY_THRESHOLD`.

The matcher reports which pass matched; telling the user about a fuzzy
interpretation is the caller's job.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from difflib import SequenceMatcher
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator

# Score 0.0 is a perfect match, 1.0 no match at all. Lower is stricter.
FUZZY_THRESHOLD = 0.3

NONE_RULE_KEY = "none"

_WHITESPACE_RE = re.compile(r"\s+")
# Word characters, whitespace, and the Arabic/Persian block used by label_fa.
_STRIP_RE = re.compile(r"[^\w\s\u0600-\u06FF]")


class RecurrenceUnit(StrEnum):
    """Calendar units a rule can step by."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class RecurrenceRule(BaseModel):
    """One configured recurrence rule.

    ``key == "none"`` is the sentinel meaning "do not recur"; it is the only
    rule allowed an ``amount`` of 0.
    """

    model_config = {"frozen": True}

    key: str
    label_en: str = ""
    label_fa: str = ""
    amount: int = Field(default=1, ge=0)
    unit: RecurrenceUnit = RecurrenceUnit.DAY
    enabled: bool = True

    @model_validator(mode="after")
    def _check_amount(self) -> RecurrenceRule:
        if self.amount == 0 and not self.is_none:
            msg = f"Rule {self.key!r} must step by a positive amount"
            raise ValueError(msg)
        return self

    @property
    def is_none(self) -> bool:
        return self.key == NONE_RULE_KEY

    def labels(self) -> tuple[str, str, str]:
        return (self.key, self.label_en, self.label_fa)


DEFAULT_RULES: tuple[RecurrenceRule, ...] = (
    RecurrenceRule(key="none", label_en="None", label_fa="هیچ", amount=0, unit="day"),
    RecurrenceRule(key="daily", label_en="Daily", label_fa="هر روز", amount=1, unit="day"),
    RecurrenceRule(key="weekly", label_en="Weekly", label_fa="هر هفته", amount=1, unit="week"),
    RecurrenceRule(
        key="biweekly", label_en="Every 2 Weeks", label_fa="هر 2 هفته", amount=2, unit="week"
    ),
    RecurrenceRule(key="monthly", label_en="Monthly", label_fa="هر ماه", amount=1, unit="month"),
    RecurrenceRule(
        key="quarterly", label_en="Every 4 Months", label_fa="هر 4 ماه", amount=4, unit="month"
    ),
    RecurrenceRule(key="yearly", label_en="Yearly", label_fa="هر سال", amount=1, unit="year"),
)


def normalize_label(value: str) -> str:
    """Normalize a recurrence value or rule label for comparison.

    Trims, lowercases, collapses whitespace runs to one space, then drops
    every character that is not a word character, whitespace, or Persian.

    Examples:
        >>> normalize_label("  Every   2 Weeks! ")
        'every 2 weeks'
        >>> normalize_label("هر ماه")
        'هر ماه'
    """
    collapsed = _WHITESPACE_RE.sub(" ", value.strip().lower())
    return _STRIP_RE.sub("", collapsed)


@dataclass(frozen=True)
class RuleMatch:
    """A resolved rule plus how it was found."""

    rule: RecurrenceRule
    exact: bool
    score: float = 0.0


def _similarity(query: str, candidate: str) -> float:
    """Best similarity of *query* against *candidate* at any alignment.

    Compares against the whole candidate and against every window of the
    query's length, so the match position inside the field does not matter.
    """
    if not query or not candidate:
        return 0.0
    best = SequenceMatcher(None, query, candidate).ratio()
    width = len(query)
    if width < len(candidate):
        matcher = SequenceMatcher(None, query, "")
        for start in range(len(candidate) - width + 1):
            matcher.set_seq2(candidate[start : start + width])
            best = max(best, matcher.ratio())
            if best == 1.0:
                break
    return best


class RuleMatcher:
    """Resolve free-form recurrence values against a rule sequence.

    The fuzzy index is built once at construction; build a new matcher
    whenever the rule set changes.
    """

    def __init__(self, rules: Iterable[RecurrenceRule], *, threshold: float = FUZZY_THRESHOLD):
        self._rules: tuple[RecurrenceRule, ...] = tuple(rules)
        self._threshold = threshold
        self._index: list[tuple[RecurrenceRule, tuple[str, ...]]] = [
            (rule, tuple(normalize_label(label) for label in rule.labels()))
            for rule in self._rules
            if rule.enabled
        ]

    @property
    def rules(self) -> Sequence[RecurrenceRule]:
        return self._rules

    def resolve(self, raw: Any) -> RuleMatch | None:
        """Resolve *raw* to a rule, or None when nothing matches."""
        if not isinstance(raw, str) or not raw.strip():
            return None
        query = normalize_label(raw)
        if not query:
            return None

        for rule, fields in self._index:
            if query in fields:
                return RuleMatch(rule=rule, exact=True)

        return self._fuzzy(query)

    def _fuzzy(self, query: str) -> RuleMatch | None:
        best: RuleMatch | None = None
        for rule, fields in self._index:
            score = 1.0 - max(_similarity(query, field) for field in fields)
            if score > self._threshold:
                continue
            if best is None or score < best.score:
                best = RuleMatch(rule=rule, exact=False, score=score)
        return best
