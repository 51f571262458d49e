"""Resolve relative natural-language date phrases into calendar dates.

``resolve_relative_date`` is pure: the reference instant is always passed in,
so results never depend on the wall clock. Rules are tried in the order of
``RULES`` and the first one that matches anywhere in the text wins.
"""

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_NUMBER_WORDS = {
    "a": 1,
    "an": 1,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

_SATURDAY = 5


@dataclass(frozen=True)
class RelativeOffsets:
    """Day offsets for the vague phrases ``soon`` and ``later``."""

    soon_days: int = 3
    later_days: int = 14


DEFAULT_OFFSETS = RelativeOffsets()


def add_months(day: date, months: int) -> date:
    """Calendar-month addition, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def add_years(day: date, years: int) -> date:
    return add_months(day, 12 * years)


def upcoming_saturday(today: date) -> date:
    """Next Saturday strictly after today (a Saturday rolls a full week)."""
    ahead = (_SATURDAY - today.weekday()) % 7
    return today + timedelta(days=ahead or 7)


def next_weekday(today: date, weekday: int) -> date:
    """Next occurrence of ``weekday`` strictly after today."""
    ahead = (weekday - today.weekday()) % 7
    return today + timedelta(days=ahead or 7)


def _in_n_units(match: re.Match, today: date, offsets: RelativeOffsets) -> date:
    raw = match.group("n").lower()
    n = int(raw) if raw.isdigit() else _NUMBER_WORDS[raw]
    unit = match.group("unit").lower()
    if unit == "day":
        return today + timedelta(days=n)
    if unit == "week":
        return today + timedelta(days=7 * n)
    return add_months(today, n)


def _next_named_weekday(match: re.Match, today: date, offsets: RelativeOffsets) -> date:
    return next_weekday(today, WEEKDAYS.index(match.group("weekday").lower()))


def _fixed(days: int) -> Callable[[re.Match, date, RelativeOffsets], date]:
    return lambda match, today, offsets: today + timedelta(days=days)


_Rule = tuple[str, re.Pattern, Callable[[re.Match, date, RelativeOffsets], date]]

_N = r"(?P<n>\d+|" + "|".join(_NUMBER_WORDS) + r")"

RULES: tuple[_Rule, ...] = (
    (
        "in_n_units",
        re.compile(rf"\bin\s+{_N}\s+(?P<unit>day|week|month)s?\b", re.IGNORECASE),
        _in_n_units,
    ),
    (
        "next_weekend",
        re.compile(r"\bnext\s+weekend\b", re.IGNORECASE),
        lambda m, today, o: upcoming_saturday(today) + timedelta(days=7),
    ),
    (
        "this_weekend",
        re.compile(r"\b(?:this|the)\s+weekend\b", re.IGNORECASE),
        lambda m, today, o: upcoming_saturday(today),
    ),
    (
        "next_weekday",
        re.compile(r"\bnext\s+(?P<weekday>" + "|".join(WEEKDAYS) + r")\b", re.IGNORECASE),
        _next_named_weekday,
    ),
    ("next_week", re.compile(r"\bnext\s+week\b", re.IGNORECASE), _fixed(7)),
    (
        "next_month",
        re.compile(r"\bnext\s+month\b", re.IGNORECASE),
        lambda m, today, o: add_months(today, 1),
    ),
    (
        "next_year",
        re.compile(r"\bnext\s+year\b", re.IGNORECASE),
        lambda m, today, o: add_years(today, 1),
    ),
    ("tomorrow", re.compile(r"\btomorrow\b", re.IGNORECASE), _fixed(1)),
    ("today", re.compile(r"\b(?:today|tonight)\b", re.IGNORECASE), _fixed(0)),
    ("asap", re.compile(r"\b(?:asap|urgent|urgently|immediately)\b", re.IGNORECASE), _fixed(0)),
    (
        "soon",
        re.compile(r"\bsoon\b", re.IGNORECASE),
        lambda m, today, o: today + timedelta(days=o.soon_days),
    ),
    (
        "later",
        re.compile(r"\blater\b", re.IGNORECASE),
        lambda m, today, o: today + timedelta(days=o.later_days),
    ),
)


def _as_date(now: Union[date, datetime]) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def match_relative_date(
    text: str,
    now: Union[date, datetime],
    offsets: RelativeOffsets = DEFAULT_OFFSETS,
) -> Optional[tuple[str, date]]:
    """Return ``(rule_name, date)`` for the first matching rule, or None.

    A phrase whose offset falls outside the supported calendar range (e.g.
    "in 99999999 days") is skipped and the remaining rules are tried.
    """
    if not text:
        return None
    today = _as_date(now)
    for name, pattern, handler in RULES:
        match = pattern.search(text)
        if not match:
            continue
        try:
            return name, handler(match, today, offsets)
        except (OverflowError, ValueError) as e:
            logger.debug("Ignoring out-of-range date phrase %r: %s", match.group(0), e)
    return None


def resolve_relative_date(
    text: str,
    now: Union[date, datetime],
    offsets: RelativeOffsets = DEFAULT_OFFSETS,
) -> Optional[str]:
    """Resolve a relative phrase in ``text`` to an ISO date, or None if no phrase matches."""
    found = match_relative_date(text, now, offsets)
    if found is None:
        return None
    return found[1].isoformat()


_ISO_PREFIX = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})")


def parse_iso_date(value) -> Optional[str]:
    """Normalise an explicit ``YYYY-MM-DD`` value (time suffix allowed) or return None."""
    if not isinstance(value, str):
        return None
    match = _ISO_PREFIX.match(value)
    if not match:
        return None
    try:
        return date(*(int(part) for part in match.groups())).isoformat()
    except ValueError:
        return None
