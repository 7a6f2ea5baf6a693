# badgeviewer/utils/date_utils.py

"""Helpers for reading the free-text dates found in badge metadata.

The knowledge source writes dates in a handful of loose formats:
    "12 November 2025"      (day first)
    "November 2025"         (month and year only)
    "Dec 1-12"              (abbreviated range, year implied)
    "Dec 1"                 (abbreviated single day, year implied)

Every parser here returns None instead of raising. Implied years are taken
from the reference time ``now`` so that results are reproducible.
"""

from __future__ import annotations

import html
import re
from datetime import datetime, timedelta, timezone, tzinfo

from dateutil import parser as date_parser

__all__ = [
    "DASH_PATTERN",
    "DAY_MONTH_YEAR_RE",
    "MONTHS",
    "MONTH_PATTERN",
    "MONTH_YEAR_RE",
    "add_duration",
    "decode_html_entities",
    "end_of_day",
    "month_number",
    "parse_added_date",
    "parse_generic_date",
    "parse_usage_count",
    "resolve_now",
    "start_of_day",
]

MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Matches "Dec", "Dec." and "December" but not "Decade"; the captured group is the month word
MONTH_PATTERN = (
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b\.?"
)

# Regular dash, en dash and em dash
DASH_PATTERN = r"\s*[-–—]\s*"

_USAGE_RE = re.compile(r"(\d+(?:,\d+)*)")
DAY_MONTH_YEAR_RE = re.compile(rf"\b(\d{{1,2}})\s+{MONTH_PATTERN}\s+(\d{{4}})\b", re.IGNORECASE)
MONTH_YEAR_RE = re.compile(rf"{MONTH_PATTERN}\s+(\d{{4}})\b", re.IGNORECASE)
_MONTH_DAY_RANGE_RE = re.compile(rf"{MONTH_PATTERN}\s+(\d{{1,2}}){DASH_PATTERN}(\d{{1,2}})\b", re.IGNORECASE)
_MONTH_DAY_RE = re.compile(rf"{MONTH_PATTERN}\s+(\d{{1,2}})\b(?!{DASH_PATTERN}\d)", re.IGNORECASE)


def month_number(name: str) -> int | None:
    """Returns 1-12 for a month name or abbreviation, None if unknown."""
    return MONTHS.get(name[:3].lower())


def decode_html_entities(text: str) -> str:
    """Decodes numeric and named HTML entities (``&#8211;`` -> ``–``)."""
    return html.unescape(text).replace("\xa0", " ")


def resolve_now(now: datetime | None = None) -> datetime:
    """Returns an aware reference time (current UTC time if omitted)."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def start_of_day(year: int, month: int, day: int, tz: tzinfo) -> datetime:
    return datetime(year, month, day, tzinfo=tz)


def end_of_day(value: datetime) -> datetime:
    """Returns 23:59:59 on the same calendar day as ``value``."""
    return value.replace(hour=23, minute=59, second=59, microsecond=0)


def parse_generic_date(text: str, now: datetime | None = None) -> datetime | None:
    """Parses an arbitrary date string with dateutil.

    Missing components are filled from January 1st of ``now``'s year.
    Naive results are placed in ``now``'s timezone.
    """
    text = text.strip()
    if not text:
        return None
    reference = resolve_now(now)
    default = reference.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
    try:
        parsed = date_parser.parse(text, default=default)
    except (ValueError, OverflowError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=reference.tzinfo)
    return parsed


def parse_added_date(text: str | None, now: datetime | None = None) -> datetime | None:
    """Parses a "date of addition" descriptor.

    Tries, in order: "DD Month YYYY", "Month YYYY" (day 1), "Mon D-D"
    (start day, year of ``now``), "Mon D" (year of ``now``) and finally a
    generic parse.

    Args:
        text: Descriptor such as "12 November 2025".
        now: Reference time supplying implied years and the timezone.

    Returns:
        Aware datetime at midnight of the parsed day, or None.
    """
    if not text:
        return None
    text = decode_html_entities(text)
    reference = resolve_now(now)
    tz = reference.tzinfo

    try:
        match = DAY_MONTH_YEAR_RE.search(text)
        if match:
            return start_of_day(int(match.group(3)), month_number(match.group(2)), int(match.group(1)), tz)

        match = MONTH_YEAR_RE.search(text)
        if match:
            return start_of_day(int(match.group(2)), month_number(match.group(1)), 1, tz)

        match = _MONTH_DAY_RANGE_RE.search(text)
        if match:
            return start_of_day(reference.year, month_number(match.group(1)), int(match.group(2)), tz)

        match = _MONTH_DAY_RE.search(text)
        if match:
            return start_of_day(reference.year, month_number(match.group(1)), int(match.group(2)), tz)
    except ValueError:
        return None

    return parse_generic_date(text, reference)


def parse_usage_count(text: str | None) -> int:
    """Extracts the leading comma-grouped integer from a usage descriptor.

    "1,234 users seen with this badge" -> 1234; "None users" -> 0.
    """
    if not text:
        return 0
    match = _USAGE_RE.search(text)
    if not match:
        return 0
    return int(match.group(1).replace(",", ""))


def add_duration(start: datetime, amount: int, unit: str) -> datetime:
    """Adds ``amount`` minutes or hours to ``start``."""
    if unit.lower().startswith("hour"):
        return start + timedelta(hours=amount)
    return start + timedelta(minutes=amount)
