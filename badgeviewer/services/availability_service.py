# badgeviewer/services/availability_service.py

"""Availability window parsing and temporal classification.

A badge's availability descriptor is free text scraped from the knowledge
source. It can describe the window during which the badge is earnable in
one of several formats, for example:

    Event start: 2025-12-04T15:00:00Z
    2025-12-04T15:00:00Z – 2025-12-04T23:59:00Z
    Event duration: Dec 19 – Jan 01
    December 4, 2025 at 7:00 AM – December 4, 2025 at 11:59 PM
    Event start: December 4, 2025 at 9:00 AM (60 minutes)
    Dec 06 – Dec 07
    Dec 6
    12 November 2025
    Watch the stream starting 2025-12-04T15:00:00Z for 60 minutes

``parse_window`` runs a fixed, ordered list of independent parser attempts
and returns the first window any of them produces. Attempts never see each
other's results and a failing attempt simply yields None. Conflicting
interpretations of the same text are not reconciled: the first attempt in
the list wins.

All functions here are pure; the reference time is always passed in.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime

from dateutil.parser import isoparse

from badgeviewer.core.badge import AvailabilityStatus, AvailabilityWindow, EnrichedBadge
from badgeviewer.utils.date_utils import (
    DASH_PATTERN,
    DAY_MONTH_YEAR_RE,
    MONTH_PATTERN,
    MONTH_YEAR_RE,
    add_duration,
    decode_html_entities,
    end_of_day,
    month_number,
    parse_generic_date,
    resolve_now,
    start_of_day,
)

logger = logging.getLogger("badgeviewer.availability")

__all__ = [
    "WINDOW_PARSERS",
    "classify",
    "parse_window",
    "status_for",
]

_ISO = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?"
_NATURAL = rf"{MONTH_PATTERN}\s+(\d{{1,2}}),?\s+(\d{{4}})\s+at\s+(\d{{1,2}}):(\d{{2}})\s*([AP]M)"

_EVENT_START_ISO_RE = re.compile(rf"Event start:\s*({_ISO})", re.IGNORECASE)
_EVENT_END_ISO_RE = re.compile(rf"Event end:\s*({_ISO})", re.IGNORECASE)
_ISO_RANGE_RE = re.compile(rf"({_ISO}){DASH_PATTERN}({_ISO})", re.IGNORECASE)
_DURATION_RANGE_RE = re.compile(
    rf"Event duration:\s*{MONTH_PATTERN}\s+(\d{{1,2}}){DASH_PATTERN}{MONTH_PATTERN}\s+(\d{{1,2}})\b",
    re.IGNORECASE,
)
_DURATION_SAME_MONTH_RE = re.compile(
    rf"Event duration:\s*{MONTH_PATTERN}\s+(\d{{1,2}}){DASH_PATTERN}(\d{{1,2}})\b",
    re.IGNORECASE,
)
_NATURAL_RANGE_RE = re.compile(rf"{_NATURAL}{DASH_PATTERN}{_NATURAL}", re.IGNORECASE)
_NATURAL_START_RE = re.compile(rf"(?:Event start:\s*)?{_NATURAL}", re.IGNORECASE)
_DURATION_HINT_RE = re.compile(r"(\d+)\s+(minute|hour)s?\b", re.IGNORECASE)
_EMBEDDED_ISO_RE = re.compile(_ISO, re.IGNORECASE)
_SHORT_RANGE_RE = re.compile(
    rf"{MONTH_PATTERN}\s+(\d{{1,2}}){DASH_PATTERN}{MONTH_PATTERN}\s+(\d{{1,2}})\b",
    re.IGNORECASE,
)
_SHORT_SAME_MONTH_RE = re.compile(rf"{MONTH_PATTERN}\s+(\d{{1,2}}){DASH_PATTERN}(\d{{1,2}})(?!\s*\w)", re.IGNORECASE)
_SINGLE_DAY_RE = re.compile(
    rf"{MONTH_PATTERN}\s+(\d{{1,2}})\b(?!{DASH_PATTERN}\d)(?!,?\s*\d{{4}})",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _localize(value: datetime, now: datetime) -> datetime:
    """Places naive timestamps in the reference timezone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=now.tzinfo)
    return value


def _parse_iso(value: str, now: datetime) -> datetime:
    return _localize(isoparse(value), now)


def _to_24h(hour: int, meridiem: str) -> int:
    if not 1 <= hour <= 12:
        raise ValueError(f"hour out of range for 12-hour clock: {hour}")
    hour %= 12
    return hour + 12 if meridiem.upper() == "PM" else hour


def _natural_datetime(groups: tuple[str, ...], now: datetime) -> datetime:
    """Builds a datetime from (month, day, year, hour, minute, AM/PM) groups."""
    month, day, year, hour, minute, meridiem = groups
    return datetime(
        int(year), month_number(month), int(day), _to_24h(int(hour), meridiem), int(minute), tzinfo=now.tzinfo
    )


def _anchor_years(start_month: int, end_month: int, now: datetime) -> tuple[int, int]:
    """Chooses the years for a day range whose descriptor omits them.

    A range whose end month precedes its start month crosses New Year. When
    ``now`` is already in (or before) the end month, the range started in the
    previous year.
    """
    if start_month <= end_month:
        return now.year, now.year
    start_year = now.year - 1 if now.month <= end_month else now.year
    return start_year, start_year + 1


def _day_range(start_month: int, start_day: int, end_month: int, end_day: int, now: datetime) -> AvailabilityWindow:
    start_year, end_year = _anchor_years(start_month, end_month, now)
    start = start_of_day(start_year, start_month, start_day, now.tzinfo)
    end = end_of_day(start_of_day(end_year, end_month, end_day, now.tzinfo))
    return AvailabilityWindow(start, end)


def _whole_day(value: datetime) -> AvailabilityWindow:
    start = value.replace(hour=0, minute=0, second=0, microsecond=0)
    return AvailabilityWindow(start, end_of_day(start))


# ---------------------------------------------------------------------------
# Parser attempts, in priority order
# ---------------------------------------------------------------------------


def _parse_event_start_end_iso(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _EVENT_START_ISO_RE.search(text)
    if not match:
        return None
    start = _parse_iso(match.group(1), now)
    end_match = _EVENT_END_ISO_RE.search(text)
    end = _parse_iso(end_match.group(1), now) if end_match else end_of_day(start)
    return AvailabilityWindow(start, end)


def _parse_iso_range(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _ISO_RANGE_RE.search(text)
    if not match:
        return None
    return AvailabilityWindow(_parse_iso(match.group(1), now), _parse_iso(match.group(2), now))


def _parse_event_duration(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _DURATION_RANGE_RE.search(text)
    if match:
        start_month, start_day, end_month, end_day = match.groups()
        return _day_range(month_number(start_month), int(start_day), month_number(end_month), int(end_day), now)

    match = _DURATION_SAME_MONTH_RE.search(text)
    if match:
        month, start_day, end_day = match.groups()
        return _day_range(month_number(month), int(start_day), month_number(month), int(end_day), now)
    return None


def _parse_natural_range(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _NATURAL_RANGE_RE.search(text)
    if not match:
        return None
    groups = match.groups()
    return AvailabilityWindow(_natural_datetime(groups[:6], now), _natural_datetime(groups[6:], now))


def _parse_natural_start(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _NATURAL_START_RE.search(text)
    if not match:
        return None
    start = _natural_datetime(match.groups(), now)
    duration = _DURATION_HINT_RE.search(text, match.end())
    if duration:
        return AvailabilityWindow(start, add_duration(start, int(duration.group(1)), duration.group(2)))
    return AvailabilityWindow(start, end_of_day(start))


def _parse_short_range(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _SHORT_RANGE_RE.search(text)
    if match:
        start_month, start_day, end_month, end_day = match.groups()
        return _day_range(month_number(start_month), int(start_day), month_number(end_month), int(end_day), now)

    match = _SHORT_SAME_MONTH_RE.search(text)
    if match:
        month, start_day, end_day = match.groups()
        return _day_range(month_number(month), int(start_day), month_number(month), int(end_day), now)
    return None


def _parse_single_day(text: str, now: datetime) -> AvailabilityWindow | None:
    match = _SINGLE_DAY_RE.search(text)
    if not match:
        return None
    return _whole_day(start_of_day(now.year, month_number(match.group(1)), int(match.group(2)), now.tzinfo))


def _parse_day_month_year(text: str, now: datetime) -> AvailabilityWindow | None:
    match = DAY_MONTH_YEAR_RE.search(text)
    if match:
        day, month, year = match.groups()
        return _whole_day(start_of_day(int(year), month_number(month), int(day), now.tzinfo))

    match = MONTH_YEAR_RE.search(text)
    if match:
        month, year = match.groups()
        return _whole_day(start_of_day(int(year), month_number(month), 1, now.tzinfo))
    return None


def _parse_embedded_iso(text: str, now: datetime) -> AvailabilityWindow | None:
    """Reads timestamps embedded in prose.

    One timestamp starts the window, which lasts for a "N minutes/hours" hint
    when present and otherwise until the end of that day. With several
    timestamps the first starts the window and the last ends it.
    """
    stamps = _EMBEDDED_ISO_RE.findall(text)
    if not stamps:
        return None
    start = _parse_iso(stamps[0], now)
    if len(stamps) > 1:
        return AvailabilityWindow(start, _parse_iso(stamps[-1], now))
    duration = _DURATION_HINT_RE.search(text)
    if duration:
        return AvailabilityWindow(start, add_duration(start, int(duration.group(1)), duration.group(2)))
    return AvailabilityWindow(start, end_of_day(start))


def _parse_generic(text: str, now: datetime) -> AvailabilityWindow | None:
    parsed = parse_generic_date(text, now)
    if parsed is None:
        return None
    return _whole_day(parsed)


WindowParser = Callable[[str, datetime], AvailabilityWindow | None]

WINDOW_PARSERS: tuple[WindowParser, ...] = (
    _parse_event_start_end_iso,
    _parse_iso_range,
    _parse_event_duration,
    _parse_natural_range,
    _parse_natural_start,
    _parse_short_range,
    _parse_single_day,
    _parse_day_month_year,
    _parse_embedded_iso,
    _parse_generic,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_window(descriptor: str | None, now: datetime | None = None) -> AvailabilityWindow | None:
    """Parses an availability descriptor into a window.

    Args:
        descriptor: Free-text availability descriptor.
        now: Reference time. Supplies the year for descriptors that omit it
            and the timezone for naive timestamps. Defaults to the current
            UTC time.

    Returns:
        The window from the first parser attempt that succeeds, or None.
        Never raises.
    """
    if not descriptor or not descriptor.strip():
        return None

    reference = resolve_now(now)
    text = decode_html_entities(descriptor)

    for attempt in WINDOW_PARSERS:
        try:
            window = attempt(text, reference)
        except (ValueError, OverflowError, TypeError) as e:
            logger.debug("%s rejected %r: %s", attempt.__name__, text, e)
            continue
        if window is None:
            continue
        if window.start > window.end:
            logger.debug("%s produced an inverted window for %r", attempt.__name__, text)
            continue
        return window

    return None


def classify(window: AvailabilityWindow | None, now: datetime | None = None) -> AvailabilityStatus:
    """Classifies ``now`` against an availability window.

    Both boundary instants count as available.
    """
    if window is None:
        return AvailabilityStatus.UNKNOWN
    reference = resolve_now(now)
    if reference < window.start:
        return AvailabilityStatus.COMING_SOON
    if reference > window.end:
        return AvailabilityStatus.EXPIRED
    return AvailabilityStatus.AVAILABLE


def status_for(badge: EnrichedBadge, now: datetime | None = None) -> AvailabilityStatus:
    """Returns the availability status of a badge at ``now``."""
    reference = resolve_now(now)
    descriptor = badge.metadata.availability_descriptor if badge.metadata else None
    return classify(parse_window(descriptor, reference), reference)

