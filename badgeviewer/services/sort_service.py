# badgeviewer/services/sort_service.py

"""Deterministic ordering of the enriched badge list.

Every policy produces a total order: the last component of every sort key
is the canonical ``set_id/version_id`` string, so the same badges always
come out in the same sequence whatever order they went in.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from badgeviewer.core.badge import AvailabilityStatus, EnrichedBadge
from badgeviewer.services.availability_service import status_for
from badgeviewer.utils.date_utils import parse_added_date, parse_usage_count, resolve_now

logger = logging.getLogger("badgeviewer.sort_service")

__all__ = [
    "POSITION_COVERAGE_THRESHOLD",
    "SortPolicy",
    "sort_badges",
    "uses_position_fast_path",
]

# Minimum share of badges carrying a position hint before positions are trusted
POSITION_COVERAGE_THRESHOLD = 0.9


class SortPolicy(Enum):
    """Available orderings for the badge list.

    Attributes:
        NEWEST_ADDED: Most recently added first.
        OLDEST_ADDED: Earliest added first.
        MOST_USED: Highest usage count first.
        LEAST_USED: Lowest usage count first.
        AVAILABLE_FIRST: Currently earnable badges first, then newest.
        COMING_SOON_FIRST: Upcoming badges first, then newest.
    """

    NEWEST_ADDED = "newest_added"
    OLDEST_ADDED = "oldest_added"
    MOST_USED = "most_used"
    LEAST_USED = "least_used"
    AVAILABLE_FIRST = "available_first"
    COMING_SOON_FIRST = "coming_soon_first"

    @classmethod
    def from_value(cls, value: str) -> SortPolicy:
        """Resolves a stored policy string, falling back to NEWEST_ADDED."""
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unknown sort policy: %s, falling back to newest_added", value)
            return cls.NEWEST_ADDED


def _added_timestamp(badge: EnrichedBadge, now: datetime) -> float:
    """Parsed addition date as a timestamp; 0 when absent or unparseable."""
    if badge.metadata is None:
        return 0.0
    added = parse_added_date(badge.metadata.date_added, now)
    return added.timestamp() if added else 0.0


def _usage(badge: EnrichedBadge) -> int:
    return parse_usage_count(badge.metadata.usage_stats) if badge.metadata else 0


def uses_position_fast_path(badges: list[EnrichedBadge], policy: SortPolicy) -> bool:
    """Whether ``sort_badges`` will order ``badges`` by position hints.

    Only NEWEST_ADDED uses positions, and only when the share of badges that
    carry one reaches POSITION_COVERAGE_THRESHOLD.
    """
    if policy is not SortPolicy.NEWEST_ADDED or not badges:
        return False
    positioned = sum(1 for badge in badges if badge.position is not None)
    return positioned / len(badges) >= POSITION_COVERAGE_THRESHOLD


def sort_badges(
    badges: list[EnrichedBadge],
    policy: SortPolicy = SortPolicy.NEWEST_ADDED,
    now: datetime | None = None,
) -> list[EnrichedBadge]:
    """Sorts badges according to ``policy``.

    Args:
        badges: The badges to sort.
        policy: Ordering to apply.
        now: Reference time for implied years and availability status.

    Returns:
        A new sorted list.
    """
    reference = resolve_now(now)

    if uses_position_fast_path(badges, policy):
        # Positioned badges first, then the unpositioned remainder by date
        return sorted(
            badges,
            key=lambda b: (
                b.position is None,
                b.position if b.position is not None else 0,
                -_added_timestamp(b, reference) if b.position is None else 0.0,
                str(b.key),
            ),
        )

    if policy is SortPolicy.OLDEST_ADDED:
        return sorted(badges, key=lambda b: (_added_timestamp(b, reference), str(b.key)))

    if policy is SortPolicy.MOST_USED:
        return sorted(badges, key=lambda b: (-_usage(b), str(b.key)))

    if policy is SortPolicy.LEAST_USED:
        return sorted(badges, key=lambda b: (_usage(b), str(b.key)))

    if policy in (SortPolicy.AVAILABLE_FIRST, SortPolicy.COMING_SOON_FIRST):
        wanted = (
            AvailabilityStatus.AVAILABLE if policy is SortPolicy.AVAILABLE_FIRST else AvailabilityStatus.COMING_SOON
        )
        return sorted(
            badges,
            key=lambda b: (
                status_for(b, reference) is not wanted,
                -_added_timestamp(b, reference),
                str(b.key),
            ),
        )

    # Default: NEWEST_ADDED by parsed date
    return sorted(badges, key=lambda b: (-_added_timestamp(b, reference), str(b.key)))
