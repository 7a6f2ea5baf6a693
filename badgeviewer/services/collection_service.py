# badgeviewer/services/collection_service.py

"""Collection completeness and rank for a single viewer.

Intersects the globally collectible part of the enriched catalog with the
set of badges a viewer owns, as reported by an ownership provider.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from badgeviewer.core.badge import EnrichedBadge
from badgeviewer.services.collection_constants import RANK_TIERS, UNRANKED, CollectionRank, is_in_denylist

logger = logging.getLogger("badgeviewer.collection_service")

__all__ = ["CollectionSummary", "CollectionTracker", "OwnershipProvider"]


class OwnershipProvider(Protocol):
    """Anything that can report a viewer's owned badges."""

    def get_owned_badge_keys(self, user_id: str) -> set[str]: ...


@dataclass(frozen=True)
class CollectionSummary:
    """Snapshot of a viewer's collection progress."""

    collected: int
    total: int
    percentage: float
    rank: CollectionRank | None

    @property
    def display_rank(self) -> CollectionRank:
        """The earned rank, or the UNRANKED display tier."""
        return self.rank or UNRANKED


class CollectionTracker:
    """Computes collected counts and rank tiers.

    Args:
        ownership_provider: Source of owned badge keys for ``summarize``.
    """

    def __init__(self, ownership_provider: OwnershipProvider | None = None) -> None:
        self._ownership_provider = ownership_provider

    @staticmethod
    def is_global_collectible(set_id: str) -> bool:
        return not is_in_denylist(set_id)

    def collectible_badges(self, badges: Iterable[EnrichedBadge]) -> list[EnrichedBadge]:
        """Filters ``badges`` down to the globally collectible ones."""
        return [b for b in badges if self.is_global_collectible(b.set_id)]

    def collected_count(self, badges: Iterable[EnrichedBadge], owned_keys: Iterable[str]) -> int:
        """Counts collectible badges whose ``set_id/version_id`` is owned.

        Args:
            badges: The enriched catalog.
            owned_keys: Canonical composite key strings the viewer owns.

        Returns:
            Number of owned collectible badges.
        """
        owned = set(owned_keys)
        return sum(1 for b in self.collectible_badges(badges) if str(b.key) in owned)

    @staticmethod
    def rank(collected: int, total: int) -> CollectionRank | None:
        """Selects the highest tier whose floor is at or below the percentage.

        Returns:
            The earned tier, or None when ``total`` is zero or the percentage
            is below the lowest floor.
        """
        if total <= 0:
            return None
        percentage = collected / total * 100
        for tier in RANK_TIERS:
            if tier is UNRANKED:
                break
            if percentage >= tier.min_percentage:
                return tier
        return None

    def summarize(self, badges: Iterable[EnrichedBadge], user_id: str) -> CollectionSummary:
        """Builds the collection summary for ``user_id``.

        Raises:
            RuntimeError: If the tracker was built without an ownership provider.
        """
        if self._ownership_provider is None:
            raise RuntimeError("CollectionTracker has no ownership provider")

        collectible = self.collectible_badges(badges)
        owned_keys = self._ownership_provider.get_owned_badge_keys(user_id)
        collected = self.collected_count(collectible, owned_keys)
        total = len(collectible)
        percentage = collected / total * 100 if total else 0.0

        logger.info("Collection for %s: %d/%d (%.1f%%)", user_id, collected, total, percentage)
        return CollectionSummary(
            collected=collected,
            total=total,
            percentage=percentage,
            rank=self.rank(collected, total),
        )
