# badgeviewer/services/badge_store.py

"""Shared, thread-safe collection of enriched badges.

Every enrichment pass writes into the same store. Writes are scoped to a
single composite key and merge field by field, so two passes filling
different badges (or different fields of one badge) never erase each
other's data.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace

from badgeviewer.core.badge import BadgeMetadata, CompositeKey, EnrichedBadge

logger = logging.getLogger("badgeviewer.badge_store")

__all__ = ["BadgeStore"]


class BadgeStore:
    """Enriched badges keyed by CompositeKey, in catalog order.

    Args:
        badges: Initial badges.
    """

    def __init__(self, badges: Iterable[EnrichedBadge] = ()) -> None:
        self._lock = threading.Lock()
        self._badges: dict[CompositeKey, EnrichedBadge] = {b.key: b for b in badges}

    def __len__(self) -> int:
        with self._lock:
            return len(self._badges)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._badges

    def replace_all(self, badges: Iterable[EnrichedBadge], keep_metadata: bool = True) -> None:
        """Swaps in a new badge list in one step.

        Args:
            badges: The new catalog, usually metadata-less stubs.
            keep_metadata: Carry over metadata already held for keys that
                survive the swap.
        """
        with self._lock:
            previous = self._badges
            updated: dict[CompositeKey, EnrichedBadge] = {}
            for badge in badges:
                old = previous.get(badge.key)
                if keep_metadata and badge.metadata is None and old is not None and old.metadata is not None:
                    badge = replace(badge, metadata=old.metadata)
                updated[badge.key] = badge
            self._badges = updated
        logger.debug("Badge store now holds %d badges", len(updated))

    def merge_metadata(
        self, key: CompositeKey, metadata: BadgeMetadata, replace_existing: bool = False
    ) -> EnrichedBadge | None:
        """Merges metadata into the badge stored under ``key`` only.

        By default only the fields set on ``metadata`` overwrite the stored
        ones. With ``replace_existing`` the stored metadata is discarded,
        keeping just the position hint when the new data carries none.

        Returns:
            The updated badge, or None if ``key`` is not in the store.
        """
        with self._lock:
            badge = self._badges.get(key)
            if badge is None:
                logger.debug("Ignoring metadata for unknown badge %s", key)
                return None

            current = badge.metadata
            if current is None:
                merged = metadata
            elif replace_existing:
                merged = metadata if metadata.position is not None else replace(metadata, position=current.position)
            else:
                merged = current.merged_with(metadata)

            updated = replace(badge, metadata=merged)
            self._badges[key] = updated
            return updated

    def get(self, key: CompositeKey) -> EnrichedBadge | None:
        with self._lock:
            return self._badges.get(key)

    def keys(self) -> list[CompositeKey]:
        with self._lock:
            return list(self._badges)

    def snapshot(self) -> list[EnrichedBadge]:
        """Returns a point-in-time copy of every badge in catalog order."""
        with self._lock:
            return list(self._badges.values())
