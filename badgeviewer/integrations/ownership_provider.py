"""Owned-badge lookup built from chat badge strings.

Chat messages carry the sender's badges as ``set_id/version_id`` pairs
joined by commas (``"subscriber/12,premium/1"``). The provider remembers
every badge it has seen per user and answers ``get_owned_badge_keys``.
"""

from __future__ import annotations

import logging
import threading

from badgeviewer.core.badge import CompositeKey

logger = logging.getLogger("badgeviewer.ownership")

__all__ = ["BadgeStringOwnershipProvider", "parse_badge_string"]


def parse_badge_string(value: str | None) -> set[CompositeKey]:
    """Parses a comma separated ``set/version`` list, skipping bad entries."""
    if not value:
        return set()
    keys: set[CompositeKey] = set()
    for part in value.split(","):
        key = CompositeKey.parse(part)
        if key is None:
            if part.strip():
                logger.debug("Skipping malformed badge entry %r", part)
            continue
        keys.add(key)
    return keys


class BadgeStringOwnershipProvider:
    """In-memory ownership provider fed with badge strings."""

    def __init__(self) -> None:
        self._owned: dict[str, set[CompositeKey]] = {}
        self._lock = threading.Lock()

    def record_badges(self, user_id: str, badge_string: str | None) -> int:
        """Adds every badge in ``badge_string`` to the user's owned set.

        Returns:
            Number of badges that were not known before.
        """
        keys = parse_badge_string(badge_string)
        with self._lock:
            owned = self._owned.setdefault(user_id, set())
            before = len(owned)
            owned.update(keys)
            return len(owned) - before

    def forget(self, user_id: str) -> None:
        with self._lock:
            self._owned.pop(user_id, None)

    def get_owned_badge_keys(self, user_id: str) -> set[str]:
        """Returns the canonical ``set_id/version_id`` strings the user owns."""
        with self._lock:
            return {str(key) for key in self._owned.get(user_id, set())}
