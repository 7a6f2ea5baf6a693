# badgeviewer/services/catalog_service.py

"""Badge catalog loading.

Cache first, Helix as fallback. A successful remote fetch is written back
to the cache in a single transaction and swapped into memory in one
assignment, so readers see either the old or the new catalog, never a mix.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import TYPE_CHECKING

from badgeviewer.core.badge import CatalogSnapshot, EnrichedBadge
from badgeviewer.core.errors import CatalogLoadError, CatalogRefreshInProgressError

if TYPE_CHECKING:
    from badgeviewer.core.db import Database
    from badgeviewer.integrations.helix_api import HelixClient

logger = logging.getLogger("badgeviewer.catalog_service")

__all__ = ["CatalogLoader"]


class CatalogLoader:
    """Loads and holds the global badge catalog.

    Args:
        cache: Database providing the catalog query mixin.
        client: Helix client used on cache misses and refreshes.
        credentials: (client_id, access_token) pair, or None if unset.
    """

    def __init__(self, cache: Database, client: HelixClient, credentials: tuple[str, str] | None = None) -> None:
        self._cache = cache
        self._client = client
        self._credentials = credentials
        self._snapshot: CatalogSnapshot | None = None
        self._refresh_lock = threading.Lock()

    @property
    def snapshot(self) -> CatalogSnapshot | None:
        """The last successfully loaded catalog."""
        return self._snapshot

    def load(self) -> CatalogSnapshot:
        """Returns the cached catalog, fetching it remotely on a miss.

        Raises:
            CatalogLoadError: If the cache is empty and the remote fetch fails.
        """
        try:
            cached = self._cache.get_cached_catalog()
        except sqlite3.Error as exc:
            logger.warning("Could not read cached catalog: %s", exc)
            cached = None

        if cached is not None and not cached.is_empty:
            logger.info("Loaded catalog from cache (%d sets)", len(cached.sets))
            self._snapshot = cached
            return cached

        logger.info("Catalog cache miss, fetching from Helix")
        return self.fetch_catalog(self._credentials)

    def fetch_catalog(self, credentials: tuple[str, str] | None = None) -> CatalogSnapshot:
        """Fetches the catalog from Helix and writes it through to the cache.

        Raises:
            CatalogLoadError: If no credentials are available or the fetch fails.
        """
        credentials = credentials or self._credentials
        if credentials is None:
            raise CatalogLoadError("No Helix credentials configured")

        snapshot = self._client.get_global_badges(credentials)

        try:
            self._cache.replace_catalog(snapshot)
        except sqlite3.Error as exc:
            logger.warning("Could not write catalog to cache: %s", exc)

        self._snapshot = snapshot
        return snapshot

    def force_refresh(self) -> CatalogSnapshot:
        """Fetches the catalog remotely, ignoring the cache.

        On failure the previous catalog stays in place, in memory and in
        the cache.

        Raises:
            CatalogRefreshInProgressError: If another refresh is running.
            CatalogLoadError: If the remote fetch fails.
        """
        if not self._refresh_lock.acquire(blocking=False):
            raise CatalogRefreshInProgressError("A catalog refresh is already running")
        try:
            logger.info("Force refreshing catalog")
            return self.fetch_catalog(self._credentials)
        finally:
            self._refresh_lock.release()

    def badges(self) -> list[EnrichedBadge]:
        """Flattened per-version stubs of the current catalog."""
        snapshot = self._snapshot
        return snapshot.flatten() if snapshot is not None else []

    def cache_age_days(self) -> int | None:
        return self._cache.get_catalog_age_days()

    def is_stale(self, max_age_days: int) -> bool:
        """Whether the cached catalog is older than ``max_age_days``."""
        age = self.cache_age_days()
        return age is None or age > max_age_days
