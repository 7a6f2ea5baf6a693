# badgeviewer/services/metadata_service.py

"""Single-badge metadata lookup with cache write-through.

Checks the metadata cache, falls back to scraping BadgeBase and writes the
result back. Concurrent requests for the same badge share one fetch.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from badgeviewer.core.badge import BadgeMetadata, CompositeKey
from badgeviewer.services.enrichment.request_coalescer import RequestCoalescer

if TYPE_CHECKING:
    from badgeviewer.core.db import Database
    from badgeviewer.integrations.badgebase_api import BadgeBaseClient

logger = logging.getLogger("badgeviewer.metadata_service")

__all__ = ["BadgeMetadataService"]


class BadgeMetadataService:
    """Fetches badge metadata from cache or BadgeBase.

    Args:
        cache: Database providing the metadata cache mixin.
        client: BadgeBase scraper.
        expiry_days: Lifetime of written cache entries (0 = never expires).
        coalescer: Pending-request table shared by all callers.
    """

    def __init__(
        self,
        cache: Database,
        client: BadgeBaseClient,
        expiry_days: int = 0,
        coalescer: RequestCoalescer | None = None,
    ) -> None:
        self._cache = cache
        self._client = client
        self._expiry_days = expiry_days
        self._coalescer = coalescer or RequestCoalescer()

    @property
    def coalescer(self) -> RequestCoalescer:
        return self._coalescer

    def fetch_metadata(self, set_id: str, version_id: str, force: bool = False) -> BadgeMetadata:
        """Returns metadata for one badge.

        Args:
            set_id: Badge set ID.
            version_id: Badge version ID.
            force: Skip the cache lookup and always scrape.

        Returns:
            The badge metadata.

        Raises:
            MetadataFetchError: If the badge page could not be fetched.
        """
        key = CompositeKey(set_id, version_id)
        # Forced requests never join a cache-reading one
        return self._coalescer.run((key, force), self._fetch, key, force)

    def _fetch(self, key: CompositeKey, force: bool) -> BadgeMetadata:
        if not force:
            cached = self._cache.get_cached_metadata(key.set_id, key.version_id)
            if cached is not None:
                logger.debug("Metadata cache hit for %s", key)
                return cached.data

        metadata = self._client.get_badge_metadata(key.set_id, key.version_id)

        try:
            self._cache.upsert_badge_metadata(key.set_id, key.version_id, metadata, expiry_days=self._expiry_days)
        except sqlite3.Error as exc:
            logger.warning("Could not cache metadata for %s: %s", key, exc)

        return metadata
