"""Background enrichment of badges with BadgeBase metadata.

Provides MetadataEnrichmentThread, which first fills every badge it can
from one batch read of the metadata cache and announces those hits before
any remote request starts. The remaining badges (all of them when forcing)
are fetched in concurrent batches and merged into the shared BadgeStore as
each batch completes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from PyQt6.QtCore import pyqtSignal

from badgeviewer.core.badge import CompositeKey, EnrichedBadge
from badgeviewer.services.enrichment.base_enrichment_thread import BaseEnrichmentThread

if TYPE_CHECKING:
    from badgeviewer.core.db import Database
    from badgeviewer.services.badge_store import BadgeStore
    from badgeviewer.services.metadata_service import BadgeMetadataService

logger = logging.getLogger("badgeviewer.enrichment.metadata")

__all__ = ["BadgeMetadataThread", "MetadataEnrichmentThread"]


class BadgeMetadataThread(BaseEnrichmentThread):
    """Shared fetch-and-merge logic for threads that fill the BadgeStore.

    Signals:
        metadata_updated: Emitted with the list of CompositeKeys whose
            metadata changed in the store.
    """

    metadata_updated = pyqtSignal(list)

    def __init__(self, parent: Any = None) -> None:
        super().__init__(parent)
        self._store: BadgeStore | None = None
        self._cache: Database | None = None
        self._metadata_service: BadgeMetadataService | None = None

    def _process_item(self, item: Any) -> bool:
        """Fetches metadata for one CompositeKey and merges it into the store."""
        key: CompositeKey = item
        metadata = self._metadata_service.fetch_metadata(key.set_id, key.version_id, force=self._force_refresh)
        return self._store.merge_metadata(key, metadata, replace_existing=self._force_refresh) is not None

    def _on_batch_finished(self, succeeded: list) -> None:
        if succeeded:
            self.metadata_updated.emit(list(succeeded))

    def _format_progress(self, item: Any, current: int, total: int) -> str:
        return f"Fetching badge metadata: {item} ({current}/{total})"


class MetadataEnrichmentThread(BadgeMetadataThread):
    """Background thread enriching a selection of badges.

    Configure with configure() before starting.
    """

    def __init__(self, parent: Any = None) -> None:
        super().__init__(parent)
        self._badges: list[EnrichedBadge] = []
        self._cache_hits: int = 0

    @property
    def cache_hits(self) -> int:
        """Number of badges filled from the batch cache read in the last run."""
        return self._cache_hits

    def configure(
        self,
        badges: list[EnrichedBadge],
        store: BadgeStore,
        cache: Database,
        metadata_service: BadgeMetadataService,
        force_refresh: bool = False,
    ) -> None:
        """Configures the thread for metadata enrichment.

        Args:
            badges: Badges to enrich.
            store: Shared store receiving the metadata.
            cache: Database providing get_all_cached_metadata().
            metadata_service: Per-badge fetcher with cache write-through.
            force_refresh: If True, treat every badge as a cache miss.
        """
        self._badges = badges
        self._store = store
        self._cache = cache
        self._metadata_service = metadata_service
        self._force_refresh = force_refresh

    def _get_items(self) -> list:
        """Applies cache hits and returns the keys that still need a fetch."""
        keys = [badge.key for badge in self._badges]
        self._cache_hits = 0
        if self._force_refresh:
            return keys

        try:
            cached = self._cache.get_all_cached_metadata("badge")
        except Exception as exc:
            logger.warning("Batch metadata cache read failed, fetching all %d badges: %s", len(keys), exc)
            return keys

        hits: list[CompositeKey] = []
        misses: list[CompositeKey] = []
        for key in keys:
            entry = cached.get(key.cache_key)
            if entry is None:
                misses.append(key)
            elif self._store.merge_metadata(key, entry.data) is not None:
                hits.append(key)

        self._cache_hits = len(hits)
        logger.info("Metadata cache: %d hits, %d misses", len(hits), len(misses))
        if hits:
            self.metadata_updated.emit(hits)
        return misses
