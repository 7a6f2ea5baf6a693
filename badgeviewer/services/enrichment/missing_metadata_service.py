"""Background discovery of badges that have never been enriched.

Provides MissingMetadataThread, which asks the cache for catalog badges
without any metadata entry and fetches exactly those. It writes into the
same BadgeStore as MetadataEnrichmentThread and can run alongside it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from PyQt6.QtCore import pyqtSignal

from badgeviewer.core.badge import CompositeKey
from badgeviewer.services.enrichment.metadata_enrichment_service import BadgeMetadataThread

if TYPE_CHECKING:
    from badgeviewer.core.db import Database
    from badgeviewer.services.badge_store import BadgeStore
    from badgeviewer.services.metadata_service import BadgeMetadataService

logger = logging.getLogger("badgeviewer.enrichment.missing")

__all__ = ["MissingMetadataThread"]


class MissingMetadataThread(BadgeMetadataThread):
    """Background thread fetching metadata for newly added badges.

    Signals:
        missing_discovered: Emitted once with the list of CompositeKeys
            found without a cache entry, before any fetch starts.
    """

    missing_discovered = pyqtSignal(list)

    def __init__(self, parent: Any = None) -> None:
        super().__init__(parent)
        self._discovered: list[CompositeKey] = []

    @property
    def discovered(self) -> list[CompositeKey]:
        """Keys found missing in the last run."""
        return list(self._discovered)

    def configure(self, store: BadgeStore, cache: Database, metadata_service: BadgeMetadataService) -> None:
        self._store = store
        self._cache = cache
        self._metadata_service = metadata_service

    def _get_items(self) -> list:
        rows = self._cache.get_badges_missing_metadata()
        self._discovered = [CompositeKey(set_id, version_id) for set_id, version_id in rows]
        logger.info("Found %d badges without metadata", len(self._discovered))
        self.missing_discovered.emit(list(self._discovered))
        return list(self._discovered)
