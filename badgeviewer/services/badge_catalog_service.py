# badgeviewer/services/badge_catalog_service.py

"""Engine facade wiring the badge catalog components together.

Owns the cache database, the catalog loader, the shared badge store, the
metadata service and the collection tracker, and exposes the operations a
host application needs: load or refresh the catalog, start enrichment
passes, and read sorted, classified and summarized views of the store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from badgeviewer.config import config
from badgeviewer.core.badge import AvailabilityStatus, CompositeKey, EnrichedBadge
from badgeviewer.core.db import CacheStats, Database
from badgeviewer.core.errors import CatalogLoadError
from badgeviewer.integrations.badgebase_api import BadgeBaseClient
from badgeviewer.integrations.helix_api import HelixClient
from badgeviewer.integrations.ownership_provider import BadgeStringOwnershipProvider
from badgeviewer.services.availability_service import status_for
from badgeviewer.services.badge_store import BadgeStore
from badgeviewer.services.catalog_service import CatalogLoader
from badgeviewer.services.collection_service import CollectionSummary, CollectionTracker, OwnershipProvider
from badgeviewer.services.enrichment.metadata_enrichment_service import MetadataEnrichmentThread
from badgeviewer.services.enrichment.missing_metadata_service import MissingMetadataThread
from badgeviewer.services.metadata_service import BadgeMetadataService
from badgeviewer.services.sort_service import SortPolicy, sort_badges

logger = logging.getLogger("badgeviewer.badge_catalog_service")

__all__ = ["BadgeCatalogService"]


class BadgeCatalogService:
    """Facade over the badge catalog and attainability engine.

    Every collaborator can be injected; anything omitted is built from the
    global config.

    Args:
        db_path: SQLite cache location (defaults to config.DB_PATH).
        credentials: Helix (client_id, access_token) pair.
        ownership_provider: Source of owned badge keys.
        cache: Pre-built Database, used instead of opening ``db_path``.
        helix_client: Catalog client.
        badgebase_client: Metadata scraper.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        credentials: tuple[str, str] | None = None,
        ownership_provider: OwnershipProvider | None = None,
        cache: Database | None = None,
        helix_client: HelixClient | None = None,
        badgebase_client: BadgeBaseClient | None = None,
    ) -> None:
        self._db = cache if cache is not None else Database(db_path or config.DB_PATH)
        self.loader = CatalogLoader(
            self._db,
            helix_client or HelixClient(timeout=config.REQUEST_TIMEOUT),
            credentials or config.get_credentials(),
        )
        self.store = BadgeStore()
        self.metadata_service = BadgeMetadataService(
            self._db,
            badgebase_client or BadgeBaseClient(timeout=config.REQUEST_TIMEOUT),
            expiry_days=config.METADATA_EXPIRY_DAYS,
        )
        self.ownership_provider = ownership_provider or BadgeStringOwnershipProvider()
        self.tracker = CollectionTracker(self.ownership_provider)

    @property
    def database(self) -> Database:
        return self._db

    # ── Catalog ──────────────────────────────────────────

    def load_catalog(self, force_refresh: bool = False) -> list[EnrichedBadge]:
        """Loads (or force refreshes) the catalog and resets the store.

        A cached catalog older than config.CATALOG_STALE_DAYS is refreshed;
        if that refresh fails the cached copy is used. Metadata already held
        for badges that survive a refresh is kept.

        Raises:
            CatalogLoadError: If the catalog could not be loaded.
            CatalogRefreshInProgressError: If a refresh is already running.
        """
        if force_refresh:
            self.loader.force_refresh()
        elif self._catalog_is_stale():
            logger.info("Cached catalog is older than %d days, refreshing", config.CATALOG_STALE_DAYS)
            try:
                self.loader.force_refresh()
            except CatalogLoadError as e:
                logger.warning("Could not refresh stale catalog, using cached copy: %s", e)
                self.loader.load()
        else:
            self.loader.load()
        self.store.replace_all(self.loader.badges())
        return self.store.snapshot()

    def _catalog_is_stale(self) -> bool:
        if self.loader.cache_age_days() is None:
            return False
        return self.loader.is_stale(config.CATALOG_STALE_DAYS)

    # ── Enrichment ───────────────────────────────────────

    def create_enrichment_thread(
        self,
        badges: list[EnrichedBadge] | None = None,
        force_refresh: bool = False,
        parent: Any = None,
    ) -> MetadataEnrichmentThread:
        """Builds a configured enrichment thread; call start() to run it."""
        thread = MetadataEnrichmentThread(parent)
        thread.configure(
            badges if badges is not None else self.store.snapshot(),
            self.store,
            self._db,
            self.metadata_service,
            force_refresh=force_refresh,
        )
        return thread

    def create_missing_metadata_thread(self, parent: Any = None) -> MissingMetadataThread:
        thread = MissingMetadataThread(parent)
        thread.configure(self.store, self._db, self.metadata_service)
        return thread

    def enrich(self, badges: list[EnrichedBadge] | None = None, force_refresh: bool = False) -> None:
        """Runs an enrichment pass on the calling thread."""
        self.create_enrichment_thread(badges, force_refresh).run()

    def discover_missing(self) -> list[CompositeKey]:
        """Fetches metadata for never-enriched badges on the calling thread.

        Returns:
            The keys that were found without metadata.
        """
        thread = self.create_missing_metadata_thread()
        thread.run()
        return thread.discovered

    def assign_positions(self) -> int:
        """Recomputes cached position hints and reloads them into the store."""
        count = self._db.assign_metadata_positions()
        for cache_key, entry in self._db.get_all_cached_metadata("badge").items():
            key = CompositeKey.from_cache_key(cache_key)
            if key is not None and entry.position is not None:
                self.store.merge_metadata(key, entry.data)
        return count

    # ── Views ────────────────────────────────────────────

    def sorted_badges(
        self, policy: SortPolicy | str = SortPolicy.NEWEST_ADDED, now: datetime | None = None
    ) -> list[EnrichedBadge]:
        if isinstance(policy, str):
            policy = SortPolicy.from_value(policy)
        return sort_badges(self.store.snapshot(), policy, now)

    def status_of(self, key: CompositeKey, now: datetime | None = None) -> AvailabilityStatus:
        badge = self.store.get(key)
        if badge is None:
            return AvailabilityStatus.UNKNOWN
        return status_for(badge, now)

    def summarize_collection(self, user_id: str | None = None) -> CollectionSummary:
        """Summarizes a viewer's collection (defaults to config.TWITCH_USER_ID).

        Raises:
            ValueError: If no user id is given or configured.
        """
        user_id = user_id or config.TWITCH_USER_ID
        if not user_id:
            raise ValueError("No Twitch user id given or configured")
        return self.tracker.summarize(self.store.snapshot(), user_id)

    # ── Maintenance ──────────────────────────────────────

    def cache_stats(self) -> CacheStats:
        return self._db.get_metadata_cache_stats()

    def cleanup_cache(self) -> int:
        return self._db.cleanup_expired_metadata()

    def clear_metadata_cache(self) -> int:
        return self._db.clear_metadata_cache()

    def close(self) -> None:
        self._db.close()
