from __future__ import annotations

from badgeviewer.services.badge_catalog_service import BadgeCatalogService
from badgeviewer.services.badge_store import BadgeStore
from badgeviewer.services.catalog_service import CatalogLoader
from badgeviewer.services.collection_service import CollectionTracker
from badgeviewer.services.metadata_service import BadgeMetadataService

__all__: list[str] = [
    "BadgeCatalogService",
    "BadgeMetadataService",
    "BadgeStore",
    "CatalogLoader",
    "CollectionTracker",
]
