"""Enrichment services for badge metadata from external sources."""

from __future__ import annotations

from badgeviewer.services.enrichment.base_enrichment_thread import BATCH_SIZE, BaseEnrichmentThread
from badgeviewer.services.enrichment.metadata_enrichment_service import MetadataEnrichmentThread
from badgeviewer.services.enrichment.missing_metadata_service import MissingMetadataThread
from badgeviewer.services.enrichment.request_coalescer import RequestCoalescer

__all__: list[str] = [
    "BATCH_SIZE",
    "BaseEnrichmentThread",
    "MetadataEnrichmentThread",
    "MissingMetadataThread",
    "RequestCoalescer",
]
