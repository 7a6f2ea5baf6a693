"""Database data models.

Row-level records returned by the cache query mixins.
"""

from __future__ import annotations

from dataclasses import dataclass

from badgeviewer.core.badge import BadgeMetadata

__all__ = ["CacheStats", "CachedMetadataEntry"]


@dataclass(frozen=True)
class CachedMetadataEntry:
    """One cached metadata payload plus its ordinal position hint."""

    data: BadgeMetadata
    position: int | None = None


@dataclass(frozen=True)
class CacheStats:
    """Summary of the metadata cache contents."""

    total_entries: int
    positioned_entries: int
    expiring_entries: int
    catalog_versions: int
    missing_entries: int
