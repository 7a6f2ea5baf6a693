# badgeviewer/core/badge.py

"""Badge catalog data model.

Defines the immutable records shared by every part of the engine: badge sets
and versions as delivered by the catalog endpoint, the metadata scraped from
the knowledge source, the enriched badge that downstream components operate
on, and the composite key that joins catalog, cache and ownership data.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any

__all__ = [
    "AvailabilityStatus",
    "AvailabilityWindow",
    "BadgeMetadata",
    "BadgeSet",
    "BadgeVersion",
    "CatalogSnapshot",
    "CompositeKey",
    "EnrichedBadge",
    "METADATA_KEY_PREFIX",
]

METADATA_KEY_PREFIX = "metadata:"


@dataclass(frozen=True, order=True)
class CompositeKey:
    """Unique identifier of a badge across catalog, cache and ownership data.

    Rendered canonically as ``"{set_id}/{version_id}"``. The metadata cache
    stores entries under ``"metadata:{set_id}-v{version_id}"``.
    """

    set_id: str
    version_id: str

    def __str__(self) -> str:
        return f"{self.set_id}/{self.version_id}"

    @property
    def cache_key(self) -> str:
        """Key under which this badge's metadata is cached."""
        return f"{METADATA_KEY_PREFIX}{self.set_id}-v{self.version_id}"

    @classmethod
    def parse(cls, value: str) -> CompositeKey | None:
        """Parses the canonical ``set/version`` rendering.

        Args:
            value: Canonical key string.

        Returns:
            The CompositeKey, or None if the string is malformed.
        """
        set_id, sep, version_id = value.strip().partition("/")
        if not sep or not set_id or not version_id:
            return None
        return cls(set_id, version_id)

    @classmethod
    def from_cache_key(cls, value: str) -> CompositeKey | None:
        """Parses a ``metadata:{set_id}-v{version_id}`` cache key."""
        if not value.startswith(METADATA_KEY_PREFIX):
            return None
        set_id, sep, version_id = value[len(METADATA_KEY_PREFIX) :].rpartition("-v")
        if not sep or not set_id or not version_id:
            return None
        return cls(set_id, version_id)


@dataclass(frozen=True)
class BadgeVersion:
    """One specific variant within a badge set."""

    version_id: str
    image_url_1x: str = ""
    image_url_2x: str = ""
    image_url_4x: str = ""
    title: str = ""
    description: str = ""
    click_action: str | None = None
    click_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BadgeVersion:
        """Builds a version from a catalog payload entry (``id`` is the version id)."""
        return cls(
            version_id=str(data.get("id", data.get("version_id", ""))),
            image_url_1x=data.get("image_url_1x") or "",
            image_url_2x=data.get("image_url_2x") or "",
            image_url_4x=data.get("image_url_4x") or "",
            title=data.get("title") or "",
            description=data.get("description") or "",
            click_action=data.get("click_action"),
            click_url=data.get("click_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializes back to the catalog payload shape."""
        return {
            "id": self.version_id,
            "image_url_1x": self.image_url_1x,
            "image_url_2x": self.image_url_2x,
            "image_url_4x": self.image_url_4x,
            "title": self.title,
            "description": self.description,
            "click_action": self.click_action,
            "click_url": self.click_url,
        }


@dataclass(frozen=True)
class BadgeSet:
    """A named category of badges (e.g. a seasonal event or a role)."""

    set_id: str
    versions: tuple[BadgeVersion, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BadgeSet:
        return cls(
            set_id=str(data["set_id"]),
            versions=tuple(BadgeVersion.from_dict(v) for v in data.get("versions") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"set_id": self.set_id, "versions": [v.to_dict() for v in self.versions]}


@dataclass(frozen=True)
class BadgeMetadata:
    """Knowledge-source metadata for a single badge.

    All text fields are free-form descriptors exactly as scraped.

    Attributes:
        date_added: When the badge was introduced (e.g. "12 November 2025").
        usage_stats: Usage text (e.g. "1,234 users seen with this badge").
        availability_descriptor: Text describing when the badge can be earned.
        info_url: Knowledge-source page for the badge.
        position: Ordinal hint from the cache (lower = newer).
    """

    date_added: str | None = None
    usage_stats: str | None = None
    availability_descriptor: str | None = None
    info_url: str = ""
    position: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], position: int | None = None) -> BadgeMetadata:
        """Builds metadata from a cache payload.

        Accepts the legacy ``more_info`` name for the availability descriptor.
        """
        descriptor = data.get("availability_descriptor")
        if descriptor is None:
            descriptor = data.get("more_info")
        return cls(
            date_added=data.get("date_added"),
            usage_stats=data.get("usage_stats"),
            availability_descriptor=descriptor,
            info_url=data.get("info_url") or "",
            position=position if position is not None else data.get("position"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializes the cacheable fields (position is stored separately)."""
        return {
            "date_added": self.date_added,
            "usage_stats": self.usage_stats,
            "availability_descriptor": self.availability_descriptor,
            "info_url": self.info_url,
        }

    def merged_with(self, other: BadgeMetadata) -> BadgeMetadata:
        """Returns a copy updated with every field that is set on ``other``.

        Fields that are None (or an empty info_url) on ``other`` keep their
        current value, so two writers that fill different fields of the same
        badge never erase each other's data.
        """
        updates = {}
        for f in fields(other):
            value = getattr(other, f.name)
            if value is None or (f.name == "info_url" and not value):
                continue
            updates[f.name] = value
        return replace(self, **updates)


@dataclass(frozen=True)
class EnrichedBadge:
    """A badge version tagged with its set and (optionally) its metadata."""

    set_id: str
    version: BadgeVersion
    metadata: BadgeMetadata | None = None

    @property
    def key(self) -> CompositeKey:
        return CompositeKey(self.set_id, self.version.version_id)

    @property
    def title(self) -> str:
        return self.version.title

    @property
    def position(self) -> int | None:
        return self.metadata.position if self.metadata else None


@dataclass(frozen=True)
class CatalogSnapshot:
    """The complete badge catalog as of one successful load."""

    sets: tuple[BadgeSet, ...] = ()
    fetched_at: datetime | None = None

    @classmethod
    def from_response(cls, payload: dict[str, Any], fetched_at: datetime | None = None) -> CatalogSnapshot:
        """Builds a snapshot from a ``{"data": [BadgeSet, ...]}`` response body.

        Raises:
            KeyError: If a set entry has no ``set_id``.
            TypeError: If the payload is not shaped like a catalog response.
        """
        return cls(
            sets=tuple(BadgeSet.from_dict(entry) for entry in payload.get("data") or []),
            fetched_at=fetched_at,
        )

    def to_response(self) -> dict[str, Any]:
        return {"data": [s.to_dict() for s in self.sets]}

    @property
    def is_empty(self) -> bool:
        return not self.sets

    def flatten(self) -> list[EnrichedBadge]:
        """Flattens every set into per-version stubs without metadata."""
        return [
            EnrichedBadge(set_id=badge_set.set_id, version=version)
            for badge_set in self.sets
            for version in badge_set.versions
        ]

    @property
    def version_count(self) -> int:
        return sum(len(s.versions) for s in self.sets)


@dataclass(frozen=True)
class AvailabilityWindow:
    """Time range during which a time-limited badge can be earned.

    Both bounds are timezone-aware and ``start <= end``.
    """

    start: datetime
    end: datetime


class AvailabilityStatus(Enum):
    """Temporal status of a badge relative to a point in time."""

    AVAILABLE = "available"
    COMING_SOON = "coming_soon"
    EXPIRED = "expired"
    UNKNOWN = "unknown"
