"""Exception hierarchy for the badge catalog engine."""

from __future__ import annotations

__all__ = [
    "BadgeEngineError",
    "CatalogLoadError",
    "CatalogRefreshInProgressError",
    "MetadataFetchError",
]


class BadgeEngineError(Exception):
    """Base class for all badge engine errors."""


class CatalogLoadError(BadgeEngineError):
    """The badge catalog could not be loaded from cache or remote.

    Always retryable: the previously held catalog (if any) is untouched.
    """


class CatalogRefreshInProgressError(BadgeEngineError):
    """A force refresh was requested while another one is still running."""


class MetadataFetchError(BadgeEngineError):
    """Metadata for a single badge could not be fetched or parsed.

    Attributes:
        key: Canonical composite key of the affected badge.
    """

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
