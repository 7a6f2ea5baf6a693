"""Twitch Helix client for the global badge catalog.

Fetches every global badge set with its versions from the Helix
``chat/badges/global`` endpoint. Authentication is a plain client ID plus
bearer token pair supplied by the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import requests

from badgeviewer.core.badge import CatalogSnapshot
from badgeviewer.core.errors import CatalogLoadError

logger = logging.getLogger("badgeviewer.helix_api")

__all__ = ["HelixClient"]


class HelixClient:
    """Client for the Helix global badges endpoint."""

    GLOBAL_BADGES_URL = "https://api.twitch.tv/helix/chat/badges/global"

    def __init__(self, timeout: int = 10) -> None:
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": "BadgeViewer/1.0"})

    def get_global_badges(self, credentials: tuple[str, str]) -> CatalogSnapshot:
        """Fetches the complete global badge catalog.

        Args:
            credentials: (client_id, access_token) pair.

        Returns:
            The catalog, stamped with the current UTC time.

        Raises:
            CatalogLoadError: On network errors, non-200 responses or a
                malformed payload.
        """
        client_id, token = credentials
        headers = {"Client-Id": client_id, "Authorization": f"Bearer {token}"}

        try:
            response = self._session.get(self.GLOBAL_BADGES_URL, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("Helix: network error fetching global badges: %s", exc)
            raise CatalogLoadError(f"Network error: {exc}") from exc

        if response.status_code != 200:
            logger.warning("Helix: unexpected status %d fetching global badges", response.status_code)
            raise CatalogLoadError(f"Helix returned status {response.status_code}")

        try:
            snapshot = CatalogSnapshot.from_response(response.json(), fetched_at=datetime.now(timezone.utc))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Helix: malformed global badges payload: %s", exc)
            raise CatalogLoadError(f"Malformed catalog payload: {exc}") from exc

        logger.info("Helix: fetched %d badge sets (%d versions)", len(snapshot.sets), snapshot.version_count)
        return snapshot
