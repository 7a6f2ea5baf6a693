"""BadgeBase scraper for per-badge metadata.

BadgeBase publishes one page per badge version at
``https://badgebase.co/badges/{set_id}-v{version_id}/``. The page lists the
date the badge was added, its usage statistics and a free-text "More Info
From Us" block that usually describes when the badge can be earned.
"""

from __future__ import annotations

import logging

import requests
from bs4 import BeautifulSoup, NavigableString, Tag

from badgeviewer.core.badge import BadgeMetadata
from badgeviewer.core.errors import MetadataFetchError
from badgeviewer.utils.date_utils import decode_html_entities

logger = logging.getLogger("badgeviewer.badgebase_api")

__all__ = ["BadgeBaseClient", "parse_badge_page"]

_DATE_LABEL = "Date of addition"
_USAGE_LABEL = "Usage Statistics"
_USAGE_LINK_TEXT = "View All Statistics"
_MORE_INFO_HEADING = "More Info From Us"


def _labelled_item(soup: BeautifulSoup, label: str) -> str | None:
    """Returns the text after ``label`` in the first list item containing it."""
    for item in soup.find_all("li"):
        text = item.get_text()
        if label in text:
            return text.split(label, 1)[1].strip()
    return None


def _text_with_timestamps(element: Tag) -> str:
    """Flattens an element to text, substituting converted timestamps.

    ``span.timezone-converter`` elements display a localized time; their
    ``data-original`` attribute holds the source timestamp, which is kept
    instead.
    """
    parts: list[str] = []
    for child in element.children:
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif isinstance(child, Tag):
            if child.name == "span" and "timezone-converter" in (child.get("class") or []):
                original = child.get("data-original")
                if original:
                    parts.append(original)
                    continue
            parts.append(_text_with_timestamps(child))
    return "".join(parts)


def _more_info(soup: BeautifulSoup) -> str | None:
    for heading in soup.find_all(["h2", "h6"]):
        if _MORE_INFO_HEADING not in heading.get_text():
            continue
        block = heading.find_next("div", class_="text")
        if block is not None:
            return _text_with_timestamps(block).strip()
    return None


def parse_badge_page(html: str, info_url: str = "") -> BadgeMetadata:
    """Extracts badge metadata from a BadgeBase page.

    Args:
        html: Raw page HTML.
        info_url: URL the page was fetched from.

    Returns:
        BadgeMetadata; fields missing from the page are None.
    """
    soup = BeautifulSoup(html, "html.parser")

    date_added = _labelled_item(soup, _DATE_LABEL)
    usage_stats = _labelled_item(soup, _USAGE_LABEL)
    if usage_stats is not None:
        usage_stats = usage_stats.replace(_USAGE_LINK_TEXT, "").strip()
    more_info = _more_info(soup)

    return BadgeMetadata(
        date_added=decode_html_entities(date_added) if date_added else date_added,
        usage_stats=usage_stats,
        availability_descriptor=decode_html_entities(more_info) if more_info else more_info,
        info_url=info_url,
    )


class BadgeBaseClient:
    """Fetches and parses BadgeBase badge pages."""

    BASE_URL = "https://badgebase.co/badges/"

    def __init__(self, timeout: int = 10) -> None:
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 BadgeViewer/1.0"}
        )

    def badge_url(self, set_id: str, version_id: str) -> str:
        return f"{self.BASE_URL}{set_id}-v{version_id}/"

    def get_badge_metadata(self, set_id: str, version_id: str) -> BadgeMetadata:
        """Fetches metadata for a single badge.

        Raises:
            MetadataFetchError: On network errors or a non-200 response.
        """
        key = f"{set_id}/{version_id}"
        url = self.badge_url(set_id, version_id)

        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("BadgeBase: network error for %s: %s", key, exc)
            raise MetadataFetchError(key, f"Network error: {exc}") from exc

        if response.status_code != 200:
            logger.warning("BadgeBase: unexpected status %d for %s", response.status_code, key)
            raise MetadataFetchError(key, f"BadgeBase returned status {response.status_code}")

        metadata = parse_badge_page(response.text, info_url=url)
        logger.debug("BadgeBase: parsed %s (added=%r)", key, metadata.date_added)
        return metadata
