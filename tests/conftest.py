# tests/conftest.py
import os
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

# Ensure Qt can run headless (CI runners have no display server)
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication

from badgeviewer.core.badge import BadgeMetadata, BadgeSet, BadgeVersion, CatalogSnapshot, EnrichedBadge


@pytest.fixture(scope="session")
def qapp():
    """QApplication instance for all thread and signal tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def database(tmp_path):
    """Badge cache Database using a temp file (schema loaded from SQL)."""
    from badgeviewer.core.db import Database

    db = Database(tmp_path / "test_badges.db")
    yield db
    db.close()


def make_badge(
    set_id: str,
    version_id: str = "1",
    date_added: str | None = None,
    usage_stats: str | None = None,
    availability: str | None = None,
    position: int | None = None,
    with_metadata: bool = True,
) -> EnrichedBadge:
    """Builds an EnrichedBadge with optional metadata."""
    metadata = None
    if with_metadata:
        metadata = BadgeMetadata(
            date_added=date_added,
            usage_stats=usage_stats,
            availability_descriptor=availability,
            position=position,
        )
    return EnrichedBadge(
        set_id=set_id,
        version=BadgeVersion(version_id=version_id, title=f"{set_id} {version_id}"),
        metadata=metadata,
    )


@pytest.fixture
def badge_factory():
    return make_badge


@pytest.fixture
def sample_snapshot() -> CatalogSnapshot:
    """Two badge sets with three versions in total."""
    return CatalogSnapshot(
        sets=(
            BadgeSet(
                "glitchcon2020",
                (
                    BadgeVersion("1", "https://x/1x.png", "https://x/2x.png", "https://x/4x.png", "GlitchCon 2020"),
                ),
            ),
            BadgeSet(
                "twitch-recap-2023",
                (
                    BadgeVersion("1", title="Recap 2023", click_action="visit_url", click_url="https://twitch.tv"),
                    BadgeVersion("2", title="Recap 2023 (gold)"),
                ),
            ),
        ),
        fetched_at=datetime(2025, 12, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def helix_payload() -> dict:
    """Minimal Helix chat/badges/global response body."""
    return {
        "data": [
            {
                "set_id": "bits",
                "versions": [
                    {
                        "id": "1",
                        "image_url_1x": "https://static-cdn.jtvnw.net/badges/v1/a/1",
                        "image_url_2x": "https://static-cdn.jtvnw.net/badges/v1/a/2",
                        "image_url_4x": "https://static-cdn.jtvnw.net/badges/v1/a/3",
                        "title": "cheer 1",
                        "description": "cheer 1",
                        "click_action": "visit_url",
                        "click_url": "https://bits.twitch.tv",
                    }
                ],
            },
            {
                "set_id": "minecraft-15th-anniversary-celebration",
                "versions": [
                    {
                        "id": "1",
                        "image_url_1x": "https://static-cdn.jtvnw.net/badges/v1/b/1",
                        "image_url_2x": "https://static-cdn.jtvnw.net/badges/v1/b/2",
                        "image_url_4x": "https://static-cdn.jtvnw.net/badges/v1/b/3",
                        "title": "Minecraft 15th Anniversary Celebration",
                        "description": "Watched a Minecraft stream",
                        "click_action": None,
                        "click_url": None,
                    }
                ],
            },
        ]
    }


@pytest.fixture
def mock_config():
    """Mock the global config object from badgeviewer.config.

    Keeps the engine facade from reading real credentials or settings.
    """
    fake_config = MagicMock()
    fake_config.get_credentials.return_value = ("client-id", "token")
    fake_config.REQUEST_TIMEOUT = 5
    fake_config.METADATA_EXPIRY_DAYS = 0
    fake_config.CATALOG_STALE_DAYS = 7
    fake_config.TWITCH_USER_ID = None
    with patch("badgeviewer.services.badge_catalog_service.config", fake_config):
        yield fake_config
