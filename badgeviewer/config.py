"""
Configuration - paths, remote credentials and cache policy.
Loads overrides from a .env file and from data/settings.json.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger("badgeviewer.config")


__all__ = ["Config", "config"]


@dataclass
class Config:
    """
    Central configuration handling for the badge engine.
    Manages paths, Helix credentials and cache lifetimes.
    """

    APP_DIR: Path = Path(__file__).parent.parent
    DATA_DIR: Path = APP_DIR / "data"
    CACHE_DIR: Path = DATA_DIR / "cache"
    DB_PATH: Path = CACHE_DIR / "badges.db"
    LOG_FILE: Path = DATA_DIR / "logs" / "badgeviewer.log"

    SETTINGS_FILE: Path = DATA_DIR / "settings.json"

    # Helix credentials
    TWITCH_CLIENT_ID: str = ""
    TWITCH_ACCESS_TOKEN: str | None = None  # Runtime-only, NOT persisted to JSON

    # Cache policy
    METADATA_EXPIRY_DAYS: int = 0  # 0 = never expires
    CATALOG_STALE_DAYS: int = 7
    REQUEST_TIMEOUT: int = 10

    # Viewer whose collection is tracked
    TWITCH_USER_ID: str | None = None

    def __post_init__(self):
        """Initialize directories and load settings after instantiation."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.CACHE_DIR.mkdir(parents=True, exist_ok=True)

        load_dotenv()
        env_client_id = os.getenv("TWITCH_CLIENT_ID")
        if env_client_id:
            self.TWITCH_CLIENT_ID = env_client_id
        env_token = os.getenv("TWITCH_ACCESS_TOKEN")
        if env_token:
            self.TWITCH_ACCESS_TOKEN = env_token

        self._load_settings()

    def _load_settings(self) -> None:
        """Load settings from JSON file."""
        if not self.SETTINGS_FILE.exists():
            return

        try:
            with open(self.SETTINGS_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)

                self.TWITCH_CLIENT_ID = data.get("twitch_client_id") or self.TWITCH_CLIENT_ID
                self.TWITCH_USER_ID = data.get("twitch_user_id", self.TWITCH_USER_ID)
                self.METADATA_EXPIRY_DAYS = data.get("metadata_expiry_days", self.METADATA_EXPIRY_DAYS)
                self.CATALOG_STALE_DAYS = data.get("catalog_stale_days", self.CATALOG_STALE_DAYS)
                self.REQUEST_TIMEOUT = data.get("request_timeout", self.REQUEST_TIMEOUT)

        except (OSError, json.JSONDecodeError) as e:
            logger.error("Could not load settings from %s: %s", self.SETTINGS_FILE, e)

    def save(self) -> None:
        """Save current configuration to JSON file."""
        data = {
            "twitch_client_id": self.TWITCH_CLIENT_ID,
            "twitch_user_id": self.TWITCH_USER_ID,
            "metadata_expiry_days": self.METADATA_EXPIRY_DAYS,
            "catalog_stale_days": self.CATALOG_STALE_DAYS,
            "request_timeout": self.REQUEST_TIMEOUT,
        }

        try:
            with open(self.SETTINGS_FILE, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error("Could not save settings to %s: %s", self.SETTINGS_FILE, e)

    def get_credentials(self) -> tuple[str, str] | None:
        """Returns the (client_id, token) pair for Helix, or None if incomplete."""
        if not self.TWITCH_CLIENT_ID or not self.TWITCH_ACCESS_TOKEN:
            return None
        return self.TWITCH_CLIENT_ID, self.TWITCH_ACCESS_TOKEN


# Global instance
config = Config()
