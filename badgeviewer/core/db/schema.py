"""Database schema creation and migrations.

Handles initial schema creation from SQL file and version migrations.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

logger = logging.getLogger("badgeviewer.database")

__all__ = ["SchemaMixin"]


class SchemaMixin:
    """Mixin providing schema creation and migration logic.

    Requires ConnectionBase attributes: conn, SCHEMA_VERSION.
    """

    def _ensure_schema(self) -> None:
        """Create or migrate database schema."""
        current_version = self._get_schema_version()

        if current_version == 0:
            self._create_schema()
            self._set_schema_version(self.SCHEMA_VERSION, "Initial schema")
        elif current_version < self.SCHEMA_VERSION:
            self._migrate(current_version, self.SCHEMA_VERSION)

    def _get_schema_version(self) -> int:
        """Get current database schema version."""
        try:
            cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
            result = cursor.fetchone()
            return result[0] if result[0] is not None else 0
        except sqlite3.OperationalError:
            return 0

    def _set_schema_version(self, version: int, description: str) -> None:
        self.conn.execute(
            """
            INSERT OR REPLACE INTO schema_version (version, applied_at, description)
            VALUES (?, ?, ?)
            """,
            (version, int(time.time()), description),
        )
        self.conn.commit()

    def _create_schema(self) -> None:
        """Create initial database schema from SQL file."""
        schema_path = Path(__file__).parent / "schema.sql"
        try:
            schema_sql = schema_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.error("Schema file not found: %s", schema_path)
            raise

        try:
            self.conn.executescript(schema_sql)
            self.conn.commit()
            logger.info("Database schema created (v%d)", self.SCHEMA_VERSION)
        except sqlite3.Error as e:
            logger.error("Could not create database schema: %s", e)
            raise

    def _migrate(self, from_version: int, to_version: int) -> None:
        """Migrate database schema.

        Args:
            from_version: Current schema version.
            to_version: Target schema version.
        """
        logger.info("Migrating database from version %d to %d", from_version, to_version)

        if from_version < 2:
            self._migrate_to_v2()
            self._set_schema_version(2, "Metadata position hints")

    def _migrate_to_v2(self) -> None:
        """Migrate to schema v2: position hint column on the metadata cache."""
        try:
            self.conn.execute("ALTER TABLE badge_metadata_cache ADD COLUMN position INTEGER")
        except sqlite3.OperationalError:
            pass  # Column already exists

        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_metadata_position ON badge_metadata_cache(position)")
        self.conn.commit()
        logger.info("Migrated to schema v2: metadata position hints")
