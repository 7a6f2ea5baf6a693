"""Unit tests for the badge cache Database.

Tests cover:
- Schema creation
- Catalog snapshot storage and atomic replacement
- Metadata cache reads, writes, expiry and position hints
- Missing-metadata discovery
"""

from __future__ import annotations

import sqlite3
import time

import pytest

from badgeviewer.core.badge import BadgeMetadata, BadgeSet, BadgeVersion, CatalogSnapshot
from badgeviewer.core.db import Database


class TestDatabaseSchema:
    """Tests for schema creation and versioning."""

    def test_schema_creation_succeeds(self, database: Database) -> None:
        assert database._get_schema_version() == Database.SCHEMA_VERSION

    def test_reopen_keeps_schema(self, tmp_path) -> None:
        path = tmp_path / "reopen.db"
        Database(path).close()
        db = Database(path)
        assert db._get_schema_version() == Database.SCHEMA_VERSION
        db.close()

    def test_migrates_v1_cache(self, tmp_path) -> None:
        path = tmp_path / "v1.db"
        conn = sqlite3.connect(path)
        conn.executescript(
            """
            CREATE TABLE schema_version (version INTEGER PRIMARY KEY, applied_at INTEGER NOT NULL, description TEXT);
            INSERT INTO schema_version VALUES (1, 0, 'Initial schema');
            CREATE TABLE badge_metadata_cache (
                cache_key TEXT PRIMARY KEY, cache_type TEXT NOT NULL DEFAULT 'badge',
                set_id TEXT NOT NULL, version_id TEXT NOT NULL, data TEXT NOT NULL,
                source TEXT DEFAULT 'badgebase', cached_at INTEGER NOT NULL,
                expiry_days INTEGER NOT NULL DEFAULT 0
            );
            """
        )
        conn.commit()
        conn.close()

        db = Database(path)
        columns = {row[1] for row in db.conn.execute("PRAGMA table_info(badge_metadata_cache)")}
        assert "position" in columns
        assert db._get_schema_version() == 2
        db.close()

    def test_empty_cache(self, database: Database) -> None:
        assert database.get_cached_catalog() is None
        assert database.get_catalog_age_days() is None
        assert database.get_all_cached_metadata() == {}


class TestCatalogQueries:
    """Tests for catalog snapshot persistence."""

    def test_replace_and_read_back(self, database: Database, sample_snapshot: CatalogSnapshot) -> None:
        assert database.replace_catalog(sample_snapshot) == 3
        cached = database.get_cached_catalog()
        assert cached == sample_snapshot

    def test_replace_discards_previous_catalog(self, database: Database, sample_snapshot: CatalogSnapshot) -> None:
        database.replace_catalog(sample_snapshot)
        newer = CatalogSnapshot(
            sets=(BadgeSet("premium", (BadgeVersion("1"),)),), fetched_at=sample_snapshot.fetched_at
        )
        database.replace_catalog(newer)
        assert [str(b.key) for b in database.get_cached_catalog().flatten()] == ["premium/1"]

    def test_failed_replace_keeps_previous_catalog(
        self, database: Database, sample_snapshot: CatalogSnapshot
    ) -> None:
        database.replace_catalog(sample_snapshot)
        # NULL set_id violates NOT NULL after the old rows were deleted
        broken = CatalogSnapshot(sets=(BadgeSet(None, (BadgeVersion("1"),)),), fetched_at=sample_snapshot.fetched_at)
        with pytest.raises(sqlite3.IntegrityError):
            database.replace_catalog(broken)
        assert database.get_cached_catalog() == sample_snapshot

    def test_catalog_age_days(self, database: Database, sample_snapshot: CatalogSnapshot) -> None:
        database.replace_catalog(sample_snapshot)
        fetched = sample_snapshot.fetched_at.timestamp()
        assert database.get_catalog_age_days(now=fetched + 3 * 86400 + 60) == 3
        assert database.get_catalog_age_days(now=fetched) == 0


class TestMetadataCache:
    """Tests for the metadata cache mixin."""

    def test_upsert_and_get(self, database: Database) -> None:
        metadata = BadgeMetadata(date_added="12 November 2025", usage_stats="1,234 users")
        database.upsert_badge_metadata("premium", "1", metadata)

        entry = database.get_cached_metadata("premium", "1")
        assert entry is not None
        assert entry.data.date_added == "12 November 2025"
        assert entry.position is None

    def test_get_all_is_keyed_by_cache_key(self, database: Database) -> None:
        database.upsert_badge_metadata("premium", "1", BadgeMetadata(usage_stats="5 users"))
        database.upsert_badge_metadata("turbo", "1", BadgeMetadata(usage_stats="7 users"))

        entries = database.get_all_cached_metadata("badge")
        assert set(entries) == {"metadata:premium-v1", "metadata:turbo-v1"}
        assert entries["metadata:turbo-v1"].data.usage_stats == "7 users"

    def test_zero_expiry_never_expires(self, database: Database) -> None:
        database.upsert_badge_metadata("premium", "1", BadgeMetadata(), expiry_days=0)
        far_future = time.time() + 3650 * 86400
        assert database.get_cached_metadata("premium", "1", now=far_future) is not None
        assert database.cleanup_expired_metadata(now=far_future) == 0

    def test_expired_entries_are_hidden_and_cleaned(self, database: Database) -> None:
        database.upsert_badge_metadata("premium", "1", BadgeMetadata(), expiry_days=1)
        later = time.time() + 2 * 86400
        assert database.get_cached_metadata("premium", "1", now=later) is None
        assert database.get_all_cached_metadata(now=later) == {}
        assert database.cleanup_expired_metadata(now=later) == 1
        assert database.get_cached_metadata("premium", "1") is None

    def test_upsert_keeps_existing_position(self, database: Database) -> None:
        database.upsert_badge_metadata("premium", "1", BadgeMetadata(date_added="1 June 2024"))
        database.assign_metadata_positions()
        database.upsert_badge_metadata("premium", "1", BadgeMetadata(date_added="2 June 2024"))

        entry = database.get_cached_metadata("premium", "1")
        assert entry.position == 0
        assert entry.data.date_added == "2 June 2024"

    def test_assign_positions_newest_first_then_usage(self, database: Database) -> None:
        database.upsert_badge_metadata("old", "1", BadgeMetadata(date_added="1 January 2023"))
        database.upsert_badge_metadata("new-a", "1", BadgeMetadata(date_added="5 May 2025", usage_stats="10 users"))
        database.upsert_badge_metadata("new-b", "1", BadgeMetadata(date_added="5 May 2025", usage_stats="2,000 users"))
        database.upsert_badge_metadata("undated", "1", BadgeMetadata())

        assert database.assign_metadata_positions() == 4
        positions = {key: entry.position for key, entry in database.get_all_cached_metadata().items()}
        assert positions == {
            "metadata:new-b-v1": 0,
            "metadata:new-a-v1": 1,
            "metadata:old-v1": 2,
            "metadata:undated-v1": 3,
        }

    def test_missing_metadata_lists_uncached_catalog_badges(
        self, database: Database, sample_snapshot: CatalogSnapshot
    ) -> None:
        database.replace_catalog(sample_snapshot)
        database.upsert_badge_metadata("twitch-recap-2023", "1", BadgeMetadata())

        assert database.get_badges_missing_metadata() == [
            ("glitchcon2020", "1"),
            ("twitch-recap-2023", "2"),
        ]

    def test_cache_stats(self, database: Database, sample_snapshot: CatalogSnapshot) -> None:
        database.replace_catalog(sample_snapshot)
        database.upsert_badge_metadata("glitchcon2020", "1", BadgeMetadata(), expiry_days=30)
        database.upsert_badge_metadata("twitch-recap-2023", "1", BadgeMetadata())
        database.assign_metadata_positions()

        stats = database.get_metadata_cache_stats()
        assert stats.total_entries == 2
        assert stats.positioned_entries == 2
        assert stats.expiring_entries == 1
        assert stats.catalog_versions == 3
        assert stats.missing_entries == 1

    def test_clear_metadata_cache(self, database: Database) -> None:
        database.upsert_badge_metadata("premium", "1", BadgeMetadata())
        assert database.clear_metadata_cache() == 1
        assert database.get_all_cached_metadata() == {}

    def test_closed_database_raises(self, tmp_path) -> None:
        db = Database(tmp_path / "closed.db")
        db.close()
        with pytest.raises(sqlite3.ProgrammingError):
            db.get_all_cached_metadata()
