"""Badge metadata cache queries.

Entries are keyed by ``metadata:{set_id}-v{version_id}`` and carry the
scraped metadata as JSON, the time they were cached, an expiry in days
(0 = never expires) and an optional ordinal position hint.
"""

from __future__ import annotations

import json
import logging
import time

from badgeviewer.core.badge import BadgeMetadata, CompositeKey
from badgeviewer.core.db.models import CachedMetadataEntry, CacheStats
from badgeviewer.utils.date_utils import parse_added_date, parse_usage_count

logger = logging.getLogger("badgeviewer.database")

__all__ = ["MetadataCacheMixin"]

_SECONDS_PER_DAY = 86400

_NOT_EXPIRED = "(expiry_days = 0 OR cached_at + expiry_days * 86400 > ?)"


class MetadataCacheMixin:
    """Mixin providing the badge metadata cache.

    Requires ConnectionBase attributes: conn, _lock.
    """

    def upsert_badge_metadata(
        self,
        set_id: str,
        version_id: str,
        metadata: BadgeMetadata,
        expiry_days: int = 0,
        source: str = "badgebase",
    ) -> None:
        """Inserts or replaces the cached metadata for one badge.

        An existing position hint is kept unless ``metadata`` carries one.

        Args:
            set_id: Badge set ID.
            version_id: Badge version ID.
            metadata: Metadata to cache.
            expiry_days: Lifetime of the entry in days (0 = never expires).
            source: Name of the knowledge source the data came from.
        """
        key = CompositeKey(set_id, version_id)
        with self._lock, self.conn:
            self.conn.execute(
                """
                INSERT INTO badge_metadata_cache
                (cache_key, cache_type, set_id, version_id, data, source, position, cached_at, expiry_days)
                VALUES (?, 'badge', ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(cache_key) DO UPDATE SET
                    data = excluded.data,
                    source = excluded.source,
                    position = COALESCE(excluded.position, badge_metadata_cache.position),
                    cached_at = excluded.cached_at,
                    expiry_days = excluded.expiry_days
                """,
                (
                    key.cache_key,
                    set_id,
                    version_id,
                    json.dumps(metadata.to_dict()),
                    source,
                    metadata.position,
                    int(time.time()),
                    expiry_days,
                ),
            )

    def get_cached_metadata(
        self, set_id: str, version_id: str, now: float | None = None
    ) -> CachedMetadataEntry | None:
        """Returns the unexpired cache entry for one badge, if any."""
        current = time.time() if now is None else now
        with self._lock:
            row = self.conn.execute(
                f"SELECT data, position FROM badge_metadata_cache WHERE cache_key = ? AND {_NOT_EXPIRED}",
                (CompositeKey(set_id, version_id).cache_key, current),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def get_all_cached_metadata(
        self, cache_type: str = "badge", now: float | None = None
    ) -> dict[str, CachedMetadataEntry]:
        """Returns every unexpired entry of ``cache_type`` in one query.

        Args:
            cache_type: Entry category (only "badge" is written today).
            now: Reference UNIX timestamp for expiry checks.

        Returns:
            Dict mapping cache key to its entry.
        """
        current = time.time() if now is None else now
        with self._lock:
            rows = self.conn.execute(
                f"SELECT cache_key, data, position FROM badge_metadata_cache WHERE cache_type = ? AND {_NOT_EXPIRED}",
                (cache_type, current),
            ).fetchall()
        return {row["cache_key"]: self._row_to_entry(row) for row in rows}

    def get_badges_missing_metadata(self) -> list[tuple[str, str]]:
        """Returns catalog badges that have no metadata cache entry at all.

        Returns:
            List of (set_id, version_id) tuples in catalog order.
        """
        with self._lock:
            rows = self.conn.execute("""
                SELECT c.set_id, c.version_id FROM badge_catalog c
                LEFT JOIN badge_metadata_cache m
                    ON m.set_id = c.set_id AND m.version_id = c.version_id
                WHERE m.cache_key IS NULL
                ORDER BY c.set_order, c.version_order
                """).fetchall()
        return [(row[0], row[1]) for row in rows]

    def assign_metadata_positions(self) -> int:
        """Recomputes the ordinal position hint of every cached entry.

        Newest addition date comes first, then the most used badge, then
        the cache key. Entries whose date cannot be parsed sort last.

        Returns:
            Number of entries that received a position.
        """
        with self._lock, self.conn:
            rows = self.conn.execute("SELECT cache_key, data FROM badge_metadata_cache").fetchall()

            def sort_key(row) -> tuple:
                data = json.loads(row["data"])
                added = parse_added_date(data.get("date_added"))
                timestamp = added.timestamp() if added else 0.0
                return (-timestamp, -parse_usage_count(data.get("usage_stats")), row["cache_key"])

            ordered = sorted(rows, key=sort_key)
            self.conn.executemany(
                "UPDATE badge_metadata_cache SET position = ? WHERE cache_key = ?",
                [(position, row["cache_key"]) for position, row in enumerate(ordered)],
            )

        logger.info("Assigned metadata positions to %d entries", len(rows))
        return len(rows)

    def cleanup_expired_metadata(self, now: float | None = None) -> int:
        """Removes expired metadata entries.

        Returns:
            Number of entries removed.
        """
        current = time.time() if now is None else now
        with self._lock, self.conn:
            cursor = self.conn.execute(
                "DELETE FROM badge_metadata_cache WHERE expiry_days > 0 AND cached_at + expiry_days * ? <= ?",
                (_SECONDS_PER_DAY, current),
            )
        if cursor.rowcount:
            logger.info("Removed %d expired metadata entries", cursor.rowcount)
        return cursor.rowcount

    def get_metadata_cache_stats(self) -> CacheStats:
        with self._lock:
            row = self.conn.execute("""
                SELECT COUNT(*),
                       COUNT(position),
                       SUM(CASE WHEN expiry_days > 0 THEN 1 ELSE 0 END)
                FROM badge_metadata_cache
                """).fetchone()
            catalog_versions = self.conn.execute("SELECT COUNT(*) FROM badge_catalog").fetchone()[0]
        return CacheStats(
            total_entries=row[0],
            positioned_entries=row[1],
            expiring_entries=row[2] or 0,
            catalog_versions=catalog_versions,
            missing_entries=len(self.get_badges_missing_metadata()),
        )

    def clear_metadata_cache(self) -> int:
        """Deletes every metadata entry.

        Returns:
            Number of entries removed.
        """
        with self._lock, self.conn:
            cursor = self.conn.execute("DELETE FROM badge_metadata_cache")
        logger.info("Cleared metadata cache (%d entries)", cursor.rowcount)
        return cursor.rowcount

    @staticmethod
    def _row_to_entry(row) -> CachedMetadataEntry:
        position = row["position"]
        return CachedMetadataEntry(
            data=BadgeMetadata.from_dict(json.loads(row["data"]), position=position),
            position=position,
        )

