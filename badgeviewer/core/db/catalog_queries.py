"""Badge catalog snapshot queries.

Stores the last successfully loaded catalog one row per badge version so
that the metadata cache can be joined against it.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone

from badgeviewer.core.badge import BadgeSet, BadgeVersion, CatalogSnapshot

logger = logging.getLogger("badgeviewer.database")

__all__ = ["CatalogQueryMixin"]

_SECONDS_PER_DAY = 86400


class CatalogQueryMixin:
    """Mixin providing catalog snapshot persistence.

    Requires ConnectionBase attributes: conn, _lock.
    """

    def replace_catalog(self, snapshot: CatalogSnapshot) -> int:
        """Replaces the stored catalog with ``snapshot`` in one transaction.

        Either every row of the new catalog is visible afterwards or, on
        error, the previous catalog is left untouched.

        Args:
            snapshot: The freshly fetched catalog.

        Returns:
            Number of badge versions stored.
        """
        fetched_at = snapshot.fetched_at or datetime.now(timezone.utc)
        rows = [
            (badge_set.set_id, version.version_id, set_order, version_order, json.dumps(version.to_dict()))
            for set_order, badge_set in enumerate(snapshot.sets)
            for version_order, version in enumerate(badge_set.versions)
        ]

        with self._lock, self.conn:
            self.conn.execute("DELETE FROM badge_catalog")
            self.conn.executemany(
                "INSERT OR REPLACE INTO badge_catalog"
                " (set_id, version_id, set_order, version_order, payload)"
                " VALUES (?, ?, ?, ?, ?)",
                rows,
            )
            self.conn.execute(
                "INSERT OR REPLACE INTO catalog_meta (id, fetched_at, set_count, version_count) VALUES (1, ?, ?, ?)",
                (int(fetched_at.timestamp()), len(snapshot.sets), len(rows)),
            )

        logger.info("Stored catalog: %d sets, %d versions", len(snapshot.sets), len(rows))
        return len(rows)

    def get_cached_catalog(self) -> CatalogSnapshot | None:
        """Returns the stored catalog, or None if nothing has been stored yet."""
        with self._lock:
            meta = self.conn.execute("SELECT fetched_at FROM catalog_meta WHERE id = 1").fetchone()
            if meta is None:
                return None
            rows = self.conn.execute(
                "SELECT set_id, payload FROM badge_catalog ORDER BY set_order, version_order"
            ).fetchall()

        grouped: dict[str, list[BadgeVersion]] = {}
        for row in rows:
            grouped.setdefault(row["set_id"], []).append(BadgeVersion.from_dict(json.loads(row["payload"])))

        return CatalogSnapshot(
            sets=tuple(BadgeSet(set_id, tuple(versions)) for set_id, versions in grouped.items()),
            fetched_at=datetime.fromtimestamp(meta["fetched_at"], tz=timezone.utc),
        )

    def get_catalog_age_days(self, now: float | None = None) -> int | None:
        """Returns the age of the stored catalog in whole days.

        Args:
            now: Reference UNIX timestamp (defaults to the current time).

        Returns:
            Days since the catalog was fetched, or None if none is stored.
        """
        with self._lock:
            row = self.conn.execute("SELECT fetched_at FROM catalog_meta WHERE id = 1").fetchone()
        if row is None:
            return None
        current = time.time() if now is None else now
        return max(0, int((current - row["fetched_at"]) // _SECONDS_PER_DAY))
