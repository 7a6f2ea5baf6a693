"""Database connection management.

Handles SQLite connection setup, PRAGMA configuration, the shared
query lock and the context manager protocol.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger("badgeviewer.database")

__all__ = ["ConnectionBase"]


class ConnectionBase:
    """Base class providing SQLite connection setup and lifecycle.

    The connection is shared between the enrichment worker threads, so it
    is opened with ``check_same_thread=False`` and every query mixin runs
    its statements under ``self._lock``. Calls _ensure_schema() which is
    provided by SchemaMixin via multiple inheritance.
    """

    SCHEMA_VERSION = 2

    conn: sqlite3.Connection
    db_path: Path

    def __init__(self, db_path: Path) -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file.
        """
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.execute("PRAGMA journal_mode = WAL")

        self._ensure_schema()

    def commit(self) -> None:
        """Commit current transaction."""
        with self._lock:
            self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            self.conn.close()

    def __enter__(self) -> ConnectionBase:
        return self

    def __exit__(self, *args: Any) -> None:
        self.commit()
        self.close()
