"""Base class for all enrichment background threads.

Provides standard signals, cancellation, and the run() template.
Items are processed in fixed-width batches: every item of a batch runs
concurrently on a worker pool and the batch is joined before the next one
starts. Subclasses implement: _get_items(), _process_item(),
_format_progress(), and optionally _setup(), _cleanup(),
_on_batch_finished(), _rate_limit().
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any

from PyQt6.QtCore import QThread, pyqtSignal

__all__ = ["BATCH_SIZE", "BaseEnrichmentThread"]

logger = logging.getLogger("badgeviewer.enrichment.base")

# Number of items fetched concurrently per batch
BATCH_SIZE = 10


class BaseEnrichmentThread(QThread):
    """Template base class for enrichment threads.

    Signals:
        progress: Emitted after each batch (message, done, total).
        finished_enrichment: Emitted when done (success_count, fail_count).
        error: Emitted on fatal error (error_message).
    """

    progress = pyqtSignal(str, int, int)
    finished_enrichment = pyqtSignal(int, int)
    error = pyqtSignal(str)

    batch_size: int = BATCH_SIZE

    def __init__(self, parent: Any = None) -> None:
        super().__init__(parent)
        self._cancelled: bool = False
        self._force_refresh: bool = False

    def cancel(self) -> None:
        """Request cancellation; the batch in flight is allowed to finish."""
        self._cancelled = True

    def run(self) -> None:
        """Template method: process items batch by batch."""
        self._cancelled = False
        try:
            self._setup()
            items = self._get_items()
        except Exception as exc:
            logger.error("Enrichment setup failed: %s", exc)
            self.error.emit(str(exc))
            self._cleanup()
            return

        total = len(items)
        success = 0
        failed = 0
        done = 0

        try:
            with ThreadPoolExecutor(max_workers=self.batch_size, thread_name_prefix="enrichment") as executor:
                for start in range(0, total, self.batch_size):
                    if self._cancelled:
                        break

                    batch = items[start : start + self.batch_size]
                    futures = {executor.submit(self._process_item, item): item for item in batch}
                    wait(futures)

                    succeeded = []
                    for future, item in futures.items():
                        exc = future.exception()
                        if exc is not None:
                            logger.warning("Enrichment failed for item %r: %s", item, exc)
                            failed += 1
                        elif future.result():
                            success += 1
                            succeeded.append(item)
                        else:
                            failed += 1

                    done += len(batch)
                    self.progress.emit(self._format_progress(batch[-1], done, total), done, total)
                    self._on_batch_finished(succeeded)
                    self._rate_limit()
        finally:
            self._cleanup()

        self.finished_enrichment.emit(success, failed)

    # ── Subclasses MUST override these ──────────────────

    def _get_items(self) -> list:
        """Return the list of items to process.

        Raises:
            NotImplementedError: Subclass must implement.
        """
        raise NotImplementedError

    def _process_item(self, item: Any) -> bool:
        """Process a single item. Runs on a worker thread.

        Args:
            item: The item from _get_items() to process.

        Returns:
            True on success, False on expected failure.

        Raises:
            NotImplementedError: Subclass must implement.
        """
        raise NotImplementedError

    def _format_progress(self, item: Any, current: int, total: int) -> str:
        """Format a progress message for the last item of a batch.

        Raises:
            NotImplementedError: Subclass must implement.
        """
        raise NotImplementedError

    # ── Subclasses MAY override these ────────────────────

    def _setup(self) -> None:
        """Initialize resources before the processing loop."""

    def _cleanup(self) -> None:
        """Release resources after the processing loop.

        Always called, even on cancellation.
        """

    def _on_batch_finished(self, succeeded: list) -> None:
        """Called on the run() thread after each batch has been joined.

        Args:
            succeeded: Items of the batch whose processing succeeded.
        """

    def _rate_limit(self) -> None:
        """Pause between batches. No pause by default."""
