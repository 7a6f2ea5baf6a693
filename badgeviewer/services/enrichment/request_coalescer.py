"""Collapses duplicate in-flight requests into one shared result.

The first caller for a key runs the request; callers that arrive while it
is still pending wait on the same Future and receive its result (or its
exception).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from typing import Any, TypeVar

logger = logging.getLogger("badgeviewer.enrichment.coalescer")

__all__ = ["RequestCoalescer"]

T = TypeVar("T")


class RequestCoalescer:
    """Pending-request table keyed by request identity."""

    def __init__(self) -> None:
        self._pending: dict[Hashable, Future] = {}
        self._lock = threading.Lock()

    def run(self, key: Hashable, func: Callable[..., T], *args: Any) -> T:
        """Runs ``func(*args)`` unless a request for ``key`` is already pending.

        Args:
            key: Identity of the request.
            func: Callable performing the request.
            *args: Arguments for ``func``.

        Returns:
            The result of the (possibly shared) request.

        Raises:
            Exception: Whatever the shared request raised.
        """
        with self._lock:
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._pending[key] = future

        if not owner:
            logger.debug("Joining pending request for %s", key)
            return future.result()

        try:
            result = func(*args)
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._pending.pop(key, None)
            if not future.done():
                future.cancel()

    def is_pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._pending

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
