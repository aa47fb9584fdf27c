# src/lumina/storage/debounce.py

from __future__ import annotations

"""
Debounced persistence.

State changes arrive in bursts (toggle + spawn + XP in one click). Instead of
writing every intermediate list, the saver keeps only the latest payload per key
and writes after a short quiet period. flush() is the synchronous teardown path.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Writer = Callable[[str, Any], object]


class DebouncedSaver:
    def __init__(self, writer: Writer, *, delay_seconds: float = 0.5) -> None:
        self._writer = writer
        self._delay = max(0.0, float(delay_seconds))
        self._pending: dict[str, Any] = {}
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._closed = False

    @property
    def pending_keys(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def submit(self, key: str, payload: Any) -> None:
        """Record the newest payload for key (last write wins) and re-arm the timer."""
        with self._lock:
            self._pending[key] = payload
            if self._closed:
                # After close() every submit is written through immediately.
                immediate = True
            else:
                immediate = self._delay == 0.0
                if not immediate:
                    if self._timer is not None:
                        self._timer.cancel()
                    self._timer = threading.Timer(self._delay, self.flush)
                    self._timer.daemon = True
                    self._timer.start()
        if immediate:
            self.flush()

    def flush(self) -> int:
        """Write everything pending now. Returns the number of keys written successfully."""
        # Flushes run one at a time so an older snapshot never lands after a newer one.
        with self._write_lock:
            with self._lock:
                pending = self._pending
                self._pending = {}
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None

            written = 0
            for key, payload in pending.items():
                try:
                    self._writer(key, payload)
                    written += 1
                except Exception:
                    logger.exception("Debounced write failed key=%s", key)
            if pending:
                logger.debug("Debounced flush wrote %d/%d keys", written, len(pending))
            return written

    def close(self) -> None:
        """Cancel the timer and write whatever is still pending."""
        with self._lock:
            self._closed = True
        self.flush()
