"""Periodic sweep of expired challenges.

A single daemon thread calls :meth:`ChallengeStore.gc` every
``interval_seconds``.  A failing sweep is logged and retried on the
next tick; it never stops the worker.

Usage::

    worker = ChallengeGcWorker(store, interval_seconds=300)
    worker.start()
    ...
    worker.stop()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scepgate.store.base import ChallengeStore

log = logging.getLogger(__name__)


class ChallengeGcWorker:
    """Daemon thread that removes expired challenges from a store."""

    def __init__(self, store: ChallengeStore, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds must be positive"
            raise ValueError(msg)
        self._store = store
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.consecutive_failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"challenge-gc-{self._store.backend_name}",
            daemon=True,
        )
        self._thread.start()
        log.info(
            "Challenge GC worker started (store=%s, interval=%ss)",
            self._store.backend_name,
            self._interval,
        )

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run_once(self) -> int:
        """Sweep once.  Returns the number of challenges removed."""
        try:
            deleted = self._store.gc()
        except Exception:
            self.consecutive_failures += 1
            log.exception(
                "Challenge GC failed (consecutive: %d)",
                self.consecutive_failures,
            )
            return 0
        self.consecutive_failures = 0
        if deleted:
            log.debug("Challenge GC: removed %d expired challenges", deleted)
        return deleted

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.run_once()
