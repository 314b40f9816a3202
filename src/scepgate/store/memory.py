"""In-process challenge store.

Keeps issued challenges in a dict guarded by a single lock.  Suitable
for a single-process server; challenges do not survive a restart.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, ClassVar

from scepgate.store.base import ChallengeRecord, ChallengeStore

if TYPE_CHECKING:
    from scepgate.config.settings import DatabaseSettings, DynamicStoreSettings

log = logging.getLogger(__name__)


class MemoryChallengeStore(ChallengeStore):
    """Thread-safe in-memory one-time challenge store."""

    backend_name: ClassVar[str] = "memory"

    def __init__(
        self,
        settings: DynamicStoreSettings,
        database: DatabaseSettings | None = None,
    ) -> None:
        super().__init__(settings, database)
        self._lock = threading.Lock()
        self._records: dict[str, ChallengeRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def scep_challenge(self) -> str:
        record = self._new_record()
        with self._lock:
            self._records[record.token] = record
        return record.token

    def has_challenge(self, candidate: str) -> bool:
        if not candidate:
            return False
        with self._lock:
            record = self._records.pop(candidate, None)
        if record is None:
            return False
        if record.is_expired(self._now()):
            log.info("Challenge rejected: expired at %s", record.expires_at)
            return False
        return True

    def gc(self) -> int:
        now = self._now()
        with self._lock:
            expired = [t for t, r in self._records.items() if r.is_expired(now)]
            for token in expired:
                del self._records[token]
        if expired:
            log.debug("Removed %d expired challenges", len(expired))
        return len(expired)
