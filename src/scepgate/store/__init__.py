"""Dynamic one-time challenge stores.

Exports the abstract base class, the record type, the in-memory store,
the expiry sweeper and the registry loader.
"""

from scepgate.store.base import ChallengeRecord, ChallengeStore
from scepgate.store.cleanup import ChallengeGcWorker
from scepgate.store.memory import MemoryChallengeStore
from scepgate.store.registry import load_challenge_store

__all__ = [
    "ChallengeGcWorker",
    "ChallengeRecord",
    "ChallengeStore",
    "MemoryChallengeStore",
    "load_challenge_store",
]
