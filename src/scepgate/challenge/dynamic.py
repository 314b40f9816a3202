"""Store-backed (dynamic) challenge validator.

Delegates to a :class:`~scepgate.store.base.ChallengeStore`.  Each
issued challenge is consumed by the first successful lookup; a retry
with the same challenge is rejected.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar, Protocol

from scepgate.challenge.base import ChallengeValidator

if TYPE_CHECKING:
    from scepgate.core.context import RequestContext
    from scepgate.core.types import ChallengeRequest

log = logging.getLogger(__name__)


class ChallengeLookup(Protocol):
    """Anything that can check-and-invalidate a challenge."""

    def has_challenge(self, candidate: str) -> bool: ...


class StoreBackedValidator(ChallengeValidator):
    """Validates one-time challenges issued by a challenge store."""

    name: ClassVar[str] = "dynamic"

    def __init__(self, store: ChallengeLookup) -> None:
        self._store = store

    @property
    def store(self) -> ChallengeLookup:
        return self._store

    def validate(self, ctx: RequestContext, request: ChallengeRequest) -> bool:
        if not request.challenge:
            return False
        # A cancelled request must not consume a token.
        ctx.check()
        return self._store.has_challenge(request.challenge)
