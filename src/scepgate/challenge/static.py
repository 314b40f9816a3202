"""Static shared-secret challenge validator.

The configured secret and the presented challenge are both run through
HMAC-SHA256 under a key drawn at construction time; the fixed-length
digests are then compared with :func:`hmac.compare_digest`.  A length
difference between secret and challenge therefore never short-circuits
the comparison.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import TYPE_CHECKING, ClassVar

from scepgate.challenge.base import ChallengeValidator

if TYPE_CHECKING:
    from scepgate.core.context import RequestContext
    from scepgate.core.types import ChallengeRequest

log = logging.getLogger(__name__)


class StaticChallengeValidator(ChallengeValidator):
    """Accepts exactly one secret configured at startup."""

    name: ClassVar[str] = "static"

    def __init__(self, secret: str) -> None:
        if not secret:
            msg = "static challenge secret must not be empty"
            raise ValueError(msg)
        self._key = secrets.token_bytes(32)
        self._expected = self._digest(secret)

    def _digest(self, value: str) -> bytes:
        return hmac.new(self._key, value.encode("utf-8"), hashlib.sha256).digest()

    def validate(self, ctx: RequestContext, request: ChallengeRequest) -> bool:  # noqa: ARG002
        presented = self._digest(request.challenge or "")
        return hmac.compare_digest(self._expected, presented)
