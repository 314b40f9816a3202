"""Challenge verification middleware.

:class:`ChallengeMiddleware` wraps a :class:`CSRSignerContext` and runs
one :class:`ChallengeValidator` before handing the request on.  The
wrapped signer only ever sees requests that passed.  Middleware
instances stack: each link checks its own validator and calls the next
link only on success.

Usage::

    signer = ChallengeMiddleware(StaticChallengeValidator("s3cret"), ca_signer)
    cert = signer.sign_csr_context(ctx, msg)

    # several checks, first one runs first
    signer = chain([static_validator, store_validator], ca_signer)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from scepgate.challenge.base import ChallengeError, InvalidChallenge
from scepgate.core.types import ChallengeRequest, VerificationOutcome
from scepgate.logging import security_events

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cryptography import x509

    from scepgate.challenge.base import ChallengeValidator
    from scepgate.core.context import RequestContext
    from scepgate.core.types import CSRReqMessage
    from scepgate.signer.base import CSRSignerContext

log = logging.getLogger(__name__)


class ChallengeMiddleware:
    """A :class:`CSRSignerContext` that verifies the challenge first.

    Parameters
    ----------
    validator:
        Decides whether the presented challenge is valid.
    next_signer:
        Called with the untouched context and message on success.

    """

    def __init__(
        self,
        validator: ChallengeValidator,
        next_signer: CSRSignerContext,
    ) -> None:
        self._validator = validator
        self._next = next_signer

    @property
    def validator(self) -> ChallengeValidator:
        return self._validator

    @property
    def next_signer(self) -> CSRSignerContext:
        return self._next

    def verify(self, ctx: RequestContext, msg: CSRReqMessage) -> VerificationOutcome:
        """Run this link's validator without signing.

        Raises
        ------
        ChallengeError
            Propagated unchanged from the validator.

        """
        request = ChallengeRequest.from_message(msg)
        try:
            valid = self._validator.validate(ctx, request)
        except ChallengeError as exc:
            security_events.challenge_check_failed(
                self._validator.name,
                request.device_id,
                exc.detail,
                transaction_id=msg.transaction_id,
            )
            raise

        if not valid:
            security_events.challenge_rejected(
                self._validator.name,
                request.device_id,
                request.challenge,
                transaction_id=msg.transaction_id,
            )
            return VerificationOutcome.reject(
                f"invalid challenge ({self._validator.name})",
            )

        security_events.challenge_accepted(
            self._validator.name,
            request.device_id,
            transaction_id=msg.transaction_id,
        )
        return VerificationOutcome.accept()

    def sign_csr_context(
        self,
        ctx: RequestContext,
        msg: CSRReqMessage,
    ) -> x509.Certificate | None:
        outcome = self.verify(ctx, msg)
        if not outcome:
            raise InvalidChallenge(outcome.reason or "invalid challenge")
        return self._next.sign_csr_context(ctx, msg)

    def __repr__(self) -> str:
        return f"<ChallengeMiddleware validator={self._validator!r} next={self._next!r}>"


def chain(
    validators: Sequence[ChallengeValidator],
    signer: CSRSignerContext,
) -> CSRSignerContext:
    """Wrap *signer* so that every validator must pass, in order.

    ``validators[0]`` runs first.  An empty sequence returns *signer*
    unchanged.
    """
    wrapped = signer
    for validator in reversed(validators):
        wrapped = ChallengeMiddleware(validator, wrapped)
    return wrapped
