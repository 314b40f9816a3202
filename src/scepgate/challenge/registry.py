"""Build the challenge verification chain from configuration.

Each configured option enables one validator:

=====================================  ==============================
``challenge.static_secret``            :class:`StaticChallengeValidator`
``challenge.external.url``             :class:`ExternalChallengeValidator`
``challenge.dynamic.enabled``          :class:`StoreBackedValidator`
=====================================  ==============================

Usually exactly one is set.  When several are, all of them must pass,
in the order above; the store-backed check consumes its token, so it
always runs last.

Usage::

    from scepgate.challenge.registry import build_challenge_signer

    signer = build_challenge_signer(settings.challenge, ca_signer, store=store)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from scepgate.challenge.dynamic import StoreBackedValidator
from scepgate.challenge.external import ExternalChallengeValidator
from scepgate.challenge.middleware import chain
from scepgate.challenge.static import StaticChallengeValidator
from scepgate.config.scepgate_config import ConfigValidationError

if TYPE_CHECKING:
    from scepgate.challenge.base import ChallengeValidator
    from scepgate.challenge.dynamic import ChallengeLookup
    from scepgate.config.settings import ChallengeSettings
    from scepgate.signer.base import CSRSignerContext

log = logging.getLogger(__name__)


def build_validators(
    settings: ChallengeSettings,
    store: ChallengeLookup | None = None,
) -> list[ChallengeValidator]:
    """Return the validators enabled by *settings*, in chain order.

    Raises
    ------
    ConfigValidationError
        If ``dynamic.enabled`` is set but no *store* was supplied.

    """
    validators: list[ChallengeValidator] = []

    if settings.static_secret:
        validators.append(StaticChallengeValidator(settings.static_secret))

    if settings.external.url:
        validators.append(ExternalChallengeValidator(settings.external))

    if settings.dynamic.enabled:
        if store is None:
            msg = "challenge.dynamic.enabled is set but no challenge store was provided"
            raise ConfigValidationError([msg])
        validators.append(StoreBackedValidator(store))

    return validators


def build_challenge_signer(
    settings: ChallengeSettings,
    signer: CSRSignerContext,
    store: ChallengeLookup | None = None,
) -> CSRSignerContext:
    """Wrap *signer* in the configured challenge verification chain.

    Raises
    ------
    ConfigValidationError
        If no validator is configured and anonymous signing is not
        explicitly allowed.

    """
    validators = build_validators(settings, store)

    if not validators:
        if not settings.allow_anonymous:
            msg = "no challenge validator configured and challenge.allow_anonymous is false"
            raise ConfigValidationError([msg])
        log.warning("No challenge validator configured: every CSR will be signed")
        return signer

    if len(validators) > 1:
        log.info(
            "Chaining %d challenge validators: %s",
            len(validators),
            ", ".join(v.name for v in validators),
        )
    else:
        log.info("Using %s challenge validator", validators[0].name)

    return chain(validators, signer)
