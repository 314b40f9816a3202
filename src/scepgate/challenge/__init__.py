"""Pluggable challenge verification.

Exports the abstract base class, the error taxonomy, the built-in
validators and the verification middleware.
"""

from scepgate.challenge.base import (
    ChallengeCancelled,
    ChallengeError,
    ChallengeValidator,
    GenerationError,
    InvalidChallenge,
    RemoteCheckError,
    StorageError,
)
from scepgate.challenge.dynamic import StoreBackedValidator
from scepgate.challenge.external import ExternalChallengeValidator
from scepgate.challenge.middleware import ChallengeMiddleware, chain
from scepgate.challenge.static import StaticChallengeValidator

__all__ = [
    "ChallengeCancelled",
    "ChallengeError",
    "ChallengeMiddleware",
    "ChallengeValidator",
    "ExternalChallengeValidator",
    "GenerationError",
    "InvalidChallenge",
    "RemoteCheckError",
    "StaticChallengeValidator",
    "StorageError",
    "StoreBackedValidator",
    "chain",
]
