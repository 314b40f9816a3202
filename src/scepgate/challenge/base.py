"""Abstract base class and error types for challenge validators.

All challenge validators (built-in and custom) must inherit from
:class:`ChallengeValidator` and implement :meth:`validate`.

A validator only decides.  It answers ``True`` or ``False`` for the
challenge it is given and raises a :class:`ChallengeError` subclass
when it cannot decide; it never signs anything.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from scepgate.core.context import RequestContext
    from scepgate.core.types import ChallengeRequest

log = logging.getLogger(__name__)


class ChallengeError(Exception):
    """Base class for all challenge verification failures.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.

    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class GenerationError(ChallengeError):
    """A new challenge could not be generated or recorded."""


class StorageError(ChallengeError):
    """The challenge store is unreachable or corrupt."""


class InvalidChallenge(ChallengeError):
    """The presented challenge was checked and rejected."""

    def __init__(self, detail: str = "invalid challenge") -> None:
        super().__init__(detail)


class RemoteCheckError(ChallengeError):
    """Delegating the check to the remote service failed."""


class ChallengeCancelled(ChallengeError):
    """The caller cancelled the request or its deadline passed."""


class ChallengeValidator(abc.ABC):
    """Base class for all challenge validators.

    Subclasses set :attr:`name` and implement :meth:`validate`.
    """

    name: ClassVar[str] = "base"
    """Short identifier used in logs and audit events."""

    @abc.abstractmethod
    def validate(self, ctx: RequestContext, request: ChallengeRequest) -> bool:
        """Decide whether *request* carries a valid challenge.

        Parameters
        ----------
        ctx:
            Cancellation/deadline of the signing request.
        request:
            The presented challenge and the subject's OU values.

        Returns
        -------
        bool
            ``True`` if the challenge is valid.  An empty challenge is
            an ordinary ``False``.

        Raises
        ------
        ChallengeError
            When the validator cannot reach a decision.

        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
