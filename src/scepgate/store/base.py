"""Abstract base class for dynamic challenge stores.

A challenge store issues one-time challenge passwords and later
consumes them.  All stores (built-in and custom) must inherit from
:class:`ChallengeStore` and implement :meth:`scep_challenge`,
:meth:`has_challenge` and :meth:`gc`.

``has_challenge`` is a check-and-invalidate: it answers ``True`` at
most once per issued challenge, even when several callers race on the
same value.  "Not found" is an ordinary ``False``; only a broken
backend raises :class:`~scepgate.challenge.base.StorageError`.
"""

from __future__ import annotations

import abc
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, ClassVar

from scepgate.challenge.base import GenerationError

if TYPE_CHECKING:
    from scepgate.config.settings import DatabaseSettings, DynamicStoreSettings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChallengeRecord:
    """An issued, not yet consumed challenge."""

    token: str
    created_at: datetime
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class ChallengeStore(abc.ABC):
    """Base class for all challenge store implementations.

    Parameters
    ----------
    settings:
        The ``challenge.dynamic`` configuration section.
    database:
        The ``database`` section, for stores that need one.

    """

    backend_name: ClassVar[str] = "base"

    def __init__(
        self,
        settings: DynamicStoreSettings,
        database: DatabaseSettings | None = None,
    ) -> None:
        self._settings = settings
        self._database = database

    @property
    def ttl(self) -> timedelta | None:
        if self._settings.ttl_seconds <= 0:
            return None
        return timedelta(seconds=self._settings.ttl_seconds)

    def _now(self) -> datetime:
        return datetime.now(UTC)

    def _new_record(self) -> ChallengeRecord:
        """Generate a fresh, unguessable challenge record."""
        try:
            token = secrets.token_urlsafe(self._settings.token_bytes)
        except (OSError, NotImplementedError) as exc:
            msg = f"Secure random source unavailable: {exc}"
            raise GenerationError(msg) from exc
        now = self._now()
        ttl = self.ttl
        return ChallengeRecord(
            token=token,
            created_at=now,
            expires_at=now + ttl if ttl is not None else None,
        )

    @abc.abstractmethod
    def scep_challenge(self) -> str:
        """Issue a new challenge and return it.

        Raises
        ------
        GenerationError
            If no token could be generated or recorded.

        """

    @abc.abstractmethod
    def has_challenge(self, candidate: str) -> bool:
        """Atomically check *candidate* and invalidate it.

        Returns
        -------
        bool
            ``True`` the first time an issued, unexpired challenge is
            presented; ``False`` otherwise.

        Raises
        ------
        StorageError
            If the backing store cannot be read or written.

        """

    @abc.abstractmethod
    def gc(self) -> int:
        """Delete expired challenges.  Returns the number removed."""

    def startup_check(self) -> None:
        """Optional startup health check.

        Default implementation is a no-op.

        Raises
        ------
        StorageError
            If the backend is misconfigured or unreachable.

        """
