"""PostgreSQL-backed challenge store.

Challenges survive restarts and are shared by every worker pointing at
the same database.  Consumption is a single ``DELETE ... RETURNING``
statement, so the database guarantees that only one caller receives
the row.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

import psycopg

from scepgate.challenge.base import GenerationError, StorageError
from scepgate.store.base import ChallengeStore

if TYPE_CHECKING:
    from scepgate.config.settings import DatabaseSettings, DynamicStoreSettings

log = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS scep_challenges (
    token       TEXT PRIMARY KEY,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    expires_at  TIMESTAMPTZ
);
CREATE INDEX IF NOT EXISTS scep_challenges_expires_at_idx
    ON scep_challenges (expires_at);
"""

_INSERT_SQL = "INSERT INTO scep_challenges (token, created_at, expires_at) VALUES (%s, %s, %s)"

_CONSUME_SQL = (
    "DELETE FROM scep_challenges "
    "WHERE token = %s AND (expires_at IS NULL OR expires_at > now()) "
    "RETURNING token"
)

_GC_SQL = "DELETE FROM scep_challenges WHERE expires_at IS NOT NULL AND expires_at <= now()"


class PostgresChallengeStore(ChallengeStore):
    """One-time challenge store in a ``scep_challenges`` table."""

    backend_name: ClassVar[str] = "postgres"

    def __init__(
        self,
        settings: DynamicStoreSettings,
        database: DatabaseSettings | None = None,
    ) -> None:
        if database is None or not database.database:
            msg = "database.database is required for the postgres challenge store"
            raise StorageError(msg)
        super().__init__(settings, database)

    def _connect_kwargs(self) -> dict[str, Any]:
        db = self._database
        kwargs: dict[str, Any] = {
            "host": db.host,
            "port": db.port,
            "dbname": db.database,
            "user": db.user,
            "sslmode": db.sslmode,
            "connect_timeout": db.connection_timeout,
            "autocommit": True,
        }
        if db.password:
            kwargs["password"] = db.password
        return kwargs

    def _connect(self) -> psycopg.Connection:
        return psycopg.connect(**self._connect_kwargs())

    def startup_check(self) -> None:
        """Verify connectivity and create the table when ``auto_setup`` is on."""
        try:
            with self._connect() as conn:
                if self._database.auto_setup:
                    conn.execute(SCHEMA_SQL)
                    log.info("Ensured scep_challenges table exists")
                else:
                    conn.execute("SELECT 1")
        except psycopg.Error as exc:
            msg = f"Challenge database unavailable: {exc}"
            raise StorageError(msg) from exc

    def scep_challenge(self) -> str:
        record = self._new_record()
        try:
            with self._connect() as conn:
                conn.execute(
                    _INSERT_SQL,
                    (record.token, record.created_at, record.expires_at),
                )
        except psycopg.Error as exc:
            msg = f"Failed to record new challenge: {exc}"
            raise GenerationError(msg) from exc
        return record.token

    def has_challenge(self, candidate: str) -> bool:
        if not candidate:
            return False
        try:
            with self._connect() as conn:
                row = conn.execute(_CONSUME_SQL, (candidate,)).fetchone()
        except psycopg.Error as exc:
            msg = f"Failed to look up challenge: {exc}"
            raise StorageError(msg) from exc
        return row is not None

    def gc(self) -> int:
        try:
            with self._connect() as conn:
                cur = conn.execute(_GC_SQL)
                deleted = cur.rowcount
        except psycopg.Error as exc:
            msg = f"Failed to delete expired challenges: {exc}"
            raise StorageError(msg) from exc
        if deleted:
            log.debug("Removed %d expired challenges", deleted)
        return max(deleted, 0)
