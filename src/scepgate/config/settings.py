"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the application actually reads.

Access pattern::

    from scepgate.config import get_config

    ext = get_config().settings.challenge.external
    print(ext.url, ext.timeout_seconds)
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Challenge
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExternalCheckSettings:
    """Remote delegated challenge check (URL, auth, TLS, timeout)."""

    url: str
    timeout_seconds: float
    auth_header: str
    auth_value: str
    ca_cert_path: str | None
    client_cert_path: str | None
    client_key_path: str | None


@dataclass(frozen=True)
class DynamicStoreSettings:
    """One-time challenge store settings."""

    enabled: bool
    backend: str
    ttl_seconds: int
    token_bytes: int
    gc_interval_seconds: int = 300


@dataclass(frozen=True)
class ChallengeSettings:
    """Which challenge validators are active and how they are set up."""

    static_secret: str
    allow_anonymous: bool
    external: ExternalCheckSettings
    dynamic: DynamicStoreSettings


def _build_challenge(data: dict | None) -> ChallengeSettings:
    d = data or {}
    e = d.get("external") or {}
    dy = d.get("dynamic") or {}
    return ChallengeSettings(
        static_secret=d.get("static_secret", "") or "",
        allow_anonymous=d.get("allow_anonymous", False),
        external=ExternalCheckSettings(
            url=e.get("url", "") or "",
            timeout_seconds=e.get("timeout_seconds", 10),
            auth_header=e.get("auth_header", "Authorization"),
            auth_value=e.get("auth_value", ""),
            ca_cert_path=e.get("ca_cert_path"),
            client_cert_path=e.get("client_cert_path"),
            client_key_path=e.get("client_key_path"),
        ),
        dynamic=DynamicStoreSettings(
            enabled=dy.get("enabled", False),
            backend=dy.get("backend", "memory"),
            ttl_seconds=dy.get("ttl_seconds", 3600),
            token_bytes=dy.get("token_bytes", 24),
            gc_interval_seconds=dy.get("gc_interval_seconds", 300),
        ),
    )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """PostgreSQL connection settings for the postgres challenge store."""

    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str
    connection_timeout: int
    auto_setup: bool


def _build_database(data: dict | None) -> DatabaseSettings:
    d = data or {}
    return DatabaseSettings(
        host=d.get("host", "localhost"),
        port=d.get("port", 5432),
        database=d.get("database", ""),
        user=d.get("user", "scepgate"),
        password=d.get("password", ""),
        sslmode=d.get("sslmode", "prefer"),
        connection_timeout=d.get("connection_timeout", 10),
        auto_setup=d.get("auto_setup", False),
    )


# ---------------------------------------------------------------------------
# Server / admin API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerSettings:
    """Bind address of the admin API."""

    bind: str
    port: int


def _build_server(data: dict | None) -> ServerSettings:
    d = data or {}
    return ServerSettings(
        bind=d.get("bind", "127.0.0.1"),
        port=d.get("port", 8081),
    )


@dataclass(frozen=True)
class AdminApiSettings:
    """Challenge issuance endpoint."""

    enabled: bool
    token: str


def _build_admin_api(data: dict | None) -> AdminApiSettings:
    d = data or {}
    return AdminApiSettings(
        enabled=d.get("enabled", False),
        token=d.get("token", ""),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditLogSettings:
    """Security event log output (rotating file)."""

    enabled: bool
    file: str | None
    max_file_size_bytes: int
    backup_count: int


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format, audit)."""

    level: str
    format: str
    audit: AuditLogSettings


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    a = d.get("audit") or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "json"),
        audit=AuditLogSettings(
            enabled=a.get("enabled", True),
            file=a.get("file"),
            max_file_size_bytes=a.get("max_file_size_bytes", 104857600),
            backup_count=a.get("backup_count", 10),
        ),
    )


# ---------------------------------------------------------------------------
# Root settings aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScepgateSettings:
    challenge: ChallengeSettings
    database: DatabaseSettings
    server: ServerSettings
    admin_api: AdminApiSettings
    logging: LoggingSettings


def build_settings(data: dict) -> ScepgateSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`ScepgateConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return ScepgateSettings(
        challenge=_build_challenge(data.get("challenge")),
        database=_build_database(data.get("database")),
        server=_build_server(data.get("server")),
        admin_api=_build_admin_api(data.get("admin_api")),
        logging=_build_logging(data.get("logging")),
    )
