"""Configuration subsystem for SCEPGATE.

Public API::

    from scepgate.config import get_config, ScepgateConfig

    # At startup (CLI only):
    ScepgateConfig(config_file="config.yaml")

    # Everywhere else:
    cfg    = get_config()
    secret = cfg.settings.challenge.static_secret   # typed access
    url    = cfg.get("challenge.external.url")      # dynamic dot-path
"""

from scepgate.config.scepgate_config import (
    ConfigValidationError,
    ScepgateConfig,
    get_config,
)
from scepgate.config.settings import (
    AdminApiSettings,
    AuditLogSettings,
    ChallengeSettings,
    DatabaseSettings,
    DynamicStoreSettings,
    ExternalCheckSettings,
    LoggingSettings,
    ScepgateSettings,
    ServerSettings,
    build_settings,
)

__all__ = [
    "AdminApiSettings",
    "AuditLogSettings",
    "ChallengeSettings",
    "ConfigValidationError",
    "DatabaseSettings",
    "DynamicStoreSettings",
    "ExternalCheckSettings",
    "LoggingSettings",
    "ScepgateConfig",
    "ScepgateSettings",
    "ServerSettings",
    "build_settings",
    "get_config",
]
