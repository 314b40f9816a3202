"""SCEPGATE configuration loader.

Lifecycle::

    # 1. CLI creates the singleton (once, at startup)
    ScepgateConfig(config_file="/etc/scepgate/config.yaml")

    # 2. Any module retrieves it afterwards
    from scepgate.config import get_config
    cfg = get_config()
    cfg.settings.challenge.external.url  # typed access

    # 3. Dynamic access
    cfg.get("challenge.dynamic.backend", default="memory")
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import jsonschema
import yaml

from scepgate.config.settings import ScepgateSettings, build_settings

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_MIN_ADMIN_TOKEN_LENGTH = 16
_MIN_STATIC_SECRET_LENGTH = 8

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton reference
# ---------------------------------------------------------------------------
_instance: ScepgateConfig | None = None


def get_config() -> ScepgateConfig:
    """Return the initialised configuration singleton.

    Raises :class:`RuntimeError` if :class:`ScepgateConfig` has not been
    created yet (i.e. the CLI entry point has not run).
    """
    if _instance is None:
        msg = (
            "Configuration not initialised. "
            "ScepgateConfig must be created with config_file= before calling get_config()."
        )
        raise RuntimeError(msg)
    return _instance


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when schema or cross-field validation finds problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _read_file(path: Path) -> dict:
    """Parse a YAML or JSON config file into a dict."""
    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as exc:
        msg = f"Cannot read config file '{path}': {exc}"
        raise ConfigValidationError([msg]) from exc
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        msg = f"Cannot parse config file '{path}': {exc}"
        raise ConfigValidationError([msg]) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file '{path}' must contain a mapping at the top level"
        raise ConfigValidationError([msg])
    return data


def _load_schema() -> dict:
    with _SCHEMA_PATH.open(encoding="utf-8") as f:
        return json.load(f)


def _schema_errors(data: dict) -> list[str]:
    validator = jsonschema.Draft7Validator(_load_schema())
    errors = []
    for err in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
        where = ".".join(str(p) for p in err.absolute_path) or "<root>"
        errors.append(f"{where}: {err.message}")
    return errors


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class ScepgateConfig:
    """Central configuration for SCEPGATE.

    The JSON schema is bundled at ``config/schema.json``.  Either
    ``config_file`` or ``data`` must be given.

    After construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(
        self,
        *,
        config_file: str | Path | None = None,
        data: dict | None = None,
    ) -> None:
        global _instance  # noqa: PLW0603

        if config_file is None and data is None:
            msg = "ScepgateConfig requires config_file= or data="
            raise TypeError(msg)

        self._source = str(config_file) if config_file is not None else None
        self._data = _read_file(Path(config_file)) if config_file is not None else dict(data)

        # Env vars resolve before schema validation so substituted
        # values are checked against enum constraints.
        _resolve_env_vars(self._data)

        errors = _schema_errors(self._data)
        if errors:
            raise ConfigValidationError(errors)
        self.additional_checks()

        self._settings: ScepgateSettings = build_settings(self._data)
        _instance = self

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> ScepgateSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    @property
    def data(self) -> dict:
        return self._data

    def get(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Dot-path lookup into the raw config data."""
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self, data: dict | None = None) -> None:
        """Semantic & cross-field validation, run after schema validation.

        Checks *data* when given, otherwise the loaded configuration.
        """
        if data is None:
            data = self._data
        errors: list[str] = []
        warnings: list[str] = []

        challenge = data.get("challenge") or {}
        external = challenge.get("external") or {}
        dynamic = challenge.get("dynamic") or {}
        database = data.get("database") or {}
        admin_api = data.get("admin_api") or {}

        # -- static --
        static_secret = challenge.get("static_secret") or ""
        if static_secret and len(static_secret) < _MIN_STATIC_SECRET_LENGTH:
            warnings.append(
                f"challenge.static_secret is short ({len(static_secret)} chars); "
                f"at least {_MIN_STATIC_SECRET_LENGTH} characters are recommended",
            )

        # -- external --
        ext_url = external.get("url") or ""
        if ext_url:
            parsed = urlparse(ext_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(
                    f"challenge.external.url must be an http(s) URL (got '{ext_url}')",
                )
            elif parsed.scheme == "http":
                warnings.append(
                    "challenge.external.url uses plain http; challenges will be "
                    "sent unencrypted",
                )
        if bool(external.get("client_cert_path")) != bool(external.get("client_key_path")):
            errors.append(
                "challenge.external.client_cert_path and client_key_path "
                "must be set together",
            )

        # -- dynamic --
        dynamic_enabled = dynamic.get("enabled", False)
        if dynamic_enabled and dynamic.get("backend", "memory") == "postgres":
            if not database.get("database"):
                errors.append(
                    "database.database is required when challenge.dynamic.backend is 'postgres'",
                )

        # -- at least one check --
        if (
            not static_secret
            and not ext_url
            and not dynamic_enabled
            and not challenge.get("allow_anonymous", False)
        ):
            errors.append(
                "no challenge validator configured: set challenge.static_secret, "
                "challenge.external.url or challenge.dynamic.enabled "
                "(or challenge.allow_anonymous to sign without a challenge)",
            )

        # -- admin API --
        if admin_api.get("enabled"):
            token = admin_api.get("token") or ""
            if len(token) < _MIN_ADMIN_TOKEN_LENGTH:
                errors.append(
                    f"admin_api.token must be at least {_MIN_ADMIN_TOKEN_LENGTH} "
                    "characters when admin_api.enabled is true",
                )
            if not dynamic_enabled:
                errors.append(
                    "admin_api.enabled requires challenge.dynamic.enabled",
                )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    # -- helpers ------------------------------------------------------------

    def reload_settings(self) -> ScepgateSettings:
        """Re-read the config file and rebuild settings.

        Does not reset the singleton.
        """
        if not self._source:
            msg = "Cannot reload: no source file recorded"
            raise RuntimeError(msg)

        new_data = _read_file(Path(self._source))
        _resolve_env_vars(new_data)
        errors = _schema_errors(new_data)
        if errors:
            raise ConfigValidationError(errors)
        self.additional_checks(new_data)
        return build_settings(new_data)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton -- testing only."""
        global _instance  # noqa: PLW0603
        _instance = None

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        return f"<ScepgateConfig config_file={self._source or '?'}>"
