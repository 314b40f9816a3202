"""Tests for scepgate.config.scepgate_config.ScepgateConfig.

Covers file loading (YAML and JSON), environment variable resolution,
schema validation, cross-field checks, typed settings defaults and the
module-level singleton.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import yaml

from scepgate.config import ConfigValidationError, ScepgateConfig, get_config
from scepgate.config.scepgate_config import _resolve_env_vars


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _write_config(tmp_path: Path, overrides: dict | None = None) -> Path:
    cfg = {"challenge": {"static_secret": "topsecret"}}
    if overrides:
        _deep_merge(cfg, overrides)
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(cfg, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return path


def _make_config(tmp_path: Path, overrides: dict | None = None) -> ScepgateConfig:
    return ScepgateConfig(config_file=_write_config(tmp_path, overrides))


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoading:
    def test_yaml_file(self, tmp_config_file):
        config = ScepgateConfig(config_file=tmp_config_file)
        assert config.settings.challenge.static_secret == "topsecret"

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"challenge": {"static_secret": "fromjson1"}}), encoding="utf-8")
        assert ScepgateConfig(config_file=path).settings.challenge.static_secret == "fromjson1"

    def test_data_dict(self, minimal_config_data):
        config = ScepgateConfig(data=minimal_config_data)
        assert config.get("challenge.static_secret") == "topsecret"

    def test_requires_source(self):
        with pytest.raises(TypeError):
            ScepgateConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Cannot read"):
            ScepgateConfig(config_file=tmp_path / "absent.yaml")

    def test_unparseable_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("challenge: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="Cannot parse"):
            ScepgateConfig(config_file=path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="mapping"):
            ScepgateConfig(config_file=path)

    def test_get_default(self, minimal_config_data):
        config = ScepgateConfig(data=minimal_config_data)
        assert config.get("challenge.dynamic.backend", default="memory") == "memory"
        assert config.get("challenge.static_secret.deeper") is None

    def test_repr(self, tmp_config_file):
        assert str(tmp_config_file) in repr(ScepgateConfig(config_file=tmp_config_file))


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------


class TestSingleton:
    def test_get_config_before_init(self):
        with pytest.raises(RuntimeError, match="not initialised"):
            get_config()

    def test_get_config_after_init(self, minimal_config_data):
        config = ScepgateConfig(data=minimal_config_data)
        assert get_config() is config

    def test_reset(self, minimal_config_data):
        ScepgateConfig(data=minimal_config_data)
        ScepgateConfig.reset()
        with pytest.raises(RuntimeError):
            get_config()

    def test_failed_load_keeps_singleton_unset(self):
        with pytest.raises(ConfigValidationError):
            ScepgateConfig(data={"challenge": {}})
        with pytest.raises(RuntimeError):
            get_config()


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


class TestEnvVars:
    def test_resolved(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCEPGATE_TEST_SECRET", "from-env-123")
        config = _make_config(
            tmp_path,
            {"challenge": {"static_secret": "${SCEPGATE_TEST_SECRET}"}},
        )
        assert config.settings.challenge.static_secret == "from-env-123"

    def test_default_used(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SCEPGATE_TEST_UNSET", raising=False)
        config = _make_config(
            tmp_path,
            {"challenge": {"static_secret": "${SCEPGATE_TEST_UNSET:-fallback1}"}},
        )
        assert config.settings.challenge.static_secret == "fallback1"

    def test_missing_without_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SCEPGATE_TEST_UNSET", raising=False)
        with pytest.raises(ConfigValidationError, match="SCEPGATE_TEST_UNSET"):
            _make_config(tmp_path, {"challenge": {"static_secret": "${SCEPGATE_TEST_UNSET}"}})

    def test_resolved_before_schema(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCEPGATE_TEST_LEVEL", "LOUD")
        with pytest.raises(ConfigValidationError, match="logging.level"):
            _make_config(tmp_path, {"logging": {"level": "${SCEPGATE_TEST_LEVEL}"}})

    def test_lists_and_nesting(self, monkeypatch):
        monkeypatch.setenv("SCEPGATE_TEST_A", "a")
        data = {"x": ["${SCEPGATE_TEST_A}", {"y": "${SCEPGATE_TEST_A:-b}"}], "z": "plain"}
        _resolve_env_vars(data)
        assert data == {"x": ["a", {"y": "a"}], "z": "plain"}

    def test_partial_reference_untouched(self):
        data = {"v": "prefix-${NOT_WHOLE}"}
        _resolve_env_vars(data)
        assert data["v"] == "prefix-${NOT_WHOLE}"


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class TestSchema:
    def test_unknown_top_level_key(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Additional properties"):
            _make_config(tmp_path, {"bogus": 1})

    def test_unknown_nested_key(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="challenge"):
            _make_config(tmp_path, {"challenge": {"staticsecret": "typo"}})

    def test_token_bytes_minimum(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="token_bytes"):
            _make_config(tmp_path, {"challenge": {"dynamic": {"enabled": True, "token_bytes": 8}}})

    def test_timeout_positive(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="timeout_seconds"):
            _make_config(
                tmp_path,
                {"challenge": {"external": {"url": "https://x.example", "timeout_seconds": 0}}},
            )

    def test_sslmode_enum(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="sslmode"):
            _make_config(tmp_path, {"database": {"sslmode": "sometimes"}})

    def test_all_errors_reported(self, tmp_path):
        with pytest.raises(ConfigValidationError) as exc_info:
            _make_config(
                tmp_path,
                {"database": {"sslmode": "x", "port": 0}, "logging": {"format": "xml"}},
            )
        assert len(exc_info.value.errors) == 3


# ---------------------------------------------------------------------------
# Cross-field checks
# ---------------------------------------------------------------------------


class TestAdditionalChecks:
    def test_no_validator_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("challenge: {}\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="no challenge validator"):
            ScepgateConfig(config_file=path)

    def test_empty_file_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="no challenge validator"):
            ScepgateConfig(config_file=path)

    def test_anonymous_accepted(self):
        config = ScepgateConfig(data={"challenge": {"allow_anonymous": True}})
        assert config.settings.challenge.allow_anonymous is True

    def test_external_url_scheme(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="http"):
            _make_config(tmp_path, {"challenge": {"external": {"url": "ftp://x.example/"}}})

    def test_plain_http_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="scepgate.config.scepgate_config"):
            _make_config(tmp_path, {"challenge": {"external": {"url": "http://x.example/"}}})
        assert "plain http" in caplog.text

    def test_short_static_secret_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="scepgate.config.scepgate_config"):
            _make_config(tmp_path, {"challenge": {"static_secret": "abc"}})
        assert "static_secret is short" in caplog.text

    def test_client_cert_without_key(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="set together"):
            _make_config(
                tmp_path,
                {
                    "challenge": {
                        "external": {
                            "url": "https://x.example/",
                            "client_cert_path": "/etc/client.pem",
                        },
                    },
                },
            )

    def test_postgres_needs_database(self, tmp_path):
        with pytest.raises(ConfigValidationError, match=r"database\.database"):
            _make_config(
                tmp_path,
                {"challenge": {"dynamic": {"enabled": True, "backend": "postgres"}}},
            )

    def test_postgres_with_database(self, tmp_path):
        config = _make_config(
            tmp_path,
            {
                "challenge": {"dynamic": {"enabled": True, "backend": "postgres"}},
                "database": {"database": "scepgate"},
            },
        )
        assert config.settings.database.database == "scepgate"

    def test_admin_api_short_token(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="admin_api.token"):
            _make_config(
                tmp_path,
                {
                    "challenge": {"dynamic": {"enabled": True}},
                    "admin_api": {"enabled": True, "token": "short"},
                },
            )

    def test_admin_api_needs_dynamic(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="requires challenge.dynamic"):
            _make_config(
                tmp_path,
                {"admin_api": {"enabled": True, "token": "a" * 32}},
            )


# ---------------------------------------------------------------------------
# Typed settings
# ---------------------------------------------------------------------------


class TestSettingsDefaults:
    def test_defaults(self, minimal_config_data):
        s = ScepgateConfig(data=minimal_config_data).settings
        assert s.challenge.allow_anonymous is False
        assert s.challenge.external.url == ""
        assert s.challenge.external.timeout_seconds == 10
        assert s.challenge.external.auth_header == "Authorization"
        assert s.challenge.dynamic.enabled is False
        assert s.challenge.dynamic.backend == "memory"
        assert s.challenge.dynamic.ttl_seconds == 3600
        assert s.challenge.dynamic.token_bytes == 24
        assert s.challenge.dynamic.gc_interval_seconds == 300
        assert s.database.port == 5432
        assert s.database.sslmode == "prefer"
        assert s.server.bind == "127.0.0.1"
        assert s.server.port == 8081
        assert s.admin_api.enabled is False
        assert s.logging.level == "INFO"
        assert s.logging.format == "json"
        assert s.logging.audit.file is None

    def test_frozen(self, minimal_config_data):
        s = ScepgateConfig(data=minimal_config_data).settings
        with pytest.raises(AttributeError):
            s.challenge.static_secret = "changed"  # type: ignore[misc]


class TestReload:
    def test_reload_reads_file_again(self, tmp_path):
        config = _make_config(tmp_path)
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump({"challenge": {"static_secret": "rotated-secret"}}),
            encoding="utf-8",
        )
        new_settings = config.reload_settings()
        assert new_settings.challenge.static_secret == "rotated-secret"
        assert config.settings.challenge.static_secret == "topsecret"

    def test_reload_without_file(self, minimal_config_data):
        with pytest.raises(RuntimeError, match="no source file"):
            ScepgateConfig(data=minimal_config_data).reload_settings()

    def test_reload_runs_cross_field_checks(self, tmp_path):
        config = _make_config(tmp_path)
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "challenge": {"static_secret": "rotated-secret"},
                    "admin_api": {"enabled": True, "token": "a" * 32},
                },
            ),
            encoding="utf-8",
        )
        with pytest.raises(ConfigValidationError, match="requires challenge.dynamic"):
            config.reload_settings()
        assert config.settings.challenge.static_secret == "topsecret"
