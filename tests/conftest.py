"""Root conftest for the SCEPGATE test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# CSR / message helpers
# ---------------------------------------------------------------------------


def _build_csr(organizational_units=()) -> x509.CertificateSigningRequest:
    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, "device.example.com")]
    attrs.extend(
        x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, ou) for ou in organizational_units
    )
    key = ec.generate_private_key(ec.SECP256R1())
    return x509.CertificateSigningRequestBuilder().subject_name(x509.Name(attrs)).sign(
        key,
        hashes.SHA256(),
    )


@pytest.fixture()
def make_csr():
    """Factory: build a CSR whose subject carries the given OUs."""
    return _build_csr


@pytest.fixture()
def make_message():
    """Factory: build a CSRReqMessage with a challenge and optional OUs."""
    from scepgate.core.types import CSRReqMessage

    def _make(challenge: str = "", organizational_units=(), *, with_csr: bool = True):
        csr = _build_csr(organizational_units) if with_csr else None
        return CSRReqMessage(
            challenge_password=challenge,
            csr=csr,
            transaction_id="txn-1",
        )

    return _make


@pytest.fixture()
def ctx():
    """A fresh request context without deadline."""
    from scepgate.core.context import RequestContext

    return RequestContext.background()


# ---------------------------------------------------------------------------
# Minimal config data shared by multiple test modules
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_config_data() -> dict:
    """Return a dict containing the minimum valid configuration."""
    return {
        "challenge": {"static_secret": "topsecret"},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, minimal_config_data: dict) -> Path:
    """Write *minimal_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(minimal_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


# ---------------------------------------------------------------------------
# Global state cleanup, autouse so every test gets a fresh slate
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the ScepgateConfig singleton before and after every test."""
    from scepgate.config.scepgate_config import ScepgateConfig

    ScepgateConfig.reset()
    yield
    ScepgateConfig.reset()


@pytest.fixture(autouse=True)
def reset_scepgate_loggers():
    """Undo configure_logging() so caplog sees scepgate records in every test."""
    import logging

    yield
    for name in ("scepgate", "scepgate.security"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
