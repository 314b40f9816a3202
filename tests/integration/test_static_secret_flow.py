"""End-to-end: configuration file to signing decision.

Loads a config from disk, builds the verification chain in front of a
real CA-style signer and submits real CSRs.
"""

from __future__ import annotations

import datetime

import pytest
import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from scepgate.challenge.base import InvalidChallenge
from scepgate.challenge.registry import build_challenge_signer
from scepgate.config import ScepgateConfig
from scepgate.signer.base import CSRSignerContextFunc
from scepgate.store.registry import load_challenge_store


class _TestCA:
    """Signs whatever CSR it is handed and counts how often."""

    def __init__(self):
        self.key = ec.generate_private_key(ec.SECP256R1())
        self.name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Test CA")])
        self.signed = 0

    def sign(self, ctx, msg) -> x509.Certificate:
        self.signed += 1
        now = datetime.datetime.now(datetime.UTC)
        return (
            x509.CertificateBuilder()
            .subject_name(msg.csr.subject)
            .issuer_name(self.name)
            .public_key(msg.csr.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + datetime.timedelta(days=1))
            .sign(self.key, hashes.SHA256())
        )


def _load(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return ScepgateConfig(config_file=path).settings


def test_static_secret_flow(tmp_path, ctx, make_message):
    settings = _load(tmp_path, {"challenge": {"static_secret": "topsecret"}})
    ca = _TestCA()
    signer = build_challenge_signer(settings.challenge, CSRSignerContextFunc(ca.sign))

    msg = make_message("topsecret", ["dept", "device-42"])
    cert = signer.sign_csr_context(ctx, msg)
    assert cert.subject == msg.csr.subject
    assert ca.signed == 1

    with pytest.raises(InvalidChallenge):
        signer.sign_csr_context(ctx, make_message("wrong"))
    assert ca.signed == 1


def test_dynamic_flow_single_use(tmp_path, ctx, make_message):
    settings = _load(tmp_path, {"challenge": {"dynamic": {"enabled": True}}})
    store = load_challenge_store(settings.challenge.dynamic, settings.database)
    ca = _TestCA()
    signer = build_challenge_signer(settings.challenge, CSRSignerContextFunc(ca.sign), store=store)

    token = store.scep_challenge()
    assert signer.sign_csr_context(ctx, make_message(token)) is not None

    with pytest.raises(InvalidChallenge):
        signer.sign_csr_context(ctx, make_message(token))
    assert ca.signed == 1


def test_anonymous_flow_signs_everything(tmp_path, ctx, make_message):
    settings = _load(tmp_path, {"challenge": {"allow_anonymous": True}})
    ca = _TestCA()
    signer = build_challenge_signer(settings.challenge, CSRSignerContextFunc(ca.sign))

    assert signer.sign_csr_context(ctx, make_message("")) is not None
    assert ca.signed == 1
