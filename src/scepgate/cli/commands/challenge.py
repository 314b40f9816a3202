"""Challenge management subcommands."""

from __future__ import annotations

import logging
import sys

from scepgate.challenge.base import ChallengeError

log = logging.getLogger(__name__)


def run_challenge(config, args) -> None:
    """Handle challenge subcommands."""
    if args.challenge_command == "new":
        _challenge_new(config)
    elif args.challenge_command == "check":
        _challenge_check(config, args.token)
    elif args.challenge_command == "verify":
        _challenge_verify(config, args)
    elif args.challenge_command == "gc":
        _challenge_gc(config)
    else:
        print("usage: scepgate challenge {new,check,verify,gc}", file=sys.stderr)  # noqa: T201
        sys.exit(2)


def _load_store(config):
    from scepgate.store.registry import load_challenge_store

    settings = config.settings
    if not settings.challenge.dynamic.enabled:
        print("challenge.dynamic.enabled is false", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    store = load_challenge_store(settings.challenge.dynamic, settings.database)
    store.startup_check()
    return store


def _challenge_new(config) -> None:
    """Issue a dynamic challenge and print it."""
    from scepgate.logging import security_events

    try:
        store = _load_store(config)
        token = store.scep_challenge()
    except ChallengeError as exc:
        print(f"failed to issue challenge: {exc.detail}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    security_events.challenge_issued(token, store.backend_name)
    print(token)  # noqa: T201


def _challenge_check(config, token: str) -> None:
    """Consume a dynamic challenge; exit 0 if it was valid."""
    try:
        store = _load_store(config)
        valid = store.has_challenge(token)
    except ChallengeError as exc:
        print(f"failed to check challenge: {exc.detail}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    print("valid" if valid else "invalid")  # noqa: T201
    sys.exit(0 if valid else 1)


def _challenge_gc(config) -> None:
    """Delete expired dynamic challenges and print how many were removed."""
    try:
        store = _load_store(config)
        deleted = store.gc()
    except ChallengeError as exc:
        print(f"failed to delete expired challenges: {exc.detail}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    print(f"removed {deleted} expired challenge(s)")  # noqa: T201


def _challenge_verify(config, args) -> None:
    """Run the configured chain against a synthetic request, signing nothing."""
    from scepgate.challenge.registry import build_challenge_signer
    from scepgate.core.context import RequestContext
    from scepgate.signer.base import CSRSignerContextFunc

    settings = config.settings
    try:
        store = _load_store(config) if settings.challenge.dynamic.enabled else None
    except ChallengeError as exc:
        print(f"failed to open challenge store: {exc.detail}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    reached = []
    terminal = CSRSignerContextFunc(lambda _ctx, _msg: reached.append(True))
    signer = build_challenge_signer(settings.challenge, terminal, store=store)

    msg = _synthetic_message(args.challenge, args.ou)
    ctx = RequestContext(timeout=args.timeout)
    try:
        signer.sign_csr_context(ctx, msg)
    except ChallengeError as exc:
        print(f"rejected: {type(exc).__name__}: {exc.detail}")  # noqa: T201
        sys.exit(1)
    print("authorized" if reached else "rejected")  # noqa: T201
    sys.exit(0 if reached else 1)


def _synthetic_message(challenge: str, organizational_units: list[str]):
    """Build a CSR request message carrying *challenge* and the given OUs."""
    from cryptography import x509
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.asymmetric import ec
    from cryptography.x509.oid import NameOID

    from scepgate.core.types import CSRReqMessage

    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, "scepgate-verify")]
    attrs.extend(
        x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, ou) for ou in organizational_units
    )
    key = ec.generate_private_key(ec.SECP256R1())
    csr = x509.CertificateSigningRequestBuilder().subject_name(x509.Name(attrs)).sign(
        key,
        hashes.SHA256(),
    )
    return CSRReqMessage(challenge_password=challenge, csr=csr, transaction_id="cli-verify")
