"""Sensitive data sanitization for log output.

Provides :func:`sanitize_for_logs` which redacts challenge passwords,
auth header values and PEM bodies from data structures before they are
written to log files.  Only a short fingerprint of a redacted secret is
kept so that related events can still be correlated.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any

# Keys whose values are secrets regardless of content
_SECRET_KEYS = frozenset(
    {
        "challenge",
        "challenge_password",
        "static_secret",
        "token",
        "auth_value",
        "password",
    }
)

_FINGERPRINT_LENGTH = 8

# Regex matching the base64 body inside PEM blocks
_PEM_BODY_RE = re.compile(
    r"(-----BEGIN [A-Z0-9 ]+-----)"
    r"([\s\S]*?)"
    r"(-----END [A-Z0-9 ]+-----)",
)


def fingerprint(secret: str) -> str:
    """Return a short, non-reversible tag for *secret*."""
    digest = hashlib.sha256(secret.encode("utf-8")).hexdigest()
    return f"sha256:{digest[:_FINGERPRINT_LENGTH]}"


def redact_secret(value: Any) -> str:
    """Replace a secret with ``[REDACTED]`` plus its fingerprint."""
    if not value:
        return "[EMPTY]"
    return f"[REDACTED {fingerprint(str(value))}]"


def sanitize_pem(pem: str) -> str:
    """Replace the base64 body of PEM blocks with ``[REDACTED]``.

    Preserves BEGIN/END markers so the type of object is still visible.
    """

    def _redact(m) -> str:
        return f"{m.group(1)}\n[REDACTED]\n{m.group(3)}"

    return _PEM_BODY_RE.sub(_redact, pem)


def sanitize_for_logs(data: Any) -> Any:
    """Recursively sanitize sensitive material in *data*.

    Handles dicts (secret-named keys are redacted), lists, and plain
    strings.  Non-sensitive data passes through unchanged.
    """
    if isinstance(data, dict):
        return {
            k: redact_secret(v) if k in _SECRET_KEYS else sanitize_for_logs(v)
            for k, v in data.items()
        }

    if isinstance(data, (list, tuple)):
        return type(data)(sanitize_for_logs(item) for item in data)

    if isinstance(data, str):
        if "-----BEGIN " in data:
            return sanitize_pem(data)
        return data

    return data
