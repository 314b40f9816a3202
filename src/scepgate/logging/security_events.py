"""Structured security event logger.

Emits standardized security events for SIEM integration.
All events are logged to the ``scepgate.security`` logger with
a consistent ``event_id`` field for filtering and alerting.

Challenge values are always redacted via
:func:`~scepgate.logging.sanitize.sanitize_for_logs` before emission.
"""

from __future__ import annotations

import logging
from typing import Any

from scepgate.logging.sanitize import sanitize_for_logs

security_log = logging.getLogger("scepgate.security")


def _emit(
    event_id: str,
    message: str,
    *args: Any,  # noqa: ANN401
    severity: str = "INFO",
    **extra: Any,  # noqa: ANN401
) -> None:
    """Emit a structured security event.

    All *extra* keyword arguments are sanitized to redact secrets
    before logging.
    """
    data: dict[str, object] = {
        "event_id": event_id,
        "severity": severity,
    }
    data.update(sanitize_for_logs(extra))
    level = getattr(logging, severity.upper(), logging.INFO)
    security_log.log(level, message, *args, extra=data)


def challenge_issued(challenge: str, store: str) -> None:
    """Log issuance of a new dynamic challenge."""
    _emit(
        "scepgate.security.challenge_issued",
        "Dynamic challenge issued by %s store",
        store,
        challenge=challenge,
    )


def challenge_accepted(
    validator: str,
    device_id: str,
    transaction_id: str = "",
) -> None:
    """Log a challenge that passed a validator."""
    _emit(
        "scepgate.security.challenge_accepted",
        "Challenge accepted by %s validator: device_id=%r",
        validator,
        device_id,
        validator=validator,
        device_id=device_id,
        transaction_id=transaction_id,
    )


def challenge_rejected(
    validator: str,
    device_id: str,
    challenge: str,
    transaction_id: str = "",
) -> None:
    """Log a challenge that a validator rejected."""
    _emit(
        "scepgate.security.challenge_rejected",
        "Challenge rejected by %s validator: device_id=%r",
        validator,
        device_id,
        validator=validator,
        device_id=device_id,
        challenge=challenge,
        transaction_id=transaction_id,
        severity="WARNING",
    )


def challenge_check_failed(
    validator: str,
    device_id: str,
    error: str,
    transaction_id: str = "",
) -> None:
    """Log a validator that could not reach a decision."""
    _emit(
        "scepgate.security.challenge_check_failed",
        "Challenge check by %s validator failed: %s",
        validator,
        error,
        validator=validator,
        device_id=device_id,
        error=error,
        transaction_id=transaction_id,
        severity="ERROR",
    )
