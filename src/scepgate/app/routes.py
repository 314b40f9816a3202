"""Admin API routes: dynamic challenge issuance and health.

``POST /challenge`` is the operator flow that hands out one-time
challenge passwords, e.g. for embedding into an enrollment profile.
It requires ``Authorization: Bearer <admin_api.token>``.
"""

from __future__ import annotations

import functools
import hmac
import logging
from typing import TYPE_CHECKING, Any

from flask import Blueprint, current_app, jsonify, request

from scepgate.app.errors import UNAUTHORIZED, Problem
from scepgate.logging import security_events

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)

_BEARER_PREFIX = "Bearer "


def require_admin_token(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject requests that do not carry the configured bearer token."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
        expected: str = current_app.config["SCEPGATE_SETTINGS"].admin_api.token
        header = request.headers.get("Authorization", "")
        if not expected or not header.startswith(_BEARER_PREFIX):
            raise Problem(
                UNAUTHORIZED,
                "Missing bearer token",
                401,
                headers={"WWW-Authenticate": "Bearer"},
            )
        presented = header[len(_BEARER_PREFIX) :].strip()
        if not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
            log.warning("Rejected admin request with invalid token")
            raise Problem(
                UNAUTHORIZED,
                "Invalid bearer token",
                401,
                headers={"WWW-Authenticate": "Bearer"},
            )
        return view(*args, **kwargs)

    return wrapper


@admin_bp.route("/challenge", methods=["POST"])
@require_admin_token
def new_challenge():
    store = current_app.extensions["challenge_store"]
    token = store.scep_challenge()
    security_events.challenge_issued(token, store.backend_name)
    resp = jsonify({"challenge": token})
    resp.status_code = 201
    resp.headers["Cache-Control"] = "no-store"
    return resp


@admin_bp.route("/healthz", methods=["GET"])
def healthz():
    return jsonify({"status": "ok"})
