r"""Remote delegated challenge validator.

Forwards the challenge to an external service over HTTP(S) and lets it
decide.  Authentication options follow the upstream-service pattern:

- **Header-based auth**: API tokens, Bearer tokens, custom headers
  (configured via ``auth_header`` / ``auth_value``)
- **Mutual TLS (mTLS)**: Client certificate + key
  (configured via ``client_cert_path`` / ``client_key_path``)
- **Custom CA trust**: Pin the service's TLS certificate
  (configured via ``ca_cert_path``)

API contract
------------
**Check**: ``POST {url}``

Request body (JSON)::

    {
        "device_id": "ou1, ou2",
        "challenge": "s3cret"
    }

``device_id`` is the CSR subject's organizational units joined with
``", "``.  Any 2xx response accepts the challenge; the body is ignored.
Every other status rejects it; redirects are not followed, so a
3xx rejects as well.  Transport failures raise
:class:`RemoteCheckError` and a timeout or cancelled request raises
:class:`ChallengeCancelled`; neither is ever read as acceptance.
"""

from __future__ import annotations

import json
import logging
import ssl
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, ClassVar

from scepgate.challenge.base import (
    ChallengeCancelled,
    ChallengeValidator,
    RemoteCheckError,
)

if TYPE_CHECKING:
    from scepgate.config.settings import ExternalCheckSettings
    from scepgate.core.context import RequestContext
    from scepgate.core.types import ChallengeRequest

log = logging.getLogger(__name__)

_HTTP_OK_MIN = 200
_HTTP_OK_MAX = 300

# Below this many seconds a socket timeout turns into non-blocking mode.
_MIN_TIMEOUT = 0.001


def build_payload(request: ChallengeRequest) -> bytes:
    """Serialise the device challenge sent to the remote service."""
    try:
        return json.dumps(
            {
                "device_id": request.device_id,
                "challenge": request.challenge,
            },
        ).encode("utf-8")
    except (TypeError, ValueError, UnicodeEncodeError) as exc:
        msg = f"Unable to serialise device challenge: {exc}"
        raise RemoteCheckError(msg) from exc


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Surface 3xx responses as :class:`~urllib.error.HTTPError` instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # noqa: ARG002, PLR0913
        return None


class ExternalChallengeValidator(ChallengeValidator):
    """Delegates the challenge decision to a remote HTTP endpoint."""

    name: ClassVar[str] = "external"

    def __init__(self, settings: ExternalCheckSettings) -> None:
        if not settings.url:
            msg = "challenge.external.url is required for the external validator"
            raise ValueError(msg)
        self._settings = settings
        self._ssl_ctx: ssl.SSLContext | None = None

    @property
    def url(self) -> str:
        return self._settings.url

    def _get_ssl_context(self) -> ssl.SSLContext:
        """Build (and cache) an SSL context with mTLS and CA trust config."""
        if self._ssl_ctx is not None:
            return self._ssl_ctx

        ctx = ssl.create_default_context()

        if self._settings.ca_cert_path:
            ctx.load_verify_locations(self._settings.ca_cert_path)

        if self._settings.client_cert_path and self._settings.client_key_path:
            ctx.load_cert_chain(
                self._settings.client_cert_path,
                self._settings.client_key_path,
            )

        self._ssl_ctx = ctx
        return ctx

    def _build_request(self, data: bytes) -> urllib.request.Request:
        req = urllib.request.Request(
            self._settings.url,
            data=data,
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        if self._settings.auth_value:
            req.add_header(self._settings.auth_header, self._settings.auth_value)
        return req

    def _build_opener(self) -> urllib.request.OpenerDirector:
        if self._settings.url.lower().startswith("https://"):
            handler = urllib.request.HTTPSHandler(context=self._get_ssl_context())
            return urllib.request.build_opener(handler, _NoRedirectHandler())
        return urllib.request.build_opener(_NoRedirectHandler())

    def _timeout(self, ctx: RequestContext) -> float:
        timeout = float(self._settings.timeout_seconds)
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        if timeout < _MIN_TIMEOUT:
            msg = "request deadline exceeded"
            raise ChallengeCancelled(msg)
        return timeout

    def validate(self, ctx: RequestContext, request: ChallengeRequest) -> bool:
        ctx.check()

        req = self._build_request(build_payload(request))
        opener = self._build_opener()
        timeout = self._timeout(ctx)

        log.debug(
            "Checking challenge with external service %s (device_id=%r)",
            self._settings.url,
            request.device_id,
        )

        try:
            resp = opener.open(req, timeout=timeout)
        except urllib.error.HTTPError as exc:
            exc.close()
            ctx.check()
            log.info(
                "External challenge service rejected device_id=%r with HTTP %d",
                request.device_id,
                exc.code,
            )
            return False
        except TimeoutError as exc:
            msg = f"External challenge check timed out after {timeout:.1f}s"
            raise ChallengeCancelled(msg) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                msg = f"External challenge check timed out after {timeout:.1f}s"
                raise ChallengeCancelled(msg) from exc
            msg = f"Failed to reach external challenge service at {self._settings.url}: {exc.reason}"
            raise RemoteCheckError(msg) from exc
        except OSError as exc:
            msg = f"Failed to reach external challenge service at {self._settings.url}: {exc}"
            raise RemoteCheckError(msg) from exc

        try:
            status = resp.status
        finally:
            resp.close()

        ctx.check()

        if _HTTP_OK_MIN <= status < _HTTP_OK_MAX:
            return True

        log.info(
            "External challenge service rejected device_id=%r with HTTP %d",
            request.device_id,
            status,
        )
        return False
