"""Signing contract for CSRs and adapters onto it.

Every link of the verification chain, and the real CA/RA signer at its
end, implements :class:`CSRSignerContext`.  Older signers that take no
request context implement :class:`CSRSigner` and are bridged with
:class:`SignCSRAdapter`.

Usage::

    signer = SignCSRAdapter(legacy_signer)
    cert = signer.sign_csr_context(ctx, msg)

    # plain functions
    signer = CSRSignerContextFunc(lambda ctx, msg: ca.sign(msg.csr))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from cryptography import x509

    from scepgate.core.context import RequestContext
    from scepgate.core.types import CSRReqMessage


@runtime_checkable
class CSRSignerContext(Protocol):
    """Signs the CSR carried by a request message, honouring *ctx*."""

    def sign_csr_context(
        self,
        ctx: RequestContext,
        msg: CSRReqMessage,
    ) -> x509.Certificate | None: ...


@runtime_checkable
class CSRSigner(Protocol):
    """Signs the CSR carried by a request message; not cancellable."""

    def sign_csr(self, msg: CSRReqMessage) -> x509.Certificate | None: ...


class CSRSignerContextFunc:
    """Adapts a ``(ctx, msg)`` callable to :class:`CSRSignerContext`."""

    def __init__(
        self,
        func: Callable[[RequestContext, CSRReqMessage], x509.Certificate | None],
    ) -> None:
        self._func = func

    def sign_csr_context(
        self,
        ctx: RequestContext,
        msg: CSRReqMessage,
    ) -> x509.Certificate | None:
        return self._func(ctx, msg)


class CSRSignerFunc:
    """Adapts a ``(msg)`` callable to :class:`CSRSigner`."""

    def __init__(
        self,
        func: Callable[[CSRReqMessage], x509.Certificate | None],
    ) -> None:
        self._func = func

    def sign_csr(self, msg: CSRReqMessage) -> x509.Certificate | None:
        return self._func(msg)


class SignCSRAdapter:
    """Presents a context-free :class:`CSRSigner` as a :class:`CSRSignerContext`.

    The request context is dropped; the wrapped signer is assumed not
    to block long enough to need cancelling.
    """

    def __init__(self, next_signer: CSRSigner) -> None:
        self._next = next_signer

    def sign_csr_context(
        self,
        ctx: RequestContext,  # noqa: ARG002
        msg: CSRReqMessage,
    ) -> x509.Certificate | None:
        return self._next.sign_csr(msg)


def nop_signer() -> CSRSignerContextFunc:
    """Return a signer that signs nothing and reports no certificate."""
    return CSRSignerContextFunc(lambda _ctx, _msg: None)
