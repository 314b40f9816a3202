"""Per-request cancellation and deadline.

A :class:`RequestContext` travels with every signing call.  Most links
in the chain ignore it; the remote challenge check uses it to bound
its network call and to bail out when the caller has given up.

Usage::

    ctx = RequestContext(timeout=10)
    signer.sign_csr_context(ctx, msg)

    # from another thread
    ctx.cancel()
"""

from __future__ import annotations

import threading
import time

from scepgate.challenge.base import ChallengeCancelled


class RequestContext:
    """Cancellation flag plus optional absolute deadline.

    Parameters
    ----------
    timeout:
        Seconds from now until the context expires.  ``None`` means no
        deadline.

    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        _parent: RequestContext | None = None,
    ) -> None:
        self._cancelled = threading.Event()
        self._parent = _parent
        deadline = time.monotonic() + timeout if timeout is not None else None
        if _parent is not None and _parent._deadline is not None:
            deadline = _parent._deadline if deadline is None else min(deadline, _parent._deadline)
        self._deadline: float | None = deadline

    @classmethod
    def background(cls) -> RequestContext:
        """A context that is never cancelled and never expires on its own."""
        return cls()

    def with_timeout(self, timeout: float) -> RequestContext:
        """Derive a child context bounded by *timeout* and by this context."""
        return RequestContext(timeout, _parent=self)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or ``None``."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def check(self) -> None:
        """Raise :class:`ChallengeCancelled` if the context is done."""
        if self.cancelled:
            raise ChallengeCancelled("request cancelled")
        if self.expired:
            raise ChallengeCancelled("request deadline exceeded")

    def __repr__(self) -> str:
        return f"<RequestContext cancelled={self.cancelled} remaining={self.remaining()}>"
