"""CSR signing contract.

Exports the two signer protocols, the callable adapters, the
context-dropping bridge and the no-op terminal signer.
"""

from scepgate.signer.base import (
    CSRSigner,
    CSRSignerContext,
    CSRSignerContextFunc,
    CSRSignerFunc,
    SignCSRAdapter,
    nop_signer,
)

__all__ = [
    "CSRSigner",
    "CSRSignerContext",
    "CSRSignerContextFunc",
    "CSRSignerFunc",
    "SignCSRAdapter",
    "nop_signer",
]
