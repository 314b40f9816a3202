"""Value types threaded through the verification chain.

:class:`CSRReqMessage` is the decoded PKCSReq handed over by the SCEP
layer; the core reads it but never mutates it.  :class:`ChallengeRequest`
is the slice of it that validators look at.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography.x509.oid import NameOID

if TYPE_CHECKING:
    from cryptography import x509

DEVICE_ID_SEPARATOR = ", "


@dataclass(frozen=True)
class CSRReqMessage:
    """A decoded certificate signing request message.

    Attributes
    ----------
    challenge_password:
        The challengePassword attribute presented with the CSR.
    csr:
        Parsed PKCS#10 request, or ``None`` when the caller only has the
        challenge (e.g. tests, dry runs).
    transaction_id:
        SCEP transaction identifier, used only for log correlation.

    """

    challenge_password: str
    csr: x509.CertificateSigningRequest | None = None
    transaction_id: str = ""

    @property
    def organizational_units(self) -> tuple[str, ...]:
        """OU values of the CSR subject, in subject order."""
        if self.csr is None:
            return ()
        return tuple(
            str(attr.value)
            for attr in self.csr.subject.get_attributes_for_oid(
                NameOID.ORGANIZATIONAL_UNIT_NAME,
            )
        )


def device_id_from_units(organizational_units: tuple[str, ...] | list[str]) -> str:
    """Join organizational units into the device identifier."""
    return DEVICE_ID_SEPARATOR.join(organizational_units)


@dataclass(frozen=True)
class ChallengeRequest:
    """Input to a challenge validator."""

    challenge: str
    organizational_units: tuple[str, ...] = ()

    @property
    def device_id(self) -> str:
        return device_id_from_units(self.organizational_units)

    @classmethod
    def from_message(cls, msg: CSRReqMessage) -> ChallengeRequest:
        return cls(
            challenge=msg.challenge_password or "",
            organizational_units=msg.organizational_units,
        )


@dataclass(frozen=True)
class VerificationOutcome:
    """Binary verification decision: authorized, or rejected with a reason."""

    authorized: bool
    reason: str | None = None

    @classmethod
    def accept(cls) -> VerificationOutcome:
        return cls(authorized=True)

    @classmethod
    def reject(cls, reason: str) -> VerificationOutcome:
        return cls(authorized=False, reason=reason)

    def __bool__(self) -> bool:
        return self.authorized
