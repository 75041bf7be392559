from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    HDR_SIGNER_PUB_KEY_DER,
    PROTECTED_HEADER,
    PROTECTED_HEADER_SIZE,
    PUB_KEY_MAX_SIZE,
    SIGNATURE_SIZE,
)
from .errors import CborEncodeError


def as_bytes(value, what: str) -> bytes:
    """Immutable copy of a bytes-like value; anything else is an encode error."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise CborEncodeError(f"{what} must be bytes-like, got {type(value).__name__}")
    return bytes(value)


@dataclass(frozen=True)
class UnprotectedHeader:
    """Unprotected header map: {248: bstr(signer public key DER)}.

    An absent key is an empty bstr; the map entry itself is always present.
    """

    signer_pub_key_der: bytes = b""

    def __post_init__(self) -> None:
        der = as_bytes(self.signer_pub_key_der, "signer public key DER")
        if len(der) > PUB_KEY_MAX_SIZE:
            raise CborEncodeError(
                f"signer public key DER is {len(der)} bytes, limit is {PUB_KEY_MAX_SIZE}"
            )
        object.__setattr__(self, "signer_pub_key_der", der)

    @classmethod
    def with_der(cls, pub_key_der: Optional[bytes]) -> "UnprotectedHeader":
        if pub_key_der is None:
            return cls()
        return cls(signer_pub_key_der=pub_key_der)

    def to_cbor(self) -> dict:
        return {HDR_SIGNER_PUB_KEY_DER: self.signer_pub_key_der}


@dataclass(frozen=True)
class CoseSign1Object:
    """COSE_Sign1 = [protected: bstr, unprotected: map, payload: bstr, signature: bstr]."""

    payload: bytes
    signature: bytes
    unprotected_header: UnprotectedHeader = field(default_factory=UnprotectedHeader)
    protected_header: bytes = PROTECTED_HEADER

    def __post_init__(self) -> None:
        protected = as_bytes(self.protected_header, "protected header")
        if len(protected) != PROTECTED_HEADER_SIZE or protected != PROTECTED_HEADER:
            raise CborEncodeError("protected header must be the fixed RS256/application-json header")
        signature = as_bytes(self.signature, "signature")
        if len(signature) != SIGNATURE_SIZE:
            raise CborEncodeError(
                f"signature must be exactly {SIGNATURE_SIZE} bytes, got {len(signature)}"
            )
        object.__setattr__(self, "protected_header", protected)
        object.__setattr__(self, "signature", signature)
        object.__setattr__(self, "payload", as_bytes(self.payload, "payload"))

    @property
    def signer_pub_key_der(self) -> bytes:
        return self.unprotected_header.signer_pub_key_der

    def to_cbor(self) -> list:
        return [
            self.protected_header,
            self.unprotected_header.to_cbor(),
            self.payload,
            self.signature,
        ]


__all__ = ["UnprotectedHeader", "CoseSign1Object", "as_bytes"]
