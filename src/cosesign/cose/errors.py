from __future__ import annotations


class CborError(ValueError):
    """Base class for COSE/CBOR codec failures. No partial output is valid."""


class CborDecodeError(CborError):
    """Malformed or structurally inconsistent CBOR input."""


class CborEncodeError(CborError):
    """Destination too small, or a field rejected during encoding."""


class SignatureVerificationFailed(Exception):
    pass


__all__ = ["CborError", "CborDecodeError", "CborEncodeError", "SignatureVerificationFailed"]
