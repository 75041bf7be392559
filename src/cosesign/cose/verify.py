from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Any, Dict, Optional

import cbor2

from ..crypto.digest import sha256
from ..crypto.signer import verify_digest
from . import codec
from .errors import SignatureVerificationFailed
from .sign1 import CoseSign1


@dataclass
class VerifiedSign1:
    payload: bytes
    signer_pub_key_der: bytes
    protected: Dict[Any, Any]


def verify_cose_sign1(data: bytes, public_key_der: Optional[bytes] = None) -> VerifiedSign1:
    """Decode a tagged COSE_Sign1 and check its RS256 signature.

    ``public_key_der`` pins a trusted key. When omitted, the key embedded in
    the unprotected header is used, which only proves integrity, not origin.
    Raises ``CborDecodeError`` for malformed input and
    ``SignatureVerificationFailed`` for a bad signature or key mismatch.
    """
    obj = codec.decode(data)
    embedded = obj.signer_pub_key_der
    if public_key_der is not None:
        if embedded and not hmac.compare_digest(embedded, bytes(public_key_der)):
            raise SignatureVerificationFailed("embedded signer key does not match the trusted key")
        key_der = bytes(public_key_der)
    else:
        if not embedded:
            raise SignatureVerificationFailed("no signer key embedded and none supplied")
        key_der = embedded

    tbs = CoseSign1.from_object(obj).create_tbs()
    if not verify_digest(key_der, sha256(tbs), obj.signature):
        raise SignatureVerificationFailed("RS256 signature does not verify")

    return VerifiedSign1(
        payload=obj.payload,
        signer_pub_key_der=embedded,
        protected=cbor2.loads(obj.protected_header),
    )


__all__ = ["VerifiedSign1", "verify_cose_sign1"]
