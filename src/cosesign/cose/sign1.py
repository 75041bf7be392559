from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from ..crypto.digest import sha256
from ..utils.logging import get_logger
from . import codec
from .constants import PROTECTED_HEADER
from .errors import CborEncodeError
from .model import CoseSign1Object, UnprotectedHeader, as_bytes
from .sig_structure import encode_sig_structure_into, sig_structure_size

if TYPE_CHECKING:  # pragma: no cover
    from ..crypto.signer import DigestSigner


log = get_logger()


class CoseSign1:
    """Signing session for one payload.

    The same protected header and payload feed both the to-be-signed buffer
    and the final object, so a signature can only be embedded next to the
    bytes it was computed over.
    """

    def __init__(self, payload: bytes, signer_pub_key_der: Optional[bytes] = None):
        self._protected_header = PROTECTED_HEADER
        self._payload = as_bytes(payload, "payload")
        self._signer_pub_key_der = (
            None if signer_pub_key_der is None else as_bytes(signer_pub_key_der, "signer public key DER")
        )
        # oversized keys are rejected here, before any signing
        self._unprotected_header = UnprotectedHeader.with_der(self._signer_pub_key_der)

    @classmethod
    def from_object(cls, obj: CoseSign1Object) -> "CoseSign1":
        return cls(obj.payload, obj.signer_pub_key_der)

    @property
    def payload(self) -> bytes:
        return self._payload

    @property
    def signer_pub_key_der(self) -> Optional[bytes]:
        return self._signer_pub_key_der

    def _sig_struct_size(self) -> int:
        return sig_structure_size(len(self._protected_header), len(self._payload))

    def create_tbs(self) -> bytes:
        """Return the Sig_structure bytes that must be hashed and signed."""
        size = self._sig_struct_size()
        buf = bytearray(size)
        written = encode_sig_structure_into(self._protected_header, self._payload, buf)
        if written != size:
            raise CborEncodeError(f"to-be-signed size mismatch: sized {size}, wrote {written}")
        return bytes(buf)

    def create_cose_sign1_object(self, signature: bytes) -> bytes:
        obj = CoseSign1Object(
            payload=self._payload,
            signature=signature,
            unprotected_header=self._unprotected_header,
            protected_header=self._protected_header,
        )
        return codec.encode(obj)

    def sign(self, signer: "DigestSigner") -> bytes:
        """Sign SHA-256(create_tbs()) with ``signer`` and return the tagged object."""
        digest = sha256(self.create_tbs())
        signature = signer.sign_digest(digest)
        log.debug("signed to-be-signed digest %s", digest.hex())
        return self.create_cose_sign1_object(signature)


__all__ = ["CoseSign1"]
