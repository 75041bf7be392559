"""RS256 signing seams.

The COSE layer never signs bytes itself: it hands a SHA-256 digest of the
to-be-signed buffer to a ``DigestSigner``. ``LocalRsaSigner`` does this with a
PEM key on disk; a remote key service that signs digests (RS256 over a
supplied SHA-256 value) fits the same protocol.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from .keyloader import KeyLoadError, load_private_key, load_public_key, public_key_der


_DIGEST_SIZE = 32


@runtime_checkable
class DigestSigner(Protocol):
    def sign_digest(self, digest: bytes) -> bytes: ...
    def public_key_der(self) -> bytes: ...


@dataclass
class LocalRsaSigner:
    """Signs SHA-256 digests with an RSA 2048 PEM key (PKCS#1 v1.5)."""

    key_path: str
    _sk: rsa.RSAPrivateKey = field(init=False, repr=False)

    def __post_init__(self):
        self._sk = load_private_key(self.key_path)

    def sign_digest(self, digest: bytes) -> bytes:
        if len(digest) != _DIGEST_SIZE:
            raise ValueError(f"expected a {_DIGEST_SIZE}-byte SHA-256 digest, got {len(digest)} bytes")
        return self._sk.sign(digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256()))

    def public_key(self) -> rsa.RSAPublicKey:
        return self._sk.public_key()

    def public_key_der(self) -> bytes:
        return public_key_der(self.public_key())


def verify_digest(public_key_der_or_pem: bytes, digest: bytes, signature: bytes) -> bool:
    try:
        pk = load_public_key(public_key_der_or_pem)
    except KeyLoadError:
        return False
    try:
        pk.verify(signature, digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256()))
        return True
    except InvalidSignature:
        return False


__all__ = ["DigestSigner", "LocalRsaSigner", "verify_digest"]
