from __future__ import annotations

import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..cose.constants import PUB_KEY_MAX_SIZE, SIGNATURE_SIZE


RSA_KEY_BITS = SIGNATURE_SIZE * 8
RSA_PUBLIC_EXPONENT = 65537


class KeyLoadError(ValueError):
    pass


def ensure_signing_key(path: str) -> None:
    if os.path.exists(path):
        return
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    key = rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_BITS)
    with open(path, "wb") as f:
        f.write(key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        ))


def _check_rsa_size(key_size: int) -> None:
    if key_size != RSA_KEY_BITS:
        raise KeyLoadError(f"RSA {RSA_KEY_BITS} key required, got {key_size}-bit key")


def load_private_key(path: str) -> rsa.RSAPrivateKey:
    try:
        with open(path, "rb") as f:
            sk = serialization.load_pem_private_key(f.read(), password=None)
    except FileNotFoundError as e:
        raise KeyLoadError(f"signing key not found: {path}") from e
    except (ValueError, TypeError) as e:
        raise KeyLoadError(f"signing key is not an unencrypted PEM private key: {path}") from e
    if not isinstance(sk, rsa.RSAPrivateKey):
        raise KeyLoadError("signing key must be RSA")
    _check_rsa_size(sk.key_size)
    return sk


def load_public_key(data: bytes) -> rsa.RSAPublicKey:
    """Accept a SubjectPublicKeyInfo in PEM or DER form."""
    try:
        if data.lstrip().startswith(b"-----BEGIN"):
            pk = serialization.load_pem_public_key(data)
        else:
            pk = serialization.load_der_public_key(data)
    except (ValueError, TypeError) as e:
        raise KeyLoadError("not a PEM or DER public key") from e
    if not isinstance(pk, rsa.RSAPublicKey):
        raise KeyLoadError("public key must be RSA")
    _check_rsa_size(pk.key_size)
    return pk


def public_key_der(public_key: rsa.RSAPublicKey) -> bytes:
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    if len(der) > PUB_KEY_MAX_SIZE:
        raise KeyLoadError(f"public key DER is {len(der)} bytes, limit is {PUB_KEY_MAX_SIZE}")
    return der


def public_key_pem(public_key: rsa.RSAPublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
