import hashlib

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()

def _int_bytes(value: int) -> bytes:
    # minimal big-endian, matching a bignum's byte export
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")

def signer_public_key_hash(public_key: RSAPublicKey) -> bytes:
    """SHA-256 over modulus || exponent, used to audit which key signed."""
    numbers = public_key.public_numbers()
    return sha256(_int_bytes(numbers.n) + _int_bytes(numbers.e))
