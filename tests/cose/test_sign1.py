from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from cosesign.cose import codec
from cosesign.cose.constants import PROTECTED_HEADER, SIGNATURE_SIZE
from cosesign.cose.errors import CborEncodeError
from cosesign.cose.sign1 import CoseSign1
from cosesign.cose.verify import verify_cose_sign1
from cosesign.crypto.signer import DigestSigner, LocalRsaSigner


_sk = rsa.generate_private_key(public_exponent=65537, key_size=2048)
PEM = _sk.private_bytes(
    encoding=serialization.Encoding.PEM,
    format=serialization.PrivateFormat.PKCS8,
    encryption_algorithm=serialization.NoEncryption(),
)
DER = _sk.public_key().public_bytes(
    encoding=serialization.Encoding.DER,
    format=serialization.PublicFormat.SubjectPublicKeyInfo,
)
PAYLOAD = b"test payload"


@pytest.fixture
def signer(tmp_path: Path) -> LocalRsaSigner:
    key_path = tmp_path / "signer.pem"
    key_path.write_bytes(PEM)
    return LocalRsaSigner(str(key_path))


def test_create_tbs_example():
    tbs = CoseSign1(PAYLOAD, DER).create_tbs()
    assert tbs.startswith(bytes.fromhex("846a5369676e617475726531"))
    assert tbs[12] == 0x57
    assert tbs[13:36] == PROTECTED_HEADER
    assert tbs[36] == 0x40
    assert tbs[37] == 0x4C
    assert tbs[38:] == PAYLOAD
    assert len(tbs) == 50


def test_tbs_does_not_cover_unprotected_key():
    assert CoseSign1(PAYLOAD, DER).create_tbs() == CoseSign1(PAYLOAD).create_tbs()


def test_sign_and_decode(signer: LocalRsaSigner):
    doc = CoseSign1(PAYLOAD, DER)
    tbs = doc.create_tbs()
    buf = doc.sign(signer)

    obj = codec.decode(buf)
    assert obj.payload == PAYLOAD
    assert obj.signer_pub_key_der == DER
    assert len(obj.signature) == SIGNATURE_SIZE

    # digest signing is plain RS256 over the to-be-signed bytes
    _sk.public_key().verify(obj.signature, tbs, padding.PKCS1v15(), hashes.SHA256())

    # a verifier rebuilds the exact same to-be-signed bytes from the object
    assert CoseSign1.from_object(obj).create_tbs() == tbs


def test_external_signature_embedded_verbatim():
    doc = CoseSign1(PAYLOAD, DER)
    signature = _sk.sign(doc.create_tbs(), padding.PKCS1v15(), hashes.SHA256())
    obj = codec.decode(doc.create_cose_sign1_object(signature))
    assert obj.signature == signature


@pytest.mark.parametrize("size", [0, 128, 255, 257, 512])
def test_wrong_signature_length(size: int):
    with pytest.raises(CborEncodeError):
        CoseSign1(PAYLOAD, DER).create_cose_sign1_object(b"\x01" * size)


def test_oversized_key():
    with pytest.raises(CborEncodeError):
        CoseSign1(PAYLOAD, b"\x00" * 313)


def test_payload_is_copied():
    data = bytearray(b"mutable")
    doc = CoseSign1(data)
    data[0:1] = b"M"
    assert doc.payload == b"mutable"


@pytest.mark.parametrize("payload,der", [
    (70000, None),
    ("text", None),
    (PAYLOAD, 5),
], ids=["int-payload", "str-payload", "int-key"])
def test_rejects_non_bytes(payload, der):
    with pytest.raises(CborEncodeError):
        CoseSign1(payload, der)


def test_int_signature_rejected():
    with pytest.raises(CborEncodeError):
        CoseSign1(PAYLOAD, DER).create_cose_sign1_object(SIGNATURE_SIZE)


class _InMemorySigner:
    """Bare DigestSigner: no key file, only the two protocol methods."""

    def sign_digest(self, digest: bytes) -> bytes:
        return _sk.sign(digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256()))

    def public_key_der(self) -> bytes:
        return DER


def test_sign_with_any_digest_signer():
    signer = _InMemorySigner()
    assert isinstance(signer, DigestSigner)
    obj = CoseSign1(PAYLOAD, signer.public_key_der()).sign(signer)
    info = verify_cose_sign1(obj)
    assert info.payload == PAYLOAD
    assert info.signer_pub_key_der == DER
