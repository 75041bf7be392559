"""Tagged COSE_Sign1 encode/decode.

Encoding hands the 4-element array to cbor2 after the tag byte has been
written by hand; the destination is sized up front from the head arithmetic
in ``cbor`` and the library output must match that size exactly. Decoding
walks the fixed layout with the head primitives so every structural defect
surfaces as ``CborDecodeError``.
"""
from __future__ import annotations

from typing import Union

import cbor2

from ..utils.logging import get_logger
from .cbor import (
    MT_ARRAY,
    MT_MAP,
    bstr_size,
    decode_bstr,
    decode_uint,
    encode_array_head,
    encode_map_head,
    expect_head,
    head_size,
)
from .constants import (
    COSE_SIGN1_TAG,
    COSE_SIGN1_TAG_SIZE,
    HDR_SIGNER_PUB_KEY_DER,
    PROTECTED_HEADER,
    PUB_KEY_MAX_SIZE,
    SIGNATURE_SIZE,
)
from .errors import CborDecodeError, CborEncodeError
from .model import CoseSign1Object, UnprotectedHeader


log = get_logger()

Buffer = Union[bytearray, memoryview]


def _unprotected_size(header: UnprotectedHeader) -> int:
    return (
        len(encode_map_head(1))
        + head_size(HDR_SIGNER_PUB_KEY_DER)
        + bstr_size(len(header.signer_pub_key_der))
    )


def encoded_size(obj: CoseSign1Object) -> int:
    """Tag byte plus the exact array encoding length."""
    return (
        COSE_SIGN1_TAG_SIZE
        + len(encode_array_head(4))
        + bstr_size(len(obj.protected_header))
        + _unprotected_size(obj.unprotected_header)
        + bstr_size(len(obj.payload))
        + bstr_size(len(obj.signature))
    )


def encode_into(obj: CoseSign1Object, out: Buffer) -> int:
    need = encoded_size(obj)
    if len(out) < need:
        raise CborEncodeError(f"COSE_Sign1 needs {need} bytes, destination has {len(out)}")
    try:
        body = cbor2.dumps(obj.to_cbor())
    except cbor2.CBOREncodeError as e:
        raise CborEncodeError("CBOR encoder rejected COSE_Sign1 array") from e
    if COSE_SIGN1_TAG_SIZE + len(body) != need:
        raise CborEncodeError(
            f"COSE_Sign1 size mismatch: computed {need}, encoder produced {COSE_SIGN1_TAG_SIZE + len(body)}"
        )
    out[0] = COSE_SIGN1_TAG
    out[COSE_SIGN1_TAG_SIZE:need] = body
    return need


def encode(obj: CoseSign1Object) -> bytes:
    out = bytearray(encoded_size(obj))
    written = encode_into(obj, out)
    log.debug("encoded COSE_Sign1: %d bytes (payload %d bytes)", written, len(obj.payload))
    return bytes(out)


def _decode_unprotected(buf: bytes, offset: int) -> tuple[UnprotectedHeader, int]:
    offset = expect_head(buf, offset, MT_MAP, 1, "unprotected header")
    label, offset = decode_uint(buf, offset)
    if label != HDR_SIGNER_PUB_KEY_DER:
        raise CborDecodeError(f"unprotected header: unexpected label {label}")
    der, offset = decode_bstr(buf, offset)
    if len(der) > PUB_KEY_MAX_SIZE:
        raise CborDecodeError(f"signer public key DER is {len(der)} bytes, limit is {PUB_KEY_MAX_SIZE}")
    return UnprotectedHeader(signer_pub_key_der=der), offset


def decode(data: bytes) -> CoseSign1Object:
    buf = bytes(data)
    if not buf:
        raise CborDecodeError("empty input")
    if buf[0] != COSE_SIGN1_TAG:
        raise CborDecodeError(f"expected COSE_Sign1 tag 0x{COSE_SIGN1_TAG:02x}, found 0x{buf[0]:02x}")

    offset = expect_head(buf, COSE_SIGN1_TAG_SIZE, MT_ARRAY, 4, "COSE_Sign1 array")
    protected, offset = decode_bstr(buf, offset)
    unprotected, offset = _decode_unprotected(buf, offset)
    payload, offset = decode_bstr(buf, offset)
    signature, offset = decode_bstr(buf, offset)

    if offset != len(buf):
        raise CborDecodeError(f"{len(buf) - offset} trailing bytes after COSE_Sign1")
    if protected != PROTECTED_HEADER:
        raise CborDecodeError("unsupported protected header")
    if len(signature) != SIGNATURE_SIZE:
        raise CborDecodeError(f"signature must be {SIGNATURE_SIZE} bytes, got {len(signature)}")

    return CoseSign1Object(
        payload=payload,
        signature=signature,
        unprotected_header=unprotected,
        protected_header=protected,
    )


__all__ = ["encoded_size", "encode_into", "encode", "decode"]
