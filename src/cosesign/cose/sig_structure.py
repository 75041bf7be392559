"""Sig_structure encoding (RFC 9052 section 4.4).

    Sig_structure = [
        context : "Signature1",
        body_protected : bstr,
        external_aad : bstr,      ; always h''
        payload : bstr,
    ]

The array head and the context label are written as literal bytes; the three
byte strings go through the bstr primitive so payloads of any size get the
correct length prefix.
"""
from __future__ import annotations

from typing import Union

from .cbor import bstr_size, encode_bstr
from .constants import (
    COSE_SIGN1_ARRAY_4,
    COSE_SIGN1_STR_10,
    EXTERNAL_AAD,
    SIG_STRUCTURE_CONTEXT,
    SIG_STRUCTURE_CONTEXT_SIZE,
)
from .errors import CborEncodeError


Buffer = Union[bytearray, memoryview]

# array head + tstr head + "Signature1"
_LEADING_SIZE = 2 + SIG_STRUCTURE_CONTEXT_SIZE


def sig_structure_size(protected_len: int, payload_len: int) -> int:
    """Exact encoded length for any payload size."""
    return (
        _LEADING_SIZE
        + bstr_size(protected_len)
        + bstr_size(len(EXTERNAL_AAD))
        + bstr_size(payload_len)
    )


def encode_sig_structure_into(body_protected: bytes, payload: bytes, out: Buffer) -> int:
    """Write the Sig_structure into ``out`` and return the number of bytes written."""
    need = sig_structure_size(len(body_protected), len(payload))
    if len(out) < need:
        raise CborEncodeError(f"Sig_structure needs {need} bytes, destination has {len(out)}")

    index = 0
    out[index] = COSE_SIGN1_ARRAY_4
    index += 1
    out[index] = COSE_SIGN1_STR_10
    index += 1
    out[index:index + SIG_STRUCTURE_CONTEXT_SIZE] = SIG_STRUCTURE_CONTEXT
    index += SIG_STRUCTURE_CONTEXT_SIZE

    for item in (body_protected, EXTERNAL_AAD, payload):
        chunk = encode_bstr(item)
        out[index:index + len(chunk)] = chunk
        index += len(chunk)

    if index != need:
        raise CborEncodeError(f"Sig_structure size mismatch: computed {need}, wrote {index}")
    return index


def build_sig_structure(body_protected: bytes, payload: bytes) -> bytes:
    out = bytearray(sig_structure_size(len(body_protected), len(payload)))
    written = encode_sig_structure_into(body_protected, payload, out)
    return bytes(out[:written])


__all__ = ["sig_structure_size", "encode_sig_structure_into", "build_sig_structure"]
