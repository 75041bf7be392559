"""Minimal CBOR head primitives (RFC 8949 section 3).

Only definite-length heads are supported, and decoding is strict: an
argument carried in more bytes than it needs is rejected, so decoded items
re-encode to the same bytes. These helpers carry the
length-prefix arithmetic used to size buffers before anything is written.
"""
from __future__ import annotations

from typing import Tuple

from .errors import CborDecodeError, CborEncodeError


MT_UINT = 0
MT_NINT = 1
MT_BSTR = 2
MT_TSTR = 3
MT_ARRAY = 4
MT_MAP = 5
MT_TAG = 6
MT_SIMPLE = 7

_AI_1BYTE = 24
_AI_2BYTE = 25
_AI_4BYTE = 26
_AI_8BYTE = 27
_AI_INDEFINITE = 31

_MAX_ARGUMENT = 2**64 - 1


def head_size(argument: int) -> int:
    """Number of bytes taken by a head carrying ``argument``."""
    if argument < 0 or argument > _MAX_ARGUMENT:
        raise CborEncodeError(f"CBOR argument out of range: {argument}")
    if argument < 24:
        return 1
    if argument <= 0xFF:
        return 2
    if argument <= 0xFFFF:
        return 3
    if argument <= 0xFFFFFFFF:
        return 5
    return 9


def encode_head(major: int, argument: int) -> bytes:
    if not 0 <= major <= 7:
        raise CborEncodeError(f"bad major type {major}")
    size = head_size(argument)
    mt = major << 5
    if size == 1:
        return bytes([mt | argument])
    if size == 2:
        return bytes([mt | _AI_1BYTE]) + argument.to_bytes(1, "big")
    if size == 3:
        return bytes([mt | _AI_2BYTE]) + argument.to_bytes(2, "big")
    if size == 5:
        return bytes([mt | _AI_4BYTE]) + argument.to_bytes(4, "big")
    return bytes([mt | _AI_8BYTE]) + argument.to_bytes(8, "big")


def bstr_size(length: int) -> int:
    return head_size(length) + length


def encode_bstr(data: bytes) -> bytes:
    return encode_head(MT_BSTR, len(data)) + bytes(data)


def encode_array_head(count: int) -> bytes:
    return encode_head(MT_ARRAY, count)


def encode_map_head(count: int) -> bytes:
    return encode_head(MT_MAP, count)


def decode_head(buf: bytes, offset: int = 0) -> Tuple[int, int, int]:
    """Parse one head at ``offset``.

    Returns (major_type, argument, offset_after_head). Non-minimal arguments
    (e.g. ``58 03``) raise ``CborDecodeError``.
    """
    if offset >= len(buf):
        raise CborDecodeError("truncated CBOR: missing head")
    initial = buf[offset]
    major = initial >> 5
    ai = initial & 0x1F
    offset += 1
    if ai < 24:
        return major, ai, offset
    if ai == _AI_INDEFINITE:
        raise CborDecodeError("indefinite-length items are not supported")
    if ai > _AI_8BYTE:
        raise CborDecodeError(f"reserved additional info {ai}")
    width = 1 << (ai - _AI_1BYTE)
    end = offset + width
    if end > len(buf):
        raise CborDecodeError("truncated CBOR: head argument runs past end of input")
    argument = int.from_bytes(buf[offset:end], "big")
    if head_size(argument) != 1 + width:
        raise CborDecodeError(f"non-minimal head: argument {argument} encoded in {width} bytes")
    return major, argument, end


def decode_bstr(buf: bytes, offset: int = 0) -> Tuple[bytes, int]:
    major, length, offset = decode_head(buf, offset)
    if major != MT_BSTR:
        raise CborDecodeError(f"expected bstr, found major type {major}")
    end = offset + length
    if end > len(buf):
        raise CborDecodeError(f"truncated CBOR: bstr of {length} bytes runs past end of input")
    return bytes(buf[offset:end]), end


def decode_uint(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    major, value, offset = decode_head(buf, offset)
    if major != MT_UINT:
        raise CborDecodeError(f"expected uint, found major type {major}")
    return value, offset


def expect_head(buf: bytes, offset: int, major: int, argument: int, what: str) -> int:
    found_major, found_arg, offset = decode_head(buf, offset)
    if found_major != major:
        raise CborDecodeError(f"{what}: expected major type {major}, found {found_major}")
    if found_arg != argument:
        raise CborDecodeError(f"{what}: expected {argument} entries, found {found_arg}")
    return offset


__all__ = [
    "MT_UINT",
    "MT_NINT",
    "MT_BSTR",
    "MT_TSTR",
    "MT_ARRAY",
    "MT_MAP",
    "MT_TAG",
    "MT_SIMPLE",
    "head_size",
    "encode_head",
    "bstr_size",
    "encode_bstr",
    "encode_array_head",
    "encode_map_head",
    "decode_head",
    "decode_bstr",
    "decode_uint",
    "expect_head",
]
