"""COSE_Sign1 wire constants (RFC 9052).

Only one profile is produced: RS256 with a JSON content type, signed by an
RSA 2048 key whose SubjectPublicKeyInfo DER may be carried in the
unprotected header under a private-use label.
"""
from __future__ import annotations


# 0b110 (major type 6, tag) | 0b10010 (tag 18, COSE_Sign1) -> h'd2'
COSE_SIGN1_TAG_NUMBER = 18
COSE_SIGN1_TAG = 0xD2
COSE_SIGN1_TAG_SIZE = 1

# COSE header labels
HDR_ALG = 1
HDR_CONTENT_TYPE = 3
HDR_SIGNER_PUB_KEY_DER = 248  # private-use label, value is bstr(DER)

ALG_RS256 = -257
CONTENT_TYPE_JSON = "application/json"

# Encoding of {1: -257, 3: "application/json"}:
#   a2                      map(2)
#   01                      key alg (1)
#   39 01 00                nint, -1 - 0x0100 = -257 (RS256)
#   03                      key content type (3)
#   70 + 16 bytes           tstr(16) "application/json"
PROTECTED_HEADER = bytes.fromhex(
    "a2"
    "01" "390100"
    "03" "70" "6170706c69636174696f6e2f6a736f6e"
)
PROTECTED_HEADER_SIZE = 23

# RSA 2048 signature
SIGNATURE_SIZE = 256

# Upper bound for the DER SubjectPublicKeyInfo of a supported key
PUB_KEY_MAX_SIZE = 312

# Sig_structure context label, written as raw ASCII after a tstr(10) head
SIG_STRUCTURE_CONTEXT = b"Signature1"
SIG_STRUCTURE_CONTEXT_SIZE = 10

# h'84': array(4)
COSE_SIGN1_ARRAY_4 = 0x84
# h'6a': tstr(10)
COSE_SIGN1_STR_10 = 0x6A

# external_aad is always empty in this profile
EXTERNAL_AAD = b""


__all__ = [
    "COSE_SIGN1_TAG_NUMBER",
    "COSE_SIGN1_TAG",
    "COSE_SIGN1_TAG_SIZE",
    "HDR_ALG",
    "HDR_CONTENT_TYPE",
    "HDR_SIGNER_PUB_KEY_DER",
    "ALG_RS256",
    "CONTENT_TYPE_JSON",
    "PROTECTED_HEADER",
    "PROTECTED_HEADER_SIZE",
    "SIGNATURE_SIZE",
    "PUB_KEY_MAX_SIZE",
    "SIG_STRUCTURE_CONTEXT",
    "SIG_STRUCTURE_CONTEXT_SIZE",
    "COSE_SIGN1_ARRAY_4",
    "COSE_SIGN1_STR_10",
    "EXTERNAL_AAD",
]
