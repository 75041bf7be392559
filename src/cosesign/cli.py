from __future__ import annotations

import argparse
import json
from pathlib import Path

from . import config
from .cose import codec
from .cose.constants import COSE_SIGN1_TAG
from .cose.errors import CborError, SignatureVerificationFailed
from .cose.sign1 import CoseSign1
from .cose.verify import verify_cose_sign1
from .crypto.digest import sha256, signer_public_key_hash
from .crypto.keyloader import KeyLoadError, load_public_key, public_key_der, public_key_pem
from .crypto.signer import LocalRsaSigner, verify_digest
from .utils.logging import get_logger


log = get_logger()

_FAILURES = (CborError, SignatureVerificationFailed, KeyLoadError, OSError)


def _write(path: Path, data: bytes, what: str) -> None:
    path.write_bytes(data)
    log.info("%s written to: %s", what, path)


def _sign_raw(args: argparse.Namespace, signer: LocalRsaSigner, data: bytes, input_path: Path) -> int:
    signature = signer.sign_digest(sha256(data))
    _write(input_path.with_suffix(".sig"), signature, "Signature")
    _write(input_path.with_suffix(".pub"), public_key_pem(signer.public_key()), "Public key")
    if args.verify:
        if verify_digest(signer.public_key_der(), sha256(data), signature):
            log.info("Signature verification successful")
        else:
            log.error("Signature verification failed")
            return 1
    return 0


def _sign_cose(args: argparse.Namespace, signer: LocalRsaSigner, data: bytes, input_path: Path) -> int:
    der = signer.public_key_der()
    doc = CoseSign1(data, der if args.embed_pubkey else None)
    obj = doc.sign(signer)
    _write(input_path.with_suffix(".cosesign1"), obj, "COSE_Sign1 object")
    if args.verify:
        verify_cose_sign1(obj, der)
        log.info("COSE_Sign1 verification successful")
    return 0


def cmd_sign(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    try:
        signer = LocalRsaSigner(args.key)
        key_hash = signer_public_key_hash(signer.public_key())
        log.info("Signer public key hash: %s", key_hash.hex())
        _write(input_path.with_suffix(".signerpubkeyhash"), key_hash, "Signer's public key hash")
        data = input_path.read_bytes()
        if args.output_format == "cosesign1":
            return _sign_cose(args, signer, data, input_path)
        return _sign_raw(args, signer, data, input_path)
    except _FAILURES as e:
        log.error("sign failed: %s", e)
        return 1


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        buf = Path(args.input).read_bytes()
        trusted = None
        if args.pub:
            trusted = public_key_der(load_public_key(Path(args.pub).read_bytes()))
        info = verify_cose_sign1(buf, trusted)
    except _FAILURES as e:
        log.error("verify failed: %s", e)
        return 1
    print(json.dumps({
        "ok": True,
        "payload_size": len(info.payload),
        "payload_sha256": sha256(info.payload).hex(),
        "signer_pub_key_der_size": len(info.signer_pub_key_der),
    }, sort_keys=True))
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        obj = codec.decode(Path(args.input).read_bytes())
    except _FAILURES as e:
        log.error("inspect failed: %s", e)
        return 1
    print(json.dumps({
        "tag": COSE_SIGN1_TAG,
        "protected_header": obj.protected_header.hex(),
        "signer_pub_key_der": obj.signer_pub_key_der.hex(),
        "payload_size": len(obj.payload),
        "payload_sha256": sha256(obj.payload).hex(),
        "signature": obj.signature.hex(),
    }, sort_keys=True))
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser("cosesign", description="Sign files as RS256 COSE_Sign1 objects")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_sign = sub.add_parser("sign", help="sign a file")
    p_sign.add_argument("input")
    p_sign.add_argument("--output-format", dest="output_format", choices=config.OUTPUT_FORMATS, default=config.OUTPUT_FORMAT)
    p_sign.add_argument("--key", default=config.KEY_PATH, help="PEM RSA 2048 private key")
    p_sign.add_argument("--verify", action="store_true", help="verify the signature after signing")
    embed = p_sign.add_mutually_exclusive_group()
    embed.add_argument("--embed-pubkey", dest="embed_pubkey", action="store_true", help="embed the signer public key (COSE only)")
    embed.add_argument("--no-embed-pubkey", dest="embed_pubkey", action="store_false")
    p_sign.set_defaults(func=cmd_sign, embed_pubkey=config.EMBED_PUBKEY)

    p_ver = sub.add_parser("verify", help="verify a .cosesign1 file")
    p_ver.add_argument("input")
    p_ver.add_argument("--pub", help="trusted public key (PEM or DER); defaults to the embedded key")
    p_ver.set_defaults(func=cmd_verify)

    p_ins = sub.add_parser("inspect", help="decode a .cosesign1 file without verifying it")
    p_ins.add_argument("input")
    p_ins.set_defaults(func=cmd_inspect)

    args = p.parse_args(argv)
    # argparse does not check defaults against choices
    if args.cmd == "sign" and args.output_format not in config.OUTPUT_FORMATS:
        p_sign.error(
            f"invalid COSESIGN_OUTPUT_FORMAT {args.output_format!r} (choose from {', '.join(config.OUTPUT_FORMATS)})"
        )
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
