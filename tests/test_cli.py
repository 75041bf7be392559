from __future__ import annotations

import json
from pathlib import Path

import pytest

from cosesign import config
from cosesign.cli import main
from cosesign.cose import codec
from cosesign.crypto.keyloader import ensure_signing_key, load_private_key, public_key_pem


def _json_line(out: str) -> dict:
    lines = [ln for ln in out.splitlines() if ln.startswith("{")]
    assert lines, out
    return json.loads(lines[-1])


@pytest.fixture
def key_path(tmp_path: Path) -> str:
    p = tmp_path / "keys" / "sk.pem"
    ensure_signing_key(str(p))
    return str(p)


@pytest.fixture
def doc(tmp_path: Path) -> Path:
    p = tmp_path / "manifest.json"
    p.write_bytes(b'{"name": "disk", "version": 3}')
    return p


def test_sign_cose_then_verify(key_path: str, doc: Path, tmp_path: Path, capsys):
    assert main(["sign", str(doc), "--key", key_path, "--output-format", "cosesign1", "--verify"]) == 0
    out = doc.with_suffix(".cosesign1")
    assert out.exists()
    assert len(doc.with_suffix(".signerpubkeyhash").read_bytes()) == 32

    obj = codec.decode(out.read_bytes())
    assert obj.payload == doc.read_bytes()

    capsys.readouterr()
    assert main(["verify", str(out)]) == 0
    info = _json_line(capsys.readouterr().out)
    assert info["ok"] is True
    assert info["payload_size"] == len(doc.read_bytes())

    pub = tmp_path / "signer.pub.pem"
    pub.write_bytes(public_key_pem(load_private_key(key_path).public_key()))
    assert main(["verify", str(out), "--pub", str(pub)]) == 0


def test_inspect(key_path: str, doc: Path, capsys):
    assert main(["sign", str(doc), "--key", key_path]) == 0
    capsys.readouterr()
    assert main(["inspect", str(doc.with_suffix(".cosesign1"))]) == 0
    info = _json_line(capsys.readouterr().out)
    assert info["tag"] == 0xD2
    assert info["protected_header"] == "a20139010003706170706c69636174696f6e2f6a736f6e"
    assert len(bytes.fromhex(info["signature"])) == 256
    assert info["signer_pub_key_der"] != ""


def test_no_embedded_key(key_path: str, doc: Path, tmp_path: Path, capsys):
    assert main(["sign", str(doc), "--key", key_path, "--no-embed-pubkey", "--verify"]) == 0
    out = doc.with_suffix(".cosesign1")
    capsys.readouterr()
    assert main(["inspect", str(out)]) == 0
    assert _json_line(capsys.readouterr().out)["signer_pub_key_der"] == ""

    assert main(["verify", str(out)]) == 1
    pub = tmp_path / "signer.pub.pem"
    pub.write_bytes(public_key_pem(load_private_key(key_path).public_key()))
    assert main(["verify", str(out), "--pub", str(pub)]) == 0


def test_sign_raw(key_path: str, doc: Path):
    assert main(["sign", str(doc), "--key", key_path, "--output-format", "raw", "--verify"]) == 0
    assert len(doc.with_suffix(".sig").read_bytes()) == 256
    assert doc.with_suffix(".pub").read_bytes().startswith(b"-----BEGIN PUBLIC KEY-----")
    assert not doc.with_suffix(".cosesign1").exists()


def test_verify_tampered(key_path: str, doc: Path):
    assert main(["sign", str(doc), "--key", key_path]) == 0
    out = doc.with_suffix(".cosesign1")
    buf = bytearray(out.read_bytes())
    buf[-1] ^= 0xFF
    out.write_bytes(bytes(buf))
    assert main(["verify", str(out)]) == 1
    out.write_bytes(b"\xd2\x80")
    assert main(["verify", str(out)]) == 1
    assert main(["inspect", str(out)]) == 1


def test_missing_key(tmp_path: Path, doc: Path):
    assert main(["sign", str(doc), "--key", str(tmp_path / "nope.pem")]) == 1


def test_bad_output_format(key_path: str, doc: Path):
    with pytest.raises(SystemExit):
        main(["sign", str(doc), "--key", key_path, "--output-format", "jws"])


def test_bad_output_format_from_env(key_path: str, doc: Path, monkeypatch, capsys):
    monkeypatch.setattr(config, "OUTPUT_FORMAT", "jws")
    with pytest.raises(SystemExit) as exc:
        main(["sign", str(doc), "--key", key_path])
    assert exc.value.code == 2
    assert "COSESIGN_OUTPUT_FORMAT" in capsys.readouterr().err
    assert not doc.with_suffix(".sig").exists()
    assert not doc.with_suffix(".signerpubkeyhash").exists()


def test_embed_pubkey_overrides_env(key_path: str, doc: Path, monkeypatch, capsys):
    monkeypatch.setattr(config, "EMBED_PUBKEY", False)
    assert main(["sign", str(doc), "--key", key_path, "--output-format", "cosesign1"]) == 0
    capsys.readouterr()
    assert main(["inspect", str(doc.with_suffix(".cosesign1"))]) == 0
    assert _json_line(capsys.readouterr().out)["signer_pub_key_der"] == ""

    assert main(["sign", str(doc), "--key", key_path, "--output-format", "cosesign1", "--embed-pubkey"]) == 0
    capsys.readouterr()
    assert main(["inspect", str(doc.with_suffix(".cosesign1"))]) == 0
    assert _json_line(capsys.readouterr().out)["signer_pub_key_der"] != ""


def test_embed_flags_are_exclusive(key_path: str, doc: Path):
    with pytest.raises(SystemExit):
        main(["sign", str(doc), "--key", key_path, "--embed-pubkey", "--no-embed-pubkey"])
