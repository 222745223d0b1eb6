# -*- encoding: utf-8 -*-
"""
Tests for the mutable-signer command line.

Runs main() in-process with explicit argv and checks stdout/stderr.
"""

import hashlib
import json

import pytest

from mutable_signer.cli import main
from mutable_signer.payload import signable
from mutable_signer.signing import sign

SEED_HEX = bytes(range(32)).hex()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("SIGNER_SECRET_KEY", "SALT_SIZE", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


def _run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


class TestKeypairCommand:

    def test_prints_json_pair(self, capsys):
        out = json.loads(_run(capsys, "keypair"))
        assert len(bytes.fromhex(out["public_key"])) == 32
        assert len(bytes.fromhex(out["secret_key"])) == 64


class TestSaltCommand:

    def test_default_size(self, capsys):
        assert len(bytes.fromhex(_run(capsys, "salt").strip())) == 32

    def test_size_from_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("SALT_SIZE", "16")
        assert len(bytes.fromhex(_run(capsys, "salt").strip())) == 16

    def test_seeded(self, capsys):
        out = _run(capsys, "salt", "--seed", "test")
        assert out.strip() == hashlib.blake2b(b"test", digest_size=32).hexdigest()

    def test_out_of_range(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["salt", "--size", "65"])
        assert exc.value.code == 1
        assert "between 16 and 64" in capsys.readouterr().err


class TestSignableCommand:

    def test_text_value(self, capsys):
        out = _run(capsys, "signable", "Hello World!", "--seq", "1")
        assert bytes.fromhex(out.strip()) == b"3:seqi1e1:v12:Hello World!"

    def test_hex_value_and_salt(self, capsys):
        out = _run(capsys, "signable", "0001", "--hex", "--salt", "ff" * 4)
        assert bytes.fromhex(out.strip()) == signable(b"\x00\x01", {"salt": b"\xff" * 4})

    def test_value_too_large(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["signable", "x" * 1001])
        assert exc.value.code == 1
        assert "Error: Value size must be <= 1000" in capsys.readouterr().err


class TestSignAndVerifyCommands:

    def test_sign_with_secret_key_option(self, capsys, seeded_pair):
        out = json.loads(_run(
            capsys, "sign", "test", "--seq", "2", "--secret-key", seeded_pair.secret_key.hex()
        ))
        assert out["public_key"] == seeded_pair.public_key.hex()
        assert out["signature"] == sign(b"test", {"seq": 2, "keypair": seeded_pair}).hex()

    def test_sign_with_environment_key(self, capsys, monkeypatch):
        monkeypatch.setenv("SIGNER_SECRET_KEY", SEED_HEX)
        out = json.loads(_run(capsys, "sign", "test"))
        assert len(bytes.fromhex(out["signature"])) == 64

    def test_sign_without_key(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["sign", "test"])
        assert exc.value.code == 1
        assert "keypair is required" in capsys.readouterr().err

    def test_verify_round_trip(self, capsys, seeded_pair):
        salt_hex = "11" * 16
        signature = sign(b"test", {"seq": 3, "salt": bytes.fromhex(salt_hex), "keypair": seeded_pair})
        out = _run(
            capsys, "verify", signature.hex(), "test", "--seq", "3", "--salt", salt_hex,
            "--public-key", seeded_pair.public_key.hex(),
        )
        assert out.strip() == "valid"

    def test_verify_mismatch_exits_nonzero(self, capsys, seeded_pair):
        signature = sign(b"test", {"keypair": seeded_pair})
        with pytest.raises(SystemExit) as exc:
            main([
                "verify", signature.hex(), "other",
                "--public-key", seeded_pair.public_key.hex(),
            ])
        assert exc.value.code == 1
        assert capsys.readouterr().out.strip() == "invalid"


class TestInfoCommand:

    def test_without_key(self, capsys):
        out = _run(capsys, "info")
        assert "(no SIGNER_SECRET_KEY set)" in out
        assert "Salt size:   32" in out

    def test_with_key(self, capsys, monkeypatch, seeded_pair):
        monkeypatch.setenv("SIGNER_SECRET_KEY", seeded_pair.secret_key.hex())
        assert seeded_pair.public_key.hex() in _run(capsys, "info")
