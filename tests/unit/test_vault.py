"""Unit tests for the credential vault (AES-256-GCM with PBKDF2 key derivation)."""

from __future__ import annotations

import base64
import json
import random

import pytest

from src.utils.errors import ConfigurationError, DecryptionError
from src.utils.vault import (
    IV_LENGTH,
    SALT_LENGTH,
    TAG_LENGTH,
    CredentialVault,
    generate_token,
    secure_compare,
)
from tests.conftest import MASTER_KEY

OTHER_KEY = "another-master-key-that-is-long-enough"


@pytest.fixture
def vault() -> CredentialVault:
    return CredentialVault(MASTER_KEY)


def _flip_byte(blob: str, index: int) -> str:
    raw = bytearray(base64.b64decode(blob))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


class TestMasterKey:
    def test_short_key_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="at least 32"):
            CredentialVault("too-short")

    def test_missing_key_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            CredentialVault("")

    def test_exactly_32_chars_accepted(self) -> None:
        CredentialVault("x" * 32)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "plaintext",
        [
            "",
            "hunter2",
            "Ünïcødé DJ – Tokyo 東京",
            json.dumps({"email": "dj@example.com", "password": "p@ss"}),
        ],
    )
    def test_decrypt_returns_original(self, vault: CredentialVault, plaintext: str) -> None:
        assert vault.decrypt(vault.encrypt(plaintext)) == plaintext

    def test_random_payloads(self, vault: CredentialVault) -> None:
        rng = random.Random(1234)
        for length in (1, 15, 16, 17, 255, 4096):
            plaintext = "".join(chr(rng.randint(0x20, 0x2FFF)) for _ in range(length))
            assert vault.decrypt(vault.encrypt(plaintext)) == plaintext

    def test_same_plaintext_never_repeats(self, vault: CredentialVault) -> None:
        assert vault.encrypt("same") != vault.encrypt("same")

    def test_blob_layout(self, vault: CredentialVault) -> None:
        raw = base64.b64decode(vault.encrypt("abc"))
        assert len(raw) == SALT_LENGTH + IV_LENGTH + TAG_LENGTH + len("abc")


class TestTampering:
    def test_flipped_ciphertext_byte(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("secret-password")
        with pytest.raises(DecryptionError):
            vault.decrypt(_flip_byte(blob, -1))

    def test_flipped_tag_byte(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("secret-password")
        with pytest.raises(DecryptionError):
            vault.decrypt(_flip_byte(blob, SALT_LENGTH + IV_LENGTH))

    def test_flipped_salt_byte(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("secret-password")
        with pytest.raises(DecryptionError):
            vault.decrypt(_flip_byte(blob, 0))

    def test_flipped_iv_byte(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("secret-password")
        with pytest.raises(DecryptionError):
            vault.decrypt(_flip_byte(blob, SALT_LENGTH))

    def test_every_byte_is_authenticated(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("pw")
        for index in range(len(base64.b64decode(blob))):
            with pytest.raises(DecryptionError):
                vault.decrypt(_flip_byte(blob, index))

    def test_wrong_master_key(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("secret-password")
        with pytest.raises(DecryptionError):
            CredentialVault(OTHER_KEY).decrypt(blob)

    def test_not_base64(self, vault: CredentialVault) -> None:
        with pytest.raises(DecryptionError, match="base64"):
            vault.decrypt("not base64 at all!!")

    def test_too_short(self, vault: CredentialVault) -> None:
        short = base64.b64encode(b"\x00" * 40).decode("ascii")
        with pytest.raises(DecryptionError, match="too short"):
            vault.decrypt(short)


class TestReEncrypt:
    def test_rotates_to_new_key(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("rotate me")
        rotated = CredentialVault.re_encrypt(blob, MASTER_KEY, OTHER_KEY)

        assert rotated != blob
        assert CredentialVault(OTHER_KEY).decrypt(rotated) == "rotate me"
        with pytest.raises(DecryptionError):
            vault.decrypt(rotated)

    def test_wrong_old_key(self, vault: CredentialVault) -> None:
        blob = vault.encrypt("rotate me")
        with pytest.raises(DecryptionError):
            CredentialVault.re_encrypt(blob, OTHER_KEY, MASTER_KEY)


class TestHelpers:
    def test_secure_compare(self) -> None:
        assert secure_compare("abc", "abc")
        assert not secure_compare("abc", "abd")
        assert not secure_compare("abc", "abcd")

    def test_generate_token(self) -> None:
        token = generate_token()
        assert len(token) == 64
        int(token, 16)
        assert generate_token(8) != generate_token(8)
        assert len(generate_token(8)) == 16
