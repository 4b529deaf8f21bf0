"""Credential vault -- authenticated encryption for stored third-party logins.

Blob layout (base64 encoded)::

    salt (32) || iv (16) || tag (16) || ciphertext

Each call to :meth:`CredentialVault.encrypt` derives a fresh key from the
master key with PBKDF2-HMAC-SHA512 over a random salt, then seals the
plaintext with AES-256-GCM.  The same plaintext therefore never produces
the same blob twice.

The vault is stateless apart from the master key and is safe to share
between threads.  PBKDF2 is CPU-bound; async callers should go through
``asyncio.to_thread``.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import os
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from src.utils.errors import ConfigurationError, DecryptionError

SALT_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
PBKDF2_ITERATIONS = 100_000
MIN_MASTER_KEY_LENGTH = 32

_HEADER_LENGTH = SALT_LENGTH + IV_LENGTH + TAG_LENGTH


def _derive_key(master_key: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(master_key.encode("utf-8"))


def _check_master_key(master_key: str | None) -> str:
    if not master_key or len(master_key) < MIN_MASTER_KEY_LENGTH:
        raise ConfigurationError(
            message=f"Encryption key must be at least {MIN_MASTER_KEY_LENGTH} characters",
            provider_name="vault",
        )
    return master_key


class CredentialVault:
    """Encrypt and decrypt credential payloads under one master key.

    Parameters
    ----------
    master_key:
        Secret of at least 32 characters, normally ``ENCRYPTION_KEY``.

    Raises
    ------
    ConfigurationError
        If the master key is missing or too short.
    """

    def __init__(self, master_key: str | None) -> None:
        self._master_key = _check_master_key(master_key)

    def encrypt(self, plaintext: str) -> str:
        """Seal *plaintext* and return the base64 blob."""
        return _seal(self._master_key, plaintext)

    def decrypt(self, blob: str) -> str:
        """Open a blob produced by :meth:`encrypt`.

        Raises
        ------
        DecryptionError
            On malformed base64, a truncated blob, a tampered blob or a
            blob sealed under another key.
        """
        return _open(self._master_key, blob)

    @staticmethod
    def re_encrypt(blob: str, old_key: str, new_key: str) -> str:
        """Rotate *blob* from *old_key* to *new_key*.

        Produces a new blob; the stored one is not touched.
        """
        plaintext = _open(_check_master_key(old_key), blob)
        return _seal(_check_master_key(new_key), plaintext)


def _seal(master_key: str, plaintext: str) -> str:
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    key = _derive_key(master_key, salt)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    # AESGCM appends the tag; the stored layout puts it before the ciphertext.
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(salt + iv + tag + ciphertext).decode("ascii")


def _open(master_key: str, blob: str) -> str:
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError(message="Encrypted blob is not valid base64", provider_name="vault") from exc

    if len(raw) < _HEADER_LENGTH:
        raise DecryptionError(message="Encrypted blob is too short", provider_name="vault")

    salt = raw[:SALT_LENGTH]
    iv = raw[SALT_LENGTH : SALT_LENGTH + IV_LENGTH]
    tag = raw[SALT_LENGTH + IV_LENGTH : _HEADER_LENGTH]
    ciphertext = raw[_HEADER_LENGTH:]

    key = _derive_key(master_key, salt)
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        raise DecryptionError(message="Authentication tag mismatch", provider_name="vault") from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError(message="Decrypted payload is not UTF-8", provider_name="vault") from exc


def secure_compare(a: str, b: str) -> bool:
    """Constant-time string comparison."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def generate_token(length: int = 32) -> str:
    """Random hex token built from *length* random bytes."""
    return secrets.token_hex(length)
