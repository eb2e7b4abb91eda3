"""Passphrase-derived authenticated encryption for the profile vault.

The persisted record is ``base64(nonce[12] || ciphertext)`` where the ciphertext
is AES-256-GCM over the canonical JSON encoding of the profile. The key is
stretched from the passphrase with PBKDF2-HMAC-SHA256.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Any, Dict

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import VaultDecryptionError
from ..profile import IdentityProfile

logger = logging.getLogger(__name__)

NONCE_LENGTH = 12
KEY_LENGTH = 32
KDF_ITERATIONS = 100_000
# One salt for every installation; see DESIGN.md before changing it, existing
# vaults would no longer decrypt.
VAULT_SALT = b"KYC-Salt"


def canonical_encode(profile: IdentityProfile) -> bytes:
    """Serialize ``profile`` to the byte encoding that gets encrypted."""

    return json.dumps(
        profile.to_payload(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


class VaultCipher:
    """Encrypts and decrypts :class:`IdentityProfile` records."""

    def __init__(self, *, salt: bytes = VAULT_SALT, iterations: int = KDF_ITERATIONS) -> None:
        self._salt = salt
        self._iterations = iterations

    def derive_key(self, passphrase: str) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=self._salt,
            iterations=self._iterations,
        )
        return kdf.derive(passphrase.encode("utf-8"))

    def encrypt(self, profile: IdentityProfile, passphrase: str) -> str:
        """Return the base64 vault record for ``profile``.

        A fresh random nonce is drawn on every call.
        """

        nonce = os.urandom(NONCE_LENGTH)
        ciphertext = AESGCM(self.derive_key(passphrase)).encrypt(nonce, canonical_encode(profile), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt_payload(self, record: str, passphrase: str) -> Dict[str, Any]:
        """Return the decrypted profile mapping.

        Raises :class:`VaultDecryptionError` for every failure mode.
        """

        try:
            combined = base64.b64decode(record, validate=True)
        except (binascii.Error, ValueError, TypeError):
            logger.debug("Vault record is not valid base64")
            raise VaultDecryptionError() from None

        if len(combined) < NONCE_LENGTH:
            logger.debug("Vault record shorter than nonce", extra={"length": len(combined)})
            raise VaultDecryptionError()

        nonce, ciphertext = combined[:NONCE_LENGTH], combined[NONCE_LENGTH:]
        try:
            plaintext = AESGCM(self.derive_key(passphrase)).decrypt(nonce, ciphertext, None)
            payload = json.loads(plaintext.decode("utf-8"))
        except (InvalidTag, UnicodeDecodeError, json.JSONDecodeError):
            raise VaultDecryptionError() from None

        if not isinstance(payload, dict):
            raise VaultDecryptionError()
        return payload

    def decrypt(self, record: str, passphrase: str) -> IdentityProfile:
        return IdentityProfile.from_payload(self.decrypt_payload(record, passphrase))


__all__ = [
    "KDF_ITERATIONS",
    "NONCE_LENGTH",
    "VAULT_SALT",
    "VaultCipher",
    "canonical_encode",
]
