"""Exception taxonomy shared by the vault, storage and autofill layers."""
from __future__ import annotations

from typing import Any, Dict, Optional


class KycFillError(RuntimeError):
    """Base class for errors surfaced to callers of the service layer."""

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.data = data or {}


class MissingPassphraseError(KycFillError):
    """Raised before any work starts when no passphrase was supplied."""


class VaultNotFoundError(KycFillError):
    """Raised when autofill is requested but no vault record has been saved."""


class VaultDecryptionError(KycFillError):
    """Raised for every decryption failure.

    Wrong passphrases, tampered ciphertext and truncated records all produce the
    same message so callers cannot tell them apart.
    """

    MESSAGE = "Decryption failed. Possibly the passphrase is incorrect or data is corrupted."

    def __init__(self) -> None:
        super().__init__(self.MESSAGE)


class StorageError(KycFillError):
    """Raised when the underlying persistence layer fails."""


class FileReferenceNotFoundError(KycFillError):
    """Raised when a file reference id does not resolve to a stored file."""

    def __init__(self, file_id: str) -> None:
        super().__init__(f"No stored file for reference {file_id!r}", data={"file_id": file_id})
        self.file_id = file_id


__all__ = [
    "FileReferenceNotFoundError",
    "KycFillError",
    "MissingPassphraseError",
    "StorageError",
    "VaultDecryptionError",
    "VaultNotFoundError",
]
