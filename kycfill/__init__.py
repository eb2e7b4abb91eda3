"""kycfill: encrypted identity profile vault and AI-assisted KYC form autofill."""

from .config import Settings, get_settings
from .errors import (
    FileReferenceNotFoundError,
    KycFillError,
    MissingPassphraseError,
    StorageError,
    VaultDecryptionError,
    VaultNotFoundError,
)
from .profile import DOCUMENT_SLOTS, SLOT_KEYS, TEXT_SLOTS, FileReference, IdentityProfile

__all__ = [
    "DOCUMENT_SLOTS",
    "FileReference",
    "FileReferenceNotFoundError",
    "IdentityProfile",
    "KycFillError",
    "MissingPassphraseError",
    "SLOT_KEYS",
    "Settings",
    "StorageError",
    "TEXT_SLOTS",
    "VaultDecryptionError",
    "VaultNotFoundError",
    "get_settings",
]
