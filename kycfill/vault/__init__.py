"""Encrypted profile vault and its file reference store."""

from .crypto import NONCE_LENGTH, VaultCipher
from .files import FileReferenceStore, UploadedFile, new_file_id
from .manager import ProfileVault, SaveResult, VAULT_RECORD_KEY

__all__ = [
    "FileReferenceStore",
    "NONCE_LENGTH",
    "ProfileVault",
    "SaveResult",
    "UploadedFile",
    "VAULT_RECORD_KEY",
    "VaultCipher",
    "new_file_id",
]
