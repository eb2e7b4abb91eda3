"""Save and load orchestration for the encrypted profile vault."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from ..errors import VaultNotFoundError
from ..profile import IdentityProfile
from ..storage.records import RecordStore
from .crypto import VaultCipher
from .files import FileReferenceStore

logger = logging.getLogger(__name__)

VAULT_RECORD_KEY = "encryptedKYC"


@dataclass(slots=True)
class SaveResult:
    """Outcome of a vault save, including the ids reclaimed afterwards."""

    record: str
    deleted_files: List[str] = field(default_factory=list)


class ProfileVault:
    """Encrypts, persists and reloads the single identity profile record."""

    def __init__(
        self,
        records: RecordStore,
        files: FileReferenceStore,
        *,
        cipher: VaultCipher | None = None,
        record_key: str = VAULT_RECORD_KEY,
    ) -> None:
        self._records = records
        self._files = files
        self._cipher = cipher or VaultCipher()
        self._record_key = record_key

    @property
    def files(self) -> FileReferenceStore:
        return self._files

    async def save(self, profile: IdentityProfile, passphrase: str) -> SaveResult:
        """Encrypt ``profile``, overwrite the stored record and reclaim orphans."""

        record = await asyncio.to_thread(self._cipher.encrypt, profile, passphrase)
        await self._records.put(self._record_key, record)
        logger.info("Vault record saved", extra={"record_length": len(record)})
        deleted = await self.collect_garbage(record, passphrase)
        return SaveResult(record=record, deleted_files=deleted)

    async def collect_garbage(self, record: str, passphrase: str) -> List[str]:
        """Delete stored files not referenced by the profile inside ``record``.

        The record is decrypted with the same passphrase that produced it.
        """

        saved = await asyncio.to_thread(self._cipher.decrypt, record, passphrase)
        return await self._files.delete_unreferenced(saved.document_references())

    async def load_record(self) -> str:
        record = await self._records.get(self._record_key)
        if not record:
            raise VaultNotFoundError("No KYC data found. Please save your details first.")
        return record

    async def load(self, passphrase: str) -> IdentityProfile:
        record = await self.load_record()
        profile = await asyncio.to_thread(self._cipher.decrypt, record, passphrase)
        logger.info("Vault record decrypted")
        return profile

    async def has_record(self) -> bool:
        return bool(await self._records.get(self._record_key))


__all__ = ["ProfileVault", "SaveResult", "VAULT_RECORD_KEY"]
