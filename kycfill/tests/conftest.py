from __future__ import annotations

import pytest

from kycfill.storage.db import Database
from kycfill.storage.records import SqlBlobStore, SqlRecordStore
from kycfill.vault.crypto import VaultCipher
from kycfill.vault.files import FileReferenceStore
from kycfill.vault.manager import ProfileVault


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def cipher() -> VaultCipher:
    # Fewer iterations keep the suite fast; the derivation is otherwise identical.
    return VaultCipher(iterations=1_000)


@pytest.fixture
def file_store(database) -> FileReferenceStore:
    return FileReferenceStore(SqlBlobStore(database))


@pytest.fixture
def vault(database, file_store, cipher) -> ProfileVault:
    return ProfileVault(SqlRecordStore(database), file_store, cipher=cipher)

