"""Persistence layer for the vault record and stored files."""

from .db import Database, StoredFileRow, VaultRecordRow
from .records import BlobStore, RecordStore, SqlBlobStore, SqlRecordStore

__all__ = [
    "BlobStore",
    "Database",
    "RecordStore",
    "SqlBlobStore",
    "SqlRecordStore",
    "StoredFileRow",
    "VaultRecordRow",
]
