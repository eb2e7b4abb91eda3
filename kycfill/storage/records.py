"""Async key-value and blob stores backed by SQLAlchemy.

Blocking database calls run in a worker thread so the autofill pipeline's event
loop is never stalled. Every SQLAlchemy failure surfaces as
:class:`~kycfill.errors.StorageError`.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..profile import FileReference
from .db import Database, StoredFileRow, VaultRecordRow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordStore(Protocol):
    """Protocol for the single-value persistence used by the vault record."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, value: str) -> None:
        ...


class BlobStore(Protocol):
    """Protocol for binary attachment persistence."""

    async def put(self, reference: FileReference) -> None:
        ...

    async def get(self, file_id: str) -> Optional[FileReference]:
        ...

    async def delete(self, file_id: str) -> bool:
        ...

    async def list_ids(self) -> List[str]:
        ...


async def _run(operation: str, func: Callable[[], T]) -> T:
    try:
        return await asyncio.to_thread(func)
    except SQLAlchemyError as exc:
        logger.error("Storage operation failed", exc_info=exc, extra={"operation": operation})
        raise StorageError(f"Storage operation {operation!r} failed: {exc}", data={"operation": operation}) from exc


class SqlRecordStore:
    """:class:`RecordStore` backed by the ``vault_records`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, key: str) -> Optional[str]:
        def _get() -> Optional[str]:
            with self._db.session() as session:
                row = session.get(VaultRecordRow, key)
                return row.value if row is not None else None

        return await _run("record.get", _get)

    async def put(self, key: str, value: str) -> None:
        def _put() -> None:
            with self._db.session() as session:
                row = session.get(VaultRecordRow, key)
                if row is None:
                    session.add(VaultRecordRow(key=key, value=value))
                else:
                    row.value = value

        await _run("record.put", _put)


class SqlBlobStore:
    """:class:`BlobStore` backed by the ``stored_files`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def put(self, reference: FileReference) -> None:
        def _put() -> None:
            with self._db.session() as session:
                session.merge(
                    StoredFileRow(
                        id=reference.file_id,
                        filename=reference.filename,
                        mime_type=reference.mime_type,
                        payload=reference.payload,
                    )
                )

        await _run("blob.put", _put)

    async def get(self, file_id: str) -> Optional[FileReference]:
        def _get() -> Optional[FileReference]:
            with self._db.session() as session:
                row = session.get(StoredFileRow, file_id)
                if row is None:
                    return None
                return FileReference(
                    file_id=row.id,
                    filename=row.filename,
                    mime_type=row.mime_type,
                    payload=bytes(row.payload),
                )

        return await _run("blob.get", _get)

    async def delete(self, file_id: str) -> bool:
        def _delete() -> bool:
            with self._db.session() as session:
                row = session.get(StoredFileRow, file_id)
                if row is None:
                    return False
                session.delete(row)
                return True

        return await _run("blob.delete", _delete)

    async def list_ids(self) -> List[str]:
        def _list() -> List[str]:
            with self._db.session() as session:
                return list(session.scalars(select(StoredFileRow.id).order_by(StoredFileRow.id)))

        return await _run("blob.list_ids", _list)


__all__ = ["BlobStore", "RecordStore", "SqlBlobStore", "SqlRecordStore"]
