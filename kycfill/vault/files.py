"""File reference store for document attachments and orphan reclamation."""
from __future__ import annotations

import logging
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from ..errors import FileReferenceNotFoundError
from ..profile import FileReference
from ..storage.records import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def new_file_id(field_name: str, timestamp_ms: Optional[int] = None) -> str:
    """Return a ``{fieldName}_{creationTimestamp}`` identifier."""

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{field_name}_{timestamp_ms}"


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A document supplied at save time, before it has an identifier."""

    filename: str
    payload: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "UploadedFile":
        file_path = Path(path)
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            filename=file_path.name,
            payload=file_path.read_bytes(),
            mime_type=mime_type or DEFAULT_MIME_TYPE,
        )


class FileReferenceStore:
    """Content store for binary attachments addressed by generated ids."""

    def __init__(self, blobs: BlobStore) -> None:
        self._blobs = blobs

    async def store(self, file_id: str, upload: UploadedFile) -> FileReference:
        reference = FileReference(
            file_id=file_id,
            filename=upload.filename,
            mime_type=upload.mime_type,
            payload=upload.payload,
        )
        await self._blobs.put(reference)
        logger.info("Stored file reference", extra={"file_id": file_id, "size": reference.size})
        return reference

    async def store_upload(self, field_name: str, upload: UploadedFile) -> str:
        """Store ``upload`` under a freshly generated id and return the id."""

        file_id = new_file_id(field_name)
        await self.store(file_id, upload)
        return file_id

    async def retrieve(self, file_id: str) -> FileReference:
        reference = await self._blobs.get(file_id)
        if reference is None:
            raise FileReferenceNotFoundError(file_id)
        return reference

    async def exists(self, file_id: str) -> bool:
        return await self._blobs.get(file_id) is not None

    async def list_ids(self) -> List[str]:
        return await self._blobs.list_ids()

    async def delete_unreferenced(self, referenced: Iterable[str]) -> List[str]:
        """Delete every stored id not in ``referenced``; return the deleted ids."""

        keep: Set[str] = set(referenced)
        deleted: List[str] = []
        for file_id in await self._blobs.list_ids():
            if file_id in keep:
                continue
            if await self._blobs.delete(file_id):
                deleted.append(file_id)
        if deleted:
            logger.info("Reclaimed orphaned files", extra={"deleted": deleted, "kept": sorted(keep)})
        return deleted


__all__ = ["DEFAULT_MIME_TYPE", "FileReferenceStore", "UploadedFile", "new_file_id"]
