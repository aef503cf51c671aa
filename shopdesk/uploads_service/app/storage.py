"""Filesystem storage for uploaded images and documents."""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Protocol

from fastapi import UploadFile

from shopdesk.common import InvalidInputError, ServiceSettings

from .metrics import UPLOADS_REJECTED_TOTAL, UPLOADS_STORED_TOTAL, normalise_content_type

_LOGGER = logging.getLogger(__name__)

FileKind = Literal["image", "document"]

IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

_DIRECTORIES: dict[str, str] = {"image": "images", "document": "documents"}
_FALLBACK_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}
_SAFE_FILENAME = re.compile(r"^[A-Za-z0-9-]+\.[A-Za-z0-9]+$")
READ_CHUNK_BYTES = 64 * 1024


@dataclass(slots=True)
class StoredFile:
    """Metadata describing a file persisted by the storage backend."""

    filename: str
    original_name: str
    mimetype: str
    size: int
    url: str
    path: str
    uploaded_at: datetime

    def as_payload(self) -> dict[str, object]:
        return {
            "filename": self.filename,
            "originalName": self.original_name,
            "mimetype": self.mimetype,
            "size": self.size,
            "url": self.url,
            "uploadedAt": self.uploaded_at,
        }


class UploadStorageProtocol(Protocol):
    async def upload_file(self, file: UploadFile, kind: FileKind) -> StoredFile:
        ...

    async def upload_editor_image(self, file: UploadFile) -> StoredFile:
        ...

    async def delete_file(self, kind: FileKind, filename: str) -> None:
        ...


class LocalUploadStorage:
    """Store uploads below ``base_path`` and expose them beneath ``base_url``."""

    def __init__(
        self,
        base_path: Path,
        base_url: str = "/uploads",
        *,
        image_max_bytes: int = 5 * 1024 * 1024,
        document_max_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self._base_path = base_path
        self._base_url = base_url.rstrip("/")
        self._limits: dict[str, tuple[frozenset[str], int]] = {
            "image": (IMAGE_MIME_TYPES, image_max_bytes),
            "document": (DOCUMENT_MIME_TYPES, document_max_bytes),
        }

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "LocalUploadStorage":
        return cls(
            Path(settings.upload_dir),
            settings.upload_base_url,
            image_max_bytes=settings.image_max_bytes,
            document_max_bytes=settings.document_max_bytes,
        )

    @property
    def base_path(self) -> Path:
        return self._base_path

    async def upload_file(self, file: UploadFile, kind: FileKind) -> StoredFile:
        if kind not in self._limits:
            raise InvalidInputError(f"Invalid file type: {kind}")
        mimetype = normalise_content_type(file.content_type)
        allowed, max_bytes = self._limits[kind]
        if mimetype not in allowed:
            UPLOADS_REJECTED_TOTAL.labels(reason="mime_type").inc()
            raise InvalidInputError(
                f"File type {mimetype} is not allowed. Allowed types: {', '.join(sorted(allowed))}"
            )
        data = await _read_limited(file, max_bytes)

        extension = _extension_for(file.filename, mimetype)
        filename = f"{uuid.uuid4()}.{extension}"
        relative_path = f"{_DIRECTORIES[kind]}/{filename}"
        target_path = self._base_path / relative_path
        await asyncio.to_thread(_write_file, target_path, data)

        UPLOADS_STORED_TOTAL.labels(kind=kind, content_type=mimetype).inc()
        _LOGGER.info("Stored %s upload %s (%d bytes)", kind, relative_path, len(data))
        return StoredFile(
            filename=filename,
            original_name=file.filename or filename,
            mimetype=mimetype,
            size=len(data),
            url=f"{self._base_url}/{relative_path}",
            path=str(target_path),
            uploaded_at=datetime.now(timezone.utc),
        )

    async def upload_editor_image(self, file: UploadFile) -> StoredFile:
        return await self.upload_file(file, "image")

    async def delete_file(self, kind: FileKind, filename: str) -> None:
        if kind not in _DIRECTORIES:
            raise InvalidInputError(f"Invalid file type: {kind}")
        if not _SAFE_FILENAME.match(filename):
            raise InvalidInputError("Invalid filename")
        target_path = self._base_path / _DIRECTORIES[kind] / filename
        await asyncio.to_thread(remove_path, target_path)


def remove_path(path: Path) -> bool:
    """Unlink ``path`` when it exists and report whether anything was removed."""

    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


async def _read_limited(file: UploadFile, max_bytes: int) -> bytes:
    """Read ``file`` in chunks, stopping as soon as it grows past ``max_bytes``."""

    buffer = bytearray()
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            UPLOADS_REJECTED_TOTAL.labels(reason="size").inc()
            raise InvalidInputError(f"File size exceeds maximum of {max_bytes // (1024 * 1024)}MB")
    return bytes(buffer)


def _write_file(target_path: Path, data: bytes) -> None:
    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_bytes(data)


def _extension_for(original_name: str | None, mimetype: str) -> str:
    suffix = Path(original_name or "").suffix.lstrip(".").lower()
    if suffix and suffix.isalnum():
        return suffix
    return _FALLBACK_EXTENSIONS.get(mimetype, "bin")
