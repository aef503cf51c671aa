import asyncio
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from shopdesk.common import InvalidInputError
from shopdesk.uploads_service.app.storage import READ_CHUNK_BYTES, LocalUploadStorage


def _upload(data: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


def test_stores_images_under_kind_directory(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path, "/media/")

    stored = asyncio.run(storage.upload_file(_upload(b"gif-bytes", "Logo.GIF", "image/gif"), "image"))

    assert stored.filename.endswith(".gif")
    assert stored.url == f"/media/images/{stored.filename}"
    assert stored.original_name == "Logo.GIF"
    assert stored.size == len(b"gif-bytes")
    assert (tmp_path / "images" / stored.filename).read_bytes() == b"gif-bytes"


def test_extension_falls_back_to_mime_type(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path)

    stored = asyncio.run(storage.upload_file(_upload(b"%PDF", "report", "application/pdf"), "document"))

    assert stored.filename.endswith(".pdf")
    assert stored.url.startswith("/uploads/documents/")


def test_rejects_wrong_mime_type_for_kind(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path)

    with pytest.raises(InvalidInputError) as excinfo:
        asyncio.run(storage.upload_file(_upload(b"%PDF", "report.pdf", "application/pdf"), "image"))

    assert excinfo.value.message == (
        "File type application/pdf is not allowed. Allowed types: image/gif, image/jpeg, image/png, image/webp"
    )
    assert not (tmp_path / "images").exists()


def test_rejects_oversized_files(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path, image_max_bytes=2 * 1024 * 1024)

    with pytest.raises(InvalidInputError) as excinfo:
        asyncio.run(storage.upload_file(_upload(b"x" * (2 * 1024 * 1024 + 1), "big.png", "image/png"), "image"))

    assert excinfo.value.message == "File size exceeds maximum of 2MB"


class CountingBytesIO(io.BytesIO):
    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


def test_oversized_upload_stops_reading_past_the_limit(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path, image_max_bytes=1024 * 1024)
    source = CountingBytesIO(b"x" * (8 * 1024 * 1024))
    upload = UploadFile(file=source, filename="huge.png", headers=Headers({"content-type": "image/png"}))

    with pytest.raises(InvalidInputError):
        asyncio.run(storage.upload_file(upload, "image"))

    assert source.bytes_read <= 1024 * 1024 + READ_CHUNK_BYTES
    assert not (tmp_path / "images").exists()


def test_wrong_mime_type_is_rejected_before_reading(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path)
    source = CountingBytesIO(b"%PDF")
    upload = UploadFile(file=source, filename="report.pdf", headers=Headers({"content-type": "application/pdf"}))

    with pytest.raises(InvalidInputError):
        asyncio.run(storage.upload_file(upload, "image"))

    assert source.bytes_read == 0


def test_delete_file_validates_names(tmp_path) -> None:
    storage = LocalUploadStorage(tmp_path)
    stored = asyncio.run(storage.upload_file(_upload(b"png", "a.png", "image/png"), "image"))

    asyncio.run(storage.delete_file("image", stored.filename))
    assert not (tmp_path / "images" / stored.filename).exists()

    # Deleting twice is a no-op.
    asyncio.run(storage.delete_file("image", stored.filename))

    with pytest.raises(InvalidInputError):
        asyncio.run(storage.delete_file("image", "../secrets.txt"))
