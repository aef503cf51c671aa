"""Upload metadata, access control and media library operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from fastapi import UploadFile

from shopdesk.common import ForbiddenError, InvalidInputError, NotFoundError
from shopdesk.common.auth import RequestUser

from .metrics import UPLOADS_DELETED_TOTAL
from .models import Upload, UploadType, Visibility
from .repository import UploadRepository, access_predicate
from .schemas import UploadCreate, UploadQuery, UploadUpdate
from .storage import FileKind, StoredFile, UploadStorageProtocol, remove_path

_LOGGER = logging.getLogger(__name__)

VIEW_ALL_PERMISSION = "media:view:all"

_UPLOAD_TYPES: dict[str, UploadType] = {"image": UploadType.IMAGE, "document": UploadType.DOCUMENT}


@dataclass
class UploadPage:
    data: list[Upload]
    total: int
    page: int
    limit: int


def can_access(upload: Upload, user: RequestUser) -> bool:
    if user.is_admin:
        return True
    if upload.visibility == Visibility.PUBLIC:
        return True
    if upload.uploaded_by_id == user.id:
        return True
    return upload.visibility == Visibility.ROLE_BASED and user.role_id in upload.allowed_role_ids


def can_edit(upload: Upload, user: RequestUser) -> bool:
    return user.is_admin or upload.uploaded_by_id == user.id


def can_delete(upload: Upload, user: RequestUser) -> bool:
    return user.is_admin or upload.uploaded_by_id == user.id


class UploadsService:
    """Coordinates file storage with the upload metadata table."""

    def __init__(self, repository: UploadRepository, storage: UploadStorageProtocol | None = None) -> None:
        self.repository = repository
        self.storage = storage

    async def create(self, payload: UploadCreate, user_id: str) -> Upload:
        values = payload.model_dump(exclude={"allowed_roles", "visibility"})
        upload = await self.repository.create_upload(
            **values,
            allowed_roles=payload.allowed_roles,
            visibility=payload.visibility or Visibility.PRIVATE,
            uploaded_by_id=user_id,
        )
        _LOGGER.info("Upload %s recorded for user %s", upload.id, user_id)
        return upload

    async def upload_file(
        self,
        file: UploadFile | None,
        kind: str | None,
        user: RequestUser,
        *,
        visibility: Visibility | None = None,
        title: str | None = None,
        description: str | None = None,
        alt_text: str | None = None,
        tags: Sequence[str] = (),
    ) -> tuple[StoredFile, Upload]:
        """Validate and store ``file`` then record it in the media library."""

        if file is None:
            raise InvalidInputError("No file provided")
        if kind not in _UPLOAD_TYPES:
            raise InvalidInputError(f"Invalid file type: {kind}")
        stored = await self._require_storage().upload_file(file, kind)  # type: ignore[arg-type]
        upload = await self._record(
            stored,
            _UPLOAD_TYPES[kind],
            user,
            visibility=visibility,
            title=title,
            description=description,
            alt_text=alt_text,
            tags=tags,
        )
        return stored, upload

    async def upload_editor_image(self, file: UploadFile | None, user: RequestUser) -> tuple[StoredFile, Upload]:
        if file is None:
            raise InvalidInputError("No file provided")
        stored = await self._require_storage().upload_editor_image(file)
        upload = await self._record(stored, UploadType.EDITOR_IMAGE, user, visibility=Visibility.PUBLIC)
        return stored, upload

    async def delete_file(self, kind: FileKind, filename: str) -> None:
        await self._require_storage().delete_file(kind, filename)

    async def find_all(self, query: UploadQuery, user: RequestUser) -> UploadPage:
        privileged = user.is_admin or user.has_permission(VIEW_ALL_PERMISSION)
        data, total = await self.repository.list_uploads(
            upload_type=query.type,
            visibility=query.visibility,
            uploaded_by=query.uploaded_by if user.is_admin else None,
            start_date=query.start_date,
            end_date=query.end_date,
            search=query.search,
            access=None if privileged else access_predicate(user.id, user.role_id),
            sort_by=query.sort_by,
            descending=query.sort_order == "desc",
            limit=query.limit,
            offset=(query.page - 1) * query.limit,
        )
        return UploadPage(data=data, total=total, page=query.page, limit=query.limit)

    async def find_one(self, upload_id: int, user: RequestUser) -> Upload:
        upload = await self.repository.get_upload(upload_id)
        if upload is None:
            raise NotFoundError("Upload not found")
        if not can_access(upload, user):
            raise ForbiddenError("Access denied")
        return upload

    async def update(self, upload_id: int, payload: UploadUpdate, user: RequestUser) -> Upload:
        upload = await self.find_one(upload_id, user)
        if not can_edit(upload, user):
            raise ForbiddenError("You do not have permission to edit this file")

        changes = payload.model_dump(exclude_unset=True, exclude={"allowed_roles"})
        for field, value in changes.items():
            if value is None and field in ("tags", "visibility"):
                continue
            setattr(upload, field, value)
        if payload.allowed_roles is not None:
            await self.repository.set_allowed_roles(upload, payload.allowed_roles)
        return await self.repository.save(upload)

    async def remove(self, upload_id: int, user: RequestUser) -> str | None:
        """Soft delete an upload, returning a warning when it is still referenced."""

        upload = await self.find_one(upload_id, user)
        if not can_delete(upload, user):
            raise ForbiddenError("You do not have permission to delete this file")

        warning = None
        if upload.usage_count > 0:
            warning = (
                f"This file is currently used in {upload.usage_count} location(s). "
                "Deleting it may break references."
            )
        self._mark_deleted(upload, user)
        await self.repository.save(upload)
        UPLOADS_DELETED_TOTAL.labels(mode="soft").inc()
        return warning

    async def bulk_delete(self, upload_ids: Sequence[int], user: RequestUser) -> int:
        uploads = await self.repository.get_active_by_ids(upload_ids)
        deletable = [upload for upload in uploads if can_delete(upload, user)]
        for upload in deletable:
            self._mark_deleted(upload, user)
        await self.repository.session.flush()
        UPLOADS_DELETED_TOTAL.labels(mode="soft").inc(len(deletable))
        return len(deletable)

    async def bulk_update_visibility(
        self,
        upload_ids: Sequence[int],
        visibility: Visibility,
        allowed_roles: Sequence[str],
        user: RequestUser,
    ) -> int:
        uploads = await self.repository.get_active_by_ids(upload_ids)
        editable = [upload for upload in uploads if can_edit(upload, user)]
        for upload in editable:
            upload.visibility = visibility
            await self.repository.set_allowed_roles(upload, allowed_roles)
        await self.repository.session.flush()
        return len(editable)

    async def increment_usage(self, upload_id: int, entity: str, entity_id: str) -> None:
        upload = await self.repository.get_upload(upload_id, include_deleted=True)
        if upload is None:
            return
        used_in = {key: list(values) for key, values in (upload.used_in or {}).items()}
        references = used_in.setdefault(entity, [])
        if entity_id not in references:
            references.append(entity_id)
        upload.used_in = used_in
        upload.usage_count += 1
        await self.repository.save(upload)

    async def find_deleted(self, user: RequestUser) -> list[Upload]:
        if not user.is_admin:
            raise ForbiddenError("Only admins can view deleted files")
        return await self.repository.list_deleted()

    async def restore(self, upload_id: int, user: RequestUser) -> Upload:
        if not user.is_admin:
            raise ForbiddenError("Only admins can restore files")
        upload = await self.repository.get_upload(upload_id, include_deleted=True)
        if upload is None:
            raise NotFoundError("Upload not found")
        if upload.deleted_at is None:
            raise ForbiddenError("File is not deleted")
        upload.deleted_at = None
        upload.deleted_by_id = None
        return await self.repository.save(upload)

    async def permanent_delete(self, upload_id: int, user: RequestUser) -> None:
        if not user.is_admin:
            raise ForbiddenError("Only admins can permanently delete files")
        upload = await self.repository.get_upload(upload_id, include_deleted=True)
        if upload is None:
            raise NotFoundError("Upload not found")
        path = Path(upload.path)
        await self.repository.delete_upload(upload)
        removed = await asyncio.to_thread(remove_path, path)
        UPLOADS_DELETED_TOTAL.labels(mode="permanent").inc()
        _LOGGER.info("Upload %s permanently deleted (file removed: %s)", upload_id, removed)

    async def _record(
        self,
        stored: StoredFile,
        upload_type: UploadType,
        user: RequestUser,
        *,
        visibility: Visibility | None = None,
        title: str | None = None,
        description: str | None = None,
        alt_text: str | None = None,
        tags: Sequence[str] = (),
    ) -> Upload:
        try:
            return await self.repository.create_upload(
                filename=stored.filename,
                original_name=stored.original_name,
                mime_type=stored.mimetype,
                size=stored.size,
                url=stored.url,
                path=stored.path,
                type=upload_type,
                visibility=visibility or Visibility.PRIVATE,
                uploaded_by_id=user.id,
                title=title,
                description=description,
                alt_text=alt_text,
                tags=list(tags),
            )
        except Exception:
            # A stored file never outlives a failed metadata insert.
            await asyncio.to_thread(remove_path, Path(stored.path))
            _LOGGER.warning("Removed %s after its upload record could not be saved", stored.path)
            raise

    def _require_storage(self) -> UploadStorageProtocol:
        if self.storage is None:
            raise RuntimeError("Upload storage is not configured")
        return self.storage

    @staticmethod
    def _mark_deleted(upload: Upload, user: RequestUser) -> None:
        upload.deleted_at = datetime.now(timezone.utc)
        upload.deleted_by_id = user.id
