"""Persistence layer for uploads service."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Upload, UploadAllowedRole, UploadType, Visibility

SORTABLE_FIELDS = {
    "createdAt": Upload.created_at,
    "updatedAt": Upload.updated_at,
    "originalName": Upload.original_name,
    "size": Upload.size,
    "usageCount": Upload.usage_count,
}


def access_predicate(user_id: str, role_id: str | None) -> ColumnElement[bool]:
    """Rows a non-privileged caller may see: public, owned or granted to their role."""

    clauses: list[ColumnElement[bool]] = [
        Upload.visibility == Visibility.PUBLIC,
        Upload.uploaded_by_id == user_id,
    ]
    if role_id is not None:
        clauses.append(
            (Upload.visibility == Visibility.ROLE_BASED)
            & Upload.allowed_roles.any(UploadAllowedRole.role_id == role_id)
        )
    return or_(*clauses)


class UploadRepository:
    """Data access helpers for Upload entities."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_upload(self, *, allowed_roles: Iterable[str] = (), **values: Any) -> Upload:
        upload = Upload(
            **values,
            allowed_roles=[UploadAllowedRole(role_id=role_id) for role_id in dict.fromkeys(allowed_roles)],
        )
        self.session.add(upload)
        await self.session.flush()
        await self.session.refresh(upload, attribute_names=["allowed_roles", "created_at", "updated_at"])
        return upload

    async def get_upload(self, upload_id: int, *, include_deleted: bool = False) -> Upload | None:
        stmt = select(Upload).where(Upload.id == upload_id)
        if not include_deleted:
            stmt = stmt.where(Upload.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_by_ids(self, upload_ids: Sequence[int]) -> list[Upload]:
        if not upload_ids:
            return []
        result = await self.session.execute(
            select(Upload).where(Upload.id.in_(upload_ids), Upload.deleted_at.is_(None))
        )
        return list(result.scalars().all())

    async def list_uploads(
        self,
        *,
        upload_type: UploadType | None = None,
        visibility: Visibility | None = None,
        uploaded_by: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        search: str | None = None,
        access: ColumnElement[bool] | None = None,
        sort_by: str = "createdAt",
        descending: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Upload], int]:
        conditions: list[ColumnElement[bool]] = [Upload.deleted_at.is_(None)]
        if upload_type is not None:
            conditions.append(Upload.type == upload_type)
        if visibility is not None:
            conditions.append(Upload.visibility == visibility)
        if uploaded_by is not None:
            conditions.append(Upload.uploaded_by_id == uploaded_by)
        if start_date is not None:
            conditions.append(Upload.created_at >= start_date)
        if end_date is not None:
            conditions.append(Upload.created_at <= end_date)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Upload.original_name.ilike(pattern),
                    Upload.title.ilike(pattern),
                    Upload.description.ilike(pattern),
                    cast(Upload.tags, String).like(f'%"{search}"%'),
                )
            )
        if access is not None:
            conditions.append(access)

        column = SORTABLE_FIELDS.get(sort_by, Upload.created_at)
        order = column.desc() if descending else column.asc()
        rows = await self.session.execute(
            select(Upload).where(*conditions).order_by(order, Upload.id).limit(limit).offset(offset)
        )
        total = await self.session.scalar(select(func.count(Upload.id)).where(*conditions))
        return list(rows.scalars().all()), int(total or 0)

    async def list_deleted(self) -> list[Upload]:
        result = await self.session.execute(
            select(Upload).where(Upload.deleted_at.is_not(None)).order_by(Upload.deleted_at.desc())
        )
        return list(result.scalars().all())

    async def set_allowed_roles(self, upload: Upload, role_ids: Iterable[str]) -> None:
        # Removals flush before inserts: (upload_id, role_id) is unique.
        upload.allowed_roles.clear()
        await self.session.flush()
        upload.allowed_roles.extend(UploadAllowedRole(role_id=role_id) for role_id in dict.fromkeys(role_ids))

    async def delete_upload(self, upload: Upload) -> None:
        await self.session.delete(upload)
        await self.session.flush()

    async def save(self, upload: Upload) -> Upload:
        await self.session.flush()
        await self.session.refresh(upload, attribute_names=["allowed_roles", "updated_at"])
        return upload
