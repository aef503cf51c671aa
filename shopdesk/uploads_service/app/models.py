"""SQLAlchemy models for uploads service."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shopdesk.common.models import Base, TimestampMixin


class UploadType(str, enum.Enum):
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"
    AVATAR = "AVATAR"
    EDITOR_IMAGE = "EDITOR_IMAGE"


class Visibility(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    ROLE_BASED = "ROLE_BASED"


class Upload(TimestampMixin, Base):
    __tablename__ = "uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(128), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    url: Mapped[str] = mapped_column(String(512), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    type: Mapped[UploadType] = mapped_column(Enum(UploadType, name="upload_type"), nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        Enum(Visibility, name="upload_visibility"), nullable=False, default=Visibility.PRIVATE
    )
    uploaded_by_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    alt_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    used_in: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    allowed_roles: Mapped[list[UploadAllowedRole]] = relationship(
        back_populates="upload",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="UploadAllowedRole.id",
    )

    @property
    def allowed_role_ids(self) -> list[str]:
        return [role.role_id for role in self.allowed_roles]


class UploadAllowedRole(Base):
    __tablename__ = "upload_allowed_roles"
    __table_args__ = (UniqueConstraint("upload_id", "role_id", name="uq_upload_allowed_role"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    upload_id: Mapped[int] = mapped_column(ForeignKey("uploads.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[str] = mapped_column(String(64), nullable=False)

    upload: Mapped[Upload] = relationship(back_populates="allowed_roles")
