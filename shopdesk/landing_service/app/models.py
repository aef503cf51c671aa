"""SQLAlchemy models for landing-page content."""

from __future__ import annotations

import enum
import uuid
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shopdesk.common.models import Base, TimestampMixin


class PageStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class LandingPageContent(TimestampMixin, Base):
    __tablename__ = "landing_page_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sections: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class CustomPage(TimestampMixin, Base):
    __tablename__ = "custom_pages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    status: Mapped[PageStatus] = mapped_column(
        Enum(PageStatus, name="page_status"), nullable=False, default=PageStatus.DRAFT
    )
