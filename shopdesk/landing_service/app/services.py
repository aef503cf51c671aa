"""Landing-page content management."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError

from shopdesk.common import ConflictError, InvalidInputError, NotFoundError

from .cache import LandingCache
from .defaults import copyright_line, default_sections, default_settings
from .models import CustomPage, LandingPageContent
from .repository import LandingRepository
from .schemas import BrandingPayload, CustomPageCreate, LandingContentUpdate, LandingSection
from .sections import cta_buttons, is_valid_url_link, validate_section_data

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LandingDocument:
    """Detached copy of a landing row, safe to share between requests."""

    id: int
    sections: list[dict[str, Any]]
    settings: dict[str, Any]
    version: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: LandingPageContent) -> "LandingDocument":
        return cls(
            id=row.id,
            sections=copy.deepcopy(row.sections or []),
            settings=copy.deepcopy(row.settings or {}),
            version=row.version,
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


def merge_settings(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Merge ``changes`` into ``current`` one level deep."""

    merged = copy.deepcopy(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


class LandingService:
    def __init__(self, repository: LandingRepository, cache: LandingCache[LandingDocument]) -> None:
        self.repository = repository
        self.cache = cache

    async def get_content(self) -> LandingDocument:
        return await self.cache.get_or_load(self._load_active)

    async def get_admin_content(self) -> LandingDocument:
        return LandingDocument.from_row(await self._require_active())

    async def update_content(self, payload: LandingContentUpdate) -> LandingDocument:
        row = await self._require_active()
        if payload.sections is not None:
            row.sections = [await self.validate_section(section) for section in payload.sections]
        if payload.settings is not None:
            row.settings = copy.deepcopy(payload.settings)
        return await self._commit(row)

    async def reset_to_defaults(self) -> LandingDocument:
        row = await self.repository.get_active()
        if row is None:
            row = await self.repository.create_content(sections=default_sections(), settings=default_settings())
            _LOGGER.info("Created default landing content %s", row.id)
            return await self._publish(row)
        row.sections = default_sections()
        row.settings = default_settings()
        return await self._commit(row)

    async def validate_section(self, section: LandingSection) -> dict[str, Any]:
        data = validate_section_data(section.type, section.data)
        for button in cta_buttons(data):
            await self.validate_cta_link(button["link"], button["linkType"])
        return {**section.model_dump(), "data": data}

    async def validate_cta_link(self, link: str, link_type: str) -> None:
        if link_type == "url":
            if not is_valid_url_link(link):
                raise InvalidInputError(f"Invalid URL format: {link}")
            return
        if link_type == "page":
            if await self.repository.get_page(link) is None:
                raise InvalidInputError(f"Page not found with ID: {link}")
            return
        raise InvalidInputError(f"Invalid link type: {link_type}")

    async def sync_branding(self, brand: BrandingPayload) -> LandingDocument:
        row = await self._require_active()
        _apply_brand(row, brand)
        return await self._commit(row)

    async def apply_branding_to_all(self, brand: BrandingPayload) -> int:
        rows = await self.repository.list_all()
        for row in rows:
            _apply_brand(row, brand)
            row.version += 1
            await self.repository.save(row)
        await self._commit_and_invalidate()
        _LOGGER.info("Applied branding %r to %d landing documents", brand.brand_name, len(rows))
        return len(rows)

    async def get_settings(self) -> dict[str, Any]:
        return (await self.get_content()).settings

    async def update_settings(self, changes: dict[str, Any]) -> dict[str, Any]:
        row = await self._require_active()
        row.settings = merge_settings(row.settings or {}, changes)
        return (await self._commit(row)).settings

    async def create_page(self, payload: CustomPageCreate) -> CustomPage:
        if await self.repository.get_page_by_slug(payload.slug) is not None:
            raise ConflictError("A page with this slug already exists")
        try:
            return await self.repository.create_page(**payload.model_dump())
        except IntegrityError as exc:
            raise ConflictError("A page with this slug already exists") from exc

    async def list_pages(self) -> list[CustomPage]:
        return await self.repository.list_pages()

    async def _load_active(self) -> LandingDocument:
        return LandingDocument.from_row(await self._require_active())

    async def _require_active(self) -> LandingPageContent:
        row = await self.repository.get_active()
        if row is None:
            raise NotFoundError("Landing page content not found")
        return row

    async def _commit(self, row: LandingPageContent) -> LandingDocument:
        row.version += 1
        return await self._publish(row)

    async def _publish(self, row: LandingPageContent) -> LandingDocument:
        saved = await self.repository.save(row)
        await self._commit_and_invalidate()
        return LandingDocument.from_row(saved)

    async def _commit_and_invalidate(self) -> None:
        # The cache is dropped only after the write is visible to other sessions.
        await self.repository.commit()
        self.cache.invalidate()


def _apply_brand(row: LandingPageContent, brand: BrandingPayload) -> None:
    sections = copy.deepcopy(row.sections or [])
    for section in sections:
        if section.get("type") != "footer":
            continue
        data = dict(section.get("data") or {})
        data["companyName"] = brand.brand_name
        data["copyright"] = copyright_line(brand.brand_name)
        if brand.description is not None:
            data["description"] = brand.description
        if brand.logo_url is not None:
            data["logo"] = brand.logo_url
        if brand.social_links is not None:
            data["socialLinks"] = [
                {"platform": platform, "url": url, "icon": platform}
                for platform, url in brand.social_links.items()
                if url
            ]
        section["data"] = data
    row.sections = sections

    settings = copy.deepcopy(row.settings or {})
    seo = dict(settings.get("seo") or {})
    seo["title"] = brand.brand_name
    settings["seo"] = seo
    row.settings = settings
