"""Persistence layer for landing service."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CustomPage, LandingPageContent


class LandingRepository:
    """Data access helpers for landing documents and custom pages."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_active(self) -> LandingPageContent | None:
        result = await self.session.execute(
            select(LandingPageContent)
            .where(LandingPageContent.is_active.is_(True))
            .order_by(LandingPageContent.updated_at.desc(), LandingPageContent.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[LandingPageContent]:
        result = await self.session.execute(select(LandingPageContent).order_by(LandingPageContent.id))
        return list(result.scalars().all())

    async def create_content(
        self, *, sections: list[dict[str, Any]], settings: dict[str, Any]
    ) -> LandingPageContent:
        content = LandingPageContent(sections=sections, settings=settings, version=1, is_active=True)
        self.session.add(content)
        await self.session.flush()
        return content

    async def save(self, content: LandingPageContent) -> LandingPageContent:
        await self.session.flush()
        await self.session.refresh(content, attribute_names=["updated_at"])
        return content

    async def commit(self) -> None:
        await self.session.commit()

    async def get_page(self, page_id: str) -> CustomPage | None:
        return await self.session.get(CustomPage, page_id)

    async def get_page_by_slug(self, slug: str) -> CustomPage | None:
        result = await self.session.execute(select(CustomPage).where(CustomPage.slug == slug))
        return result.scalar_one_or_none()

    async def create_page(self, **values: Any) -> CustomPage:
        page = CustomPage(**values)
        self.session.add(page)
        await self.session.flush()
        return page

    async def list_pages(self) -> list[CustomPage]:
        result = await self.session.execute(select(CustomPage).order_by(CustomPage.title))
        return list(result.scalars().all())
