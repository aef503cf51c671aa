"""Read-only queries behind the public storefront."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shopdesk.catalog_service.app.models import (
    Product,
    ProductCategory,
    ProductStatus,
    ProductTag,
    product_category_links,
)
from shopdesk.common import to_cents

SORT_ORDERS = {
    "newest": (Product.published_at.desc(),),
    "oldest": (Product.published_at.asc(),),
    "price_asc": (Product.base_price_cents.asc(),),
    "price_desc": (Product.base_price_cents.desc(),),
    "name_asc": (Product.name.asc(),),
    "name_desc": (Product.name.desc(),),
}


def _published() -> list:
    return [Product.status == ProductStatus.PUBLISHED, Product.is_visible.is_(True)]


class StorefrontRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def search_products(
        self,
        *,
        search: str | None = None,
        category_slug: str | None = None,
        tag_slug: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        is_featured: bool | None = None,
        sort_by: str = "newest",
        limit: int,
        offset: int,
    ) -> tuple[list[Product], int]:
        conditions = _published()
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.short_description.ilike(pattern),
                )
            )
        if category_slug:
            conditions.append(Product.categories.any(ProductCategory.slug == category_slug))
        if tag_slug:
            conditions.append(Product.tags.any(ProductTag.slug == tag_slug))
        if min_price is not None:
            conditions.append(Product.base_price_cents >= to_cents(min_price))
        if max_price is not None:
            conditions.append(Product.base_price_cents <= to_cents(max_price))
        if is_featured is not None:
            conditions.append(Product.is_featured.is_(is_featured))

        count: Select[tuple[int]] = select(func.count(Product.id)).where(*conditions)
        total = (await self.session.execute(count)).scalar_one()

        ordering = SORT_ORDERS.get(sort_by, SORT_ORDERS["newest"])
        result = await self.session.execute(
            select(Product).where(*conditions).order_by(*ordering, Product.id).offset(offset).limit(limit)
        )
        return list(result.scalars().unique()), total

    async def get_product(self, product_id: int) -> Product | None:
        return await self.session.get(Product, product_id)

    async def get_product_by_slug(self, slug: str) -> Product | None:
        result = await self.session.execute(select(Product).where(Product.slug == slug))
        return result.scalar_one_or_none()

    async def get_category_by_slug(self, slug: str) -> ProductCategory | None:
        result = await self.session.execute(select(ProductCategory).where(ProductCategory.slug == slug))
        return result.scalar_one_or_none()

    async def related_products(self, product: Product, *, limit: int) -> list[Product]:
        category_ids = [category.id for category in product.categories]
        if not category_ids:
            return []
        result = await self.session.execute(
            select(Product)
            .where(
                *_published(),
                Product.id != product.id,
                Product.categories.any(ProductCategory.id.in_(category_ids)),
            )
            .order_by(Product.published_at.desc(), Product.id)
            .limit(limit)
        )
        return list(result.scalars().unique())

    async def visible_root_categories(self) -> list[ProductCategory]:
        result = await self.session.execute(
            select(ProductCategory)
            .where(ProductCategory.is_visible.is_(True), ProductCategory.parent_id.is_(None))
            .options(selectinload(ProductCategory.children))
            .order_by(ProductCategory.display_order, ProductCategory.id)
        )
        return list(result.scalars())

    async def published_counts(self, category_ids: Iterable[int]) -> dict[int, int]:
        ids = list(category_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(product_category_links.c.category_id, func.count(Product.id))
            .join(Product, Product.id == product_category_links.c.product_id)
            .where(product_category_links.c.category_id.in_(ids), *_published())
            .group_by(product_category_links.c.category_id)
        )
        return {category_id: int(count) for category_id, count in result.all()}
