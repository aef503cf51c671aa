"""Persistence helpers for catalog service."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product, ProductCategory, ProductStatus, ProductTag, ProductVariant


class CatalogRepository:
    """Data access methods for catalog entities."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_product(
        self,
        *,
        name: str,
        slug: str,
        description: str | None,
        short_description: str | None,
        base_price_cents: int,
        compare_at_price_cents: int | None,
        status: ProductStatus,
        is_visible: bool,
        is_featured: bool,
        featured_image: str | None,
        categories: Iterable[ProductCategory],
        tags: Iterable[ProductTag],
    ) -> Product:
        product = Product(
            name=name,
            slug=slug,
            description=description,
            short_description=short_description,
            base_price_cents=base_price_cents,
            compare_at_price_cents=compare_at_price_cents,
            status=status,
            is_visible=is_visible,
            is_featured=is_featured,
            featured_image=featured_image,
            published_at=datetime.now(timezone.utc) if status is ProductStatus.PUBLISHED else None,
            categories=list(categories),
            tags=list(tags),
        )
        self.session.add(product)
        await self.session.flush()
        await self.session.refresh(
            product,
            attribute_names=["categories", "tags", "variants", "created_at", "updated_at"],
        )
        return product

    async def get_product(self, product_id: int) -> Product | None:
        result = await self.session.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Product | None:
        result = await self.session.execute(select(Product).where(Product.slug == slug))
        return result.scalar_one_or_none()

    async def list_products(
        self,
        *,
        limit: int,
        offset: int,
        category_slug: str | None,
        status: ProductStatus | None,
    ) -> tuple[list[Product], int]:
        base_query: Select[tuple[Product]] = select(Product)
        count_query: Select[tuple[int]] = select(func.count(func.distinct(Product.id)))

        if category_slug:
            base_query = base_query.join(Product.categories).where(ProductCategory.slug == category_slug)
            count_query = count_query.join(Product.categories).where(ProductCategory.slug == category_slug)

        if status is not None:
            base_query = base_query.where(Product.status == status)
            count_query = count_query.where(Product.status == status)

        total_result = await self.session.execute(count_query)
        total = total_result.scalar_one()

        result = await self.session.execute(
            base_query.distinct().order_by(Product.id).offset(offset).limit(limit)
        )
        products = list(result.scalars().unique())
        return products, total

    async def update_product(self, product: Product, changes: dict[str, Any]) -> Product:
        categories = changes.pop("categories", None)
        tags = changes.pop("tags", None)
        status = changes.get("status")
        if status is ProductStatus.PUBLISHED and product.published_at is None:
            product.published_at = datetime.now(timezone.utc)
        for field_name, value in changes.items():
            setattr(product, field_name, value)
        if categories is not None:
            product.categories = list(categories)
        if tags is not None:
            product.tags = list(tags)

        await self.session.flush()
        await self.session.refresh(
            product,
            attribute_names=["categories", "tags", "variants", "updated_at"],
        )
        return product

    async def delete_product(self, product: Product) -> None:
        await self.session.delete(product)
        await self.session.flush()

    async def get_variant(self, variant_id: int) -> ProductVariant | None:
        result = await self.session.execute(select(ProductVariant).where(ProductVariant.id == variant_id))
        return result.scalar_one_or_none()

    async def get_variant_by_sku(self, sku: str) -> ProductVariant | None:
        result = await self.session.execute(select(ProductVariant).where(ProductVariant.sku == sku))
        return result.scalar_one_or_none()

    async def add_variant(
        self,
        product: Product,
        *,
        name: str,
        sku: str,
        price_cents: int | None,
        image: str | None,
        attributes: dict[str, Any],
        is_active: bool,
    ) -> ProductVariant:
        variant = ProductVariant(
            name=name,
            sku=sku,
            price_cents=price_cents,
            image=image,
            attributes=attributes,
            is_active=is_active,
        )
        product.variants.append(variant)
        await self.session.flush()
        await self.session.refresh(product, attribute_names=["variants", "updated_at"])
        return variant

    async def get_categories(self, category_ids: Iterable[int]) -> list[ProductCategory]:
        ids = list(category_ids)
        if not ids:
            return []
        result = await self.session.execute(select(ProductCategory).where(ProductCategory.id.in_(ids)))
        return list(result.scalars())

    async def get_category_by_slug(self, slug: str) -> ProductCategory | None:
        result = await self.session.execute(select(ProductCategory).where(ProductCategory.slug == slug))
        return result.scalar_one_or_none()

    async def create_category(self, **values: Any) -> ProductCategory:
        category = ProductCategory(**values)
        self.session.add(category)
        await self.session.flush()
        await self.session.refresh(category)
        return category

    async def list_categories(self) -> list[ProductCategory]:
        result = await self.session.execute(
            select(ProductCategory).order_by(ProductCategory.display_order, ProductCategory.id)
        )
        return list(result.scalars())

    async def get_tags(self, tag_ids: Iterable[int]) -> list[ProductTag]:
        ids = list(tag_ids)
        if not ids:
            return []
        result = await self.session.execute(select(ProductTag).where(ProductTag.id.in_(ids)))
        return list(result.scalars())

    async def get_tag_by_slug(self, slug: str) -> ProductTag | None:
        result = await self.session.execute(select(ProductTag).where(ProductTag.slug == slug))
        return result.scalar_one_or_none()

    async def create_tag(self, *, name: str, slug: str) -> ProductTag:
        tag = ProductTag(name=name, slug=slug)
        self.session.add(tag)
        await self.session.flush()
        return tag
