"""Public catalogue queries: only published, visible products leave this service."""

from __future__ import annotations

from typing import Any

from shopdesk.catalog_service.app.models import Product, ProductStatus
from shopdesk.common import NotFoundError, from_cents
from shopdesk.inventory_service.app.repository import InventoryRepository

from .repository import StorefrontRepository
from .schemas import StorefrontCategory, StorefrontProduct, StorefrontProductList, StorefrontQuery

RELATED_PRODUCTS_LIMIT = 6


def _reference(entity: Any) -> dict[str, Any]:
    return {"id": entity.id, "name": entity.name, "slug": entity.slug}


def _product_payload(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "shortDescription": product.short_description,
        "basePrice": from_cents(product.base_price_cents),
        "compareAtPrice": (
            from_cents(product.compare_at_price_cents) if product.compare_at_price_cents is not None else None
        ),
        "isFeatured": product.is_featured,
        "featuredImage": product.featured_image,
        "publishedAt": product.published_at,
        "categories": [_reference(category) for category in product.categories],
        "tags": [_reference(tag) for tag in product.tags],
    }


def _is_public(product: Product | None) -> bool:
    return product is not None and product.status is ProductStatus.PUBLISHED and product.is_visible


class StorefrontService:
    def __init__(self, repository: StorefrontRepository) -> None:
        self.repository = repository

    async def get_public_products(self, query: StorefrontQuery) -> StorefrontProductList:
        products, total = await self.repository.search_products(
            search=query.search.strip() if query.search else None,
            category_slug=query.category_slug,
            tag_slug=query.tag_slug,
            min_price=query.min_price,
            max_price=query.max_price,
            is_featured=query.is_featured,
            sort_by=query.sort_by,
            limit=query.limit,
            offset=(query.page - 1) * query.limit,
        )
        return StorefrontProductList(
            products=[StorefrontProduct.model_validate(_product_payload(product)) for product in products],
            total=total,
            page=query.page,
            limit=query.limit,
            totalPages=-(-total // query.limit),
        )

    async def get_product_by_slug(self, slug: str) -> StorefrontProduct:
        """Return the product page payload, active variants and their stock included."""

        product = await self.repository.get_product_by_slug(slug)
        if not _is_public(product):
            raise NotFoundError(f"Product with slug {slug} not found")

        variants = [variant for variant in product.variants if variant.is_active]
        stock = await InventoryRepository(self.repository.session).find_by_variants(
            variant.id for variant in variants
        )
        payload = _product_payload(product)
        payload["variants"] = [
            {
                "id": variant.id,
                "name": variant.name,
                "sku": variant.sku,
                "attributes": variant.attributes or {},
                "price": from_cents(variant.price_cents) if variant.price_cents is not None else None,
                "isActive": variant.is_active,
                "inventory": (
                    {
                        "quantity": stock[variant.id].quantity,
                        "reserved": stock[variant.id].reserved,
                        "available": stock[variant.id].available,
                    }
                    if variant.id in stock
                    else None
                ),
            }
            for variant in variants
        ]
        return StorefrontProduct.model_validate(payload)

    async def get_products_by_category(self, slug: str, query: StorefrontQuery) -> StorefrontProductList:
        if await self.repository.get_category_by_slug(slug) is None:
            raise NotFoundError(f"Category with slug {slug} not found")
        return await self.get_public_products(query.model_copy(update={"category_slug": slug}))

    async def search_products(self, search: str, query: StorefrontQuery) -> StorefrontProductList:
        return await self.get_public_products(query.model_copy(update={"search": search}))

    async def get_related_products(
        self, product_id: int, limit: int = RELATED_PRODUCTS_LIMIT
    ) -> list[StorefrontProduct]:
        product = await self.repository.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        related = await self.repository.related_products(product, limit=limit)
        return [StorefrontProduct.model_validate(_product_payload(item)) for item in related]

    async def get_categories(self) -> list[StorefrontCategory]:
        roots = await self.repository.visible_root_categories()
        children = {root.id: [child for child in root.children if child.is_visible] for root in roots}
        counts = await self.repository.published_counts(
            [root.id for root in roots] + [child.id for group in children.values() for child in group]
        )

        def describe(category: Any) -> dict[str, Any]:
            return {
                "id": category.id,
                "name": category.name,
                "slug": category.slug,
                "description": category.description,
                "image": category.image,
                "productCount": counts.get(category.id, 0),
            }

        return [
            StorefrontCategory.model_validate(
                {**describe(root), "children": [describe(child) for child in children[root.id]]}
            )
            for root in roots
        ]
