"""Public storefront routes; no authentication required."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_storefront_service
from ..schemas import SearchQuery, StorefrontCategory, StorefrontProduct, StorefrontProductList, StorefrontQuery
from ..services import RELATED_PRODUCTS_LIMIT, StorefrontService

router = APIRouter(prefix="/storefront", tags=["storefront"])


@router.get("/products", response_model=StorefrontProductList)
async def list_products(
    query: Annotated[StorefrontQuery, Query()],
    service: StorefrontService = Depends(get_storefront_service),
) -> StorefrontProductList:
    return await service.get_public_products(query)


@router.get("/products/{product_id}/related", response_model=list[StorefrontProduct])
async def related_products(
    product_id: int,
    limit: int = Query(default=RELATED_PRODUCTS_LIMIT, ge=1, le=24),
    service: StorefrontService = Depends(get_storefront_service),
) -> list[StorefrontProduct]:
    return await service.get_related_products(product_id, limit)


@router.get("/products/{slug}", response_model=StorefrontProduct)
async def get_product(slug: str, service: StorefrontService = Depends(get_storefront_service)) -> StorefrontProduct:
    return await service.get_product_by_slug(slug)


@router.get("/categories", response_model=list[StorefrontCategory])
async def list_categories(service: StorefrontService = Depends(get_storefront_service)) -> list[StorefrontCategory]:
    return await service.get_categories()


@router.get("/categories/{slug}/products", response_model=StorefrontProductList)
async def category_products(
    slug: str,
    query: Annotated[StorefrontQuery, Query()],
    service: StorefrontService = Depends(get_storefront_service),
) -> StorefrontProductList:
    return await service.get_products_by_category(slug, query)


@router.get("/search", response_model=StorefrontProductList)
async def search(
    query: Annotated[SearchQuery, Query()],
    service: StorefrontService = Depends(get_storefront_service),
) -> StorefrontProductList:
    return await service.search_products(query.q.strip(), query)
