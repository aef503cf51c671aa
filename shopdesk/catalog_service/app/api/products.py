"""HTTP routes for catalog administration."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from shopdesk.common import from_cents, to_cents
from shopdesk.common.auth import require_permissions

from ..dependencies import get_repository
from ..models import Product, ProductCategory, ProductStatus, ProductVariant
from ..repository import CatalogRepository
from ..schemas import (
    CategoryCreate,
    CategoryResponse,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    TagCreate,
    TagSummary,
    VariantCreate,
    VariantResponse,
)

router = APIRouter(tags=["catalog"])

_read = require_permissions("products:read")
_write = require_permissions("products:write")


def _serialize_variant(variant: ProductVariant) -> dict[str, object]:
    return {
        "id": variant.id,
        "productId": variant.product_id,
        "name": variant.name,
        "sku": variant.sku,
        "price": from_cents(variant.price_cents) if variant.price_cents is not None else None,
        "image": variant.image,
        "attributes": variant.attributes or {},
        "isActive": variant.is_active,
    }


def _serialize_product(product: Product) -> dict[str, object]:
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
        "status": product.status,
        "isVisible": product.is_visible,
        "isFeatured": product.is_featured,
        "featuredImage": product.featured_image,
        "publishedAt": product.published_at,
        "categories": [{"id": c.id, "name": c.name, "slug": c.slug} for c in product.categories],
        "tags": [{"id": t.id, "name": t.name, "slug": t.slug} for t in product.tags],
        "variants": [_serialize_variant(variant) for variant in product.variants],
        "createdAt": product.created_at,
        "updatedAt": product.updated_at,
    }


def _serialize_category(category: ProductCategory) -> dict[str, object]:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image": category.image,
        "parentId": category.parent_id,
        "isVisible": category.is_visible,
        "displayOrder": category.display_order,
    }


async def _require_product(product_id: int, repository: CatalogRepository) -> Product:
    product = await repository.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def create_product(
    payload: ProductCreate,
    repository: CatalogRepository = Depends(get_repository),
) -> ProductResponse:
    if await repository.get_by_slug(payload.slug) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product slug already exists")

    product = await repository.create_product(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        short_description=payload.short_description,
        base_price_cents=to_cents(payload.base_price),
        compare_at_price_cents=(
            to_cents(payload.compare_at_price) if payload.compare_at_price is not None else None
        ),
        status=payload.status,
        is_visible=payload.is_visible,
        is_featured=payload.is_featured,
        featured_image=payload.featured_image,
        categories=await repository.get_categories(payload.category_ids),
        tags=await repository.get_tags(payload.tag_ids),
    )
    return ProductResponse.model_validate(_serialize_product(product))


@router.get("/products", response_model=ProductListResponse, dependencies=[Depends(_read)])
async def list_products(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    category: str | None = Query(default=None),
    product_status: ProductStatus | None = Query(default=None, alias="status"),
    repository: CatalogRepository = Depends(get_repository),
) -> ProductListResponse:
    products, total = await repository.list_products(
        limit=limit,
        offset=offset,
        category_slug=category.strip() if category else None,
        status=product_status,
    )
    items = [ProductResponse.model_validate(_serialize_product(product)) for product in products]
    return ProductListResponse(items=items, total=total)


@router.get("/products/{product_id}", response_model=ProductResponse, dependencies=[Depends(_read)])
async def get_product(
    product_id: int,
    repository: CatalogRepository = Depends(get_repository),
) -> ProductResponse:
    product = await _require_product(product_id, repository)
    return ProductResponse.model_validate(_serialize_product(product))


@router.patch("/products/{product_id}", response_model=ProductResponse, dependencies=[Depends(_write)])
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    repository: CatalogRepository = Depends(get_repository),
) -> ProductResponse:
    product = await _require_product(product_id, repository)
    if payload.slug is not None and payload.slug != product.slug:
        if await repository.get_by_slug(payload.slug) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product slug already exists")

    changes = payload.model_dump(
        exclude_unset=True,
        exclude_none=True,
        exclude={"base_price", "compare_at_price", "category_ids", "tag_ids"},
    )
    if payload.base_price is not None:
        changes["base_price_cents"] = to_cents(payload.base_price)
    if "compare_at_price" in payload.model_fields_set:
        changes["compare_at_price_cents"] = (
            to_cents(payload.compare_at_price) if payload.compare_at_price is not None else None
        )
    if payload.category_ids is not None:
        changes["categories"] = await repository.get_categories(payload.category_ids)
    if payload.tag_ids is not None:
        changes["tags"] = await repository.get_tags(payload.tag_ids)

    updated = await repository.update_product(product, changes)
    return ProductResponse.model_validate(_serialize_product(updated))


@router.delete("/products/{product_id}", dependencies=[Depends(_write)])
async def delete_product(
    product_id: int,
    repository: CatalogRepository = Depends(get_repository),
) -> Response:
    product = await _require_product(product_id, repository)
    await repository.delete_product(product)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/products/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def add_variant(
    product_id: int,
    payload: VariantCreate,
    repository: CatalogRepository = Depends(get_repository),
) -> VariantResponse:
    product = await _require_product(product_id, repository)
    if await repository.get_variant_by_sku(payload.sku) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Variant SKU already exists")
    variant = await repository.add_variant(
        product,
        name=payload.name,
        sku=payload.sku,
        price_cents=to_cents(payload.price) if payload.price is not None else None,
        image=payload.image,
        attributes=payload.attributes,
        is_active=payload.is_active,
    )
    return VariantResponse.model_validate(_serialize_variant(variant))


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def create_category(
    payload: CategoryCreate,
    repository: CatalogRepository = Depends(get_repository),
) -> CategoryResponse:
    if await repository.get_category_by_slug(payload.slug) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category slug already exists")
    category = await repository.create_category(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        image=payload.image,
        parent_id=payload.parent_id,
        is_visible=payload.is_visible,
        display_order=payload.display_order,
    )
    return CategoryResponse.model_validate(_serialize_category(category))


@router.get("/categories", response_model=list[CategoryResponse], dependencies=[Depends(_read)])
async def list_categories(repository: CatalogRepository = Depends(get_repository)) -> list[CategoryResponse]:
    categories = await repository.list_categories()
    return [CategoryResponse.model_validate(_serialize_category(category)) for category in categories]


@router.post(
    "/tags",
    response_model=TagSummary,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def create_tag(payload: TagCreate, repository: CatalogRepository = Depends(get_repository)) -> TagSummary:
    if await repository.get_tag_by_slug(payload.slug) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tag slug already exists")
    tag = await repository.create_tag(name=payload.name, slug=payload.slug)
    return TagSummary(id=tag.id, name=tag.name, slug=tag.slug)
