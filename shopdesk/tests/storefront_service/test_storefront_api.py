import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopdesk.catalog_service.app.models import (
    Product,
    ProductCategory,
    ProductStatus,
    ProductTag,
    ProductVariant,
)
from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.inventory_service.app.models import Inventory
from shopdesk.storefront_service.app.main import create_app


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "storefront.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Storefront Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
    )
    return create_app(settings)


async def _seed(app: FastAPI) -> dict[str, int]:
    """Two public products plus a draft and a hidden one that must never be listed."""

    now = datetime.now(timezone.utc)
    async with app.state.session_factory() as session:
        home = ProductCategory(name="Home", slug="home", display_order=0)
        lighting = ProductCategory(name="Lighting", slug="lighting", display_order=1)
        secret = ProductCategory(name="Secret", slug="secret", is_visible=False)
        home.children.append(lighting)
        sale = ProductTag(name="Sale", slug="sale")

        lamp = Product(
            name="Desk Lamp",
            slug="desk-lamp",
            description="Warm light for late nights",
            base_price_cents=4990,
            status=ProductStatus.PUBLISHED,
            is_featured=True,
            published_at=now - timedelta(days=2),
            categories=[lighting],
            tags=[sale],
        )
        lamp.variants.extend(
            [
                ProductVariant(name="Brass", sku="LAMP-BRASS", price_cents=5490),
                ProductVariant(name="Retired", sku="LAMP-OLD", is_active=False),
            ]
        )
        chair = Product(
            name="Reading Chair",
            slug="reading-chair",
            base_price_cents=12000,
            status=ProductStatus.PUBLISHED,
            published_at=now - timedelta(days=1),
            categories=[home, lighting],
        )
        draft = Product(
            name="Prototype Lamp", slug="prototype-lamp", base_price_cents=100, categories=[lighting]
        )
        hidden = Product(
            name="Hidden Lamp",
            slug="hidden-lamp",
            base_price_cents=100,
            status=ProductStatus.PUBLISHED,
            is_visible=False,
            published_at=now,
        )
        session.add_all([home, secret, lamp, chair, draft, hidden])
        await session.flush()
        brass = lamp.variants[0]
        session.add(Inventory(product_variant_id=brass.id, quantity=7, reserved=2, available=5))
        await session.commit()
        return {"lamp": lamp.id, "chair": chair.id, "brass": brass.id}


def test_lists_only_published_visible_products(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            await _seed(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                newest = await client.get("/storefront/products")
                assert newest.status_code == 200
                listing = newest.json()
                assert [p["slug"] for p in listing["products"]] == ["reading-chair", "desk-lamp"]
                assert listing["total"] == 2
                assert listing["totalPages"] == 1

                cheapest = await client.get("/storefront/products", params={"sortBy": "price_asc"})
                assert [p["basePrice"] for p in cheapest.json()["products"]] == ["49.90", "120.00"]

                pricey = await client.get("/storefront/products", params={"minPrice": "100"})
                assert [p["slug"] for p in pricey.json()["products"]] == ["reading-chair"]

                featured = await client.get("/storefront/products", params={"isFeatured": True})
                assert [p["slug"] for p in featured.json()["products"]] == ["desk-lamp"]

                tagged = await client.get("/storefront/products", params={"tagSlug": "sale"})
                assert [p["slug"] for p in tagged.json()["products"]] == ["desk-lamp"]

                paged = await client.get("/storefront/products", params={"limit": 1, "page": 2})
                assert paged.json()["totalPages"] == 2
                assert [p["slug"] for p in paged.json()["products"]] == ["desk-lamp"]

    _run(body())
    _run(dispose_engines())


def test_product_page_includes_active_variants_and_stock(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/storefront/products/desk-lamp")
                assert response.status_code == 200
                product = response.json()
                assert product["id"] == ids["lamp"]
                assert [v["sku"] for v in product["variants"]] == ["LAMP-BRASS"]
                assert product["variants"][0]["price"] == "54.90"
                assert product["variants"][0]["inventory"] == {"quantity": 7, "reserved": 2, "available": 5}

                for slug in ("prototype-lamp", "hidden-lamp", "missing"):
                    hidden = await client.get(f"/storefront/products/{slug}")
                    assert hidden.status_code == 404
                    assert hidden.json()["detail"] == f"Product with slug {slug} not found"

    _run(body())
    _run(dispose_engines())


def test_category_search_and_related(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                lighting = await client.get("/storefront/categories/lighting/products")
                assert {p["slug"] for p in lighting.json()["products"]} == {"desk-lamp", "reading-chair"}

                unknown = await client.get("/storefront/categories/garden/products")
                assert unknown.status_code == 404

                search = await client.get("/storefront/search", params={"q": "lamp"})
                assert [p["slug"] for p in search.json()["products"]] == ["desk-lamp"]

                by_description = await client.get("/storefront/search", params={"q": "late nights"})
                assert by_description.json()["total"] == 1

                missing_query = await client.get("/storefront/search")
                assert missing_query.status_code == 422

                related = await client.get(f"/storefront/products/{ids['lamp']}/related")
                assert [p["slug"] for p in related.json()] == ["reading-chair"]

    _run(body())
    _run(dispose_engines())


def test_category_tree_counts_public_products(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            await _seed(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/storefront/categories")
                assert response.status_code == 200
                tree = response.json()
                assert [root["slug"] for root in tree] == ["home"]
                assert tree[0]["productCount"] == 1
                assert [(child["slug"], child["productCount"]) for child in tree[0]["children"]] == [
                    ("lighting", 2)
                ]

    _run(body())
    _run(dispose_engines())


def test_category_tree_with_empty_root(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            async with app.state.session_factory() as session:
                session.add(ProductCategory(name="Home", slug="home"))
                await session.commit()
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/storefront/categories")
                assert response.status_code == 200
                tree = response.json()
                assert [(root["slug"], root["productCount"]) for root in tree] == [("home", 0)]
                assert tree[0]["children"] == []

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
