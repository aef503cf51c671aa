import asyncio
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopdesk.catalog_service.app.main import create_app
from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.common.auth import create_access_token


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "catalog.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Catalog Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
    )
    return create_app(settings)


def _headers(app: FastAPI, *permissions: str) -> dict[str, str]:
    granted = permissions or ("products:read", "products:write")
    token = create_access_token(app.state.settings, user_id="editor", role_name="Editor", permissions=granted)
    return {"Authorization": f"Bearer {token}"}


def _product_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "name": "Desk Lamp",
        "slug": "desk-lamp",
        "description": "Adjustable lamp",
        "basePrice": "49.90",
        "status": "PUBLISHED",
    }
    payload.update(overrides)
    return payload


def test_create_and_get_product(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                category = await client.post(
                    "/categories", json={"name": "Lighting", "slug": "lighting"}, headers=headers
                )
                assert category.status_code == 201
                tag = await client.post("/tags", json={"name": "New", "slug": "new"}, headers=headers)
                assert tag.status_code == 201

                created = await client.post(
                    "/products",
                    json=_product_payload(categoryIds=[category.json()["id"]], tagIds=[tag.json()["id"]]),
                    headers=headers,
                )
                assert created.status_code == 201
                product = created.json()
                assert product["basePrice"] == "49.90"
                assert product["publishedAt"] is not None
                assert [c["slug"] for c in product["categories"]] == ["lighting"]
                assert [t["slug"] for t in product["tags"]] == ["new"]

                fetched = await client.get(f"/products/{product['id']}", headers=headers)
                assert fetched.json()["name"] == "Desk Lamp"

                duplicate = await client.post("/products", json=_product_payload(), headers=headers)
                assert duplicate.status_code == 409

                bad_slug = await client.post(
                    "/products", json=_product_payload(slug="Desk Lamp!"), headers=headers
                )
                assert bad_slug.status_code == 422

    _run(body())
    _run(dispose_engines())


def test_variants_update_and_delete(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                product = (
                    await client.post("/products", json=_product_payload(status="DRAFT"), headers=headers)
                ).json()
                assert product["publishedAt"] is None

                variant = await client.post(
                    f"/products/{product['id']}/variants",
                    json={"name": "Black", "sku": "LAMP-BLK", "price": "54.90", "attributes": {"color": "black"}},
                    headers=headers,
                )
                assert variant.status_code == 201
                assert variant.json()["price"] == "54.90"

                same_sku = await client.post(
                    f"/products/{product['id']}/variants",
                    json={"name": "Black again", "sku": "LAMP-BLK"},
                    headers=headers,
                )
                assert same_sku.status_code == 409

                updated = await client.patch(
                    f"/products/{product['id']}",
                    json={"basePrice": "44.00", "status": "PUBLISHED"},
                    headers=headers,
                )
                assert updated.status_code == 200
                assert updated.json()["basePrice"] == "44.00"
                assert updated.json()["publishedAt"] is not None
                assert [v["sku"] for v in updated.json()["variants"]] == ["LAMP-BLK"]

                deleted = await client.delete(f"/products/{product['id']}", headers=headers)
                assert deleted.status_code == 204
                gone = await client.get(f"/products/{product['id']}", headers=headers)
                assert gone.status_code == 404

    _run(body())
    _run(dispose_engines())


def test_list_filters_by_category_and_status(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                lighting = (
                    await client.post("/categories", json={"name": "Lighting", "slug": "lighting"}, headers=headers)
                ).json()
                await client.post(
                    "/products", json=_product_payload(categoryIds=[lighting["id"]]), headers=headers
                )
                await client.post(
                    "/products",
                    json=_product_payload(name="Floor Lamp", slug="floor-lamp", status="DRAFT"),
                    headers=headers,
                )

                by_category = await client.get("/products", params={"category": "lighting"}, headers=headers)
                assert [p["slug"] for p in by_category.json()["items"]] == ["desk-lamp"]

                drafts = await client.get("/products", params={"status": "DRAFT"}, headers=headers)
                assert drafts.json()["total"] == 1
                assert drafts.json()["items"][0]["slug"] == "floor-lamp"

                categories = await client.get("/categories", headers=headers)
                assert [c["slug"] for c in categories.json()] == ["lighting"]

    _run(body())
    _run(dispose_engines())


def test_catalog_requires_product_permissions(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                anonymous = await client.get("/products")
                assert anonymous.status_code == 401

                reader = _headers(app, "products:read")
                denied = await client.post("/products", json=_product_payload(), headers=reader)
                assert denied.status_code == 403

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
