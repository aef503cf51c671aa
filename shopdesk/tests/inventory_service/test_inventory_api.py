import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopdesk.catalog_service.app.models import Product, ProductVariant
from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.common.auth import create_access_token
from shopdesk.inventory_service.app.main import create_app


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "inventory.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Inventory Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
    )
    return create_app(settings)


async def _seed_variants(app: FastAPI) -> list[int]:
    async with app.state.session_factory() as session:
        product = Product(name="Notebook", slug="notebook", base_price_cents=499)
        product.variants.extend(
            [ProductVariant(name="Ruled", sku="NB-R"), ProductVariant(name="Blank", sku="NB-B")]
        )
        session.add(product)
        await session.commit()
        return [variant.id for variant in product.variants]


def _headers(app: FastAPI) -> dict[str, str]:
    token = create_access_token(
        app.state.settings,
        user_id="warehouse-1",
        role_name="Staff",
        permissions=["inventory:read", "inventory:write"],
    )
    return {"Authorization": f"Bearer {token}"}


def test_create_and_adjust_inventory(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ruled, _ = await _seed_variants(app)
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                created = await client.post(
                    "/inventory",
                    json={"productVariantId": ruled, "quantity": 20, "lowStockThreshold": 5},
                    headers=headers,
                )
                assert created.status_code == 201
                assert created.json()["available"] == 20
                assert created.json()["sku"] == "NB-R"
                assert created.json()["productName"] == "Notebook"

                duplicate = await client.post("/inventory", json={"productVariantId": ruled}, headers=headers)
                assert duplicate.status_code == 409

                sold = await client.post(
                    "/inventory/adjust",
                    json={"productVariantId": ruled, "quantityChange": -5, "reason": "SALE", "notes": "POS"},
                    headers=headers,
                )
                assert sold.status_code == 200
                assert (sold.json()["quantity"], sold.json()["available"]) == (15, 15)

                negative = await client.post(
                    "/inventory/adjust",
                    json={"productVariantId": ruled, "quantityChange": -16, "reason": "DAMAGE"},
                    headers=headers,
                )
                assert negative.status_code == 400
                assert negative.json()["detail"] == "Adjustment would result in negative inventory"

                adjustments = await client.get(f"/inventory/variant/{ruled}/adjustments", headers=headers)
                assert [(a["quantityChange"], a["reason"], a["userId"]) for a in adjustments.json()] == [
                    (-5, "SALE", "warehouse-1")
                ]

    _run(body())
    _run(dispose_engines())


def test_adjust_creates_missing_inventory_row(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            _, blank = await _seed_variants(app)
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                restocked = await client.post(
                    "/inventory/adjust",
                    json={"productVariantId": blank, "quantityChange": 3, "reason": "RESTOCK"},
                    headers=headers,
                )
                assert restocked.status_code == 200
                assert restocked.json()["quantity"] == 3
                assert restocked.json()["lastRestockedAt"] is not None
                assert restocked.json()["isLowStock"] is True

                unknown = await client.post(
                    "/inventory/adjust",
                    json={"productVariantId": 999, "quantityChange": 3, "reason": "RESTOCK"},
                    headers=headers,
                )
                assert unknown.status_code == 404

    _run(body())
    _run(dispose_engines())


def test_reserve_and_release_stock(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ruled, _ = await _seed_variants(app)
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post(
                    "/inventory",
                    json={"productVariantId": ruled, "quantity": 15, "lowStockThreshold": 5},
                    headers=headers,
                )

                reserved = await client.post(
                    "/inventory/reserve", json={"productVariantId": ruled, "quantity": 10}, headers=headers
                )
                assert (reserved.json()["reserved"], reserved.json()["available"]) == (10, 5)
                assert reserved.json()["isLowStock"] is True

                too_many = await client.post(
                    "/inventory/reserve", json={"productVariantId": ruled, "quantity": 6}, headers=headers
                )
                assert too_many.status_code == 409
                assert too_many.json()["detail"] == "Insufficient inventory. Available: 5, Requested: 6"

                below_reserved = await client.post(
                    "/inventory/adjust",
                    json={"productVariantId": ruled, "quantityChange": -6, "reason": "CORRECTION"},
                    headers=headers,
                )
                assert below_reserved.status_code == 400

                over_release = await client.post(
                    "/inventory/release", json={"productVariantId": ruled, "quantity": 11}, headers=headers
                )
                assert over_release.status_code == 400
                assert over_release.json()["detail"] == "Cannot release 11 units. Only 10 units are reserved."

                released = await client.post(
                    "/inventory/release", json={"productVariantId": ruled, "quantity": 4}, headers=headers
                )
                assert (released.json()["reserved"], released.json()["available"]) == (6, 9)

                availability = await client.get(
                    f"/inventory/variant/{ruled}/availability", params={"quantity": 9}
                )
                assert availability.json() == {"available": True, "currentStock": 9}
                short = await client.get(f"/inventory/variant/{ruled}/availability", params={"quantity": 10})
                assert short.json()["available"] is False

    _run(body())
    _run(dispose_engines())


def test_listing_low_and_out_of_stock(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ruled, blank = await _seed_variants(app)
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/inventory", json={"productVariantId": ruled, "quantity": 50}, headers=headers)
                await client.post("/inventory", json={"productVariantId": blank, "quantity": 0}, headers=headers)

                listed = await client.get("/inventory", headers=headers)
                assert listed.json()["total"] == 2
                assert [item["sku"] for item in listed.json()["items"]] == ["NB-B", "NB-R"]

                out = await client.get("/inventory", params={"outOfStock": True}, headers=headers)
                assert [item["sku"] for item in out.json()["items"]] == ["NB-B"]

                low = await client.get("/inventory/low-stock", headers=headers)
                assert [item["sku"] for item in low.json()] == ["NB-B"]

                anonymous = await client.get("/inventory")
                assert anonymous.status_code == 401

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
