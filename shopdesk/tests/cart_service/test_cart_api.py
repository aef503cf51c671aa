import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopdesk.cart_service.app.main import create_app
from shopdesk.cart_service.app.models import Cart
from shopdesk.cart_service.app.repository import CartRepository
from shopdesk.cart_service.app.services import CartService
from shopdesk.catalog_service.app.models import Product, ProductStatus, ProductVariant
from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.common.auth import create_access_token
from shopdesk.inventory_service.app.models import Inventory


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "cart.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Cart Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
    )
    return create_app(settings)


async def _seed_catalog(app: FastAPI) -> dict[str, int]:
    async with app.state.session_factory() as session:
        shirt = Product(name="T-Shirt", slug="t-shirt", base_price_cents=1999, status=ProductStatus.PUBLISHED)
        mug = Product(name="Mug", slug="mug", base_price_cents=850, status=ProductStatus.PUBLISHED)
        large = ProductVariant(name="Large", sku="TS-L", price_cents=2500, attributes={"size": "L"})
        small = ProductVariant(name="Small", sku="TS-S", attributes={"size": "S"})
        shirt.variants.extend([large, small])
        session.add_all([shirt, mug])
        await session.flush()
        session.add(Inventory(product_variant_id=large.id, quantity=1, reserved=0, available=1))
        await session.commit()
        return {"shirt": shirt.id, "mug": mug.id, "large": large.id, "small": small.id}


def _auth(app: FastAPI, user_id: str) -> dict[str, str]:
    token = create_access_token(app.state.settings, user_id=user_id, role_name="Customer")
    return {"Authorization": f"Bearer {token}"}


def test_adding_same_product_twice_sums_quantity(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_catalog(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                line = {"productId": ids["shirt"], "quantity": 1, "sessionId": "guest-1"}
                first = await client.post("/cart/items", json=line)
                assert first.status_code == 200
                second = await client.post("/cart/items", json=line)
                assert second.status_code == 200

                cart = second.json()
                assert len(cart["items"]) == 1
                assert cart["items"][0]["quantity"] == 2
                assert cart["items"][0]["priceSnapshot"] == "19.99"
                assert cart["subtotal"] == "39.98"
                assert cart["itemCount"] == 2

                totals = await client.get("/cart/totals", params={"sessionId": "guest-1"})
                assert totals.json() == {"subtotal": "39.98", "itemCount": 2}

    _run(body())
    _run(dispose_engines())


def test_variant_price_overrides_base_price(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_catalog(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post(
                    "/cart/items",
                    json={"productId": ids["shirt"], "productVariantId": ids["large"], "quantity": 1, "sessionId": "g"},
                )
                response = await client.post(
                    "/cart/items",
                    json={"productId": ids["shirt"], "productVariantId": ids["small"], "quantity": 1, "sessionId": "g"},
                )
                cart = response.json()
                prices = {item["productVariantId"]: item["priceSnapshot"] for item in cart["items"]}
                assert prices == {ids["large"]: "25.00", ids["small"]: "19.99"}
                assert cart["subtotal"] == "44.99"

    _run(body())
    _run(dispose_engines())


def test_update_remove_and_clear_items(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_catalog(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/cart/items", json={"productId": ids["mug"], "quantity": 1, "sessionId": "s"})
                added = await client.post(
                    "/cart/items", json={"productId": ids["shirt"], "quantity": 1, "sessionId": "s"}
                )
                cart = added.json()
                mug_line = next(item for item in cart["items"] if item["productId"] == ids["mug"])

                updated = await client.patch(f"/cart/items/{mug_line['id']}", json={"quantity": 3})
                assert updated.status_code == 200
                assert updated.json()["subtotal"] == "45.49"

                removed = await client.delete(f"/cart/items/{mug_line['id']}")
                assert [item["productId"] for item in removed.json()["items"]] == [ids["shirt"]]

                cleared = await client.delete(f"/cart/{cart['id']}")
                assert cleared.status_code == 200
                assert cleared.json()["items"] == []
                assert cleared.json()["itemCount"] == 0

                missing = await client.patch("/cart/items/9999", json={"quantity": 1})
                assert missing.status_code == 404
                assert missing.json()["detail"] == "Cart item not found"

    _run(body())
    _run(dispose_engines())


def test_cart_requires_session_or_user(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/cart")
                assert response.status_code == 400
                assert response.json()["detail"] == "Either sessionId or userId is required"

                unknown = await client.post("/cart/items", json={"productId": 42, "quantity": 1, "sessionId": "s"})
                assert unknown.status_code == 404

    _run(body())
    _run(dispose_engines())


def test_merge_guest_cart_into_user_cart(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_catalog(app)
            headers = _auth(app, "user-1")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post(
                    "/cart/items", json={"productId": ids["shirt"], "quantity": 1}, headers=headers
                )
                await client.post("/cart/items", json={"productId": ids["shirt"], "quantity": 2, "sessionId": "g"})
                await client.post("/cart/items", json={"productId": ids["mug"], "quantity": 1, "sessionId": "g"})

                merged = await client.post("/cart/merge", json={"sessionId": "g"}, headers=headers)
                assert merged.status_code == 200
                cart = merged.json()
                assert cart["userId"] == "user-1"
                quantities = {item["productId"]: item["quantity"] for item in cart["items"]}
                assert quantities == {ids["shirt"]: 3, ids["mug"]: 1}
                assert cart["itemCount"] == 4

                unauthenticated = await client.post("/cart/merge", json={"sessionId": "g"})
                assert unauthenticated.status_code == 401

    _run(body())
    _run(dispose_engines())


def test_merging_empty_guest_cart_leaves_user_cart_unchanged(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_catalog(app)
            headers = _auth(app, "user-2")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                before = await client.post(
                    "/cart/items", json={"productId": ids["mug"], "quantity": 2}, headers=headers
                )
                merged = await client.post("/cart/merge", json={"sessionId": "nobody"}, headers=headers)
                assert merged.status_code == 200
                assert merged.json()["id"] == before.json()["id"]
                assert merged.json()["subtotal"] == before.json()["subtotal"] == "17.00"

    _run(body())
    _run(dispose_engines())


def test_validate_inventory_reports_every_short_line(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_catalog(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post(
                    "/cart/items",
                    json={"productId": ids["shirt"], "productVariantId": ids["large"], "quantity": 3, "sessionId": "v"},
                )
                await client.post(
                    "/cart/items",
                    json={"productId": ids["shirt"], "productVariantId": ids["small"], "quantity": 1, "sessionId": "v"},
                )
                response = await client.post("/cart/validate", params={"sessionId": "v"})
                assert response.status_code == 200
                result = response.json()
                assert result["valid"] is False
                errors = {entry["error"]: entry for entry in result["errors"]}
                assert errors["Insufficient inventory"]["requested"] == 3
                assert errors["Insufficient inventory"]["available"] == 1
                assert errors["Inventory not found"]["productName"] == "T-Shirt"

    _run(body())
    _run(dispose_engines())


def test_cleanup_removes_only_expired_carts(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            now = datetime.now(timezone.utc)
            async with app.state.session_factory() as session:
                session.add_all(
                    [
                        Cart(session_id="old", expires_at=now - timedelta(days=1)),
                        Cart(session_id="fresh", expires_at=now + timedelta(days=1)),
                    ]
                )
                await session.commit()

            async with app.state.session_factory() as session:
                service = CartService(CartRepository(session))
                assert await service.cleanup_expired_carts() == 1
                await session.commit()

            async with app.state.session_factory() as session:
                repository = CartRepository(session)
                assert await repository.find_cart(session_id="old", user_id=None) is None
                assert await repository.find_cart(session_id="fresh", user_id=None) is not None

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
