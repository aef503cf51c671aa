import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from shopdesk.catalog_service.app.models import Product, ProductStatus, ProductVariant
from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.common.auth import create_access_token
from shopdesk.customer_service.app.models import Customer
from shopdesk.inventory_service.app.models import Inventory
from shopdesk.order_service.app.main import create_app
from shopdesk.order_service.app.models import OrderStatus
from shopdesk.order_service.app.repository import OrderRepository

ADDRESS = {"firstName": "Grace", "lastName": "Hopper", "city": "Arlington", "country": "US"}


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "orders.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Order Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
    )
    return create_app(settings)


def _headers(app: FastAPI, *permissions: str) -> dict[str, str]:
    token = create_access_token(
        app.state.settings, user_id="staff-1", role_name="Admin", permissions=permissions
    )
    return {"Authorization": f"Bearer {token}"}


async def _seed_order(app: FastAPI, *, order_number: str = "ORD-00000001-001", reserved: int = 2) -> dict[str, int]:
    """One customer, one order for two units of a variant whose stock is reserved."""

    async with app.state.session_factory() as session:
        customer = Customer(email="grace@example.com", first_name="Grace", last_name="Hopper")
        product = Product(name="Compiler", slug="compiler", base_price_cents=1500, status=ProductStatus.PUBLISHED)
        variant = ProductVariant(name="Standard", sku="CMP-1")
        product.variants.append(variant)
        session.add_all([customer, product])
        await session.flush()
        session.add(Inventory(product_variant_id=variant.id, quantity=10, reserved=reserved, available=10 - reserved))

        repository = OrderRepository(session)
        order = await repository.create_order(
            order_number=order_number,
            customer_id=customer.id,
            subtotal_cents=3000,
            tax_cents=300,
            shipping_cents=500,
            total_cents=3800,
            shipping_address=ADDRESS,
            billing_address=ADDRESS,
            customer_email=customer.email,
            customer_name="Grace Hopper",
            items=[
                {
                    "product_id": product.id,
                    "product_variant_id": variant.id,
                    "product_name": product.name,
                    "variant_name": variant.name,
                    "sku": variant.sku,
                    "quantity": 2,
                    "unit_price_cents": 1500,
                    "total_price_cents": 3000,
                }
            ],
        )
        await repository.add_history(order, from_status=None, to_status=OrderStatus.PENDING, notes="Order created")
        await session.commit()
        return {"order": order.id, "customer": customer.id, "variant": variant.id}


def test_get_and_list_orders(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_order(app)
            headers = _headers(app, "orders:read")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get(f"/orders/{ids['order']}", headers=headers)
                assert response.status_code == 200
                order = response.json()
                assert order["orderNumber"] == "ORD-00000001-001"
                assert order["total"] == "38.00"
                assert order["status"] == "PENDING"
                assert order["items"][0]["unitPrice"] == "15.00"

                listed = await client.get(
                    "/orders", params={"customerId": ids["customer"], "search": "00000001"}, headers=headers
                )
                assert listed.json()["total"] == 1

                none = await client.get("/orders", params={"status": "SHIPPED"}, headers=headers)
                assert none.json() == {"items": [], "total": 0}

                missing = await client.get("/orders/999", headers=headers)
                assert missing.status_code == 404

    _run(body())
    _run(dispose_engines())


def test_order_routes_require_permissions(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_order(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                anonymous = await client.get(f"/orders/{ids['order']}")
                assert anonymous.status_code == 401

                read_only = _headers(app, "orders:read")
                forbidden = await client.patch(
                    f"/orders/{ids['order']}/status", json={"status": "PROCESSING"}, headers=read_only
                )
                assert forbidden.status_code == 403
                assert forbidden.json()["detail"] == "Missing permissions: orders:write"

    _run(body())
    _run(dispose_engines())


def test_status_transitions_are_recorded(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_order(app)
            headers = _headers(app, "orders:read", "orders:write")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                processing = await client.patch(
                    f"/orders/{ids['order']}/status",
                    json={"status": "PROCESSING", "notes": "Picked"},
                    headers=headers,
                )
                assert processing.status_code == 200
                assert processing.json()["status"] == "PROCESSING"

                repeated = await client.patch(
                    f"/orders/{ids['order']}/status", json={"status": "PROCESSING"}, headers=headers
                )
                assert repeated.status_code == 400
                assert repeated.json()["detail"] == "Order is already PROCESSING"

                delivered = await client.patch(
                    f"/orders/{ids['order']}/status", json={"status": "DELIVERED"}, headers=headers
                )
                assert delivered.json()["fulfillmentStatus"] == "FULFILLED"

                paid = await client.patch(
                    f"/orders/{ids['order']}/payment-status", json={"paymentStatus": "PAID"}, headers=headers
                )
                assert paid.json()["paymentStatus"] == "PAID"

                history = await client.get(f"/orders/{ids['order']}/history", headers=headers)
                transitions = [(entry["fromStatus"], entry["toStatus"]) for entry in history.json()]
                assert transitions == [
                    (None, "PENDING"),
                    ("PENDING", "PROCESSING"),
                    ("PROCESSING", "DELIVERED"),
                ]
                assert history.json()[1]["changedBy"] == "staff-1"
                assert history.json()[1]["notes"] == "Picked"

    _run(body())
    _run(dispose_engines())


def test_cancelling_releases_reserved_stock(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            ids = await _seed_order(app, reserved=2)
            headers = _headers(app, "orders:write")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                cancelled = await client.patch(
                    f"/orders/{ids['order']}/status", json={"status": "CANCELLED"}, headers=headers
                )
                assert cancelled.status_code == 200

                reopened = await client.patch(
                    f"/orders/{ids['order']}/status", json={"status": "PENDING"}, headers=headers
                )
                assert reopened.status_code == 400
                assert reopened.json()["detail"] == "Cannot change status of a cancelled order"

            async with app.state.session_factory() as session:
                inventory = await session.scalar(
                    select(Inventory).where(Inventory.product_variant_id == ids["variant"])
                )
                assert (inventory.reserved, inventory.available) == (0, 10)

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
