import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.common.auth import create_access_token
from shopdesk.landing_service.app.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "landing.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Landing Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
        upload_dir=str(tmp_path / "uploads"),
    )
    return create_app(settings)


def _headers(app: FastAPI) -> dict[str, str]:
    token = create_access_token(
        app.state.settings,
        user_id="editor-1",
        role_name="Editor",
        permissions=["landing:read", "landing:write"],
    )
    return {"Authorization": f"Bearer {token}"}


def _hero(link: str, link_type: str = "url") -> dict:
    return {
        "id": "hero-1",
        "type": "hero",
        "order": 1,
        "data": {
            "headline": "Spring sale",
            "subheadline": "Everything must go",
            "primaryCta": {"text": "Shop", "link": link, "linkType": link_type},
            "backgroundType": "solid",
            "textAlignment": "center",
            "height": "large",
        },
    }


def test_reset_creates_default_document(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                missing = await client.get("/landing")
                assert missing.status_code == 404
                assert missing.json()["detail"] == "Landing page content not found"

                reset = await client.post("/landing/reset", headers=headers)
                assert reset.status_code == 200
                document = reset.json()
                assert document["version"] == 1
                assert document["isActive"] is True
                assert [section["type"] for section in document["sections"]] == [
                    "hero",
                    "features",
                    "cta",
                    "footer",
                ]
                assert document["settings"]["seo"]["title"] == "Dashboard Application"

                public = await client.get("/landing")
                assert public.status_code == 200
                assert public.headers["cache-control"] == "public, max-age=300"
                assert public.json()["version"] == 1

                again = await client.post("/landing/reset", headers=headers)
                assert again.json()["version"] == 2

    _run(body())
    _run(dispose_engines())


def test_invalid_sections_are_never_persisted(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/landing/reset", headers=headers)

                unknown = await client.patch(
                    "/landing",
                    json={"sections": [{"id": "x-1", "type": "carousel", "data": {}}]},
                    headers=headers,
                )
                assert unknown.status_code == 400
                assert unknown.json()["detail"] == "Unknown section type: carousel"

                broken = _hero("/shop")
                del broken["data"]["headline"]
                invalid = await client.patch("/landing", json={"sections": [broken]}, headers=headers)
                assert invalid.status_code == 400
                assert invalid.json()["detail"].startswith("Validation failed for hero section")
                assert invalid.json()["errors"]

                bad_url = await client.patch(
                    "/landing", json={"sections": [_hero("not a url")]}, headers=headers
                )
                assert bad_url.status_code == 400
                assert bad_url.json()["detail"] == "Invalid URL format: not a url"

                bad_type = await client.patch(
                    "/landing", json={"sections": [_hero("/shop", "email")]}, headers=headers
                )
                assert bad_type.json()["detail"] == "Invalid link type: email"

                admin = await client.get("/landing/admin", headers=headers)
                assert admin.json()["version"] == 1
                assert len(admin.json()["sections"]) == 4

    _run(body())
    _run(dispose_engines())


def test_update_invalidates_public_cache(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/landing/reset", headers=headers)
                before = await client.get("/landing")
                assert before.json()["version"] == 1

                page = await client.post(
                    "/landing/pages", json={"title": "Sale", "slug": "sale", "status": "PUBLISHED"}, headers=headers
                )
                assert page.status_code == 201
                page_id = page.json()["id"]

                missing_page = await client.patch(
                    "/landing", json={"sections": [_hero("no-such-page", "page")]}, headers=headers
                )
                assert missing_page.status_code == 400
                assert missing_page.json()["detail"] == "Page not found with ID: no-such-page"

                updated = await client.patch(
                    "/landing", json={"sections": [_hero(page_id, "page")]}, headers=headers
                )
                assert updated.status_code == 200
                assert updated.json()["version"] == 2

                after = await client.get("/landing")
                assert after.json()["version"] == 2
                assert [section["id"] for section in after.json()["sections"]] == ["hero-1"]
                assert after.json()["sections"][0]["data"]["primaryCta"]["link"] == page_id

                pages = await client.get("/landing/pages", headers=headers)
                assert [p["slug"] for p in pages.json()] == ["sale"]

                duplicate = await client.post(
                    "/landing/pages", json={"title": "Sale again", "slug": "sale"}, headers=headers
                )
                assert duplicate.status_code == 409

    _run(body())
    _run(dispose_engines())


def test_branding_and_settings(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/landing/reset", headers=headers)

                synced = await client.post(
                    "/landing/sync-branding",
                    json={"brandName": "Acme Goods", "socialLinks": {"twitter": "https://x.com/acme", "github": ""}},
                    headers=headers,
                )
                assert synced.json() == {"message": "Branding synced successfully"}

                document = (await client.get("/landing")).json()
                footer = next(section for section in document["sections"] if section["type"] == "footer")
                assert footer["data"]["companyName"] == "Acme Goods"
                assert footer["data"]["copyright"].endswith("Acme Goods. All rights reserved.")
                assert footer["data"]["socialLinks"] == [
                    {"platform": "twitter", "url": "https://x.com/acme", "icon": "twitter"}
                ]
                assert document["settings"]["seo"]["title"] == "Acme Goods"

                applied = await client.post(
                    "/landing/apply-branding-all", json={"brandName": "Acme"}, headers=headers
                )
                assert applied.json()["updated"] == 1

                merged = await client.patch(
                    "/landing/settings", json={"seo": {"description": "Goods"}, "analytics": {"id": "G-1"}}, headers=headers
                )
                assert merged.status_code == 200
                assert merged.json()["seo"]["title"] == "Acme"
                assert merged.json()["seo"]["description"] == "Goods"
                assert merged.json()["analytics"] == {"id": "G-1"}

                public_settings = await client.get("/landing/settings")
                assert public_settings.json()["analytics"] == {"id": "G-1"}

    _run(body())
    _run(dispose_engines())


def test_section_image_upload(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            headers = _headers(app)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                uploaded = await client.post(
                    "/landing/section-image",
                    files={"file": ("hero.png", PNG_BYTES, "image/png")},
                    headers=headers,
                )
                assert uploaded.status_code == 201
                payload = uploaded.json()
                assert payload["url"].startswith("/uploads/images/")
                assert payload["mimetype"] == "image/png"
                assert payload["size"] == len(PNG_BYTES)
                assert (Path(tmp_path) / "uploads" / "images" / payload["filename"]).exists()

                rejected = await client.post(
                    "/landing/section-image",
                    files={"file": ("notes.txt", b"hello", "text/plain")},
                    headers=headers,
                )
                assert rejected.status_code == 400
                assert rejected.json()["detail"].startswith("File type text/plain is not allowed")

                empty = await client.post("/landing/section-image", headers=headers)
                assert empty.status_code == 400
                assert empty.json()["detail"] == "No file provided"

    _run(body())
    _run(dispose_engines())


def test_landing_writes_require_permissions(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                anonymous = await client.post("/landing/reset")
                assert anonymous.status_code == 401

                token = create_access_token(
                    app.state.settings, user_id="viewer", role_name="Viewer", permissions=["landing:read"]
                )
                viewer = {"Authorization": f"Bearer {token}"}
                denied = await client.patch("/landing", json={"sections": []}, headers=viewer)
                assert denied.status_code == 403
                assert denied.json()["detail"] == "Missing permissions: landing:write"

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
