import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopdesk.common import Base, ServiceSettings, create_engine, dispose_engines
from shopdesk.common.auth import create_access_token
from shopdesk.uploads_service.app.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _run(coro):
    return asyncio.run(coro)


async def _prepare_app(tmp_path) -> FastAPI:
    db_file = tmp_path / "uploads.db"
    database_url = f"sqlite+aiosqlite:///{db_file}"

    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = ServiceSettings(
        app_name="Uploads Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
        upload_dir=str(tmp_path / "files"),
    )
    return create_app(settings)


def _headers(app: FastAPI, user_id: str, *, role_id=None, role_name="Staff", permissions=("files:write",)):
    token = create_access_token(
        app.state.settings,
        user_id=user_id,
        role_id=role_id,
        role_name=role_name,
        permissions=permissions,
    )
    return {"Authorization": f"Bearer {token}"}


async def _upload(client: AsyncClient, headers, name: str, visibility: str, **form) -> dict:
    response = await client.post(
        "/uploads",
        files={"file": (name, PNG_BYTES, "image/png")},
        data={"type": "image", "visibility": visibility, **form},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_private_uploads_are_visible_to_owner_and_admins(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            alice = _headers(app, "alice")
            bob = _headers(app, "bob", role_id="editors")
            auditor = _headers(app, "carol", permissions=("media:view:all",))
            admin = _headers(app, "root", role_name="Admin", permissions=())
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                private = await _upload(client, alice, "private.png", "PRIVATE", tags="hero, banner")
                public = await _upload(client, alice, "public.png", "PUBLIC")

                own = await client.get(f"/uploads/media/{private['id']}", headers=alice)
                assert own.status_code == 200
                assert own.json()["tags"] == ["hero", "banner"]
                assert own.json()["uploadedById"] == "alice"

                denied = await client.get(f"/uploads/media/{private['id']}", headers=bob)
                assert denied.status_code == 403
                assert denied.json()["detail"] == "Access denied"
                assert (await client.get(f"/uploads/media/{public['id']}", headers=bob)).status_code == 200
                assert (await client.get(f"/uploads/media/{private['id']}", headers=admin)).status_code == 200

                params = {"sortBy": "originalName", "sortOrder": "asc"}
                bob_view = await client.get("/uploads/media", params=params, headers=bob)
                assert [item["originalName"] for item in bob_view.json()["data"]] == ["public.png"]

                auditor_view = await client.get("/uploads/media", params=params, headers=auditor)
                assert auditor_view.json()["total"] == 2

                searched = await client.get("/uploads/media", params={"search": "banner"}, headers=alice)
                assert [item["id"] for item in searched.json()["data"]] == [private["id"]]

                shared = await client.patch(
                    f"/uploads/media/{private['id']}",
                    json={"visibility": "ROLE_BASED", "allowedRoles": ["editors"]},
                    headers=alice,
                )
                assert shared.json()["allowedRoles"] == ["editors"]
                assert (await client.get(f"/uploads/media/{private['id']}", headers=bob)).status_code == 200

                not_owner = await client.patch(
                    f"/uploads/media/{public['id']}", json={"title": "Mine now"}, headers=bob
                )
                assert not_owner.status_code == 403

    _run(body())
    _run(dispose_engines())


def test_soft_delete_restore_and_purge(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            alice = _headers(app, "alice")
            admin = _headers(app, "root", role_name="Admin", permissions=())
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                upload = await _upload(client, alice, "hero.png", "PUBLIC")

                used = await client.post(
                    f"/uploads/media/{upload['id']}/usage",
                    json={"entity": "landing", "entityId": "hero-1"},
                    headers=alice,
                )
                assert used.status_code == 204

                removed = await client.delete(f"/uploads/media/{upload['id']}", headers=alice)
                assert removed.json() == {
                    "success": True,
                    "warning": "This file is currently used in 1 location(s). Deleting it may break references.",
                }
                assert (await client.get(f"/uploads/media/{upload['id']}", headers=alice)).status_code == 404

                not_admin = await client.get("/uploads/media/deleted", headers=alice)
                assert not_admin.status_code == 403
                deleted = await client.get("/uploads/media/deleted", headers=admin)
                assert [item["id"] for item in deleted.json()] == [upload["id"]]
                assert deleted.json()[0]["deletedById"] == "alice"

                restored = await client.post(f"/uploads/media/{upload['id']}/restore", headers=admin)
                assert restored.json()["deletedAt"] is None
                assert restored.json()["usedIn"] == {"landing": ["hero-1"]}

                again = await client.post(f"/uploads/media/{upload['id']}/restore", headers=admin)
                assert again.status_code == 403

                forbidden = await client.delete(f"/uploads/media/{upload['id']}/permanent", headers=alice)
                assert forbidden.status_code == 403
                purged = await client.delete(f"/uploads/media/{upload['id']}/permanent", headers=admin)
                assert purged.status_code == 204
                assert not (tmp_path / "files" / "images" / upload["filename"]).exists()

    _run(body())
    _run(dispose_engines())


def test_bulk_operations_skip_uploads_the_caller_cannot_edit(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            alice = _headers(app, "alice")
            bob = _headers(app, "bob")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                first = await _upload(client, alice, "a.png", "PRIVATE")
                second = await _upload(client, alice, "b.png", "PRIVATE")
                foreign = await _upload(client, bob, "c.png", "PUBLIC")
                ids = [first["id"], second["id"], foreign["id"]]

                visibility = await client.post(
                    "/uploads/media/bulk-visibility",
                    json={"ids": ids, "visibility": "PUBLIC"},
                    headers=alice,
                )
                assert visibility.json() == {"updated": 2}
                bob_view = await client.get("/uploads/media", headers=bob)
                assert bob_view.json()["total"] == 3

                deleted = await client.post("/uploads/media/bulk-delete", json={"ids": ids}, headers=alice)
                assert deleted.json() == {"deleted": 2}
                remaining = await client.get("/uploads/media", headers=bob)
                assert [item["id"] for item in remaining.json()["data"]] == [foreign["id"]]

                empty = await client.post("/uploads/media/bulk-delete", json={"ids": []}, headers=alice)
                assert empty.status_code == 422

    _run(body())
    _run(dispose_engines())


def test_upload_validation_and_permissions(tmp_path) -> None:
    app = _run(_prepare_app(tmp_path))

    async def body() -> None:
        async with lifespan(app):
            writer = _headers(app, "alice")
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                anonymous = await client.post("/uploads", files={"file": ("a.png", PNG_BYTES, "image/png")})
                assert anonymous.status_code == 401

                reader = _headers(app, "bob", permissions=())
                denied = await client.post(
                    "/uploads", files={"file": ("a.png", PNG_BYTES, "image/png")}, headers=reader
                )
                assert denied.status_code == 403

                bad_kind = await client.post(
                    "/uploads",
                    files={"file": ("a.png", PNG_BYTES, "image/png")},
                    data={"type": "video"},
                    headers=writer,
                )
                assert bad_kind.status_code == 400
                assert bad_kind.json()["detail"] == "Invalid file type: video"

                editor = await client.post(
                    "/uploads/editor-image", files={"file": ("inline.png", PNG_BYTES, "image/png")}, headers=writer
                )
                assert editor.status_code == 201
                record = await client.get(f"/uploads/media/{editor.json()['id']}", headers=writer)
                assert (record.json()["type"], record.json()["visibility"]) == ("EDITOR_IMAGE", "PUBLIC")

                no_delete = await client.delete(f"/uploads/image/{editor.json()['filename']}", headers=writer)
                assert no_delete.status_code == 403
                deleter = _headers(app, "alice", permissions=("files:delete",))
                removed = await client.delete(f"/uploads/image/{editor.json()['filename']}", headers=deleter)
                assert removed.status_code == 204

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
