import asyncio
from datetime import datetime, timezone

from shopdesk.landing_service.app.cache import LandingCache
from shopdesk.landing_service.app.models import LandingPageContent
from shopdesk.landing_service.app.schemas import BrandingPayload, LandingContentUpdate
from shopdesk.landing_service.app.services import LandingService


class RecordingRepository:
    """Holds one landing row in memory and logs save/commit calls."""

    def __init__(self, events: list[str], row: LandingPageContent | None = None) -> None:
        self.events = events
        self.row = row

    async def get_active(self) -> LandingPageContent | None:
        return self.row

    async def list_all(self) -> list[LandingPageContent]:
        return [self.row] if self.row is not None else []

    async def create_content(self, *, sections, settings) -> LandingPageContent:
        self.row = _row(sections=sections, settings=settings)
        return self.row

    async def save(self, content: LandingPageContent) -> LandingPageContent:
        self.events.append("save")
        return content

    async def commit(self) -> None:
        self.events.append("commit")


class RecordingCache(LandingCache):
    def __init__(self, events: list[str]) -> None:
        super().__init__(300)
        self.events = events

    def invalidate(self) -> None:
        self.events.append("invalidate")
        super().invalidate()


def _row(**fields) -> LandingPageContent:
    now = datetime.now(timezone.utc)
    values = {"id": 1, "sections": [], "settings": {}, "version": 1, "is_active": True}
    values.update(fields)
    return LandingPageContent(created_at=now, updated_at=now, **values)


def _service(row: LandingPageContent | None = None) -> tuple[LandingService, list[str]]:
    events: list[str] = []
    return LandingService(RecordingRepository(events, row), RecordingCache(events)), events


def test_update_commits_before_dropping_cache() -> None:
    service, events = _service(_row())

    document = asyncio.run(service.update_content(LandingContentUpdate(settings={"theme": "dark"})))

    assert document.version == 2
    assert document.settings == {"theme": "dark"}
    assert events == ["save", "commit", "invalidate"]


def test_reset_without_content_commits_before_dropping_cache() -> None:
    service, events = _service()

    document = asyncio.run(service.reset_to_defaults())

    assert document.version == 1
    assert events == ["save", "commit", "invalidate"]


def test_branding_for_all_documents_commits_once_before_dropping_cache() -> None:
    service, events = _service(_row())

    updated = asyncio.run(service.apply_branding_to_all(BrandingPayload(brandName="Lumen")))

    assert updated == 1
    assert events == ["save", "commit", "invalidate"]
