"""
Test fixtures.

- In-memory SQLite (aiosqlite) with the real models
- Content store in a temporary directory
- In-process fakes for the document service, notification channel and search indexer
"""
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import webstrate_assets.models  # noqa: F401
from webstrate_assets.config import Settings
from webstrate_assets.context import AssetContext
from webstrate_assets.database import Base
from webstrate_assets.exceptions import NotFoundError
from webstrate_assets.services.asset_service import AssetService, IncomingFile
from webstrate_assets.utils.storage import ContentStore


class FakeDocuments:
    """Document service double: versions, tags and writers are plain dicts."""

    def __init__(self):
        self.versions: dict[str, int] = {}
        self.tags: dict[tuple[str, str], int] = {}
        self.readonly: set[str] = set()

    async def get_current_version(self, webstrate_id: str) -> int:
        return self.versions.get(webstrate_id, 1)

    async def resolve_tag(self, webstrate_id: str, tag: str) -> int:
        try:
            return self.tags[(webstrate_id, tag)]
        except KeyError:
            raise NotFoundError(f"Tag '{tag}' not found.") from None

    async def can_write(self, user_id: str, webstrate_id: str) -> bool:
        return webstrate_id not in self.readonly


class FakeNotifier:
    def __init__(self):
        self.announcements: list[tuple[str, dict]] = []

    def announce(self, webstrate_id: str, asset: dict) -> None:
        self.announcements.append((webstrate_id, asset))


class FakeIndexer:
    def __init__(self):
        self.indexed: list[tuple[int, str]] = []
        self.dropped: list[int] = []
        self.fail = False

    async def index_csv(self, record_id: int, blob_path: str) -> None:
        if self.fail:
            raise httpx.ConnectError("search service down")
        self.indexed.append((record_id, blob_path))

    async def delete_index(self, record_id: int) -> bool:
        self.dropped.append(record_id)
        return True


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    async with session_maker() as session:
        yield session


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def context(upload_dir: Path) -> AssetContext:
    settings = Settings(_env_file=None, upload_dir=str(upload_dir), max_asset_size=1)
    return AssetContext(
        settings=settings,
        storage=ContentStore(upload_dir, settings.hash_algorithm),
        documents=FakeDocuments(),
        notifier=FakeNotifier(),
        indexer=FakeIndexer(),
    )


@pytest.fixture
def service(db_session: AsyncSession, context: AssetContext) -> AssetService:
    return AssetService(db_session, context)


@pytest.fixture
def upload(service: AssetService):
    """Upload a single file through the service and return its summary."""

    async def _upload(
        webstrate_id: str,
        name: str,
        content: bytes,
        mime_type: str = "image/png",
        searchable: list[str] | None = None,
    ):
        summaries = await service.upload_assets(
            webstrate_id,
            [IncomingFile(original_name=name, content=content, mime_type=mime_type)],
            searchable,
            source="tester (127.0.0.1)",
        )
        return summaries[0]

    return _upload
