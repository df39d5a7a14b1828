"""Pytest configuration and fixtures."""

import asyncio
import os
import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set config BEFORE importing application modules
_test_tmp_dir = tempfile.mkdtemp(prefix="classvault_test_")
os.environ["CLASSVAULT_CONFIG_PATH"] = _test_tmp_dir
os.environ["CLASSVAULT_JWT_SECRET"] = "test-secret"
os.environ.pop("CLASSVAULT_GOOGLE_SERVICE_ACCOUNT_EMAIL", None)
os.environ.pop("CLASSVAULT_GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY", None)

from classvault.api.deps import get_mount_expander  # noqa: E402
from classvault.core.security import create_access_token  # noqa: E402
from classvault.db import get_db  # noqa: E402
from classvault.db.base import Base  # noqa: E402
from classvault.db.models import UserRole  # noqa: E402
from classvault.main import app  # noqa: E402
from classvault.services.classification import FOLDER_MIME_TYPE  # noqa: E402
from classvault.services.drive_client import DriveFile, DriveNotFoundError  # noqa: E402
from classvault.services.resources import MountExpander  # noqa: E402

PDF = "application/pdf"
GDOC = "application/vnd.google-apps.document"
JPEG = "image/jpeg"
MP3 = "audio/mpeg"


class FakeDrive:
    """In-memory stand-in for DriveClient.

    Children keep insertion order, and a node may be linked under several
    parents (including its own descendants) to model shortcuts.
    """

    service_account_email = "reader@classvault-test.iam.gserviceaccount.com"

    def __init__(self):
        self.nodes: dict[str, DriveFile] = {}
        self.children: dict[str, list[str]] = {}
        self.errors: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, str]] = []

    def add_folder(self, folder_id: str, name: str | None = None, parent: str | None = None) -> str:
        self.nodes[folder_id] = DriveFile(
            id=folder_id,
            name=name or folder_id,
            mime_type=FOLDER_MIME_TYPE,
            web_view_link=f"https://drive.google.com/drive/folders/{folder_id}",
        )
        self.children.setdefault(folder_id, [])
        if parent:
            self.link(folder_id, parent)
        return folder_id

    def add_file(
        self, file_id: str, parent: str, name: str | None = None, mime_type: str = PDF
    ) -> str:
        self.nodes[file_id] = DriveFile(
            id=file_id,
            name=name or f"{file_id}.pdf",
            mime_type=mime_type,
            web_view_link=f"https://drive.google.com/file/d/{file_id}/view",
        )
        self.link(file_id, parent)
        return file_id

    def link(self, child_id: str, parent_id: str) -> None:
        self.children.setdefault(parent_id, []).append(child_id)

    def fail(self, node_id: str, error: Exception) -> None:
        self.errors[node_id] = error

    async def _maybe_fail(self, node_id: str) -> None:
        if node_id in self.delays:
            await asyncio.sleep(self.delays[node_id])
        if node_id in self.errors:
            raise self.errors[node_id]

    async def get_node(self, file_id: str) -> DriveFile:
        self.calls.append(("get_node", file_id))
        await self._maybe_fail(file_id)
        if file_id not in self.nodes:
            raise DriveNotFoundError(f"Drive item {file_id} not found")
        return self.nodes[file_id]

    async def get_children(self, folder_id: str) -> list[DriveFile]:
        self.calls.append(("get_children", folder_id))
        await self._maybe_fail(folder_id)
        return [self.nodes[child] for child in self.children.get(folder_id, [])]


@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def expander(fake_drive: FakeDrive) -> MountExpander:
    return MountExpander(fake_drive, max_depth=10, max_nodes=500, mount_timeout=2.0)


@pytest.fixture
async def db_engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(db_engine, expander):
    """Create a test client with overridden database and Drive dependencies."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mount_expander] = lambda: expander

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    token = create_access_token("admin-1", UserRole.ADMIN, email="admin@school.test")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers() -> dict[str, str]:
    token = create_access_token("student-42", UserRole.STUDENT, class_name="5")
    return {"Authorization": f"Bearer {token}"}


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp directories after test session."""
    import shutil
    if Path(_test_tmp_dir).exists():
        shutil.rmtree(_test_tmp_dir, ignore_errors=True)
