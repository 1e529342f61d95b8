"""
Pytest fixtures for cutroom tests.

Store and service tests run against an in-memory SQLite database (aiosqlite).
A StaticPool keeps the single connection alive so every session sees the
same tables.
"""

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from cutroom.models.base import Base
from cutroom.models.database import make_engine, make_sessionmaker
from cutroom.schemas.identity import Identity, IdentityRole
from cutroom.schemas.project import Project
from cutroom.services.project_store import ProjectStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    test_engine = make_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    session_maker = make_sessionmaker(engine)
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(db) -> ProjectStore:
    return ProjectStore(db)



@pytest.fixture
def insert_raw(db):
    """Write a stored document as-is, bypassing the schema."""

    async def insert(project_id: str, owner_id: str, data: str) -> None:
        await db.execute(
            text(
                "INSERT INTO projects (id, owner_id, data, revision, created_at, updated_at) "
                "VALUES (:id, :owner_id, :data, 1, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)"
            ),
            {"id": project_id, "owner_id": owner_id, "data": data},
        )
        await db.commit()

    return insert

@pytest.fixture
def alice() -> Identity:
    """Verified account holder."""
    return Identity(
        id="alice@example.com",
        display_name="Alice",
        verified=True,
        role=IdentityRole.AUTHENTICATED,
        email="alice@example.com",
        subject_id="user_alice",
    )


@pytest.fixture
def bob() -> Identity:
    return Identity(
        id="bob@example.com",
        display_name="Bob",
        verified=True,
        role=IdentityRole.AUTHENTICATED,
        email="bob@example.com",
        subject_id="user_bob",
    )


@pytest.fixture
def guest() -> Identity:
    return Identity(id="guest-123", display_name="Guest", verified=False, role=IdentityRole.GUEST)


@pytest.fixture
def other_guest() -> Identity:
    return Identity(id="guest-456", display_name="Guest", verified=False, role=IdentityRole.GUEST)


def make_project(
    project_id: str = "p1",
    owner_id: str = "alice@example.com",
    team: list[dict] | None = None,
    comments: list[dict] | None = None,
    is_locked: bool = False,
    **extra,
) -> Project:
    """Project with one asset (a1) holding one version (v1)."""
    return Project.model_validate(
        {
            "id": project_id,
            "ownerId": owner_id,
            "team": team if team is not None else [],
            "assets": [
                {
                    "id": "a1",
                    "title": "Cut 1",
                    "thumbnail": "",
                    "currentVersionIndex": 0,
                    "versions": [
                        {
                            "id": "v1",
                            "versionNumber": 1,
                            "filename": "cut1.mp4",
                            "isLocked": is_locked,
                            "comments": comments if comments is not None else [],
                        }
                    ],
                }
            ],
            **extra,
        }
    )


@pytest.fixture
def project_factory():
    return make_project
