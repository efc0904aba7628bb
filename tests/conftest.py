"""Pytest configuration and fixtures."""

import os

# Must be set before the application settings are first imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bugtracker.core.security import create_access_token, hash_password
from bugtracker.database import Base, get_db
from bugtracker.main import app
from bugtracker.models.bug import Bug, BugCategory, BugPriority, BugSeverity, BugStatus
from bugtracker.models.comment import Comment
from bugtracker.models.user import User, UserRole
from bugtracker.redis import get_redis

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PASSWORDS = {
    UserRole.ADMIN: "AdminPass123!",
    UserRole.DEVELOPER: "DevPass123!",
    UserRole.TESTER: "TestPass123!",
    UserRole.REPORTER: "ReportPass123!",
}


@pytest_asyncio.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    mock = AsyncMock()
    mock.ping = AsyncMock(return_value=True)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.exists = AsyncMock(return_value=0)
    mock.hset = AsyncMock(return_value=1)
    mock.hgetall = AsyncMock(return_value={})
    mock.expire = AsyncMock(return_value=True)
    mock.sadd = AsyncMock(return_value=1)
    mock.srem = AsyncMock(return_value=1)
    mock.smembers = AsyncMock(return_value=set())
    mock.time = AsyncMock(return_value=(1704067200, 0))
    mock.zrange = AsyncMock(return_value=[])

    pipeline_mock = MagicMock()
    pipeline_mock.execute = AsyncMock(return_value=[0, 0, 1, True])
    mock.pipeline = MagicMock(return_value=pipeline_mock)

    return mock


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, mock_redis) -> AsyncGenerator[AsyncClient, None]:
    """Async client talking to the app in-process."""

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(
    db_session: AsyncSession,
    role: UserRole,
    email: str,
    name: str,
    is_active: bool = True,
) -> User:
    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email,
        password_hash=hash_password(PASSWORDS[role]),
        role=role,
        is_active=is_active,
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.ADMIN, "admin@example.com", "Admin User")


@pytest_asyncio.fixture
async def developer(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.DEVELOPER, "dev@example.com", "Dana Developer")


@pytest_asyncio.fixture
async def other_developer(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.DEVELOPER, "dev2@example.com", "Devon Second")


@pytest_asyncio.fixture
async def tester(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.TESTER, "tester@example.com", "Tara Tester")


@pytest_asyncio.fixture
async def reporter(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.REPORTER, "reporter@example.com", "Riley Reporter")


@pytest_asyncio.fixture
async def other_reporter(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.REPORTER, "reporter2@example.com", "Robin Other")


@pytest.fixture
def users_by_role(admin: User, developer: User, tester: User, reporter: User) -> dict[str, User]:
    """One user per role, keyed by role name for parametrized tests."""
    return {
        "admin": admin,
        "developer": developer,
        "tester": tester,
        "reporter": reporter,
    }


@pytest.fixture
def make_bug(db_session: AsyncSession):
    """Factory that inserts a bug and returns it with relationships loaded."""
    counter = {"n": 0}

    async def _make_bug(
        reporter: User,
        assignee: Optional[User] = None,
        title: str = "Save button does nothing",
        status: BugStatus = BugStatus.OPEN,
        priority: BugPriority = BugPriority.MEDIUM,
        category: BugCategory = BugCategory.OTHER,
        severity: BugSeverity = BugSeverity.MINOR,
        **kwargs,
    ) -> Bug:
        counter["n"] += 1
        created_at = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"])
        bug = Bug(
            id=uuid.uuid4(),
            title=title,
            description="Clicking save on the settings page has no effect",
            status=status,
            priority=priority,
            category=category,
            severity=severity,
            reported_by_id=reporter.id,
            assigned_to_id=assignee.id if assignee else None,
            created_at=created_at,
            updated_at=created_at,
            **kwargs,
        )
        db_session.add(bug)
        await db_session.commit()

        result = await db_session.execute(
            select(Bug).where(Bug.id == bug.id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    return _make_bug


@pytest.fixture
def make_comment(db_session: AsyncSession):
    """Factory that inserts a comment on a bug."""

    async def _make_comment(bug: Bug, author: User, content: str = "I can reproduce this") -> Comment:
        now = datetime.now(timezone.utc)
        comment = Comment(
            id=uuid.uuid4(),
            content=content,
            bug_id=bug.id,
            author_id=author.id,
            created_at=now,
            updated_at=now,
        )
        db_session.add(comment)
        await db_session.commit()
        await db_session.refresh(comment)
        return comment

    return _make_comment


def token_for(user: User) -> str:
    """Create an access token for a user."""
    return create_access_token(
        user_id=str(user.id),
        role=user.role,
        session_id=str(uuid.uuid4()),
    )


def auth_header(user: User) -> dict[str, str]:
    """Create an authorization header for a user."""
    return {"Authorization": f"Bearer {token_for(user)}"}
