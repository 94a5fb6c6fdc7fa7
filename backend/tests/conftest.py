"""
Test configuration and fixtures for the KNY membership API tests.
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from kny_api.main import app
from kny_api.core.config import settings
from kny_api.core.security import get_password_hash, create_access_token
from kny_api.db.base import Base, enable_sqlite_foreign_keys, get_db
from kny_api.models.user import User, UserRole
from kny_api.models.event import Event, EventStatus
from kny_api.models.announcement import Announcement, AnnouncementPriority
from kny_api.models.donation import Donation, DonationMethod, DonationStatus

TEST_PASSWORD = "TestPass123"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep uploads in a temp dir and never talk to a real SMTP server."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "SMTP_HOST", None)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine."""
    # File-based SQLite: every aiosqlite connection to :memory: would see an empty DB
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Factory for users stored directly in the database."""
    async def _make_user(
        username: str,
        role: UserRole = UserRole.MEMBER,
        is_approved: bool = True,
        password: str = TEST_PASSWORD,
        **fields
    ) -> User:
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password_hash=get_password_hash(password),
            name=fields.pop("name", username.title()),
            age=fields.pop("age", 25),
            role=role,
            is_approved=is_approved,
            **fields
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin", role=UserRole.ADMIN, is_approved=True, name="Admin User")


@pytest_asyncio.fixture
async def member_user(make_user) -> User:
    return await make_user("member", name="Member User")


@pytest_asyncio.fixture
async def pending_user(make_user) -> User:
    return await make_user("pending", is_approved=False, name="Pending User")


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return auth_header(admin_user)


@pytest_asyncio.fixture
async def member_headers(member_user: User) -> dict:
    return auth_header(member_user)


@pytest_asyncio.fixture
async def pending_headers(pending_user: User) -> dict:
    return auth_header(pending_user)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, admin_user: User):
    """Factory for events created by the admin."""
    async def _make_event(
        title: str = "Community Clean-up",
        capacity: int = 0,
        status: EventStatus = EventStatus.UPCOMING,
        date: datetime = None,
    ) -> Event:
        event = Event(
            title=title,
            description="Bring gloves and water.",
            date=date or datetime.now(timezone.utc) + timedelta(days=7),
            location="Moncada Town Plaza",
            capacity=capacity,
            status=status,
            created_by_id=admin_user.id,
        )
        db_session.add(event)
        await db_session.flush()
        return event

    return _make_event


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    return await make_event()


@pytest_asyncio.fixture
async def test_announcement(db_session: AsyncSession, admin_user: User) -> Announcement:
    announcement = Announcement(
        title="General Assembly",
        content="All members are invited to the general assembly.",
        priority=AnnouncementPriority.HIGH,
        created_by_id=admin_user.id,
    )
    db_session.add(announcement)
    await db_session.flush()
    return announcement


@pytest_asyncio.fixture
async def test_donation(db_session: AsyncSession, admin_user: User) -> Donation:
    donation = Donation(
        donor_name="Juan Dela Cruz",
        amount=500,
        method=DonationMethod.GCASH,
        status=DonationStatus.COMPLETED,
        date=datetime(2024, 3, 1, 10, 0, 0),
        reference_number="GC-0001",
        created_by_id=admin_user.id,
    )
    db_session.add(donation)
    await db_session.flush()
    return donation
