"""
Pytest configuration and fixtures for testing.
"""
import fnmatch
import os

# Settings are read at import time, so the environment is prepared first
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./eventease_test.db")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from datetime import timedelta
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import update
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.session import Base, get_session, enable_sqlite_foreign_keys
from app.core.clock import today
from app.core.rate_limit import limiter
from app.core.security import hash_password, create_access_token
from app.db.models import User, RoleEnum, Event, Category, Registration
from app.cache.redis_client import cache
from app.events import publisher

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)
enable_sqlite_foreign_keys(test_engine)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

PASSWORD = "Test123!@#"


def token_for(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role.value})


@pytest.fixture
def make_token():
    """Access token for any user: ``make_token(user)``."""
    return token_for


@pytest.fixture
def is_sqlite() -> bool:
    return test_engine.dialect.name == "sqlite"


@pytest.fixture
def session_factory():
    """Independent sessions, for tests that need several concurrent transactions."""
    return TestSessionLocal


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh schema and session for each test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client bound to the app, sharing the test session.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(session: AsyncSession, name: str, email: str, role: RoleEnum) -> User:
    user = User(name=name, email=email, hashed_password=hash_password(PASSWORD), role=role)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def attendee(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Amina Attendee", "amina@example.com", RoleEnum.attendee)


@pytest_asyncio.fixture
async def other_attendee(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Brian Attendee", "brian@example.com", RoleEnum.attendee)


@pytest_asyncio.fixture
async def third_attendee(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Chloe Attendee", "chloe@example.com", RoleEnum.attendee)


@pytest_asyncio.fixture
async def organizer(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Olivia Organizer", "olivia@example.com", RoleEnum.organizer)


@pytest_asyncio.fixture
async def other_organizer(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Oscar Organizer", "oscar@example.com", RoleEnum.organizer)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Ada Admin", "ada@example.com", RoleEnum.admin)


@pytest.fixture
def attendee_token(attendee: User) -> str:
    return token_for(attendee)


@pytest.fixture
def organizer_token(organizer: User) -> str:
    return token_for(organizer)


@pytest.fixture
def admin_token(admin: User) -> str:
    return token_for(admin)


@pytest_asyncio.fixture
async def category(db_session: AsyncSession) -> Category:
    cat = Category(name="Technology", description="Tech meetups and conferences")
    db_session.add(cat)
    await db_session.commit()
    return cat


async def _make_event(session: AsyncSession, organizer: User, days_from_now: int = 7, max_attendees: int = 50, **extra) -> Event:
    event = Event(
        title=extra.pop("title", "Nairobi Python Meetup"),
        description=extra.pop("description", "Monthly community meetup"),
        location=extra.pop("location", "iHub, Nairobi"),
        date=today() + timedelta(days=days_from_now),
        max_attendees=max_attendees,
        registered_count=0,
        organizer_id=organizer.id,
        **extra,
    )
    session.add(event)
    await session.commit()
    return event


async def _make_registration(session: AsyncSession, event: Event, user: User) -> Registration:
    """Seat a user directly, keeping the event's counter in step."""
    registration = Registration(event_id=event.id, user_id=user.id)
    session.add(registration)
    await session.execute(
        update(Event)
        .where(Event.id == event.id)
        .values(registered_count=Event.registered_count + 1)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return registration


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Factory: ``await make_event(organizer, days_from_now=..., max_attendees=...)``."""
    async def factory(organizer: User, **kwargs) -> Event:
        return await _make_event(db_session, organizer, **kwargs)
    return factory


@pytest.fixture
def make_registration(db_session: AsyncSession):
    async def factory(event: Event, user: User) -> Registration:
        return await _make_registration(db_session, event, user)
    return factory


@pytest_asyncio.fixture
async def event(db_session: AsyncSession, organizer: User) -> Event:
    return await _make_event(db_session, organizer)


@pytest_asyncio.fixture
async def small_event(db_session: AsyncSession, organizer: User) -> Event:
    return await _make_event(db_session, organizer, title="Rooftop Workshop", max_attendees=2)


@pytest_asyncio.fixture
async def past_event(db_session: AsyncSession, organizer: User) -> Event:
    return await _make_event(db_session, organizer, days_from_now=-3, title="Last Week's Hackathon")


class InMemoryRedis:
    """The subset of the redis.asyncio client the cache wrapper awaits."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def aclose(self):
        pass


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Back the cache with an in-memory client so tests do not need a Redis server."""
    client = InMemoryRedis()
    monkeypatch.setattr(cache, "_client", client)
    return client


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Replace bcrypt with a cheap reversible scheme; hashing cost dominates test time otherwise.
    """
    class MockPasswordContext:
        def hash(self, password: str) -> str:
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            return hashed == f"$2b$12$mockedhash{plain}"

    from app.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """Disable rate limiting for all tests."""
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture(autouse=True)
def published(monkeypatch) -> list:
    """Capture broker messages instead of talking to RabbitMQ."""
    messages = []

    async def fake_publish(routing_key: str, payload: dict) -> bool:
        messages.append((routing_key, payload))
        return True

    monkeypatch.setattr(publisher, "publish_event", fake_publish)
    return messages
