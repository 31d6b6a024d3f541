"""
Global test fixtures and configuration.

This module provides base fixtures for all tests:
- In-memory SQLite database, fresh for every test
- Redis client (in-memory fake)
- Capturing notification gateway ("outbox")
- HTTP client with dependency overrides
- Base data fixtures (account, pending_account, auth_headers)
"""

import os
from typing import AsyncGenerator, List, Optional

import pytest
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables BEFORE importing app
os.environ["MODE"] = "test"
os.environ["JWT_SECRET"] = "test-secret-key-for-unimart"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["NOTIFICATION_BACKEND"] = "console"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["SENTRY_DSN"] = ""

from unimart.main import app  # noqa: E402
from unimart.api.dependencies import get_db, get_notification_gateway, get_redis  # noqa: E402
from unimart.core.errors import DeliveryFailure  # noqa: E402
from unimart.core.otp import OtpTrigger  # noqa: E402
from unimart.core.security import SessionIssuer  # noqa: E402
from unimart.db.base import Base  # noqa: E402
from unimart.services.notifications import NotificationGateway  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class OutboxGateway(NotificationGateway):
    """Notification gateway that records codes instead of mailing them."""

    def __init__(self):
        self.sent: List[dict] = []
        self.fail = False

    async def send_otp(self, email: str, code: str, trigger: OtpTrigger) -> None:
        if self.fail:
            raise DeliveryFailure()
        self.sent.append({"email": email, "code": code, "trigger": trigger})

    def last_code(self, email: Optional[str] = None) -> str:
        messages = [m for m in self.sent if email is None or m["email"] == email]
        assert messages, f"no OTP was sent to {email or 'anyone'}"
        return messages[-1]["code"]


# ==================== Database ====================

@pytest.fixture
async def test_engine():
    """
    Create a private in-memory database for one test.

    StaticPool keeps a single connection so every session sees the same data.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False  # Set to True for SQL debugging
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session shared by the test body and the app under test.

    Objects loaded here are the same instances the service mutates; call
    ``await db_session.refresh(obj)`` after a request that may have rolled back.
    """
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ==================== Redis ====================

@pytest.fixture
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    redis = FakeAsyncRedis()
    yield redis
    await redis.flushall()
    await redis.aclose()


# ==================== Notifications ====================

@pytest.fixture
def outbox() -> OutboxGateway:
    return OutboxGateway()


# ==================== Sessions ====================

@pytest.fixture
def session_issuer() -> SessionIssuer:
    return app.state.session_issuer


# ==================== FastAPI Client ====================

@pytest.fixture
async def client(
    db_session: AsyncSession,
    redis_client: FakeAsyncRedis,
    outbox: OutboxGateway
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create HTTP client for testing FastAPI endpoints.

    Overrides get_db, get_redis and the notification gateway.
    """

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_notification_gateway] = lambda: outbox

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== Base Data Fixtures ====================

@pytest.fixture
async def account(db_session: AsyncSession):
    """
    Verified account with password "Password123!".
    """
    from tests.factories.account import AccountFactory
    account = await AccountFactory.create_async(
        db_session,
        email="student@u.edu",
        full_name="Student User"
    )
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest.fixture
async def pending_account(db_session: AsyncSession):
    """
    Unverified account holding the code "123456" for another 10 minutes.
    """
    from tests.factories.account import AccountFactory
    account = await AccountFactory.create_pending_async(
        db_session,
        email="pending@u.edu",
        otp="123456"
    )
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest.fixture
def auth_headers(account, session_issuer: SessionIssuer):
    """
    Generate authentication headers for the verified account.
    """
    token = session_issuer.issue(account.id)
    return {"Authorization": f"Bearer {token}"}
