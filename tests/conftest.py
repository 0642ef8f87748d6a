"""
Test configuration and fixtures for the Hiddo API.

Every test gets its own SQLite database file, a fresh per-email rate limiter
driven by a fake clock, and an email sender that records the codes it was
asked to deliver instead of sending anything.
"""

import os
import tempfile

from dotenv import load_dotenv

load_dotenv()

# Must be set before the app (and its settings) are imported.
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.mktemp(suffix='.db')}"
os.environ["FORCE_IN_MEMORY_RATE_LIMITER"] = "true"
os.environ["EMAIL_RELAY_URL"] = ""
os.environ["MAIL_USERNAME"] = ""
os.environ["MAIL_PASSWORD"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.features.auth.routes.auth import get_email_sender
from app.main import app
from app.middlewares.rate_limit import reset_memory_store
from app.platform.db.models import metadata
from app.platform.db.session import get_db
from app.platform.utils.rate_limit import RateLimiter, get_rate_limiter

AUTH = "/api/v1/auth"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class OutboxSender:
    """Stands in for the verification email sender."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.succeed = True

    def __call__(self, to_email: str, code: str) -> bool:
        self.sent.append((to_email, code))
        return self.succeed

    def last_code(self, email: str) -> str:
        for to_email, code in reversed(self.sent):
            if to_email == email:
                return code
        raise AssertionError(f"No code sent to {email}")


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def engine(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


@pytest.fixture
def outbox():
    return OutboxSender()


@pytest_asyncio.fixture
async def client(session_factory, limiter, outbox):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_email_sender] = lambda: outbox
    reset_memory_store()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
    reset_memory_store()


@pytest.fixture
def signup(client, outbox):
    """Run all four signup steps; returns the complete-account response data."""

    async def _signup(email, username, first_name="Ada", last_name="Lovelace"):
        res = await client.post(f"{AUTH}/signup-email", json={"email": email})
        assert res.status_code == 200, res.text

        res = await client.post(
            f"{AUTH}/verify-email", json={"email": email, "token": outbox.last_code(email)}
        )
        assert res.status_code == 200, res.text
        session = res.json()["data"]["verificationSession"]

        res = await client.post(
            f"{AUTH}/complete-profile",
            json={"firstName": first_name, "lastName": last_name, "verificationSession": session},
        )
        assert res.status_code == 200, res.text

        res = await client.post(
            f"{AUTH}/complete-account",
            json={"username": username, "verificationSession": session},
        )
        assert res.status_code == 201, res.text
        data = res.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
        return data

    return _signup


@pytest_asyncio.fixture
async def alice(signup):
    return await signup("alice@example.com", "alice")


@pytest_asyncio.fixture
async def bob(signup):
    return await signup("bob@example.com", "bob", "Bob", "Builder")


@pytest_asyncio.fixture
async def carol(signup):
    return await signup("carol@example.com", "carol", "Carol", "Danvers")
