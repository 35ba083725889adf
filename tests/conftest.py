"""Pytest configuration for the console test suite."""

import asyncio
import os
import tempfile
from collections.abc import AsyncGenerator, Callable, Generator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel


def _ensure_test_env() -> None:
    """Seed required environment variables before the app is imported."""
    os.environ.setdefault(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{tempfile.gettempdir()}/console-test.db"
    )
    os.environ.setdefault("TRUST_PROXY", "true")
    os.environ.setdefault("ADMIN_EMAILS", "")
    os.environ.setdefault("EMAIL_API_URL", "")
    os.environ.setdefault("SESSION_COOKIE_SECURE", "false")


_ensure_test_env()

from app.core.database import get_session  # noqa: E402
import app.models  # noqa: E402,F401

ADMIN_EMAIL = "ops@example.com"
ADMIN_ADDRESS = "10.0.0.1"


async def _create_all(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@pytest_asyncio.fixture()
async def session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Async session bound to a fresh sqlite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/console.db", poolclass=NullPool)
    await _create_all(engine)
    factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    async with factory() as db:
        yield db
    await engine.dispose()


@pytest.fixture()
def session_factory(tmp_path) -> Generator[async_sessionmaker, None, None]:
    """Session factory for synchronous API tests; each call runs on its own loop."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/api.db", poolclass=NullPool)
    asyncio.run(_create_all(engine))
    yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    asyncio.run(engine.dispose())


@pytest.fixture()
def run_db(session_factory) -> Callable:
    """Run ``fn(session)`` against the API test database and return its result."""

    def run(fn):
        async def go():
            async with session_factory() as db:
                return await fn(db)

        return asyncio.run(go())

    return run


@pytest.fixture()
def outbox(monkeypatch) -> dict:
    """Capture issued verification codes instead of delivering them."""
    sent: dict = {}

    async def fake_send(email: str, code: str) -> bool:
        sent.setdefault(email, []).append(code)
        return True

    monkeypatch.setattr("app.handlers.sessions.send_verification_code", fake_send)
    return sent


@pytest.fixture()
def client(session_factory, outbox):
    """TestClient with the session dependency pointed at the test database."""
    from fastapi.testclient import TestClient
    from main import app

    async def override_session():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def login(client, outbox) -> Callable:
    """Log in through the API and return the headers that pin the address."""

    def _login(email: str = ADMIN_EMAIL, address: str = ADMIN_ADDRESS) -> dict:
        headers = {"X-Forwarded-For": address}
        response = client.post("/auth/code", json={"email": email}, headers=headers)
        assert response.status_code == 200
        response = client.post(
            "/auth/login",
            json={"email": email, "code": outbox[email][-1]},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        return headers

    return _login
