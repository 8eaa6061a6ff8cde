"""Shared pytest fixtures: async test client, fake DB/Redis, in-memory ledger store."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from agroledger.auth.dependencies import get_current_user
from agroledger.auth.jwt import create_access_token
from agroledger.database import get_db
from agroledger.main import app
from agroledger.models.enums import UserRoleEnum
from agroledger.services.ledger import InventoryLedger
from tests.fakes import FakeAsyncSession, FakeRedis, InMemoryLedgerStore


def _user_stub(user_id: uuid.UUID, role: UserRoleEnum) -> SimpleNamespace:
    return SimpleNamespace(
        id=user_id,
        email=f"{role.value}@test.local",
        name="Test User",
        role=role,
        is_active=True,
    )


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
    """A lightweight async-session stub for dependency overrides in API tests."""
    return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.UUID("22222222-2222-2222-2222-222222222222")


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def ledger(ledger_store: InMemoryLedgerStore) -> InventoryLedger:
    return InventoryLedger(ledger_store, max_retries=5)


@asynccontextmanager
async def _test_client(overrides: dict[Any, Any]) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides.update(overrides)
    original_lifespan = app.router.lifespan_context
    app.state.redis = None

    @asynccontextmanager
    async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
        yield

    app.router.lifespan_context = noop_lifespan

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.router.lifespan_context = original_lifespan
        app.dependency_overrides.clear()
        app.state.redis = None


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession, owner_id: uuid.UUID) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with lifespan disabled, DB mocked and a farmer logged in."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    async def override_current_user() -> Any:
        return _user_stub(owner_id, UserRoleEnum.farmer)

    async with _test_client({get_db: override_get_db, get_current_user: override_current_user}) as test_client:
        yield test_client


@pytest.fixture
async def admin_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    async def override_current_user() -> Any:
        return _user_stub(uuid.uuid4(), UserRoleEnum.admin)

    async with _test_client({get_db: override_get_db, get_current_user: override_current_user}) as test_client:
        yield test_client


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with DB override only (real auth dependencies active)."""

    async def override_get_db() -> AsyncGenerator[Any, None]:
        yield fake_db_session

    async with _test_client({get_db: override_get_db}) as test_client:
        yield test_client


@pytest.fixture
def auth_user_id() -> uuid.UUID:
    return uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def access_token(auth_user_id: uuid.UUID) -> str:
    return create_access_token(str(auth_user_id), expires_minutes=30)
