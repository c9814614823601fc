"""Pytest configuration and shared fixtures."""

import os
from collections import Counter
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

# ruff: noqa: E402 - Imports must come after environment variable setup
from pairflix.db import Base, get_db
from pairflix.main import app
from pairflix.models import AppSetting
from pairflix.repositories import SettingsStore
from pairflix.services.audit_logger import AuditLogService
from pairflix.services.settings_resolver import SettingsResolver

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================
# Test Doubles
# ============================================


class FakeSettingsStore:
    """In-memory stand-in for SettingsStore that records every call."""

    def __init__(self):
        self.records: dict[str, AppSetting] = {}
        self.calls: Counter[str] = Counter()
        self.fail_on: set[str] = set()

    def seed(self, key: str, value: Any, category: str = "general", description: str | None = None):
        self.records[key] = AppSetting(
            key=key, value=value, category=category, description=description
        )

    def _record_call(self, operation: str):
        self.calls[operation] += 1
        if operation in self.fail_on:
            raise RuntimeError(f"store {operation} unavailable")

    async def find_all(self) -> list[AppSetting]:
        self._record_call("find_all")
        return list(self.records.values())

    async def find_by_key(self, key: str) -> AppSetting | None:
        self._record_call("find_by_key")
        return self.records.get(key)

    async def upsert(
        self,
        key: str,
        value: Any,
        category: str | None = None,
        description: str | None = None,
        default_category: str = "general",
    ) -> tuple[AppSetting, bool]:
        self._record_call("upsert")
        record = self.records.get(key)
        if record is None:
            record = AppSetting(
                key=key,
                value=value,
                category=category or default_category,
                description=description,
            )
            self.records[key] = record
            return record, True

        record.value = value
        if category:
            record.category = category
        if description:
            record.description = description
        return record, False

    async def create(
        self,
        key: str,
        value: Any,
        category: str = "general",
        description: str | None = None,
    ) -> AppSetting:
        self._record_call("create")
        record = AppSetting(key=key, value=value, category=category, description=description)
        self.records[key] = record
        return record

    async def delete(self, setting: AppSetting) -> None:
        self._record_call("delete")
        self.records.pop(setting.key, None)


class FakeClock:
    """Controllable clock returning timezone-aware datetimes."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


# ============================================
# Resolver Fixtures (unit level)
# ============================================


@pytest.fixture
def fake_store() -> FakeSettingsStore:
    """Settings store double with call counting and failure injection."""
    return FakeSettingsStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def env_vars() -> dict[str, str]:
    """Mutable environment map consulted by the resolver under test."""
    return {}


@pytest.fixture
def mock_audit():
    """Audit sink double with awaitable info/warn/error/debug."""
    audit = MagicMock(spec=AuditLogService)
    audit.info = AsyncMock(return_value=None)
    audit.warn = AsyncMock(return_value=None)
    audit.error = AsyncMock(return_value=None)
    audit.debug = AsyncMock(return_value=None)
    return audit


@pytest.fixture
def resolver(fake_store, mock_audit, env_vars, clock) -> SettingsResolver:
    """SettingsResolver wired to in-memory doubles."""
    return SettingsResolver(fake_store, mock_audit, env=env_vars.get, clock=clock)


# ============================================
# Database Fixtures
# ============================================


@pytest.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        await engine.dispose(close=True)


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def session_factory(session_maker):
    """Session factory in the shape services expect (like pairflix.db.db_session)."""

    @asynccontextmanager
    async def _session_factory() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    return _session_factory


@pytest.fixture
def audit_logger(session_factory) -> AuditLogService:
    return AuditLogService(session_factory, environment="test")


@pytest.fixture
def settings_store(session_factory) -> SettingsStore:
    return SettingsStore(session_factory)


@pytest.fixture
def db_resolver(settings_store, audit_logger, env_vars, clock) -> SettingsResolver:
    """SettingsResolver backed by the in-memory database."""
    return SettingsResolver(settings_store, audit_logger, env=env_vars.get, clock=clock)


# ============================================
# API Fixtures
# ============================================


@pytest.fixture
async def client(session_maker, audit_logger, db_resolver):
    """Create test client wired to the test database and services.

    The lifespan does not run under ASGITransport, so app state is set here.
    """

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.audit_logger = audit_logger
    app.state.settings_resolver = db_resolver

    test_client = AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", follow_redirects=True
    )

    try:
        yield test_client
    finally:
        await test_client.aclose()
        app.dependency_overrides.clear()
        app.state.audit_logger = None
        app.state.settings_resolver = None
