"""Integration-test fixtures.

Requires Docker (make up) + migrations (make migrate). Every test here is
skipped when PostgreSQL is unreachable.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.cr_common.database import async_session_factory, engine
from src.main import app


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if "tests/integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _require_database() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM rounds LIMIT 1"))
    except Exception as exc:
        pytest.skip(f"PostgreSQL with migrations not available: {exc}")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client that keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def clean_db() -> None:
    """Empty the game tables before a test."""
    async with async_session_factory() as db:
        await db.execute(text("TRUNCATE wagers, rounds, accounts"))
        await db.commit()
