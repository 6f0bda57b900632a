# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

os.environ.setdefault("SECRET_KEY", "queue-tests-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./qsys-unused.db")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from qsys.core.security import ROLE_ADMIN, ROLE_STAFF, create_access_token  # noqa: E402
from qsys.db.session import (  # noqa: E402
    build_engine,
    build_session_factory,
    create_tables,
    get_session_factory,
)
from qsys.main import app as fastapi_app  # noqa: E402
from qsys.scripts.init_db import upsert_branch  # noqa: E402
from qsys.services.background import DeferredTasks  # noqa: E402
from qsys.services.branch_resolver import ResolvedBranch  # noqa: E402
from qsys.services.queue_service import QueueService  # noqa: E402
from qsys.services.registration import RegistrationResult  # noqa: E402

BRANCH_CODE = "YL-MOA"
BRANCH_NAME = "Yakiniku Like MOA"
BRANCH_SLUG = "moa"


@pytest_asyncio.fixture()
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """A fresh file-backed database per test; NullPool keeps transactions on real connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}", poolclass=NullPool)
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture()
async def branch(session_factory: async_sessionmaker[AsyncSession]) -> ResolvedBranch:
    """The default branch, stored under its canonical code."""
    return await upsert_branch(session_factory, BRANCH_CODE, BRANCH_NAME, BRANCH_SLUG)


@pytest.fixture()
def service(session_factory: async_sessionmaker[AsyncSession]) -> QueueService:
    return QueueService(session_factory)


@pytest.fixture()
def tasks() -> DeferredTasks:
    return DeferredTasks()


async def register(
    service: QueueService,
    tasks: DeferredTasks,
    *,
    name: str = "Guest",
    pax: int = 2,
    priority_class: str | None = None,
    branch_param: str = BRANCH_CODE,
) -> RegistrationResult:
    """Register one party and run its follow-ups."""
    result = await service.register(
        tasks, branch_param, name, pax, priority_class=priority_class
    )
    await tasks.run()
    return result


@pytest.fixture()
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_factory(
    app: FastAPI, session_factory: async_sessionmaker[AsyncSession]
) -> Iterator[None]:
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_session_factory, None)


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def staff_headers() -> dict[str, str]:
    """Authorization headers for staff of the default branch."""
    token = create_access_token("staff-moa", role=ROLE_STAFF, branches=[BRANCH_CODE])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_staff_headers() -> dict[str, str]:
    """Authorization headers for staff of a different branch."""
    token = create_access_token("staff-bgc", role=ROLE_STAFF, branches=["YL-BGC"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    token = create_access_token("admin", role=ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


async def register_guest(
    client: AsyncClient, *, name: str = "Guest", pax: int = 2, **extra: object
) -> dict[str, object]:
    """Register one party through the API and return the response body."""
    response = await client.post(
        f"/api/v1/register/{BRANCH_SLUG}", json={"name": name, "pax": pax, **extra}
    )
    assert response.status_code == 201, response.text
    body: dict[str, object] = response.json()
    return body
