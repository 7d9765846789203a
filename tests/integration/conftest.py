"""Integration test fixtures: the FastAPI app over an in-memory database."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from salary_progression.api.app import create_app
from salary_progression.api.dependencies import get_db_session
from salary_progression.models import Tenant

from tests.conftest import make_employee, make_rank

ACTOR = "hr.officer@example.org"


@dataclass(frozen=True)
class SeedData:
    """Identifiers of the committed fixture rows."""

    tenant_id: UUID
    constable_id: UUID
    sergeant_id: UUID
    employee_id: UUID

    @property
    def headers(self) -> dict[str, str]:
        return {"X-Tenant-ID": str(self.tenant_id), "X-Actor-ID": ACTOR}


@pytest_asyncio.fixture
async def seeded(session_factory) -> SeedData:
    """One tenant, two ranks and a constable hired 2015-01-01, committed.

    The app opens its own sessions, so fixture rows must be committed
    rather than just flushed.
    """
    async with session_factory() as session:
        tenant = Tenant(tenant_id=uuid4(), code="NPD", name="National Police", is_active=True)
        session.add(tenant)
        await session.flush()
        constable = await make_rank(session, "CONSTABLE", [1000, 1200, 1500], level=1)
        sergeant = await make_rank(session, "SERGEANT", [1300, 1600, 1900, 2200], level=2)
        employee = await make_employee(session, tenant, constable)
        await session.commit()

        return SeedData(
            tenant_id=tenant.tenant_id,
            constable_id=constable.rank_id,
            sergeant_id=sergeant.rank_id,
            employee_id=employee.employee_id,
        )


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the API, bound to the test database."""
    app = create_app()

    async def test_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = test_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
