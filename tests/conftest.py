"""Pytest fixtures for salary progression tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from salary_progression.database import create_engine_for_url, create_schema, make_session_factory
from salary_progression.models import Employee, Rank, RankSalaryStep, Tenant

# In-memory SQLite shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def D(value: str | int) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
async def engine():
    """Create a fresh test database per test."""
    engine = create_engine_for_url(TEST_DATABASE_URL, poolclass=StaticPool)
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def make_rank(
    session: AsyncSession,
    code: str,
    amounts: list[str | int],
    *,
    step_period_years: int = 2,
    level: int = 1,
    tenant_id: UUID | None = None,
    missing_steps: tuple[int, ...] = (),
) -> Rank:
    """Create a rank whose ladder pays ``amounts[n]`` at step n.

    Steps listed in ``missing_steps`` get no table entry.
    """
    rank = Rank(
        rank_id=uuid4(),
        tenant_id=tenant_id,
        code=code,
        name=code.title(),
        category="ENLISTED",
        level=level,
        base_salary=D(amounts[0]),
        ceiling_salary=D(amounts[-1]),
        step_count=len(amounts),
        step_period_years=step_period_years,
    )
    rank.salary_steps = [
        RankSalaryStep(
            step_number=n,
            salary_amount=D(amount),
            years_required=n * step_period_years,
        )
        for n, amount in enumerate(amounts)
        if n not in missing_steps
    ]
    session.add(rank)
    await session.flush()
    return rank


async def make_employee(
    session: AsyncSession,
    tenant: Tenant,
    rank: Rank | None,
    *,
    number: str = "E001",
    step: int = 0,
    employment_date: date = date(2015, 1, 1),
    salary: Decimal | None = None,
    org_unit_id: UUID | None = None,
    status: str = "active",
) -> Employee:
    """Create an employee on ``step`` of ``rank`` paid that step's amount by default."""
    if salary is None and rank is not None:
        salary = next(
            (s.salary_amount for s in rank.salary_steps if s.step_number == step), None
        )
    employee = Employee(
        employee_id=uuid4(),
        tenant_id=tenant.tenant_id,
        employee_number=number,
        full_name=f"Employee {number}",
        status=status,
        org_unit_id=org_unit_id,
        rank_id=rank.rank_id if rank is not None else None,
        current_salary_step=step,
        current_salary=salary,
        employment_date=employment_date,
        version=1,
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest.fixture
async def tenant(session: AsyncSession) -> Tenant:
    """Create a test tenant."""
    tenant = Tenant(tenant_id=uuid4(), code="NPD", name="National Police", is_active=True)
    session.add(tenant)
    await session.flush()
    return tenant


@pytest.fixture
async def constable(session: AsyncSession) -> Rank:
    """Three-step rank paying 1000 / 1200 / 1500, one step every two years."""
    return await make_rank(session, "CONSTABLE", [1000, 1200, 1500], level=1)


@pytest.fixture
async def sergeant(session: AsyncSession) -> Rank:
    """Four-step rank paying 1300 / 1600 / 1900 / 2200."""
    return await make_rank(session, "SERGEANT", [1300, 1600, 1900, 2200], level=2)


@pytest.fixture
async def employee(session: AsyncSession, tenant: Tenant, constable: Rank) -> Employee:
    """Constable at step 0, hired 2015-01-01."""
    return await make_employee(session, tenant, constable)
