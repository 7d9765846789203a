"""Read-only access to the rank catalog and its salary step tables."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salary_progression.calculators import RankSchedule, SalaryCalculator
from salary_progression.errors import NotFoundError
from salary_progression.models import Rank


class RankCatalog:
    """Loads rank schedules. The engine never writes to the catalog.

    Schedules are cached per catalog instance, which lives as long as the
    session that created it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._cache: dict[tuple[UUID, UUID | None], RankSchedule] = {}

    async def get_schedule(self, rank_id: UUID, tenant_id: UUID | None = None) -> RankSchedule:
        """Load a rank and its step table.

        When ``tenant_id`` is given, only shared ranks and that tenant's own
        ranks are visible.

        Raises:
            NotFoundError: If the rank does not exist or is not visible
        """
        cached = self._cache.get((rank_id, tenant_id))
        if cached is None:
            query = (
                select(Rank)
                .where(Rank.rank_id == rank_id)
                .options(selectinload(Rank.salary_steps))
            )
            if tenant_id is not None:
                query = query.where(or_(Rank.tenant_id == tenant_id, Rank.tenant_id.is_(None)))
            result = await self.session.execute(query)
            rank = result.scalar_one_or_none()
            if rank is None:
                raise NotFoundError("Rank", rank_id)
            cached = RankSchedule.from_model(rank)
            self._cache[(rank_id, tenant_id)] = cached
        return cached

    async def list_schedules(self, tenant_id: UUID) -> list[RankSchedule]:
        """All ranks visible to a tenant, ordered by level."""
        result = await self.session.execute(
            select(Rank)
            .where(or_(Rank.tenant_id == tenant_id, Rank.tenant_id.is_(None)))
            .options(selectinload(Rank.salary_steps))
            .order_by(Rank.level, Rank.code)
        )
        schedules = [RankSchedule.from_model(rank) for rank in result.scalars().all()]
        for schedule in schedules:
            self._cache.setdefault((schedule.rank_id, tenant_id), schedule)
        return schedules

    async def salary_for_step(self, rank_id: UUID, step_number: int) -> Decimal:
        """Salary amount for a rank's step.

        Raises:
            NotFoundError: If the rank does not exist
            StepNotFoundError: If the rank has no entry for the step
        """
        schedule = await self.get_schedule(rank_id)
        return SalaryCalculator.salary_for_step(schedule, step_number)
