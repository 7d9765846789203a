"""Read-side queries over salary step eligibility records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salary_progression.errors import InvalidInputError
from salary_progression.models import Employee, Rank, SalaryStepEligibility
from salary_progression.services.pagination import Page, paginate
from salary_progression.services.state_machine import EligibilityStatus

UPCOMING_WINDOW_DAYS = 30

SORT_FIELDS = {
    "eligibility_date": SalaryStepEligibility.eligibility_date,
    "created_at": SalaryStepEligibility.created_at,
    "current_step": SalaryStepEligibility.current_step,
    "next_step_number": SalaryStepEligibility.next_step_number,
    "status": SalaryStepEligibility.status,
}


@dataclass(frozen=True)
class EligibilityFilter:
    """Filters for listing eligibility records."""

    status: EligibilityStatus | None = None
    rank_id: UUID | None = None
    current_step: int | None = None
    eligibility_date_from: date | None = None
    eligibility_date_to: date | None = None
    org_unit_id: UUID | None = None
    search: str | None = None


@dataclass
class RankPendingCount:
    rank_id: UUID
    rank_code: str
    rank_name: str
    count: int


@dataclass
class EligibilitySummary:
    """Dashboard counts for a tenant's eligibility queue."""

    pending: int = 0
    approved_this_month: int = 0
    rejected_this_month: int = 0
    upcoming_next_30_days: int = 0
    by_rank: list[RankPendingCount] = field(default_factory=list)


def _month_start(today: date) -> datetime:
    return datetime(today.year, today.month, 1, tzinfo=timezone.utc)


class EligibilityQueryService:
    """Lists and summarizes eligibility records for a tenant."""

    LOAD_OPTIONS = (
        selectinload(SalaryStepEligibility.employee),
        selectinload(SalaryStepEligibility.rank),
    )

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_eligibilities(
        self,
        tenant_id: UUID,
        eligibility_filter: EligibilityFilter | None = None,
        sort_by: str = "eligibility_date",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 20,
    ) -> Page[SalaryStepEligibility]:
        """Filtered, sorted, paginated eligibility records.

        Raises:
            InvalidInputError: On an unknown sort field or order
        """
        if sort_by not in SORT_FIELDS:
            raise InvalidInputError(
                f"Cannot sort by '{sort_by}'; expected one of {', '.join(sorted(SORT_FIELDS))}"
            )
        if sort_order not in ("asc", "desc"):
            raise InvalidInputError(f"sort_order must be 'asc' or 'desc' (got '{sort_order}')")

        query = select(SalaryStepEligibility).where(SalaryStepEligibility.tenant_id == tenant_id)
        f = eligibility_filter or EligibilityFilter()
        if f.status is not None:
            query = query.where(
                SalaryStepEligibility.status == EligibilityStatus(f.status).value
            )
        if f.rank_id is not None:
            query = query.where(SalaryStepEligibility.rank_id == f.rank_id)
        if f.current_step is not None:
            query = query.where(SalaryStepEligibility.current_step == f.current_step)
        if f.eligibility_date_from is not None:
            query = query.where(SalaryStepEligibility.eligibility_date >= f.eligibility_date_from)
        if f.eligibility_date_to is not None:
            query = query.where(SalaryStepEligibility.eligibility_date <= f.eligibility_date_to)
        if f.org_unit_id is not None or f.search:
            query = query.join(Employee, SalaryStepEligibility.employee_id == Employee.employee_id)
            if f.org_unit_id is not None:
                query = query.where(Employee.org_unit_id == f.org_unit_id)
            if f.search:
                pattern = f"%{f.search.strip().lower()}%"
                query = query.where(
                    or_(
                        func.lower(Employee.employee_number).like(pattern),
                        func.lower(Employee.full_name).like(pattern),
                    )
                )

        column = SORT_FIELDS[sort_by]
        query = query.order_by(
            column.asc() if sort_order == "asc" else column.desc(),
            SalaryStepEligibility.eligibility_id,
        )
        return await paginate(self.session, query, page, limit, options=self.LOAD_OPTIONS)

    async def list_due_today(
        self, tenant_id: UUID, today: date | None = None
    ) -> list[SalaryStepEligibility]:
        """PENDING records that fall due exactly today."""
        result = await self.session.execute(
            select(SalaryStepEligibility)
            .where(
                SalaryStepEligibility.tenant_id == tenant_id,
                SalaryStepEligibility.status == EligibilityStatus.PENDING.value,
                SalaryStepEligibility.eligibility_date == (today or date.today()),
            )
            .options(*self.LOAD_OPTIONS)
            .order_by(SalaryStepEligibility.created_at)
        )
        return list(result.scalars().all())

    async def get_eligibility_summary(
        self, tenant_id: UUID, today: date | None = None
    ) -> EligibilitySummary:
        today = today or date.today()
        month_start = _month_start(today)
        base = select(func.count(SalaryStepEligibility.eligibility_id)).where(
            SalaryStepEligibility.tenant_id == tenant_id
        )
        pending_filter = SalaryStepEligibility.status == EligibilityStatus.PENDING.value

        summary = EligibilitySummary()
        summary.pending = await self.session.scalar(base.where(pending_filter)) or 0
        summary.approved_this_month = await self.session.scalar(
            base.where(
                SalaryStepEligibility.status == EligibilityStatus.APPROVED.value,
                SalaryStepEligibility.processed_at >= month_start,
            )
        ) or 0
        summary.rejected_this_month = await self.session.scalar(
            base.where(
                SalaryStepEligibility.status == EligibilityStatus.REJECTED.value,
                SalaryStepEligibility.processed_at >= month_start,
            )
        ) or 0
        summary.upcoming_next_30_days = await self.session.scalar(
            base.where(
                pending_filter,
                SalaryStepEligibility.eligibility_date >= today,
                SalaryStepEligibility.eligibility_date
                <= today + timedelta(days=UPCOMING_WINDOW_DAYS),
            )
        ) or 0

        rows = await self.session.execute(
            select(
                Rank.rank_id,
                Rank.code,
                Rank.name,
                func.count(SalaryStepEligibility.eligibility_id),
            )
            .join(Rank, SalaryStepEligibility.rank_id == Rank.rank_id)
            .where(SalaryStepEligibility.tenant_id == tenant_id, pending_filter)
            .group_by(Rank.rank_id, Rank.code, Rank.name, Rank.level)
            .order_by(Rank.level, Rank.code)
        )
        summary.by_rank = [
            RankPendingCount(rank_id=rank_id, rank_code=code, rank_name=name, count=count)
            for rank_id, code, name, count in rows.all()
        ]
        return summary
