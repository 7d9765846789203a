"""Salary history ledger: append-only audit of every salary change."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salary_progression.models import SalaryHistoryEntry
from salary_progression.services.pagination import Page, paginate
from salary_progression.services.state_machine import SalaryChangeType


@dataclass(frozen=True)
class HistoryFilter:
    """Optional filters for history queries."""

    change_type: SalaryChangeType | None = None
    date_from: date | None = None
    date_to: date | None = None
    rank_id: UUID | None = None


@dataclass
class ChangeSummary:
    """Aggregate of salary changes over a period."""

    by_change_type: dict[str, int] = field(
        default_factory=lambda: {t.value: 0 for t in SalaryChangeType}
    )
    total_changes: int = 0
    total_salary_increase: Decimal = Decimal("0")

    @property
    def average_increase(self) -> Decimal:
        if self.total_changes == 0:
            return Decimal("0")
        return self.total_salary_increase / self.total_changes


class SalaryHistoryService:
    """Writes and reads salary history entries.

    Entries are only ever inserted. The ORM refuses updates and deletes of
    persisted entries (see models.salary).
    """

    LOAD_OPTIONS = (
        selectinload(SalaryHistoryEntry.rank),
        selectinload(SalaryHistoryEntry.previous_rank),
    )

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append_entry(
        self,
        *,
        tenant_id: UUID,
        employee_id: UUID,
        rank_id: UUID,
        change_type: SalaryChangeType,
        to_step: int,
        to_salary: Decimal,
        effective_date: date,
        is_automatic: bool,
        from_step: int | None = None,
        from_salary: Decimal | None = None,
        previous_rank_id: UUID | None = None,
        processed_by: str | None = None,
        approved_by: str | None = None,
        reason: str | None = None,
        order_reference: str | None = None,
        document_path: str | None = None,
        notes: str | None = None,
    ) -> SalaryHistoryEntry:
        """Append one entry to the ledger and flush it."""
        entry = SalaryHistoryEntry(
            salary_history_id=uuid4(),
            tenant_id=tenant_id,
            employee_id=employee_id,
            rank_id=rank_id,
            previous_rank_id=previous_rank_id,
            change_type=SalaryChangeType(change_type).value,
            from_step=from_step,
            to_step=to_step,
            from_salary=from_salary,
            to_salary=to_salary,
            effective_date=effective_date,
            is_automatic=is_automatic,
            processed_by=processed_by,
            approved_by=approved_by,
            approved_at=datetime.now(timezone.utc) if approved_by else None,
            reason=reason,
            order_reference=order_reference,
            document_path=document_path,
            notes=notes,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    def _filtered(self, tenant_id: UUID, history_filter: HistoryFilter | None):
        query = select(SalaryHistoryEntry).where(SalaryHistoryEntry.tenant_id == tenant_id)
        if history_filter is None:
            return query
        if history_filter.change_type is not None:
            query = query.where(
                SalaryHistoryEntry.change_type == SalaryChangeType(history_filter.change_type).value
            )
        if history_filter.date_from is not None:
            query = query.where(SalaryHistoryEntry.effective_date >= history_filter.date_from)
        if history_filter.date_to is not None:
            query = query.where(SalaryHistoryEntry.effective_date <= history_filter.date_to)
        if history_filter.rank_id is not None:
            query = query.where(SalaryHistoryEntry.rank_id == history_filter.rank_id)
        return query

    @staticmethod
    def _newest_first(query):
        return query.order_by(
            SalaryHistoryEntry.effective_date.desc(),
            SalaryHistoryEntry.created_at.desc(),
        )

    async def get_employee_history(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        history_filter: HistoryFilter | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[SalaryHistoryEntry]:
        """Paginated history of one employee, newest first."""
        query = self._filtered(tenant_id, history_filter).where(
            SalaryHistoryEntry.employee_id == employee_id
        )
        return await paginate(
            self.session, self._newest_first(query), page, limit, options=self.LOAD_OPTIONS
        )

    async def get_changes_by_type(
        self,
        tenant_id: UUID,
        change_type: SalaryChangeType,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[SalaryHistoryEntry]:
        """Paginated tenant-wide changes of one type."""
        query = self._filtered(
            tenant_id,
            HistoryFilter(change_type=change_type, date_from=date_from, date_to=date_to),
        )
        return await paginate(
            self.session, self._newest_first(query), page, limit, options=self.LOAD_OPTIONS
        )

    async def get_latest_change(
        self, tenant_id: UUID, employee_id: UUID
    ) -> SalaryHistoryEntry | None:
        """Most recent entry for an employee, if any."""
        query = self._filtered(tenant_id, None).where(
            SalaryHistoryEntry.employee_id == employee_id
        )
        result = await self.session.execute(
            self._newest_first(query).options(*self.LOAD_OPTIONS).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_change_summary(
        self,
        tenant_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> ChangeSummary:
        """Count changes by type and total the salary increases."""
        query = select(
            SalaryHistoryEntry.change_type,
            SalaryHistoryEntry.from_salary,
            SalaryHistoryEntry.to_salary,
        ).where(SalaryHistoryEntry.tenant_id == tenant_id)
        if date_from is not None:
            query = query.where(SalaryHistoryEntry.effective_date >= date_from)
        if date_to is not None:
            query = query.where(SalaryHistoryEntry.effective_date <= date_to)

        summary = ChangeSummary()
        for change_type, from_salary, to_salary in (await self.session.execute(query)).all():
            summary.by_change_type[change_type] = summary.by_change_type.get(change_type, 0) + 1
            summary.total_changes += 1
            if from_salary is not None:
                summary.total_salary_increase += to_salary - from_salary
        return summary

    async def count_changes_by_employee(
        self, tenant_id: UUID, employee_id: UUID
    ) -> dict[str, int]:
        """Number of history entries per change type for one employee."""
        result = await self.session.execute(
            select(SalaryHistoryEntry.change_type, func.count())
            .where(
                SalaryHistoryEntry.tenant_id == tenant_id,
                SalaryHistoryEntry.employee_id == employee_id,
            )
            .group_by(SalaryHistoryEntry.change_type)
        )
        counts = {t.value: 0 for t in SalaryChangeType}
        for change_type, count in result.all():
            counts[change_type] = count
        return counts
