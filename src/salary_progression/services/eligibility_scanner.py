"""Eligibility scanner: materializes due salary step increments.

One pass per tenant. For every active ranked employee below the ceiling,
the next step's anchored eligibility date is computed; once it has arrived a
PENDING eligibility record is inserted unless an open one already exists.
Re-running the scan on the same day creates nothing new.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from salary_progression.calculators import SalaryCalculator
from salary_progression.errors import NotFoundError, ScheduleGapError
from salary_progression.models import Employee, Rank, SalaryStepEligibility, Tenant
from salary_progression.services.rank_catalog import RankCatalog
from salary_progression.services.state_machine import EligibilityStatus

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of one eligibility scan over a tenant."""

    tenant_id: UUID
    scan_date: date
    created: int = 0
    skipped_not_due: int = 0
    skipped_existing: int = 0
    skipped_schedule_gap: int = 0

    @property
    def examined(self) -> int:
        return (
            self.created
            + self.skipped_not_due
            + self.skipped_existing
            + self.skipped_schedule_gap
        )


class EligibilityScanner:
    """Creates PENDING eligibility records for employees whose next step is due.

    Safe to call on demand or from an external daily scheduler. Concurrent
    scans of the same tenant are tolerated: the partial unique index on
    PENDING rows turns a lost insert race into a duplicate skip.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rank_catalog = RankCatalog(session)

    async def run_eligibility_scan(self, tenant_id: UUID, today: date | None = None) -> ScanResult:
        """Scan one tenant and return the counts.

        Raises:
            NotFoundError: If the tenant does not exist or is inactive
        """
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None or not tenant.is_active:
            raise NotFoundError("Tenant", tenant_id)

        scan_date = today or date.today()
        result = ScanResult(tenant_id=tenant_id, scan_date=scan_date)

        for employee in await self._candidates(tenant_id):
            await self._scan_employee(employee, result)

        logger.info(
            "Eligibility scan for tenant %s on %s: %d created, %d not due, "
            "%d already open, %d schedule gaps",
            tenant.code,
            scan_date,
            result.created,
            result.skipped_not_due,
            result.skipped_existing,
            result.skipped_schedule_gap,
        )
        return result

    async def run_all_tenants(self, today: date | None = None) -> list[ScanResult]:
        """Scan every active tenant, one after another."""
        tenants = await self.session.execute(
            select(Tenant).where(Tenant.is_active.is_(True)).order_by(Tenant.code)
        )
        results = []
        for tenant in tenants.scalars().all():
            results.append(await self.run_eligibility_scan(tenant.tenant_id, today))
        logger.info(
            "Daily eligibility check completed for %d tenant(s), %d record(s) created",
            len(results),
            sum(r.created for r in results),
        )
        return results

    async def _candidates(self, tenant_id: UUID) -> list[Employee]:
        """Active employees with a rank who are below that rank's top step."""
        result = await self.session.execute(
            select(Employee)
            .join(Rank, Employee.rank_id == Rank.rank_id)
            .where(
                Employee.tenant_id == tenant_id,
                Employee.status == "active",
                Employee.rank_id.is_not(None),
                Employee.current_salary_step < Rank.step_count - 1,
            )
            .order_by(Employee.employee_number)
        )
        return list(result.scalars().all())

    async def _scan_employee(self, employee: Employee, result: ScanResult) -> None:
        schedule = await self.rank_catalog.get_schedule(employee.rank_id)
        eligibility = SalaryCalculator.next_eligibility(
            employee.employment_date,
            employee.current_salary_step,
            schedule.step_period_years,
            schedule.max_step,
        )
        if eligibility.is_at_ceiling:
            return
        if not eligibility.is_due(result.scan_date):
            result.skipped_not_due += 1
            return

        if await self._has_open_record(employee, eligibility.next_step):
            result.skipped_existing += 1
            return

        try:
            next_salary = SalaryCalculator.salary_for_step(schedule, eligibility.next_step)
        except ScheduleGapError as exc:
            logger.warning("Skipping employee %s: %s", employee.employee_number, exc)
            result.skipped_schedule_gap += 1
            return

        record = SalaryStepEligibility(
            eligibility_id=uuid4(),
            tenant_id=employee.tenant_id,
            employee_id=employee.employee_id,
            rank_id=schedule.rank_id,
            current_step=employee.current_salary_step,
            next_step_number=eligibility.next_step,
            current_salary=(
                employee.current_salary
                if employee.current_salary is not None
                else schedule.base_salary
            ),
            next_salary=next_salary,
            eligibility_date=eligibility.eligibility_date,
            status=EligibilityStatus.PENDING.value,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(record)
                await self.session.flush()
        except IntegrityError:
            logger.info(
                "Pending eligibility for employee %s step %d created concurrently, skipping",
                employee.employee_number,
                eligibility.next_step,
            )
            result.skipped_existing += 1
            return

        result.created += 1

    async def _has_open_record(self, employee: Employee, next_step: int) -> bool:
        """A PENDING record for the step, or an APPROVED one in the same rank."""
        existing = await self.session.execute(
            select(SalaryStepEligibility.eligibility_id)
            .where(
                SalaryStepEligibility.employee_id == employee.employee_id,
                SalaryStepEligibility.next_step_number == next_step,
                or_(
                    SalaryStepEligibility.status == EligibilityStatus.PENDING.value,
                    and_(
                        SalaryStepEligibility.status == EligibilityStatus.APPROVED.value,
                        SalaryStepEligibility.rank_id == employee.rank_id,
                    ),
                ),
            )
            .limit(1)
        )
        return existing.first() is not None
