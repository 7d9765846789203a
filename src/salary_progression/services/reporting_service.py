"""Salary projections, promotion previews and step distribution reports.

Everything here is read-only.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salary_progression.calculators import ProjectionPoint, RankSchedule, SalaryCalculator
from salary_progression.errors import InvalidInputError, NotFoundError
from salary_progression.models import Employee
from salary_progression.services.rank_catalog import RankCatalog

TWO_PLACES = Decimal("0.01")


def percentage(part: int | Decimal, whole: int | Decimal) -> Decimal:
    """``part / whole`` as a percentage rounded to 2 places; 0.00 for an empty whole."""
    if not whole:
        return Decimal("0.00")
    return (Decimal(part) / Decimal(whole) * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class EmployeeProjection:
    """Where an employee's salary goes from here if they stay in their rank."""

    employee_id: UUID
    employee_number: str
    full_name: str
    rank: RankSchedule
    current_step: int
    current_salary: Decimal
    employment_date: date
    max_step: int
    ceiling_salary: Decimal
    is_at_ceiling: bool
    years_to_reach_ceiling: int
    projections: list[ProjectionPoint] = field(default_factory=list)
    projected_ceiling_date: date | None = None
    next_eligibility_date: date | None = None
    days_until_next_eligibility: int | None = None


@dataclass
class StepCount:
    step: int
    count: int
    percentage: Decimal
    salary_amount: Decimal | None = None


@dataclass
class RankDistribution:
    rank_id: UUID
    rank_code: str
    rank_name: str
    total_employees: int
    base_salary: Decimal
    ceiling_salary: Decimal
    distribution: list[StepCount] = field(default_factory=list)


@dataclass
class StepDistributionReport:
    tenant_id: UUID
    generated_at: datetime
    total_employees: int
    by_rank: list[RankDistribution]
    overall_distribution: list[StepCount]
    average_step: Decimal
    employees_at_ceiling: int
    ceiling_percentage: Decimal


@dataclass
class PromotionPreview:
    employee_id: UUID
    full_name: str
    current_rank: RankSchedule
    new_rank: RankSchedule
    current_step: int
    current_salary: Decimal
    new_step: int
    new_salary: Decimal
    salary_increase: Decimal
    percentage_increase: Decimal
    explanation: str


class ReportingService:
    """Projection and distribution reports for one tenant."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rank_catalog = RankCatalog(session)

    async def _load_ranked_employee(
        self, tenant_id: UUID, employee_id: UUID
    ) -> tuple[Employee, RankSchedule]:
        result = await self.session.execute(
            select(Employee).where(
                Employee.employee_id == employee_id,
                Employee.tenant_id == tenant_id,
            )
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if employee.rank_id is None:
            raise InvalidInputError(f"Employee {employee.employee_number} has no rank assigned")
        schedule = await self.rank_catalog.get_schedule(employee.rank_id, tenant_id)
        return employee, schedule

    async def get_projection(
        self, tenant_id: UUID, employee_id: UUID, today: date | None = None
    ) -> EmployeeProjection:
        """Project the employee's remaining steps up to the rank ceiling.

        Raises:
            NotFoundError: If the employee does not exist
            InvalidInputError: If the employee has no rank
        """
        today = today or date.today()
        employee, schedule = await self._load_ranked_employee(tenant_id, employee_id)
        step = employee.current_salary_step
        eligibility = SalaryCalculator.next_eligibility(
            employee.employment_date, step, schedule.step_period_years, schedule.max_step
        )
        projections = SalaryCalculator.salary_projection(
            schedule, step, employee.employment_date
        )
        ceiling = next((p for p in projections if p.is_ceiling), None)

        return EmployeeProjection(
            employee_id=employee.employee_id,
            employee_number=employee.employee_number,
            full_name=employee.full_name,
            rank=schedule,
            current_step=step,
            current_salary=(
                employee.current_salary
                if employee.current_salary is not None
                else schedule.base_salary
            ),
            employment_date=employee.employment_date,
            max_step=schedule.max_step,
            ceiling_salary=schedule.ceiling_salary,
            is_at_ceiling=eligibility.is_at_ceiling,
            years_to_reach_ceiling=(
                0
                if eligibility.is_at_ceiling
                else (schedule.max_step - step) * schedule.step_period_years
            ),
            projections=projections,
            projected_ceiling_date=ceiling.effective_date if ceiling else None,
            next_eligibility_date=eligibility.eligibility_date,
            days_until_next_eligibility=(
                (eligibility.eligibility_date - today).days
                if eligibility.eligibility_date is not None
                else None
            ),
        )

    async def get_step_distribution(
        self, tenant_id: UUID, org_unit_id: UUID | None = None
    ) -> StepDistributionReport:
        """How active ranked employees spread over salary steps."""
        query = select(Employee.rank_id, Employee.current_salary_step).where(
            Employee.tenant_id == tenant_id,
            Employee.status == "active",
            Employee.rank_id.is_not(None),
        )
        if org_unit_id is not None:
            query = query.where(Employee.org_unit_id == org_unit_id)
        rows = (await self.session.execute(query)).all()

        schedules = {s.rank_id: s for s in await self.rank_catalog.list_schedules(tenant_id)}
        per_rank: dict[UUID, Counter] = {}
        overall: Counter = Counter()
        at_ceiling = 0
        for rank_id, step in rows:
            per_rank.setdefault(rank_id, Counter())[step] += 1
            overall[step] += 1
            schedule = schedules.get(rank_id)
            if schedule is not None and step >= schedule.max_step:
                at_ceiling += 1

        by_rank = []
        for schedule in schedules.values():
            counts = per_rank.get(schedule.rank_id)
            if not counts:
                continue
            total = sum(counts.values())
            by_rank.append(
                RankDistribution(
                    rank_id=schedule.rank_id,
                    rank_code=schedule.code,
                    rank_name=schedule.name,
                    total_employees=total,
                    base_salary=schedule.base_salary,
                    ceiling_salary=schedule.ceiling_salary,
                    distribution=[
                        StepCount(
                            step=n,
                            count=counts.get(n, 0),
                            percentage=percentage(counts.get(n, 0), total),
                            salary_amount=(
                                schedule.step(n).salary_amount if schedule.has_step(n) else None
                            ),
                        )
                        for n in range(schedule.step_count)
                    ],
                )
            )

        total_employees = len(rows)
        top_step = max(
            [schedules[r].max_step for r in per_rank if r in schedules] + list(overall),
            default=0,
        )
        average = (
            (Decimal(sum(step for _, step in rows)) / total_employees).quantize(
                TWO_PLACES, rounding=ROUND_HALF_UP
            )
            if total_employees
            else Decimal("0.00")
        )
        return StepDistributionReport(
            tenant_id=tenant_id,
            generated_at=datetime.now(timezone.utc),
            total_employees=total_employees,
            by_rank=by_rank,
            overall_distribution=[
                StepCount(
                    step=n,
                    count=overall.get(n, 0),
                    percentage=percentage(overall.get(n, 0), total_employees),
                )
                for n in range(top_step + 1)
            ],
            average_step=average,
            employees_at_ceiling=at_ceiling,
            ceiling_percentage=percentage(at_ceiling, total_employees),
        )

    async def promotion_preview(
        self, tenant_id: UUID, employee_id: UUID, new_rank_id: UUID
    ) -> PromotionPreview:
        """What a promotion would pay, without applying it.

        Raises:
            NotFoundError: If the employee or new rank does not exist
            InvalidInputError: If the employee has no rank or already holds the new rank
        """
        employee, current = await self._load_ranked_employee(tenant_id, employee_id)
        if current.rank_id == new_rank_id:
            raise InvalidInputError(
                f"Employee {employee.employee_number} already holds rank {current.code}"
            )
        new = await self.rank_catalog.get_schedule(new_rank_id, tenant_id)
        current_salary = (
            employee.current_salary
            if employee.current_salary is not None
            else current.base_salary
        )
        placement = SalaryCalculator.promotion_step(current, new, current_salary)
        increase = SalaryCalculator.salary_increase(current_salary, placement.new_salary)

        return PromotionPreview(
            employee_id=employee.employee_id,
            full_name=employee.full_name,
            current_rank=current,
            new_rank=new,
            current_step=employee.current_salary_step,
            current_salary=current_salary,
            new_step=placement.new_step,
            new_salary=placement.new_salary,
            salary_increase=increase.increase,
            percentage_increase=increase.percentage_increase.quantize(
                TWO_PLACES, rounding=ROUND_HALF_UP
            ),
            explanation=placement.explanation,
        )

    async def get_rank_steps(self, tenant_id: UUID, rank_id: UUID) -> RankSchedule:
        """The rank's salary ladder as visible to the tenant."""
        return await self.rank_catalog.get_schedule(rank_id, tenant_id)
