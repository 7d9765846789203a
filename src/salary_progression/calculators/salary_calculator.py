"""Salary step arithmetic: step lookup, eligibility dates, projections, promotion.

Every function here is pure: it reads a RankSchedule snapshot and never
touches the database. Eligibility dates are anchored to the employment date,
so step N always falls due ``N * step_period_years`` years after hiring,
regardless of when earlier steps were actually approved.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from salary_progression.calculators.types import (
    NextEligibility,
    ProjectionPoint,
    PromotionStep,
    RankSchedule,
    SalaryIncrease,
)
from salary_progression.errors import StepNotFoundError

MIN_STEP = 0
HUNDRED = Decimal("100")


def add_years(start: date, years: int) -> date:
    """Add whole years to a date; Feb 29 rolls forward to Mar 1."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return date(start.year + years, 3, 1)


class SalaryCalculator:
    """Pure salary calculations over rank schedules."""

    @staticmethod
    def salary_for_step(schedule: RankSchedule, step_number: int) -> Decimal:
        """Look up the salary for a step.

        Raises:
            StepNotFoundError: If the rank has no table entry for the step
        """
        entry = schedule.step(step_number)
        if entry is None:
            raise StepNotFoundError(schedule.rank_id, step_number)
        return entry.salary_amount

    @staticmethod
    def is_at_ceiling(current_step: int, max_step: int) -> bool:
        return current_step >= max_step

    @staticmethod
    def validate_step_number(step_number: int, max_step: int) -> bool:
        return MIN_STEP <= step_number <= max_step

    @classmethod
    def next_eligibility(
        cls,
        employment_date: date,
        current_step: int,
        step_period_years: int,
        max_step: int,
    ) -> NextEligibility:
        """Compute the next step and the date it falls due."""
        if cls.is_at_ceiling(current_step, max_step):
            return NextEligibility(next_step=max_step, eligibility_date=None, is_at_ceiling=True)

        next_step = current_step + 1
        eligibility_date = add_years(employment_date, next_step * step_period_years)
        return NextEligibility(
            next_step=next_step,
            eligibility_date=eligibility_date,
            is_at_ceiling=False,
        )

    @classmethod
    def salary_projection(
        cls,
        schedule: RankSchedule,
        current_step: int,
        employment_date: date,
    ) -> list[ProjectionPoint]:
        """Walk the remaining steps up to the ceiling.

        Steps missing from the table are left out of the projection.
        """
        points: list[ProjectionPoint] = []
        for step_number in range(current_step + 1, schedule.max_step + 1):
            entry = schedule.step(step_number)
            if entry is None:
                continue
            effective_date = add_years(employment_date, step_number * schedule.step_period_years)
            points.append(
                ProjectionPoint(
                    year=effective_date.year,
                    step=step_number,
                    salary=entry.salary_amount,
                    effective_date=effective_date,
                    is_ceiling=step_number == schedule.max_step,
                )
            )
        return points

    @staticmethod
    def promotion_step(
        old_schedule: RankSchedule,
        new_schedule: RankSchedule,
        current_salary: Decimal,
    ) -> PromotionStep:
        """Find the first step in the new rank paying at least the current salary.

        A salary above the new rank's ceiling is clamped to the ceiling step.

        Raises:
            StepNotFoundError: If the new rank has no salary steps at all
        """
        steps = sorted(new_schedule.steps, key=lambda s: s.step_number)
        if not steps:
            raise StepNotFoundError(new_schedule.rank_id, MIN_STEP)

        target = next((s for s in steps if s.salary_amount >= current_salary), None)
        if target is None:
            target = steps[-1]
            explanation = (
                f"Current salary ({current_salary}) exceeds every step in "
                f"{new_schedule.name}; placed at ceiling step {target.step_number} "
                f"({target.salary_amount}) on promotion from {old_schedule.name}"
            )
        else:
            explanation = (
                f"Step {target.step_number} in {new_schedule.name} "
                f"({target.salary_amount}) is the first step >= current salary "
                f"({current_salary}) on promotion from {old_schedule.name}"
            )

        return PromotionStep(
            new_step=target.step_number,
            new_salary=target.salary_amount,
            explanation=explanation,
        )

    @staticmethod
    def salary_increase(old_amount: Decimal, new_amount: Decimal) -> SalaryIncrease:
        """Absolute and percentage increase; percentage is 0 for a zero base."""
        increase = new_amount - old_amount
        if old_amount == 0:
            percentage = Decimal("0")
        else:
            percentage = increase / old_amount * HUNDRED
        return SalaryIncrease(increase=increase, percentage_increase=percentage)
