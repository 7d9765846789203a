"""Type definitions for salary calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from salary_progression.models import Rank


@dataclass(frozen=True)
class SalaryStep:
    """One rung of a rank's salary ladder."""

    step_number: int
    salary_amount: Decimal
    years_required: int = 0


@dataclass(frozen=True)
class RankSchedule:
    """Immutable snapshot of a rank and its step table."""

    rank_id: UUID
    code: str
    name: str
    base_salary: Decimal
    ceiling_salary: Decimal
    step_count: int
    step_period_years: int
    steps: tuple[SalaryStep, ...] = field(default_factory=tuple)
    level: int = 0
    category: str | None = None

    @property
    def max_step(self) -> int:
        return self.step_count - 1

    def step(self, step_number: int) -> SalaryStep | None:
        """Return the table entry for a step, or None when missing."""
        for entry in self.steps:
            if entry.step_number == step_number:
                return entry
        return None

    def has_step(self, step_number: int) -> bool:
        return self.step(step_number) is not None

    def validate(self) -> list[str]:
        """Check the ladder invariants, returning error messages (empty if valid)."""
        errors: list[str] = []
        if not self.steps:
            return [f"Rank {self.code} has no salary steps"]

        ordered = sorted(self.steps, key=lambda s: s.step_number)
        expected = list(range(self.step_count))
        actual = [s.step_number for s in ordered]
        if actual != expected:
            errors.append(f"Rank {self.code} steps {actual} do not cover 0..{self.max_step}")

        for prev, cur in zip(ordered, ordered[1:]):
            if cur.salary_amount < prev.salary_amount:
                errors.append(
                    f"Rank {self.code} step {cur.step_number} ({cur.salary_amount}) "
                    f"is lower than step {prev.step_number} ({prev.salary_amount})"
                )

        if ordered[0].salary_amount < self.base_salary:
            errors.append(
                f"Rank {self.code} step 0 ({ordered[0].salary_amount}) "
                f"is below base salary ({self.base_salary})"
            )
        if ordered[-1].salary_amount != self.ceiling_salary:
            errors.append(
                f"Rank {self.code} top step ({ordered[-1].salary_amount}) "
                f"does not equal ceiling salary ({self.ceiling_salary})"
            )
        return errors

    @classmethod
    def from_model(cls, rank: Rank) -> RankSchedule:
        """Build a schedule from a Rank with its salary_steps loaded."""
        return cls(
            rank_id=rank.rank_id,
            code=rank.code,
            name=rank.name,
            base_salary=rank.base_salary,
            ceiling_salary=rank.ceiling_salary,
            step_count=rank.step_count,
            step_period_years=rank.step_period_years,
            steps=tuple(
                SalaryStep(
                    step_number=s.step_number,
                    salary_amount=s.salary_amount,
                    years_required=s.years_required,
                )
                for s in sorted(rank.salary_steps, key=lambda s: s.step_number)
            ),
            level=rank.level,
            category=rank.category,
        )


@dataclass(frozen=True)
class NextEligibility:
    """When an employee may advance to the next step."""

    next_step: int
    eligibility_date: date | None
    is_at_ceiling: bool

    def is_due(self, today: date) -> bool:
        return (
            not self.is_at_ceiling
            and self.eligibility_date is not None
            and self.eligibility_date <= today
        )


@dataclass(frozen=True)
class ProjectionPoint:
    """A future step on an employee's salary trajectory."""

    year: int
    step: int
    salary: Decimal
    effective_date: date
    is_ceiling: bool


@dataclass(frozen=True)
class PromotionStep:
    """Target step and salary in the new rank after promotion."""

    new_step: int
    new_salary: Decimal
    explanation: str


@dataclass(frozen=True)
class SalaryIncrease:
    """Absolute and percentage difference between two salaries."""

    increase: Decimal
    percentage_increase: Decimal
