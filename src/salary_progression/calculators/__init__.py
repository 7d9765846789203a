"""Salary calculations."""

from salary_progression.calculators.salary_calculator import SalaryCalculator, add_years
from salary_progression.calculators.types import (
    NextEligibility,
    ProjectionPoint,
    PromotionStep,
    RankSchedule,
    SalaryIncrease,
    SalaryStep,
)

__all__ = [
    "SalaryCalculator",
    "add_years",
    "NextEligibility",
    "ProjectionPoint",
    "PromotionStep",
    "RankSchedule",
    "SalaryIncrease",
    "SalaryStep",
]
