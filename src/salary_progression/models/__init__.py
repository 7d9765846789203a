"""ORM models for the salary progression engine."""

from salary_progression.models.base import Base, Money, TimestampMixin
from salary_progression.models.employee import Employee
from salary_progression.models.organization import Tenant
from salary_progression.models.rank import Rank, RankSalaryStep
from salary_progression.models.salary import SalaryHistoryEntry, SalaryStepEligibility

__all__ = [
    "Base",
    "Money",
    "TimestampMixin",
    "Employee",
    "Tenant",
    "Rank",
    "RankSalaryStep",
    "SalaryHistoryEntry",
    "SalaryStepEligibility",
]
