"""Employee projection used by the progression engine."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salary_progression.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from salary_progression.models.rank import Rank


class Employee(Base, TimestampMixin):
    """Employee record as seen by the salary engine.

    ``version`` is bumped by every salary mutation and checked with a
    conditional UPDATE, so two writers cannot silently overwrite each other.
    """

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_number: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    org_unit_id: Mapped[UUID | None] = mapped_column(nullable=True)
    rank_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("rank.rank_id"),
        nullable=True,
    )
    current_salary_step: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    employment_date: Mapped[date] = mapped_column(Date, nullable=False)
    salary_effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("tenant_id", "employee_number", name="employee_tenant_number_unique"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'terminated')",
            name="employee_status_check",
        ),
        CheckConstraint("current_salary_step >= 0", name="employee_step_check"),
    )

    # Relationships
    rank: Mapped[Rank | None] = relationship()

    @property
    def is_active(self) -> bool:
        """Check if the employee is currently active."""
        return self.status == "active"
