"""Salary eligibility and salary history models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salary_progression.errors import ImmutabilityViolationError
from salary_progression.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from salary_progression.models.employee import Employee
    from salary_progression.models.rank import Rank


class SalaryStepEligibility(Base, TimestampMixin):
    """A materialized entitlement for one employee to advance one step."""

    __tablename__ = "salary_step_eligibility"

    eligibility_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    rank_id: Mapped[UUID] = mapped_column(ForeignKey("rank.rank_id"), nullable=False)
    current_step: Mapped[int] = mapped_column(Integer, nullable=False)
    next_step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    current_salary: Mapped[Decimal] = mapped_column(nullable=False)
    next_salary: Mapped[Decimal] = mapped_column(nullable=False)
    eligibility_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    salary_history_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("salary_history_entry.salary_history_id"),
        nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'EXPIRED')",
            name="eligibility_status_check",
        ),
        CheckConstraint("next_step_number > current_step", name="eligibility_step_check"),
        # At most one open record per employee and target step
        Index(
            "eligibility_pending_step_unique",
            "employee_id",
            "next_step_number",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index("eligibility_tenant_status_date_idx", "tenant_id", "status", "eligibility_date"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
    rank: Mapped[Rank] = relationship()

    @property
    def salary_increase(self) -> Decimal:
        """Raise the employee gets when this record is approved."""
        return self.next_salary - self.current_salary


class SalaryHistoryEntry(Base, TimestampMixin):
    """Append-only record of one salary change."""

    __tablename__ = "salary_history_entry"

    salary_history_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    rank_id: Mapped[UUID] = mapped_column(ForeignKey("rank.rank_id"), nullable=False)
    previous_rank_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("rank.rank_id"),
        nullable=True,
    )
    change_type: Mapped[str] = mapped_column(String, nullable=False)
    from_step: Mapped[int | None] = mapped_column(Integer, nullable=True)
    to_step: Mapped[int] = mapped_column(Integer, nullable=False)
    from_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    to_salary: Mapped[Decimal] = mapped_column(nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_automatic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    processed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    document_path: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "change_type IN ('STEP_INCREMENT', 'MANUAL_JUMP', 'MASS_RAISE', 'PROMOTION')",
            name="salary_history_change_type_check",
        ),
        Index("salary_history_employee_date_idx", "employee_id", "effective_date"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
    rank: Mapped[Rank] = relationship(foreign_keys=[rank_id])
    previous_rank: Mapped[Rank | None] = relationship(foreign_keys=[previous_rank_id])


@event.listens_for(SalaryHistoryEntry, "before_update")
def _block_history_update(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="SalaryHistoryEntry",
        entity_id=target.salary_history_id,
        reason="Salary history entries cannot be modified",
    )


@event.listens_for(SalaryHistoryEntry, "before_delete")
def _block_history_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="SalaryHistoryEntry",
        entity_id=target.salary_history_id,
        reason="Salary history entries cannot be deleted",
    )
