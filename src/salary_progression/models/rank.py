"""Rank catalog and salary step table models."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salary_progression.models.base import Base, TimestampMixin


class Rank(Base, TimestampMixin):
    """A rank with its salary ladder.

    ``tenant_id`` is NULL for ranks shared by every tenant.
    """

    __tablename__ = "rank"

    rank_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=True,
    )
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    ceiling_salary: Mapped[Decimal] = mapped_column(nullable=False)
    step_count: Mapped[int] = mapped_column(Integer, nullable=False)
    step_period_years: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="rank_tenant_code_unique"),
        CheckConstraint("step_count >= 1", name="rank_step_count_check"),
        CheckConstraint("step_period_years >= 1", name="rank_step_period_check"),
    )

    # Relationships
    salary_steps: Mapped[list[RankSalaryStep]] = relationship(
        back_populates="rank",
        order_by="RankSalaryStep.step_number",
        cascade="all, delete-orphan",
    )

    @property
    def max_step(self) -> int:
        """Highest step index on this rank's ladder."""
        return self.step_count - 1


class RankSalaryStep(Base):
    """Salary amount for one step of a rank."""

    __tablename__ = "rank_salary_step"

    rank_salary_step_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    rank_id: Mapped[UUID] = mapped_column(
        ForeignKey("rank.rank_id", ondelete="CASCADE"),
        nullable=False,
    )
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    salary_amount: Mapped[Decimal] = mapped_column(nullable=False)
    years_required: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("rank_id", "step_number", name="rank_salary_step_unique"),
        CheckConstraint("step_number >= 0", name="rank_salary_step_number_check"),
    )

    rank: Mapped[Rank] = relationship(back_populates="salary_steps")
