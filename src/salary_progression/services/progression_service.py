"""Salary progression processor.

Every mutating operation follows the same sequence inside one SAVEPOINT:

1. append a salary history entry
2. move the employee with a compare-and-swap on ``employee.version``
3. transition the affected eligibility records, conditional on PENDING

If any step fails the savepoint rolls back, so a lost race never leaves a
history entry without the employee change it describes. Batch operations
(approve_batch, mass_raise) run one savepoint per item and report per-item
failures instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from salary_progression.calculators import RankSchedule, SalaryCalculator
from salary_progression.errors import (
    ConcurrentModificationError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    SalaryProgressionError,
    ScheduleGapError,
)
from salary_progression.models import Employee, SalaryHistoryEntry, SalaryStepEligibility
from salary_progression.models.base import utcnow
from salary_progression.services.history_service import SalaryHistoryService
from salary_progression.services.rank_catalog import RankCatalog
from salary_progression.services.state_machine import (
    EligibilityStateMachine,
    EligibilityStatus,
    SalaryChangeType,
)

logger = logging.getLogger(__name__)

SKIP_NOT_HIGHER = "Target step not higher than current step"


class MassRaiseType(str, Enum):
    """How a mass raise picks each employee's new step."""

    INCREMENT_BY_STEPS = "INCREMENT_BY_STEPS"
    JUMP_TO_STEP = "JUMP_TO_STEP"


@dataclass(frozen=True)
class MassRaiseOptions:
    """Parameters for a mass raise.

    ``increment_steps`` applies to INCREMENT_BY_STEPS, ``target_step`` to
    JUMP_TO_STEP. ``org_unit_id`` limits the raise to one organizational unit.
    """

    increment_steps: int = 1
    target_step: int | None = None
    org_unit_id: UUID | None = None


@dataclass
class ProcessIncrementResult:
    """Outcome of approving one eligibility record inside a batch."""

    eligibility_id: UUID
    success: bool
    employee_id: UUID | None = None
    salary_history_id: UUID | None = None
    error: str | None = None
    error_code: str | None = None


@dataclass
class BatchApprovalResult:
    processed: int = 0
    failed: int = 0
    results: list[ProcessIncrementResult] = field(default_factory=list)


@dataclass
class MassRaiseEmployeeResult:
    """Per-employee row of a mass raise."""

    employee_id: UUID
    employee_number: str
    full_name: str
    success: bool
    skipped: bool = False
    from_step: int | None = None
    to_step: int | None = None
    from_salary: Decimal | None = None
    to_salary: Decimal | None = None
    salary_history_id: UUID | None = None
    skip_reason: str | None = None
    error: str | None = None


@dataclass
class MassRaiseResult:
    total_processed: int = 0
    success_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0
    results: list[MassRaiseEmployeeResult] = field(default_factory=list)


@dataclass(frozen=True)
class MassRaisePreviewRow:
    """What a mass raise would do to one employee."""

    employee_id: UUID
    employee_number: str
    full_name: str
    current_step: int
    new_step: int
    current_salary: Decimal
    new_salary: Decimal | None
    will_be_skipped: bool
    skip_reason: str | None = None
    will_fail: bool = False
    failure_reason: str | None = None

    @property
    def salary_increase(self) -> Decimal:
        if self.will_be_skipped or self.will_fail or self.new_salary is None:
            return Decimal("0")
        return self.new_salary - self.current_salary


@dataclass
class MassRaisePreview:
    rank_id: UUID
    rank_name: str
    raise_type: MassRaiseType
    rows: list[MassRaisePreviewRow] = field(default_factory=list)

    @property
    def total_employees(self) -> int:
        return len(self.rows)

    @property
    def affected_employees(self) -> int:
        return sum(1 for r in self.rows if not r.will_be_skipped and not r.will_fail)

    @property
    def skipped_employees(self) -> int:
        return sum(1 for r in self.rows if r.will_be_skipped)

    @property
    def failed_employees(self) -> int:
        return sum(1 for r in self.rows if r.will_fail)

    @property
    def total_salary_increase(self) -> Decimal:
        return sum((r.salary_increase for r in self.rows), Decimal("0"))


def _require_text(value: str | None, field_name: str) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(f"{field_name} is required")
    return value.strip()


class SalaryProgressionService:
    """Applies salary changes: step approvals, rejections, jumps, mass raises, promotions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rank_catalog = RankCatalog(session)
        self.history = SalaryHistoryService(session)

    # ------------------------------------------------------------------
    # Step increments
    # ------------------------------------------------------------------

    async def approve_one(
        self,
        tenant_id: UUID,
        eligibility_id: UUID,
        processed_by: str,
        effective_date: date | None = None,
        notes: str | None = None,
    ) -> SalaryHistoryEntry:
        """Approve a PENDING eligibility and apply the step increment.

        The effective date defaults to the eligibility date, so a late
        approval does not move later eligibility dates.

        Raises:
            NotFoundError: If the eligibility or its employee does not exist
            InvalidStateError: If the eligibility is not PENDING or no longer
                matches the employee's rank and step
            ConcurrentModificationError: If the employee changed concurrently
        """
        record = await self._load_eligibility(tenant_id, eligibility_id)
        EligibilityStateMachine.validate_transition(record.status, EligibilityStatus.APPROVED.value)

        employee = await self._load_employee(tenant_id, record.employee_id)
        if (
            employee.rank_id != record.rank_id
            or employee.current_salary_step >= record.next_step_number
        ):
            raise InvalidStateError(
                f"Eligibility {eligibility_id} no longer applies to employee "
                f"{employee.employee_number} (rank or step changed)"
            )

        schedule = await self.rank_catalog.get_schedule(record.rank_id)
        entry = await self._apply_salary_change(
            employee,
            expected_version=employee.version,
            schedule=schedule,
            change_type=SalaryChangeType.STEP_INCREMENT,
            to_step=record.next_step_number,
            from_salary=record.current_salary,
            to_salary=record.next_salary,
            effective_date=effective_date or record.eligibility_date,
            is_automatic=True,
            processed_by=processed_by,
            approved_by=processed_by,
            notes=notes,
            approve_eligibility=record,
        )
        logger.info(
            "Approved step increment for employee %s: step %d -> %d",
            employee.employee_number,
            entry.from_step,
            entry.to_step,
        )
        return entry

    async def approve_batch(
        self,
        tenant_id: UUID,
        eligibility_ids: list[UUID],
        processed_by: str,
        effective_date: date | None = None,
        notes: str | None = None,
    ) -> BatchApprovalResult:
        """Approve several eligibilities one by one; failures do not stop the batch."""
        batch = BatchApprovalResult()
        for eligibility_id in eligibility_ids:
            try:
                entry = await self.approve_one(
                    tenant_id, eligibility_id, processed_by, effective_date, notes
                )
            except SalaryProgressionError as exc:
                logger.warning("Batch approval of eligibility %s failed: %s", eligibility_id, exc)
                batch.failed += 1
                batch.results.append(
                    ProcessIncrementResult(
                        eligibility_id=eligibility_id,
                        success=False,
                        error=exc.message,
                        error_code=exc.code,
                    )
                )
            else:
                batch.processed += 1
                batch.results.append(
                    ProcessIncrementResult(
                        eligibility_id=eligibility_id,
                        success=True,
                        employee_id=entry.employee_id,
                        salary_history_id=entry.salary_history_id,
                    )
                )
        return batch

    async def reject(
        self,
        tenant_id: UUID,
        eligibility_id: UUID,
        reason: str,
        processed_by: str,
    ) -> SalaryStepEligibility:
        """Reject a PENDING eligibility. The employee is not touched.

        Raises:
            InvalidInputError: If the reason is blank
            NotFoundError: If the eligibility does not exist
            InvalidStateError: If the eligibility is not PENDING
        """
        reason = _require_text(reason, "Rejection reason")
        record = await self._load_eligibility(tenant_id, eligibility_id)
        EligibilityStateMachine.validate_transition(record.status, EligibilityStatus.REJECTED.value)

        async with self.session.begin_nested():
            await self._transition_eligibility(
                record,
                EligibilityStatus.REJECTED,
                processed_by=processed_by,
                rejection_reason=reason,
            )
        await self.session.refresh(record)
        logger.info("Rejected eligibility %s: %s", eligibility_id, reason)
        return record

    # ------------------------------------------------------------------
    # Manual jumps and mass raises
    # ------------------------------------------------------------------

    async def manual_jump(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        to_step: int,
        order_reference: str,
        reason: str,
        effective_date: date,
        processed_by: str,
        document_path: str | None = None,
        notes: str | None = None,
    ) -> SalaryHistoryEntry:
        """Move an employee directly to a higher step.

        Raises:
            NotFoundError: If the employee does not exist
            InvalidInputError: If a required field is blank, the employee has
                no rank, or ``to_step`` is out of range or not above the
                current step
            StepNotFoundError: If the rank has no table entry for ``to_step``
            ConcurrentModificationError: If the employee changed concurrently
        """
        order_reference = _require_text(order_reference, "Order reference")
        reason = _require_text(reason, "Reason")

        employee = await self._load_employee(tenant_id, employee_id)
        if employee.rank_id is None:
            raise InvalidInputError(f"Employee {employee.employee_number} has no rank assigned")

        schedule = await self.rank_catalog.get_schedule(employee.rank_id, tenant_id)
        if not SalaryCalculator.validate_step_number(to_step, schedule.max_step):
            raise InvalidInputError(
                f"Step {to_step} is outside 0..{schedule.max_step} for rank {schedule.code}"
            )
        if to_step <= employee.current_salary_step:
            raise InvalidInputError(
                f"Target step {to_step} must be higher than current step "
                f"{employee.current_salary_step}"
            )
        to_salary = SalaryCalculator.salary_for_step(schedule, to_step)

        entry = await self._apply_salary_change(
            employee,
            expected_version=employee.version,
            schedule=schedule,
            change_type=SalaryChangeType.MANUAL_JUMP,
            to_step=to_step,
            from_salary=(
                employee.current_salary
                if employee.current_salary is not None
                else schedule.base_salary
            ),
            to_salary=to_salary,
            effective_date=effective_date,
            is_automatic=False,
            processed_by=processed_by,
            approved_by=processed_by,
            reason=reason,
            order_reference=order_reference,
            document_path=document_path,
            notes=notes,
            expire_up_to_step=to_step,
        )
        logger.info(
            "Manual jump for employee %s: step %d -> %d (%s)",
            employee.employee_number,
            entry.from_step,
            to_step,
            order_reference,
        )
        return entry

    async def mass_raise(
        self,
        tenant_id: UUID,
        rank_id: UUID,
        raise_type: MassRaiseType,
        options: MassRaiseOptions,
        order_reference: str,
        reason: str,
        effective_date: date,
        processed_by: str,
        document_path: str | None = None,
        notes: str | None = None,
    ) -> MassRaiseResult:
        """Raise every active employee of a rank.

        Only scope-level problems raise (unknown rank, bad options, blank
        fields). Per-employee skips and failures are reported in the result.
        """
        order_reference = _require_text(order_reference, "Order reference")
        reason = _require_text(reason, "Reason")
        raise_type = MassRaiseType(raise_type)
        schedule = await self.rank_catalog.get_schedule(rank_id, tenant_id)
        self._validate_raise_options(raise_type, options)

        outcome = MassRaiseResult()
        for employee in await self._rank_members(tenant_id, rank_id, options):
            row = self._plan_raise(schedule, employee, raise_type, options)
            outcome.total_processed += 1
            result = MassRaiseEmployeeResult(
                employee_id=row.employee_id,
                employee_number=row.employee_number,
                full_name=row.full_name,
                success=False,
                from_step=row.current_step,
                to_step=row.new_step,
                from_salary=row.current_salary,
                to_salary=row.new_salary,
            )
            outcome.results.append(result)

            if row.will_be_skipped:
                result.skipped = True
                result.skip_reason = row.skip_reason
                outcome.skipped_count += 1
                continue
            if row.will_fail:
                result.error = row.failure_reason
                outcome.failure_count += 1
                continue

            try:
                entry = await self._apply_salary_change(
                    employee,
                    expected_version=employee.version,
                    schedule=schedule,
                    change_type=SalaryChangeType.MASS_RAISE,
                    to_step=row.new_step,
                    from_salary=row.current_salary,
                    to_salary=row.new_salary,
                    effective_date=effective_date,
                    is_automatic=False,
                    processed_by=processed_by,
                    approved_by=processed_by,
                    reason=reason,
                    order_reference=order_reference,
                    document_path=document_path,
                    notes=notes,
                    expire_up_to_step=row.new_step,
                )
            except SalaryProgressionError as exc:
                logger.warning(
                    "Mass raise failed for employee %s: %s", row.employee_number, exc
                )
                result.error = exc.message
                outcome.failure_count += 1
            else:
                result.success = True
                result.salary_history_id = entry.salary_history_id
                outcome.success_count += 1

        logger.info(
            "Mass raise %s on rank %s (%s): %d succeeded, %d failed, %d skipped",
            raise_type.value,
            schedule.code,
            order_reference,
            outcome.success_count,
            outcome.failure_count,
            outcome.skipped_count,
        )
        return outcome

    async def mass_raise_preview(
        self,
        tenant_id: UUID,
        rank_id: UUID,
        raise_type: MassRaiseType,
        options: MassRaiseOptions | None = None,
    ) -> MassRaisePreview:
        """Simulate a mass raise without writing anything.

        Raises:
            NotFoundError: If the rank does not exist
            InvalidInputError: If the options do not fit the raise type
        """
        raise_type = MassRaiseType(raise_type)
        options = options or MassRaiseOptions()
        schedule = await self.rank_catalog.get_schedule(rank_id, tenant_id)
        self._validate_raise_options(raise_type, options)

        preview = MassRaisePreview(rank_id=rank_id, rank_name=schedule.name, raise_type=raise_type)
        for employee in await self._rank_members(tenant_id, rank_id, options):
            preview.rows.append(self._plan_raise(schedule, employee, raise_type, options))
        return preview

    @staticmethod
    def _validate_raise_options(raise_type: MassRaiseType, options: MassRaiseOptions) -> None:
        """Scope-level checks only; a target step missing from the ladder fails per employee."""
        if raise_type == MassRaiseType.INCREMENT_BY_STEPS:
            if options.increment_steps < 1:
                raise InvalidInputError(
                    f"increment_steps must be at least 1 (got {options.increment_steps})"
                )
        elif options.target_step is None:
            raise InvalidInputError("target_step is required for JUMP_TO_STEP")
        elif options.target_step < 0:
            raise InvalidInputError(f"target_step must not be negative (got {options.target_step})")

    @staticmethod
    def _plan_raise(
        schedule: RankSchedule,
        employee: Employee,
        raise_type: MassRaiseType,
        options: MassRaiseOptions,
    ) -> MassRaisePreviewRow:
        current_step = employee.current_salary_step
        if raise_type == MassRaiseType.INCREMENT_BY_STEPS:
            new_step = min(current_step + options.increment_steps, schedule.max_step)
        else:
            new_step = options.target_step

        current_salary = (
            employee.current_salary
            if employee.current_salary is not None
            else schedule.base_salary
        )
        row = dict(
            employee_id=employee.employee_id,
            employee_number=employee.employee_number,
            full_name=employee.full_name,
            current_step=current_step,
            new_step=new_step,
            current_salary=current_salary,
        )

        if new_step <= current_step:
            return MassRaisePreviewRow(
                **row, new_salary=current_salary, will_be_skipped=True, skip_reason=SKIP_NOT_HIGHER
            )
        try:
            new_salary = SalaryCalculator.salary_for_step(schedule, new_step)
        except ScheduleGapError as exc:
            return MassRaisePreviewRow(
                **row,
                new_salary=None,
                will_be_skipped=False,
                will_fail=True,
                failure_reason=exc.message,
            )
        return MassRaisePreviewRow(**row, new_salary=new_salary, will_be_skipped=False)

    # ------------------------------------------------------------------
    # Promotion
    # ------------------------------------------------------------------

    async def promote(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        new_rank_id: UUID,
        effective_date: date,
        processed_by: str,
        order_reference: str | None = None,
        reason: str | None = None,
        document_path: str | None = None,
    ) -> SalaryHistoryEntry:
        """Move an employee into a new rank at the first step not below their salary.

        Every PENDING eligibility of the employee is expired.

        Raises:
            NotFoundError: If the employee or new rank does not exist
            InvalidInputError: If the employee has no rank or is already in
                the new rank
            StepNotFoundError: If the new rank has no salary steps
        """
        employee = await self._load_employee(tenant_id, employee_id)
        if employee.rank_id is None:
            raise InvalidInputError(f"Employee {employee.employee_number} has no rank assigned")
        if employee.rank_id == new_rank_id:
            raise InvalidInputError(
                f"Employee {employee.employee_number} already holds rank {new_rank_id}"
            )

        old_schedule = await self.rank_catalog.get_schedule(employee.rank_id, tenant_id)
        new_schedule = await self.rank_catalog.get_schedule(new_rank_id, tenant_id)
        current_salary = (
            employee.current_salary
            if employee.current_salary is not None
            else old_schedule.base_salary
        )
        placement = SalaryCalculator.promotion_step(old_schedule, new_schedule, current_salary)

        entry = await self._apply_salary_change(
            employee,
            expected_version=employee.version,
            schedule=new_schedule,
            change_type=SalaryChangeType.PROMOTION,
            to_step=placement.new_step,
            from_salary=current_salary,
            to_salary=placement.new_salary,
            effective_date=effective_date,
            is_automatic=False,
            processed_by=processed_by,
            approved_by=processed_by,
            reason=reason or placement.explanation,
            order_reference=order_reference,
            document_path=document_path,
            previous_rank_id=old_schedule.rank_id,
            expire_all=True,
        )
        logger.info(
            "Promoted employee %s from %s to %s at step %d",
            employee.employee_number,
            old_schedule.code,
            new_schedule.code,
            placement.new_step,
        )
        return entry

    # ------------------------------------------------------------------
    # Shared mutation path
    # ------------------------------------------------------------------

    async def _apply_salary_change(
        self,
        employee: Employee,
        *,
        expected_version: int,
        schedule: RankSchedule,
        change_type: SalaryChangeType,
        to_step: int,
        from_salary: Decimal,
        to_salary: Decimal,
        effective_date: date,
        is_automatic: bool,
        processed_by: str | None = None,
        approved_by: str | None = None,
        reason: str | None = None,
        order_reference: str | None = None,
        document_path: str | None = None,
        notes: str | None = None,
        previous_rank_id: UUID | None = None,
        approve_eligibility: SalaryStepEligibility | None = None,
        expire_up_to_step: int | None = None,
        expire_all: bool = False,
    ) -> SalaryHistoryEntry:
        """Write history, move the employee and settle eligibilities atomically.

        ``expected_version`` is the employee version the caller based its
        decision on; the employee UPDATE only matches that version. ``from_salary``
        is the resolved current salary (rank base salary when the employee has none).
        """
        employee_id = employee.employee_id
        from_step = employee.current_salary_step

        async with self.session.begin_nested():
            entry = await self.history.append_entry(
                tenant_id=employee.tenant_id,
                employee_id=employee_id,
                rank_id=schedule.rank_id,
                previous_rank_id=previous_rank_id,
                change_type=change_type,
                from_step=from_step,
                to_step=to_step,
                from_salary=from_salary,
                to_salary=to_salary,
                effective_date=effective_date,
                is_automatic=is_automatic,
                processed_by=processed_by,
                approved_by=approved_by,
                reason=reason,
                order_reference=order_reference,
                document_path=document_path,
                notes=notes,
            )

            result = await self.session.execute(
                update(Employee)
                .where(
                    Employee.employee_id == employee_id,
                    Employee.version == expected_version,
                )
                .values(
                    rank_id=schedule.rank_id,
                    current_salary_step=to_step,
                    current_salary=to_salary,
                    salary_effective_date=effective_date,
                    version=expected_version + 1,
                )
                .execution_options(synchronize_session="evaluate")
            )
            if result.rowcount != 1:
                raise ConcurrentModificationError(employee_id, expected_version)

            if approve_eligibility is not None:
                await self._transition_eligibility(
                    approve_eligibility,
                    EligibilityStatus.APPROVED,
                    processed_by=processed_by,
                    salary_history_id=entry.salary_history_id,
                )
            if expire_all or expire_up_to_step is not None:
                await self._expire_pending(employee_id, None if expire_all else expire_up_to_step)

        await self.session.refresh(employee)
        return entry

    async def _transition_eligibility(
        self,
        record: SalaryStepEligibility,
        to_status: EligibilityStatus,
        *,
        processed_by: str | None,
        rejection_reason: str | None = None,
        salary_history_id: UUID | None = None,
    ) -> None:
        now = utcnow()
        values = dict(
            status=to_status.value,
            processed_at=now,
            processed_by=processed_by,
            updated_at=now,
        )
        if rejection_reason is not None:
            values["rejection_reason"] = rejection_reason
        if salary_history_id is not None:
            values["salary_history_id"] = salary_history_id

        result = await self.session.execute(
            update(SalaryStepEligibility)
            .where(
                SalaryStepEligibility.eligibility_id == record.eligibility_id,
                SalaryStepEligibility.status == EligibilityStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise InvalidStateError(
                f"Eligibility {record.eligibility_id} is no longer PENDING"
            )

    async def _expire_pending(self, employee_id: UUID, up_to_step: int | None) -> int:
        """Expire PENDING eligibilities made moot; all of them when ``up_to_step`` is None."""
        now = utcnow()
        query = update(SalaryStepEligibility).where(
            SalaryStepEligibility.employee_id == employee_id,
            SalaryStepEligibility.status == EligibilityStatus.PENDING.value,
        )
        if up_to_step is not None:
            query = query.where(SalaryStepEligibility.next_step_number <= up_to_step)
        result = await self.session.execute(
            query.values(
                status=EligibilityStatus.EXPIRED.value,
                processed_at=now,
                updated_at=now,
            ).execution_options(synchronize_session="evaluate")
        )
        if result.rowcount:
            logger.info(
                "Expired %d pending eligibility record(s) for employee %s",
                result.rowcount,
                employee_id,
            )
        return result.rowcount

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _load_eligibility(
        self, tenant_id: UUID, eligibility_id: UUID
    ) -> SalaryStepEligibility:
        result = await self.session.execute(
            select(SalaryStepEligibility).where(
                SalaryStepEligibility.eligibility_id == eligibility_id,
                SalaryStepEligibility.tenant_id == tenant_id,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Eligibility", eligibility_id)
        return record

    async def _load_employee(self, tenant_id: UUID, employee_id: UUID) -> Employee:
        result = await self.session.execute(
            select(Employee).where(
                Employee.employee_id == employee_id,
                Employee.tenant_id == tenant_id,
            )
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def _rank_members(
        self, tenant_id: UUID, rank_id: UUID, options: MassRaiseOptions
    ) -> list[Employee]:
        query = select(Employee).where(
            Employee.tenant_id == tenant_id,
            Employee.rank_id == rank_id,
            Employee.status == "active",
        )
        if options.org_unit_id is not None:
            query = query.where(Employee.org_unit_id == options.org_unit_id)
        result = await self.session.execute(query.order_by(Employee.employee_number))
        return list(result.scalars().all())
