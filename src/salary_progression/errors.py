"""Error taxonomy for salary progression operations.

Every expected failure surfaces as a subclass of SalaryProgressionError with a
stable ``code`` and a human-readable message. Single-item operations raise
these directly; batch operations capture them per item.
"""

from __future__ import annotations

from uuid import UUID


class SalaryProgressionError(Exception):
    """Base class for all engine errors."""

    code: str = "SALARY_PROGRESSION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(SalaryProgressionError):
    """An employee, rank, eligibility record or tenant does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: UUID | str | None, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message or f"{entity_type} {entity_id} not found")


class InvalidStateError(SalaryProgressionError):
    """A record is not in the state an operation requires."""

    code = "INVALID_STATE"


class InvalidInputError(SalaryProgressionError):
    """A required field is missing or a step value is not acceptable."""

    code = "INVALID_INPUT"


class ScheduleGapError(SalaryProgressionError):
    """A computed step has no salary table entry."""

    code = "SCHEDULE_GAP"


class StepNotFoundError(ScheduleGapError):
    """Raised when a rank has no salary amount for a step."""

    def __init__(self, rank_id: UUID | str, step_number: int):
        self.rank_id = rank_id
        self.step_number = step_number
        super().__init__(f"Salary step {step_number} not found for rank {rank_id}")


class ConcurrentModificationError(SalaryProgressionError):
    """The employee row changed between read and write."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, employee_id: UUID, expected_version: int):
        self.employee_id = employee_id
        self.expected_version = expected_version
        super().__init__(
            f"Employee {employee_id} was modified concurrently "
            f"(expected version {expected_version}); retry the operation"
        )


class ImmutabilityViolationError(SalaryProgressionError):
    """Attempted to modify or delete an append-only record."""

    code = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: UUID | str | None, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Immutability violation on {entity_type} {entity_id}: {reason}")
