"""Eligibility state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from salary_progression.errors import InvalidStateError


class EligibilityStatus(str, Enum):
    """Salary step eligibility status values."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class SalaryChangeType(str, Enum):
    """Reasons a salary history entry was written."""

    STEP_INCREMENT = "STEP_INCREMENT"
    MANUAL_JUMP = "MANUAL_JUMP"
    MASS_RAISE = "MASS_RAISE"
    PROMOTION = "PROMOTION"


class InvalidTransitionError(InvalidStateError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class EligibilityStateMachine:
    """State machine for salary step eligibility records.

    Allowed transitions:
    - PENDING → APPROVED (step increment applied)
    - PENDING → REJECTED (explicit rejection with reason)
    - PENDING → EXPIRED (superseded by jump, mass raise or promotion)

    APPROVED, REJECTED and EXPIRED are terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        EligibilityStatus.PENDING: [
            EligibilityStatus.APPROVED,
            EligibilityStatus.REJECTED,
            EligibilityStatus.EXPIRED,
        ],
        EligibilityStatus.APPROVED: [],
        EligibilityStatus.REJECTED: [],
        EligibilityStatus.EXPIRED: [],
    }

    # Statuses that block the scanner from creating another record
    OPEN_STATUSES = {EligibilityStatus.PENDING}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = None
            if cls.is_terminal(from_status):
                reason = "eligibility has already been processed"
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further transitions are possible."""
        return status in cls.VALID_TRANSITIONS and not cls.VALID_TRANSITIONS[status]

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
