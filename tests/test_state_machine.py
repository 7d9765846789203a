"""Tests for the eligibility state machine."""

import pytest

from salary_progression.errors import InvalidStateError
from salary_progression.services.state_machine import (
    EligibilityStateMachine,
    EligibilityStatus,
    InvalidTransitionError,
)


class TestEligibilityStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """PENDING can move to any terminal status."""
        assert EligibilityStateMachine.can_transition("PENDING", "APPROVED") is True
        assert EligibilityStateMachine.can_transition("PENDING", "REJECTED") is True
        assert EligibilityStateMachine.can_transition("PENDING", "EXPIRED") is True

    def test_terminal_statuses_are_final(self):
        for status in ("APPROVED", "REJECTED", "EXPIRED"):
            assert EligibilityStateMachine.is_terminal(status) is True
            assert EligibilityStateMachine.get_next_statuses(status) == []
            for target in EligibilityStatus:
                assert EligibilityStateMachine.can_transition(status, target.value) is False

    def test_pending_is_not_terminal(self):
        assert EligibilityStateMachine.is_terminal("PENDING") is False

    def test_validate_transition_raises(self):
        """Invalid transitions raise an InvalidStateError subclass."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            EligibilityStateMachine.validate_transition("APPROVED", "REJECTED")

        assert isinstance(exc_info.value, InvalidStateError)
        assert exc_info.value.from_status == "APPROVED"
        assert exc_info.value.to_status == "REJECTED"
        assert "already been processed" in str(exc_info.value)
        assert exc_info.value.code == "INVALID_STATE"

    def test_validate_transition_accepts_enum_members(self):
        EligibilityStateMachine.validate_transition(
            EligibilityStatus.PENDING, EligibilityStatus.APPROVED
        )

    def test_unknown_status_cannot_transition(self):
        assert EligibilityStateMachine.can_transition("DRAFT", "APPROVED") is False
