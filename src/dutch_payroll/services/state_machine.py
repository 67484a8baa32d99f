"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from dutch_payroll.errors import PayrollError, ValidationError


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "draft"
    REVIEWED = "reviewed"
    APPROVED = "approved"


def _value(status: str) -> str:
    return status.value if isinstance(status, Enum) else str(status)


class InvalidTransitionError(PayrollError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = _value(from_status)
        self.to_status = _value(to_status)
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - draft → reviewed
    - reviewed → approved
    - reviewed → draft (send back)

    Approved is terminal for ordinary status changes; only an explicit
    rollback returns a reviewed or approved run to draft.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.REVIEWED],
        PayrollRunStatus.REVIEWED: [PayrollRunStatus.APPROVED, PayrollRunStatus.DRAFT],
        PayrollRunStatus.APPROVED: [],
    }

    # Statuses a rollback may start from
    ROLLBACK_ALLOWED = {
        PayrollRunStatus.REVIEWED,
        PayrollRunStatus.APPROVED,
    }

    @staticmethod
    def parse_status(value: str) -> PayrollRunStatus:
        """Coerce a raw status string.

        Raises:
            ValidationError: If the value is not a known status.
        """
        try:
            return PayrollRunStatus(value)
        except ValueError:
            allowed = ", ".join(s.value for s in PayrollRunStatus)
            raise ValidationError(f"Unknown status {value!r} (expected one of {allowed})", field="status")

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if from_status == to_status:
            raise InvalidTransitionError(from_status, to_status, "run already has this status")
        if not cls.can_transition(from_status, to_status):
            reason = None
            if to_status == PayrollRunStatus.DRAFT and from_status in cls.ROLLBACK_ALLOWED:
                reason = "use rollback to return an approved run to draft"
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def can_rollback(cls, status: str) -> bool:
        return status in cls.ROLLBACK_ALLOWED

    @classmethod
    def validate_rollback(cls, status: str) -> None:
        if not cls.can_rollback(status):
            raise InvalidTransitionError(
                status, PayrollRunStatus.DRAFT.value, "only reviewed or approved runs can be rolled back"
            )

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
