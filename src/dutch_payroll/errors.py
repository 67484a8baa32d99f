"""Error hierarchy for payroll operations."""

from __future__ import annotations


class PayrollError(Exception):
    """Base class for all payroll errors."""


class ValidationError(PayrollError):
    """Raised when an input is malformed or violates a business rule."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(PayrollError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class IntegrityError(PayrollError):
    """Raised when data fails an integrity check (e.g. IBAN checksum)."""

    def __init__(self, message: str, party: str | None = None):
        self.party = party
        super().__init__(message)


class PersistenceError(PayrollError):
    """Raised when the backing store cannot be read or written."""

    def __init__(self, path: str, operation: str, reason: str):
        self.path = path
        self.operation = operation
        self.reason = reason
        super().__init__(f"Failed to {operation} {path}: {reason}")


class ConcurrentModificationError(PayrollError):
    """Raised when the store changed between load and save."""

    def __init__(self, path: str, expected_version: str, actual_version: str):
        self.path = path
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"{path} was modified concurrently "
            f"(expected version {expected_version or '<empty>'}, found {actual_version or '<empty>'})"
        )
