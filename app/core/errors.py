"""Domain error taxonomy.

Every error raised by the services derives from ``AppError`` and carries the
HTTP status and a short machine-checkable code. The HTTP layer turns them into
``{"message": ..., "code": ...}`` bodies; nothing else about the exception
reaches the client.
"""
from typing import Optional


class AppError(Exception):
    """Base class for expected application errors."""

    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or invalid fields, bad enum values, non-boolean flags."""

    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class InvalidStatusError(ValidationError):
    """Status value outside the order lifecycle."""

    code = "invalid_status"


class InvalidStatusTransitionError(ValidationError):
    """Status value is known but not reachable from the current one."""

    code = "invalid_status_transition"


class ReferenceNotFoundError(ValidationError):
    """A request body references a record that does not exist."""

    code = "reference_not_found"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ConflictError(AppError):
    """Duplicate value for a unique field."""

    status_code = 409
    code = "conflict"
    default_message = "Conflicting record"


class StoreError(AppError):
    """Connection, timeout or transaction failure in the database."""

    status_code = 500
    code = "store_error"
    default_message = "Database operation failed"


class DataIntegrityError(StoreError):
    """Stored data violates an invariant the service relies on."""

    code = "data_integrity_error"
