"""
Domain errors for the booking engine.

Every error carries a stable ``code`` and the HTTP status the API layer
renders it with. Only ``StorageUnavailableError`` is safe for a caller to
retry; business rule violations never are.
"""

from datetime import date
from typing import Iterable, List, Optional


class DomainError(Exception):
    """Base class for all booking engine errors."""

    http_status = 400
    retryable = False

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed or out-of-policy input (dates, stay length, capacity)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed from the current status."""

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            f"Cannot move reservation from '{current_status}' to '{target_status}'",
            field="status",
        )
        self.code = "INVALID_TRANSITION"
        self.current_status = current_status
        self.target_status = target_status


class ConflictError(DomainError):
    """One or more nights in the requested range are no longer free."""

    http_status = 409

    def __init__(self, message: str = "Some dates are no longer available",
                 dates: Optional[Iterable[date]] = None):
        super().__init__(message, code="DATE_CONFLICT")
        self.dates: List[date] = sorted(dates or [])


class NotFoundError(DomainError):
    """Unknown property, reservation, rate plan or add-on."""

    http_status = 404

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} not found: {identifier}", code="NOT_FOUND")
        self.entity = entity
        self.identifier = identifier


class AuthorizationError(DomainError):
    """Actor is not permitted to perform the requested operation."""

    http_status = 403

    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(message, code="FORBIDDEN")


class StorageUnavailableError(DomainError):
    """Transient storage failure (connectivity, lock timeout)."""

    http_status = 503
    retryable = True

    def __init__(self, message: str = "Storage temporarily unavailable"):
        super().__init__(message, code="STORAGE_UNAVAILABLE")
