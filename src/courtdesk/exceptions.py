"""Centralized error definitions for the court booking application."""

import logging
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar

from courtdesk.config.error_aggregator import aggregate_error
from courtdesk.error_codes import ErrorCode

if TYPE_CHECKING:
    from courtdesk.models.reservation import Reservation


logger = logging.getLogger(__name__)

T = TypeVar('T')

@dataclass
class CourtDeskError(Exception):
    """Base exception for all court booking errors."""
    message: str
    code: ErrorCode
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Code: {self.code.value}, Details: {self.details})"
        return f"{self.message} (Code: {self.code.value})"

class ValidationError(CourtDeskError):
    """Validation error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, details)

class ConfigError(CourtDeskError):
    """Configuration error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, details)

class BookingConflictError(CourtDeskError):
    """A proposed interval overlaps a reservation that still blocks its slot."""
    def __init__(self, message: str, conflict: 'Reservation', details: dict[str, Any] | None = None):
        details = details or {}
        details["conflict_id"] = conflict.id
        super().__init__(message, ErrorCode.CONFLICT, details)
        self.conflict = conflict

class InvalidStateTransitionError(CourtDeskError):
    """Requested status change is not allowed from the current status."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.INVALID_STATE_TRANSITION, details)

class PermissionDeniedError(CourtDeskError):
    """Caller lacks the capability for the requested mutation."""
    def __init__(self, message: str, capability: str):
        super().__init__(message, ErrorCode.PERMISSION_DENIED, {"capability": capability})

class ReservationNotFoundError(CourtDeskError):
    """Reservation id does not exist in the store."""
    def __init__(self, reservation_id: str):
        super().__init__(
            f"Reservation {reservation_id} not found",
            ErrorCode.NOT_FOUND,
            {"reservation_id": reservation_id}
        )

class StoreError(CourtDeskError):
    """Persistence error."""
    def __init__(self, message: str, code: ErrorCode = ErrorCode.STORE_WRITE_FAILED, details: dict[str, Any] | None = None):
        super().__init__(message, code, details)

@contextmanager
def handle_errors(
    error_type: type[CourtDeskError],
    service: str,
    operation: str,
    fallback: Callable[[], T] | None = None
) -> Iterator[None]:
    """Handle errors in a context manager.

    Known errors are aggregated and re-raised unless a fallback is given;
    unexpected ones are logged with traceback first.

    Args:
        error_type: The error type to catch
        service: The service name
        operation: The operation name
        fallback: Optional fallback function to call if error occurs
    """
    try:
        yield
    except error_type as e:
        aggregate_error(str(e), service, e.__traceback__)

        if fallback:
            fallback()
            return
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error in {service}.{operation}: {e}",
            exc_info=True
        )
        aggregate_error(str(e), service, e.__traceback__)

        if fallback:
            fallback()
            return
        raise
