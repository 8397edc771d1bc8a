"""Structured outcomes returned by booking engine entry points."""

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, TypeVar

from courtdesk.error_codes import ErrorCode
from courtdesk.exceptions import (
    BookingConflictError,
    CourtDeskError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from courtdesk.models.reservation import Reservation

F = TypeVar('F', bound=Callable[..., Any])

# Failures the operator can act on. Anything else (unknown ids, I/O) raises.
EXPECTED_ERRORS = (
    BookingConflictError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ValidationError,
)


@dataclass
class BookingResult:
    """Success flag plus whatever detail the caller needs to react."""
    success: bool
    error: str | None = None
    error_code: ErrorCode | None = None
    conflict: Reservation | None = None
    reservations: list[Reservation] = field(default_factory=list)
    receipt_number: str | None = None
    voucher_number: str | None = None
    count: int = 0

    @property
    def reservation(self) -> Reservation | None:
        return self.reservations[0] if self.reservations else None

    @classmethod
    def ok(cls, reservations: list[Reservation] | None = None, **kwargs: Any) -> "BookingResult":
        reservations = list(reservations or [])
        kwargs.setdefault('count', len(reservations))
        return cls(success=True, reservations=reservations, **kwargs)

    @classmethod
    def failed(
        cls,
        error: str,
        error_code: ErrorCode,
        conflict: Reservation | None = None
    ) -> "BookingResult":
        return cls(success=False, error=error, error_code=error_code, conflict=conflict)

    @classmethod
    def from_error(cls, exc: CourtDeskError) -> "BookingResult":
        return cls.failed(exc.message, exc.code, getattr(exc, 'conflict', None))


def reports_failures(operation: str) -> Callable[[F], F]:
    """Turn expected booking errors raised by a service method into a failed result.

    The decorated method's owner must provide the ``warning`` method of
    ``EnhancedLoggerMixin``.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> BookingResult:
            try:
                return func(self, *args, **kwargs)
            except EXPECTED_ERRORS as e:
                self.warning(f"{operation} rejected: {e.message}", code=e.code.value)
                return BookingResult.from_error(e)
        return wrapper  # type: ignore[return-value]
    return decorator
