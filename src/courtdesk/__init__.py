"""
Court reservation and billing desk.
"""

__version__ = '0.1.0'

from .exceptions import (
    BookingConflictError,
    ConfigError,
    CourtDeskError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ReservationNotFoundError,
    StoreError,
    ValidationError,
)

__all__ = [
    'BookingConflictError',
    'ConfigError',
    'CourtDeskError',
    'InvalidStateTransitionError',
    'PermissionDeniedError',
    'ReservationNotFoundError',
    'StoreError',
    'ValidationError',
]
