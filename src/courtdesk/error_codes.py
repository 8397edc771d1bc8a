"""Error codes for the court booking application."""

from enum import Enum

class ErrorCode(Enum):
    """Enumeration of all possible error codes."""
    # Booking Errors
    CONFLICT = "conflict"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    NOT_FOUND = "not_found"
    STALE_PLAN = "stale_plan"

    # Authorization Errors
    PERMISSION_DENIED = "permission_denied"

    # Data Errors
    VALIDATION_FAILED = "validation_failed"
    MISSING_DATA = "missing_data"

    # Configuration Errors
    CONFIG_INVALID = "config_invalid"
    CONFIG_MISSING = "config_missing"

    # Storage Errors
    STORE_READ_FAILED = "store_read_failed"
    STORE_WRITE_FAILED = "store_write_failed"

    # Service Errors
    SERVICE_ERROR = "service_error"
