"""Logging filters and utilities."""

import logging
import uuid
from contextvars import ContextVar
from functools import wraps
from typing import Any


# Context variable for correlation ID
correlation_id: ContextVar[str] = ContextVar('correlation_id', default='')

class SensitiveDataFilter(logging.Filter):
    """Filter to mask customer contact data in logs."""

    def __init__(
        self,
        sensitive_fields: set[str] | None = None,
        mask_pattern: str = '***MASKED***',
        partial_mask: bool = False
    ):
        """Initialize filter.

        Args:
            sensitive_fields: Set of field names to mask
            mask_pattern: Replacement for masked values
            partial_mask: Keep the last four characters visible
        """
        super().__init__()
        self.sensitive_fields = {f.lower() for f in (sensitive_fields or {
            'password', 'token', 'api_key', 'secret', 'phone', 'phone_number'
        })}
        self.mask_pattern = mask_pattern
        self.partial_mask = partial_mask

    def _mask_value(self, value: Any) -> str:
        text = str(value)
        if self.partial_mask and len(text) > 4:
            return f"{self.mask_pattern}{text[-4:]}"
        return self.mask_pattern

    def _mask_sensitive_data(self, obj: Any) -> Any:
        """Recursively mask sensitive data in object."""
        if isinstance(obj, dict):
            return {
                k: self._mask_value(v) if k.lower() in self.sensitive_fields else self._mask_sensitive_data(v)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [self._mask_sensitive_data(item) for item in obj]
        return obj

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive data in log record."""
        if hasattr(record, 'extra_fields'):
            record.extra_fields = self._mask_sensitive_data(record.extra_fields)
        return True

def with_correlation_id(func):
    """Decorator to add correlation ID to logs."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not correlation_id.get():
            correlation_id.set(str(uuid.uuid4()))
        return func(*args, **kwargs)
    return wrapper

class CorrelationFilter(logging.Filter):
    """Filter to add correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record."""
        if not hasattr(record, 'extra_fields'):
            record.extra_fields = {}
        record.extra_fields['correlation_id'] = correlation_id.get()
        return True
