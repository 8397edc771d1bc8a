"""Configuration validation utilities."""

import logging
from pathlib import Path
from typing import Any

from courtdesk.config.types import AppConfig
from courtdesk.models.promotion import PromotionRule
from courtdesk.services.pricing import find_overlapping_promotions
from courtdesk.utils.time_utils import is_half_hour

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Configuration validation error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}

def validate_directories(config: AppConfig) -> None:
    """Validate and create required directories."""
    Path(config.data_dir).mkdir(parents=True, exist_ok=True)

    if config.log_file:
        log_dir = Path(config.log_file).parent
        log_dir.mkdir(parents=True, exist_ok=True)

def validate_courts(courts: list[dict[str, Any]]) -> None:
    """Validate court definitions."""
    seen: set[str] = set()
    for court in courts:
        if not isinstance(court, dict) or not court.get('id'):
            raise ConfigValidationError("Court entry without id", {"court": court})
        if court['id'] in seen:
            raise ConfigValidationError(f"Duplicate court id {court['id']}", {"court_id": court['id']})
        seen.add(court['id'])

def validate_promotion(rule: dict[str, Any]) -> None:
    """Validate a single promotion window."""
    name = rule.get('name', rule.get('id', '?'))
    try:
        start = float(rule['start_time'])
        end = float(rule['end_time'])
        rate = float(rule['rate'])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigValidationError(
            f"Promotion {name} needs numeric start_time, end_time and rate",
            {"promotion": rule}
        ) from e

    if not (0 <= start < end <= 24):
        raise ConfigValidationError(
            f"Promotion {name} window must satisfy 0 <= start < end <= 24",
            {"start_time": start, "end_time": end}
        )
    if not (is_half_hour(start) and is_half_hour(end)):
        raise ConfigValidationError(
            f"Promotion {name} window must be aligned to half hours",
            {"start_time": start, "end_time": end}
        )
    if rate < 0:
        raise ConfigValidationError(f"Promotion {name} rate must not be negative", {"rate": rate})

def warn_on_overlapping_promotions(rules: list[PromotionRule]) -> list[tuple[PromotionRule, PromotionRule]]:
    """Log one warning per pair of active promotions whose windows overlap.

    The earlier rule in list order shadows the later one for the shared
    half-hours.
    """
    overlaps = find_overlapping_promotions(rules)
    for first, second in overlaps:
        logger.warning(
            f"Promotion '{second.name}' overlaps '{first.name}'; "
            f"'{first.name}' wins for the shared half-hours"
        )
    return overlaps

def validate_config(config: AppConfig) -> None:
    """
    Validate configuration.

    Args:
        config: AppConfig object to validate

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        if config.base_hourly_rate <= 0:
            raise ConfigValidationError(
                "base_hourly_rate must be positive",
                {"base_hourly_rate": config.base_hourly_rate}
            )

        validate_courts(list(config.courts))

        for rule in config.promotion_rules:
            validate_promotion(dict(rule))

        for key in ('receipt_next_number', 'voucher_next_number'):
            value = config.document_settings.get(key)
            if value is not None and (not isinstance(value, int) or value < 0):
                raise ConfigValidationError(
                    f"{key} must be a non-negative integer",
                    {key: value}
                )

        warn_on_overlapping_promotions([
            PromotionRule.from_config(rule, index)
            for index, rule in enumerate(config.promotion_rules)
        ])

        validate_directories(config)

    except ConfigValidationError:
        raise
    except Exception as e:
        raise ConfigValidationError(
            f"Unexpected error during configuration validation: {e!s}",
            {"error_type": type(e).__name__}
        ) from e
