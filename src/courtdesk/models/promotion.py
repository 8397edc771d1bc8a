"""Promotion rule model."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PromotionRule:
    """Named time-of-day window that overrides the base hourly rate."""
    id: str
    name: str
    start_time: float
    end_time: float
    rate: float
    is_active: bool = True

    def covers(self, instant: float) -> bool:
        """Whether ``instant`` falls inside the half-open window."""
        return self.start_time <= instant < self.end_time

    def overlaps(self, other: "PromotionRule") -> bool:
        return self.start_time < other.end_time and other.start_time < self.end_time

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'rate': self.rate,
            'isActive': self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PromotionRule":
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            start_time=float(data['startTime']),
            end_time=float(data['endTime']),
            rate=float(data['rate']),
            is_active=bool(data.get('isActive', True)),
        )

    @classmethod
    def from_config(cls, data: dict[str, Any], index: int = 0) -> "PromotionRule":
        """Build from a config.yaml entry (snake_case keys)."""
        return cls(
            id=str(data.get('id', f"promo-{index + 1}")),
            name=data.get('name', f"Promotion {index + 1}"),
            start_time=float(data['start_time']),
            end_time=float(data['end_time']),
            rate=float(data['rate']),
            is_active=bool(data.get('is_active', True)),
        )
