"""Court model."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Court:
    """A bookable court. Purely a label; occupancy lives on reservations."""
    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Court":
        return cls(id=str(data['id']), name=str(data.get('name', data['id'])))


def court_label(courts: list[Court], court_id: str) -> str:
    """Display name for a court id; unknown ids show as-is."""
    for court in courts:
        if court.id == court_id:
            return court.name
    return court_id
