"""
User and capability model for the court booking application.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Capability(str, Enum):
    """Actions an operator may be allowed to perform."""

    MANAGE_BOOKINGS = 'manage_bookings'        # Create, edit, cancel, delete
    VIEW_REPORTS = 'view_reports'
    MANAGE_PAYMENTS = 'manage_payments'        # Settlement, cash collection, refund
    BATCH_TOOLS = 'batch_tools'                # Batch amend, batch refund
    MANAGE_SETTINGS = 'manage_settings'
    SYSTEM_MAINTENANCE = 'system_maintenance'  # Wipe, re-index
    MANAGE_USERS = 'manage_users'


Authorizer = Callable[[Capability], bool]


@dataclass
class User:
    """Operator of the booking desk."""
    id: str
    username: str
    name: str
    role: str = 'user'
    permissions: list[Capability] = field(default_factory=list)
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def has_permission(self, capability: Capability) -> bool:
        """Admins hold every capability implicitly."""
        if not self.is_active:
            return False
        if self.is_admin:
            return True
        return capability in self.permissions

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "User":
        """
        Create User instance from the ``operator`` configuration block.

        Args:
            config: Operator configuration dictionary

        Returns:
            User instance

        Raises:
            ValueError: If a permission name is unknown
        """
        username = config.get('username', 'admin')
        try:
            permissions = [Capability(p) for p in config.get('permissions', [])]
        except ValueError as e:
            raise ValueError(f"Unknown permission for operator {username}: {e}") from e

        return cls(
            id=config.get('id', username),
            username=username,
            name=config.get('name', username),
            role=config.get('role', 'admin'),
            permissions=permissions,
            is_active=config.get('is_active', True)
        )


def allow_all(capability: Capability) -> bool:
    """Authorizer that grants everything."""
    return True


def authorizer_for(user: User | None) -> Authorizer:
    """Build an authorizer from the logged-in user; nobody logged in gets nothing."""
    def authorize(capability: Capability) -> bool:
        return user is not None and user.has_permission(capability)
    return authorize
