"""
Access Control module for PHI Guard.

Role-based access decisions for PHI. Roles missing from the matrix resolve
to the most restrictive defined role (PATIENT), never to "allow all".
Decisions are plain values; callers decide whether to log a denial.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Union

from phiguard.config.phi_fields import ENTITY_TYPES


class PHIAction(Enum):
    """Actions that can be taken on PHI."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class Role(Enum):
    """Roles recognized by the permission matrix."""

    ADMIN = "ADMIN"
    PROVIDER = "PROVIDER"
    CAREGIVER = "CAREGIVER"
    PATIENT = "PATIENT"


@dataclass(frozen=True)
class RolePermissions:
    """Entity types a role may read, write and delete."""

    can_read: FrozenSet[str] = frozenset()
    can_write: FrozenSet[str] = frozenset()
    can_delete: FrozenSet[str] = frozenset()

    def grants(self, action: PHIAction, entity_type: str) -> bool:
        """Check whether the action is explicitly granted."""
        if action is PHIAction.READ:
            return entity_type in self.can_read
        if action is PHIAction.WRITE:
            return entity_type in self.can_write
        return entity_type in self.can_delete


@dataclass(frozen=True)
class PermissionDecision:
    """Result of a permission check."""

    allowed: bool
    reason: Optional[str] = None


_ALL = frozenset(ENTITY_TYPES)

PERMISSION_MATRIX: Mapping[Role, RolePermissions] = MappingProxyType(
    {
        Role.ADMIN: RolePermissions(can_read=_ALL, can_write=_ALL, can_delete=_ALL),
        Role.PROVIDER: RolePermissions(
            can_read=frozenset({"Patient", "Booking"}),
            can_write=frozenset({"Patient", "Booking"}),
        ),
        Role.CAREGIVER: RolePermissions(
            can_read=frozenset({"Patient", "Booking"}),
            can_write=frozenset({"Booking"}),
        ),
        # Own records only; ownership is enforced by the caller
        Role.PATIENT: RolePermissions(
            can_read=frozenset({"Patient", "Booking"}),
            can_write=frozenset({"Patient"}),
        ),
    }
)

DEFAULT_ROLE = Role.PATIENT


def resolve_role(role: Union[Role, str, None]) -> Role:
    """Map a role name to a matrix role, defaulting to the most restrictive."""
    if isinstance(role, Role):
        return role
    if role:
        try:
            return Role(role.upper())
        except ValueError:
            pass
    return DEFAULT_ROLE


def check_permission(
    role: Union[Role, str, None],
    entity_type: str,
    action: Union[PHIAction, str],
    matrix: Mapping[Role, RolePermissions] = PERMISSION_MATRIX,
) -> PermissionDecision:
    """Check if a role may perform an action on an entity type's PHI.

    Args:
        role: Actor role name (unknown or missing roles are treated as PATIENT)
        entity_type: Entity type, e.g. "Patient"
        action: One of read, write, delete
        matrix: Permission matrix to consult

    Returns:
        Decision with a human-readable reason when denied
    """
    try:
        phi_action = action if isinstance(action, PHIAction) else PHIAction(action.lower())
    except ValueError:
        return PermissionDecision(
            allowed=False, reason=f"Unknown action '{action}' on {entity_type} PHI"
        )

    resolved = resolve_role(role)
    permissions = matrix.get(resolved, matrix[DEFAULT_ROLE])
    if not permissions.grants(phi_action, entity_type):
        return PermissionDecision(
            allowed=False,
            reason=f"Role {resolved.value} cannot {phi_action.value} {entity_type} PHI",
        )
    return PermissionDecision(allowed=True)
