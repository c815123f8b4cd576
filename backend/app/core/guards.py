"""
Security guards for capability-based access control.

Each role maps to a set of capabilities; endpoints declare the capability
they need and never look at the role directly.
"""

import enum
from typing import Dict, FrozenSet
from fastapi import Depends
from backend.app.models.enums import UserRole
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError


class Capability(str, enum.Enum):
    FLEET_READ = "FLEET_READ"
    VEHICLE_MANAGE = "VEHICLE_MANAGE"
    DRIVER_MANAGE = "DRIVER_MANAGE"
    DRIVER_PROFILE = "DRIVER_PROFILE"
    TRIP_MANAGE = "TRIP_MANAGE"
    MAINTENANCE_MANAGE = "MAINTENANCE_MANAGE"
    FUEL_MANAGE = "FUEL_MANAGE"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.MANAGER: frozenset(Capability),
    UserRole.DISPATCHER: frozenset({Capability.FLEET_READ, Capability.TRIP_MANAGE}),
    UserRole.SAFETY_OFFICER: frozenset({Capability.FLEET_READ, Capability.DRIVER_PROFILE}),
    UserRole.FINANCIAL_ANALYST: frozenset({Capability.FLEET_READ, Capability.FUEL_MANAGE}),
}


def role_has_capability(role: UserRole, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def require_capability(capability: Capability):
    """
    Dependency factory for capability-based access control.

    Usage:
        @router.post("/vehicles")
        async def create_vehicle(
            current_user: dict = Depends(require_capability(Capability.VEHICLE_MANAGE))
        ):
            ...

    Raises:
        InsufficientPermissionsError 403 if the caller's role lacks the capability
    """
    async def capability_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise InsufficientPermissionsError("Role information missing from token")

        # Convert string role to UserRole enum
        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise InsufficientPermissionsError("Invalid role in token")

        if not role_has_capability(user_role, capability):
            raise InsufficientPermissionsError(
                f"Access denied. Required capability: {capability.value}",
                details={"role": user_role.value, "capability": capability.value},
            )

        return current_user

    return capability_checker
