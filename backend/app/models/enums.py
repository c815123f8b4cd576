"""
User roles enumeration.

Defines the role types for the fleet dispatch system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        MANAGER: Full access to fleet, drivers, trips, maintenance and fuel
        DISPATCHER: Creates and moves trips through their lifecycle
        SAFETY_OFFICER: Maintains driver profiles and duty status
        FINANCIAL_ANALYST: Records fuel expenses
    """
    MANAGER = "MANAGER"
    DISPATCHER = "DISPATCHER"
    SAFETY_OFFICER = "SAFETY_OFFICER"
    FINANCIAL_ANALYST = "FINANCIAL_ANALYST"
