"""
Fleet-related enumerations (vehicles, drivers, maintenance).
"""

import enum


class VehicleType(str, enum.Enum):
    """Vehicle body type. Also used as the driver license category."""
    TRUCK = "TRUCK"
    VAN = "VAN"
    CAR = "CAR"
    BIKE = "BIKE"


class VehicleStatus(str, enum.Enum):
    """Vehicle availability status."""
    AVAILABLE = "AVAILABLE"  # Free to be claimed by a trip
    ON_TRIP = "ON_TRIP"  # Claimed by a dispatched trip
    IN_SHOP = "IN_SHOP"  # Has at least one unresolved maintenance log
    RETIRED = "RETIRED"  # Taken out of service by a manager


class DriverStatus(str, enum.Enum):
    """Driver duty status."""
    ON_DUTY = "ON_DUTY"  # Claimed by a dispatched trip
    OFF_DUTY = "OFF_DUTY"
    SUSPENDED = "SUSPENDED"


class ServiceType(str, enum.Enum):
    """Maintenance service type."""
    OIL_CHANGE = "OIL_CHANGE"
    TIRE_REPLACEMENT = "TIRE_REPLACEMENT"
    BRAKE_SERVICE = "BRAKE_SERVICE"
    ENGINE_REPAIR = "ENGINE_REPAIR"
    ELECTRICAL = "ELECTRICAL"
    BODY_WORK = "BODY_WORK"
    INSPECTION = "INSPECTION"
    OTHER = "OTHER"
