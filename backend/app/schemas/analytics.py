"""
Analytics Schemas.
"""

from pydantic import BaseModel
from datetime import date
from backend.app.models.fleet_enums import VehicleType, VehicleStatus, DriverStatus


class DashboardKPIs(BaseModel):
    """Fleet-wide KPIs for the dashboard."""
    total_vehicles: int
    active_fleet: int
    maintenance_alerts: int
    retired_vehicles: int
    available_vehicles: int
    utilization_rate: int
    pending_cargo: int
    total_drivers: int
    suspended_drivers: int


class VehicleCostReport(BaseModel):
    """Operational cost and return for one vehicle."""
    vehicle_id: int
    name: str
    license_plate: str
    vehicle_type: VehicleType
    status: VehicleStatus
    acquisition_cost: float
    fuel_cost: float
    total_liters: float
    maintenance_cost: float
    total_operational_cost: float
    total_distance: float
    total_revenue: float
    fuel_efficiency: float
    roi: float


class DriverStats(BaseModel):
    """Safety and completion stats for one driver."""
    driver_id: int
    name: str
    status: DriverStatus
    license_expiry: date
    is_license_expired: bool
    safety_score: float
    trip_count: int
    completed_trips: int
    completion_rate: int
