"""
Analytics Service.

Aggregates fleet KPIs, per-vehicle cost and ROI, and driver stats.
Focused on READ-ONLY operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Dict, List, Optional

from backend.app.core.rounding import round_half_up
from backend.app.models.driver import Driver
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus, VehicleType
from backend.app.models.fuel_log import FuelLog
from backend.app.models.maintenance_log import MaintenanceLog
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.analytics import DashboardKPIs, VehicleCostReport, DriverStats
from backend.app.services import resource_registry as registry


def utilization_rate(total: int, active: int, in_shop: int, retired: int) -> int:
    """Percentage of usable vehicles currently on a trip."""
    available = total - in_shop - retired
    if available <= 0:
        return 0
    return round_half_up(active / (available + active) * 100)


def completion_rate(completed_trips: int, trip_count: int) -> int:
    if not trip_count:
        return 0
    return round_half_up(completed_trips / trip_count * 100)


def fuel_efficiency(distance: float, liters: float) -> float:
    if not liters:
        return 0.0
    return round_half_up(distance / liters, 2)


def roi(revenue: float, operational_cost: float, acquisition_cost: float) -> float:
    if not acquisition_cost:
        return 0.0
    return round_half_up((revenue - operational_cost) / acquisition_cost * 100, 2)


async def _sum_by_vehicle(db: AsyncSession, column, *where) -> Dict[int, float]:
    """Map vehicle_id -> SUM(column) for the rows matching `where`."""
    model = column.class_
    query = select(model.vehicle_id, func.coalesce(func.sum(column), 0)).where(*where).group_by(model.vehicle_id)
    rows = (await db.execute(query)).all()
    return {vehicle_id: float(total) for vehicle_id, total in rows}


class AnalyticsService:

    @staticmethod
    async def get_dashboard(
        db: AsyncSession,
        vehicle_type: Optional[VehicleType] = None,
        status: Optional[VehicleStatus] = None,
    ) -> DashboardKPIs:
        """Fleet-wide KPIs, optionally narrowed to one vehicle type and/or status."""

        type_filter = [Vehicle.vehicle_type == vehicle_type] if vehicle_type else []

        async def count_vehicles(*where) -> int:
            return (await db.execute(select(func.count(Vehicle.id)).where(*type_filter, *where))).scalar() or 0

        async def count_in_status(vehicle_status: VehicleStatus) -> int:
            # An explicit status filter for another status zeroes this bucket
            if status and status != vehicle_status:
                return 0
            return await count_vehicles(Vehicle.status == vehicle_status)

        total = await count_vehicles(*([Vehicle.status == status] if status else []))
        active = await count_in_status(VehicleStatus.ON_TRIP)
        in_shop = await count_in_status(VehicleStatus.IN_SHOP)
        retired = await count_in_status(VehicleStatus.RETIRED)

        # Draft trips waiting on a matching vehicle
        pending_query = select(func.count(Trip.id)).join(Vehicle, Trip.vehicle_id == Vehicle.id).where(
            Trip.status == TripStatus.DRAFT, *type_filter
        )
        if status:
            pending_query = pending_query.where(Vehicle.status == status)
        pending_cargo = (await db.execute(pending_query)).scalar() or 0

        total_drivers = (await db.execute(select(func.count(Driver.id)))).scalar() or 0
        suspended_drivers = (await db.execute(
            select(func.count(Driver.id)).where(Driver.status == DriverStatus.SUSPENDED)
        )).scalar() or 0

        return DashboardKPIs(
            total_vehicles=total,
            active_fleet=active,
            maintenance_alerts=in_shop,
            retired_vehicles=retired,
            available_vehicles=total - in_shop - retired,
            utilization_rate=utilization_rate(total, active, in_shop, retired),
            pending_cargo=pending_cargo,
            total_drivers=total_drivers,
            suspended_drivers=suspended_drivers,
        )

    @staticmethod
    async def get_vehicle_costs(db: AsyncSession) -> List[VehicleCostReport]:
        """Cost, efficiency and ROI breakdown for every vehicle."""
        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.id))).scalars().all()
        return await AnalyticsService._build_cost_reports(db, vehicles)

    @staticmethod
    async def get_vehicle_cost(db: AsyncSession, vehicle_id: int) -> VehicleCostReport:
        vehicle = await registry.find_vehicle(db, vehicle_id)
        reports = await AnalyticsService._build_cost_reports(db, [vehicle], vehicle_id)
        return reports[0]

    @staticmethod
    async def _build_cost_reports(
        db: AsyncSession, vehicles, vehicle_id: Optional[int] = None
    ) -> List[VehicleCostReport]:
        def scoped(model):
            return [model.vehicle_id == vehicle_id] if vehicle_id else []

        fuel_cost = await _sum_by_vehicle(db, FuelLog.total_cost, *scoped(FuelLog))
        liters = await _sum_by_vehicle(db, FuelLog.liters, *scoped(FuelLog))
        maintenance_cost = await _sum_by_vehicle(db, MaintenanceLog.cost, *scoped(MaintenanceLog))
        completed = [Trip.status == TripStatus.COMPLETED, *scoped(Trip)]
        distance = await _sum_by_vehicle(db, Trip.distance, *completed)
        revenue = await _sum_by_vehicle(db, Trip.revenue, *completed)

        reports = []
        for vehicle in vehicles:
            fuel = fuel_cost.get(vehicle.id, 0.0)
            maintenance = maintenance_cost.get(vehicle.id, 0.0)
            operational = fuel + maintenance
            vehicle_distance = distance.get(vehicle.id, 0.0)
            vehicle_liters = liters.get(vehicle.id, 0.0)
            vehicle_revenue = revenue.get(vehicle.id, 0.0)

            reports.append(VehicleCostReport(
                vehicle_id=vehicle.id,
                name=vehicle.name,
                license_plate=vehicle.license_plate,
                vehicle_type=vehicle.vehicle_type,
                status=vehicle.status,
                acquisition_cost=vehicle.acquisition_cost,
                fuel_cost=round_half_up(fuel, 2),
                total_liters=round_half_up(vehicle_liters, 2),
                maintenance_cost=round_half_up(maintenance, 2),
                total_operational_cost=round_half_up(operational, 2),
                total_distance=round_half_up(vehicle_distance, 2),
                total_revenue=round_half_up(vehicle_revenue, 2),
                fuel_efficiency=fuel_efficiency(vehicle_distance, vehicle_liters),
                roi=roi(vehicle_revenue, operational, vehicle.acquisition_cost),
            ))
        return reports

    @staticmethod
    async def get_driver_stats(db: AsyncSession) -> List[DriverStats]:
        """Safety and completion stats for every driver."""
        drivers = (await db.execute(select(Driver).order_by(Driver.id))).scalars().all()
        return [
            DriverStats(
                driver_id=driver.id,
                name=driver.name,
                status=driver.status,
                license_expiry=driver.license_expiry,
                is_license_expired=driver.is_license_expired,
                safety_score=driver.safety_score,
                trip_count=driver.trip_count,
                completed_trips=driver.completed_trips,
                completion_rate=completion_rate(driver.completed_trips, driver.trip_count),
            )
            for driver in drivers
        ]
