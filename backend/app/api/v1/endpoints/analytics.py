"""
Analytics API Endpoints.

Read-only dashboard data for all roles.
"""

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from backend.app.db.session import get_db
from backend.app.core.guards import require_capability, Capability
from backend.app.models.fleet_enums import VehicleType, VehicleStatus
from backend.app.services.analytics import AnalyticsService
from backend.app.schemas.analytics import DashboardKPIs, VehicleCostReport, DriverStats

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardKPIs)
async def get_dashboard(
    vehicle_type: Optional[VehicleType] = Query(None, description="Restrict to one vehicle type"),
    status_filter: Optional[VehicleStatus] = Query(None, alias="status", description="Restrict to one status"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    """Fleet KPIs: utilization, maintenance alerts, pending cargo."""
    return await AnalyticsService.get_dashboard(db, vehicle_type=vehicle_type, status=status_filter)


@router.get("/vehicle-costs", response_model=List[VehicleCostReport])
async def get_vehicle_costs(
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    """Fuel, maintenance, efficiency and ROI per vehicle."""
    return await AnalyticsService.get_vehicle_costs(db)


@router.get("/vehicle-costs/{vehicle_id}", response_model=VehicleCostReport)
async def get_vehicle_cost(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    return await AnalyticsService.get_vehicle_cost(db, vehicle_id)


@router.get("/driver-stats", response_model=List[DriverStats])
async def get_driver_stats(
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    """Completion rate and license state per driver."""
    return await AnalyticsService.get_driver_stats(db)
