"""
Fuel Log API Endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_capability, Capability
from backend.app.schemas.fuel_log import FuelLogCreate, FuelLogUpdate, FuelLogResponse, FuelLogListResponse
from backend.app.services import fuel_logs

router = APIRouter(prefix="/fuel", tags=["Fuel"])


@router.get("", response_model=FuelLogListResponse)
async def list_fuel_logs(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    trip_id: Optional[int] = Query(None, description="Filter by trip"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    logs, total = await fuel_logs.list_fuel_logs(
        db, vehicle_id=vehicle_id, trip_id=trip_id, page=page, page_size=page_size
    )
    return FuelLogListResponse(
        logs=[FuelLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("", response_model=FuelLogResponse, status_code=status.HTTP_201_CREATED)
async def create_fuel_log(
    log_data: FuelLogCreate,
    current_user: dict = Depends(require_capability(Capability.FUEL_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Record a fuel purchase. total_cost = liters * cost_per_liter."""
    log = await fuel_logs.create_fuel_log(db, log_data)
    return FuelLogResponse.model_validate(log)


@router.get("/{log_id}", response_model=FuelLogResponse)
async def get_fuel_log(
    log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    log = await fuel_logs.get_fuel_log(db, log_id)
    return FuelLogResponse.model_validate(log)


@router.put("/{log_id}", response_model=FuelLogResponse)
async def update_fuel_log(
    log_data: FuelLogUpdate,
    log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_capability(Capability.FUEL_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    log = await fuel_logs.update_fuel_log(db, log_id, log_data)
    return FuelLogResponse.model_validate(log)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fuel_log(
    log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_capability(Capability.FUEL_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    await fuel_logs.delete_fuel_log(db, log_id)
