"""
Vehicle Registry API Endpoints.

Managers register, edit, retire and delete vehicles; every role can read them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_capability, Capability
from backend.app.models.fleet_enums import VehicleType, VehicleStatus
from backend.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
from backend.app.services import resource_registry as registry
from backend.app.services.maintenance_coupling import toggle_retirement

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    vehicle_type: Optional[VehicleType] = Query(None, description="Filter by vehicle type"),
    status_filter: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    region: Optional[str] = Query(None, description="Filter by region"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    vehicles, total = await registry.list_vehicles(
        db, vehicle_type=vehicle_type, status=status_filter, region=region, page=page, page_size=page_size
    )
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_capability(Capability.VEHICLE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Register a vehicle. New vehicles start AVAILABLE."""
    vehicle = await registry.create_vehicle(db, vehicle_data)
    return VehicleResponse.model_validate(vehicle)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await registry.find_vehicle(db, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_capability(Capability.VEHICLE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Edit vehicle details. Status changes go through trips, maintenance or retire."""
    vehicle = await registry.update_vehicle(db, vehicle_id, vehicle_data)
    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}/retire", response_model=VehicleResponse)
async def toggle_vehicle_retirement(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_capability(Capability.VEHICLE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Retire a vehicle, or restore a retired one."""
    vehicle = await toggle_retirement(db, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_capability(Capability.VEHICLE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    await registry.delete_vehicle(db, vehicle_id)
