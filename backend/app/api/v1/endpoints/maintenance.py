"""
Maintenance API Endpoints.

Opening a service record sends the vehicle to the shop; resolving the last
open record brings it back.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_capability, Capability
from backend.app.schemas.maintenance import (
    MaintenanceLogCreate, MaintenanceLogUpdate, MaintenanceLogResponse, MaintenanceLogListResponse
)
from backend.app.services import maintenance_coupling

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.get("", response_model=MaintenanceLogListResponse)
async def list_maintenance_logs(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    is_resolved: Optional[bool] = Query(None, description="Filter by resolution state"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    logs, total = await maintenance_coupling.list_logs(
        db, vehicle_id=vehicle_id, is_resolved=is_resolved, page=page, page_size=page_size
    )
    return MaintenanceLogListResponse(
        logs=[MaintenanceLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("", response_model=MaintenanceLogResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_log(
    log_data: MaintenanceLogCreate,
    current_user: dict = Depends(require_capability(Capability.MAINTENANCE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    log = await maintenance_coupling.create_log(db, log_data)
    return MaintenanceLogResponse.model_validate(log)


@router.get("/{log_id}", response_model=MaintenanceLogResponse)
async def get_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    log = await maintenance_coupling.get_log(db, log_id)
    return MaintenanceLogResponse.model_validate(log)


@router.put("/{log_id}", response_model=MaintenanceLogResponse)
async def update_maintenance_log(
    log_data: MaintenanceLogUpdate,
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_capability(Capability.MAINTENANCE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    log = await maintenance_coupling.update_log(db, log_id, log_data)
    return MaintenanceLogResponse.model_validate(log)


@router.patch("/{log_id}/resolve", response_model=MaintenanceLogResponse)
async def resolve_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_capability(Capability.MAINTENANCE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    log = await maintenance_coupling.resolve_log(db, log_id)
    return MaintenanceLogResponse.model_validate(log)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_capability(Capability.MAINTENANCE_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    await maintenance_coupling.delete_log(db, log_id)
