"""
Driver Registry API Endpoints.

Managers create and delete drivers; managers and safety officers maintain
profiles and duty status.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_capability, Capability
from backend.app.models.fleet_enums import DriverStatus
from backend.app.schemas.driver import (
    DriverCreate, DriverUpdate, DriverStatusUpdate, DriverResponse, DriverListResponse
)
from backend.app.services import resource_registry as registry

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    status_filter: Optional[DriverStatus] = Query(None, alias="status", description="Filter by duty status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    drivers, total = await registry.list_drivers(db, status=status_filter, page=page, page_size=page_size)
    return DriverListResponse(
        drivers=[DriverResponse.model_validate(d) for d in drivers],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    current_user: dict = Depends(require_capability(Capability.DRIVER_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Register a driver. New drivers start OFF_DUTY with zeroed counters."""
    driver = await registry.create_driver(db, driver_data)
    return DriverResponse.model_validate(driver)


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    driver = await registry.find_driver(db, driver_id)
    return DriverResponse.model_validate(driver)


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: DriverUpdate,
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_capability(Capability.DRIVER_PROFILE)),
    db: AsyncSession = Depends(get_db)
):
    driver = await registry.update_driver(db, driver_id, driver_data)
    return DriverResponse.model_validate(driver)


@router.patch("/{driver_id}/status", response_model=DriverResponse)
async def change_driver_status(
    status_data: DriverStatusUpdate,
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_capability(Capability.DRIVER_PROFILE)),
    db: AsyncSession = Depends(get_db)
):
    """Set duty status directly (e.g. suspend a driver)."""
    driver = await registry.change_driver_status(db, driver_id, status_data.status)
    return DriverResponse.model_validate(driver)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_capability(Capability.DRIVER_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    await registry.delete_driver(db, driver_id)
