"""
Trip Lifecycle API Endpoints.

Dispatchers and managers draft trips and move them through
dispatch, completion and cancellation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_capability, Capability
from backend.app.domain.dispatch.trip_state_machine import TripStateMachine
from backend.app.models.trip_enums import TripStatus
from backend.app.schemas.trip import TripCreate, TripComplete, TripResponse, TripListResponse

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=TripListResponse)
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status", description="Filter by trip status"),
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    driver_id: Optional[int] = Query(None, description="Filter by driver"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    trips, total = await TripStateMachine.list_trips(
        db, status=status_filter, vehicle_id=vehicle_id, driver_id=driver_id, page=page, page_size=page_size
    )
    return TripListResponse(
        trips=[TripResponse.model_validate(t) for t in trips],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(require_capability(Capability.TRIP_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Draft a trip. Nothing is claimed until dispatch."""
    trip = await TripStateMachine.create(db, trip_data)
    return TripResponse.model_validate(trip)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_capability(Capability.FLEET_READ)),
    db: AsyncSession = Depends(get_db)
):
    trip = await TripStateMachine.get_trip(db, trip_id)
    return TripResponse.model_validate(trip)


@router.patch("/{trip_id}/dispatch", response_model=TripResponse)
async def dispatch_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_capability(Capability.TRIP_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """DRAFT -> DISPATCHED. Claims the vehicle and the driver."""
    trip = await TripStateMachine.dispatch(db, trip_id)
    return TripResponse.model_validate(trip)


@router.patch("/{trip_id}/complete", response_model=TripResponse)
async def complete_trip(
    completion: TripComplete,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_capability(Capability.TRIP_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """DISPATCHED -> COMPLETED. Records distance and releases resources."""
    trip = await TripStateMachine.complete(db, trip_id, completion)
    return TripResponse.model_validate(trip)


@router.patch("/{trip_id}/cancel", response_model=TripResponse)
async def cancel_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_capability(Capability.TRIP_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    trip = await TripStateMachine.cancel(db, trip_id)
    return TripResponse.model_validate(trip)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_capability(Capability.TRIP_MANAGE)),
    db: AsyncSession = Depends(get_db)
):
    """Only DRAFT or CANCELLED trips can be deleted."""
    await TripStateMachine.delete(db, trip_id)
