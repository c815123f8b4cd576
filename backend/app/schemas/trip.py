"""
Trip Pydantic schemas.

Request bodies for each lifecycle operation and the trip response.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.trip_enums import TripStatus


class TripCreate(BaseModel):
    """Schema for proposing a Draft trip."""
    vehicle_id: int = Field(..., description="Vehicle to use")
    driver_id: int = Field(..., description="Driver to assign")
    cargo_weight: float = Field(..., ge=0, description="Cargo weight in kg")
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    start_odometer: Optional[float] = Field(None, ge=0, description="Defaults to the vehicle odometer")
    revenue: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class TripComplete(BaseModel):
    """Schema for completing a dispatched trip."""
    end_odometer: float = Field(..., ge=0, description="Odometer reading at arrival")
    revenue: Optional[float] = Field(None, ge=0)


class TripResponse(BaseModel):
    """Trip response."""
    id: int
    vehicle_id: int
    driver_id: int
    origin: str
    destination: str
    cargo_weight: float
    notes: Optional[str]
    status: TripStatus
    start_odometer: float
    end_odometer: Optional[float]
    distance: float
    revenue: float
    version: int
    created_at: datetime
    updated_at: datetime
    dispatched_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True


class TripListResponse(BaseModel):
    """Schema for paginated trip list."""
    trips: List[TripResponse]
    total: int
    page: int
    page_size: int
