"""
Driver Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List
from backend.app.models.fleet_enums import VehicleType, DriverStatus


class DriverCreate(BaseModel):
    """Schema for registering a driver."""
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    license_number: str = Field(..., min_length=1, max_length=64)
    license_expiry: date
    license_category: VehicleType
    safety_score: float = Field(100, ge=0, le=100)


class DriverUpdate(BaseModel):
    """Schema for profile updates. Status and trip counters are not editable here."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    license_number: Optional[str] = Field(None, min_length=1, max_length=64)
    license_expiry: Optional[date] = None
    license_category: Optional[VehicleType] = None
    safety_score: Optional[float] = Field(None, ge=0, le=100)


class DriverStatusUpdate(BaseModel):
    """Schema for a manual duty-status change."""
    status: DriverStatus


class DriverResponse(BaseModel):
    """Schema for driver response."""
    id: int
    name: str
    phone: Optional[str]
    license_number: str
    license_expiry: date
    license_category: VehicleType
    status: DriverStatus
    safety_score: float
    trip_count: int
    completed_trips: int
    is_license_expired: bool
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DriverListResponse(BaseModel):
    """Schema for paginated driver list."""
    drivers: List[DriverResponse]
    total: int
    page: int
    page_size: int
