"""
Fuel log Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from typing import Optional, List


class FuelLogCreate(BaseModel):
    """Schema for recording a fuel purchase."""
    vehicle_id: int
    trip_id: Optional[int] = None
    liters: float = Field(..., ge=0)
    cost_per_liter: float = Field(..., ge=0)
    date: Optional[date_type] = Field(None, description="Defaults to today")
    odometer: Optional[float] = Field(None, ge=0)


class FuelLogUpdate(BaseModel):
    """Schema for editing a fuel log. total_cost is recomputed on save."""
    trip_id: Optional[int] = None
    liters: Optional[float] = Field(None, ge=0)
    cost_per_liter: Optional[float] = Field(None, ge=0)
    date: Optional[date_type] = None
    odometer: Optional[float] = Field(None, ge=0)


class FuelLogResponse(BaseModel):
    """Fuel log response."""
    id: int
    vehicle_id: int
    trip_id: Optional[int]
    liters: float
    cost_per_liter: float
    total_cost: float
    date: date_type
    odometer: Optional[float]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FuelLogListResponse(BaseModel):
    """Schema for paginated fuel log list."""
    logs: List[FuelLogResponse]
    total: int
    page: int
    page_size: int
