"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.fleet_enums import VehicleType, VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    license_plate: str = Field(..., min_length=1, max_length=32, description="Unique registration plate")
    vehicle_type: VehicleType
    max_capacity: float = Field(..., ge=0, description="Maximum cargo weight in kg")
    odometer: float = Field(0, ge=0, description="Current odometer reading in km")
    region: Optional[str] = Field(None, max_length=100)
    acquisition_cost: float = Field(0, ge=0)


class VehicleUpdate(BaseModel):
    """Schema for updating vehicle details. Status is not editable here."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=32)
    vehicle_type: Optional[VehicleType] = None
    max_capacity: Optional[float] = Field(None, ge=0)
    odometer: Optional[float] = Field(None, ge=0)
    region: Optional[str] = Field(None, max_length=100)
    acquisition_cost: Optional[float] = Field(None, ge=0)


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    name: str
    model: Optional[str]
    license_plate: str
    vehicle_type: VehicleType
    max_capacity: float
    odometer: float
    status: VehicleStatus
    region: Optional[str]
    acquisition_cost: float
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int
