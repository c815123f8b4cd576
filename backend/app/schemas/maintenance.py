"""
Maintenance log Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from typing import Optional, List
from backend.app.models.fleet_enums import ServiceType


class MaintenanceLogCreate(BaseModel):
    """Schema for opening a service record. The vehicle goes IN_SHOP."""
    vehicle_id: int
    service_type: ServiceType
    description: Optional[str] = None
    cost: float = Field(..., ge=0)
    date: Optional[date_type] = Field(None, description="Defaults to today")
    odometer: Optional[float] = Field(None, ge=0)
    technician_name: Optional[str] = Field(None, max_length=100)


class MaintenanceLogUpdate(BaseModel):
    """Schema for editing a service record."""
    service_type: Optional[ServiceType] = None
    description: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    date: Optional[date_type] = None
    odometer: Optional[float] = Field(None, ge=0)
    technician_name: Optional[str] = Field(None, max_length=100)
    is_resolved: Optional[bool] = None


class MaintenanceLogResponse(BaseModel):
    """Maintenance log response."""
    id: int
    vehicle_id: int
    service_type: ServiceType
    description: Optional[str]
    cost: float
    date: date_type
    odometer: Optional[float]
    technician_name: Optional[str]
    is_resolved: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MaintenanceLogListResponse(BaseModel):
    """Schema for paginated maintenance log list."""
    logs: List[MaintenanceLogResponse]
    total: int
    page: int
    page_size: int
