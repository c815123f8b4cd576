"""
Maintenance log database model.

An unresolved log keeps its vehicle IN_SHOP (see services.maintenance_coupling).
"""

from sqlalchemy import Column, Integer, String, Float, Text, Boolean, Date, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.fleet_enums import ServiceType


class MaintenanceLog(Base):
    """Service record attached to a vehicle."""
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    service_type = Column(Enum(ServiceType), nullable=False)
    description = Column(Text, nullable=True)
    cost = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    odometer = Column(Float, nullable=True)
    technician_name = Column(String(100), nullable=True)

    is_resolved = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<MaintenanceLog(id={self.id}, vehicle_id={self.vehicle_id}, resolved={self.is_resolved})>"
