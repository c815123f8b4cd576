"""
Vehicle database model.

Vehicles are the contended resource claimed by dispatched trips.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.fleet_enums import VehicleType, VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    `status` reflects trip and maintenance activity and is only written through
    the resource registry. `version` increases on every guarded write.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    name = Column(String(100), nullable=False)
    model = Column(String(100), nullable=True)
    license_plate = Column(String(32), unique=True, nullable=False, index=True)
    vehicle_type = Column(Enum(VehicleType), nullable=False, index=True)

    # Capacity and usage
    max_capacity = Column(Float, nullable=False)  # kg
    odometer = Column(Float, default=0, nullable=False)  # km, never decreases
    region = Column(String(100), nullable=True, index=True)
    acquisition_cost = Column(Float, default=0, nullable=False)

    # Availability
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
