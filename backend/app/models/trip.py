"""
Trip database model.

A trip references one vehicle and one driver. Only a DISPATCHED trip holds a
claim on them.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    Created as DRAFT, then DISPATCHED, then COMPLETED or CANCELLED.
    Vehicle and driver references never change after creation.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Resource references
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    # Cargo
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    cargo_weight = Column(Float, nullable=False)  # kg
    notes = Column(Text, nullable=True)

    # Status
    status = Column(Enum(TripStatus), default=TripStatus.DRAFT, nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)

    # Odometer and financials
    start_odometer = Column(Float, default=0, nullable=False)
    end_odometer = Column(Float, nullable=True)
    distance = Column(Float, default=0, nullable=False)
    revenue = Column(Float, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Trip(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
