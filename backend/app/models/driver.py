"""
Driver database model.
"""

from datetime import date, datetime, timezone

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.fleet_enums import VehicleType, DriverStatus


def license_has_expired(license_expiry: date, today: date = None) -> bool:
    """A license lapses at the start of its expiry date."""
    today = today or datetime.now(timezone.utc).date()
    return today >= license_expiry


class Driver(Base):
    """
    Driver model.

    `trip_count` and `completed_trips` only ever grow and are written
    exclusively through driver counter events.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Profile
    name = Column(String(100), nullable=False)
    phone = Column(String(32), nullable=True)

    # License
    license_number = Column(String(64), unique=True, nullable=False, index=True)
    license_expiry = Column(Date, nullable=False)
    license_category = Column(Enum(VehicleType), nullable=False)

    # Duty and safety
    status = Column(Enum(DriverStatus), default=DriverStatus.OFF_DUTY, nullable=False, index=True)
    safety_score = Column(Float, default=100, nullable=False)

    # Counters
    trip_count = Column(Integer, default=0, nullable=False)
    completed_trips = Column(Integer, default=0, nullable=False)

    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_license_expired(self) -> bool:
        return license_has_expired(self.license_expiry)

    def __repr__(self):
        return f"<Driver(id={self.id}, license='{self.license_number}', status='{self.status.value}')>"
