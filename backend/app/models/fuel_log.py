"""
Fuel log database model.

`total_cost` is derived from liters and cost per liter whenever the row is
inserted or updated.
"""

from sqlalchemy import Column, Integer, Float, Date, DateTime, ForeignKey, event
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.core.rounding import round_half_up


class FuelLog(Base):
    """Fuel purchase for a vehicle, optionally tied to a trip."""
    __tablename__ = "fuel_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=True, index=True)

    liters = Column(Float, nullable=False)
    cost_per_liter = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False, default=0)

    date = Column(Date, nullable=False)
    odometer = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def compute_total_cost(self) -> float:
        return round_half_up(self.liters * self.cost_per_liter, 2)

    def __repr__(self):
        return f"<FuelLog(id={self.id}, vehicle_id={self.vehicle_id}, total_cost={self.total_cost})>"


@event.listens_for(FuelLog, "before_insert")
@event.listens_for(FuelLog, "before_update")
def set_total_cost(mapper, connection, target: FuelLog):
    """Recompute total_cost on every save."""
    target.total_cost = target.compute_total_cost()
