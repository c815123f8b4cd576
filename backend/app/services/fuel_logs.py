"""
Fuel log service.

Records fuel purchases per vehicle, optionally tied to one of its trips.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import DomainValidationError, ResourceNotFoundError
from backend.app.models.fuel_log import FuelLog
from backend.app.models.trip import Trip
from backend.app.schemas.fuel_log import FuelLogCreate, FuelLogUpdate
from backend.app.services import resource_registry as registry

logger = logging.getLogger(__name__)

_REQUIRED_FUEL_FIELDS = {"liters", "cost_per_liter", "date"}


async def _check_trip_matches(db: AsyncSession, trip_id: int, vehicle_id: int) -> None:
    trip = (await db.execute(select(Trip).where(Trip.id == trip_id))).scalar_one_or_none()
    if not trip:
        raise DomainValidationError(
            f"Trip {trip_id} does not exist",
            details={"trip_id": trip_id},
        )
    if trip.vehicle_id != vehicle_id:
        raise DomainValidationError(
            "Trip does not belong to this vehicle",
            details={"trip_id": trip_id, "trip_vehicle_id": trip.vehicle_id, "vehicle_id": vehicle_id},
        )


async def get_fuel_log(db: AsyncSession, log_id: int) -> FuelLog:
    result = await db.execute(
        select(FuelLog).where(FuelLog.id == log_id).execution_options(populate_existing=True)
    )
    log = result.scalar_one_or_none()
    if not log:
        raise ResourceNotFoundError("Fuel log", log_id)
    return log


async def list_fuel_logs(
    db: AsyncSession,
    vehicle_id: Optional[int] = None,
    trip_id: Optional[int] = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[FuelLog], int]:
    filters = []
    if vehicle_id:
        filters.append(FuelLog.vehicle_id == vehicle_id)
    if trip_id:
        filters.append(FuelLog.trip_id == trip_id)

    total = (await db.execute(select(func.count(FuelLog.id)).where(*filters))).scalar()
    result = await db.execute(
        select(FuelLog).where(*filters)
        .order_by(FuelLog.date.desc(), FuelLog.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    )
    return result.scalars().all(), total


async def create_fuel_log(db: AsyncSession, data: FuelLogCreate) -> FuelLog:
    """
    Raises:
        ResourceNotFoundError: vehicle missing
        DomainValidationError: trip missing or bound to another vehicle
    """
    vehicle = await registry.find_vehicle(db, data.vehicle_id)
    if data.trip_id is not None:
        await _check_trip_matches(db, data.trip_id, vehicle.id)

    log = FuelLog(
        vehicle_id=vehicle.id,
        trip_id=data.trip_id,
        liters=data.liters,
        cost_per_liter=data.cost_per_liter,
        date=data.date or date.today(),
        odometer=data.odometer,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)

    logger.info("Fuel log %s recorded for vehicle %s (%.2f)", log.id, vehicle.id, log.total_cost)
    return log


async def update_fuel_log(db: AsyncSession, log_id: int, data: FuelLogUpdate) -> FuelLog:
    log = await get_fuel_log(db, log_id)
    values = data.model_dump(exclude_unset=True)

    if values.get("trip_id") is not None:
        await _check_trip_matches(db, values["trip_id"], log.vehicle_id)

    for field, value in values.items():
        if value is None and field in _REQUIRED_FUEL_FIELDS:
            continue
        setattr(log, field, value)

    await db.commit()
    await db.refresh(log)
    return log


async def delete_fuel_log(db: AsyncSession, log_id: int) -> None:
    log = await get_fuel_log(db, log_id)
    await db.delete(log)
    await db.commit()
    logger.info("Fuel log %s deleted", log_id)
