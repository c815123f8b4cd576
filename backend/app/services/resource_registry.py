"""
Resource Registry.

Single source of truth for vehicle and driver availability. Every status
write is validated against the permitted enum values and persisted through
a version-checked update.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    ConflictError, DomainValidationError, ResourceNotFoundError
)
from backend.app.db.guarded_update import guarded_update
from backend.app.models.driver import Driver
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.models.fuel_log import FuelLog
from backend.app.models.maintenance_log import MaintenanceLog
from backend.app.models.trip import Trip
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.driver import DriverCreate, DriverUpdate
from backend.app.schemas.vehicle import VehicleCreate, VehicleUpdate
from backend.app.services.claim_locks import claim_locks, driver_key, vehicle_key

logger = logging.getLogger(__name__)


def _coerce(enum_cls, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        raise DomainValidationError(
            f"Invalid {enum_cls.__name__} value: {value}",
            details={"allowed": [member.value for member in enum_cls], "value": str(value)},
        )


# --- Lookups ---

async def find_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    """Load the current vehicle row, bypassing stale identity-map state."""
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == vehicle_id).execution_options(populate_existing=True)
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def find_driver(db: AsyncSession, driver_id: int) -> Driver:
    """Load the current driver row, bypassing stale identity-map state."""
    result = await db.execute(
        select(Driver).where(Driver.id == driver_id).execution_options(populate_existing=True)
    )
    driver = result.scalar_one_or_none()
    if not driver:
        raise ResourceNotFoundError("Driver", driver_id)
    return driver


# --- Status writes ---

async def set_vehicle_status(
    db: AsyncSession,
    vehicle: Vehicle,
    new_status: Any,
    expected_status: Optional[VehicleStatus] = None,
    **values: Any,
) -> Vehicle:
    """Persist a vehicle status change (plus optional extra columns) if the row is unchanged."""
    status = _coerce(VehicleStatus, new_status)
    previous = vehicle.status
    await guarded_update(db, vehicle, {"status": status, **values}, expected_status=expected_status)
    logger.info("Vehicle %s status %s -> %s", vehicle.id, previous.value, status.value)
    return vehicle


async def set_driver_status(
    db: AsyncSession,
    driver: Driver,
    new_status: Any,
    expected_status: Optional[DriverStatus] = None,
) -> Driver:
    """Persist a driver status change if the row is unchanged."""
    status = _coerce(DriverStatus, new_status)
    previous = driver.status
    await guarded_update(db, driver, {"status": status}, expected_status=expected_status)
    logger.info("Driver %s status %s -> %s", driver.id, previous.value, status.value)
    return driver


async def claim_vehicle(db: AsyncSession, vehicle: Vehicle) -> Vehicle:
    """AVAILABLE -> ON_TRIP."""
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise ConflictError(
            f"Vehicle is not available (status: {vehicle.status.value})",
            details={"vehicle_id": vehicle.id, "current_status": vehicle.status.value},
        )
    return await set_vehicle_status(
        db, vehicle, VehicleStatus.ON_TRIP, expected_status=VehicleStatus.AVAILABLE
    )


async def claim_driver(db: AsyncSession, driver: Driver) -> Driver:
    """Put the driver ON_DUTY unless another trip already holds them."""
    if driver.status == DriverStatus.ON_DUTY:
        raise ConflictError(
            "Driver is already On Duty on another trip",
            details={"driver_id": driver.id, "current_status": driver.status.value},
        )
    return await set_driver_status(db, driver, DriverStatus.ON_DUTY, expected_status=driver.status)


async def release_vehicle(db: AsyncSession, vehicle: Vehicle, odometer: Optional[float] = None) -> Vehicle:
    """
    Release a trip's claim on a vehicle.

    ON_TRIP becomes AVAILABLE. A vehicle moved to IN_SHOP or RETIRED while
    the trip ran keeps that status. The odometer only moves forward.
    """
    values = {}
    if odometer is not None and odometer > vehicle.odometer:
        values["odometer"] = odometer

    if vehicle.status == VehicleStatus.ON_TRIP:
        return await set_vehicle_status(
            db, vehicle, VehicleStatus.AVAILABLE, expected_status=VehicleStatus.ON_TRIP, **values
        )

    logger.warning(
        "Vehicle %s left in %s on trip release", vehicle.id, vehicle.status.value
    )
    if values:
        await guarded_update(db, vehicle, values, expected_status=vehicle.status)
    return vehicle


async def release_driver(db: AsyncSession, driver: Driver) -> Driver:
    """ON_DUTY becomes OFF_DUTY; a driver suspended mid-trip stays SUSPENDED."""
    if driver.status == DriverStatus.ON_DUTY:
        return await set_driver_status(
            db, driver, DriverStatus.OFF_DUTY, expected_status=DriverStatus.ON_DUTY
        )
    logger.warning("Driver %s left in %s on trip release", driver.id, driver.status.value)
    return driver


# --- Vehicle management ---

async def list_vehicles(
    db: AsyncSession,
    vehicle_type=None,
    status=None,
    region: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[Vehicle], int]:
    filters = []
    if vehicle_type:
        filters.append(Vehicle.vehicle_type == vehicle_type)
    if status:
        filters.append(Vehicle.status == status)
    if region:
        filters.append(Vehicle.region == region)

    total = (await db.execute(select(func.count(Vehicle.id)).where(*filters))).scalar()
    result = await db.execute(
        select(Vehicle).where(*filters)
        .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    )
    return result.scalars().all(), total


async def create_vehicle(db: AsyncSession, data: VehicleCreate) -> Vehicle:
    vehicle = Vehicle(
        name=data.name,
        model=data.model,
        license_plate=data.license_plate.strip().upper(),
        vehicle_type=data.vehicle_type,
        max_capacity=data.max_capacity,
        odometer=data.odometer,
        region=data.region,
        acquisition_cost=data.acquisition_cost,
        status=VehicleStatus.AVAILABLE,
    )
    db.add(vehicle)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            f"Vehicle with license plate {vehicle.license_plate} already exists",
            details={"license_plate": vehicle.license_plate},
        )
    await db.refresh(vehicle)
    logger.info("Vehicle %s registered (%s)", vehicle.id, vehicle.license_plate)
    return vehicle


async def update_vehicle(db: AsyncSession, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
    """Edit vehicle details. Status is never writable here."""
    async with claim_locks.hold(vehicle_key(vehicle_id)):
        try:
            vehicle = await find_vehicle(db, vehicle_id)
            values = data.model_dump(exclude_unset=True, exclude_none=True)

            if values.get("odometer") is not None and values["odometer"] < vehicle.odometer:
                raise DomainValidationError(
                    "Odometer cannot decrease",
                    details={"current_odometer": vehicle.odometer, "odometer": values["odometer"]},
                )
            if values.get("license_plate"):
                values["license_plate"] = values["license_plate"].strip().upper()

            if values:
                await guarded_update(db, vehicle, values)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("License plate already in use", details={"license_plate": values.get("license_plate")})
        except Exception:
            await db.rollback()
            raise
    return vehicle


async def delete_vehicle(db: AsyncSession, vehicle_id: int) -> None:
    """Delete a vehicle that nothing references; otherwise it should be retired."""
    async with claim_locks.hold(vehicle_key(vehicle_id)):
        try:
            vehicle = await find_vehicle(db, vehicle_id)
            references = 0
            for model in (Trip, MaintenanceLog, FuelLog):
                references += (await db.execute(
                    select(func.count(model.id)).where(model.vehicle_id == vehicle_id)
                )).scalar()
            if references:
                raise ConflictError(
                    "Vehicle has trip or service history; retire it instead",
                    details={"vehicle_id": vehicle_id, "references": references},
                )
            await db.delete(vehicle)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    logger.info("Vehicle %s deleted", vehicle_id)


# --- Driver management ---

async def list_drivers(
    db: AsyncSession,
    status=None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[Driver], int]:
    filters = []
    if status:
        filters.append(Driver.status == status)

    total = (await db.execute(select(func.count(Driver.id)).where(*filters))).scalar()
    result = await db.execute(
        select(Driver).where(*filters)
        .order_by(Driver.created_at.desc(), Driver.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    )
    return result.scalars().all(), total


async def create_driver(db: AsyncSession, data: DriverCreate) -> Driver:
    driver = Driver(
        name=data.name,
        phone=data.phone,
        license_number=data.license_number.strip(),
        license_expiry=data.license_expiry,
        license_category=data.license_category,
        safety_score=data.safety_score,
        status=DriverStatus.OFF_DUTY,
    )
    db.add(driver)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            f"Driver with license number {driver.license_number} already exists",
            details={"license_number": driver.license_number},
        )
    await db.refresh(driver)
    logger.info("Driver %s registered", driver.id)
    return driver


async def update_driver(db: AsyncSession, driver_id: int, data: DriverUpdate) -> Driver:
    """Edit the driver profile. Status and counters are never writable here."""
    async with claim_locks.hold(driver_key(driver_id)):
        try:
            driver = await find_driver(db, driver_id)
            values = data.model_dump(exclude_unset=True, exclude_none=True)
            if values:
                await guarded_update(db, driver, values)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("License number already in use", details={"license_number": values.get("license_number")})
        except Exception:
            await db.rollback()
            raise
    return driver


async def change_driver_status(db: AsyncSession, driver_id: int, new_status: Any) -> Driver:
    """Manual duty-status change by a manager or safety officer."""
    async with claim_locks.hold(driver_key(driver_id)):
        try:
            driver = await find_driver(db, driver_id)
            await set_driver_status(db, driver, new_status, expected_status=driver.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    return driver


async def delete_driver(db: AsyncSession, driver_id: int) -> None:
    async with claim_locks.hold(driver_key(driver_id)):
        try:
            driver = await find_driver(db, driver_id)
            trips = (await db.execute(
                select(func.count(Trip.id)).where(Trip.driver_id == driver_id)
            )).scalar()
            if trips:
                raise ConflictError(
                    "Driver has trip history and cannot be deleted",
                    details={"driver_id": driver_id, "trips": trips},
                )
            await db.delete(driver)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    logger.info("Driver %s deleted", driver_id)
