"""
Maintenance Coupling Service.

Keeps vehicle status in step with service records: an unresolved log holds the
vehicle IN_SHOP. Once no unresolved log remains the vehicle goes back to
ON_TRIP if a dispatched trip still holds it, otherwise to AVAILABLE. Also owns
the manager's retire/restore toggle.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.models.fleet_enums import VehicleStatus
from backend.app.models.maintenance_log import MaintenanceLog
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.maintenance import MaintenanceLogCreate, MaintenanceLogUpdate
from backend.app.services import resource_registry as registry
from backend.app.services.claim_locks import claim_locks, vehicle_key

logger = logging.getLogger(__name__)

_REQUIRED_LOG_FIELDS = {"service_type", "cost", "date", "is_resolved"}


async def count_open_service_records(db: AsyncSession, vehicle_id: int) -> int:
    result = await db.execute(
        select(func.count(MaintenanceLog.id)).where(
            MaintenanceLog.vehicle_id == vehicle_id,
            MaintenanceLog.is_resolved.is_(False),
        )
    )
    return result.scalar() or 0


async def count_dispatched_trips(db: AsyncSession, vehicle_id: int) -> int:
    result = await db.execute(
        select(func.count(Trip.id)).where(
            Trip.vehicle_id == vehicle_id,
            Trip.status == TripStatus.DISPATCHED,
        )
    )
    return result.scalar() or 0


async def _back_in_service_status(db: AsyncSession, vehicle: Vehicle) -> VehicleStatus:
    # An open trip keeps its claim on the vehicle
    if await count_dispatched_trips(db, vehicle.id):
        return VehicleStatus.ON_TRIP
    return VehicleStatus.AVAILABLE


async def _send_to_shop(db: AsyncSession, vehicle: Vehicle) -> None:
    if vehicle.status == VehicleStatus.IN_SHOP:
        return
    if vehicle.status == VehicleStatus.ON_TRIP:
        logger.warning(
            "Vehicle %s sent to shop while on trip; it stays IN_SHOP when the trip ends",
            vehicle.id,
        )
    await registry.set_vehicle_status(db, vehicle, VehicleStatus.IN_SHOP, expected_status=vehicle.status)


async def recheck_vehicle(db: AsyncSession, vehicle: Vehicle) -> Vehicle:
    """IN_SHOP -> AVAILABLE (or back to ON_TRIP) when no unresolved service record is left."""
    if vehicle.status != VehicleStatus.IN_SHOP:
        return vehicle

    open_logs = await count_open_service_records(db, vehicle.id)
    if open_logs:
        logger.info("Vehicle %s stays IN_SHOP (%d open service records)", vehicle.id, open_logs)
        return vehicle

    target = await _back_in_service_status(db, vehicle)
    return await registry.set_vehicle_status(
        db, vehicle, target, expected_status=VehicleStatus.IN_SHOP
    )


async def _find_log(db: AsyncSession, log_id: int) -> MaintenanceLog:
    result = await db.execute(
        select(MaintenanceLog).where(MaintenanceLog.id == log_id).execution_options(populate_existing=True)
    )
    log = result.scalar_one_or_none()
    if not log:
        raise ResourceNotFoundError("Maintenance log", log_id)
    return log


# --- Reads ---

async def list_logs(
    db: AsyncSession,
    vehicle_id: Optional[int] = None,
    is_resolved: Optional[bool] = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[MaintenanceLog], int]:
    filters = []
    if vehicle_id:
        filters.append(MaintenanceLog.vehicle_id == vehicle_id)
    if is_resolved is not None:
        filters.append(MaintenanceLog.is_resolved.is_(is_resolved))

    total = (await db.execute(select(func.count(MaintenanceLog.id)).where(*filters))).scalar()
    result = await db.execute(
        select(MaintenanceLog).where(*filters)
        .order_by(MaintenanceLog.date.desc(), MaintenanceLog.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    )
    return result.scalars().all(), total


async def get_log(db: AsyncSession, log_id: int) -> MaintenanceLog:
    return await _find_log(db, log_id)


# --- Writes ---

async def create_log(db: AsyncSession, data: MaintenanceLogCreate) -> MaintenanceLog:
    """
    Open a service record and put the vehicle IN_SHOP.

    Raises:
        ResourceNotFoundError: vehicle missing
    """
    await registry.find_vehicle(db, data.vehicle_id)

    async with claim_locks.hold(vehicle_key(data.vehicle_id)):
        try:
            vehicle = await registry.find_vehicle(db, data.vehicle_id)
            log = MaintenanceLog(
                vehicle_id=vehicle.id,
                service_type=data.service_type,
                description=data.description,
                cost=data.cost,
                date=data.date or date.today(),
                odometer=data.odometer,
                technician_name=data.technician_name,
                is_resolved=False,
            )
            db.add(log)
            await db.flush()
            await _send_to_shop(db, vehicle)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await db.refresh(log)
    logger.info("Service record %s opened for vehicle %s (%s)", log.id, vehicle.id, log.service_type.value)
    return log


async def resolve_log(db: AsyncSession, log_id: int) -> MaintenanceLog:
    """Mark a service record resolved and release the vehicle if nothing else is open."""
    log = await _find_log(db, log_id)

    async with claim_locks.hold(vehicle_key(log.vehicle_id)):
        try:
            log = await _find_log(db, log_id)
            log.is_resolved = True
            await db.flush()
            vehicle = await registry.find_vehicle(db, log.vehicle_id)
            await recheck_vehicle(db, vehicle)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await db.refresh(log)
    logger.info("Service record %s resolved", log.id)
    return log


async def update_log(db: AsyncSession, log_id: int, data: MaintenanceLogUpdate) -> MaintenanceLog:
    """Edit a service record; flipping is_resolved re-runs the coupling rule."""
    log = await _find_log(db, log_id)

    async with claim_locks.hold(vehicle_key(log.vehicle_id)):
        try:
            log = await _find_log(db, log_id)
            was_resolved = log.is_resolved
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is None and field in _REQUIRED_LOG_FIELDS:
                    continue
                setattr(log, field, value)
            await db.flush()

            if log.is_resolved != was_resolved:
                vehicle = await registry.find_vehicle(db, log.vehicle_id)
                if log.is_resolved:
                    await recheck_vehicle(db, vehicle)
                else:
                    await _send_to_shop(db, vehicle)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await db.refresh(log)
    return log


async def delete_log(db: AsyncSession, log_id: int) -> None:
    log = await _find_log(db, log_id)

    async with claim_locks.hold(vehicle_key(log.vehicle_id)):
        try:
            log = await _find_log(db, log_id)
            vehicle_id = log.vehicle_id
            await db.delete(log)
            await db.flush()
            vehicle = await registry.find_vehicle(db, vehicle_id)
            await recheck_vehicle(db, vehicle)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info("Service record %s deleted", log_id)


async def toggle_retirement(db: AsyncSession, vehicle_id: int) -> Vehicle:
    """
    RETIRED -> IN_SHOP while service records are open, ON_TRIP while a
    dispatched trip holds the vehicle, otherwise AVAILABLE.
    Any other status -> RETIRED.
    """
    async with claim_locks.hold(vehicle_key(vehicle_id)):
        try:
            vehicle = await registry.find_vehicle(db, vehicle_id)
            if vehicle.status == VehicleStatus.RETIRED:
                if await count_open_service_records(db, vehicle.id):
                    target = VehicleStatus.IN_SHOP
                else:
                    target = await _back_in_service_status(db, vehicle)
            else:
                if vehicle.status == VehicleStatus.ON_TRIP:
                    logger.warning("Vehicle %s retired while on trip (manager override)", vehicle.id)
                target = VehicleStatus.RETIRED
            await registry.set_vehicle_status(db, vehicle, target, expected_status=vehicle.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    return vehicle
