"""
Trip State Machine (Domain Logic).

Moves trips through DRAFT -> DISPATCHED -> {COMPLETED | CANCELLED} and
DRAFT -> CANCELLED while claiming and releasing the trip's vehicle and driver.
Each transition writes the trip, the vehicle and the driver in one
transaction, under the claim locks of both resources.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    DomainValidationError, ConflictError, InvalidTransitionError,
    InvalidStateError, ResourceNotFoundError
)
from backend.app.db.guarded_update import guarded_update
from backend.app.domain.dispatch.driver_counters import DriverCounterEvent, apply_counter_event
from backend.app.models.driver import Driver
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.models.fuel_log import FuelLog
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.trip import TripCreate, TripComplete
from backend.app.services import resource_registry as registry
from backend.app.services.claim_locks import claim_locks, driver_key, vehicle_key

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[TripStatus, FrozenSet[TripStatus]] = {
    TripStatus.DRAFT: frozenset({TripStatus.DISPATCHED, TripStatus.CANCELLED}),
    TripStatus.DISPATCHED: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

# States that hold no claim on a vehicle or driver
DELETABLE_STATES: FrozenSet[TripStatus] = frozenset({TripStatus.DRAFT, TripStatus.CANCELLED})


def ensure_transition(trip: Trip, target: TripStatus) -> None:
    """Raise InvalidTransitionError unless trip.status -> target is an edge of the machine."""
    if target not in ALLOWED_TRANSITIONS[trip.status]:
        raise InvalidTransitionError(trip.status.value, target.value)


def check_cargo_fits(vehicle: Vehicle, cargo_weight: float) -> None:
    if cargo_weight > vehicle.max_capacity:
        raise DomainValidationError(
            f"Cargo weight ({cargo_weight} kg) exceeds vehicle max capacity ({vehicle.max_capacity} kg)",
            details={
                "cargo_weight": cargo_weight,
                "max_capacity": vehicle.max_capacity,
                "vehicle_id": vehicle.id,
            },
        )


def check_driver_eligible(driver: Driver) -> None:
    """Suspension and license checks shared by create and dispatch."""
    if driver.status == DriverStatus.SUSPENDED:
        raise DomainValidationError(
            "Driver is suspended and cannot be assigned",
            details={"driver_id": driver.id, "current_status": driver.status.value},
        )
    if driver.is_license_expired:
        raise DomainValidationError(
            f"Driver's license expired on {driver.license_expiry.isoformat()}",
            details={"driver_id": driver.id, "license_expiry": driver.license_expiry.isoformat()},
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TripStateMachine:

    # --- Reads ---

    @staticmethod
    async def get_trip(db: AsyncSession, trip_id: int) -> Trip:
        result = await db.execute(
            select(Trip).where(Trip.id == trip_id).execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)
        return trip

    @staticmethod
    async def list_trips(
        db: AsyncSession,
        status: Optional[TripStatus] = None,
        vehicle_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[Trip], int]:
        filters = []
        if status:
            filters.append(Trip.status == status)
        if vehicle_id:
            filters.append(Trip.vehicle_id == vehicle_id)
        if driver_id:
            filters.append(Trip.driver_id == driver_id)

        total = (await db.execute(select(func.count(Trip.id)).where(*filters))).scalar()
        result = await db.execute(
            select(Trip).where(*filters)
            .order_by(Trip.created_at.desc(), Trip.id.desc())
            .offset((page - 1) * page_size).limit(page_size)
        )
        return result.scalars().all(), total

    # --- Transitions ---

    @staticmethod
    async def create(db: AsyncSession, data: TripCreate) -> Trip:
        """
        Propose a DRAFT trip.

        Validates vehicle availability, capacity and driver eligibility but
        claims nothing: dispatch re-checks the claim conditions.

        Raises:
            ResourceNotFoundError: vehicle or driver missing
            ConflictError: vehicle not AVAILABLE
            DomainValidationError: cargo over capacity, driver suspended,
                license expired or driver already on duty
        """
        vehicle = await registry.find_vehicle(db, data.vehicle_id)
        if vehicle.status != VehicleStatus.AVAILABLE:
            raise ConflictError(
                f"Vehicle is not available (status: {vehicle.status.value})",
                details={"vehicle_id": vehicle.id, "current_status": vehicle.status.value},
            )
        check_cargo_fits(vehicle, data.cargo_weight)

        driver = await registry.find_driver(db, data.driver_id)
        check_driver_eligible(driver)
        if driver.status == DriverStatus.ON_DUTY:
            raise DomainValidationError(
                "Driver is already On Duty on another trip",
                details={"driver_id": driver.id, "current_status": driver.status.value},
            )

        trip = Trip(
            vehicle_id=vehicle.id,
            driver_id=driver.id,
            cargo_weight=data.cargo_weight,
            origin=data.origin,
            destination=data.destination,
            start_odometer=data.start_odometer if data.start_odometer is not None else vehicle.odometer,
            revenue=data.revenue or 0,
            notes=data.notes,
            status=TripStatus.DRAFT,
        )
        db.add(trip)
        await db.commit()
        await db.refresh(trip)

        logger.info("Trip %s drafted (vehicle=%s driver=%s)", trip.id, vehicle.id, driver.id)
        return trip

    @staticmethod
    async def dispatch(db: AsyncSession, trip_id: int) -> Trip:
        """
        DRAFT -> DISPATCHED: claim the vehicle and the driver.

        Raises:
            InvalidTransitionError: trip is not DRAFT
            ConflictError: vehicle no longer AVAILABLE, driver already ON_DUTY,
                or a concurrent writer got there first
            DomainValidationError: driver or cargo no longer eligible
                (when revalidate_on_dispatch is enabled)
        """
        trip = await TripStateMachine.get_trip(db, trip_id)

        async with claim_locks.hold(vehicle_key(trip.vehicle_id), driver_key(trip.driver_id)):
            try:
                trip = await TripStateMachine.get_trip(db, trip_id)
                ensure_transition(trip, TripStatus.DISPATCHED)

                vehicle = await registry.find_vehicle(db, trip.vehicle_id)
                driver = await registry.find_driver(db, trip.driver_id)

                if settings.revalidate_on_dispatch:
                    check_cargo_fits(vehicle, trip.cargo_weight)
                    check_driver_eligible(driver)

                await registry.claim_vehicle(db, vehicle)
                await registry.claim_driver(db, driver)
                await apply_counter_event(db, driver, DriverCounterEvent.TRIP_DISPATCHED)
                await guarded_update(
                    db, trip,
                    {"status": TripStatus.DISPATCHED, "dispatched_at": _now()},
                    expected_status=TripStatus.DRAFT,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Trip %s dispatched (vehicle=%s driver=%s)", trip.id, trip.vehicle_id, trip.driver_id)
        return trip

    @staticmethod
    async def complete(db: AsyncSession, trip_id: int, data: TripComplete) -> Trip:
        """
        DISPATCHED -> COMPLETED: record distance, release vehicle and driver.

        distance = max(0, end_odometer - start_odometer).
        """
        trip = await TripStateMachine.get_trip(db, trip_id)

        async with claim_locks.hold(vehicle_key(trip.vehicle_id), driver_key(trip.driver_id)):
            try:
                trip = await TripStateMachine.get_trip(db, trip_id)
                ensure_transition(trip, TripStatus.COMPLETED)

                vehicle = await registry.find_vehicle(db, trip.vehicle_id)
                driver = await registry.find_driver(db, trip.driver_id)

                distance = max(0.0, data.end_odometer - trip.start_odometer)

                await registry.release_vehicle(db, vehicle, odometer=data.end_odometer)
                await registry.release_driver(db, driver)
                await apply_counter_event(db, driver, DriverCounterEvent.TRIP_COMPLETED)

                values = {
                    "status": TripStatus.COMPLETED,
                    "end_odometer": data.end_odometer,
                    "distance": distance,
                    "completed_at": _now(),
                }
                if data.revenue is not None:
                    values["revenue"] = data.revenue
                await guarded_update(db, trip, values, expected_status=TripStatus.DISPATCHED)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Trip %s completed (distance=%s)", trip.id, trip.distance)
        return trip

    @staticmethod
    async def cancel(db: AsyncSession, trip_id: int) -> Trip:
        """
        DRAFT|DISPATCHED -> CANCELLED.

        A dispatched trip releases its vehicle and driver; a draft holds
        nothing to release.
        """
        trip = await TripStateMachine.get_trip(db, trip_id)

        async with claim_locks.hold(vehicle_key(trip.vehicle_id), driver_key(trip.driver_id)):
            try:
                trip = await TripStateMachine.get_trip(db, trip_id)
                ensure_transition(trip, TripStatus.CANCELLED)
                previous = trip.status

                if previous == TripStatus.DISPATCHED:
                    vehicle = await registry.find_vehicle(db, trip.vehicle_id)
                    driver = await registry.find_driver(db, trip.driver_id)
                    await registry.release_vehicle(db, vehicle)
                    await registry.release_driver(db, driver)
                    await apply_counter_event(db, driver, DriverCounterEvent.TRIP_CANCELLED)

                await guarded_update(
                    db, trip,
                    {"status": TripStatus.CANCELLED, "cancelled_at": _now()},
                    expected_status=previous,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Trip %s cancelled (was %s)", trip.id, previous.value)
        return trip

    @staticmethod
    async def delete(db: AsyncSession, trip_id: int) -> None:
        """Delete a trip that holds no claim (DRAFT or CANCELLED)."""
        trip = await TripStateMachine.get_trip(db, trip_id)

        async with claim_locks.hold(vehicle_key(trip.vehicle_id), driver_key(trip.driver_id)):
            try:
                trip = await TripStateMachine.get_trip(db, trip_id)
                if trip.status not in DELETABLE_STATES:
                    raise InvalidStateError(
                        "Only Draft or Cancelled trips can be deleted",
                        details={
                            "trip_id": trip.id,
                            "current_status": trip.status.value,
                            "allowed": sorted(s.value for s in DELETABLE_STATES),
                        },
                    )
                # Fuel purchases stay on the vehicle's books
                await db.execute(
                    update(FuelLog).where(FuelLog.trip_id == trip.id).values(trip_id=None)
                )
                await db.delete(trip)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Trip %s deleted", trip_id)
