"""
Concurrency Tests.

Validates that racing transitions never double-claim a vehicle or driver.
"""

import pytest
import asyncio

from backend.app.core.exceptions import ConflictError, InvalidTransitionError
from backend.app.db.guarded_update import guarded_update
from backend.app.domain.dispatch.trip_state_machine import TripStateMachine
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.models.trip_enums import TripStatus
from backend.app.schemas.trip import TripCreate
from backend.app.services import resource_registry as registry
from backend.app.services.claim_locks import ClaimLockManager, vehicle_key, driver_key


async def draft(db, vehicle, driver):
    return await TripStateMachine.create(db, TripCreate(
        vehicle_id=vehicle.id,
        driver_id=driver.id,
        cargo_weight=100,
        origin="A",
        destination="B",
    ))


async def dispatch_in_own_session(session_factory, trip_id):
    async with session_factory() as session:
        return await TripStateMachine.dispatch(session, trip_id)


@pytest.mark.asyncio
async def test_concurrent_dispatch_same_vehicle(db_session, session_factory, make_vehicle, make_driver):
    """Two drafts on one vehicle: exactly one dispatch wins."""
    vehicle = await make_vehicle()
    first = await draft(db_session, vehicle, await make_driver())
    second = await draft(db_session, vehicle, await make_driver())

    results = await asyncio.gather(
        dispatch_in_own_session(session_factory, first.id),
        dispatch_in_own_session(session_factory, second.id),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], ConflictError)

    assert (await registry.find_vehicle(db_session, vehicle.id)).status == VehicleStatus.ON_TRIP
    statuses = sorted([
        (await TripStateMachine.get_trip(db_session, first.id)).status.value,
        (await TripStateMachine.get_trip(db_session, second.id)).status.value,
    ])
    assert statuses == ["DISPATCHED", "DRAFT"]


@pytest.mark.asyncio
async def test_concurrent_dispatch_same_driver(db_session, session_factory, make_vehicle, make_driver):
    """Two drafts for one driver on different vehicles: exactly one dispatch wins."""
    driver = await make_driver()
    first = await draft(db_session, await make_vehicle(), driver)
    second = await draft(db_session, await make_vehicle(), driver)

    results = await asyncio.gather(
        dispatch_in_own_session(session_factory, first.id),
        dispatch_in_own_session(session_factory, second.id),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, ConflictError)) == 1
    driver_now = await registry.find_driver(db_session, driver.id)
    assert driver_now.status == DriverStatus.ON_DUTY
    assert driver_now.trip_count == 1


@pytest.mark.asyncio
async def test_same_trip_dispatched_twice(db_session, session_factory, make_vehicle, make_driver):
    """Retrying a dispatch never applies it twice."""
    driver = await make_driver()
    trip = await draft(db_session, await make_vehicle(), driver)

    results = await asyncio.gather(
        dispatch_in_own_session(session_factory, trip.id),
        dispatch_in_own_session(session_factory, trip.id),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], (InvalidTransitionError, ConflictError))
    assert (await TripStateMachine.get_trip(db_session, trip.id)).status == TripStatus.DISPATCHED
    assert (await registry.find_driver(db_session, driver.id)).trip_count == 1


@pytest.mark.asyncio
async def test_guarded_update_rejects_stale_version(session_factory, make_vehicle):
    vehicle = await make_vehicle()

    async with session_factory() as reader, session_factory() as writer:
        stale = await registry.find_vehicle(reader, vehicle.id)
        fresh = await registry.find_vehicle(writer, vehicle.id)

        await guarded_update(writer, fresh, {"region": "South"})
        await writer.commit()
        assert fresh.version == stale.version + 1

        with pytest.raises(ConflictError) as exc:
            await guarded_update(reader, stale, {"region": "East"})
        await reader.rollback()
        assert exc.value.details["read_version"] == stale.version

    async with session_factory() as check:
        assert (await registry.find_vehicle(check, vehicle.id)).region == "South"


@pytest.mark.asyncio
async def test_guarded_update_checks_expected_status(db_session, make_vehicle):
    vehicle = await make_vehicle()
    with pytest.raises(ConflictError):
        await guarded_update(db_session, vehicle, {"region": "West"}, expected_status=VehicleStatus.ON_TRIP)
    await db_session.rollback()


# --- Claim lock manager ---

@pytest.mark.asyncio
async def test_claim_lock_serializes_holders():
    manager = ClaimLockManager(timeout_seconds=1.0)
    order = []

    async def worker(name):
        async with manager.hold(vehicle_key(1)):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_claim_lock_timeout_raises_conflict():
    manager = ClaimLockManager(timeout_seconds=0.05)

    async with manager.hold(vehicle_key(7)):
        assert manager.is_held(vehicle_key(7))
        with pytest.raises(ConflictError) as exc:
            async with manager.hold(vehicle_key(7)):
                pass
        assert exc.value.details == {"resource": "vehicle", "id": 7}

    assert not manager.is_held(vehicle_key(7))


@pytest.mark.asyncio
async def test_claim_lock_opposite_order_does_not_deadlock():
    manager = ClaimLockManager(timeout_seconds=1.0)

    async def worker(*keys):
        async with manager.hold(*keys):
            await asyncio.sleep(0.01)
        return True

    results = await asyncio.gather(
        worker(vehicle_key(1), driver_key(2)),
        worker(driver_key(2), vehicle_key(1)),
    )
    assert results == [True, True]


@pytest.mark.asyncio
async def test_claim_lock_registry_is_emptied():
    manager = ClaimLockManager(timeout_seconds=1.0)
    async with manager.hold(vehicle_key(1), driver_key(1)):
        pass
    assert manager._locks == {}
    assert manager._users == {}
