"""
Vehicle and driver registry tests.
"""

import pytest
from datetime import date, timedelta

from backend.app.core.exceptions import ConflictError, DomainValidationError, ResourceNotFoundError
from backend.app.domain.dispatch.trip_state_machine import TripStateMachine
from backend.app.models.driver import license_has_expired
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.schemas.driver import DriverUpdate
from backend.app.schemas.trip import TripCreate
from backend.app.schemas.vehicle import VehicleUpdate
from backend.app.services import resource_registry as registry


def test_license_expiry_boundary():
    today = date(2025, 6, 1)
    assert license_has_expired(today, today=today)
    assert license_has_expired(today - timedelta(days=1), today=today)
    assert not license_has_expired(today + timedelta(days=1), today=today)


@pytest.mark.asyncio
async def test_duplicate_plate_conflicts(db_session, make_vehicle):
    await make_vehicle(license_plate="dup-1")
    with pytest.raises(ConflictError):
        await make_vehicle(license_plate="DUP-1")


@pytest.mark.asyncio
async def test_odometer_cannot_decrease(db_session, make_vehicle):
    vehicle = await make_vehicle(odometer=5000)
    with pytest.raises(DomainValidationError):
        await registry.update_vehicle(db_session, vehicle.id, VehicleUpdate(odometer=4000))

    updated = await registry.update_vehicle(db_session, vehicle.id, VehicleUpdate(odometer=5200, region="East"))
    assert updated.odometer == 5200
    assert updated.region == "East"
    assert updated.status == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_invalid_status_value_rejected(db_session, make_driver):
    driver = await make_driver()
    with pytest.raises(DomainValidationError) as exc:
        await registry.change_driver_status(db_session, driver.id, "ON_VACATION")
    assert "SUSPENDED" in exc.value.details["allowed"]


@pytest.mark.asyncio
async def test_vehicle_filters_and_pagination(db_session, make_vehicle):
    for _ in range(3):
        await make_vehicle(region="North")
    await make_vehicle(region="South")

    vehicles, total = await registry.list_vehicles(db_session, region="North", page=1, page_size=2)
    assert total == 3
    assert len(vehicles) == 2


@pytest.mark.asyncio
async def test_delete_vehicle_and_driver(db_session, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()

    await registry.delete_vehicle(db_session, vehicle.id)
    await registry.delete_driver(db_session, driver.id)

    with pytest.raises(ResourceNotFoundError):
        await registry.find_vehicle(db_session, vehicle.id)
    with pytest.raises(ResourceNotFoundError):
        await registry.find_driver(db_session, driver.id)


@pytest.mark.asyncio
async def test_driver_with_trips_cannot_be_deleted(db_session, make_vehicle, make_driver):
    driver = await make_driver()
    await TripStateMachine.create(db_session, TripCreate(
        vehicle_id=(await make_vehicle()).id, driver_id=driver.id,
        cargo_weight=1, origin="A", destination="B"
    ))
    with pytest.raises(ConflictError):
        await registry.delete_driver(db_session, driver.id)


@pytest.mark.asyncio
async def test_update_driver_profile(db_session, make_driver):
    driver = await make_driver()
    version_before = driver.version
    updated = await registry.update_driver(db_session, driver.id, DriverUpdate(safety_score=72.5))
    assert updated.safety_score == 72.5
    assert updated.status == DriverStatus.OFF_DUTY
    assert updated.version == version_before + 1


@pytest.mark.asyncio
async def test_driver_crud_over_http(client, manager_headers, dispatcher_headers):
    response = await client.post("/v1/drivers", json={
        "name": "Alex",
        "license_number": "LIC-9000",
        "license_expiry": (date.today() + timedelta(days=30)).isoformat(),
        "license_category": "VAN",
    }, headers=manager_headers)
    assert response.status_code == 201
    driver = response.json()
    assert driver["status"] == "OFF_DUTY"
    assert driver["trip_count"] == 0
    assert driver["is_license_expired"] is False

    response = await client.get("/v1/drivers", params={"status": "OFF_DUTY"}, headers=dispatcher_headers)
    assert response.json()["total"] == 1

    response = await client.put(
        f"/v1/drivers/{driver['id']}", json={"phone": "555-1234"}, headers=manager_headers
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "555-1234"

    response = await client.delete(f"/v1/drivers/{driver['id']}", headers=manager_headers)
    assert response.status_code == 204
    response = await client.get(f"/v1/drivers/{driver['id']}", headers=manager_headers)
    assert response.status_code == 404
