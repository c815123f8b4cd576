"""
Analytics tests.

Dashboard KPIs, per-vehicle cost/ROI and driver completion rates.
"""

import pytest

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.rounding import round_half_up
from backend.app.domain.dispatch.trip_state_machine import TripStateMachine
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus, VehicleType
from backend.app.schemas.fuel_log import FuelLogCreate
from backend.app.schemas.maintenance import MaintenanceLogCreate
from backend.app.schemas.trip import TripCreate, TripComplete
from backend.app.services import fuel_logs, maintenance_coupling
from backend.app.services import resource_registry as registry
from backend.app.services.analytics import AnalyticsService, utilization_rate, completion_rate


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(19.0, 2) == 19.0


def test_utilization_rate():
    assert utilization_rate(total=10, active=3, in_shop=2, retired=1) == 30
    assert utilization_rate(total=7, active=1, in_shop=0, retired=0) == 13
    assert utilization_rate(total=3, active=0, in_shop=2, retired=1) == 0
    assert utilization_rate(total=0, active=0, in_shop=0, retired=0) == 0


def test_completion_rate():
    assert completion_rate(1, 2) == 50
    assert completion_rate(0, 0) == 0
    assert completion_rate(2, 3) == 67


async def dispatch_new_trip(db, vehicle, driver):
    trip = await TripStateMachine.create(db, TripCreate(
        vehicle_id=vehicle.id, driver_id=driver.id, cargo_weight=100, origin="A", destination="B"
    ))
    return await TripStateMachine.dispatch(db, trip.id)


@pytest.fixture
async def mixed_fleet(db_session, make_vehicle, make_driver):
    """10 trucks: 3 ON_TRIP, 2 IN_SHOP, 1 RETIRED, 4 AVAILABLE; one pending draft."""
    vehicles = [await make_vehicle() for _ in range(10)]

    for vehicle in vehicles[:3]:
        await dispatch_new_trip(db_session, vehicle, await make_driver())
    for vehicle in vehicles[3:5]:
        await maintenance_coupling.create_log(db_session, MaintenanceLogCreate(
            vehicle_id=vehicle.id, service_type="INSPECTION", cost=50
        ))
    await maintenance_coupling.toggle_retirement(db_session, vehicles[5].id)

    await TripStateMachine.create(db_session, TripCreate(
        vehicle_id=vehicles[6].id, driver_id=(await make_driver()).id,
        cargo_weight=100, origin="A", destination="B"
    ))

    suspended = await make_driver()
    await registry.change_driver_status(db_session, suspended.id, DriverStatus.SUSPENDED)
    return vehicles


@pytest.mark.asyncio
async def test_dashboard_kpis(db_session, mixed_fleet):
    kpis = await AnalyticsService.get_dashboard(db_session)

    assert kpis.total_vehicles == 10
    assert kpis.active_fleet == 3
    assert kpis.maintenance_alerts == 2
    assert kpis.retired_vehicles == 1
    assert kpis.available_vehicles == 7
    assert kpis.utilization_rate == 30
    assert kpis.pending_cargo == 1
    assert kpis.total_drivers == 5
    assert kpis.suspended_drivers == 1


@pytest.mark.asyncio
async def test_dashboard_status_filter_zeroes_other_buckets(db_session, mixed_fleet):
    kpis = await AnalyticsService.get_dashboard(db_session, status=VehicleStatus.IN_SHOP)

    assert kpis.total_vehicles == 2
    assert kpis.maintenance_alerts == 2
    assert kpis.active_fleet == 0
    assert kpis.retired_vehicles == 0
    assert kpis.available_vehicles == 0
    assert kpis.utilization_rate == 0
    assert kpis.pending_cargo == 0


@pytest.mark.asyncio
async def test_dashboard_type_filter(db_session, mixed_fleet):
    kpis = await AnalyticsService.get_dashboard(db_session, vehicle_type=VehicleType.VAN)

    assert kpis.total_vehicles == 0
    assert kpis.active_fleet == 0
    assert kpis.utilization_rate == 0
    # Driver counts are fleet-wide
    assert kpis.total_drivers == 5


@pytest.mark.asyncio
async def test_vehicle_cost_and_roi(db_session, make_vehicle, make_driver):
    vehicle = await make_vehicle(odometer=1000, acquisition_cost=50000)
    idle = await make_vehicle(acquisition_cost=0)
    driver = await make_driver()

    log = await maintenance_coupling.create_log(db_session, MaintenanceLogCreate(
        vehicle_id=vehicle.id, service_type="OIL_CHANGE", cost=400
    ))
    await maintenance_coupling.resolve_log(db_session, log.id)
    await fuel_logs.create_fuel_log(db_session, FuelLogCreate(
        vehicle_id=vehicle.id, liters=40, cost_per_liter=2.5
    ))

    trip = await dispatch_new_trip(db_session, vehicle, driver)
    await TripStateMachine.complete(db_session, trip.id, TripComplete(end_odometer=1250, revenue=10000))

    report = await AnalyticsService.get_vehicle_cost(db_session, vehicle.id)
    assert report.fuel_cost == 100.0
    assert report.total_liters == 40.0
    assert report.maintenance_cost == 400.0
    assert report.total_operational_cost == 500.0
    assert report.total_distance == 250.0
    assert report.total_revenue == 10000.0
    assert report.fuel_efficiency == 6.25
    assert report.roi == 19.0

    reports = {r.vehicle_id: r for r in await AnalyticsService.get_vehicle_costs(db_session)}
    assert reports[vehicle.id].roi == 19.0
    assert reports[idle.id].roi == 0.0
    assert reports[idle.id].fuel_efficiency == 0.0


@pytest.mark.asyncio
async def test_vehicle_cost_missing_vehicle(db_session):
    with pytest.raises(ResourceNotFoundError):
        await AnalyticsService.get_vehicle_cost(db_session, 777)


@pytest.mark.asyncio
async def test_driver_stats(db_session, make_vehicle, make_driver):
    busy = await make_driver()
    idle = await make_driver()

    trip = await dispatch_new_trip(db_session, await make_vehicle(), busy)
    await TripStateMachine.complete(db_session, trip.id, TripComplete(end_odometer=1100))

    stats = {s.driver_id: s for s in await AnalyticsService.get_driver_stats(db_session)}
    assert stats[busy.id].trip_count == 2
    assert stats[busy.id].completed_trips == 1
    assert stats[busy.id].completion_rate == 50
    assert stats[idle.id].completion_rate == 0
    assert stats[idle.id].is_license_expired is False


@pytest.mark.asyncio
async def test_analytics_over_http(client, analyst_headers, mixed_fleet):
    response = await client.get("/v1/analytics/dashboard", headers=analyst_headers)
    assert response.status_code == 200
    assert response.json()["utilization_rate"] == 30

    response = await client.get(
        "/v1/analytics/dashboard", params={"status": "RETIRED"}, headers=analyst_headers
    )
    assert response.json()["retired_vehicles"] == 1
    assert response.json()["total_vehicles"] == 1

    response = await client.get("/v1/analytics/vehicle-costs", headers=analyst_headers)
    assert response.status_code == 200
    assert len(response.json()) == 10

    response = await client.get("/v1/analytics/vehicle-costs/9999", headers=analyst_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    response = await client.get("/v1/analytics/driver-stats", headers=analyst_headers)
    assert response.status_code == 200
