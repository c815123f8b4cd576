"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, vehicles, drivers, trips, maintenance, fuel_logs, analytics
)

router = APIRouter()

# Include authentication endpoints
router.include_router(auth.router)

# Resource registry
router.include_router(vehicles.router)
router.include_router(drivers.router)

# Trip lifecycle
router.include_router(trips.router)

# Maintenance and expenses
router.include_router(maintenance.router)
router.include_router(fuel_logs.router)

# Analytics
router.include_router(analytics.router)
