"""
Driver counter events.

Every trip transition that touches a driver's counters emits exactly one
event; `apply_counter_event` is the only writer of `trip_count` and
`completed_trips`.

`trip_count` is incremented both at dispatch and again when the trip is
completed or cancelled, so a dispatched-then-completed trip counts twice.
Completion rates computed from these counters are read with that in mind.
"""

import enum
import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.guarded_update import guarded_update
from backend.app.models.driver import Driver

logger = logging.getLogger(__name__)


class DriverCounterEvent(str, enum.Enum):
    TRIP_DISPATCHED = "TRIP_DISPATCHED"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    TRIP_CANCELLED = "TRIP_CANCELLED"  # only for trips that were dispatched


COUNTER_INCREMENTS: Dict[DriverCounterEvent, Dict[str, int]] = {
    DriverCounterEvent.TRIP_DISPATCHED: {"trip_count": 1, "completed_trips": 0},
    DriverCounterEvent.TRIP_COMPLETED: {"trip_count": 1, "completed_trips": 1},
    DriverCounterEvent.TRIP_CANCELLED: {"trip_count": 1, "completed_trips": 0},
}


async def apply_counter_event(db: AsyncSession, driver: Driver, event: DriverCounterEvent) -> Driver:
    """
    Apply the counter increments for one event as an in-database increment.

    Args:
        db: Database session (transaction owned by the caller)
        driver: Driver loaded in the current transaction
        event: The transition that happened

    Returns:
        The refreshed driver
    """
    increments = COUNTER_INCREMENTS[event]
    values = {
        column: getattr(Driver, column) + amount
        for column, amount in increments.items()
        if amount
    }
    await guarded_update(db, driver, values)
    logger.info(
        "Driver %s counters after %s: trip_count=%s completed_trips=%s",
        driver.id, event.value, driver.trip_count, driver.completed_trips
    )
    return driver
