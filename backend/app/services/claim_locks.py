"""
Claim lock service.

Serializes read-validate-write sequences on vehicles and drivers inside one
process. Row-level guarded updates cover writers in other processes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Tuple

from backend.app.core.config import settings
from backend.app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)

LockKey = Tuple[str, int]


def vehicle_key(vehicle_id: int) -> LockKey:
    return ("vehicle", vehicle_id)


def driver_key(driver_id: int) -> LockKey:
    return ("driver", driver_id)


class ClaimLockManager:
    """
    Registry of per-resource asyncio locks.

    Locks are acquired in sorted key order so two operations touching the
    same pair never deadlock. A lock is dropped from the registry as soon as
    no holder or waiter references it.
    """

    def __init__(self, timeout_seconds: float = None):
        self.timeout_seconds = timeout_seconds
        self._locks: Dict[LockKey, asyncio.Lock] = {}
        self._users: Dict[LockKey, int] = {}

    def _checkout(self, key: LockKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: LockKey) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            del self._locks[key]

    def is_held(self, key: LockKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: LockKey):
        """
        Hold the locks for all `keys` for the duration of the block.

        Raises:
            ConflictError: If a lock could not be acquired within the timeout
        """
        timeout = self.timeout_seconds
        if timeout is None:
            timeout = settings.claim_lock_timeout_seconds

        ordered: List[LockKey] = sorted(set(keys))
        acquired: List[LockKey] = []
        checked_out: List[LockKey] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=timeout)
                except asyncio.TimeoutError:
                    logger.warning("Timed out waiting for claim lock %s:%s", *key)
                    raise ConflictError(
                        f"{key[0].capitalize()} {key[1]} is busy, retry the request",
                        details={"resource": key[0], "id": key[1]},
                    )
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in checked_out:
                self._checkin(key)


# Process-wide instance shared by every request
claim_locks = ClaimLockManager()
