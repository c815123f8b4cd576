"""
Version-checked row updates.

Every write to a Vehicle, Driver or Trip goes through `guarded_update`, which
only touches the row if nobody else has written it since it was read.
"""

from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError


async def guarded_update(
    db: AsyncSession,
    instance: Any,
    values: Dict[str, Any],
    expected_status: Optional[Any] = None,
) -> None:
    """
    Compare-and-swap update of a single versioned row.

    Args:
        db: Database session (the caller owns the transaction)
        instance: Loaded ORM instance with `id`, `version` and `status` columns
        values: Column values to write; may contain SQL expressions such as
            `Driver.trip_count + 1`
        expected_status: If given, the row's status must still equal it

    Raises:
        ConflictError: If the row changed since it was read
    """
    model = type(instance)
    read_version = instance.version

    stmt = update(model).where(
        model.id == instance.id,
        model.version == read_version,
    )
    if expected_status is not None:
        stmt = stmt.where(model.status == expected_status)

    stmt = stmt.values(version=model.version + 1, **values).execution_options(
        synchronize_session=False
    )

    result = await db.execute(stmt)
    if result.rowcount != 1:
        details = {
            "resource": model.__name__,
            "id": instance.id,
            "read_version": read_version,
        }
        if expected_status is not None:
            details["expected_status"] = expected_status.value
        raise ConflictError(
            f"{model.__name__} {instance.id} was modified concurrently",
            details=details,
        )

    await db.refresh(instance)
