"""
Event service handling CRUD operations.

Every committed mutation invalidates the cached event listing. Database
failures are logged here and surface as EventStorageError, which the API
reports with a generic message.
"""

from typing import Any, Optional

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy import inspect, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import EventStorageError, EventValidationError, format_validation_errors
from app.core.logging import get_logger
from app.core.metrics import record_event_operation
from app.models.event import Event
from app.schemas.event import EventCreate, EventDescriptionUpdate, EventResponse, EventUpdate
from app.services.interfaces.event_cache import EventCache

logger = get_logger(__name__)


def is_description_patch(payload: dict[str, Any]) -> bool:
    """An update body carrying `description` and nothing else edits just that field."""
    return set(payload) == {"description"}


async def _find_event(db: AsyncSession, event_id: int) -> Optional[Event]:
    result = await db.execute(select(Event).where(Event.id == event_id))
    return result.scalar_one_or_none()


async def _require_event(db: AsyncSession, event_id: int, operation: str) -> Event:
    event = await _find_event(db, event_id)
    if not event:
        record_event_operation(operation, "not_found")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


async def _check_parent(db: AsyncSession, parent_event_id: Optional[int], operation: str) -> None:
    if parent_event_id is None:
        return
    if await _find_event(db, parent_event_id) is None:
        record_event_operation(operation, "invalid")
        raise EventValidationError.single("parent_event_id", "The selected parent event does not exist")


async def _log_storage_diagnostics(db: AsyncSession) -> None:
    """Log whether the database answers at all and whether the events table exists."""
    try:
        await db.rollback()
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("database_unreachable", error=str(e))
        return
    logger.info("database_reachable")

    try:
        has_table = await db.run_sync(
            lambda session: inspect(session.connection()).has_table(Event.__tablename__)
        )
    except SQLAlchemyError as e:
        logger.error("schema_inspection_failed", error=str(e))
        return
    if not has_table:
        logger.error("events_table_missing", table=Event.__tablename__)


async def list_events(db: AsyncSession, cache: EventCache) -> list[dict]:
    """
    All events, most recent `event_date` first.
    Served from the cache when warm; a miss loads the table and fills the cache.
    """
    cached = await cache.get_event_list()
    if cached is not None:
        logger.info("events_list_cache_hit", count=len(cached))
        record_event_operation("list", "success")
        return cached

    version = await cache.event_list_version()
    try:
        result = await db.execute(
            select(Event).order_by(Event.event_date.desc(), Event.id.desc())
        )
        events = list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error("events_fetch_failed", error=str(e))
        record_event_operation("list", "error")
        await _log_storage_diagnostics(db)
        raise EventStorageError("Failed to fetch events") from e

    payload = [EventResponse.model_validate(event).model_dump(mode="json") for event in events]
    if version is not None:
        await cache.set_event_list(payload, version=version)

    logger.info("events_fetched", count=len(payload))
    record_event_operation("list", "success")
    return payload


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    try:
        event = await _require_event(db, event_id, "show")
    except SQLAlchemyError as e:
        logger.error("event_fetch_failed", event_id=event_id, error=str(e))
        record_event_operation("show", "error")
        raise EventStorageError("Failed to fetch event") from e
    record_event_operation("show", "success")
    return event


async def create_event(db: AsyncSession, cache: EventCache, event_data: EventCreate) -> Event:
    """Persist a validated event and return it with its generated id and timestamps."""
    try:
        await _check_parent(db, event_data.parent_event_id, "create")

        event = Event(**event_data.model_dump())
        db.add(event)
        await db.flush()
        await db.refresh(event)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("event_create_failed", error=str(e))
        record_event_operation("create", "error")
        raise EventStorageError("Failed to create event") from e

    await cache.invalidate_events()

    logger.info(
        "event_created",
        event_id=event.id,
        name=event.name,
        categories=event.categories,
        is_leg=event.is_leg,
    )
    record_event_operation("create", "success")
    return event


def _validate_update(event_id: int, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Turn a raw update body into the columns to write.

    Two shapes are accepted:
    - {"description": ...} alone: only the description changes
    - anything else: the full field set, validated like a create
    """
    try:
        if is_description_patch(payload):
            return EventDescriptionUpdate.model_validate(payload).model_dump()
        changes = EventUpdate.model_validate(payload).model_dump(exclude_unset=True)
    except ValidationError as e:
        record_event_operation("update", "invalid")
        raise EventValidationError(format_validation_errors(e.errors())) from e

    if changes.get("parent_event_id") == event_id:
        record_event_operation("update", "invalid")
        raise EventValidationError.single("parent_event_id", "An event cannot be its own parent")
    return changes


def _check_kept_fees(event: Event, changes: dict[str, Any]) -> None:
    """Stored fees left out of a full update must still name listed categories."""
    if "categories" not in changes or "registration_fees" in changes:
        return
    stale = sorted(set(event.registration_fees or {}) - set(changes["categories"]))
    if stale:
        record_event_operation("update", "invalid")
        raise EventValidationError.single(
            "registration_fees",
            f"Registration fees reference categories that are not listed: {', '.join(stale)}",
        )


async def update_event(
    db: AsyncSession,
    cache: EventCache,
    event_id: int,
    payload: dict[str, Any],
) -> Event:
    """
    Apply an update in one transaction: every validated field is written, or none is.
    """
    try:
        event = await _require_event(db, event_id, "update")
    except SQLAlchemyError as e:
        logger.error("event_update_failed", event_id=event_id, error=str(e))
        record_event_operation("update", "error")
        raise EventStorageError("Failed to update event") from e

    changes = _validate_update(event_id, payload)
    _check_kept_fees(event, changes)

    try:
        await _check_parent(db, changes.get("parent_event_id"), "update")

        for field, value in changes.items():
            setattr(event, field, value)
        await db.flush()
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("event_update_failed", event_id=event_id, error=str(e))
        record_event_operation("update", "error")
        raise EventStorageError("Failed to update event") from e

    await cache.invalidate_events()

    logger.info(
        "event_updated",
        event_id=event.id,
        fields=sorted(changes),
        description_only=is_description_patch(payload),
    )
    record_event_operation("update", "success")
    return event


async def delete_event(db: AsyncSession, cache: EventCache, event_id: int) -> None:
    """Delete an event. Its legs go with it through the foreign-key cascade."""
    try:
        event = await _require_event(db, event_id, "delete")
        await db.delete(event)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("event_delete_failed", event_id=event_id, error=str(e))
        record_event_operation("delete", "error")
        raise EventStorageError("Failed to delete event") from e

    await cache.invalidate_events()

    logger.info("event_deleted", event_id=event_id)
    record_event_operation("delete", "success")
