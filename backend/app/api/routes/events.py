"""
Event endpoints consumed by the events grid.

Listing is served through the event cache; create, update and delete
invalidate it.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.event import EventCreate, EventResponse
from app.services.cache_factory import get_event_cache
from app.services.event_service import create_event, delete_event, get_event, list_events, update_event
from app.services.interfaces.event_cache import EventCache

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=list[EventResponse])
async def list_events_endpoint(
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_event_cache),
):
    """
    List every event, most recent date first.
    No server-side paging: the grid sorts, filters and pages client-side.
    """
    return await list_events(db, cache)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_event_cache),
):
    """Create an event (or a leg, when parent_event_id is given)."""
    return await create_event(db, cache, event_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID."""
    return await get_event(db, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_event_cache),
):
    """
    Update an event.

    A body of just {"description": ...} edits the description in place.
    Any other body is a full edit and must pass the same rules as create.
    """
    return await update_event(db, cache, event_id, payload)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_event_cache),
):
    """Delete an event together with its legs."""
    await delete_event(db, cache, event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
