"""
Event endpoints.

Listing and reading events is public.  Creating requires a session;
updating and deleting are limited to the event's creator, which
``EventService`` enforces.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, status

from eventhub_api.app.core.responses import format_success
from eventhub_api.app.core.security import get_current_user
from eventhub_api.app.schemas.event import EventCreate, EventUpdate
from eventhub_api.app.schemas.user import UserRead
from eventhub_api.app.services.event_service import EventService

router = APIRouter()


@router.get("")
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: Literal["date", "created", "title"] = Query("date"),
    order: Literal["asc", "desc"] = Query("asc"),
) -> dict:
    """List events with pagination.

    - **page**, **limit**: 1-based page number and page size (max 100).
    - **sort**: `date`, `created` or `title`.
    - **order**: `asc` or `desc`.
    """
    events, pagination = await EventService.list_events(page=page, limit=limit, sort=sort, order=order)
    return format_success({"events": [event.to_api() for event in events], "pagination": pagination})


@router.get("/user/created")
async def list_created_events(current_user: UserRead = Depends(get_current_user)) -> dict:
    """Events created by the current user."""
    events = await EventService.list_user_events(current_user.id)
    return format_success({"events": [event.to_api() for event in events]})


@router.get("/{event_id}")
async def get_event(event_id: str = Path(..., description="ID of the event")) -> dict:
    event = await EventService.get_event(event_id)
    return format_success({"event": event.to_api()})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    event = await EventService.create_event(payload, current_user)
    return format_success({"event": event.to_api()}, "Event created successfully")


@router.put("/{event_id}")
async def update_event(
    payload: EventUpdate,
    event_id: str = Path(..., description="ID of the event"),
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    """Update an event.  Only the fields present in the body change."""
    event = await EventService.update_event(event_id, current_user, payload)
    return format_success({"event": event.to_api()}, "Event updated successfully")


@router.delete("/{event_id}")
async def delete_event(
    event_id: str = Path(..., description="ID of the event"),
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    await EventService.delete_event(event_id, current_user)
    return format_success(None, "Event deleted successfully")
