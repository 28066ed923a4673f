"""
Attendance endpoints: join, leave and list attendees.
"""

from fastapi import APIRouter, Depends, Path, status

from eventhub_api.app.core.responses import format_success
from eventhub_api.app.core.security import get_current_user
from eventhub_api.app.schemas.user import UserRead
from eventhub_api.app.services.attendee_service import AttendeeService

router = APIRouter()


@router.get("/user/joined")
async def list_joined_events(current_user: UserRead = Depends(get_current_user)) -> dict:
    """Events the current user attends, most recently joined first."""
    events = await AttendeeService.list_joined_events(current_user.id)
    return format_success({"events": [event.to_api() for event in events]})


@router.post("/{event_id}/join", status_code=status.HTTP_201_CREATED)
async def join_event(
    event_id: str = Path(..., description="ID of the event to join"),
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    """Join an event.

    Fails with 404 for an unknown event and with 400 if the user
    created the event, has already joined or the event is full.
    """
    attendee = await AttendeeService.join(event_id, current_user)
    return format_success({"attendee": attendee.to_api()}, "Successfully joined event")


@router.delete("/{event_id}/leave")
async def leave_event(
    event_id: str = Path(..., description="ID of the event to leave"),
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    await AttendeeService.leave(event_id, current_user)
    return format_success(None, "Successfully left event")


@router.get("/{event_id}")
async def list_attendees(event_id: str = Path(..., description="ID of the event")) -> dict:
    attendees = await AttendeeService.list_attendees(event_id)
    return format_success({"attendees": [attendee.to_api() for attendee in attendees]})
