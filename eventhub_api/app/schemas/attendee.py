"""Pydantic models for attendance records."""

from datetime import datetime
from typing import Optional

from .base import CamelModel
from .event import EventCreator
from .user import UserSummary


class AttendeeRead(CamelModel):
    """A join record as created by ``POST /api/attendees/{eventId}/join``."""

    id: str
    user_id: str
    event_id: str
    joined_at: datetime


class EventAttendee(CamelModel):
    """Entry of an event's attendee list."""

    id: str
    joined_at: datetime
    user: UserSummary


class JoinedEvent(CamelModel):
    """An event the current user attends, with the time they joined."""

    id: str
    title: str
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = None
    banner_url: Optional[str] = None
    joined_at: datetime
    creator: Optional[EventCreator] = None
