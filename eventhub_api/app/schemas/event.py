"""
Pydantic models for event data.

``EventCreate`` and ``EventUpdate`` describe request bodies;
``EventRead`` is the full representation returned by the API,
including the creator and the current attendee count.  Whether a
date lies in the future is a domain rule checked by ``EventService``,
not by these schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, PositiveInt, field_validator

from .base import CamelModel


class EventCreate(CamelModel):
    """Schema for creating an event."""

    title: str = Field(..., min_length=3, max_length=200, examples=["Yoga in the park"])
    description: Optional[str] = Field(None, max_length=2000, examples=["A relaxing morning session"])
    date: datetime = Field(..., examples=["2030-09-01T10:00:00Z"])
    location: Optional[str] = Field(None, max_length=300, examples=["Central Park"])
    max_attendees: Optional[PositiveInt] = Field(None, examples=[15])


class EventUpdate(CamelModel):
    """Schema for updating an event.

    All fields are optional; only fields present in the request are
    applied.  An explicit ``null`` is rejected rather than ignored,
    since no field can be cleared through an update.
    """

    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=300)
    max_attendees: Optional[PositiveInt] = None

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class EventCreator(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class EventRead(CamelModel):
    """Schema for reading an event from the API."""

    id: str
    title: str
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = None
    banner_url: Optional[str] = None
    max_attendees: Optional[int] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    creator: Optional[EventCreator] = None
    attendee_count: int = 0
