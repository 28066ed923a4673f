"""
Pydantic models for user data.

Defines schemas for registering, logging in and reading user
information.  The password hash never leaves the service layer: read
models simply do not have a field for it.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from .base import CamelModel


class UserCreate(CamelModel):
    """Registration payload."""

    email: EmailStr = Field(..., examples=["user@example.com"])
    password: str = Field(..., min_length=8, max_length=100, examples=["strongpassword"])
    name: Optional[str] = Field(None, min_length=2, examples=["Jane Doe"])


class UserLogin(CamelModel):
    email: EmailStr = Field(..., examples=["user@example.com"])
    password: str = Field(..., min_length=1)


class UserSummary(CamelModel):
    """Public view of a user embedded in events and attendee lists."""

    id: str
    name: Optional[str] = None
    email: str


class UserRead(UserSummary):
    """Schema for reading the authenticated user."""

    created_at: datetime


class SessionRead(CamelModel):
    id: str
