"""
Top-level API router.

Aggregates the domain routers.  The application mounts this router
under ``/api``; when a domain is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import attendees, auth, events, upload

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(attendees.router, prefix="/attendees", tags=["attendees"])
router.include_router(upload.router, prefix="/upload", tags=["upload"])
