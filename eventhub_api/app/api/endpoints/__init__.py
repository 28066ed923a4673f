"""
Endpoint modules.

Each module defines an ``APIRouter`` for one domain (auth, events,
attendees, upload).  The routers are combined in ``api/router.py``.
"""
