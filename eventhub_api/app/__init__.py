"""
Application package.

``core`` holds configuration, the database, security helpers and the
error taxonomy; ``schemas`` the pydantic models; ``services`` the
business logic; ``api`` the HTTP routers.  ``main`` wires them into
the FastAPI application.
"""

from .main import app  # noqa: F401
