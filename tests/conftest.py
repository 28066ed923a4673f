"""Shared fixtures for the EventHub test suite.

Every test gets its own SQLite file and media directory under
``tmp_path``.  Session cookies are issued without the ``Secure`` flag
so the test client sends them back over plain HTTP.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest
from starlette.testclient import TestClient

from eventhub_api.app.core.config import settings
from eventhub_api.app.core.db import init_db
from eventhub_api.app.main import app
from eventhub_api.app.schemas.event import EventCreate
from eventhub_api.app.schemas.user import UserCreate
from eventhub_api.app.services.event_service import EventService
from eventhub_api.app.services.user_service import UserService

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "eventhub-test.db"))
    monkeypatch.setattr(settings, "media_root", str(tmp_path / "media"))
    monkeypatch.setattr(settings, "session_cookie_secure", False)
    init_db()
    yield tmp_path


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def future_iso(days: int = 7) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def past_iso(days: int = 1) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def register(client: TestClient, email: str, name: Optional[str] = "Test User") -> Dict[str, str]:
    """Register a user and return bearer headers for them.

    The cookie jar is cleared afterwards so that several users can share
    one client; requests then authenticate with the returned headers.
    """
    payload = {"email": email, "password": PASSWORD}
    if name:
        payload["name"] = name
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    session_id = response.json()["data"]["session"]["id"]
    client.cookies.clear()
    return {"Authorization": f"Bearer {session_id}"}


def create_event(client: TestClient, headers: Dict[str, str], **fields) -> dict:
    payload = {"title": "Morning Run", "date": future_iso()}
    payload.update(fields)
    response = client.post("/api/events", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["event"]


@pytest.fixture
def make_user():
    """Create users directly through the service layer."""

    async def _make(email: str, name: str = "Service User"):
        return await UserService.create_user(UserCreate(email=email, password=PASSWORD, name=name))

    return _make


@pytest.fixture
def make_event():
    async def _make(owner, **fields):
        data = {"title": "Board Games Night", "date": datetime.now(timezone.utc) + timedelta(days=3)}
        data.update(fields)
        return await EventService.create_event(EventCreate(**data), owner)

    return _make
