"""Tests for the API client and the toast registry."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from eventhub_client import EventHubClient, Notifier, Toast


class FakeSession:
    """Stands in for ``requests.Session`` and replays canned responses."""

    def __init__(self, responses: List[requests.Response]) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.cookies = requests.cookies.RequestsCookieJar()

    def request(self, **kwargs: Any) -> requests.Response:
        self.calls.append(kwargs)
        return self.responses.pop(0)


class FailingSession(FakeSession):
    def request(self, **kwargs: Any) -> requests.Response:
        self.calls.append(kwargs)
        raise requests.ConnectionError("connection refused")


def make_response(status: int, body: Optional[dict] = None, url: str = "http://api.test/x") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    response._content = json.dumps(body).encode() if body is not None else b""
    response.headers["Content-Type"] = "application/json"
    return response


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def received(notifier):
    toasts: List[Optional[Toast]] = []
    notifier.subscribe(toasts.append)
    return toasts


class TestNotifier:
    def test_subscribers_receive_toasts(self, notifier, received):
        toast = notifier.notify("Saved", "All good")
        assert received == [toast]
        assert toast.variant == "default"

    def test_unsubscribe(self, notifier):
        toasts = []
        unsubscribe = notifier.subscribe(toasts.append)
        assert notifier.listener_count == 1

        unsubscribe()
        unsubscribe()
        notifier.notify("Ignored")

        assert toasts == []
        assert notifier.listener_count == 0

    def test_dismiss_delivers_none(self, notifier, received):
        notifier.notify("Hello")
        notifier.dismiss()
        assert received[-1] is None

    def test_ids_increase(self, notifier):
        first = notifier.notify("one")
        second = notifier.notify("two")
        assert int(second.id) == int(first.id) + 1

    def test_failing_listener_does_not_block_others(self, notifier, received):
        def broken(toast):
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.notify("Still delivered")
        assert received[0].title == "Still delivered"

    def test_listener_may_unsubscribe_while_notified(self, notifier):
        seen = []

        def once(toast):
            seen.append(toast)
            unsubscribe()

        unsubscribe = notifier.subscribe(once)
        notifier.notify("first")
        notifier.notify("second")
        assert [t.title for t in seen] == ["first"]


class TestClient:
    def test_success_unwraps_data_and_remembers_session(self, notifier, received):
        session = FakeSession([
            make_response(200, {"success": True, "data": {"user": {"id": "user_1"}, "session": {"id": "sess"}}}),
            make_response(200, {"success": True, "data": {"user": {"id": "user_1"}}}),
        ])
        client = EventHubClient("http://api.test/", session=session, notifier=notifier)

        data, error = client.login("ada@example.com", "password123")
        assert error is None
        assert data["user"]["id"] == "user_1"
        assert received[0].title == "Welcome back!"

        client.me()
        assert session.calls[1]["headers"]["Authorization"] == "Bearer sess"
        assert session.calls[1]["url"] == "http://api.test/api/auth/me"

    def test_error_envelope_is_parsed_and_toasted(self, notifier, received):
        session = FakeSession([make_response(400, {"error": {"message": "Event is full", "status": 400}})])
        client = EventHubClient("http://api.test", session=session, notifier=notifier)

        data, error = client.join_event("event_1")

        assert data is None
        assert error == {"status_code": 400, "message": "Event is full"}
        assert received[0].variant == "destructive"
        assert received[0].description == "Event is full"
        assert session.calls[0]["method"] == "POST"
        assert session.calls[0]["url"] == "http://api.test/api/attendees/event_1/join"

    def test_network_failure(self, notifier, received):
        client = EventHubClient("http://api.test", session=FailingSession([]), notifier=notifier)

        data, error = client.list_events()

        assert data is None
        assert error["status_code"] is None
        assert "connection refused" in error["message"]
        assert received[0].variant == "destructive"

    def test_me_does_not_toast_on_401(self, notifier, received):
        session = FakeSession([make_response(401, {"error": {"message": "Unauthorized", "status": 401}})])
        client = EventHubClient("http://api.test", session=session, notifier=notifier)

        _, error = client.me()

        assert error["status_code"] == 401
        assert received == []

    def test_list_events_sends_query(self, notifier):
        payload = {"success": True, "data": {"events": [], "pagination": {"total": 0}}}
        session = FakeSession([make_response(200, payload)])
        client = EventHubClient("http://api.test", session=session, notifier=notifier)

        data, _ = client.list_events(page=2, limit=5, sort="title", order="desc")

        assert data["events"] == []
        assert session.calls[0]["params"] == {"page": 2, "limit": 5, "sort": "title", "order": "desc"}

    def test_upload_sends_multipart_field(self, notifier):
        payload = {"success": True, "data": {"bannerUrl": "/media/events/x.png"}}
        session = FakeSession([make_response(200, payload)])
        client = EventHubClient("http://api.test", session=session, notifier=notifier)

        data, _ = client.upload_banner("event_1", "x.png", b"png", "image/png")

        assert data["bannerUrl"] == "/media/events/x.png"
        assert session.calls[0]["files"] == {"banner": ("x.png", b"png", "image/png")}

    def test_logout_forgets_session(self, notifier):
        session = FakeSession([
            make_response(200, {"success": True, "data": {"session": {"id": "sess"}}}),
            make_response(200, {"success": True, "message": "Logout successful", "data": None}),
        ])
        client = EventHubClient("http://api.test", session=session, notifier=notifier)
        client.register("ada@example.com", "password123")

        client.logout()

        assert client.session_token is None
