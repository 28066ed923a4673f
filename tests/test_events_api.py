"""HTTP tests for the event endpoints."""

from __future__ import annotations

import pytest

from conftest import create_event, future_iso, past_iso, register


class TestCreate:
    def test_create_returns_camel_case_event(self, client):
        headers = register(client, "owner@example.com", name="Olive")

        response = client.post(
            "/api/events",
            json={
                "title": "Pottery class",
                "description": "Clay provided",
                "date": future_iso(),
                "location": "Studio 4",
                "maxAttendees": 8,
            },
            headers=headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Event created successfully"
        event = body["data"]["event"]
        assert event["maxAttendees"] == 8
        assert event["bannerUrl"] is None
        assert event["attendeeCount"] == 0
        assert event["creator"]["name"] == "Olive"
        assert event["createdBy"] == event["creator"]["id"]
        assert event["date"].endswith("Z")

    def test_requires_session(self, client):
        response = client.post("/api/events", json={"title": "Nope", "date": future_iso()})
        assert response.status_code == 401

    def test_past_date_creates_nothing(self, client):
        headers = register(client, "owner@example.com")

        response = client.post("/api/events", json={"title": "Too late", "date": past_iso()}, headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": {"message": "Event date must be in the future", "status": 400}}
        listing = client.get("/api/events").json()["data"]
        assert listing["events"] == []
        assert listing["pagination"]["total"] == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "No", "date": "2099-01-01T00:00:00Z"},
            {"title": "x" * 201, "date": "2099-01-01T00:00:00Z"},
            {"title": "Valid title", "date": "2099-01-01T00:00:00Z", "maxAttendees": 0},
            {"title": "Valid title", "date": "2099-01-01T00:00:00Z", "description": "d" * 2001},
            {"title": "Valid title", "date": "not a date"},
            {"title": "Valid title"},
        ],
    )
    def test_schema_violations(self, client, payload):
        headers = register(client, "owner@example.com")
        response = client.post("/api/events", json=payload, headers=headers)
        assert response.status_code == 400


class TestRead:
    def test_get_event(self, client):
        headers = register(client, "owner@example.com")
        event = create_event(client, headers, title="Chess club")

        response = client.get(f"/api/events/{event['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["event"]["title"] == "Chess club"

    def test_get_unknown_event(self, client):
        response = client.get("/api/events/event_missing")
        assert response.status_code == 404
        assert response.json() == {"error": {"message": "Event not found", "status": 404}}

    def test_list_defaults_and_pagination(self, client):
        headers = register(client, "owner@example.com")
        for day in range(1, 13):
            create_event(client, headers, title=f"Event {day:02d}", date=future_iso(day))

        body = client.get("/api/events").json()["data"]
        assert len(body["events"]) == 10
        assert body["events"][0]["title"] == "Event 01"
        assert body["pagination"] == {
            "total": 12,
            "page": 1,
            "limit": 10,
            "totalPages": 2,
            "hasNext": True,
            "hasPrev": False,
        }

        second = client.get("/api/events", params={"page": 2}).json()["data"]
        assert [e["title"] for e in second["events"]] == ["Event 11", "Event 12"]

    def test_list_sort_by_title_desc(self, client):
        headers = register(client, "owner@example.com")
        for title in ["Beta", "Alpha", "Gamma"]:
            create_event(client, headers, title=title)

        body = client.get("/api/events", params={"sort": "title", "order": "desc"}).json()["data"]
        assert [e["title"] for e in body["events"]] == ["Gamma", "Beta", "Alpha"]

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort": "location"}, {"order": "sideways"}],
    )
    def test_bad_query(self, client, params):
        response = client.get("/api/events", params=params)
        assert response.status_code == 400

    def test_created_events(self, client):
        owner = register(client, "owner@example.com")
        other = register(client, "other@example.com")
        mine = create_event(client, owner, title="Mine")
        create_event(client, other, title="Theirs")

        response = client.get("/api/events/user/created", headers=owner)

        assert response.status_code == 200
        assert [e["id"] for e in response.json()["data"]["events"]] == [mine["id"]]


class TestUpdate:
    def test_owner_can_update(self, client):
        headers = register(client, "owner@example.com")
        event = create_event(client, headers, location="Library")

        response = client.put(f"/api/events/{event['id']}", json={"title": "Renamed"}, headers=headers)

        assert response.status_code == 200
        updated = response.json()["data"]["event"]
        assert updated["title"] == "Renamed"
        assert updated["location"] == "Library"

    def test_non_owner_is_forbidden_and_record_unchanged(self, client):
        owner = register(client, "owner@example.com")
        intruder = register(client, "intruder@example.com")
        event = create_event(client, owner, title="Original")

        response = client.put(f"/api/events/{event['id']}", json={"title": "Hijacked"}, headers=intruder)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "You are not authorized to update this event"
        assert client.get(f"/api/events/{event['id']}").json()["data"]["event"]["title"] == "Original"

    def test_unknown_event(self, client):
        headers = register(client, "owner@example.com")
        response = client.put("/api/events/event_missing", json={"title": "Renamed"}, headers=headers)
        assert response.status_code == 404

    def test_past_date(self, client):
        headers = register(client, "owner@example.com")
        event = create_event(client, headers)
        response = client.put(f"/api/events/{event['id']}", json={"date": past_iso()}, headers=headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("field", ["title", "description", "date", "location", "maxAttendees"])
    def test_explicit_null_is_rejected(self, client, field):
        headers = register(client, "owner@example.com")
        event = create_event(client, headers, location="Library", maxAttendees=5)

        response = client.put(f"/api/events/{event['id']}", json={field: None}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith(f"{field}:")
        unchanged = client.get(f"/api/events/{event['id']}").json()["data"]["event"]
        assert unchanged["title"] == "Morning Run"
        assert unchanged["maxAttendees"] == 5
        assert unchanged["updatedAt"] == event["updatedAt"]


class TestDelete:
    def test_owner_deletes_event_and_attendance(self, client):
        owner = register(client, "owner@example.com")
        guest = register(client, "guest@example.com")
        event = create_event(client, owner)
        client.post(f"/api/attendees/{event['id']}/join", headers=guest)

        response = client.delete(f"/api/events/{event['id']}", headers=owner)

        assert response.status_code == 200
        assert client.get(f"/api/events/{event['id']}").status_code == 404
        assert client.get("/api/attendees/user/joined", headers=guest).json()["data"]["events"] == []

    def test_non_owner_cannot_delete(self, client):
        owner = register(client, "owner@example.com")
        intruder = register(client, "intruder@example.com")
        event = create_event(client, owner)

        response = client.delete(f"/api/events/{event['id']}", headers=intruder)

        assert response.status_code == 403
        assert client.get(f"/api/events/{event['id']}").status_code == 200
