"""HTTP tests for banner uploads and media serving."""

from __future__ import annotations

from pathlib import Path

from starlette.datastructures import UploadFile

from conftest import create_event, register
from eventhub_api.app.core.config import settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def upload(client, event_id, headers, filename="banner.png", content=PNG_BYTES, content_type="image/png"):
    return client.post(
        f"/api/upload/{event_id}/banner",
        files={"banner": (filename, content, content_type)},
        headers=headers,
    )


def stored_files():
    root = Path(settings.media_root)
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


def record_reads(monkeypatch):
    """Record the number of bytes each ``UploadFile.read`` call returns."""
    sizes = []
    original = UploadFile.read

    async def read(self, size=-1):
        data = await original(self, size)
        sizes.append(len(data))
        return data

    monkeypatch.setattr(UploadFile, "read", read)
    return sizes


class TestUploadBanner:
    def test_upload_sets_banner_and_serves_file(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)

        response = upload(client, event["id"], owner)

        assert response.status_code == 200
        data = response.json()["data"]
        url = data["bannerUrl"]
        assert url.startswith(f"{settings.media_base_url}/events/events_")
        assert url.endswith(".png")
        assert data["event"]["bannerUrl"] == url
        assert client.get(f"/api/events/{event['id']}").json()["data"]["event"]["bannerUrl"] == url

        served = client.get(url)
        assert served.status_code == 200
        assert served.content == PNG_BYTES

    def test_replacing_banner_deletes_old_object(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)
        first = upload(client, event["id"], owner).json()["data"]["bannerUrl"]

        second = upload(client, event["id"], owner, filename="new.webp", content_type="image/webp")

        assert second.status_code == 200
        new_url = second.json()["data"]["bannerUrl"]
        assert new_url != first
        assert len(stored_files()) == 1
        assert client.get(first).status_code == 404

    def test_rejects_non_image(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)

        response = upload(client, event["id"], owner, filename="notes.txt", content=b"hi", content_type="text/plain")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid file type. Only images are allowed."
        assert stored_files() == []

    def test_rejects_oversized_file(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 1024)
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)

        response = upload(client, event["id"], owner, content=b"\x00" * 2048)

        assert response.status_code == 400
        assert "File size exceeds" in response.json()["error"]["message"]

    def test_invalid_upload_keeps_existing_banner(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)
        url = upload(client, event["id"], owner).json()["data"]["bannerUrl"]

        upload(client, event["id"], owner, filename="x.txt", content=b"x", content_type="text/plain")

        assert client.get(url).status_code == 200

    def test_missing_file(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)

        response = client.post(f"/api/upload/{event['id']}/banner", headers=owner)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No file provided"

    def test_non_owner_is_forbidden(self, client):
        owner = register(client, "owner@example.com")
        intruder = register(client, "intruder@example.com")
        event = create_event(client, owner)

        response = upload(client, event["id"], intruder)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "You are not authorized to upload banner for this event"
        assert stored_files() == []

    def test_unknown_event(self, client):
        owner = register(client, "owner@example.com")
        assert upload(client, "event_missing", owner).status_code == 404


class TestDeleteBanner:
    def test_delete_banner(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)
        upload(client, event["id"], owner)

        response = client.delete(f"/api/upload/{event['id']}/banner", headers=owner)

        assert response.status_code == 200
        assert response.json()["data"]["event"]["bannerUrl"] is None
        assert stored_files() == []

    def test_delete_without_banner(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)

        response = client.delete(f"/api/upload/{event['id']}/banner", headers=owner)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No banner to delete"

    def test_deleting_event_removes_banner(self, client):
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)
        upload(client, event["id"], owner)

        client.delete(f"/api/events/{event['id']}", headers=owner)

        assert stored_files() == []


class TestUploadReads:
    def test_non_owner_upload_is_never_read(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 1024)
        owner = register(client, "owner@example.com")
        intruder = register(client, "intruder@example.com")
        event = create_event(client, owner)
        sizes = record_reads(monkeypatch)

        response = upload(client, event["id"], intruder, content=b"\x00" * 64 * 1024)

        assert response.status_code == 403
        assert sizes == []

    def test_oversized_upload_is_read_only_past_the_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 1024)
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)
        sizes = record_reads(monkeypatch)

        response = upload(client, event["id"], owner, content=b"\x00" * 64 * 1024)

        assert response.status_code == 400
        assert sizes == [1025]
        assert stored_files() == []

    def test_upload_at_the_limit_is_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 1024)
        owner = register(client, "owner@example.com")
        event = create_event(client, owner)

        response = upload(client, event["id"], owner, content=b"\x00" * 1024)

        assert response.status_code == 200
        assert client.get(response.json()["data"]["bannerUrl"]).content == b"\x00" * 1024
