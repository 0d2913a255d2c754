import asyncio

import pytest
from fastapi.testclient import TestClient

from litter_core import MemoryStore, StorageFailure

from backend.app.core.config import settings
from backend.app.core.deps import Services, get_services
from backend.main import app


class RejectingStore(MemoryStore):
    async def set(self, key, value):
        raise StorageFailure("quota exceeded")

    async def list(self, prefix):
        raise StorageFailure("unreachable")


@pytest.fixture
def services():
    return Services()


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(client, image_bytes, content_type="image/jpeg", **form):
    return client.post(
        "/api/v1/captures",
        files={"file": ("photo.jpg", image_bytes, content_type)},
        data={k: str(v) for k, v in form.items()},
    )


class TestCaptures:
    def test_capture_from_exif(self, client, gps_jpeg):
        response = upload(client, gps_jpeg)

        assert response.status_code == 200
        body = response.json()
        assert body["generation"] == 1
        assert body["image"].startswith("data:image/jpeg;base64,")
        assert body["location"]["source"] == "exif"
        assert body["location"]["latitude_display"] == "40.446111° N"
        assert body["location"]["longitude_display"] == "79.982222° W"
        assert body["location"]["map_url"].startswith("https://maps.google.com/?q=40.446")

    def test_capture_from_device_position(self, client, plain_jpeg):
        response = upload(client, plain_jpeg, device_latitude=10.5, device_longitude=20.25)

        assert response.status_code == 200
        location = response.json()["location"]
        assert location["source"] == "device"
        assert (location["latitude"], location["longitude"]) == (10.5, 20.25)

    def test_device_denied(self, client, plain_jpeg):
        response = upload(client, plain_jpeg, device_error="denied")

        assert response.status_code == 422
        assert response.json()["detail"] == (
            "Unable to retrieve location. Please enable location services."
        )

    def test_no_device_position(self, client, plain_jpeg):
        response = upload(client, plain_jpeg)

        assert response.status_code == 422
        assert response.json()["detail"] == "Geolocation is not supported by this browser."

    def test_not_an_image(self, client):
        response = upload(client, b"hello", content_type="text/plain")

        assert response.status_code == 400
        assert response.json()["detail"] == "Please select a valid image file"

    def test_corrupt_image(self, client):
        response = upload(client, b"hello", content_type="image/jpeg")

        assert response.status_code == 400

    def test_too_large(self, client, gps_jpeg, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 10)

        response = upload(client, gps_jpeg)

        assert response.status_code == 413

    def test_session_id_issued_and_reused(self, client, gps_jpeg):
        first = upload(client, gps_jpeg).json()
        second = upload(client, gps_jpeg, session_id=first["session_id"]).json()
        other = upload(client, gps_jpeg).json()

        assert first["session_id"]
        assert second["session_id"] == first["session_id"]
        assert second["generation"] == 2
        assert other["session_id"] != first["session_id"]
        assert other["generation"] == 1


def save(client, capture):
    return client.post(
        "/api/v1/records",
        json={"session_id": capture["session_id"], "generation": capture["generation"]},
    )


class TestRecords:
    def test_save_list_delete(self, client, gps_jpeg):
        capture = upload(client, gps_jpeg).json()
        response = save(client, capture)
        assert response.status_code == 201
        record = response.json()
        assert record["id"] == str(record["timestamp"])
        assert record["image"] == capture["image"]
        assert (record["latitude"], record["longitude"]) == (
            capture["location"]["latitude"],
            capture["location"]["longitude"],
        )

        listing = client.get("/api/v1/records").json()
        assert listing["count"] == 1
        assert listing["records"][0]["id"] == record["id"]
        assert listing["records"][0]["latitude_display"] == "40.446111° N"

        deleted = client.delete(f"/api/v1/records/{record['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {"records": [], "count": 0}

        again = client.delete(f"/api/v1/records/{record['id']}")
        assert again.status_code == 200

    def test_newest_first(self, client, plain_jpeg):
        session_id = None
        for lat in (1.0, 2.0, 3.0):
            form = {"device_latitude": lat, "device_longitude": 0.0}
            if session_id:
                form["session_id"] = session_id
            capture = upload(client, plain_jpeg, **form).json()
            session_id = capture["session_id"]
            assert save(client, capture).status_code == 201

        records = client.get("/api/v1/records").json()["records"]

        assert [r["latitude"] for r in records] == [3.0, 2.0, 1.0]

    def test_two_clients_save_their_own_captures(self, client, plain_jpeg):
        alice = upload(client, plain_jpeg, device_latitude=10.0, device_longitude=20.0).json()
        bob = upload(client, plain_jpeg, device_latitude=-30.0, device_longitude=40.0).json()
        assert alice["session_id"] != bob["session_id"]

        alice_save = save(client, alice)
        bob_save = save(client, bob)

        assert alice_save.status_code == 201
        assert bob_save.status_code == 201
        assert (alice_save.json()["latitude"], alice_save.json()["longitude"]) == (10.0, 20.0)
        assert (bob_save.json()["latitude"], bob_save.json()["longitude"]) == (-30.0, 40.0)
        assert client.get("/api/v1/records").json()["count"] == 2

    def test_stale_generation_rejected(self, client, gps_jpeg, plain_jpeg):
        first = upload(client, gps_jpeg).json()
        second = upload(
            client,
            plain_jpeg,
            session_id=first["session_id"],
            device_latitude=5.0,
            device_longitude=6.0,
        ).json()
        assert second["session_id"] == first["session_id"]
        assert second["generation"] == first["generation"] + 1

        response = save(client, first)

        assert response.status_code == 409
        assert save(client, second).json()["latitude"] == 5.0

    def test_saves_server_resolved_location(self, client, gps_jpeg):
        capture = upload(client, gps_jpeg).json()

        response = client.post(
            "/api/v1/records",
            json={
                "session_id": capture["session_id"],
                "generation": capture["generation"],
                "image": "data:image/png;base64,AAAA",
                "latitude": 1.0,
                "longitude": 1.0,
            },
        )

        assert response.status_code == 201
        assert response.json()["image"] == capture["image"]
        assert response.json()["latitude"] == pytest.approx(40.446111, abs=1e-6)

    def test_capture_saved_only_once(self, client, gps_jpeg):
        capture = upload(client, gps_jpeg).json()

        assert save(client, capture).status_code == 201
        assert save(client, capture).status_code == 404
        assert client.get("/api/v1/records").json()["count"] == 1

    def test_unknown_session(self, client):
        response = client.post(
            "/api/v1/records", json={"session_id": "nobody", "generation": 1}
        )

        assert response.status_code == 404

    def test_failed_capture_leaves_nothing_to_save(self, client, gps_jpeg, plain_jpeg):
        capture = upload(client, gps_jpeg).json()
        failed = upload(client, plain_jpeg, session_id=capture["session_id"])
        assert failed.status_code == 422

        response = client.post(
            "/api/v1/records",
            json={"session_id": capture["session_id"], "generation": capture["generation"] + 1},
        )

        assert response.status_code == 404

    def test_invalid_body(self, client):
        response = client.post("/api/v1/records", json={"session_id": "", "generation": "x"})

        assert response.status_code == 422

    def test_storage_failure(self, client, services, gps_jpeg):
        capture = upload(client, gps_jpeg).json()
        services.manager.store = RejectingStore()

        failed = save(client, capture)
        listing = client.get("/api/v1/records")

        assert failed.status_code == 503
        assert "quota exceeded" in failed.json()["detail"]
        assert listing.status_code == 503

        services.manager.store = MemoryStore()
        assert save(client, capture).status_code == 201

    def test_key_prefix_from_settings(self, monkeypatch, gps_jpeg):
        monkeypatch.setattr(settings, "RECORD_KEY_PREFIX", "litter:")
        services = Services()
        app.dependency_overrides[get_services] = lambda: services
        try:
            client = TestClient(app)
            save(client, upload(client, gps_jpeg).json())
        finally:
            app.dependency_overrides.clear()

        keys = asyncio.run(services.store.list(""))["keys"]
        assert len(keys) == 1
        assert keys[0].startswith("litter:")


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "storage": "memory"}


def test_debug_follows_settings():
    assert app.debug is settings.DEBUG
