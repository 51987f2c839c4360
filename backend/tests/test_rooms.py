"""Room registry endpoints and image storage."""

from __future__ import annotations

from pathlib import Path

from roombook.models import Room

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def _files(name="room.png", content=PNG):
    return {"image": (name, content, "image/png")}


def _stored_images(settings) -> list:
    directory = Path(settings.UPLOAD_DIR) / "rooms"
    return sorted(p.name for p in directory.iterdir()) if directory.exists() else []


def test_list_and_get_rooms(client, room):
    listing = client.get("/api/rooms/")
    assert listing.status_code == 200
    assert listing.json()[0]["features"] == ["Projector", "Whiteboard"]

    single = client.get(f"/api/rooms/{room.id}")
    assert single.json()["name"] == "Boardroom"
    assert single.json()["capacity"] == 10

    missing = client.get("/api/rooms/999")
    assert missing.status_code == 404
    assert missing.json() == {
        "success": False,
        "message": "Room not found.",
        "category": "not_found",
        "error": None,
    }


def test_create_room_requires_admin(client, settings):
    response = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "8"}, files=_files()
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized: Admin access required."
    assert _stored_images(settings) == []


def test_create_room_with_image(client, session, settings, admin_headers):
    response = client.post(
        "/api/rooms/",
        data={"name": "Atrium", "capacity": "8", "features": "TV, , Phone"},
        files=_files(),
        headers=admin_headers,
    )

    assert response.status_code == 201, response.json()
    room = response.json()["room"]
    assert room["features"] == ["TV", "Phone"]
    assert room["image"].startswith("http://testserver/uploads/rooms/image-")
    stored = _stored_images(settings)
    assert len(stored) == 1
    assert session.get(Room, room["id"]).image == f"/uploads/rooms/{stored[0]}"


def test_create_room_accepts_x_admin_auth_header(client, admin_headers):
    token = admin_headers["Authorization"].split(" ", 1)[1]
    response = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "8"}, headers={"X-Admin-Auth": token}
    )
    assert response.status_code == 201


def test_invalid_room_removes_uploaded_image(client, settings, admin_headers):
    response = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "zero"}, files=_files(), headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Capacity must be a positive integer."
    assert _stored_images(settings) == []

    response = client.post("/api/rooms/", data={"capacity": "4"}, files=_files(), headers=admin_headers)
    assert response.json()["message"] == "Room name and capacity are required."
    assert _stored_images(settings) == []


def test_disallowed_extension_rejected(client, settings, admin_headers):
    response = client.post(
        "/api/rooms/",
        data={"name": "Atrium", "capacity": "8"},
        files=_files(name="notes.txt", content=b"hello"),
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("File type not allowed")
    assert _stored_images(settings) == []


def test_oversized_image_rejected(client, images, admin_headers):
    images.max_size = 10
    response = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "8"}, files=_files(), headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("File size exceeds")


def test_update_replaces_old_image(client, settings, admin_headers):
    created = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "8"}, files=_files(), headers=admin_headers
    ).json()["room"]
    first_image = _stored_images(settings)

    response = client.put(
        f"/api/rooms/{created['id']}",
        data={"name": "Atrium 2", "capacity": "12"},
        files=_files(name="new.jpg"),
        headers=admin_headers,
    )

    assert response.status_code == 200, response.json()
    assert response.json()["room"]["name"] == "Atrium 2"
    remaining = _stored_images(settings)
    assert len(remaining) == 1
    assert remaining != first_image
    assert remaining[0].endswith(".jpg")


def test_update_without_image_keeps_old_one(client, settings, admin_headers):
    created = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "8"}, files=_files(), headers=admin_headers
    ).json()["room"]

    response = client.put(
        f"/api/rooms/{created['id']}", data={"name": "Atrium", "capacity": "9"}, headers=admin_headers
    )

    assert response.json()["room"]["image"] == created["image"]
    assert len(_stored_images(settings)) == 1


def test_update_missing_room_discards_new_image(client, settings, admin_headers):
    response = client.put(
        "/api/rooms/4242", data={"name": "Ghost", "capacity": "3"}, files=_files(), headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Room not found for update."
    assert _stored_images(settings) == []


def test_delete_room_removes_image(client, session, settings, admin_headers):
    created = client.post(
        "/api/rooms/", data={"name": "Atrium", "capacity": "8"}, files=_files(), headers=admin_headers
    ).json()["room"]

    response = client.delete(f"/api/rooms/{created['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Room deleted successfully."}
    assert session.get(Room, created["id"]) is None
    assert _stored_images(settings) == []

    assert client.delete(f"/api/rooms/{created['id']}", headers=admin_headers).status_code == 404


def test_image_store_ignores_foreign_paths(images, tmp_path):
    outside = tmp_path / "keep.png"
    outside.write_bytes(PNG)

    images.delete(str(outside))
    images.delete("/uploads/rooms/never-existed.png")

    assert outside.exists()
