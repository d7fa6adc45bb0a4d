from __future__ import annotations

import io
import json

import fakeredis
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from conftest import make_image_bytes
from main import create_app
from services.deploy_service import DeployService

HEN = {"name": "Henrietta!!", "description": "Friendly Orpington", "availability": "limited"}


def test_create_get_and_conflict(client: TestClient) -> None:
    created = client.post("/api/animals/chickens", json=HEN)
    assert created.status_code == 201
    body = created.json()
    assert body["id"] == "henrietta"
    assert body["type"] == "chickens"
    assert body["images"] == []

    fetched = client.get("/api/animals/chickens/henrietta")
    assert fetched.status_code == 200
    assert fetched.json() == body

    duplicate = client.post("/api/animals/chickens", json=HEN)
    assert duplicate.status_code == 409
    assert "error" in duplicate.json()


def test_list_groups_by_category(client: TestClient) -> None:
    client.post("/api/animals/chickens", json=HEN)
    client.post("/api/animals/goats", json={**HEN, "name": "Billy"})

    listing = client.get("/api/animals").json()

    assert [a["id"] for a in listing["chickens"]] == ["henrietta"]
    assert [a["id"] for a in listing["goats"]] == ["billy"]
    assert listing["goats"][0]["type"] == "goats"


def test_invalid_category_and_missing_fields(client: TestClient) -> None:
    assert client.get("/api/animals/ducks/henrietta").status_code == 400
    assert client.post("/api/animals/ducks", json=HEN).status_code == 400
    assert client.put("/api/animals/ducks/x", json={}).status_code == 400
    assert client.delete("/api/animals/ducks/x").status_code == 400

    missing = client.post("/api/animals/goats", json={"name": "Billy"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing required fields"


def test_partial_update_and_delete(client: TestClient) -> None:
    client.post("/api/animals/chickens", json={**HEN, "availability": "available"})

    updated = client.put("/api/animals/chickens/henrietta", json={"description": "Retired layer"})
    assert updated.status_code == 200
    assert updated.json()["availability"] == "available"
    assert updated.json()["description"] == "Retired layer"

    assert client.put("/api/animals/chickens/nobody", json={"description": "x"}).status_code == 404

    assert client.delete("/api/animals/chickens/henrietta").json() == {"success": True}
    assert client.delete("/api/animals/chickens/henrietta").status_code == 404
    assert client.get("/api/animals/chickens/henrietta").status_code == 404


def test_upload_large_jpeg_produces_bounded_pair(client: TestClient, settings) -> None:
    files = [("images", ("field.jpg", make_image_bytes(2000, 1000), "image/jpeg"))]

    response = client.post("/api/upload/goats", files=files)

    assert response.status_code == 200
    body = response.json()
    assert len(body["images"]) == 1
    pair = body["images"][0]
    assert body["urls"] == [pair["full"]]
    assert pair["full"].startswith("/images/goats/") and pair["full"].endswith("-field.webp")
    assert pair["thumb"].endswith("-field-thumb.webp")

    for key, bound in (("full", 1200), ("thumb", 400)):
        served = client.get(pair[key])
        assert served.status_code == 200
        with Image.open(io.BytesIO(served.content)) as img:
            assert img.width <= bound

    assert (settings.images_dir / "goats" / pair["full"].rsplit("/", 1)[1]).is_file()


def test_upload_rejections(client: TestClient, settings) -> None:
    jpeg = make_image_bytes(20, 20)

    assert client.post("/api/upload/ducks", files=[("images", ("a.jpg", jpeg, "image/jpeg"))]).status_code == 400

    unsupported = client.post("/api/upload/goats", files=[("images", ("a.bmp", b"BM....", "image/bmp"))])
    assert unsupported.status_code == 400

    too_many = [("images", (f"{i}.jpg", jpeg, "image/jpeg")) for i in range(11)]
    assert client.post("/api/upload/goats", files=too_many).status_code == 400

    broken = client.post("/api/upload/goats", files=[("images", ("a.png", b"not really a png", "image/png"))])
    assert broken.status_code == 500

    assert client.post("/api/upload/goats").status_code == 400
    assert not any((settings.images_dir / "goats").glob("*"))


def test_upload_rejects_oversized_file(client: TestClient) -> None:
    oversized = b"\xff\xd8" + b"0" * (10 * 1024 * 1024)
    response = client.post("/api/upload/chickens", files=[("images", ("big.jpg", oversized, "image/jpeg"))])
    assert response.status_code == 413


def test_delete_image_pair(client: TestClient, settings) -> None:
    files = [("images", ("hen.png", make_image_bytes(100, 100, fmt="PNG"), "image/png"))]
    pair = client.post("/api/upload/chickens", files=files).json()["images"][0]

    response = client.request("DELETE", "/api/images", json={"path": pair["thumb"]})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert not any((settings.images_dir / "chickens").glob("*"))
    assert client.request("DELETE", "/api/images", json={"path": pair["full"]}).status_code == 404
    assert client.request("DELETE", "/api/images", json={"path": "/etc/passwd"}).status_code == 400
    assert client.request("DELETE", "/api/images", json={}).status_code == 400


def test_followups_list_count_and_dismiss(client: TestClient, redis_sync) -> None:
    for n in range(3):
        redis_sync.rpush("followups", json.dumps({"sender_id": str(n), "question": f"q{n}"}))

    assert client.get("/api/followups/count").json() == {"count": 3, "available": True}

    listed = client.get("/api/followups").json()
    assert [(e["index"], e["sender_id"]) for e in listed] == [(0, "0"), (1, "1"), (2, "2")]

    assert client.delete("/api/followups/0").json() == {"success": True}
    assert [e["sender_id"] for e in client.get("/api/followups").json()] == ["1", "2"]
    assert client.delete("/api/followups/5").status_code == 404


def test_followups_when_store_is_down(client: TestClient, redis_server) -> None:
    redis_server.connected = False

    assert client.get("/api/followups/count").json() == {"count": 0, "available": False}
    assert client.get("/api/followups").status_code == 500
    assert client.delete("/api/followups/0").status_code == 500
    # Record routes keep working without the follow-up store.
    assert client.get("/api/animals").status_code == 200


def test_deploy_success(client: TestClient) -> None:
    response = client.post("/api/deploy")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["message"]


def test_deploy_failure_reports_details(settings, redis_server) -> None:
    failing = DeployService(["sh", "-c", "echo build broke; exit 3"], settings.project_root)
    app = create_app(
        settings,
        redis_client=fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True),
        deploy_service=failing,
    )
    with TestClient(app) as test_client:
        response = test_client.post("/api/deploy")

    assert response.status_code == 500
    assert response.json()["error"] == "Deploy failed"
    assert "build broke" in response.json()["details"]
    assert response.json()["exit_code"] == 3


def test_health(client: TestClient, settings) -> None:
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["content_root"] == str(settings.content_dir)
    assert body["followups"] == "connected"


def test_followup_count_soft_fails_on_wrong_key_type(client: TestClient, redis_sync) -> None:
    redis_sync.set("followups", "x")

    assert client.get("/api/followups/count").json() == {"count": 0, "available": False}


def test_upload_checks_encoding_not_declared_type(client: TestClient, settings) -> None:
    bmp = make_image_bytes(20, 20, fmt="BMP")

    response = client.post("/api/upload/goats", files=[("images", ("a.jpg", bmp, "image/jpeg"))])

    assert response.status_code == 400
    assert "error" in response.json()
    assert not any((settings.images_dir / "goats").glob("*"))


def test_upload_of_thumb_named_file_deletes_as_a_pair(client: TestClient, settings) -> None:
    files = [("images", ("goat-thumb.jpg", make_image_bytes(60, 40), "image/jpeg"))]
    pair = client.post("/api/upload/goats", files=files).json()["images"][0]

    assert pair["full"] != pair["thumb"]
    response = client.request("DELETE", "/api/images", json={"path": pair["full"]})

    assert response.status_code == 200
    assert not any((settings.images_dir / "goats").glob("*"))


def test_delete_image_rejects_nul_byte(client: TestClient) -> None:
    response = client.request("DELETE", "/api/images", json={"path": "/images/goats/a\u0000.webp"})

    assert response.status_code == 400
