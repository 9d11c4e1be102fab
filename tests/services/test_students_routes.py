"""Student Routes — verifies the HTTP boundary end to end against the test database.

Invariants:
    - POST returns 201 with the populated student; the default avatar is used when none is sent
    - Re-POSTing the same email returns 409 and creates nothing
    - Malformed ids and payloads return 400 (never 422), unknown ids 404
    - Oversized uploads return 413 and are never read past the limit
    - user.avatar in a JSON update returns 400; only uploads change it
    - debug_info reaches the response only in development
    - Responses never carry password material
"""

import io
import json

import pytest
from sqlalchemy import func, select
from starlette.datastructures import Headers, UploadFile

import app.api.error_handlers as error_handlers
from app.api.deps import get_delete_controller
from app.api.routes.student_request import to_asset_file
from app.config import Settings
from app.core.errors import FileTooLargeError, TransientWriteError
from app.main import app
from app.models.student import Student
from app.models.user import User
from app.services.delete_retry import DeleteRetryController
from student_factory import DEFAULT_AVATAR, student_payload

BASE = "/api/v1/students"
MISSING = "9d5ab3a2-3c1e-4e7b-8a62-000000000000"


def _multipart_fields(payload: dict) -> dict:
    return {k: json.dumps(v) if isinstance(v, dict) else v for k, v in payload.items()}


async def _count(factory, model) -> int:
    async with factory() as s:
        return (await s.execute(select(func.count()).select_from(model))).scalar_one()


async def test_create_returns_201_with_default_avatar(client, assets):
    res = await client.post(BASE, json=student_payload())

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Student created successfully"
    data = body["data"]
    assert data["user"]["avatar"] == DEFAULT_AVATAR
    assert data["user"]["email"] == "ana.silva@example.com"
    assert data["user"]["type"] == 1
    assert data["address"]["postalCode"] == "50000"
    assert data["birthDate"] == "2001-04-12"
    assert "password" not in data["user"]
    assert "passwordHash" not in data["user"]
    assert assets.uploads == []


async def test_duplicate_post_returns_409_and_creates_nothing(client, test_session_factory):
    first = await client.post(BASE, json=student_payload())
    assert first.status_code == 201

    second = await client.post(BASE, json=student_payload())

    assert second.status_code == 409
    assert second.json()["error"]["code"] == "CONFLICT"
    assert await _count(test_session_factory, User) == 1
    assert await _count(test_session_factory, Student) == 1


async def test_create_with_invalid_payload_returns_400(client):
    res = await client.post(BASE, json=student_payload(phone="x", level="EC7"))

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert len(error["details"]) == 2


async def test_create_with_malformed_json_returns_400(client):
    res = await client.post(
        BASE, content=b"{not json", headers={"content-type": "application/json"},
    )
    assert res.status_code == 400


async def test_create_multipart_with_avatar(client, assets):
    res = await client.post(
        BASE,
        data=_multipart_fields(student_payload()),
        files={"avatar": ("me.png", b"\x89PNG0000", "image/png")},
    )

    assert res.status_code == 201
    assert res.json()["data"]["user"]["avatar"] == assets.uploads[0]


async def test_create_form_dot_notation(client):
    payload = student_payload()
    fields = {k: v for k, v in payload.items() if not isinstance(v, dict)}
    fields.update({f"user.{k}": v for k, v in payload["user"].items()})
    fields.update({f"address.{k}": v for k, v in payload["address"].items()})

    res = await client.post(BASE, data=fields)

    assert res.status_code == 201
    assert res.json()["data"]["user"]["firstName"] == "Ana"


async def test_list_empty_returns_404(client):
    res = await client.get(BASE)
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "No students found"


async def test_list_returns_students(client, seed_student):
    res = await client.get(BASE)
    assert res.status_code == 200
    assert [s["id"] for s in res.json()["data"]] == [str(seed_student.id)]


async def test_get_by_id(client, seed_student):
    res = await client.get(f"{BASE}/{seed_student.id}")
    assert res.status_code == 200
    assert res.json()["data"]["user"]["firstName"] == "Ana"


async def test_get_with_malformed_id_returns_400(client):
    res = await client.get(f"{BASE}/not-a-uuid")
    assert res.status_code == 400


async def test_get_unknown_returns_404(client):
    res = await client.get(f"{BASE}/{MISSING}")
    assert res.status_code == 404


async def test_list_by_ward(client, coordinator):
    ward = "0b6f3a5e-8c44-4b8e-9f57-1f2d3c4b5a69"
    member = await coordinator.create_student(student_payload(wardId=ward))
    await coordinator.create_student(student_payload(email="other@example.com"))

    res = await client.get(f"{BASE}/ward/{ward}")

    assert res.status_code == 200
    assert [s["id"] for s in res.json()["data"]] == [str(member.id)]


async def test_get_by_user(client, seed_student):
    res = await client.get(f"{BASE}/user/{seed_student.user_id}")
    assert res.status_code == 200
    assert res.json()["data"]["id"] == str(seed_student.id)


async def test_get_by_unknown_user_returns_404(client):
    res = await client.get(f"{BASE}/user/{MISSING}")
    assert res.status_code == 404


async def test_update_json(client, seed_student):
    res = await client.put(
        f"{BASE}/{seed_student.id}", json={"level": "EC2", "address": {"city": "Olinda"}},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Student updated successfully"
    assert body["data"]["level"] == "EC2"
    assert body["data"]["address"]["city"] == "Olinda"


async def test_update_type_returns_400(client, seed_student):
    res = await client.put(f"{BASE}/{seed_student.id}", json={"type": 10})
    assert res.status_code == 400
    assert "Type cannot be modified" in res.json()["error"]["details"]


async def test_update_avatar_url_returns_400(client, seed_student):
    res = await client.put(
        f"{BASE}/{seed_student.id}",
        json={"user": {"avatar": "https://assets.test/avatars/1-someone.png"}},
    )

    assert res.status_code == 400
    details = res.json()["error"]["details"]
    assert "user.avatar: can only be changed by uploading a file" in details
    stored = (await client.get(f"{BASE}/{seed_student.id}")).json()["data"]
    assert stored["user"]["avatar"] == DEFAULT_AVATAR


async def test_update_oversized_avatar_returns_413(client, assets, seed_student):
    res = await client.put(
        f"{BASE}/{seed_student.id}",
        data={"level": "EC2"},
        files={"avatar": ("big.png", b"0" * 4096, "image/png")},
    )

    assert res.status_code == 413
    assert res.json()["error"]["code"] == "FILE_TOO_LARGE"
    assert assets.uploads == []


async def test_update_empty_returns_400(client, seed_student):
    res = await client.put(f"{BASE}/{seed_student.id}", json={})
    assert res.status_code == 400


async def test_update_multipart_avatar_only(client, assets, seed_student):
    res = await client.put(
        f"{BASE}/{seed_student.id}",
        files={"avatar": ("me.jpg", b"\xff\xd8\xff0000", "image/jpeg")},
    )

    assert res.status_code == 200
    assert res.json()["data"]["user"]["avatar"] == assets.uploads[0]
    assert assets.deletes == []


async def test_upload_avatar(client, assets, seed_student):
    res = await client.put(
        f"{BASE}/upload/{seed_student.id}",
        files={"avatar": ("me.webp", b"RIFF0000WEBP", "image/webp")},
    )
    assert res.status_code == 200
    assert res.json()["data"]["user"]["avatar"] == assets.uploads[0]


async def test_upload_oversized_avatar_returns_413(client, assets, seed_student):
    res = await client.put(
        f"{BASE}/upload/{seed_student.id}",
        files={"avatar": ("big.png", b"0" * 4096, "image/png")},
    )
    assert res.status_code == 413
    assert res.json()["error"]["code"] == "FILE_TOO_LARGE"
    assert assets.uploads == []


async def test_upload_unsupported_type_returns_400(client, seed_student):
    res = await client.put(
        f"{BASE}/upload/{seed_student.id}",
        files={"avatar": ("a.gif", b"GIF89a", "image/gif")},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"


async def test_upload_without_file_returns_400(client, seed_student):
    res = await client.put(
        f"{BASE}/upload/{seed_student.id}", files={"other": ("a.png", b"x", "image/png")},
    )
    assert res.status_code == 400


async def test_delete_removes_student(client, seed_student):
    res = await client.delete(f"{BASE}/{seed_student.id}")

    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Student and linked data deleted"
    assert body["data"]["studentId"] == str(seed_student.id)
    assert body["data"]["userId"] == str(seed_student.user_id)
    assert (await client.get(f"{BASE}/{seed_student.id}")).status_code == 404


async def test_delete_unknown_returns_404(client):
    res = await client.delete(f"{BASE}/{MISSING}")
    assert res.status_code == 404


async def test_delete_malformed_id_returns_400(client):
    res = await client.delete(f"{BASE}/123")
    assert res.status_code == 400


class _LockedCoordinator:
    """Every deletion attempt hits a locked database."""

    async def delete_student(self, student_id):
        raise TransientWriteError("database is locked")


def _locked_delete_controller():
    return DeleteRetryController(_LockedCoordinator(), max_attempts=1, delay_ms=0)


async def test_errors_hide_debug_in_production(client, monkeypatch):
    monkeypatch.setattr(
        error_handlers, "get_settings", lambda: Settings(environment="production"),
    )
    app.dependency_overrides[get_delete_controller] = _locked_delete_controller

    res = await client.delete(f"{BASE}/{MISSING}")

    assert res.status_code == 500
    assert res.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "debug" not in res.json()["error"]


async def test_errors_show_debug_in_development(client, monkeypatch):
    monkeypatch.setattr(
        error_handlers, "get_settings", lambda: Settings(environment="development"),
    )
    app.dependency_overrides[get_delete_controller] = _locked_delete_controller

    res = await client.delete(f"{BASE}/{MISSING}")

    assert res.status_code == 500
    assert res.json()["error"]["debug"] == {"last_error": "database is locked"}


async def test_avatar_part_over_limit_is_not_buffered():
    upload = UploadFile(
        io.BytesIO(b"0" * 4096), filename="big.png",
        headers=Headers({"content-type": "image/png"}),
    )

    with pytest.raises(FileTooLargeError) as exc_info:
        await to_asset_file(upload, max_bytes=1024)
    assert exc_info.value.max_bytes == 1024
    assert upload.file.tell() == 1025


async def test_avatar_part_with_declared_size_rejected_before_read():
    upload = UploadFile(
        io.BytesIO(b"0" * 4096), size=4096, filename="big.png",
        headers=Headers({"content-type": "image/png"}),
    )

    with pytest.raises(FileTooLargeError):
        await to_asset_file(upload, max_bytes=1024)
    assert upload.file.tell() == 0


async def test_avatar_part_within_limit_becomes_asset_file():
    upload = UploadFile(
        io.BytesIO(b"\x89PNG0000"), filename="me.png",
        headers=Headers({"content-type": "image/png"}),
    )

    avatar = await to_asset_file(upload, max_bytes=1024)

    assert avatar.content == b"\x89PNG0000"
    assert avatar.mime_type == "image/png"
    assert avatar.filename == "me.png"


async def test_health_endpoints(client):
    live = await client.get("/api/v1/health/")
    ready = await client.get("/api/v1/health/ready")
    assert live.status_code == 200
    assert ready.status_code == 200
    assert ready.json()["checks"]["database"] == "healthy"
