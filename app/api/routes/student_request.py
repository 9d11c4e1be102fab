"""Student Request Helpers — turn a JSON or multipart request into (payload, avatar).

Invariants:
    - Returns a plain dict payload; validation is the coordinator's job
    - The multipart file part named "avatar" becomes an AssetFile; other file parts are ignored
    - Malformed JSON bodies raise ValidationError (400), never a 500
    - At most max_bytes + 1 bytes of an avatar part are read into memory; anything
      larger is rejected with FileTooLargeError (413) before the coordinator sees it

Design Decisions:
    - Request-level parsing instead of FastAPI Form/File params: the same endpoint accepts
      both JSON and multipart, and multipart fields may use dot notation or JSON strings
"""

from fastapi import Request
from starlette.datastructures import UploadFile

from app.core.domain_types import AssetFile
from app.core.errors import FileTooLargeError, ValidationError
from app.core.parse_form import parse_form_fields

AVATAR_FIELD = "avatar"
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_student_payload(
    request: Request, max_bytes: int,
) -> tuple[dict, AssetFile | None]:
    """Extract the payload dict and optional avatar from the request body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        return await _read_form(request, max_bytes)

    body = await request.body()
    if not body.strip():
        return {}, None
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON") from None
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload, None


async def read_avatar(request: Request, max_bytes: int) -> AssetFile:
    """Extract the mandatory avatar part of a multipart upload request."""
    _, avatar = await _read_form(request, max_bytes)
    if avatar is None:
        raise ValidationError(f"A '{AVATAR_FIELD}' file part is required")
    return avatar


async def _read_form(request: Request, max_bytes: int) -> tuple[dict, AssetFile | None]:
    form = await request.form()
    fields: dict[str, str] = {}
    avatar: AssetFile | None = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == AVATAR_FIELD:
                avatar = await to_asset_file(value, max_bytes)
            continue
        fields[key] = value
    return parse_form_fields(fields), avatar


async def to_asset_file(upload: UploadFile, max_bytes: int) -> AssetFile:
    """Read an uploaded part, refusing to buffer more than max_bytes of it."""
    if upload.size is not None and upload.size > max_bytes:
        raise FileTooLargeError(upload.size, max_bytes)
    content = await upload.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise FileTooLargeError(upload.size or len(content), max_bytes)
    return AssetFile(
        content=content,
        mime_type=upload.content_type or "application/octet-stream",
        filename=upload.filename or AVATAR_FIELD,
    )
