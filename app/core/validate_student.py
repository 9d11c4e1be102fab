"""Student Payload Validation — pure create/update validation with aggregated messages.

Invariants:
    - validate_create / validate_update are PURE: no IO, no DB, no mutation of the input
    - Every violation is reported (never fail-fast): one ValidationError, all messages
    - `type` / `role` in an update payload is ALWAYS reported, whatever else is wrong
    - `user.avatar` is never accepted from a client; only an uploaded file sets it
    - An update must carry at least one field unless allow_empty (avatar-only update)

Design Decisions:
    - Pydantic does the field-level work; this module only flattens its error list and
      adds the cross-field rules pydantic cannot express per-field
    - Forbidden keys are stripped before pydantic sees them so they are reported once,
      with a domain message instead of "extra inputs are not permitted"
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError
from app.schemas.student import StudentCreate, StudentUpdate

FORBIDDEN_UPDATE_FIELDS = ("type", "role")
TYPE_IMMUTABLE_MESSAGE = "Type cannot be modified"
AVATAR_UPLOAD_ONLY_MESSAGE = "user.avatar: can only be changed by uploading a file"
EMPTY_UPDATE_MESSAGE = "At least one field must be provided"

# Columns that may legitimately be cleared with an explicit null
_NULLABLE_FIELDS = frozenset({"neighborhood", "churchMembership", "church_membership", "wardId", "ward_id"})


def validate_create(payload: Any) -> StudentCreate:
    """Validate a full create payload. Raises ValidationError with every violation."""
    try:
        return StudentCreate.model_validate(payload)
    except PydanticValidationError as e:
        raise _aggregate(format_pydantic_errors(e)) from None


def validate_update(payload: Any, *, allow_empty: bool = False) -> StudentUpdate:
    """Validate a partial update payload. Raises ValidationError with every violation."""
    if not isinstance(payload, dict):
        raise _aggregate(["Payload must be an object"])

    messages: list[str] = []
    cleaned, forbidden = _strip_forbidden(payload)
    if forbidden:
        messages.append(TYPE_IMMUTABLE_MESSAGE)
    if _has_client_avatar(cleaned):
        messages.append(AVATAR_UPLOAD_ONLY_MESSAGE)
        cleaned = {**cleaned, "user": {k: v for k, v in cleaned["user"].items() if k != "avatar"}}
    messages.extend(_null_violations(cleaned))

    parsed: StudentUpdate | None = None
    try:
        parsed = StudentUpdate.model_validate(cleaned)
    except PydanticValidationError as e:
        messages.extend(format_pydantic_errors(e))

    if parsed is not None and not allow_empty and not has_changes(parsed):
        messages.append(EMPTY_UPDATE_MESSAGE)

    if messages:
        raise _aggregate(messages)
    return parsed


def has_changes(update: StudentUpdate) -> bool:
    """True when the update touches at least one field anywhere in the payload."""
    return bool(
        update.user_changes() or update.address_changes() or update.student_changes()
    )


def format_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten pydantic errors into 'field.path: message' strings."""
    return [
        f"{'.'.join(str(loc) for loc in err['loc']) or 'payload'}: {err['msg']}"
        for err in exc.errors()
    ]


def _strip_forbidden(payload: dict) -> tuple[dict, bool]:
    """Copy payload without type/role keys (top level and inside user)."""
    found = False
    cleaned = {}
    for key, value in payload.items():
        if key in FORBIDDEN_UPDATE_FIELDS:
            found = True
            continue
        if key == "user" and isinstance(value, dict):
            user = {k: v for k, v in value.items() if k not in FORBIDDEN_UPDATE_FIELDS}
            found = found or len(user) != len(value)
            value = user
        cleaned[key] = value
    return cleaned, found


def _has_client_avatar(payload: dict) -> bool:
    user = payload.get("user")
    return isinstance(user, dict) and "avatar" in user


def _null_violations(payload: dict) -> list[str]:
    """Explicit nulls are only allowed on nullable columns."""
    messages = []
    for key, value in payload.items():
        if isinstance(value, dict) and key in ("user", "address"):
            messages.extend(
                f"{key}.{sub}: cannot be null"
                for sub, sub_value in value.items()
                if sub_value is None and sub not in _NULLABLE_FIELDS
            )
        elif value is None and key not in _NULLABLE_FIELDS:
            messages.append(f"{key}: cannot be null")
    return messages


def _aggregate(messages: list[str]) -> ValidationError:
    return ValidationError(", ".join(messages), details=messages)
