"""Avatar Policy — pure rules for accepting new avatars and retiring old ones.

Invariants:
    - check_avatar_file raises before any upload happens (no side effects on rejection)
    - The default avatar is NEVER a deletion candidate
    - An old avatar is only retired when it differs from the new one and the asset store hosts it

Design Decisions:
    - Allowed MIME sets differ per entry point: the update path accepts JPEG/PNG, create and
      the standalone upload endpoint also accept WEBP (kept as observed)
    - Hosting check injected as a callable so this module stays free of the HTTP client
"""

from collections.abc import Callable

from app.core.domain_types import AssetFile
from app.core.errors import FileTooLargeError, UnsupportedMediaError

JPEG = "image/jpeg"
PNG = "image/png"
WEBP = "image/webp"

UPDATE_AVATAR_TYPES: frozenset[str] = frozenset({JPEG, PNG})
UPLOAD_AVATAR_TYPES: frozenset[str] = frozenset({JPEG, PNG, WEBP})
CREATE_AVATAR_TYPES = UPLOAD_AVATAR_TYPES

DEFAULT_MAX_AVATAR_BYTES = 2 * 1024 * 1024


def check_avatar_file(
    avatar: AssetFile,
    allowed_types: frozenset[str],
    max_bytes: int = DEFAULT_MAX_AVATAR_BYTES,
) -> None:
    """Reject files with a disallowed MIME type or above the size limit."""
    mime = avatar.mime_type.split(";", 1)[0].strip().lower()
    if mime not in allowed_types:
        raise UnsupportedMediaError(mime, sorted(allowed_types))
    if avatar.size > max_bytes:
        raise FileTooLargeError(avatar.size, max_bytes)


def is_retirable(
    old_url: str | None,
    default_url: str,
    is_hosted: Callable[[str], bool],
    new_url: str | None = None,
) -> bool:
    """Whether the old avatar should be deleted from the asset store after commit."""
    if not old_url or old_url == default_url:
        return False
    if new_url is not None and old_url == new_url:
        return False
    return is_hosted(old_url)
