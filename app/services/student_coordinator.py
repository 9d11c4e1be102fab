"""Student Coordinator — transactional create/update/delete of the Student aggregate.

Invariants:
    - Student, User and Address are written in ONE database transaction: all or nothing
    - Asset store uploads happen BEFORE the transaction commits; deletions of no-longer
      referenced assets happen only AFTER it commits
    - A failure between an upload and the commit deletes that upload exactly once
    - The configured default avatar is never deleted from the asset store
    - Post-commit asset cleanup failures are logged, never raised
    - Validation runs before any IO; NotFound is raised before any upload

Design Decisions:
    - Explicit _cascade_delete instead of an ORM delete hook: visible, testable, and
      ordered (token metadata -> student -> user -> address, children before parents)
    - Writes inside a transaction are sequential: an AsyncSession is not safe for
      concurrent use, so the cascade is ordered rather than fanned out
    - The email pre-check is a fast path only; the users.email unique index is the
      authoritative guard (surfaced by UserStore as ConflictError)
    - default_avatar_url injected at construction, never read from settings at call time
    - Only delete is retried (services/delete_retry.py); create/update fail fast
"""

import logging
from enum import Enum
from uuid import UUID

from app.core.avatar_policy import (
    CREATE_AVATAR_TYPES, DEFAULT_MAX_AVATAR_BYTES, UPDATE_AVATAR_TYPES,
    UPLOAD_AVATAR_TYPES, check_avatar_file, is_retirable,
)
from app.core.domain_types import (
    AddressId, AssetFile, DeletionResult, StudentId, TokenMetadataId, UserId,
    UserType, parse_uuid,
)
from app.core.errors import ConflictError, ErrorContext, NotFoundError, ValidationError
from app.core.repository_protocols import AssetStore
from app.core.validate_student import validate_create, validate_update
from app.infrastructure.address_store import REQUIRED_FIELDS, AddressStore
from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.identity_store import UserStore
from app.infrastructure.security import PasswordHasher
from app.infrastructure.student_store import StudentStore
from app.infrastructure.token_metadata_store import TokenMetadataStore
from app.models.student import Student
from app.schemas.student import StudentUpdate

logger = logging.getLogger(__name__)


class StudentCoordinator:
    """Orchestrates the Student aggregate across the database and the asset store."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        assets: AssetStore,
        *,
        default_avatar_url: str,
        max_avatar_bytes: int = DEFAULT_MAX_AVATAR_BYTES,
        users: UserStore | None = None,
        addresses: AddressStore | None = None,
        students: StudentStore | None = None,
        tokens: TokenMetadataStore | None = None,
        hasher: PasswordHasher | None = None,
    ):
        self._db = db
        self._assets = assets
        self.default_avatar_url = default_avatar_url
        self.max_avatar_bytes = max_avatar_bytes
        self._users = users or UserStore()
        self._addresses = addresses or AddressStore()
        self._students = students or StudentStore()
        self._tokens = tokens or TokenMetadataStore()
        self._hasher = hasher or PasswordHasher()

    # ─── Create ──────────────────────────────────────────────────

    async def create_student(
        self, payload: dict, avatar: AssetFile | None = None,
    ) -> Student:
        """Create User + Address + Student atomically. Returns the populated Student."""
        data = validate_create(payload)
        if avatar is not None:
            check_avatar_file(avatar, CREATE_AVATAR_TYPES, self.max_avatar_bytes)

        async with self._db.session() as db:
            if await self._users.get_by_email(db, data.user.email):
                raise ConflictError(f"User '{data.user.email}' already exists")

        password_hash = self._hasher.hash(data.user.password)
        uploaded = await self._assets.upload(avatar) if avatar is not None else None

        try:
            async with self._db.transaction() as db:
                user = await self._users.create(
                    db,
                    first_name=data.user.first_name,
                    last_name=data.user.last_name,
                    email=data.user.email,
                    password_hash=password_hash,
                    avatar=uploaded or self.default_avatar_url,
                    type=int(UserType.STUDENT),
                )
                address = await self._addresses.create(db, **data.address.model_dump())
                student = await self._students.create(
                    db,
                    user_id=user.id,
                    address_id=address.id,
                    **_plain(data.model_dump(exclude={"user", "address"})),
                )
                student_id = student.id
        except Exception:
            if uploaded:
                await self._discard_asset(uploaded, "create aborted")
            raise

        logger.info("Student created", extra={"student_id": str(student_id)})
        return await self._load(student_id)

    # ─── Update ──────────────────────────────────────────────────

    async def update_student(
        self, student_id: str | UUID, payload: dict,
        avatar: AssetFile | None = None,
    ) -> Student:
        """Apply a partial update across Student, User and Address in one transaction."""
        sid = _parse_id(student_id, "Student")
        data = validate_update(payload, allow_empty=avatar is not None)
        uploaded: str | None = None

        try:
            async with self._db.transaction() as db:
                student, user = await self._resolve(db, sid)
                old_avatar = user.avatar
                if avatar is not None:
                    check_avatar_file(avatar, UPDATE_AVATAR_TYPES, self.max_avatar_bytes)
                    uploaded = await self._assets.upload(avatar)
                await self._apply_update(db, student, user, data, uploaded)
                new_avatar = user.avatar
        except Exception:
            if uploaded:
                await self._discard_asset(uploaded, "update aborted", sid)
            raise

        logger.info("Student updated", extra={"student_id": str(sid)})
        await self._retire_avatar(old_avatar, new_avatar, sid)
        return await self._load(sid)

    async def _apply_update(
        self, db, student, user, data: StudentUpdate, avatar_url: str | None,
    ) -> None:
        user_changes = data.user_changes()
        if avatar_url:
            user_changes["avatar"] = avatar_url
        if "password" in user_changes:
            user_changes["password_hash"] = self._hasher.hash(user_changes.pop("password"))
        if user_changes:
            await self._users.update(db, user, user_changes)

        address_changes = data.address_changes()
        if address_changes:
            address = (
                await self._addresses.get(db, student.address_id)
                if student.address_id else None
            )
            if address is None:
                address = await self._create_missing_address(db, address_changes)
                await self._students.attach_address(db, student, address.id)
            else:
                await self._addresses.update(db, address, address_changes)

        student_changes = _plain(data.student_changes())
        if student_changes:
            await self._students.update(db, student, student_changes)

    async def _create_missing_address(self, db, changes: dict):
        missing = [f for f in REQUIRED_FIELDS if changes.get(f) is None]
        if missing:
            messages = [f"address.{_camel(f)}: required to create an address" for f in missing]
            raise ValidationError(", ".join(messages), details=messages)
        return await self._addresses.create(db, **changes)

    # ─── Delete ──────────────────────────────────────────────────

    async def delete_student(self, student_id: str | UUID) -> DeletionResult:
        """One deletion attempt: Student, User, Address and TokenMetadata in one transaction."""
        sid = _parse_id(student_id, "Student")

        async with self._db.transaction() as db:
            student = await self._students.get(db, sid)
            if student is None:
                raise NotFoundError("Student", str(sid))
            user = await self._users.get(db, student.user_id)
            token = await self._tokens.get_by_user(db, user.id) if user else None
            captured_avatar = user.avatar if user else None
            result = await self._cascade_delete(db, student, user, token)

        user_id = str(result.user_id) if result.user_id else None
        logger.info("Student deleted", extra={"student_id": str(sid), "user_id": user_id})
        await self._retire_avatar(captured_avatar, None, sid)
        return result

    async def _cascade_delete(self, db, student, user, token) -> DeletionResult:
        """Delete the aggregate children-first. Returns the ids that actually existed."""
        address = (
            await self._addresses.get(db, student.address_id)
            if student.address_id else None
        )
        if token is not None:
            await self._tokens.delete(db, token.id)
        await self._students.delete(db, student.id)
        if user is not None:
            await self._users.delete(db, user.id)
        if address is not None:
            await self._addresses.delete(db, address.id)
        return DeletionResult(
            student_id=StudentId(student.id),
            user_id=UserId(user.id) if user else None,
            address_id=AddressId(address.id) if address else None,
            token_metadata_id=TokenMetadataId(token.id) if token else None,
        )

    # ─── Standalone avatar upload ────────────────────────────────

    async def upload_avatar(self, student_id: str | UUID, avatar: AssetFile) -> Student:
        """Replace the student's avatar. Same ordering and compensation as update."""
        sid = _parse_id(student_id, "Student")
        async with self._db.session() as db:
            student, user = await self._resolve(db, sid)
            user_id = user.id
        check_avatar_file(avatar, UPLOAD_AVATAR_TYPES, self.max_avatar_bytes)

        uploaded = await self._assets.upload(avatar)
        try:
            async with self._db.transaction() as db:
                user = await self._users.get(db, user_id)
                if user is None:
                    raise NotFoundError("User", str(user_id))
                old_avatar = user.avatar
                await self._users.update(db, user, {"avatar": uploaded})
        except Exception:
            await self._discard_asset(uploaded, "avatar upload aborted", sid)
            raise

        logger.info("Avatar replaced", extra={"student_id": str(sid), "asset_url": uploaded})
        await self._retire_avatar(old_avatar, uploaded, sid)
        return await self._load(sid)

    # ─── Reads ───────────────────────────────────────────────────

    async def get_student(self, student_id: str | UUID) -> Student:
        return await self._load(_parse_id(student_id, "Student"))

    async def list_students(self) -> list[Student]:
        async with self._db.session() as db:
            students = await self._students.list_all(db)
        if not students:
            raise NotFoundError("Student", "*", ErrorContext(user_message="No students found"))
        return students

    async def list_ward_students(self, ward_id: str | UUID) -> list[Student]:
        wid = _parse_id(ward_id, "Ward")
        async with self._db.session() as db:
            return await self._students.list_by_ward(db, wid)

    async def get_student_by_user(self, user_id: str | UUID) -> Student:
        uid = _parse_id(user_id, "User")
        async with self._db.session() as db:
            student = await self._students.get_by_user(db, uid)
        if student is None:
            raise NotFoundError(
                "Student", str(uid), ErrorContext(user_id=str(uid)),
            )
        return student

    # ─── Helpers ─────────────────────────────────────────────────

    async def _resolve(self, db, sid: UUID):
        student = await self._students.get(db, sid)
        if student is None:
            raise NotFoundError("Student", str(sid))
        user = await self._users.get(db, student.user_id)
        if user is None:
            raise NotFoundError(
                "User", str(student.user_id), ErrorContext(student_id=str(sid)),
            )
        return student, user

    async def _load(self, sid: UUID) -> Student:
        async with self._db.session() as db:
            student = await self._students.get_detail(db, sid)
        if student is None:
            raise NotFoundError("Student", str(sid))
        return student

    async def _retire_avatar(
        self, old_url: str | None, new_url: str | None, sid: UUID,
    ) -> None:
        """Post-commit: delete an avatar nothing references any more."""
        if old_url == new_url:
            return
        if is_retirable(old_url, self.default_avatar_url, self._assets.is_hosted, new_url):
            await self._discard_asset(old_url, "avatar retired", sid)

    async def _discard_asset(
        self, url: str, reason: str, sid: UUID | None = None,
    ) -> None:
        """Best-effort asset deletion. Failures are logged, never raised."""
        try:
            await self._assets.delete(url)
        except Exception as e:
            logger.error(
                f"Asset cleanup failed ({reason}): {e}",
                extra={"asset_url": url, "student_id": str(sid) if sid else None},
                exc_info=True,
            )
            return
        logger.info(
            f"Asset cleaned up ({reason})",
            extra={"asset_url": url, "student_id": str(sid) if sid else None},
        )


def _parse_id(raw: str | UUID, resource_type: str) -> UUID:
    try:
        return parse_uuid(raw, resource_type)
    except ValueError as e:
        raise ValidationError(str(e)) from None


def _plain(changes: dict) -> dict:
    return {k: v.value if isinstance(v, Enum) else v for k, v in changes.items()}


def _camel(field: str) -> str:
    head, *rest = field.split("_")
    return head + "".join(part.title() for part in rest)
