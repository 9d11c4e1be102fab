"""Identity Store — persistence for User records.

Invariants:
    - Every write is flushed immediately so a duplicate email surfaces as ConflictError
      at the write site, inside the caller's transaction, not later at commit
    - Never commits: the caller owns the transaction
    - Never changes `type` on update

Design Decisions:
    - Email lookup lowercases: emails are stored lowercased by the schema layer
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError
from app.models.user import User

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = frozenset({"id", "type", "created_at"})


class UserStore:
    async def get(self, db: AsyncSession, user_id: UUID) -> User | None:
        return await db.get(User, user_id)

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def create(
        self, db: AsyncSession, *, first_name: str, last_name: str, email: str,
        password_hash: str, avatar: str, type: int,
    ) -> User:
        user = User(
            first_name=first_name, last_name=last_name, email=email.lower(),
            password_hash=password_hash, avatar=avatar, type=type,
        )
        db.add(user)
        await self._flush(db, email)
        return user

    async def update(self, db: AsyncSession, user: User, changes: dict) -> User:
        for field, value in changes.items():
            if field in _IMMUTABLE_FIELDS:
                continue
            setattr(user, field, value)
        await self._flush(db, changes.get("email", user.email))
        return user

    async def delete(self, db: AsyncSession, user_id: UUID) -> None:
        await db.execute(delete(User).where(User.id == user_id))

    async def _flush(self, db: AsyncSession, email: str) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning(f"Duplicate email rejected by unique index: {email}")
            raise ConflictError(f"User '{email}' already exists") from e
