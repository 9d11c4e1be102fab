"""User ORM — identity record (credentials, role type, avatar).

Invariants:
    - email is UNIQUE: the unique index is the authoritative duplicate guard
    - avatar is never null (uploaded URL or the configured default)
    - type is set at creation and never updated by the student lifecycle
    - password_hash never leaves the persistence layer

Design Decisions:
    - type stored as Integer (1 Student, 10 Admin, 11 Instructor) to match existing data
"""

import uuid

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, TimestampMixin
from app.core.domain_types import UserType


class User(TimestampMixin, Base):
    """Identity record. Owned by at most one Student when type == STUDENT."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(UserType.STUDENT),
    )
    avatar: Mapped[str] = mapped_column(String(2048), nullable=False)
