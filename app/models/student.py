"""Student ORM — aggregate root owning one User and one Address.

Invariants:
    - user_id is NOT NULL and unique (1:1 with User)
    - address_id is unique; nullable at the column level only so legacy rows can be
      repaired by an update — the coordinator never creates a Student without one
    - ward_id is a bare reference (wards are managed elsewhere, no FK)

Design Decisions:
    - No ORM delete cascade: StudentCoordinator deletes the aggregate explicitly, in order,
      inside one transaction
    - user/address loaded with selectin: every read path returns the populated aggregate
"""

import uuid
from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.address import Address
    from app.models.user import User


class Student(TimestampMixin, Base):
    """Student aggregate root."""
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False,
    )
    address_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("addresses.id"), unique=True, nullable=True,
    )
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    language: Mapped[str] = mapped_column(String(20), nullable=False)
    level: Mapped[str] = mapped_column(String(10), nullable=False)
    church_membership: Mapped[str | None] = mapped_column(String(20), nullable=True)
    ward_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True,
    )

    user: Mapped["User"] = relationship("User", lazy="selectin")
    address: Mapped[Optional["Address"]] = relationship("Address", lazy="selectin")
