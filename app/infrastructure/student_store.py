"""Student Store — Student record writes and populated aggregate reads.

Invariants:
    - Never commits: the caller owns the transaction
    - Populated reads always carry user (password excluded at the schema layer) and address
    - user_id / address_id are only set by the coordinator, never from payload changes

Design Decisions:
    - Explicit selectinload on read queries even though the relationships default to
      selectin: the read contract is visible at the call site
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.student import Student

_PROTECTED_FIELDS = frozenset({"id", "user_id", "address_id", "created_at"})


def _populated():
    return select(Student).options(
        selectinload(Student.user), selectinload(Student.address),
    )


class StudentStore:
    async def get(self, db: AsyncSession, student_id: UUID) -> Student | None:
        return await db.get(Student, student_id)

    async def get_detail(self, db: AsyncSession, student_id: UUID) -> Student | None:
        result = await db.execute(_populated().where(Student.id == student_id))
        return result.scalar_one_or_none()

    async def get_by_user(self, db: AsyncSession, user_id: UUID) -> Student | None:
        result = await db.execute(_populated().where(Student.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_all(self, db: AsyncSession) -> list[Student]:
        result = await db.execute(_populated().order_by(Student.created_at))
        return list(result.scalars().all())

    async def list_by_ward(self, db: AsyncSession, ward_id: UUID) -> list[Student]:
        result = await db.execute(
            _populated().where(Student.ward_id == ward_id).order_by(Student.created_at),
        )
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, **fields) -> Student:
        student = Student(**fields)
        db.add(student)
        await db.flush()
        return student

    async def update(self, db: AsyncSession, student: Student, changes: dict) -> Student:
        for field, value in changes.items():
            if field in _PROTECTED_FIELDS:
                continue
            setattr(student, field, value)
        await db.flush()
        return student

    async def attach_address(
        self, db: AsyncSession, student: Student, address_id: UUID,
    ) -> Student:
        student.address_id = address_id
        await db.flush()
        return student

    async def delete(self, db: AsyncSession, student_id: UUID) -> None:
        await db.execute(delete(Student).where(Student.id == student_id))
