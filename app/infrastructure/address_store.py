"""Address Store — persistence for postal addresses. Never commits."""

from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.address import Address

REQUIRED_FIELDS = ("street", "city", "state", "country", "postal_code")


class AddressStore:
    async def get(self, db: AsyncSession, address_id: UUID) -> Address | None:
        return await db.get(Address, address_id)

    async def create(self, db: AsyncSession, **fields) -> Address:
        address = Address(**fields)
        db.add(address)
        await db.flush()
        return address

    async def update(self, db: AsyncSession, address: Address, changes: dict) -> Address:
        for field, value in changes.items():
            if field in ("id", "created_at"):
                continue
            setattr(address, field, value)
        await db.flush()
        return address

    async def delete(self, db: AsyncSession, address_id: UUID) -> None:
        await db.execute(delete(Address).where(Address.id == address_id))
