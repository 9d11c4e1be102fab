"""TokenMetadata Store — session/refresh-token rows, read and deleted during cascades."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token_metadata import TokenMetadata


class TokenMetadataStore:
    async def get_by_user(self, db: AsyncSession, user_id: UUID) -> TokenMetadata | None:
        result = await db.execute(
            select(TokenMetadata).where(TokenMetadata.user_id == user_id),
        )
        return result.scalar_one_or_none()

    async def delete(self, db: AsyncSession, token_id: UUID) -> None:
        await db.execute(delete(TokenMetadata).where(TokenMetadata.id == token_id))
