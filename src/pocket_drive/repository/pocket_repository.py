"""Repository for managing pockets."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pocket_drive.models import Pocket
from pocket_drive.repository.repository import Repository


class PocketRepository(Repository[Pocket]):
    """Repository for Pocket model.

    Pockets are the top-level tenancy boundary, so this repository is never
    pocket-scoped itself.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(session_maker, Pocket)

    async def get_for_user(self, pocket_id: str, user: str) -> Optional[Pocket]:
        """Get a pocket only if it is owned by the given user."""
        query = select(Pocket).where(Pocket.id == pocket_id, Pocket.user == user)
        return await self.find_one(query)
