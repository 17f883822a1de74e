"""Repository for managing items within a pocket."""

from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from pocket_drive import db
from pocket_drive.models import Item, Permission, Role
from pocket_drive.repository.repository import Repository


class ItemRepository(Repository[Item]):
    """Repository for Item model, scoped to a single pocket.

    Items are always returned with their permissions loaded.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], pocket_id: str):
        """Initialize with session maker and pocket_id filter.

        Args:
            session_maker: SQLAlchemy session maker
            pocket_id: Pocket ID to filter all operations by
        """
        if not pocket_id:  # pragma: no cover
            raise ValueError("A pocket_id is required for ItemRepository")
        super().__init__(session_maker, Item, pocket_id=pocket_id)

    def get_load_options(self) -> List[LoaderOption]:
        return [selectinload(Item.permissions)]

    async def find_children(self, parent_ids: Sequence[str]) -> Sequence[Item]:
        """Get the direct children of every given parent, in one query.

        Ordered by name then id so walks are deterministic.
        """
        if not parent_ids:
            return []
        query = (
            self.select()
            .where(Item.parent_id.in_(parent_ids))
            .order_by(Item.name, Item.id)
        )
        result = await self.execute_query(query)
        return result.scalars().all()

    async def get_parent_ids(self, item_ids: Sequence[str]) -> dict[str, Optional[str]]:
        """Map item id -> parent id for the given items, without loading permissions."""
        if not item_ids:
            return {}
        query = self.select(Item.id, Item.parent_id).where(Item.id.in_(item_ids))
        result = await self.execute_query(query, use_query_options=False)
        return {row.id: row.parent_id for row in result}

    async def name_exists(self, name: str, parent_id: Optional[str]) -> bool:
        """Check for an item with exactly this name under the given parent.

        A None parent means the top level of the pocket, which is its own bucket.
        """
        query = self.select(Item.id).where(Item.name == name)
        if parent_id is None:
            query = query.where(Item.parent_id.is_(None))
        else:
            query = query.where(Item.parent_id == parent_id)
        result = await self.execute_query(query.limit(1), use_query_options=False)
        return result.first() is not None

    async def create_with_permissions(
        self, item_data: dict, permissions: Sequence[tuple[str, Role]]
    ) -> Item:
        """Insert an item and its initial ACL in a single transaction."""
        async with db.scoped_session(self.session_maker) as session:
            model_data = self.get_model_data(item_data)
            model_data["pocket_id"] = self.pocket_id
            item = Item(**model_data)
            item.permissions = [Permission(user=user, role=role) for user, role in permissions]
            session.add(item)
            await session.flush()

            found = await self.select_by_id(session, item.id)
            if found is None:  # pragma: no cover
                raise ValueError(f"Can't find Item {item.id} after session.add")
            return found

    async def find_stored_paths(self, item_ids: Sequence[str]) -> List[str]:
        """Return the backing-file paths recorded for the given items."""
        if not item_ids:
            return []
        query = self.select(Item.path).where(Item.id.in_(item_ids), Item.path.is_not(None))
        result = await self.execute_query(query, use_query_options=False)
        return [row.path for row in result]
