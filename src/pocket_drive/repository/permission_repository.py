"""Repository for per-item permission rows."""

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pocket_drive import db
from pocket_drive.models import Permission, Role
from pocket_drive.repository.repository import Repository


class PermissionRepository(Repository[Permission]):
    """Repository for Permission model.

    Pure data access: no policy lives here beyond the rule that OWNER rows
    are never removed by a replacement.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(session_maker, Permission)

    async def find_by_item(self, item_id: str) -> Sequence[Permission]:
        query = select(Permission).where(Permission.item_id == item_id)
        result = await self.execute_query(query)
        return result.scalars().all()

    async def find_by_user_and_item(self, user: str, item_id: str) -> Sequence[Permission]:
        """All permission rows a user holds on an item (normally zero or one)."""
        query = select(Permission).where(
            Permission.user == user, Permission.item_id == item_id
        )
        result = await self.execute_query(query)
        return result.scalars().all()

    async def find_roles_for_items(
        self, user: str, item_ids: Sequence[str]
    ) -> Dict[str, List[Role]]:
        """Batch lookup of the roles a user holds on each of the given items.

        Items the user has no grant on are absent from the result.
        """
        if not item_ids:
            return {}
        query = select(Permission.item_id, Permission.role).where(
            Permission.user == user, Permission.item_id.in_(item_ids)
        )
        result = await self.execute_query(query, use_query_options=False)

        roles: Dict[str, List[Role]] = defaultdict(list)
        for row in result:
            roles[row.item_id].append(Role(row.role))
        return dict(roles)

    async def replace_non_owner_permissions(
        self, item_ids: Sequence[str], entries: Sequence[Tuple[str, Role]]
    ) -> None:
        """Replace the non-owner ACL of every given item in one transaction.

        For each item: delete all rows whose role is not OWNER, then insert one
        row per (user, role) entry. Users already holding OWNER on an item are
        skipped for that item so they are neither duplicated nor demoted.
        Either every item is updated or none is.
        """
        if not item_ids:
            return

        async with db.scoped_session(self.session_maker) as session:
            await session.execute(
                delete(Permission).where(
                    Permission.item_id.in_(item_ids), Permission.role != Role.OWNER
                )
            )

            owner_rows = await session.execute(
                select(Permission.item_id, Permission.user).where(
                    Permission.item_id.in_(item_ids), Permission.role == Role.OWNER
                )
            )
            owners: Dict[str, set[str]] = defaultdict(set)
            for row in owner_rows:
                owners[row.item_id].add(row.user)

            new_rows = [
                Permission(item_id=item_id, user=user, role=role)
                for item_id in item_ids
                for user, role in entries
                if user not in owners[item_id]
            ]
            session.add_all(new_rows)
            await session.flush()

            logger.debug(
                f"Replaced non-owner permissions on {len(item_ids)} items "
                f"({len(new_rows)} rows written)"
            )
