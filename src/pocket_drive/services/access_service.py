"""Answers whether a user may perform an action on an item."""

from typing import Sequence, Set

from loguru import logger

from pocket_drive.repository import PermissionRepository, PocketRepository
from pocket_drive.services.roles import ItemAction, is_role_sufficient


class AccessService:
    """Access evaluator over the permission store.

    Checks are read-at-call-time: nothing is locked between a check and the
    mutation that follows it. Methods return booleans and never raise for a
    missing grant.
    """

    def __init__(
        self,
        permission_repository: PermissionRepository,
        pocket_repository: PocketRepository,
    ):
        self.permission_repository = permission_repository
        self.pocket_repository = pocket_repository

    async def is_action_allowed(self, user: str, item_id: str, action: ItemAction) -> bool:
        """Check whether the user's strongest role on the item covers the action."""
        permissions = await self.permission_repository.find_by_user_and_item(user, item_id)
        if not permissions:
            logger.debug(f"No grant for {user} on item {item_id}")
            return False

        allowed = is_role_sufficient([p.role for p in permissions], action)
        logger.debug(
            f"Access check user={user} item={item_id} action={getattr(action, 'name', action)} "
            f"allowed={allowed}"
        )
        return allowed

    async def allowed_item_ids(
        self, user: str, item_ids: Sequence[str], action: ItemAction
    ) -> Set[str]:
        """Evaluate the action on every item individually, in one store round trip.

        Returns the subset of item_ids the user may act on.
        """
        roles_by_item = await self.permission_repository.find_roles_for_items(user, item_ids)
        return {
            item_id
            for item_id in item_ids
            if is_role_sufficient(roles_by_item.get(item_id, []), action)
        }

    async def is_pocket_owner(self, user: str, pocket_id: str) -> bool:
        """Coarse check on the pocket record, independent of any item ACL.

        Used for structural operations at the pocket root, where no item exists
        yet to carry a grant.
        """
        pocket = await self.pocket_repository.get_for_user(pocket_id, user)
        return pocket is not None
