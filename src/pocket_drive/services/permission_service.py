"""Service for replacing item ACLs and cascading them down directory trees."""

from typing import Dict, Iterable, List, Sequence, Tuple

from loguru import logger

from pocket_drive.models import Item, Role
from pocket_drive.repository import ItemRepository, PermissionRepository
from pocket_drive.schemas.item import PermissionEntry
from pocket_drive.services.exceptions import InvalidPermissionsError, ItemNotFoundError
from pocket_drive.services.tree_service import TreeService


def normalize_entries(entries: Iterable[PermissionEntry]) -> List[Tuple[str, Role]]:
    """Collapse a permission payload to one role per user.

    Later entries for the same user replace earlier ones; first-seen order
    of users is kept.
    """
    by_user: Dict[str, Role] = {}
    for entry in entries:
        by_user[entry.user] = Role(entry.role)
    return list(by_user.items())


def non_owner_entries(entries: Iterable[PermissionEntry]) -> List[Tuple[str, Role]]:
    """Normalize a replacement payload, refusing OWNER grants.

    Ownership is fixed at creation; a replacement only writes VIEWER and
    EDITOR rows.
    """
    normalized = normalize_entries(entries)
    owners = [user for user, role in normalized if role == Role.OWNER]
    if owners:
        raise InvalidPermissionsError(
            f"Item permissions are not valid. OWNER cannot be granted: {', '.join(owners)}"
        )
    return normalized


class PermissionService:
    """Applies permission sets to items.

    A cascade is a bulk overwrite: every descendant ends up with its own
    materialized copy of the directory's non-owner ACL. Nothing is inherited
    at read time, so moving an item later does not change its grants.
    """

    def __init__(
        self,
        permission_repository: PermissionRepository,
        item_repository: ItemRepository,
        tree_service: TreeService,
    ):
        self.permission_repository = permission_repository
        self.item_repository = item_repository
        self.tree_service = tree_service

    async def apply(self, item: Item, entries: Sequence[PermissionEntry]) -> Item:
        """Replace the non-owner permissions of a single item.

        OWNER rows already on the item are kept as they are.

        Returns:
            The item re-read with its new permissions
        """
        await self.permission_repository.replace_non_owner_permissions(
            [item.id], non_owner_entries(entries)
        )
        updated = await self.item_repository.find_by_id(item.id)
        if updated is None:
            raise ItemNotFoundError(f"Item with id {item.id} not found in this pocket.")
        return updated

    async def apply_cascaded(self, item: Item, entries: Sequence[PermissionEntry]) -> List[Item]:
        """Replace permissions on an item and, for directories, on its whole subtree.

        The subtree is walked unfiltered so every descendant is reached
        regardless of who can see it. All items are updated in a single
        transaction: a failure leaves every ACL as it was.

        Returns:
            The re-read affected items, the item itself first followed by its
            descendants in walk order
        """
        if not item.is_directory:
            return [await self.apply(item, entries)]

        normalized = non_owner_entries(entries)
        descendants = await self.tree_service.descendants(item.id, filtered=False)
        item_ids = [item.id] + [d.id for d in descendants]

        await self.permission_repository.replace_non_owner_permissions(item_ids, normalized)
        logger.info(
            f"Cascaded {len(normalized)} permission entries from directory {item.id} "
            f"to {len(descendants)} descendants"
        )

        refreshed = {i.id: i for i in await self.item_repository.find_by_ids(item_ids)}
        return [refreshed[item_id] for item_id in item_ids if item_id in refreshed]
