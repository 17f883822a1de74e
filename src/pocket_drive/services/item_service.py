"""Service coordinating structural changes to the items of a pocket."""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from loguru import logger

from pocket_drive.models import Item, ItemType, Role
from pocket_drive.repository import ItemRepository, PocketRepository
from pocket_drive.schemas.item import (
    ItemSummary,
    ItemUpdateResult,
    PermissionEntry,
    parse_permissions_json,
)
from pocket_drive.services import BaseService
from pocket_drive.services.access_service import AccessService
from pocket_drive.services.exceptions import (
    AccessDeniedError,
    FileMissingError,
    InvalidParentError,
    InvalidPermissionsError,
    ItemCycleError,
    ItemNotFoundError,
    PocketNotFoundError,
)
from pocket_drive.services.file_service import FileService
from pocket_drive.services.permission_service import (
    PermissionService,
    non_owner_entries,
    normalize_entries,
)
from pocket_drive.services.roles import ItemAction
from pocket_drive.services.tree_service import TreeService
from pocket_drive.utils import normalize_parent_id

PermissionsPayload = Union[Sequence[PermissionEntry], str, None]


class ItemService(BaseService[ItemRepository]):
    """Item lifecycle for a single pocket.

    Every operation takes the acting user explicitly, checks access first
    and raises before mutating anything. Access checks are read at call
    time; no lock is held between a check and the change that follows.
    """

    def __init__(
        self,
        item_repository: ItemRepository,
        pocket_repository: PocketRepository,
        access_service: AccessService,
        tree_service: TreeService,
        permission_service: PermissionService,
        file_service: FileService,
    ):
        super().__init__(item_repository)
        self.pocket_id = item_repository.pocket_id
        self.pocket_repository = pocket_repository
        self.access_service = access_service
        self.tree_service = tree_service
        self.permission_service = permission_service
        self.file_service = file_service

    async def _require(self, user: str, item_id: str, action: ItemAction, message: str = "") -> None:
        if not await self.access_service.is_action_allowed(user, item_id, action):
            logger.info(f"Denied {action.name} on item {item_id} for {user}")
            raise AccessDeniedError(message or f"Not allowed to {action.name.lower()} this item.")

    async def _get_or_raise(self, item_id: str) -> Item:
        item = await self.repository.find_by_id(item_id)
        if item is None:
            raise ItemNotFoundError(f"Item with id {item_id} not found in this pocket.")
        return item

    ## Reads

    async def list_items(self, user: str) -> List[ItemSummary]:
        """List every item of the pocket. Only the pocket owner may do this.

        A pocket the user doesn't own is reported as not found, so listing
        never reveals that someone else's pocket exists.
        """
        pocket = await self.pocket_repository.get_for_user(self.pocket_id, user)
        if pocket is None:
            raise PocketNotFoundError("Pocket not exist or you do not have right permissions.")

        items = await self.repository.find_all()
        return [ItemSummary.for_user(item, user) for item in items]

    async def name_exists(self, user: str, name: str, parent_id: Optional[str] = None) -> bool:
        """Check whether an item with exactly this name already exists under a parent.

        Names are case-sensitive, and the pocket top level ("root" or None)
        is a bucket of its own.
        """
        if not await self.access_service.is_pocket_owner(user, self.pocket_id):
            raise AccessDeniedError("Only the pocket owner can check item names.")
        return await self.repository.name_exists(name, normalize_parent_id(parent_id))

    async def list_descendants(
        self, user: str, item_id: str, filtered: bool = True
    ) -> List[ItemSummary]:
        """Summaries of everything below an item the user may download.

        With filtered=True only branches the user holds a grant on are
        included; a hidden directory hides its whole subtree.
        """
        await self._require(user, item_id, ItemAction.DOWNLOAD)
        item = await self._get_or_raise(item_id)
        if not item.is_directory:
            return []

        descendants = await self.tree_service.descendants(item.id, user=user, filtered=filtered)
        return [ItemSummary.for_user(d, user) for d in descendants]

    async def get_item(self, user: str, item_id: str) -> List[ItemSummary]:
        """Get an item and, for directories, every descendant visible to the user.

        The access check runs before the lookup, so a caller without access
        gets a denial whether or not the item exists in this pocket.
        """
        await self._require(user, item_id, ItemAction.DOWNLOAD)
        item = await self._get_or_raise(item_id)

        summaries = [ItemSummary.for_user(item, user)]
        if item.is_directory:
            descendants = await self.tree_service.descendants(item.id, user=user, filtered=True)
            summaries.extend(ItemSummary.for_user(d, user) for d in descendants)
        return summaries

    async def get_download_path(self, user: str, item_id: str) -> tuple[Item, Path]:
        """Resolve the stored bytes of a file the user may download."""
        await self._require(user, item_id, ItemAction.DOWNLOAD)
        item = await self._get_or_raise(item_id)

        if (
            item.type != ItemType.FILE
            or item.path is None
            or not await self.file_service.exists(item.path)
        ):
            raise FileMissingError("File not found")
        return item, Path(item.path)

    ## Creation

    async def _require_create_access(self, user: str, parent_id: Optional[str]) -> None:
        """Top-level creates need pocket ownership; nested creates need UPLOAD on the parent."""
        if parent_id is None:
            if not await self.access_service.is_pocket_owner(user, self.pocket_id):
                raise AccessDeniedError("Only the pocket owner can add items at the pocket root.")
            return

        await self._require(user, parent_id, ItemAction.UPLOAD)
        parent = await self._get_or_raise(parent_id)
        if not parent.is_directory:
            raise InvalidParentError(f"Parent {parent_id} is not a directory.")

    @staticmethod
    def _initial_permissions(
        user: str, extra: Sequence[PermissionEntry]
    ) -> list[tuple[str, Role]]:
        """The creator is always OWNER; extra grants for the creator are ignored."""
        entries = [(user, Role.OWNER)]
        entries.extend((u, role) for u, role in normalize_entries(extra) if u != user)
        return entries

    @staticmethod
    def _parse_permissions(permissions: PermissionsPayload) -> List[PermissionEntry]:
        if permissions is None:
            return []
        if isinstance(permissions, str):
            try:
                return parse_permissions_json(permissions)
            except ValueError as e:
                logger.info(f"Rejected permission payload: {e}")
                raise InvalidPermissionsError("Item permissions are not valid.") from e
        return list(permissions)

    async def create_directory(
        self,
        user: str,
        name: str,
        parent_id: Optional[str] = None,
        permissions: PermissionsPayload = None,
    ) -> ItemSummary:
        """Create a directory, seeding {user: OWNER} plus any extra grants."""
        extra = self._parse_permissions(permissions)
        parent_id = normalize_parent_id(parent_id)
        await self._require_create_access(user, parent_id)

        directory = await self.repository.create_with_permissions(
            {
                "name": name,
                "type": ItemType.DIRECTORY,
                "size": 0,
                "parent_id": parent_id,
            },
            self._initial_permissions(user, extra),
        )
        logger.info(f"Created directory '{name}' ({directory.id}) in pocket {self.pocket_id}")
        return ItemSummary.for_user(directory, user)

    async def upload_file(
        self,
        user: str,
        name: str,
        content: bytes,
        parent_id: Optional[str] = None,
        permissions: PermissionsPayload = None,
    ) -> ItemSummary:
        """Store a new file and its item row.

        The permission payload is validated before anything is written. If
        the row can't be inserted, the stored bytes are removed again.
        """
        extra = self._parse_permissions(permissions)
        parent_id = normalize_parent_id(parent_id)
        await self._require_create_access(user, parent_id)

        path, size = await self.file_service.write_file(self.pocket_id, name, content)
        try:
            item = await self.repository.create_with_permissions(
                {
                    "name": name,
                    "type": ItemType.FILE,
                    "size": size,
                    "path": path,
                    "parent_id": parent_id,
                },
                self._initial_permissions(user, extra),
            )
        except Exception:
            logger.error(f"Failed to record uploaded file '{name}', removing stored bytes")
            await self.file_service.delete_files([path])
            raise

        logger.info(f"Uploaded '{name}' ({size} bytes) as {item.id} in pocket {self.pocket_id}")
        return ItemSummary.for_user(item, user)

    ## Updates

    async def _validate_move(self, item: Item, new_parent_id: str) -> None:
        """Reject moves onto a non-directory or under the item's own subtree."""
        if new_parent_id == item.id:
            raise ItemCycleError("An item can't be moved into itself.")

        parent = await self._get_or_raise(new_parent_id)
        if not parent.is_directory:
            raise InvalidParentError(f"Parent {new_parent_id} is not a directory.")

        ancestors = await self.tree_service.ancestor_ids(new_parent_id)
        if item.id in ancestors:
            raise ItemCycleError(
                f"Can't move {item.id} under {new_parent_id}: it is one of its descendants."
            )

    async def update_item(
        self,
        user: str,
        item_id: str,
        name: Optional[str] = None,
        parent_id: Optional[str] = None,
        permissions: Optional[Sequence[PermissionEntry]] = None,
    ) -> ItemUpdateResult:
        """Rename, move and/or replace the permissions of an item.

        Args:
            user: Acting user; needs RENAME on the item
            item_id: Item to update
            name: New name, if renaming
            parent_id: New parent id, or "root" for the pocket top level
            permissions: New non-owner ACL; OWNER entries raise
                InvalidPermissionsError. For directories it is cascaded to
                every descendant. None leaves permissions untouched; an empty
                list removes every non-owner grant.

        Returns:
            The updated item and the re-read descendants touched by a cascade
        """
        await self._require(user, item_id, ItemAction.RENAME)
        item = await self._get_or_raise(item_id)
        if permissions is not None:
            # Rejects OWNER grants before the item is renamed or moved
            non_owner_entries(permissions)

        changes: dict = {}
        if name:
            changes["name"] = name
        if parent_id is not None:
            new_parent_id = normalize_parent_id(parent_id)
            if new_parent_id is not None:
                await self._validate_move(item, new_parent_id)
            changes["parent_id"] = new_parent_id

        if changes:
            updated = await self.repository.update(item.id, changes)
            if updated is None:  # pragma: no cover
                raise ItemNotFoundError(f"Item with id {item_id} not found in this pocket.")
            item = updated
            logger.info(f"Updated item {item.id}: {changes}")

        cascaded: List[Item] = []
        if permissions is not None:
            affected = await self.permission_service.apply_cascaded(item, permissions)
            item, cascaded = affected[0], affected[1:]

        return ItemUpdateResult(
            item=ItemSummary.for_user(item, user),
            cascaded_items=[ItemSummary.for_user(c, user) for c in cascaded],
        )

    ## Deletion

    async def delete_item(self, user: str, item_id: str) -> None:
        """Delete an item and, for directories, its whole subtree.

        All or nothing: every descendant is checked for DELETE first, and a
        single failure rejects the call before any row or file is touched.
        Rows go in one statement; backing files are removed afterwards and a
        failure there is only logged.
        """
        await self._require(
            user,
            item_id,
            ItemAction.DELETE,
            "You have not enough permissions to delete this item.",
        )
        item = await self._get_or_raise(item_id)

        doomed = [item]
        if item.is_directory:
            descendants = await self.tree_service.descendants(item.id, filtered=False)
            allowed = await self.access_service.allowed_item_ids(
                user, [d.id for d in descendants], ItemAction.DELETE
            )
            denied = [d.id for d in descendants if d.id not in allowed]
            if denied:
                logger.info(
                    f"Refusing to delete {item.id} for {user}: "
                    f"{len(denied)} nested items not deletable"
                )
                raise AccessDeniedError(
                    "You have not enough permissions to delete some nested items."
                )
            doomed.extend(descendants)

        item_ids = [i.id for i in doomed]
        paths = await self.repository.find_stored_paths(item_ids)

        await self.repository.delete_by_ids(item_ids)
        removed = await self.file_service.delete_files(paths)
        logger.info(
            f"Deleted item {item.id} from pocket {self.pocket_id}: "
            f"{len(item_ids)} items, {removed}/{len(paths)} stored files"
        )
