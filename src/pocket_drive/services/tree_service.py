"""Tree service for walking the item hierarchy of a pocket."""

from typing import List, Optional

from loguru import logger

from pocket_drive.models import Item
from pocket_drive.repository import ItemRepository
from pocket_drive.services.exceptions import TreeLimitExceededError

DEFAULT_MAX_TREE_DEPTH = 64
DEFAULT_MAX_TREE_ITEMS = 10_000


def _is_visible_to(item: Item, user: str) -> bool:
    """Any grant at all makes an item visible; the role doesn't matter."""
    return any(permission.user == user for permission in item.permissions)


class TreeService:
    """Service for walking item trees.

    Walks are iterative, one store query per tree level, so nesting depth
    never turns into interpreter recursion. A visited set means an item is
    reported at most once even if parent links were (incorrectly) cyclic.
    """

    def __init__(
        self,
        item_repository: ItemRepository,
        max_depth: int = DEFAULT_MAX_TREE_DEPTH,
        max_items: int = DEFAULT_MAX_TREE_ITEMS,
    ):
        """Initialize the tree service.

        Args:
            item_repository: Pocket-scoped item repository
            max_depth: Maximum number of levels below the root a walk may visit
            max_items: Maximum number of items a walk may return
        """
        self.item_repository = item_repository
        self.max_depth = max_depth
        self.max_items = max_items

    async def descendants(
        self,
        root_item_id: str,
        user: Optional[str] = None,
        filtered: bool = False,
    ) -> List[Item]:
        """Collect every item below root_item_id.

        Args:
            root_item_id: Item whose subtree is walked (not itself included)
            user: User whose visibility applies when filtered is True
            filtered: Keep only items the user holds any permission on. A
                directory that is filtered out hides its whole subtree, whatever
                the descendants' own ACLs say.

        Returns:
            Items in level order: the root's direct children first, and every
            parent before any of its descendants. Sibling order is by name.

        Raises:
            TreeLimitExceededError: If the subtree is deeper or larger than
                the configured limits
        """
        if filtered and user is None:
            raise ValueError("A user is required for a visibility-filtered walk")

        visited = {root_item_id}
        result: List[Item] = []
        frontier = [root_item_id]
        depth = 0

        while frontier:
            children = await self.item_repository.find_children(frontier)
            if not children:
                break

            depth += 1
            if depth > self.max_depth:
                raise TreeLimitExceededError(
                    f"Item {root_item_id} is nested deeper than {self.max_depth} levels"
                )

            next_frontier = []
            for child in children:
                if child.id in visited:
                    logger.warning(f"Cycle in item tree below {root_item_id} at item {child.id}")
                    continue

                if filtered and not _is_visible_to(child, user):  # pyright: ignore [reportArgumentType]
                    continue

                visited.add(child.id)
                result.append(child)

                if child.is_directory:
                    next_frontier.append(child.id)

            if len(result) > self.max_items:
                raise TreeLimitExceededError(
                    f"Item {root_item_id} has more than {self.max_items} descendants"
                )

            frontier = next_frontier

        logger.debug(
            f"Walked {len(result)} descendants of {root_item_id} "
            f"(filtered={filtered}, depth={depth})"
        )
        return result

    async def ancestor_ids(self, item_id: str) -> List[str]:
        """Get the parent chain of an item, nearest parent first.

        Stops at the pocket root, at a dangling parent reference, or at the
        first repeated id.
        """
        ancestors: List[str] = []
        seen = {item_id}
        current = item_id

        for _ in range(self.max_depth + 1):
            parents = await self.item_repository.get_parent_ids([current])
            parent_id = parents.get(current)
            if parent_id is None:
                return ancestors
            if parent_id in seen:
                logger.warning(f"Cycle in parent chain of item {item_id} at {parent_id}")
                return ancestors

            ancestors.append(parent_id)
            seen.add(parent_id)
            current = parent_id

        raise TreeLimitExceededError(f"Item {item_id} is nested deeper than {self.max_depth} levels")
