"""Role ordering and the action -> minimum role policy.

Pure functions; nothing here touches storage or raises.
"""

from enum import IntEnum
from typing import Iterable, Optional

from pocket_drive.models import Role


class ItemAction(IntEnum):
    DOWNLOAD = 0
    UPLOAD = 1
    RENAME = 2
    DELETE = 3
    COPY = 4


MINIMUM_ROLES: dict[ItemAction, Role] = {
    ItemAction.DOWNLOAD: Role.VIEWER,
    ItemAction.UPLOAD: Role.OWNER,
    ItemAction.RENAME: Role.EDITOR,
    ItemAction.DELETE: Role.EDITOR,
    ItemAction.COPY: Role.EDITOR,
}


def minimum_role_for(action) -> Optional[Role]:
    """Get the weakest role allowed to perform an action.

    Returns None for anything outside the policy table, which callers must
    treat as deny.
    """
    try:
        return MINIMUM_ROLES.get(ItemAction(action))
    except ValueError:
        return None


def strongest_role(roles: Iterable[Role]) -> Optional[Role]:
    """Return the highest role in the set, or None for an empty set."""
    return max(roles, default=None)


def is_role_sufficient(roles: Iterable[Role], action) -> bool:
    """Check whether a held role set authorizes an action.

    An empty role set never authorizes anything, whatever the action: a user
    absent from an item's ACL has no visibility into it.
    """
    held = strongest_role(roles)
    if held is None:
        return False

    required = minimum_role_for(action)
    if required is None:
        return False

    return held >= required
