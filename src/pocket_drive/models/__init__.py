"""Models package for pocket-drive."""

from pocket_drive.models.base import Base
from pocket_drive.models.pocket import Item, ItemType, Permission, Pocket, Role

__all__ = [
    "Base",
    "Pocket",
    "Item",
    "ItemType",
    "Permission",
    "Role",
]
