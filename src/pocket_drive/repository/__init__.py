from pocket_drive.repository.item_repository import ItemRepository
from pocket_drive.repository.permission_repository import PermissionRepository
from pocket_drive.repository.pocket_repository import PocketRepository

__all__ = [
    "ItemRepository",
    "PermissionRepository",
    "PocketRepository",
]
