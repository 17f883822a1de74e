"""Services package."""

from typing import Generic, TypeVar

T = TypeVar("T")


class BaseService(Generic[T]):
    """Base service that takes a repository."""

    def __init__(self, repository: T):
        """Initialize service with repository."""
        self.repository = repository


from pocket_drive.services.access_service import AccessService  # noqa: E402
from pocket_drive.services.file_service import FileService  # noqa: E402
from pocket_drive.services.item_service import ItemService  # noqa: E402
from pocket_drive.services.permission_service import PermissionService  # noqa: E402
from pocket_drive.services.tree_service import TreeService  # noqa: E402

__all__ = [
    "BaseService",
    "AccessService",
    "FileService",
    "ItemService",
    "PermissionService",
    "TreeService",
]
