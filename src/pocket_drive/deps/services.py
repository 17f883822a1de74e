"""Service dependency injection for pocket-drive.

This module provides service-layer dependencies:
- AccessService, TreeService, PermissionService
- FileService, ItemService
"""

from typing import Annotated

from fastapi import Depends
from loguru import logger

from pocket_drive.deps.config import AppConfigDep
from pocket_drive.deps.repositories import (
    ItemRepositoryDep,
    PermissionRepositoryDep,
    PocketRepositoryDep,
)
from pocket_drive.services import (
    AccessService,
    FileService,
    ItemService,
    PermissionService,
    TreeService,
)

# --- Access ---


async def get_access_service(
    permission_repository: PermissionRepositoryDep,
    pocket_repository: PocketRepositoryDep,
) -> AccessService:
    return AccessService(permission_repository, pocket_repository)


AccessServiceDep = Annotated[AccessService, Depends(get_access_service)]


# --- Tree ---


async def get_tree_service(
    item_repository: ItemRepositoryDep, app_config: AppConfigDep
) -> TreeService:
    return TreeService(
        item_repository,
        max_depth=app_config.max_tree_depth,
        max_items=app_config.max_tree_items,
    )


TreeServiceDep = Annotated[TreeService, Depends(get_tree_service)]


# --- Permissions ---


async def get_permission_service(
    permission_repository: PermissionRepositoryDep,
    item_repository: ItemRepositoryDep,
    tree_service: TreeServiceDep,
) -> PermissionService:
    return PermissionService(permission_repository, item_repository, tree_service)


PermissionServiceDep = Annotated[PermissionService, Depends(get_permission_service)]


# --- File Service ---


async def get_file_service(app_config: AppConfigDep) -> FileService:
    file_service = FileService(
        app_config.uploads_path, delete_timeout=app_config.file_delete_timeout
    )
    logger.debug(f"Created FileService with base_path: {file_service.base_path}")
    return file_service


FileServiceDep = Annotated[FileService, Depends(get_file_service)]


# --- Items ---


async def get_item_service(
    item_repository: ItemRepositoryDep,
    pocket_repository: PocketRepositoryDep,
    access_service: AccessServiceDep,
    tree_service: TreeServiceDep,
    permission_service: PermissionServiceDep,
    file_service: FileServiceDep,
) -> ItemService:
    return ItemService(
        item_repository=item_repository,
        pocket_repository=pocket_repository,
        access_service=access_service,
        tree_service=tree_service,
        permission_service=permission_service,
        file_service=file_service,
    )


ItemServiceDep = Annotated[ItemService, Depends(get_item_service)]
