"""FastAPI dependencies for pocket-drive."""

from pocket_drive.deps.config import AppConfigDep, get_app_config
from pocket_drive.deps.db import (
    EngineFactoryDep,
    SessionMakerDep,
    get_engine_factory,
    get_session_maker,
)
from pocket_drive.deps.identity import (
    CurrentUserDep,
    PocketIdPathDep,
    get_current_user,
    get_pocket_id,
)
from pocket_drive.deps.repositories import (
    ItemRepositoryDep,
    PermissionRepositoryDep,
    PocketRepositoryDep,
    get_item_repository,
    get_permission_repository,
    get_pocket_repository,
)
from pocket_drive.deps.services import (
    AccessServiceDep,
    FileServiceDep,
    ItemServiceDep,
    PermissionServiceDep,
    TreeServiceDep,
    get_access_service,
    get_file_service,
    get_item_service,
    get_permission_service,
    get_tree_service,
)

__all__ = [
    "AppConfigDep",
    "get_app_config",
    "EngineFactoryDep",
    "SessionMakerDep",
    "get_engine_factory",
    "get_session_maker",
    "CurrentUserDep",
    "PocketIdPathDep",
    "get_current_user",
    "get_pocket_id",
    "ItemRepositoryDep",
    "PermissionRepositoryDep",
    "PocketRepositoryDep",
    "get_item_repository",
    "get_permission_repository",
    "get_pocket_repository",
    "AccessServiceDep",
    "FileServiceDep",
    "ItemServiceDep",
    "PermissionServiceDep",
    "TreeServiceDep",
    "get_access_service",
    "get_file_service",
    "get_item_service",
    "get_permission_service",
    "get_tree_service",
]
