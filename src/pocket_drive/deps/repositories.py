"""Repository dependencies.

Item repositories are scoped to the pocket in the request path.
"""

from typing import Annotated

from fastapi import Depends

from pocket_drive.deps.db import SessionMakerDep
from pocket_drive.deps.identity import PocketIdPathDep
from pocket_drive.repository import ItemRepository, PermissionRepository, PocketRepository


async def get_pocket_repository(session_maker: SessionMakerDep) -> PocketRepository:
    return PocketRepository(session_maker)


PocketRepositoryDep = Annotated[PocketRepository, Depends(get_pocket_repository)]


async def get_item_repository(
    session_maker: SessionMakerDep, pocket_id: PocketIdPathDep
) -> ItemRepository:
    return ItemRepository(session_maker, pocket_id=pocket_id)


ItemRepositoryDep = Annotated[ItemRepository, Depends(get_item_repository)]


async def get_permission_repository(session_maker: SessionMakerDep) -> PermissionRepository:
    return PermissionRepository(session_maker)


PermissionRepositoryDep = Annotated[PermissionRepository, Depends(get_permission_repository)]
