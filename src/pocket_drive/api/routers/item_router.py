"""Item router.

Every route acts on one pocket and one requesting user. Access decisions are
made by ItemService; service errors are turned into HTTP status codes by the
application's exception handler.
"""

from typing import List, Optional

from fastapi import APIRouter, File, Form, Path, Query, Response, UploadFile
from fastapi.responses import FileResponse
from loguru import logger

from pocket_drive.deps import CurrentUserDep, ItemServiceDep, PocketIdPathDep
from pocket_drive.schemas import (
    CreateDirectoryRequest,
    ItemSummary,
    ItemUpdateResult,
    NameExistsResponse,
    UpdateItemRequest,
)

router = APIRouter(prefix="/items", tags=["items"])


## Read endpoints


@router.get("/{pocket_id}", response_model=List[ItemSummary])
async def list_items(
    pocket_id: PocketIdPathDep,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
) -> List[ItemSummary]:
    """List every item in a pocket. Only the pocket owner can list."""
    logger.info(f"API request: list_items pocket_id={pocket_id}")
    return await item_service.list_items(user)


@router.get("/{pocket_id}/check", response_model=NameExistsResponse)
async def check_name(
    pocket_id: PocketIdPathDep,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
    name: str = Query(..., min_length=1, description="Exact item name"),
    parent: Optional[str] = Query(None, description="Parent item id, or 'root'"),
) -> NameExistsResponse:
    """Check whether a name is already taken under a parent."""
    exists = await item_service.name_exists(user, name, parent)
    return NameExistsResponse(exists=exists)


@router.get("/{pocket_id}/{item_id}", response_model=List[ItemSummary])
async def get_item(
    pocket_id: PocketIdPathDep,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
    item_id: str = Path(..., description="Item ID"),
) -> List[ItemSummary]:
    """Get an item. Directories also return every descendant visible to the user.

    The first element is always the requested item.
    """
    logger.info(f"API request: get_item pocket_id={pocket_id} item_id={item_id}")
    return await item_service.get_item(user, item_id)


@router.get("/{pocket_id}/{item_id}/download", response_class=FileResponse)
async def download_item(
    pocket_id: PocketIdPathDep,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
    item_id: str = Path(..., description="Item ID"),
) -> FileResponse:
    item, path = await item_service.get_download_path(user, item_id)
    logger.info(f"API request: download pocket_id={pocket_id} item_id={item_id}")
    return FileResponse(path, filename=item.name)


## Create endpoints


@router.post("/{pocket_id}/directory", response_model=ItemSummary, status_code=201)
async def create_directory(
    pocket_id: PocketIdPathDep,
    data: CreateDirectoryRequest,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
) -> ItemSummary:
    logger.info(f"API request: create_directory pocket_id={pocket_id} name='{data.name}'")
    return await item_service.create_directory(
        user, data.name, parent_id=data.parent_id, permissions=data.permissions
    )


@router.post("/{pocket_id}/upload", response_model=ItemSummary, status_code=201)
async def upload_file(
    pocket_id: PocketIdPathDep,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
    file: UploadFile = File(...),
    parent_id: Optional[str] = Form(None, alias="parentId"),
    permissions: Optional[str] = Form(None, description="JSON list of {user, role}"),
) -> ItemSummary:
    """Upload a file as multipart form data.

    permissions is a JSON-encoded list, since multipart fields are flat strings.
    """
    content = await file.read()
    name = file.filename or "upload"
    logger.info(
        f"API request: upload pocket_id={pocket_id} name='{name}' size={len(content)}"
    )
    return await item_service.upload_file(
        user, name, content, parent_id=parent_id, permissions=permissions
    )


## Update endpoints


@router.patch("/{pocket_id}/{item_id}", response_model=ItemUpdateResult)
async def update_item(
    pocket_id: PocketIdPathDep,
    data: UpdateItemRequest,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
    item_id: str = Path(..., description="Item ID"),
) -> ItemUpdateResult:
    """Rename, move and/or share an item.

    Permissions sent for a directory are copied onto its whole subtree; the
    touched descendants come back in cascaded_items.
    """
    logger.info(f"API request: update_item pocket_id={pocket_id} item_id={item_id}")
    return await item_service.update_item(
        user,
        item_id,
        name=data.name,
        parent_id=data.parent_id,
        permissions=data.permissions,
    )


## Delete endpoints


@router.delete("/{pocket_id}/{item_id}", status_code=204)
async def delete_item(
    pocket_id: PocketIdPathDep,
    user: CurrentUserDep,
    item_service: ItemServiceDep,
    item_id: str = Path(..., description="Item ID"),
) -> Response:
    logger.info(f"API request: delete_item pocket_id={pocket_id} item_id={item_id}")
    await item_service.delete_item(user, item_id)
    return Response(status_code=204)
