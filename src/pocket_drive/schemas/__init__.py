"""Request and response schemas.

Rather than importing from individual schema files, you can import
everything from pocket_drive.schemas.
"""

from pocket_drive.schemas.item import (
    CreateDirectoryRequest,
    ItemSummary,
    ItemUpdateResult,
    NameExistsResponse,
    PermissionEntry,
    PermissionResponse,
    UpdateItemRequest,
    parse_permissions_json,
)

__all__ = [
    "CreateDirectoryRequest",
    "ItemSummary",
    "ItemUpdateResult",
    "NameExistsResponse",
    "PermissionEntry",
    "PermissionResponse",
    "UpdateItemRequest",
    "parse_permissions_json",
]
