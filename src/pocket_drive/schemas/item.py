"""Schemas for item requests and responses."""

import json
from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from pocket_drive.models import Item, ItemType, Role


def parse_role(value: Any) -> Any:
    """Accept roles as enum members, integers, numeric strings or names."""
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        try:
            return Role[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown role: {value!r}")
    return value


RoleField = Annotated[Role, BeforeValidator(parse_role)]


class PermissionEntry(BaseModel):
    """A requested (user, role) grant.

    Example: {"user": "johndoe@mail.com", "role": 1}
    The legacy wire name "userEmail" is accepted as well.
    """

    user: str = Field(
        ...,
        min_length=1,
        max_length=256,
        validation_alias=AliasChoices("user", "userEmail"),
    )
    role: RoleField = Role.VIEWER


_permission_list = TypeAdapter(List[PermissionEntry])


def parse_permissions_json(raw: Optional[str]) -> List[PermissionEntry]:
    """Parse the JSON-encoded permission list sent alongside multipart uploads.

    Empty input means no extra grants.

    Raises:
        ValueError: If the payload is not valid JSON or not a list of entries
    """
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Item permissions are not valid JSON: {e}") from e
    if data is None:
        return []
    try:
        return _permission_list.validate_python(data)
    except ValidationError as e:
        raise ValueError(f"Item permissions are not valid: {e}") from e


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user: str
    role: Role


class ItemSummary(BaseModel):
    """Item as reported to a specific requesting user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: ItemType
    parent_id: Optional[str] = None
    size: int
    created_at: datetime
    updated_at: datetime
    permissions: List[PermissionResponse] = []

    @classmethod
    def for_user(cls, item: Item, user: str) -> "ItemSummary":
        """Build a summary with the ACL the user is allowed to see.

        An OWNER sees every grant on the item; any other role sees only its
        own entry; a user with no grant sees none.
        """
        return cls(
            id=item.id,
            name=item.name,
            type=item.type,
            parent_id=item.parent_id,
            size=item.size,
            created_at=item.created_at,
            updated_at=item.updated_at,
            permissions=visible_permissions(item, user),
        )


def visible_permissions(item: Item, user: str) -> List[PermissionResponse]:
    if user in item.owners:
        return [PermissionResponse.model_validate(p) for p in item.permissions]
    own = [p for p in item.permissions if p.user == user]
    return [PermissionResponse.model_validate(p) for p in own]


class CreateDirectoryRequest(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=256,
        validation_alias=AliasChoices("name", "dirName"),
    )
    parent_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parentId")
    )
    permissions: List[PermissionEntry] = []


class UpdateItemRequest(BaseModel):
    """Rename, move and/or share an item. Omitted fields are left unchanged.

    parent_id "root" moves the item to the top level of its pocket.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    parent_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parent")
    )
    permissions: Optional[List[PermissionEntry]] = None


class ItemUpdateResult(BaseModel):
    """An updated item plus every descendant a permission cascade touched."""

    item: ItemSummary
    cascaded_items: List[ItemSummary] = []


class NameExistsResponse(BaseModel):
    exists: bool
