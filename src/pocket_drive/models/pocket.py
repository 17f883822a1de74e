"""Pocket, item and permission models."""

import uuid
from datetime import datetime
from enum import IntEnum
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocket_drive.models.base import Base
from pocket_drive.utils import ensure_timezone_aware


class Role(IntEnum):
    """Per-user, per-item authorization level. Ordered weakest to strongest."""

    VIEWER = 0
    EDITOR = 1
    OWNER = 2


class ItemType(IntEnum):
    FILE = 0
    DIRECTORY = 1


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now().astimezone()


class Pocket(Base):
    """A user-owned container for a tree of items.

    Deleting a pocket deletes every item in it (and, through the items,
    every permission). Backing files are removed by the caller.
    """

    __tablename__ = "pocket"
    __table_args__ = (Index("ix_pocket_user", "user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    # Identity of the owning user
    user: Mapped[str] = mapped_column(String(256))
    name: Mapped[str] = mapped_column(String(256))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )

    items: Mapped[List["Item"]] = relationship(
        "Item",
        back_populates="pocket",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"Pocket(id='{self.id}', user='{self.user}', name='{self.name}')"


class Item(Base):
    """A file or directory node in a pocket tree.

    - parent_id is None for top-level items
    - FILE items have a path to their stored bytes and never have children
    - permissions are stored per item; nothing is inherited structurally
    """

    __tablename__ = "item"
    __table_args__ = (
        Index("ix_item_pocket_id", "pocket_id"),
        Index("ix_item_parent_id", "parent_id"),
        # Name lookups are always scoped to (pocket, parent)
        Index("ix_item_pocket_parent_name", "pocket_id", "parent_id", "name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(256))
    type: Mapped[ItemType] = mapped_column(
        Enum(ItemType, native_enum=False, length=16), default=ItemType.FILE
    )
    size: Mapped[int] = mapped_column(Integer, default=0)
    # Opaque location of the stored bytes (FILE only)
    path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    parent_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("item.id", ondelete="CASCADE"), nullable=True
    )
    pocket_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pocket.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )

    # Relationships
    pocket: Mapped[Pocket] = relationship("Pocket", back_populates="items")
    permissions: Mapped[List["Permission"]] = relationship(
        "Permission",
        back_populates="item",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_directory(self) -> bool:
        return self.type == ItemType.DIRECTORY

    @property
    def owners(self) -> List[str]:
        """Users holding OWNER on this item."""
        return [p.user for p in self.permissions if p.role == Role.OWNER]

    def __getattribute__(self, name):
        """Override attribute access to ensure datetime fields are timezone-aware."""
        value = super().__getattribute__(name)

        if name in ("created_at", "updated_at") and isinstance(value, datetime):
            return ensure_timezone_aware(value)

        return value

    def __repr__(self) -> str:
        return (
            f"Item(id='{self.id}', name='{self.name}', type={self.type.name}, "
            f"parent_id={self.parent_id!r}, pocket_id='{self.pocket_id}')"
        )


class Permission(Base):
    """A (user, role) grant on a single item."""

    __tablename__ = "permission"
    __table_args__ = (
        # At most one role per user per item
        UniqueConstraint("item_id", "user", name="uix_permission_item_user"),
        Index("ix_permission_user", "user"),
        Index("ix_permission_item_id", "item_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user: Mapped[str] = mapped_column(String(256))
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=16), default=Role.VIEWER
    )
    item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("item.id", ondelete="CASCADE"), nullable=False
    )

    item: Mapped[Item] = relationship("Item", back_populates="permissions")

    def __repr__(self) -> str:  # pragma: no cover
        return f"Permission(item_id='{self.item_id}', user='{self.user}', role={self.role.name})"
