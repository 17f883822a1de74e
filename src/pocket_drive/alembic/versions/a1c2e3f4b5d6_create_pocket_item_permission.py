"""Create pocket, item and permission tables.

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-09-28 00:00:00.000000

Items reference their parent item and their pocket with ON DELETE CASCADE,
and permissions reference their item the same way, so deleting a pocket or
a directory row removes the whole subtree at the storage layer.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_VALUES = ("VIEWER", "EDITOR", "OWNER")
ITEM_TYPE_VALUES = ("FILE", "DIRECTORY")


def upgrade() -> None:
    op.create_table(
        "pocket",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user", sa.String(length=256), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pocket_user", "pocket", ["user"], unique=False)

    op.create_table(
        "item",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column(
            "type",
            sa.Enum(*ITEM_TYPE_VALUES, name="itemtype", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("path", sa.String(length=512), nullable=True),
        sa.Column("parent_id", sa.String(length=36), nullable=True),
        sa.Column("pocket_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["item.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["pocket_id"], ["pocket.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_item_pocket_id", "item", ["pocket_id"], unique=False)
    op.create_index("ix_item_parent_id", "item", ["parent_id"], unique=False)
    op.create_index(
        "ix_item_pocket_parent_name", "item", ["pocket_id", "parent_id", "name"], unique=False
    )

    op.create_table(
        "permission",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user", sa.String(length=256), nullable=False),
        sa.Column(
            "role",
            sa.Enum(*ROLE_VALUES, name="role", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["item.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("item_id", "user", name="uix_permission_item_user"),
    )
    op.create_index("ix_permission_user", "permission", ["user"], unique=False)
    op.create_index("ix_permission_item_id", "permission", ["item_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_permission_item_id", table_name="permission")
    op.drop_index("ix_permission_user", table_name="permission")
    op.drop_table("permission")
    op.drop_index("ix_item_pocket_parent_name", table_name="item")
    op.drop_index("ix_item_parent_id", table_name="item")
    op.drop_index("ix_item_pocket_id", table_name="item")
    op.drop_table("item")
    op.drop_index("ix_pocket_user", table_name="pocket")
    op.drop_table("pocket")
