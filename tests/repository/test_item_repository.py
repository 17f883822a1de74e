"""Tests for the ItemRepository."""

import pytest
from sqlalchemy import func, select

from pocket_drive import db
from pocket_drive.models import ItemType, Permission, Pocket, Role
from pocket_drive.repository import ItemRepository, PermissionRepository, PocketRepository

from factories import OTHER, OWNER, make_item


@pytest.mark.asyncio
async def test_create_with_permissions(item_repository: ItemRepository, test_pocket: Pocket):
    item = await item_repository.create_with_permissions(
        {"name": "notes", "type": ItemType.DIRECTORY, "size": 0},
        [(OWNER, Role.OWNER), (OTHER, Role.VIEWER)],
    )

    assert item.id
    assert item.pocket_id == test_pocket.id
    assert item.parent_id is None
    assert item.is_directory
    assert {(p.user, p.role) for p in item.permissions} == {
        (OWNER, Role.OWNER),
        (OTHER, Role.VIEWER),
    }
    assert item.owners == [OWNER]
    assert item.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_find_by_id_is_scoped_to_pocket(
    session_maker, item_repository: ItemRepository, other_pocket: Pocket
):
    other_repository = ItemRepository(session_maker, pocket_id=other_pocket.id)
    foreign = await make_item(other_repository, "theirs", grants=[(OTHER, Role.OWNER)])

    assert await item_repository.find_by_id(foreign.id) is None
    assert await other_repository.find_by_id(foreign.id) is not None
    assert await item_repository.find_all() == []


@pytest.mark.asyncio
async def test_find_children_orders_by_name(item_repository: ItemRepository, test_tree):
    children = await item_repository.find_children([test_tree["docs"].id])

    assert [c.name for c in children] == ["a.txt", "b.txt", "sub"]
    # Permissions are eagerly loaded
    assert all(c.permissions for c in children)


@pytest.mark.asyncio
async def test_find_children_multiple_parents(item_repository: ItemRepository, test_tree):
    children = await item_repository.find_children([test_tree["docs"].id, test_tree["sub"].id])

    assert {c.name for c in children} == {"a.txt", "b.txt", "sub", "c.txt"}


@pytest.mark.asyncio
async def test_find_children_empty(item_repository: ItemRepository):
    assert await item_repository.find_children([]) == []


@pytest.mark.asyncio
async def test_get_parent_ids(item_repository: ItemRepository, test_tree):
    parents = await item_repository.get_parent_ids([test_tree["c"].id, test_tree["docs"].id])

    assert parents == {test_tree["c"].id: test_tree["sub"].id, test_tree["docs"].id: None}


@pytest.mark.asyncio
async def test_name_exists(item_repository: ItemRepository, test_tree):
    docs = test_tree["docs"]

    assert await item_repository.name_exists("docs", None)
    assert await item_repository.name_exists("a.txt", docs.id)

    # Case sensitive
    assert not await item_repository.name_exists("Docs", None)
    # The pocket top level is its own bucket
    assert not await item_repository.name_exists("a.txt", None)
    assert not await item_repository.name_exists("docs", docs.id)


@pytest.mark.asyncio
async def test_find_stored_paths(item_repository: ItemRepository):
    folder = await make_item(item_repository, "folder")
    stored = await make_item(item_repository, "f.bin", ItemType.FILE, folder, path="/tmp/abc.bin")

    assert await item_repository.find_stored_paths([folder.id, stored.id]) == ["/tmp/abc.bin"]
    assert await item_repository.find_stored_paths([]) == []


@pytest.mark.asyncio
async def test_update_moves_and_renames(item_repository: ItemRepository, test_tree):
    updated = await item_repository.update(
        test_tree["c"].id, {"name": "renamed.txt", "parent_id": None}
    )

    assert updated is not None
    assert updated.name == "renamed.txt"
    assert updated.parent_id is None
    assert updated.permissions


@pytest.mark.asyncio
async def test_delete_by_ids_is_scoped_to_pocket(
    session_maker, item_repository: ItemRepository, other_pocket: Pocket
):
    other_repository = ItemRepository(session_maker, pocket_id=other_pocket.id)
    foreign = await make_item(other_repository, "theirs", grants=[(OTHER, Role.OWNER)])

    deleted = await item_repository.delete_by_ids([foreign.id])

    assert deleted == 0
    assert await other_repository.find_by_id(foreign.id) is not None


@pytest.mark.asyncio
async def test_delete_by_ids_removes_permissions(
    session_maker, item_repository: ItemRepository, test_tree
):
    ids = [test_tree["c"].id, test_tree["sub"].id]

    await item_repository.delete_by_ids(ids)

    # c can be removed by the cascade from sub rather than by the statement
    assert {i.id for i in await item_repository.find_all()} == {
        test_tree["docs"].id,
        test_tree["a"].id,
        test_tree["b"].id,
    }
    async with db.scoped_session(session_maker) as session:
        remaining = await session.scalar(
            select(func.count()).select_from(Permission).where(Permission.item_id.in_(ids))
        )
    assert remaining == 0


@pytest.mark.asyncio
async def test_deleting_directory_row_cascades_to_children(
    item_repository: ItemRepository, test_tree
):
    await item_repository.delete_by_ids([test_tree["docs"].id])

    assert await item_repository.find_all() == []


@pytest.mark.asyncio
async def test_deleting_pocket_removes_items_and_permissions(
    pocket_repository: PocketRepository,
    item_repository: ItemRepository,
    permission_repository: PermissionRepository,
    test_pocket: Pocket,
    test_tree,
):
    assert await item_repository.count() == 5
    assert await permission_repository.count() == 5

    assert await pocket_repository.delete(test_pocket.id)

    assert await item_repository.count() == 0
    assert await permission_repository.count() == 0
