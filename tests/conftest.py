"""Common test fixtures."""

import os
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pocket_drive import db
from pocket_drive.config import ConfigManager, PocketDriveConfig
from pocket_drive.models import Base, Item, ItemType, Pocket
from pocket_drive.repository import ItemRepository, PermissionRepository, PocketRepository
from pocket_drive.services import (
    AccessService,
    FileService,
    ItemService,
    PermissionService,
    TreeService,
)

from factories import OTHER, OWNER, make_item


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    # Patch HOME environment variable for the duration of the test
    monkeypatch.setenv("HOME", str(tmp_path))
    # On Windows, also set USERPROFILE
    if os.name == "nt":
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.delenv("POCKET_DRIVE_CONFIG_DIR", raising=False)
    monkeypatch.setenv("POCKET_DRIVE_ENV", "test")
    return tmp_path


@pytest.fixture(scope="function")
def app_config(config_home) -> PocketDriveConfig:
    """Create test app configuration."""
    return PocketDriveConfig(
        env="test",
        upload_dir=config_home / "uploads",
        file_delete_timeout=2.0,
    )


@pytest.fixture
def config_manager(app_config: PocketDriveConfig, config_home: Path) -> ConfigManager:
    # Invalidate config cache to ensure clean state for each test
    from pocket_drive import config as config_module

    config_module._CONFIG_CACHE = None

    config_manager = ConfigManager()
    config_manager.config_dir = config_home / ".pocket-drive"
    config_manager.config_file = config_manager.config_dir / "config.json"
    config_manager.config_dir.mkdir(parents=True, exist_ok=True)

    config_manager.save_config(app_config)
    return config_manager


@pytest_asyncio.fixture(scope="function")
async def engine_factory(
    app_config: PocketDriveConfig,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """A fresh file-backed SQLite database per test, built from the ORM metadata."""
    async with db.engine_session_factory(
        db_path=app_config.database_path, app_config=app_config
    ) as (engine, session_maker):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        yield engine, session_maker


@pytest_asyncio.fixture
async def session_maker(engine_factory) -> async_sessionmaker[AsyncSession]:
    """Get session maker for tests."""
    _, session_maker = engine_factory
    return session_maker


## Pockets


@pytest_asyncio.fixture(scope="function")
async def pocket_repository(session_maker: async_sessionmaker[AsyncSession]) -> PocketRepository:
    return PocketRepository(session_maker)


@pytest_asyncio.fixture(scope="function")
async def test_pocket(pocket_repository: PocketRepository) -> Pocket:
    """Pocket owned by OWNER. Most tests build their trees here."""
    return await pocket_repository.create({"user": OWNER, "name": "x pocket"})


@pytest_asyncio.fixture(scope="function")
async def other_pocket(pocket_repository: PocketRepository) -> Pocket:
    """Pocket owned by OTHER."""
    return await pocket_repository.create({"user": OTHER, "name": "y pocket"})


## Repositories


@pytest_asyncio.fixture(scope="function")
async def item_repository(
    session_maker: async_sessionmaker[AsyncSession], test_pocket: Pocket
) -> ItemRepository:
    """Create an ItemRepository instance scoped to the test pocket."""
    return ItemRepository(session_maker, pocket_id=test_pocket.id)


@pytest_asyncio.fixture(scope="function")
async def permission_repository(
    session_maker: async_sessionmaker[AsyncSession],
) -> PermissionRepository:
    return PermissionRepository(session_maker)


## Services


@pytest_asyncio.fixture
async def access_service(
    permission_repository: PermissionRepository, pocket_repository: PocketRepository
) -> AccessService:
    return AccessService(permission_repository, pocket_repository)


@pytest_asyncio.fixture
async def tree_service(item_repository: ItemRepository) -> TreeService:
    return TreeService(item_repository)


@pytest_asyncio.fixture
async def permission_service(
    permission_repository: PermissionRepository,
    item_repository: ItemRepository,
    tree_service: TreeService,
) -> PermissionService:
    return PermissionService(permission_repository, item_repository, tree_service)


@pytest.fixture
def file_service(app_config: PocketDriveConfig) -> FileService:
    return FileService(app_config.uploads_path, delete_timeout=app_config.file_delete_timeout)


@pytest_asyncio.fixture
async def item_service(
    item_repository: ItemRepository,
    pocket_repository: PocketRepository,
    access_service: AccessService,
    tree_service: TreeService,
    permission_service: PermissionService,
    file_service: FileService,
) -> ItemService:
    return ItemService(
        item_repository=item_repository,
        pocket_repository=pocket_repository,
        access_service=access_service,
        tree_service=tree_service,
        permission_service=permission_service,
        file_service=file_service,
    )


## Trees


@pytest_asyncio.fixture
async def test_tree(item_repository: ItemRepository) -> dict[str, Item]:
    """A small tree owned by OWNER:

    docs/
    ├── a.txt
    ├── b.txt
    └── sub/
        └── c.txt
    """
    docs = await make_item(item_repository, "docs")
    a = await make_item(item_repository, "a.txt", ItemType.FILE, docs)
    b = await make_item(item_repository, "b.txt", ItemType.FILE, docs)
    sub = await make_item(item_repository, "sub", ItemType.DIRECTORY, docs)
    c = await make_item(item_repository, "c.txt", ItemType.FILE, sub)
    return {"docs": docs, "a": a, "b": b, "sub": sub, "c": c}
