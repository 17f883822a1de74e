"""Database engine and session management."""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum, auto
from pathlib import Path
from typing import AsyncGenerator, Optional

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pocket_drive.config import DatabaseBackend, PocketDriveConfig

# Module level state
_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseType(Enum):
    """Types of supported databases."""

    FILESYSTEM = auto()
    POSTGRES = auto()

    @classmethod
    def get_db_url(cls, db_path: Path, db_type: "DatabaseType", config: PocketDriveConfig) -> str:
        """Get SQLAlchemy URL for database path."""
        if db_type == cls.POSTGRES:
            if not config.database_url:  # pragma: no cover
                raise ValueError("database_url is required for the postgres backend")
            logger.info("Using Postgres database")
            return config.database_url

        logger.info(f"Using SQLite database: {db_path}")
        return f"sqlite+aiosqlite:///{db_path}"

    @classmethod
    def from_config(cls, config: PocketDriveConfig) -> "DatabaseType":
        if config.database_backend == DatabaseBackend.POSTGRES:
            return cls.POSTGRES  # pragma: no cover
        return cls.FILESYSTEM


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every SQLite connection.

    Pocket -> item -> permission cascades rely on ON DELETE CASCADE,
    which SQLite ignores unless the pragma is set per connection.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def _create_engine_and_session(
    db_path: Path,
    db_type: DatabaseType,
    config: PocketDriveConfig,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Internal helper to create engine and session maker."""
    db_url = DatabaseType.get_db_url(db_path, db_type, config)

    if db_type == DatabaseType.POSTGRES:  # pragma: no cover
        engine = create_async_engine(db_url, pool_pre_ping=True)
    else:
        engine = create_async_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
        _enable_sqlite_foreign_keys(engine)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    return engine, session_maker


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a scoped session with proper lifecycle management.

    Commits on clean exit, rolls back on any exception.

    Args:
        session_maker: Session maker to create scoped sessions from
    """
    session = session_maker()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_or_create_db(
    db_path: Path,
    app_config: PocketDriveConfig,
    ensure_migrations: bool = True,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:  # pragma: no cover
    """Get or create database engine and session maker."""
    global _engine, _session_maker

    if _engine is None:
        db_type = DatabaseType.from_config(app_config)
        _engine, _session_maker = _create_engine_and_session(db_path, db_type, app_config)

        if ensure_migrations:
            await run_migrations(app_config, db_type)

    assert _engine is not None
    assert _session_maker is not None
    return _engine, _session_maker


async def shutdown_db() -> None:  # pragma: no cover
    """Clean up database connections."""
    global _engine, _session_maker

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_maker = None


@asynccontextmanager
async def engine_session_factory(
    db_path: Path,
    app_config: PocketDriveConfig,
    db_type: DatabaseType = DatabaseType.FILESYSTEM,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Create engine and session factory.

    Note: This is primarily used for testing where we want a fresh database
    for each test. For production use, use get_or_create_db() instead.
    """
    global _engine, _session_maker

    db_engine, session_maker = _create_engine_and_session(db_path, db_type, app_config)
    try:
        # Wire the module state so code paths that call get_or_create_db()
        # reuse this engine instead of creating (and migrating) a second one
        _engine = db_engine
        _session_maker = session_maker
        yield db_engine, session_maker
    finally:
        await db_engine.dispose()
        _engine = None
        _session_maker = None


def _alembic_config(app_config: PocketDriveConfig, db_type: DatabaseType) -> Config:
    alembic_dir = Path(__file__).parent / "alembic"
    cfg = Config()
    cfg.set_main_option("script_location", str(alembic_dir))
    cfg.set_main_option(
        "file_template",
        "%%(year)d_%%(month).2d_%%(day).2d_%%(hour).2d%%(minute).2d-%%(rev)s_%%(slug)s",
    )
    cfg.set_main_option("timezone", "UTC")
    cfg.set_main_option("revision_environment", "false")
    cfg.set_main_option(
        "sqlalchemy.url",
        DatabaseType.get_db_url(app_config.database_path, db_type, app_config),
    )
    return cfg


async def run_migrations(
    app_config: PocketDriveConfig, database_type: DatabaseType = DatabaseType.FILESYSTEM
) -> None:  # pragma: no cover
    """Run any pending alembic migrations."""
    logger.info("Running database migrations...")
    try:
        cfg = _alembic_config(app_config, database_type)
        # env.py drives its own event loop; keep it off ours
        await asyncio.to_thread(command.upgrade, cfg, "head")
        logger.info("Migrations completed successfully")
    except Exception as e:
        logger.error(f"Error running migrations: {e}")
        raise
