"""Database dependencies: engine factory and session maker."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pocket_drive import db
from pocket_drive.deps.config import AppConfigDep


async def get_engine_factory(
    app_config: AppConfigDep,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:  # pragma: no cover
    """Get the process-wide engine and session maker, creating them on first use."""
    return await db.get_or_create_db(app_config.database_path, app_config)


EngineFactoryDep = Annotated[
    tuple[AsyncEngine, async_sessionmaker[AsyncSession]], Depends(get_engine_factory)
]


async def get_session_maker(engine_factory: EngineFactoryDep) -> async_sessionmaker[AsyncSession]:
    _, session_maker = engine_factory
    return session_maker


SessionMakerDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]
