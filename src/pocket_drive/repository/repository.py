"""Base repository implementation."""

from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from loguru import logger
from sqlalchemy import Executable, Result, Select, delete, func, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.interfaces import LoaderOption

from pocket_drive import db
from pocket_drive.models.base import Base

T = TypeVar("T", bound=Base)


class Repository(Generic[T]):
    """Generic repository operations over a single model.

    When a pocket_id is given and the model has a pocket_id column, every
    query built through select() is filtered to that pocket.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        Model: Type[T],
        pocket_id: Optional[str] = None,
    ):
        self.session_maker = session_maker
        self.pocket_id = pocket_id
        self.Model = Model
        self.mapper = sa_inspect(self.Model).mapper
        self.primary_key = self.mapper.primary_key[0]
        self.valid_columns = [column.key for column in self.mapper.columns]
        self.has_pocket_id = "pocket_id" in self.valid_columns

    def get_model_data(self, entity_data: dict[str, Any]) -> dict[str, Any]:
        model_data = {
            k: v for k, v in entity_data.items() if k in self.valid_columns and v is not None
        }
        return model_data

    def _add_pocket_filter(self, query: Select) -> Select:
        """Restrict a query to the repository's pocket, if scoped."""
        if self.has_pocket_id and self.pocket_id is not None:
            query = query.filter(getattr(self.Model, "pocket_id") == self.pocket_id)
        return query

    def select(self, *entities: Any) -> Select:
        """Create a new SELECT statement, scoped to the pocket when applicable."""
        if not entities:
            entities = (self.Model,)
        return self._add_pocket_filter(select(*entities))

    def get_load_options(self) -> List[LoaderOption]:
        """Get list of loader options for eager loading relationships.

        Override in subclasses to specify what to load.
        """
        return []

    async def select_by_id(self, session: AsyncSession, entity_id: Any) -> Optional[T]:
        """Select an entity by ID using an existing session."""
        query = (
            self.select()
            .filter(self.primary_key == entity_id)
            .options(*self.get_load_options())
        )
        result = await session.execute(query)
        return result.scalars().one_or_none()

    async def find_all(
        self, skip: int = 0, limit: Optional[int] = None, use_load_options: bool = True
    ) -> Sequence[T]:
        """Fetch records from the database with pagination."""
        logger.debug(f"Finding all {self.Model.__name__} (skip={skip}, limit={limit})")

        async with db.scoped_session(self.session_maker) as session:
            query = self.select().offset(skip)
            if use_load_options:
                query = query.options(*self.get_load_options())
            if limit:
                query = query.limit(limit)

            result = await session.execute(query)
            items = result.scalars().all()
            logger.debug(f"Found {len(items)} {self.Model.__name__} records")
            return items

    async def find_by_id(self, entity_id: Any) -> Optional[T]:
        """Fetch an entity by its unique identifier."""
        logger.debug(f"Finding {self.Model.__name__} by ID: {entity_id}")

        async with db.scoped_session(self.session_maker) as session:
            return await self.select_by_id(session, entity_id)

    async def find_by_ids(self, ids: Sequence[Any]) -> Sequence[T]:
        """Fetch multiple entities by their identifiers in a single query."""
        if not ids:
            return []
        async with db.scoped_session(self.session_maker) as session:
            query = (
                self.select()
                .where(self.primary_key.in_(ids))
                .options(*self.get_load_options())
            )
            result = await session.execute(query)
            return result.scalars().all()

    async def find_one(self, query: Select[tuple[T]]) -> Optional[T]:
        """Execute a query and retrieve a single record."""
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query.options(*self.get_load_options()))
            return result.scalars().one_or_none()

    async def create(self, data: dict[str, Any]) -> T:
        """Create a new record from a model instance."""
        async with db.scoped_session(self.session_maker) as session:
            model_data = self.get_model_data(data)
            if self.has_pocket_id and self.pocket_id is not None and "pocket_id" not in model_data:
                model_data["pocket_id"] = self.pocket_id

            model = self.Model(**model_data)
            session.add(model)
            await session.flush()

            # Re-read so relationships come back loaded
            found = await self.select_by_id(session, getattr(model, self.primary_key.key))
            if found is None:  # pragma: no cover
                raise ValueError(f"Can't find {self.Model.__name__} after session.add")
            return found

    async def update(self, entity_id: Any, entity_data: dict[str, Any]) -> Optional[T]:
        """Update an entity with the given data."""
        logger.debug(f"Updating {self.Model.__name__} {entity_id} with data: {entity_data}")
        async with db.scoped_session(self.session_maker) as session:
            entity = await self.select_by_id(session, entity_id)
            if entity is None:
                return None

            for key, value in entity_data.items():
                if key in self.valid_columns:
                    setattr(entity, key, value)

            await session.flush()
            # Drop cached state so onupdate timestamps are re-read
            await session.refresh(entity)
            return await self.select_by_id(session, entity_id)

    async def delete(self, entity_id: Any) -> bool:
        """Delete an entity from the database."""
        logger.debug(f"Deleting {self.Model.__name__}: {entity_id}")
        async with db.scoped_session(self.session_maker) as session:
            entity = await self.select_by_id(session, entity_id)
            if entity is None:
                return False
            await session.delete(entity)
            return True

    async def delete_by_ids(self, ids: Sequence[Any]) -> int:
        """Delete records matching given IDs in a single statement.

        Returns the statement's rowcount. Rows removed by a foreign key
        cascade from another id in the same call are not counted.
        """
        if not ids:
            return 0
        logger.debug(f"Deleting {self.Model.__name__} by ids: {ids}")
        async with db.scoped_session(self.session_maker) as session:
            query = delete(self.Model).where(self.primary_key.in_(ids))
            if self.has_pocket_id and self.pocket_id is not None:
                query = query.where(getattr(self.Model, "pocket_id") == self.pocket_id)
            result = await session.execute(query)
            return result.rowcount  # pyright: ignore [reportAttributeAccessIssue]

    async def count(self, query: Executable | None = None) -> int:
        """Count entities in the database table."""
        async with db.scoped_session(self.session_maker) as session:
            if query is None:
                query = self.select(func.count()).select_from(self.Model)
            result = await session.execute(query)
            scalar = result.scalar()
            return scalar if scalar is not None else 0

    async def execute_query(
        self, query: Executable, use_query_options: bool = True
    ) -> Result[Any]:
        """Execute a query asynchronously."""
        async with db.scoped_session(self.session_maker) as session:
            if use_query_options and isinstance(query, Select):
                query = query.options(*self.get_load_options())
            return await session.execute(query)
