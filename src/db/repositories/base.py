"""Generic repository shared by the domain repositories."""

from typing import Any, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """CRUD helpers over a single ORM model.

    Repositories never commit. They ``flush()`` so server defaults and
    constraint violations surface inside the caller's transaction, and the
    service that owns the unit of work decides when to commit or roll back.

    Args:
        session: AsyncSession bound to the current request.
        model_class: ORM model managed by this repository.
    """

    def __init__(self, session: AsyncSession, model_class: Type[T]) -> None:
        self._session = session
        self._model_class = model_class

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def get_by_id(self, id: UUID) -> Optional[T]:
        """Fetch one row by primary key, or None."""
        return await self._session.get(self._model_class, id)

    async def create(self, **kwargs: Any) -> T:
        """Insert a row and return it with server-generated fields loaded."""
        instance = self._model_class(**kwargs)
        self._session.add(instance)
        await self._session.flush()
        await self._session.refresh(instance)
        return instance

    async def update(self, id: UUID, **kwargs: Any) -> Optional[T]:
        """Set attributes on an existing row.

        Returns:
            The refreshed row, or None when no row has that id.
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return None
        for key, value in kwargs.items():
            setattr(instance, key, value)
        await self._session.flush()
        await self._session.refresh(instance)
        return instance

    async def delete(self, id: UUID) -> bool:
        """Delete a row by id. Returns False if it did not exist."""
        instance = await self.get_by_id(id)
        if instance is None:
            return False
        await self._session.delete(instance)
        await self._session.flush()
        return True

    async def find_one(self, **filters: Any) -> Optional[T]:
        """Return the first row whose columns equal ``filters``."""
        stmt = select(self._model_class).filter_by(**filters).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def count(self, **filters: Any) -> int:
        stmt = select(func.count()).select_from(self._model_class).filter_by(**filters)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def list_all(self, limit: int = 100, offset: int = 0) -> list[T]:
        """List rows with limit/offset pagination."""
        stmt = select(self._model_class).limit(limit).offset(offset)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
