"""Generic async repository over one mapped table."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from appify.db.base import Base

RowT = TypeVar("RowT", bound=Base)


class BaseRepository(Generic[RowT]):
    """Lookups, inserts and in-place updates; callers own the commit."""

    model_class: type[RowT]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by(self, **filters: Any) -> RowT | None:
        """Return the single row matching all ``column=value`` filters."""
        stmt = select(self.model_class).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def first_where(self, *conditions, order_by=None) -> RowT | None:
        stmt = select(self.model_class).where(*conditions)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def list_where(self, *conditions, order_by=None, limit: int | None = None) -> list[RowT]:
        stmt = select(self.model_class).where(*conditions)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **values: Any) -> RowT:
        """Insert a row and flush so database constraints fire immediately."""
        row = self.model_class(**values)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update(self, row: RowT, **values: Any) -> RowT:
        for key, value in values.items():
            setattr(row, key, value)
        await self.session.flush()
        return row
