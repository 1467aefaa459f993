"""
Base Repository

Shared async queries for the catalog, user and export job repositories.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from commerce_exports.models.orm.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Lookup, insert and paged listing for one mapped model."""

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelT | None:
        """Entity by primary key, or None."""
        return await self.session.get(self.model, id)

    async def create(self, entity: ModelT) -> ModelT:
        """Add and flush an entity so server defaults (id, timestamps) are loaded."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: ModelT) -> ModelT:
        """Flush attribute changes made on a loaded entity."""
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def get_paginated(
        self,
        *,
        filters: Sequence[ColumnElement[bool]] = (),
        order_by: Sequence[Any] = (),
        limit: int = 100,
        offset: int = 0,
        options: Sequence[Any] = (),
    ) -> tuple[list[ModelT], int]:
        """
        One page of entities plus the total matching count.

        Callers that walk a whole table must end ``order_by`` with a unique
        column so consecutive pages neither overlap nor skip rows.

        Args:
            filters: WHERE conditions, combined with AND
            order_by: Ordering clauses
            limit: Page size
            offset: Rows to skip
            options: Loader options such as selectinload

        Returns:
            Tuple of (entities, total count)
        """
        count_query = select(func.count()).select_from(self.model).where(*filters)
        total = (await self.session.execute(count_query)).scalar() or 0

        query = (
            select(self.model)
            .where(*filters)
            .options(*options)
            .order_by(*order_by)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return list(result.unique().scalars().all()), total
