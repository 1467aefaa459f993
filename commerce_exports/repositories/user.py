"""
User Repository

Read access to user accounts for exports.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from commerce_exports.models.orm.user import User
from commerce_exports.repositories.base import BaseRepository


@dataclass
class UserFilters:
    """Typed user filter set. Unset fields do not filter."""

    search: str | None = None
    is_active: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    model = User

    async def find_page(
        self,
        filters: UserFilters,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        """
        Get one page of users with their profile loaded, newest first.

        Args:
            filters: Normalized user filters
            page: Page number (1-indexed)
            limit: Page size

        Returns:
            Tuple of (users, total count)
        """
        conditions: list[ColumnElement[bool]] = []
        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(or_(User.email.ilike(term), User.username.ilike(term)))
        if filters.is_active is not None:
            conditions.append(User.is_active.is_(filters.is_active))
        if filters.created_from is not None:
            conditions.append(User.created_at >= filters.created_from)
        if filters.created_to is not None:
            conditions.append(User.created_at <= filters.created_to)

        return await self.get_paginated(
            filters=conditions,
            order_by=[User.created_at.desc(), User.id.desc()],
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
            options=[selectinload(User.profile)],
        )
