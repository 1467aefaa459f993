"""
Order Repository

Read access to orders for exports.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from commerce_exports.models.enums import OrderSource, OrderStatus, PaymentStatus
from commerce_exports.models.orm.order import Order
from commerce_exports.repositories.base import BaseRepository


@dataclass
class OrderFilters:
    """Typed order filter set. Unset fields do not filter."""

    search: str | None = None
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    source: OrderSource | None = None
    customer_id: str | None = None
    customer_email: str | None = None
    order_number: str | None = None
    min_amount: float | None = None
    max_amount: float | None = None
    is_paid: bool | None = None
    is_completed: bool | None = None
    is_cancelled: bool | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


def _flag(column: ColumnElement, value: str, wanted: bool) -> ColumnElement[bool]:
    return column == value if wanted else column != value


class OrderRepository(BaseRepository[Order]):
    """Repository for Order model operations."""

    model = Order

    def build_conditions(self, filters: OrderFilters) -> list[ColumnElement[bool]]:
        """
        Translate a filter set into SQL conditions.

        ``is_paid`` compares the payment status with PAID, ``is_completed``
        the order status with DELIVERED and ``is_cancelled`` with CANCELLED.
        Date bounds apply to the order date.
        """
        conditions: list[ColumnElement[bool]] = []

        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Order.order_number.ilike(term),
                    Order.customer_name.ilike(term),
                    Order.customer_email.ilike(term),
                )
            )

        if filters.status is not None:
            conditions.append(Order.status == filters.status.value)
        if filters.payment_status is not None:
            conditions.append(Order.payment_status == filters.payment_status.value)
        if filters.source is not None:
            conditions.append(Order.source == filters.source.value)

        if filters.customer_id:
            conditions.append(Order.customer_id == UUID(filters.customer_id))
        if filters.customer_email:
            conditions.append(Order.customer_email.ilike(f"%{filters.customer_email}%"))
        if filters.order_number:
            conditions.append(Order.order_number.ilike(f"%{filters.order_number}%"))

        if filters.min_amount is not None:
            conditions.append(Order.total_amount >= filters.min_amount)
        if filters.max_amount is not None:
            conditions.append(Order.total_amount <= filters.max_amount)

        if filters.is_paid is not None:
            conditions.append(
                _flag(Order.payment_status, PaymentStatus.PAID.value, filters.is_paid)
            )
        if filters.is_completed is not None:
            conditions.append(
                _flag(Order.status, OrderStatus.DELIVERED.value, filters.is_completed)
            )
        if filters.is_cancelled is not None:
            conditions.append(
                _flag(Order.status, OrderStatus.CANCELLED.value, filters.is_cancelled)
            )

        if filters.date_from is not None:
            conditions.append(Order.order_date >= filters.date_from)
        if filters.date_to is not None:
            conditions.append(Order.order_date <= filters.date_to)

        return conditions

    async def find_page(
        self,
        filters: OrderFilters,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Order], int]:
        """One page of orders, newest order date first, id as tie-breaker."""
        return await self.get_paginated(
            filters=self.build_conditions(filters),
            order_by=[Order.order_date.desc(), Order.id.desc()],
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )
