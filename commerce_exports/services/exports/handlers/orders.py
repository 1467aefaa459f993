"""
Order export handler.

One row per order with customer, status, money and shipping city columns.
Order filters come from the admin order list, which sends flags and amounts
as strings, so they are parsed leniently.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commerce_exports.models.contracts.export import ExportColumnDefinition
from commerce_exports.models.enums import ColumnPolicy, OrderSource, OrderStatus, PaymentStatus
from commerce_exports.models.orm.order import Order
from commerce_exports.repositories.order import OrderFilters, OrderRepository
from commerce_exports.services.exports.base import BaseExportHandler, PageRequest, PageResult
from commerce_exports.services.exports.filters import (
    clean_bool_text,
    clean_choice,
    clean_datetime,
    clean_number_text,
    clean_str,
    clean_uuid,
    pick,
)

ORDER_EXPORT_COLUMNS: list[ExportColumnDefinition] = [
    ExportColumnDefinition(key="id", label="Order ID"),
    ExportColumnDefinition(key="orderNumber", label="Order Number"),
    ExportColumnDefinition(key="orderDate", label="Order Date"),
    ExportColumnDefinition(key="customerName", label="Customer Name"),
    ExportColumnDefinition(key="customerEmail", label="Customer Email"),
    ExportColumnDefinition(key="customerPhone", label="Customer Phone"),
    ExportColumnDefinition(key="status", label="Status"),
    ExportColumnDefinition(key="paymentStatus", label="Payment Status"),
    ExportColumnDefinition(key="source", label="Source"),
    ExportColumnDefinition(key="subtotal", label="Subtotal"),
    ExportColumnDefinition(key="taxAmount", label="Tax"),
    ExportColumnDefinition(key="shippingCost", label="Shipping"),
    ExportColumnDefinition(key="discountAmount", label="Discount"),
    ExportColumnDefinition(key="totalAmount", label="Total"),
    ExportColumnDefinition(key="currency", label="Currency"),
    ExportColumnDefinition(key="shippingCity", label="Shipping City", path="shippingAddress.city"),
    ExportColumnDefinition(
        key="shippingCountry", label="Shipping Country", path="shippingAddress.country"
    ),
]


def normalize_order_filters(raw: Mapping[str, Any] | None) -> OrderFilters:
    """
    Build a typed filter set from an untyped filter bag.

    Status, payment status and source match their enum names case
    insensitively. Flags accept "true"/"false" strings and amounts accept
    numeric strings; anything else is ignored.
    """
    if not raw:
        return OrderFilters()

    return OrderFilters(
        search=clean_str(pick(raw, "search")),
        status=clean_choice(pick(raw, "status"), OrderStatus),
        payment_status=clean_choice(pick(raw, "paymentStatus", "payment_status"), PaymentStatus),
        source=clean_choice(pick(raw, "source"), OrderSource),
        customer_id=clean_uuid(pick(raw, "customerId", "customer_id")),
        customer_email=clean_str(pick(raw, "customerEmail", "customer_email")),
        order_number=clean_str(pick(raw, "orderNumber", "order_number")),
        min_amount=clean_number_text(pick(raw, "minAmount", "min_amount")),
        max_amount=clean_number_text(pick(raw, "maxAmount", "max_amount")),
        is_paid=clean_bool_text(pick(raw, "isPaid", "is_paid")),
        is_completed=clean_bool_text(pick(raw, "isCompleted", "is_completed")),
        is_cancelled=clean_bool_text(pick(raw, "isCancelled", "is_cancelled")),
        date_from=clean_datetime(pick(raw, "dateFrom", "date_from")),
        date_to=clean_datetime(pick(raw, "dateTo", "date_to")),
    )


def _money(value: Decimal | None) -> str:
    return f"{Decimal(value or 0):.2f}"


class OrderExportHandler(BaseExportHandler):
    """Export handler for orders."""

    resource = "orders"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        column_policy: ColumnPolicy = ColumnPolicy.USE_REQUESTED,
    ):
        super().__init__(column_policy)
        self.session_factory = session_factory

    def get_columns(self) -> list[ExportColumnDefinition]:
        return list(ORDER_EXPORT_COLUMNS)

    async def fetch_page(
        self,
        pagination: PageRequest,
        filters: Mapping[str, Any] | None = None,
    ) -> PageResult:
        normalized = normalize_order_filters(filters)
        async with self.session_factory() as session:
            items, total = await OrderRepository(session).find_page(
                normalized,
                page=pagination.page,
                limit=pagination.limit,
            )
        return PageResult(items=items, total=total)

    def transform_record(self, record: Order) -> dict[str, Any]:
        return {
            "id": str(record.id),
            "orderNumber": record.order_number,
            "orderDate": record.order_date,
            "customerName": record.customer_name,
            "customerEmail": record.customer_email,
            "customerPhone": record.customer_phone or "",
            "status": getattr(record.status, "value", record.status),
            "paymentStatus": getattr(record.payment_status, "value", record.payment_status),
            "source": getattr(record.source, "value", record.source),
            "subtotal": _money(record.subtotal),
            "taxAmount": _money(record.tax_amount),
            "shippingCost": _money(record.shipping_cost),
            "discountAmount": _money(record.discount_amount),
            "totalAmount": _money(record.total_amount),
            "currency": record.currency,
            "shippingAddress": dict(record.shipping_address) if record.shipping_address else None,
        }
