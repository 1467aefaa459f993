"""
Product export handler.

Pages through the catalog and flattens each product into one row with
derived fields (price range from variant prices, brand and category names).
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commerce_exports.models.contracts.export import ExportColumnDefinition
from commerce_exports.models.enums import ColumnPolicy, ProductStatus
from commerce_exports.models.orm.catalog import Product
from commerce_exports.repositories.product import ProductFilters, ProductRepository
from commerce_exports.services.exports.base import BaseExportHandler, PageRequest, PageResult
from commerce_exports.services.exports.filters import (
    clean_bool,
    clean_choice,
    clean_datetime,
    clean_number,
    clean_str,
    clean_uuid,
    clean_uuid_list,
    pick,
)

PRODUCT_EXPORT_COLUMNS: list[ExportColumnDefinition] = [
    ExportColumnDefinition(key="id", label="Product ID"),
    ExportColumnDefinition(key="name", label="Name"),
    ExportColumnDefinition(key="sku", label="SKU"),
    ExportColumnDefinition(key="status", label="Status"),
    ExportColumnDefinition(key="isActive", label="Active"),
    ExportColumnDefinition(key="isFeatured", label="Featured"),
    ExportColumnDefinition(key="priceRange", label="Price Range"),
    ExportColumnDefinition(key="variantCount", label="Variant Count"),
    ExportColumnDefinition(key="brand", label="Brand"),
    ExportColumnDefinition(key="categories", label="Categories"),
    ExportColumnDefinition(key="createdAt", label="Created At"),
    ExportColumnDefinition(key="updatedAt", label="Updated At"),
]


def normalize_product_filters(raw: Mapping[str, Any] | None) -> ProductFilters:
    """
    Build a typed filter set from an untyped filter bag.

    Strings are trimmed, category ids filtered to valid entries, and
    boolean, numeric and date fields are only used when they have the
    right type.
    """
    if not raw:
        return ProductFilters()

    return ProductFilters(
        search=clean_str(pick(raw, "search")),
        brand_id=clean_uuid(pick(raw, "brandId", "brand_id")),
        category_ids=clean_uuid_list(pick(raw, "categoryIds", "category_ids")),
        status=clean_choice(pick(raw, "status"), ProductStatus),
        is_active=clean_bool(pick(raw, "isActive", "is_active")),
        is_featured=clean_bool(pick(raw, "isFeatured", "is_featured")),
        min_price=clean_number(pick(raw, "minPrice", "min_price")),
        max_price=clean_number(pick(raw, "maxPrice", "max_price")),
        has_stock=clean_bool(pick(raw, "hasStock", "has_stock")),
        created_from=clean_datetime(pick(raw, "createdFrom", "created_from")),
        created_to=clean_datetime(pick(raw, "createdTo", "created_to")),
    )


def format_price_range(prices: list[Decimal]) -> str:
    """'min' when every price is equal, otherwise 'min - max'; empty without prices."""
    if not prices:
        return ""
    low, high = min(prices), max(prices)
    if low == high:
        return f"{low:.2f}"
    return f"{low:.2f} - {high:.2f}"


class ProductExportHandler(BaseExportHandler):
    """Export handler for catalog products."""

    resource = "products"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        column_policy: ColumnPolicy = ColumnPolicy.USE_REQUESTED,
    ):
        super().__init__(column_policy)
        self.session_factory = session_factory

    def get_columns(self) -> list[ExportColumnDefinition]:
        return list(PRODUCT_EXPORT_COLUMNS)

    async def fetch_page(
        self,
        pagination: PageRequest,
        filters: Mapping[str, Any] | None = None,
    ) -> PageResult:
        normalized = normalize_product_filters(filters)
        async with self.session_factory() as session:
            items, total = await ProductRepository(session).find_page(
                normalized,
                page=pagination.page,
                limit=pagination.limit,
            )
        return PageResult(items=items, total=total)

    def transform_record(self, record: Product) -> dict[str, Any]:
        variants = list(record.variants or [])
        prices = [Decimal(variant.price) for variant in variants if variant.price is not None]
        sku = record.sku or next((variant.sku for variant in variants if variant.sku), None)
        category_names = [category.name for category in record.categories or [] if category.name]

        return {
            "id": str(record.id),
            "name": record.name,
            "sku": sku or "",
            "status": getattr(record.status, "value", record.status),
            "isActive": bool(record.is_active),
            "isFeatured": bool(record.is_featured),
            "priceRange": format_price_range(prices),
            "variantCount": len(variants),
            "brand": record.brand.name if record.brand else "",
            "categories": ", ".join(category_names),
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
        }
