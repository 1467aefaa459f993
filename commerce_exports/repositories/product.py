"""
Product Repository

Read access to the catalog for exports and listings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from commerce_exports.models.enums import ProductStatus
from commerce_exports.models.orm.catalog import Product, ProductVariant, product_categories
from commerce_exports.repositories.base import BaseRepository


@dataclass
class ProductFilters:
    """Typed product filter set. Unset fields do not filter."""

    search: str | None = None
    brand_id: str | None = None
    category_ids: list[str] = field(default_factory=list)
    status: ProductStatus | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    min_price: float | None = None
    max_price: float | None = None
    has_stock: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class ProductRepository(BaseRepository[Product]):
    """Repository for Product model operations."""

    model = Product

    def build_conditions(self, filters: ProductFilters) -> list[ColumnElement[bool]]:
        """
        Translate a filter set into SQL conditions.

        Args:
            filters: Normalized product filters

        Returns:
            List of conditions to AND together
        """
        conditions: list[ColumnElement[bool]] = []

        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(or_(Product.name.ilike(term), Product.sku.ilike(term)))

        if filters.brand_id:
            conditions.append(Product.brand_id == UUID(filters.brand_id))

        if filters.category_ids:
            conditions.append(
                exists(
                    select(product_categories.c.product_id).where(
                        product_categories.c.product_id == Product.id,
                        product_categories.c.category_id.in_(
                            [UUID(category_id) for category_id in filters.category_ids]
                        ),
                    )
                )
            )

        if filters.status is not None:
            conditions.append(Product.status == filters.status.value)

        if filters.is_active is not None:
            conditions.append(Product.is_active.is_(filters.is_active))

        if filters.is_featured is not None:
            conditions.append(Product.is_featured.is_(filters.is_featured))

        variant_conditions: list[ColumnElement[bool]] = []
        if filters.min_price is not None:
            variant_conditions.append(ProductVariant.price >= filters.min_price)
        if filters.max_price is not None:
            variant_conditions.append(ProductVariant.price <= filters.max_price)
        if variant_conditions:
            conditions.append(
                exists(
                    select(ProductVariant.id).where(
                        ProductVariant.product_id == Product.id, *variant_conditions
                    )
                )
            )

        if filters.has_stock is not None:
            in_stock = exists(
                select(ProductVariant.id).where(
                    ProductVariant.product_id == Product.id,
                    ProductVariant.stock_quantity > 0,
                )
            )
            conditions.append(in_stock if filters.has_stock else ~in_stock)

        if filters.created_from is not None:
            conditions.append(Product.created_at >= filters.created_from)

        if filters.created_to is not None:
            conditions.append(Product.created_at <= filters.created_to)

        return conditions

    async def find_page(
        self,
        filters: ProductFilters,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Product], int]:
        """
        Get one page of products with brand, variants and categories loaded.

        Ordered newest first with id as tie-breaker so repeated calls page
        through the same sequence.

        Args:
            filters: Normalized product filters
            page: Page number (1-indexed)
            limit: Page size

        Returns:
            Tuple of (products, total count)
        """
        return await self.get_paginated(
            filters=self.build_conditions(filters),
            order_by=[Product.created_at.desc(), Product.id.desc()],
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
            options=[
                selectinload(Product.brand),
                selectinload(Product.variants),
                selectinload(Product.categories),
            ],
        )
