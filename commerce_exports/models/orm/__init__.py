"""SQLAlchemy ORM Models for Commerce Exports.

Pure database models using SQLAlchemy 2.0 declarative style.
"""

from commerce_exports.models.orm.base import Base
from commerce_exports.models.orm.catalog import (
    Brand,
    Category,
    Product,
    ProductVariant,
    product_categories,
)
from commerce_exports.models.orm.export_job import ExportJob
from commerce_exports.models.orm.order import Order
from commerce_exports.models.orm.user import User, UserProfile

__all__ = [
    "Base",
    "Brand",
    "Category",
    "ExportJob",
    "Order",
    "Product",
    "ProductVariant",
    "User",
    "UserProfile",
    "product_categories",
]
