"""
Repository layer for database access.

Each repository wraps one model and an AsyncSession.
"""

from commerce_exports.repositories.base import BaseRepository
from commerce_exports.repositories.export_job import ExportJobRepository
from commerce_exports.repositories.product import ProductFilters, ProductRepository
from commerce_exports.repositories.user import UserFilters, UserRepository

__all__ = [
    "BaseRepository",
    "ExportJobRepository",
    "ProductFilters",
    "ProductRepository",
    "UserFilters",
    "UserRepository",
]
