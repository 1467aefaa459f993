"""Resource export handlers."""

from commerce_exports.services.exports.handlers.orders import OrderExportHandler
from commerce_exports.services.exports.handlers.products import ProductExportHandler
from commerce_exports.services.exports.handlers.users import UserExportHandler

__all__ = ["OrderExportHandler", "ProductExportHandler", "UserExportHandler"]
