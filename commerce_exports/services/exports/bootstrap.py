"""Registry construction for the API and worker processes."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commerce_exports.config import Settings, get_settings
from commerce_exports.services.exports.handlers import (
    OrderExportHandler,
    ProductExportHandler,
    UserExportHandler,
)
from commerce_exports.services.exports.registry import ExportHandlerRegistry

logger = logging.getLogger(__name__)


def build_export_registry(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings | None = None,
) -> ExportHandlerRegistry:
    """
    Build a registry with every built-in export handler.

    Args:
        session_factory: Factory handlers open their page sessions from
        settings: Supplies the page size and unknown-column policy

    Returns:
        Populated ExportHandlerRegistry
    """
    settings = settings or get_settings()
    registry = ExportHandlerRegistry()

    for handler_class in (ProductExportHandler, UserExportHandler, OrderExportHandler):
        handler = handler_class(session_factory, settings.export_unknown_column_policy)
        handler.default_page_size = settings.export_default_page_size
        registry.register(handler)

    logger.info(f"Export handlers registered: {', '.join(registry.list())}")
    return registry
