"""
Export Handler Registry

Maps resource keys to handler instances. One registry is built by the
composition root of each process (API lifespan, worker startup) and passed
to whatever needs it; registrations live for the life of the process.
"""

import logging

from commerce_exports.services.exports.base import BaseExportHandler
from commerce_exports.services.exports.exceptions import UnknownExportResourceError

logger = logging.getLogger(__name__)


class ExportHandlerRegistry:
    """Resource name to export handler mapping."""

    def __init__(self) -> None:
        self._handlers: dict[str, BaseExportHandler] = {}

    def register(self, handler: BaseExportHandler) -> None:
        """
        Register a handler under its resource key.

        Registering a second handler for the same resource replaces the
        first and logs a warning.
        """
        existing = self._handlers.get(handler.resource)
        if existing is not None and existing is not handler:
            logger.warning(
                f"Export handler for '{handler.resource}' replaced: "
                f"{type(existing).__name__} -> {type(handler).__name__}",
                extra={"resource": handler.resource},
            )
        self._handlers[handler.resource] = handler
        logger.debug(f"Registered export handler for '{handler.resource}'")

    def get(self, resource: str) -> BaseExportHandler | None:
        """Handler for a resource, or None if nothing is registered."""
        return self._handlers.get(resource)

    def require(self, resource: str) -> BaseExportHandler:
        """
        Handler for a resource.

        Raises:
            UnknownExportResourceError: If no handler is registered
        """
        handler = self._handlers.get(resource)
        if handler is None:
            raise UnknownExportResourceError(resource)
        return handler

    def list(self) -> list[str]:
        """Registered resource keys, in registration order."""
        return list(self._handlers)

