"""API routers."""

from commerce_exports.routers.exports import router as exports_router
from commerce_exports.routers.health import router as health_router

__all__ = ["exports_router", "health_router"]
