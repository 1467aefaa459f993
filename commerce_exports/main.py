"""
Commerce Exports API - FastAPI Application

Entry point for the export API. The lifespan wires the export pipeline
(handler registry, queue publisher, job runner) onto ``app.state``.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import partial
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError

from commerce_exports.config import Settings, get_settings
from commerce_exports.core.database import close_db, get_session_factory, init_db
from commerce_exports.core.pubsub import close_redis
from commerce_exports.models.contracts.common import ErrorResponse
from commerce_exports.routers import exports_router, health_router
from commerce_exports.services.exports import (
    ExportJobRunner,
    ExportQueuePublisher,
    InvalidExportTransitionError,
    UnknownExportResourceError,
    build_export_registry,
    process_export_payload,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def install_export_pipeline(app: FastAPI, settings: Settings) -> ExportQueuePublisher:
    """
    Build the registry, publisher and runner and store them on app.state.

    Direct-mode jobs are processed by ``process_export_payload`` bound to
    the same registry the worker would build.

    Returns:
        The publisher, which must be closed on shutdown
    """
    registry = build_export_registry(get_session_factory(), settings)
    publisher = ExportQueuePublisher(settings)

    app.state.export_registry = registry
    app.state.export_publisher = publisher
    app.state.export_runner = ExportJobRunner(
        registry,
        publisher,
        partial(process_export_payload, registry=registry),
        settings,
    )

    logger.info(
        f"Export pipeline ready ({settings.export_execution_mode} mode)",
        extra={"resources": registry.list()},
    )
    return publisher


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown of database, Redis and the export queue pool."""
    settings = get_settings()
    settings.validate_paths()

    logger.info("Starting Commerce Exports API...")
    await init_db()
    publisher = install_export_pipeline(app, settings)
    logger.info(f"Commerce Exports API started in {settings.environment} mode")

    yield

    logger.info("Shutting down Commerce Exports API...")
    await publisher.close()
    await close_redis()
    await close_db()


def _error(
    status_code: int, error: str, message: str, details: dict[str, Any] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message, details=details).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain and database errors to ErrorResponse bodies.

    Starlette picks the handler registered for the closest class in the
    exception's MRO, so UnknownExportResourceError (a ValueError) gets 404
    and ExportJobNotFoundError is covered by the LookupError handler.
    """

    @app.exception_handler(PydanticValidationError)
    async def pydantic_validation_handler(
        request: Request, exc: PydanticValidationError
    ) -> JSONResponse:
        fields = {".".join(str(loc) for loc in e["loc"]): e["msg"] for e in exc.errors()}
        return _error(422, "validation_error", "Validation failed", {"fields": fields})

    @app.exception_handler(UnknownExportResourceError)
    async def unknown_resource_handler(
        request: Request, exc: UnknownExportResourceError
    ) -> JSONResponse:
        return _error(404, "not_found", str(exc), {"resource": exc.resource})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Export preconditions and other bad input -> 422."""
        return _error(422, "validation_error", str(exc))

    @app.exception_handler(LookupError)
    async def lookup_error_handler(request: Request, exc: LookupError) -> JSONResponse:
        return _error(404, "not_found", str(exc))

    @app.exception_handler(NoResultFound)
    async def no_result_handler(request: Request, exc: NoResultFound) -> JSONResponse:
        return _error(404, "not_found", "Resource not found")

    @app.exception_handler(InvalidExportTransitionError)
    async def transition_error_handler(
        request: Request, exc: InvalidExportTransitionError
    ) -> JSONResponse:
        """Job status changed out of order -> 409."""
        return _error(409, "conflict", str(exc), {"current": exc.current, "target": exc.target})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning(f"IntegrityError: {exc.orig or exc}")
        return _error(409, "conflict", "Database constraint violation")

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
        logger.error(f"Database operational error: {exc}", exc_info=True)
        return _error(503, "service_unavailable", "Service temporarily unavailable")

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return _error(500, "internal_error", "An unexpected error occurred")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Commerce Exports API",
        description="Catalog and customer data export service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(exports_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "commerce_exports.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
