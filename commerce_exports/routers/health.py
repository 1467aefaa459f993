"""
Health Check Router

Reports liveness and which export resources this process can serve.
"""

from fastapi import APIRouter, Request

from commerce_exports.models.contracts.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Returns:
        HealthResponse with status, version and registered export resources
    """
    registry = getattr(request.app.state, "export_registry", None)
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        export_resources=registry.list() if registry is not None else [],
    )
