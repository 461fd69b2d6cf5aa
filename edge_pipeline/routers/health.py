"""
Health check router module.
Handles HTTP routing for health endpoints.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..services.health_service import HealthService, HealthCheckInterface


def get_health_service(request: Request) -> HealthCheckInterface:
    """Dependency injection for health service"""
    app_settings = request.app.state.settings
    return HealthService(
        shutdown_state=request.app.state.shutdown,
        service_name=app_settings.app_name.lower().replace(" ", "-"),
        version=app_settings.app_version,
        start_time=request.app.state.started_at
    )


router = APIRouter(
    prefix="/health",
    tags=["health"],
    responses={
        200: {"description": "Service is healthy"},
        503: {"description": "Service is draining"}
    }
)


@router.get("")
async def health_check(
    health_service: HealthCheckInterface = Depends(get_health_service)
):
    """Basic health check endpoint for load balancers and monitoring"""
    health_status = await health_service.get_basic_health()
    return JSONResponse(
        status_code=200,
        content=health_status
    )


@router.get("/ready")
async def readiness_check(
    health_service: HealthCheckInterface = Depends(get_health_service)
):
    """Readiness check endpoint; fails once a termination signal arrived"""
    readiness_status = await health_service.get_readiness_status()

    # Return 503 while draining
    status_code = 200 if readiness_status["status"] == "ready" else 503

    return JSONResponse(
        status_code=status_code,
        content=readiness_status
    )


@router.get("/live")
async def liveness_check(
    health_service: HealthCheckInterface = Depends(get_health_service)
):
    """Liveness check endpoint for Kubernetes"""
    liveness_status = await health_service.get_liveness_status()
    return JSONResponse(
        status_code=200,
        content=liveness_status
    )
