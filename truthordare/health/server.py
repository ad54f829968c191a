"""FastAPI health server for the scheduler host.

Provides HTTP endpoints for:
- /health - Full health check with all dependencies
- /ready - Readiness probe (database reachable)
- /live - Liveness probe
- /metrics - Prometheus metrics in text format

Usage:
    app = create_health_app(HealthChecker(database, provider, scheduler))
    server = create_health_server(app, port=8000)
    await server.serve()
"""

from typing import Any, Dict

import structlog
import uvicorn
from fastapi import FastAPI, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from truthordare import __version__
from truthordare.health.checks import HealthChecker, HealthStatus
from truthordare.observability.metrics import get_metrics_content_type, get_metrics_text

logger = structlog.get_logger()


def create_health_app(
    checker: HealthChecker,
    title: str = "Truth or Dare Jobs Health API",
    version: str = __version__,
) -> FastAPI:
    """Create FastAPI application with health endpoints.

    Args:
        checker: Health checker bound to the running host's dependencies
        title: API title
        version: API version
    """
    app = FastAPI(
        title=title,
        version=version,
        description="Health check and metrics endpoints for background jobs",
    )
    app.state.health_checker = checker

    @app.get(
        "/health",
        response_model=None,
        summary="Full health check",
        responses={
            200: {"description": "Healthy or degraded"},
            503: {"description": "One or more critical checks failed"},
        },
    )
    async def health_check() -> Response:
        report = await checker.check_all()

        status_code = (
            status.HTTP_200_OK
            if report.status != HealthStatus.UNHEALTHY
            else status.HTTP_503_SERVICE_UNAVAILABLE
        )
        return JSONResponse(content=report.to_dict(), status_code=status_code)

    @app.get("/ready", response_model=None, summary="Readiness probe")
    async def readiness_probe() -> Response:
        if await checker.is_ready():
            return JSONResponse(
                content={"ready": True, "message": "Service is ready"},
                status_code=status.HTTP_200_OK,
            )
        return JSONResponse(
            content={"ready": False, "message": "Service is not ready"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.get("/live", response_model=None, summary="Liveness probe")
    async def liveness_probe() -> Response:
        return JSONResponse(
            content={"alive": await checker.is_alive(), "message": "Service is alive"},
            status_code=status.HTTP_200_OK,
        )

    @app.get(
        "/metrics",
        response_class=PlainTextResponse,
        summary="Prometheus metrics",
    )
    async def prometheus_metrics() -> Response:
        return Response(content=get_metrics_text(), media_type=get_metrics_content_type())

    @app.get("/", response_model=None, summary="Root endpoint")
    async def root() -> Dict[str, Any]:
        return {
            "name": title,
            "version": version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "live": "/live",
                "metrics": "/metrics",
            },
        }

    return app


def create_health_server(
    app: FastAPI,
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "info",
) -> uvicorn.Server:
    """Build a uvicorn server for the health app.

    Run it with ``await server.serve()`` next to the scheduler and set
    ``server.should_exit`` once the scheduler has drained.
    """
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level,
        access_log=False,
    )
    logger.info("health_server_configured", host=host, port=port)
    return uvicorn.Server(config)
