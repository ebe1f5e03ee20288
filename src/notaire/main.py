"""
Notaire main application.

FastAPI application exposing the escrow reconciliation listener:
- Listener status, escrow registration and diagnostics
- Health checks (Kubernetes-compatible)
- Metrics (Prometheus)
- Graceful shutdown
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from notaire import __version__
from notaire.config.settings import get_settings
from notaire.di import Container
from notaire.presentation.api.routes import health_router, listener_router


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Dependency container; built from settings if omitted

    Returns:
        FastAPI app
    """
    container = container or Container(get_settings())
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Startup loads the registry and subscribes when escrows are
        pending; shutdown detaches the subscription and closes the RPC
        transport.
        """
        reporter = container.reporter
        reporter.info("Starting Notaire...", context="Main")

        app.state.settings = settings
        app.state.listener = container.listener
        app.state.health_checker = container.health_checker
        app.state.shutdown_handler = container.shutdown

        container.listener.start()

        reporter.info(
            f"Notaire started successfully on port {settings.api_port}",
            context="Main",
        )

        yield

        reporter.info("Shutting down Notaire...", context="Main")
        await container.shutdown.shutdown()
        reporter.info("Notaire stopped", context="Main")

    app = FastAPI(
        title="Notaire - Escrow Reconciliation Listener",
        description="Releases payment escrows when their documents are notarized",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"{location}: {message}" if location else message},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        container.reporter.error(
            f"Unhandled error on {request.url.path}: {exc}",
            context="API",
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    app.include_router(health_router)
    app.include_router(listener_router)

    if settings.metrics.enabled:
        app.mount("/metrics", make_asgi_app())

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "notaire",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "liveness": "/health/live",
                "readiness": "/health/ready",
                "status": "/listener/status",
                "metrics": "/metrics",
            },
        }

    return app


def main():
    """
    Main entry point.

    Run with: python -m notaire.main
    Or: uvicorn notaire.main:create_app --factory --host 0.0.0.0 --port 3001
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
