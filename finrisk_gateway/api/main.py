"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finrisk_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finrisk_gateway.api.v1 import applications, audit, scoring
from finrisk_gateway.infrastructure.observability.logging import setup_logging
from finrisk_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FinRisk Credit Decision Gateway",
        description="Internal credit scoring, loan offers and underwriting lifecycle",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(applications.router, prefix="/v1", tags=["applications"])
    app.include_router(scoring.router, prefix="/v1", tags=["scoring"])
    app.include_router(audit.router, prefix="/v1", tags=["audit"])

    return app


app = create_app()
