"""FastAPI application factory"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from transfer_gateway.api.dependencies import get_scheduler
from transfer_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from transfer_gateway.api.v1 import analytics, recurring, scheduler, transfers
from transfer_gateway.infrastructure.observability.logging import setup_logging
from transfer_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the daily recurring transfer trigger alongside the API"""
    task = None
    if settings.scheduler_enabled:
        task = asyncio.create_task(get_scheduler().run_forever())
        logging.info("Recurring transfer scheduler started")
    yield
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Transfer Gateway",
        description="Account transfers, recurring transfer scheduling and spend analytics",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
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
    app.include_router(transfers.router, prefix="/v1", tags=["transfers"])
    app.include_router(recurring.router, prefix="/v1", tags=["recurring"])
    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])
    app.include_router(scheduler.router, prefix="/v1", tags=["scheduler"])

    return app


app = create_app()
