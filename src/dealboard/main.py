"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, the
{"error": message} exception handlers, lifespan events for database
initialization, and the v1 API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.dealboard.api.errors import dealboard_error_handler, unhandled_error_handler
from src.dealboard.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.dealboard.api.v1.router import router as v1_router
from src.dealboard.config import get_settings
from src.dealboard.core.database import close_db, get_session, init_db
from src.dealboard.core.monitoring import MetricsMiddleware, get_metrics_response
from src.dealboard.deals.cascade import CascadeDeleter
from src.dealboard.deals.exceptions import DealboardError
from src.dealboard.deals.repository import DealRepository

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB on startup, dispose engine on shutdown."""
    settings = get_settings()
    configure_structlog()
    await init_db()
    logger.info("dealboard.started", environment=settings.ENVIRONMENT.value)

    yield

    await close_db()
    logger.info("dealboard.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Dealboard API",
        version="0.1.0",
        description="Organizations, accounts and the deal stage pipeline",
        lifespan=lifespan,
    )

    # Pipeline services (route dependencies read these from app.state)
    app.state.deal_repository = DealRepository(session_factory=get_session)
    app.state.cascade_deleter = CascadeDeleter(session_factory=get_session)

    app.add_exception_handler(DealboardError, dealboard_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Middleware is added in reverse order (last added = outermost)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router, prefix=settings.get_api_prefix())

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
