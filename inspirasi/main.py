"""FastAPI application entry point for Inspirasi Insights."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inspirasi.api.middleware.error_handler import global_exception_handler
from inspirasi.api.middleware.logging import StructuredLoggingMiddleware
from inspirasi.api.routes.analytics import router as analytics_router
from inspirasi.api.routes.health import router as health_router
from inspirasi.config import settings
from inspirasi.domains.analytics.service import create_analytics_service
from inspirasi.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: construct the analytics service and tear it down."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level)

    logger.info(
        "inspirasi_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        storage_backend=settings.analytics_storage_backend,
    )

    service = create_analytics_service(settings)
    service.start()
    app.state.analytics = service

    yield

    service.close()
    app.state.analytics = None
    logger.info("inspirasi_shutting_down")


app = FastAPI(
    title="Inspirasi Insights",
    description="Behavioral analytics engine for the Inspirasi quote app",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Global exception handler
app.add_exception_handler(Exception, global_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(analytics_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
