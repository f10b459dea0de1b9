"""Health and readiness endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from inspirasi.api.dependencies import get_analytics_service
from inspirasi.config import settings
from inspirasi.domains.analytics.service import AnalyticsService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from inspirasi.main import get_uptime

    return {
        "status": "healthy",
        "version": settings.app_version,
        "uptime_seconds": get_uptime(),
    }


@router.get("/ready")
def ready(
    service: AnalyticsService = Depends(get_analytics_service),  # noqa: B008
) -> JSONResponse:
    storage_ok = service.ping()
    return JSONResponse(
        status_code=200 if storage_ok else 503,
        content={
            "status": "ready" if storage_ok else "degraded",
            "storage": storage_ok,
            "events": service.store.count() if storage_ok else None,
        },
    )
