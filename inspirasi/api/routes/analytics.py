"""Analytics API endpoints.

Event ingestion, per-user and app-wide insights, erasure and export.
Handlers are sync: the engine does blocking storage I/O and FastAPI runs
them in its threadpool.
"""

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from inspirasi.api.dependencies import get_analytics_service
from inspirasi.domains.analytics.models import ExportFormat, TimeRange, TrackEventRequest
from inspirasi.domains.analytics.service import AnalyticsService

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])

_EXPORT_MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


@router.post("/events", status_code=202)
def track_event(
    request: TrackEventRequest,
    service: AnalyticsService = Depends(get_analytics_service),  # noqa: B008
) -> dict:
    """Record one user action. Dropped events are reported, never raised."""
    accepted = service.track(
        request.event_type,
        request.event_data,
        request.user_id,
        session_id=request.session_id,
        device_info=request.device_info,
        location_data=request.location_data,
    )
    return {"accepted": accepted, "event_type": request.event_type.value}


@router.get("/users/{user_id}/insights")
def get_user_insights(
    user_id: str,
    time_range: TimeRange = Query(TimeRange.MONTH),  # noqa: B008
    service: AnalyticsService = Depends(get_analytics_service),  # noqa: B008
) -> dict:
    """Behavioral profile of one user over a sliding window."""
    insights = service.generate_user_insights(user_id, time_range)
    return insights.model_dump(mode="json", by_alias=True)


@router.get("/insights")
def get_app_insights(
    time_range: TimeRange = Query(TimeRange.MONTH),  # noqa: B008
    service: AnalyticsService = Depends(get_analytics_service),  # noqa: B008
) -> dict:
    """Aggregate report across all users over a sliding window."""
    insights = service.generate_app_insights(time_range)
    return insights.model_dump(mode="json", by_alias=True)


@router.delete("/events")
def clear_events(
    user_id: str | None = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),  # noqa: B008
) -> dict:
    """Erase one user's events, or the whole log when no user is given."""
    cleared = service.clear_analytics_data(user_id)
    logger.info("analytics_erasure_requested", user_id=user_id, cleared=cleared)
    return {"cleared": cleared, "user_id": user_id}


@router.get("/export")
def export_events(
    user_id: str | None = Query(None),
    fmt: ExportFormat = Query(ExportFormat.JSON, alias="format"),  # noqa: B008
    time_range: TimeRange | None = Query(None),  # noqa: B008
    service: AnalyticsService = Depends(get_analytics_service),  # noqa: B008
) -> PlainTextResponse:
    """Download events as CSV or JSON."""
    body = service.export_analytics_data(user_id=user_id, fmt=fmt, time_range=time_range)
    return PlainTextResponse(body, media_type=_EXPORT_MEDIA_TYPES[fmt])
