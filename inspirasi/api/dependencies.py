"""Request-scoped access to process-wide resources."""

from fastapi import Request

from inspirasi.domains.analytics.service import AnalyticsService


def get_analytics_service(request: Request) -> AnalyticsService:
    """The service constructed by the application lifespan."""
    service = getattr(request.app.state, "analytics", None)
    if service is None:
        raise RuntimeError("Analytics service is not initialized")
    return service
