"""Behavioral analytics engine: event log, time windows and insight generation."""

from inspirasi.domains.analytics.models import AnalyticsEvent, EventType, TimeRange
from inspirasi.domains.analytics.service import AnalyticsService, create_analytics_service

__all__ = [
    "AnalyticsEvent",
    "AnalyticsService",
    "EventType",
    "TimeRange",
    "create_analytics_service",
]
