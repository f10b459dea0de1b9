"""Shared test fixtures for Inspirasi Insights tests."""

import os
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ANALYTICS_STORAGE_BACKEND", "memory")

from inspirasi.domains.analytics.config import AnalyticsConfig, StoreConfig  # noqa: E402
from inspirasi.domains.analytics.models import (  # noqa: E402
    AnalyticsEvent,
    DeviceInfo,
    EventType,
    LocationData,
)
from inspirasi.domains.analytics.service import AnalyticsService  # noqa: E402
from inspirasi.domains.analytics.storage import InMemoryStorage  # noqa: E402
from inspirasi.domains.analytics.store import EventStore  # noqa: E402

# A Monday, noon UTC
NOW = datetime(2026, 3, 16, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for deterministic timestamps."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_event():
    """Factory for events; timestamps default to one hour before NOW."""
    ids = count(1)

    def _make(
        event_type: EventType | str = EventType.QUOTE_VIEW,
        user_id: str | None = "user-a",
        at: datetime | None = None,
        session_id: str = "session-1",
        data: dict | None = None,
        location: LocationData | None = None,
        platform: str = "android",
    ) -> AnalyticsEvent:
        return AnalyticsEvent(
            id=f"evt-{next(ids)}",
            user_id=user_id,
            event_type=EventType(event_type),
            event_data=data or {},
            timestamp=at or NOW - timedelta(hours=1),
            session_id=session_id,
            device_info=DeviceInfo(platform=platform),
            location_data=location,
        )

    return _make


@pytest.fixture
def store() -> EventStore:
    return EventStore(InMemoryStorage(), StoreConfig())


@pytest.fixture
def service(store: EventStore, clock: FakeClock) -> AnalyticsService:
    return AnalyticsService(store=store, config=AnalyticsConfig(), clock=clock)
