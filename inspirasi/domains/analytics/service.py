"""Analytics service facade: ingestion, insight queries, erasure and export.

One service is constructed per process (see ``create_analytics_service``)
and owned by the application lifespan. Query methods never raise on data
problems; they return a snapshot marked ``degraded`` with the reasons.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import Engine

from inspirasi.config import Settings
from inspirasi.db.database import build_engine, build_session_factory, init_db

from .app_insights import AppInsightGenerator
from .config import AnalyticsConfig, StoreConfig, default_config
from .export import export_events
from .geo import GeoProvider
from .models import (
    AppInsights,
    DeviceInfo,
    EventType,
    ExportFormat,
    InsightStatus,
    LocationData,
    TimeRange,
    UserInsights,
)
from .recorder import EventRecorder
from .storage import InMemoryStorage, SQLStorage, StorageBackend
from .store import EventStore
from .time_window import filter_events
from .user_insights import UserInsightGenerator

logger = structlog.get_logger()


class AnalyticsService:
    """Explicitly constructed engine instance with a start/close lifecycle."""

    def __init__(
        self,
        store: EventStore,
        config: AnalyticsConfig | None = None,
        recorder: EventRecorder | None = None,
        geo_provider: GeoProvider | None = None,
        clock: Callable[[], datetime] | None = None,
        engine: Engine | None = None,
    ) -> None:
        self._config = config or default_config
        self._clock = clock or (lambda: datetime.now(UTC))
        self._store = store
        self._recorder = recorder or EventRecorder(store, clock=self._clock)
        self._user_generator = UserInsightGenerator(self._config)
        self._app_generator = AppInsightGenerator(self._config, geo_provider=geo_provider)
        self._engine = engine
        self._started = False

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def recorder(self) -> EventRecorder:
        return self._recorder

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        if self._engine is not None:
            init_db(self._engine)
        self._started = True
        logger.info(
            "analytics_service_started",
            capacity=self._store.capacity,
            storage_key=self._store.key,
            session_id=self._recorder.session_id,
        )

    def close(self) -> None:
        if not self._started:
            return
        if self._engine is not None:
            self._engine.dispose()
        self._started = False
        logger.info("analytics_service_closed")

    # --- Ingest ---

    def track(
        self,
        event_type: EventType | str,
        event_data: dict[str, Any] | None = None,
        user_id: str | None = None,
        *,
        session_id: str | None = None,
        device_info: DeviceInfo | None = None,
        location_data: LocationData | None = None,
    ) -> bool:
        return self._recorder.track(
            event_type,
            event_data,
            user_id,
            session_id=session_id,
            device_info=device_info,
            location_data=location_data,
        )

    # --- Queries ---

    def generate_user_insights(
        self, user_id: str, time_range: TimeRange | str = TimeRange.MONTH
    ) -> UserInsights:
        time_range = TimeRange(time_range)
        now = self._clock()
        snapshot = self._store.read()
        issues = list(snapshot.issues)

        try:
            insights = self._user_generator.generate(
                user_id, snapshot.events, time_range, now=now
            )
        except Exception as exc:
            logger.exception("user_insights_failed", user_id=user_id, time_range=time_range.value)
            insights = UserInsights(user_id=user_id, generated_at=now, time_range=time_range)
            issues.append(f"insight generation failed: {type(exc).__name__}")

        if issues:
            insights = insights.model_copy(
                update={"status": InsightStatus.DEGRADED, "issues": issues}
            )
        return insights

    def generate_app_insights(self, time_range: TimeRange | str = TimeRange.MONTH) -> AppInsights:
        time_range = TimeRange(time_range)
        now = self._clock()
        snapshot = self._store.read()
        issues = list(snapshot.issues)

        try:
            insights = self._app_generator.generate(snapshot.events, time_range, now=now)
        except Exception as exc:
            logger.exception("app_insights_failed", time_range=time_range.value)
            insights = AppInsights(generated_at=now, time_range=time_range)
            issues.append(f"insight generation failed: {type(exc).__name__}")

        if issues:
            insights = insights.model_copy(
                update={"status": InsightStatus.DEGRADED, "issues": issues}
            )
        return insights

    # --- Privacy ---

    def clear_analytics_data(self, user_id: str | None = None) -> bool:
        return self._store.clear(user_id)

    def export_analytics_data(
        self,
        user_id: str | None = None,
        fmt: ExportFormat | str = ExportFormat.JSON,
        time_range: TimeRange | str | None = None,
    ) -> str:
        """Serialize one user's events, or the full log, optionally windowed."""
        fmt = ExportFormat(fmt)
        events = list(self._store.get_all())
        if user_id is not None:
            events = [e for e in events if e.user_id == user_id]
        if time_range is not None:
            events = filter_events(events, time_range, now=self._clock())

        logger.info(
            "analytics_data_exported", user_id=user_id, format=fmt.value, events=len(events)
        )
        return export_events(events, fmt)

    def ping(self) -> bool:
        return self._store.ping()


def create_analytics_service(
    settings: Settings,
    config: AnalyticsConfig | None = None,
    geo_provider: GeoProvider | None = None,
) -> AnalyticsService:
    """Wire the service from application settings."""
    config = replace(
        config or AnalyticsConfig.from_env(),
        store=StoreConfig(
            max_events=settings.analytics_max_events,
            storage_key=settings.analytics_storage_key,
        ),
        timezone=settings.analytics_timezone,
    )

    engine: Engine | None = None
    backend: StorageBackend
    if settings.analytics_storage_backend == "memory":
        backend = InMemoryStorage()
    elif settings.analytics_storage_backend == "sql":
        engine = build_engine(settings.database_url, echo=settings.debug)
        backend = SQLStorage(build_session_factory(engine))
    else:
        raise ValueError(
            f"Unknown analytics storage backend: {settings.analytics_storage_backend}"
        )

    return AnalyticsService(
        store=EventStore(backend, config.store),
        config=config,
        geo_provider=geo_provider,
        engine=engine,
    )
