"""Event ingestion: normalizes tracked actions and appends them to the store."""

import platform
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from .models import AnalyticsEvent, DeviceInfo, EventType, LocationData
from .store import EventStore

logger = structlog.get_logger()


def new_session_id(started_at: datetime) -> str:
    return f"session_{int(started_at.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


def new_event_id(at: datetime) -> str:
    return f"analytics_{int(at.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


def host_device_info(user_agent: str = "server") -> DeviceInfo:
    """Device snapshot for events recorded by this process itself."""
    return DeviceInfo(
        user_agent=user_agent,
        platform=platform.system().lower() or "unknown",
        screen_size="unknown",
        language="en",
    )


class EventRecorder:
    """Ingestion entry point. ``track`` never raises to its caller."""

    def __init__(
        self,
        store: EventStore,
        device_info: DeviceInfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._device_info = device_info or host_device_info()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._session_started_at = self._clock()
        self._session_id = new_session_id(self._session_started_at)

    @property
    def session_id(self) -> str:
        return self._session_id

    def new_session(self) -> str:
        """Start a fresh recorder session and return its id."""
        self._session_started_at = self._clock()
        self._session_id = new_session_id(self._session_started_at)
        logger.info("analytics_session_started", session_id=self._session_id)
        return self._session_id

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
        """Record one user action.

        Per-call ``session_id``/``device_info`` override the recorder's own
        values, for clients reporting through the HTTP API. ``location_data``
        is stored only when the caller supplies it.

        Returns:
            True when the event was persisted, False when it was dropped.
        """
        try:
            event_type = EventType(event_type)
        except ValueError:
            logger.warning("analytics_unknown_event_type", event_type=str(event_type))
            return False

        if event_data is not None and not isinstance(event_data, Mapping):
            logger.warning(
                "analytics_event_invalid",
                event_type=event_type.value,
                error=f"event_data must be a mapping, got {type(event_data).__name__}",
            )
            return False

        now = self._clock()
        try:
            event = AnalyticsEvent(
                id=new_event_id(now),
                user_id=user_id,
                event_type=event_type,
                event_data=dict(event_data or {}),
                timestamp=now,
                session_id=session_id or self._session_id,
                device_info=device_info or self._device_info,
                location_data=location_data,
            )
        except ValidationError as exc:
            logger.warning(
                "analytics_event_invalid", event_type=event_type.value, error=str(exc)
            )
            return False

        try:
            stored = self._store.append(event)
        except Exception:
            # e.g. a payload value that cannot be serialized
            logger.warning("analytics_track_failed", event_id=event.id, exc_info=True)
            return False
        if stored:
            logger.debug(
                "analytics_event_tracked",
                event_id=event.id,
                event_type=event_type.value,
                user_id=user_id,
            )
        return stored

    def track_visibility(self, visible: bool, user_id: str | None = None) -> bool:
        return self.track(
            EventType.SESSION_VISIBILITY,
            {"visible": visible, "timestamp": self._clock().isoformat()},
            user_id,
        )

    def end_session(self, user_id: str | None = None) -> bool:
        """Record the end of the recorder session with its duration in seconds."""
        duration = (self._clock() - self._session_started_at).total_seconds()
        return self.track(
            EventType.SESSION_END,
            {"duration": round(duration, 3), "sessionId": self._session_id},
            user_id,
        )
