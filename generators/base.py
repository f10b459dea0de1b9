"""Base generator class with seeded RNG and event construction helpers."""

import random
import uuid
from datetime import datetime, timedelta
from typing import Any

from inspirasi.domains.analytics.models import (
    AnalyticsEvent,
    DeviceInfo,
    EventType,
    LocationData,
)


class BaseGenerator:
    def __init__(self, config: dict[str, Any] | None = None, seed: int = 42):
        self.config = config or {}
        self.seed = seed
        self.rng = random.Random(seed)
        self._event_counter = 0

    def _uuid(self) -> str:
        """Generate a deterministic UUID based on the seeded RNG."""
        self._event_counter += 1
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def _event(
        self,
        event_type: EventType,
        event_data: dict[str, Any],
        timestamp: datetime,
        session_id: str,
        user_id: str | None,
        device_info: DeviceInfo,
        location_data: LocationData | None = None,
    ) -> AnalyticsEvent:
        """Wrap a payload in the standard event envelope."""
        return AnalyticsEvent(
            id=f"analytics_{self._uuid()}",
            user_id=user_id,
            event_type=event_type,
            event_data=event_data,
            timestamp=timestamp,
            session_id=session_id,
            device_info=device_info,
            location_data=location_data,
        )

    def _random_datetime(self, start: datetime, end: datetime) -> datetime:
        """Generate a random datetime between start and end."""
        delta = end - start
        random_seconds = self.rng.randint(0, max(1, int(delta.total_seconds())))
        return start + timedelta(seconds=random_seconds)

    def _weighted_choice(self, options: dict[str, float]) -> str:
        """Choose from weighted options."""
        items = list(options.keys())
        weights = list(options.values())
        return self.rng.choices(items, weights=weights, k=1)[0]
