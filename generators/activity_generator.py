"""Synthetic app activity: users browsing, sharing and favoriting quotes."""

from datetime import UTC, datetime, timedelta
from typing import Any

from inspirasi.domains.analytics.models import (
    AnalyticsEvent,
    DeviceInfo,
    EventType,
    LocationData,
)

from .base import BaseGenerator

CATEGORY_WEIGHTS = {
    "motivational": 0.25,
    "wisdom": 0.20,
    "love": 0.15,
    "success": 0.15,
    "happiness": 0.15,
    "life": 0.10,
}

QUOTES = [
    ("q-001", "Imagination is more important than knowledge.", "Albert Einstein", "short"),
    ("q-002", "Life is like riding a bicycle. To keep your balance you must keep moving.",
     "Albert Einstein", "medium"),
    ("q-003", "You may not control all the events that happen to you, but you can decide "
     "not to be reduced by them.", "Maya Angelou", "long"),
    ("q-004", "Stay hungry, stay foolish.", "Steve Jobs", "short"),
    ("q-005", "Your time is limited, so don't waste it living someone else's life.",
     "Steve Jobs", "medium"),
    ("q-006", "Be the change that you wish to see in the world.", "Gandhi", "short"),
    ("q-007", "The best way to find yourself is to lose yourself in the service of others.",
     "Gandhi", "medium"),
]

SEARCH_TERMS = ["courage", "love", "success", "friendship", "peace", "focus"]

LOCATIONS = [
    ("Indonesia", "Jakarta", "Asia/Jakarta"),
    ("Indonesia", "Surabaya", "Asia/Jakarta"),
    ("United States", "New York", "America/New_York"),
    ("India", "Mumbai", "Asia/Kolkata"),
]

PLATFORMS = {
    "android": ("Inspirasi/1.0 Android/14", "412x915"),
    "ios": ("Inspirasi/1.0 iOS/17.4", "390x844"),
    "web": ("Mozilla/5.0 (X11; Linux x86_64) Chrome/122.0", "1920x1080"),
}


class ActivityGenerator(BaseGenerator):
    def generate(self, num_users: int = 50) -> list[AnalyticsEvent]:
        """Simulate ``num_users`` users; events come back in chronological order."""
        config = self.config
        time_span = config.get("time_span_days", 30)
        end_time = config.get("end_time") or datetime.now(UTC)
        if isinstance(end_time, str):
            end_time = datetime.fromisoformat(end_time)
        start_time = end_time - timedelta(days=time_span)

        events: list[AnalyticsEvent] = []
        for _ in range(num_users):
            events.extend(self._simulate_user(start_time, end_time))

        events.sort(key=lambda e: e.timestamp)
        return events

    def _simulate_user(self, start: datetime, end: datetime) -> list[AnalyticsEvent]:
        config = self.config
        rng = self.rng
        user_id = f"user_{self._uuid()[:8]}"
        platform = rng.choice(list(PLATFORMS))
        user_agent, screen = PLATFORMS[platform]
        device = DeviceInfo(
            user_agent=user_agent, platform=platform, screen_size=screen, language="id"
        )
        country, city, tz = rng.choice(LOCATIONS)
        location = LocationData(country=country, city=city, timezone=tz)
        favorite = self._weighted_choice(config.get("category_weights", CATEGORY_WEIGHTS))

        events: list[AnalyticsEvent] = []
        sessions = max(1, int(rng.gauss(config.get("sessions_per_user", 4), 1.5)))
        is_new = rng.random() < config.get("new_user_rate", 0.2)

        for index in range(sessions):
            session_id = f"session_{self._uuid()[:12]}"
            t = self._random_datetime(start, end - timedelta(hours=1))
            session_start = t

            def emit(event_type: EventType, data: dict[str, Any]) -> None:
                nonlocal t
                t += timedelta(seconds=rng.randint(5, 90))
                events.append(
                    self._event(event_type, data, t, session_id, user_id, device, location)
                )

            if is_new and index == 0:
                emit(EventType.USER_REGISTER, {"method": "email"})
            else:
                emit(EventType.USER_LOGIN, {"method": rng.choice(["email", "google"])})

            for _ in range(max(1, int(rng.gauss(config.get("actions_per_session", 8), 3)))):
                self._emit_action(emit, favorite)

            emit(EventType.SESSION_END, {"duration": (t - session_start).total_seconds()})

        return events

    def _emit_action(self, emit, favorite: str) -> None:
        rng = self.rng
        roll = rng.random()
        category = favorite if rng.random() < 0.6 else self._weighted_choice(CATEGORY_WEIGHTS)

        if roll < 0.2:
            emit(EventType.CATEGORY_SELECT, {"category": category})
        elif roll < 0.75:
            quote_id, content, author, length = rng.choice(QUOTES)
            emit(
                EventType.QUOTE_VIEW,
                {
                    "quoteId": quote_id,
                    "content": content,
                    "author": author,
                    "category": category,
                    "quoteLength": length,
                },
            )
            if rng.random() < 0.2:
                emit(EventType.QUOTE_SHARE, {"quoteId": quote_id, "platform": "whatsapp"})
            if rng.random() < 0.25:
                emit(EventType.QUOTE_FAVORITE, {"quoteId": quote_id, "author": author})
        elif roll < 0.9:
            emit(EventType.SEARCH, {"term": rng.choice(SEARCH_TERMS)})
        elif roll < 0.96:
            emit(EventType.COMMUNITY_JOIN, {"communityId": f"community-{category}"})
        else:
            emit(
                EventType.QUOTE_CREATE,
                {"quoteId": f"user-q-{self._uuid()[:6]}", "category": category},
            )
