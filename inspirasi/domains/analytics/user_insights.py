"""Per-user behavioral profile generation.

Builds activity stats, ranked preferences, a daily mood trend and
editorial recommendations for one user from the time-filtered event log.
"""

from datetime import UTC, datetime

import structlog

from .aggregations import count_by, distinct, mode, rank_with_percentage
from .config import AnalyticsConfig, default_config
from .models import (
    AnalyticsEvent,
    AuthorPreference,
    CategoryPreference,
    CategorySelectPayload,
    EventType,
    Mood,
    MoodPoint,
    PeakActivity,
    QuoteLength,
    QuoteViewPayload,
    TimeRange,
    UserInsights,
    UserPreferences,
    UserRecommendations,
    UserStats,
)
from .time_window import as_utc, filter_events, resolve_timezone

logger = structlog.get_logger()

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class UserInsightGenerator:
    """Computes a fresh UserInsights snapshot on every call."""

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or default_config
        self._tz = resolve_timezone(self._config.timezone)

    def generate(
        self,
        user_id: str,
        events: list[AnalyticsEvent] | tuple[AnalyticsEvent, ...],
        time_range: TimeRange | str = TimeRange.MONTH,
        now: datetime | None = None,
    ) -> UserInsights:
        """Build the profile of ``user_id`` from events inside ``time_range``.

        Args:
            user_id: The user identifier.
            events: The retained event log in stored order.
            time_range: Named sliding window ending at ``now``.
            now: Reference instant; defaults to the current time.
        """
        now = as_utc(now) if now is not None else datetime.now(UTC)
        time_range = TimeRange(time_range)
        user_events = filter_events(events, time_range, now=now, user_id=user_id)

        stats = self._build_stats(user_events)
        preferences = self._build_preferences(user_events)
        recommendations = self._build_recommendations(preferences)

        insights = UserInsights(
            user_id=user_id,
            generated_at=now,
            time_range=time_range,
            stats=stats,
            preferences=preferences,
            recommendations=recommendations,
        )

        logger.info(
            "user_insights_generated",
            user_id=user_id,
            time_range=time_range.value,
            events=len(user_events),
            sessions=stats.total_sessions,
        )
        return insights

    # --- Stats ---

    def _build_stats(self, events: list[AnalyticsEvent]) -> UserStats:
        if not events:
            return UserStats()

        sessions = {e.session_id for e in events}
        type_counts = count_by(e.event_type for e in events)
        local_times = [self._local(e) for e in events]

        categories = distinct(
            e.payload.category
            for e in events
            if e.event_type == EventType.CATEGORY_SELECT
        )

        default_duration = self._config.user.default_event_duration
        total_duration = 0.0
        for e in events:
            duration = e.payload.duration
            total_duration += duration if duration is not None else default_duration
        avg_duration = total_duration / len(sessions) if sessions else 0.0

        return UserStats(
            quotes_viewed=type_counts.get(EventType.QUOTE_VIEW, 0),
            favorite_quotes=type_counts.get(EventType.QUOTE_FAVORITE, 0),
            quotes_shared=type_counts.get(EventType.QUOTE_SHARE, 0),
            categories_explored=categories,
            active_hours=sorted({t.hour for t in local_times}),
            active_days=distinct(WEEKDAYS[t.weekday()] for t in local_times),
            avg_session_duration=round(avg_duration, 2),
            total_sessions=len(sessions),
        )

    # --- Preferences ---

    def _build_preferences(self, events: list[AnalyticsEvent]) -> UserPreferences:
        cfg = self._config.user

        category_payloads: list[CategorySelectPayload] = [
            e.payload for e in events if e.event_type == EventType.CATEGORY_SELECT
        ]
        view_payloads: list[QuoteViewPayload] = [
            e.payload for e in events if e.event_type == EventType.QUOTE_VIEW
        ]

        favorite_categories = [
            CategoryPreference(category=name, count=count, percentage=pct)
            for name, count, pct in rank_with_percentage(
                count_by(p.category for p in category_payloads), cfg.top_preferences
            )
        ]
        favorite_authors = [
            AuthorPreference(author=name, count=count, percentage=pct)
            for name, count, pct in rank_with_percentage(
                count_by(p.author for p in view_payloads), cfg.top_preferences
            )
        ]

        local_times = [self._local(e) for e in events]
        peak_activity = PeakActivity(
            hour=mode((t.hour for t in local_times), default=0),
            day=mode((WEEKDAYS[t.weekday()] for t in local_times), default="Monday"),
        )

        # Views without a length count towards "medium"
        preferred_length = mode(
            (p.quote_length or QuoteLength.MEDIUM for p in view_payloads),
            default=QuoteLength.MEDIUM,
        )

        return UserPreferences(
            favorite_categories=favorite_categories,
            favorite_authors=favorite_authors,
            peak_activity=peak_activity,
            preferred_quote_length=preferred_length,
            mood_trend=self._build_mood_trend(events),
        )

    def _build_mood_trend(self, events: list[AnalyticsEvent]) -> list[MoodPoint]:
        """Classify each of the most recent active days by its event volume."""
        cfg = self._config.user
        daily = count_by(self._local(e).date().isoformat() for e in events)
        recent_days = sorted(daily)[-cfg.mood_trend_days:]
        return [
            MoodPoint(date=day, mood=self._classify_mood(daily[day])) for day in recent_days
        ]

    def _classify_mood(self, activity: int) -> Mood:
        cfg = self._config.user
        if activity > cfg.mood_positive_above:
            return Mood.POSITIVE
        if activity > cfg.mood_neutral_above:
            return Mood.NEUTRAL
        return Mood.NEGATIVE

    # --- Recommendations ---

    def _build_recommendations(self, preferences: UserPreferences) -> UserRecommendations:
        cfg = self._config.user
        relations = self._config.recommendations

        top_categories = [
            c.category for c in preferences.favorite_categories[: cfg.recommendation_seeds]
        ]
        top_authors = [a.author for a in preferences.favorite_authors[: cfg.recommendation_seeds]]

        return UserRecommendations(
            suggested_categories=self._related(top_categories, relations.category_relations),
            suggested_authors=self._related(top_authors, relations.author_relations),
        )

    def _related(self, seeds: list[str], table: dict[str, list[str]]) -> list[str]:
        suggestions = distinct(related for seed in seeds for related in table.get(seed, []))
        return suggestions[: self._config.user.max_suggestions]

    def _local(self, event: AnalyticsEvent) -> datetime:
        return event.timestamp.astimezone(self._tz)
