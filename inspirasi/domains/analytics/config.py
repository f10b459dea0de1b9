"""Analytics engine configuration with sensible defaults.

Retention cap, aggregation limits, mood thresholds and the editorial
relation tables used to derive recommendations.
"""

import os
from dataclasses import dataclass, field


@dataclass
class StoreConfig:
    """Event log retention parameters."""

    # Maximum number of events kept before the oldest are evicted
    max_events: int = 1000
    # Namespaced key of the single persisted record
    storage_key: str = "inspirasi_analytics_data"

    def __post_init__(self) -> None:
        if self.max_events < 1:
            raise ValueError(f"max_events must be positive, got {self.max_events}")


@dataclass
class UserInsightConfig:
    """Per-user profile parameters."""

    # Seconds assumed for an event that carries no duration
    default_event_duration: float = 300.0
    top_preferences: int = 5
    # Number of top preferences used as recommendation seeds
    recommendation_seeds: int = 3
    max_suggestions: int = 5
    mood_trend_days: int = 7
    # Daily event count above which a day is "positive"
    mood_positive_above: int = 10
    # Daily event count above which a day is "neutral"
    mood_neutral_above: int = 5


@dataclass
class AppInsightConfig:
    """App-wide report parameters."""

    top_items: int = 10
    # Days at the end of the window that define "active" users
    active_user_days: int = 7
    # Growth within +/- this band is reported as "stable"
    stable_growth_band: float = 0.05


def _default_category_relations() -> dict[str, list[str]]:
    return {
        "motivational": ["success", "wisdom", "inspirational"],
        "love": ["relationship", "friendship", "family"],
        "wisdom": ["philosophy", "life", "truth"],
        "success": ["business", "motivational", "leadership"],
        "happiness": ["life", "positive", "joy"],
    }


def _default_author_relations() -> dict[str, list[str]]:
    return {
        "Albert Einstein": ["Stephen Hawking", "Isaac Newton", "Nikola Tesla"],
        "Maya Angelou": ["Oprah Winfrey", "Toni Morrison", "James Baldwin"],
        "Steve Jobs": ["Bill Gates", "Elon Musk", "Mark Zuckerberg"],
        "Gandhi": ["Nelson Mandela", "Martin Luther King Jr.", "Mother Teresa"],
    }


@dataclass
class RecommendationConfig:
    """Static editorial adjacency tables."""

    category_relations: dict[str, list[str]] = field(
        default_factory=_default_category_relations
    )
    author_relations: dict[str, list[str]] = field(default_factory=_default_author_relations)


@dataclass
class AnalyticsConfig:
    """Top-level analytics engine configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    user: UserInsightConfig = field(default_factory=UserInsightConfig)
    app: AppInsightConfig = field(default_factory=AppInsightConfig)
    recommendations: RecommendationConfig = field(default_factory=RecommendationConfig)
    # IANA timezone used to bucket hours, weekdays and calendar days
    timezone: str = "UTC"

    @classmethod
    def from_env(cls) -> "AnalyticsConfig":
        """Load config with env var overrides. Env vars use ANALYTICS_ prefix."""
        config = cls()

        config.store = StoreConfig(
            max_events=int(os.getenv("ANALYTICS_MAX_EVENTS") or config.store.max_events),
            storage_key=os.getenv("ANALYTICS_STORAGE_KEY") or config.store.storage_key,
        )
        if v := os.getenv("ANALYTICS_TIMEZONE"):
            config.timezone = v

        if v := os.getenv("ANALYTICS_DEFAULT_EVENT_DURATION"):
            config.user.default_event_duration = float(v)
        if v := os.getenv("ANALYTICS_MOOD_POSITIVE_ABOVE"):
            config.user.mood_positive_above = int(v)
        if v := os.getenv("ANALYTICS_MOOD_NEUTRAL_ABOVE"):
            config.user.mood_neutral_above = int(v)

        if v := os.getenv("ANALYTICS_TOP_ITEMS"):
            config.app.top_items = int(v)
        if v := os.getenv("ANALYTICS_STABLE_GROWTH_BAND"):
            config.app.stable_growth_band = float(v)

        return config


# Module-level default instance
default_config = AnalyticsConfig()
