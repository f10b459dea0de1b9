"""Pydantic models for the analytics engine: events, payloads and insights."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = structlog.get_logger()


# --- Enums ---


class EventType(StrEnum):
    QUOTE_VIEW = "quote_view"
    QUOTE_SHARE = "quote_share"
    QUOTE_FAVORITE = "quote_favorite"
    CATEGORY_SELECT = "category_select"
    SEARCH = "search"
    USER_LOGIN = "user_login"
    USER_REGISTER = "user_register"
    COMMUNITY_JOIN = "community_join"
    QUOTE_CREATE = "quote_create"
    SESSION_VISIBILITY = "session_visibility"
    SESSION_END = "session_end"


class TimeRange(StrEnum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"


class QuoteLength(StrEnum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Mood(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Trend(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class InsightStatus(StrEnum):
    OK = "ok"
    DEGRADED = "degraded"


class ExportFormat(StrEnum):
    JSON = "json"
    CSV = "csv"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Event payloads ---


class EventPayload(_CamelModel):
    """Fields common to every payload. Unknown keys are kept as extras."""

    model_config = ConfigDict(extra="allow")

    duration: float | None = None  # seconds


class QuotePayload(EventPayload):
    quote_id: str | None = None
    content: str | None = None
    author: str | None = None
    category: str | None = None


class QuoteViewPayload(QuotePayload):
    quote_length: QuoteLength | None = None


class QuoteSharePayload(QuotePayload):
    platform: str | None = None


class QuoteFavoritePayload(QuotePayload):
    pass


class QuoteCreatePayload(QuotePayload):
    pass


class CategorySelectPayload(EventPayload):
    category: str | None = None


class SearchPayload(EventPayload):
    term: str | None = None
    results_count: int | None = None


class AuthPayload(EventPayload):
    method: str | None = None


class CommunityJoinPayload(EventPayload):
    community_id: str | None = None
    community_name: str | None = None


class SessionVisibilityPayload(EventPayload):
    visible: bool | None = None


class SessionEndPayload(EventPayload):
    pass


PAYLOAD_MODELS: dict[EventType, type[EventPayload]] = {
    EventType.QUOTE_VIEW: QuoteViewPayload,
    EventType.QUOTE_SHARE: QuoteSharePayload,
    EventType.QUOTE_FAVORITE: QuoteFavoritePayload,
    EventType.CATEGORY_SELECT: CategorySelectPayload,
    EventType.SEARCH: SearchPayload,
    EventType.USER_LOGIN: AuthPayload,
    EventType.USER_REGISTER: AuthPayload,
    EventType.COMMUNITY_JOIN: CommunityJoinPayload,
    EventType.QUOTE_CREATE: QuoteCreatePayload,
    EventType.SESSION_VISIBILITY: SessionVisibilityPayload,
    EventType.SESSION_END: SessionEndPayload,
}


def parse_payload(event_type: EventType, data: dict[str, Any]) -> EventPayload:
    """Read an open payload through the typed model registered for its event type.

    Fields that fail validation are dropped; the remaining fields are kept.
    """
    model = PAYLOAD_MODELS.get(event_type, EventPayload)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        bad_fields = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
        logger.debug(
            "payload_fields_dropped",
            event_type=str(event_type),
            fields=sorted(bad_fields),
        )
        cleaned = {k: v for k, v in data.items() if k not in bad_fields}
        try:
            return model.model_validate(cleaned)
        except ValidationError:
            return model()


# --- Event ---


class DeviceInfo(_CamelModel):
    user_agent: str = "unknown"
    platform: str = "unknown"
    screen_size: str = "unknown"
    language: str = "en"


class LocationData(_CamelModel):
    country: str | None = None
    city: str | None = None
    timezone: str | None = None


class AnalyticsEvent(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str | None = None
    event_type: EventType
    event_data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    session_id: str
    device_info: DeviceInfo = Field(default_factory=DeviceInfo)
    location_data: LocationData | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def payload(self) -> EventPayload:
        return parse_payload(self.event_type, self.event_data)


class TrackEventRequest(_CamelModel):
    event_type: EventType
    event_data: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None
    session_id: str | None = None  # client session; defaults to the server's
    device_info: DeviceInfo | None = None
    location_data: LocationData | None = None


# --- Per-user insights ---


class UserStats(_CamelModel):
    quotes_viewed: int = 0
    favorite_quotes: int = 0
    quotes_shared: int = 0
    categories_explored: list[str] = Field(default_factory=list)
    active_hours: list[int] = Field(default_factory=list)
    active_days: list[str] = Field(default_factory=list)
    avg_session_duration: float = 0.0
    total_sessions: int = 0


class CategoryPreference(_CamelModel):
    category: str
    count: int
    percentage: int


class AuthorPreference(_CamelModel):
    author: str
    count: int
    percentage: int


class PeakActivity(_CamelModel):
    hour: int = Field(default=0, ge=0, le=23)
    day: str = "Monday"


class MoodPoint(_CamelModel):
    date: str  # YYYY-MM-DD
    mood: Mood


class UserPreferences(_CamelModel):
    favorite_categories: list[CategoryPreference] = Field(default_factory=list)
    favorite_authors: list[AuthorPreference] = Field(default_factory=list)
    peak_activity: PeakActivity = Field(default_factory=PeakActivity)
    preferred_quote_length: QuoteLength = QuoteLength.MEDIUM
    mood_trend: list[MoodPoint] = Field(default_factory=list)


class UserRecommendations(_CamelModel):
    suggested_categories: list[str] = Field(default_factory=list)
    suggested_authors: list[str] = Field(default_factory=list)


class UserInsights(_CamelModel):
    user_id: str
    generated_at: datetime
    time_range: TimeRange
    stats: UserStats = Field(default_factory=UserStats)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    recommendations: UserRecommendations = Field(default_factory=UserRecommendations)
    status: InsightStatus = InsightStatus.OK
    issues: list[str] = Field(default_factory=list)


# --- App-wide insights ---


class AppOverview(_CamelModel):
    total_users: int = 0
    active_users: int = 0
    new_users: int = 0
    total_sessions: int = 0
    total_quotes: int = 0
    total_shares: int = 0
    total_favorites: int = 0
    avg_session_duration: float = 0.0
    # None when the prior window has no users to retain
    retention_rate: float | None = None


class PopularQuote(_CamelModel):
    id: str
    content: str
    views: int = 0
    shares: int = 0


class PopularItem(_CamelModel):
    name: str
    count: int
    # None when the prior window has no occurrences
    growth: float | None = None


class PopularSearchTerm(_CamelModel):
    term: str
    count: int
    growth: float | None = None


class PopularContent(_CamelModel):
    quotes: list[PopularQuote] = Field(default_factory=list)
    categories: list[PopularItem] = Field(default_factory=list)
    authors: list[PopularItem] = Field(default_factory=list)
    search_terms: list[PopularSearchTerm] = Field(default_factory=list)


class DailyCount(_CamelModel):
    date: str
    count: int


class CategoryGrowth(_CamelModel):
    category: str
    current_count: int
    prior_count: int
    growth: float | None = None
    trend: Trend = Trend.STABLE


class EngagementPoint(_CamelModel):
    date: str
    avg_sessions: float = 0.0
    avg_duration: float = 0.0


class ContentCreationPoint(_CamelModel):
    date: str
    quotes: int = 0
    communities: int = 0


class AppTrends(_CamelModel):
    daily_active_users: list[DailyCount] = Field(default_factory=list)
    category_growth: list[CategoryGrowth] = Field(default_factory=list)
    user_engagement: list[EngagementPoint] = Field(default_factory=list)
    content_creation: list[ContentCreationPoint] = Field(default_factory=list)


class CountryShare(_CamelModel):
    country: str
    users: int
    percentage: int


class CityShare(_CamelModel):
    city: str
    users: int
    percentage: int


class TimezoneShare(_CamelModel):
    timezone: str
    users: int
    percentage: int


class GeographicInsights(_CamelModel):
    available: bool = False
    source: str = "none"
    top_countries: list[CountryShare] = Field(default_factory=list)
    top_cities: list[CityShare] = Field(default_factory=list)
    timezone_distribution: list[TimezoneShare] = Field(default_factory=list)


class AppInsights(_CamelModel):
    generated_at: datetime
    time_range: TimeRange
    overview: AppOverview = Field(default_factory=AppOverview)
    popular: PopularContent = Field(default_factory=PopularContent)
    trends: AppTrends = Field(default_factory=AppTrends)
    geographic: GeographicInsights = Field(default_factory=GeographicInsights)
    status: InsightStatus = InsightStatus.OK
    issues: list[str] = Field(default_factory=list)
