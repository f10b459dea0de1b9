"""App-wide aggregate reports across all users.

Growth and retention compare the requested window with the adjacent
prior window of equal length, so both windows are read from the same
retained event log.
"""

from datetime import UTC, datetime, timedelta

import structlog

from .aggregations import count_by, distinct, growth_rate, safe_mean, top_counts
from .config import AnalyticsConfig, default_config
from .geo import EventLocationGeoProvider, GeoProvider
from .models import (
    AnalyticsEvent,
    AppInsights,
    AppOverview,
    AppTrends,
    CategoryGrowth,
    ContentCreationPoint,
    DailyCount,
    EngagementPoint,
    EventType,
    PopularContent,
    PopularItem,
    PopularQuote,
    PopularSearchTerm,
    TimeRange,
    Trend,
)
from .time_window import (
    RANGE_DAYS,
    as_utc,
    filter_events,
    filter_prior_events,
    resolve_timezone,
)

logger = structlog.get_logger()


class AppInsightGenerator:
    """Computes a fresh AppInsights snapshot on every call."""

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        geo_provider: GeoProvider | None = None,
    ) -> None:
        self._config = config or default_config
        self._geo_provider = geo_provider or EventLocationGeoProvider()
        self._tz = resolve_timezone(self._config.timezone)

    def generate(
        self,
        events: list[AnalyticsEvent] | tuple[AnalyticsEvent, ...],
        time_range: TimeRange | str = TimeRange.MONTH,
        now: datetime | None = None,
    ) -> AppInsights:
        now = as_utc(now) if now is not None else datetime.now(UTC)
        time_range = TimeRange(time_range)
        current = filter_events(events, time_range, now=now)
        prior = filter_prior_events(events, time_range, now=now)

        insights = AppInsights(
            generated_at=now,
            time_range=time_range,
            overview=self._build_overview(current, prior, time_range, now),
            popular=self._build_popular(current, prior),
            trends=self._build_trends(current, prior),
            geographic=self._geo_provider.distribution(current, self._config.app.top_items),
        )

        logger.info(
            "app_insights_generated",
            time_range=time_range.value,
            events=len(current),
            prior_events=len(prior),
            users=insights.overview.total_users,
            geo_source=insights.geographic.source,
        )
        return insights

    # --- Overview ---

    def _build_overview(
        self,
        current: list[AnalyticsEvent],
        prior: list[AnalyticsEvent],
        time_range: TimeRange,
        now: datetime,
    ) -> AppOverview:
        users = set(distinct(e.user_id for e in current))
        type_counts = count_by(e.event_type for e in current)

        active_days = min(RANGE_DAYS[time_range], self._config.app.active_user_days)
        active_cutoff = now - timedelta(days=active_days)
        active_users = {e.user_id for e in current if e.user_id and e.timestamp >= active_cutoff}

        # Only events that explicitly carry a duration contribute
        durations = [d for d in (e.payload.duration for e in current) if d is not None]

        prior_users = set(distinct(e.user_id for e in prior))
        retention = (
            round(len(prior_users & users) / len(prior_users), 4) if prior_users else None
        )

        return AppOverview(
            total_users=len(users),
            active_users=len(active_users),
            new_users=type_counts.get(EventType.USER_REGISTER, 0),
            total_sessions=len({e.session_id for e in current}),
            total_quotes=type_counts.get(EventType.QUOTE_VIEW, 0),
            total_shares=type_counts.get(EventType.QUOTE_SHARE, 0),
            total_favorites=type_counts.get(EventType.QUOTE_FAVORITE, 0),
            avg_session_duration=round(safe_mean(durations), 2),
            retention_rate=retention,
        )

    # --- Popular content ---

    def _build_popular(
        self, current: list[AnalyticsEvent], prior: list[AnalyticsEvent]
    ) -> PopularContent:
        limit = self._config.app.top_items

        categories = self._popular_items(current, prior, EventType.CATEGORY_SELECT, "category")
        authors = self._popular_items(current, prior, EventType.QUOTE_VIEW, "author")
        terms = self._popular_items(current, prior, EventType.SEARCH, "term")

        return PopularContent(
            quotes=self._popular_quotes(current)[:limit],
            categories=categories,
            authors=authors,
            search_terms=[
                PopularSearchTerm(term=t.name, count=t.count, growth=t.growth) for t in terms
            ],
        )

    def _popular_quotes(self, events: list[AnalyticsEvent]) -> list[PopularQuote]:
        quotes: dict[str, PopularQuote] = {}
        for e in events:
            if e.event_type != EventType.QUOTE_VIEW:
                continue
            payload = e.payload
            if not payload.quote_id:
                continue
            quote = quotes.get(payload.quote_id)
            if quote is None:
                quote = PopularQuote(
                    id=payload.quote_id, content=payload.content or "Unknown quote"
                )
                quotes[payload.quote_id] = quote
            quote.views += 1

        # Shares only count towards quotes that were viewed in the window
        for e in events:
            if e.event_type != EventType.QUOTE_SHARE:
                continue
            quote = quotes.get(e.payload.quote_id or "")
            if quote is not None:
                quote.shares += 1

        return sorted(quotes.values(), key=lambda q: q.views, reverse=True)

    def _popular_items(
        self,
        current: list[AnalyticsEvent],
        prior: list[AnalyticsEvent],
        event_type: EventType,
        field: str,
    ) -> list[PopularItem]:
        current_counts = _field_counts(current, event_type, field)
        prior_counts = _field_counts(prior, event_type, field)
        return [
            PopularItem(name=name, count=count, growth=growth_rate(count, prior_counts.get(name, 0)))
            for name, count in top_counts(current_counts, self._config.app.top_items)
        ]

    # --- Trends ---

    def _build_trends(
        self, current: list[AnalyticsEvent], prior: list[AnalyticsEvent]
    ) -> AppTrends:
        days: dict[str, dict] = {}
        for e in current:
            day = e.timestamp.astimezone(self._tz).date().isoformat()
            if day not in days:
                days[day] = {
                    "users": set(),
                    "sessions": set(),
                    "durations": [],
                    "quotes_created": 0,
                    "community_joins": 0,
                }
            d = days[day]
            # Sessions per active user only counts identified users' sessions
            if e.user_id:
                d["users"].add(e.user_id)
                d["sessions"].add(e.session_id)
            duration = e.payload.duration
            if duration is not None:
                d["durations"].append(duration)
            if e.event_type == EventType.QUOTE_CREATE:
                d["quotes_created"] += 1
            elif e.event_type == EventType.COMMUNITY_JOIN:
                d["community_joins"] += 1

        ordered = sorted(days.items())
        return AppTrends(
            daily_active_users=[DailyCount(date=day, count=len(d["users"])) for day, d in ordered],
            category_growth=self._category_growth(current, prior),
            user_engagement=[
                EngagementPoint(
                    date=day,
                    avg_sessions=(
                        round(len(d["sessions"]) / len(d["users"]), 2) if d["users"] else 0.0
                    ),
                    avg_duration=round(safe_mean(d["durations"]), 2),
                )
                for day, d in ordered
            ],
            content_creation=[
                ContentCreationPoint(
                    date=day, quotes=d["quotes_created"], communities=d["community_joins"]
                )
                for day, d in ordered
            ],
        )

    def _category_growth(
        self, current: list[AnalyticsEvent], prior: list[AnalyticsEvent]
    ) -> list[CategoryGrowth]:
        current_counts = _field_counts(current, EventType.CATEGORY_SELECT, "category")
        prior_counts = _field_counts(prior, EventType.CATEGORY_SELECT, "category")

        rows = []
        for category in distinct([*current_counts, *prior_counts]):
            now_count = current_counts.get(category, 0)
            before = prior_counts.get(category, 0)
            growth = growth_rate(now_count, before)
            rows.append(
                CategoryGrowth(
                    category=category,
                    current_count=now_count,
                    prior_count=before,
                    growth=growth,
                    trend=self._classify_trend(now_count, growth),
                )
            )
        rows.sort(key=lambda r: r.current_count, reverse=True)
        return rows[: self._config.app.top_items]

    def _classify_trend(self, current_count: int, growth: float | None) -> Trend:
        band = self._config.app.stable_growth_band
        if growth is None:
            # No prior activity: anything seen now is new growth
            return Trend.UP if current_count > 0 else Trend.STABLE
        if growth > band:
            return Trend.UP
        if growth < -band:
            return Trend.DOWN
        return Trend.STABLE


def _field_counts(events: list[AnalyticsEvent], event_type: EventType, field: str) -> dict[str, int]:
    return count_by(getattr(e.payload, field, None) for e in events if e.event_type == event_type)
