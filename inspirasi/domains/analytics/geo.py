"""Geographic distribution providers.

Real IP-based geolocation is an external integration. The engine asks a
provider for the distribution and reports which provider answered, so a
report never presents canned numbers as measured data.
"""

from collections.abc import Callable
from typing import Protocol

from .aggregations import rank_with_percentage
from .models import (
    AnalyticsEvent,
    CityShare,
    CountryShare,
    GeographicInsights,
    LocationData,
    TimezoneShare,
)

UNKNOWN_VALUES = frozenset({"", "unknown"})


class GeoProvider(Protocol):
    name: str

    def distribution(self, events: list[AnalyticsEvent], limit: int) -> GeographicInsights: ...


class UnavailableGeoProvider:
    """Explicit "not computed" state for deployments without a geo source."""

    name = "unavailable"

    def distribution(self, events: list[AnalyticsEvent], limit: int) -> GeographicInsights:
        return GeographicInsights(available=False, source=self.name)


class EventLocationGeoProvider:
    """Distinct users per location value recorded on the events themselves."""

    name = "event_location"

    def distribution(self, events: list[AnalyticsEvent], limit: int) -> GeographicInsights:
        countries = _users_by(events, lambda loc: loc.country)
        cities = _users_by(events, lambda loc: loc.city)
        timezones = _users_by(events, lambda loc: loc.timezone)

        if not (countries or cities or timezones):
            return GeographicInsights(available=False, source=self.name)

        return GeographicInsights(
            available=True,
            source=self.name,
            top_countries=[
                CountryShare(country=k, users=n, percentage=p)
                for k, n, p in rank_with_percentage(countries, limit)
            ],
            top_cities=[
                CityShare(city=k, users=n, percentage=p)
                for k, n, p in rank_with_percentage(cities, limit)
            ],
            timezone_distribution=[
                TimezoneShare(timezone=k, users=n, percentage=p)
                for k, n, p in rank_with_percentage(timezones, limit)
            ],
        )


def _users_by(
    events: list[AnalyticsEvent], field: Callable[[LocationData], str | None]
) -> dict[str, int]:
    """Count distinct users per location value; each user counts once, at their first location."""
    seen_users: set[str] = set()
    counts: dict[str, int] = {}
    for e in events:
        if e.user_id is None or e.location_data is None or e.user_id in seen_users:
            continue
        value = field(e.location_data)
        if value is None or value.strip().lower() in UNKNOWN_VALUES:
            continue
        seen_users.add(e.user_id)
        counts[value] = counts.get(value, 0) + 1
    return counts
