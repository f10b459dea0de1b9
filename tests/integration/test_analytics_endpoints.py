"""Integration tests for the analytics API."""

import csv
import io

import pytest
from httpx import ASGITransport, AsyncClient

from inspirasi.api.dependencies import get_analytics_service
from inspirasi.domains.analytics.service import AnalyticsService
from inspirasi.domains.analytics.storage import InMemoryStorage
from inspirasi.domains.analytics.store import EventStore
from inspirasi.main import app

pytestmark = pytest.mark.integration

BASE_URL = "http://test"


@pytest.fixture
async def client(service):
    app.dependency_overrides[get_analytics_service] = lambda: service
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url=BASE_URL) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def _track(client, event_type, event_data=None, user_id="user-a", **extra):
    body = {"eventType": event_type, "eventData": event_data or {}, "userId": user_id, **extra}
    return await client.post("/api/v1/analytics/events", json=body)


class TestTrackEndpoint:
    @pytest.mark.asyncio
    async def test_track_event(self, client, service):
        response = await _track(client, "quote_view", {"quoteId": "q1", "author": "Gandhi"})
        assert response.status_code == 202
        assert response.json() == {"accepted": True, "event_type": "quote_view"}

        (event,) = service.store.get_all()
        assert event.user_id == "user-a"
        assert event.event_data["author"] == "Gandhi"

    @pytest.mark.asyncio
    async def test_client_context_is_kept(self, client, service):
        await _track(
            client,
            "quote_share",
            {"quoteId": "q1"},
            sessionId="client-session",
            deviceInfo={"platform": "ios", "userAgent": "Inspirasi/1.0"},
            locationData={"country": "Indonesia", "city": "Jakarta"},
        )
        (event,) = service.store.get_all()
        assert event.session_id == "client-session"
        assert event.device_info.platform == "ios"
        assert event.location_data.city == "Jakarta"

    @pytest.mark.asyncio
    async def test_unknown_event_type_rejected(self, client, service):
        response = await _track(client, "quote_teleport")
        assert response.status_code == 422
        assert service.store.count() == 0

    @pytest.mark.asyncio
    async def test_dropped_event_is_reported(self, client, clock):
        full = AnalyticsService(store=EventStore(InMemoryStorage(quota_bytes=1)), clock=clock)
        app.dependency_overrides[get_analytics_service] = lambda: full

        response = await _track(client, "quote_view")
        assert response.status_code == 202
        assert response.json()["accepted"] is False
        assert full.store.count() == 0


class TestInsightEndpoints:
    @pytest.mark.asyncio
    async def test_user_insights(self, client):
        await _track(client, "category_select", {"category": "motivational"})
        await _track(client, "quote_view", {"author": "Steve Jobs", "quoteLength": "short"})

        response = await client.get(
            "/api/v1/analytics/users/user-a/insights", params={"time_range": "7d"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == "user-a"
        assert data["timeRange"] == "7d"
        assert data["status"] == "ok"
        assert data["stats"]["quotesViewed"] == 1
        assert data["stats"]["categoriesExplored"] == ["motivational"]
        assert data["preferences"]["preferredQuoteLength"] == "short"
        assert data["recommendations"]["suggestedCategories"] == [
            "success",
            "wisdom",
            "inspirational",
        ]
        assert data["recommendations"]["suggestedAuthors"] == [
            "Bill Gates",
            "Elon Musk",
            "Mark Zuckerberg",
        ]

    @pytest.mark.asyncio
    async def test_user_insights_default_range(self, client):
        response = await client.get("/api/v1/analytics/users/nobody/insights")
        assert response.status_code == 200
        data = response.json()
        assert data["timeRange"] == "30d"
        assert data["stats"]["totalSessions"] == 0
        assert data["stats"]["avgSessionDuration"] == 0

    @pytest.mark.asyncio
    async def test_invalid_time_range(self, client):
        response = await client.get("/api/v1/analytics/insights", params={"time_range": "2w"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_app_insights(self, client):
        await _track(client, "user_register", {"method": "email"}, user_id="user-a")
        await _track(client, "search", {"term": "courage"}, user_id="user-b")

        response = await client.get("/api/v1/analytics/insights", params={"time_range": "1y"})
        assert response.status_code == 200
        data = response.json()
        assert data["overview"]["totalUsers"] == 2
        assert data["overview"]["newUsers"] == 1
        assert data["overview"]["retentionRate"] is None
        assert data["popular"]["searchTerms"] == [
            {"term": "courage", "count": 1, "growth": None}
        ]
        assert data["geographic"]["source"] == "event_location"


class TestPrivacyEndpoints:
    @pytest.mark.asyncio
    async def test_clear_user(self, client, service):
        await _track(client, "quote_view", user_id="user-a")
        await _track(client, "quote_view", user_id="user-b")

        response = await client.delete("/api/v1/analytics/events", params={"user_id": "user-a"})
        assert response.status_code == 200
        assert response.json() == {"cleared": True, "user_id": "user-a"}
        assert [e.user_id for e in service.store.get_all()] == ["user-b"]

    @pytest.mark.asyncio
    async def test_clear_all(self, client, service):
        await _track(client, "quote_view")
        response = await client.delete("/api/v1/analytics/events")
        assert response.json()["cleared"] is True
        assert service.store.count() == 0

    @pytest.mark.asyncio
    async def test_export_csv(self, client):
        await _track(client, "quote_view", {"quoteId": "q1"})
        await _track(client, "search", {"term": "peace, love"})

        response = await client.get("/api/v1/analytics/export", params={"format": "csv"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        assert len(rows) == 3
        assert rows[0][0] == "timestamp"

    @pytest.mark.asyncio
    async def test_export_json_for_one_user(self, client):
        await _track(client, "quote_view", user_id="user-a")
        await _track(client, "quote_view", user_id="user-b")

        response = await client.get(
            "/api/v1/analytics/export", params={"user_id": "user-b", "format": "json"}
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        records = response.json()
        assert [r["userId"] for r in records] == ["user-b"]

    @pytest.mark.asyncio
    async def test_export_unknown_format(self, client):
        response = await client.get("/api/v1/analytics/export", params={"format": "xml"})
        assert response.status_code == 422
