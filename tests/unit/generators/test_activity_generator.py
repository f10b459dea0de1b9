"""Tests for the synthetic app activity generator."""

import json
import sys
from datetime import UTC, datetime, timedelta

from generators.activity_generator import ActivityGenerator
from generators.cli import main
from inspirasi.domains.analytics.app_insights import AppInsightGenerator
from inspirasi.domains.analytics.models import EventType

END_TIME = datetime(2026, 3, 16, 12, 0, tzinfo=UTC)

DEFAULT_CONFIG = {
    "time_span_days": 30,
    "end_time": END_TIME.isoformat(),
    "sessions_per_user": 4,
    "new_user_rate": 0.5,
    "actions_per_session": 8,
}


class TestActivityGenerator:
    def test_deterministic_output(self):
        events1 = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=10)
        events2 = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=10)
        assert [e.id for e in events1] == [e.id for e in events2]
        assert [e.event_type for e in events1] == [e.event_type for e in events2]

    def test_different_seeds_differ(self):
        events1 = ActivityGenerator(config=DEFAULT_CONFIG, seed=1).generate(num_users=5)
        events2 = ActivityGenerator(config=DEFAULT_CONFIG, seed=2).generate(num_users=5)
        assert [e.id for e in events1] != [e.id for e in events2]

    def test_chronological_within_span(self):
        events = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=10)
        timestamps = [e.timestamp for e in events]
        assert timestamps == sorted(timestamps)
        assert timestamps[0] >= END_TIME - timedelta(days=30)

    def test_every_session_ends(self):
        events = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=10)
        sessions = {e.session_id for e in events}
        ended = {e.session_id for e in events if e.event_type == EventType.SESSION_END}
        assert sessions == ended

    def test_generates_quote_activity(self):
        events = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=20)
        types = {e.event_type for e in events}
        assert EventType.QUOTE_VIEW in types
        assert EventType.CATEGORY_SELECT in types
        assert EventType.SEARCH in types

    def test_events_carry_user_context(self):
        events = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=3)
        assert all(e.user_id and e.user_id.startswith("user_") for e in events)
        assert all(e.location_data and e.location_data.country for e in events)

    def test_feeds_app_insights(self):
        events = ActivityGenerator(config=DEFAULT_CONFIG, seed=42).generate(num_users=15)
        insights = AppInsightGenerator().generate(events, "30d", now=END_TIME)
        assert insights.overview.total_users == 15
        assert insights.overview.total_quotes > 0
        assert insights.geographic.available


class TestCli:
    def test_stdout_output(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["generators", "activity", "--count", "2", "--seed", "7"])
        main()
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines
        record = json.loads(lines[0])
        assert record["eventType"] in {"user_register", "user_login"}
        assert record["userId"].startswith("user_")

    def test_store_output(self, monkeypatch, capsys):
        monkeypatch.setattr(
            sys,
            "argv",
            ["generators", "activity", "--count", "2", "--output", "store",
             "--database-url", "sqlite://"],
        )
        main()
        captured = capsys.readouterr()
        assert "Stored" in captured.err
        assert "\"totalUsers\"" in captured.out
