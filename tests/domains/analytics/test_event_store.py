"""Unit tests for the bounded event log and its storage backends."""

import json
from datetime import timedelta

import pytest

from inspirasi.db.database import build_engine, build_session_factory, init_db
from inspirasi.domains.analytics.config import StoreConfig
from inspirasi.domains.analytics.storage import (
    InMemoryStorage,
    SQLStorage,
    StorageUnavailableError,
)
from inspirasi.domains.analytics.store import EventStore


class BrokenStorage:
    """Backend whose every operation fails."""

    def read(self, key):
        raise StorageUnavailableError("backend offline")

    def write(self, key, value):
        raise StorageUnavailableError("backend offline")

    def delete(self, key):
        raise StorageUnavailableError("backend offline")

    def ping(self):
        return False


@pytest.fixture
def sql_backend() -> SQLStorage:
    engine = build_engine("sqlite://")
    init_db(engine)
    yield SQLStorage(build_session_factory(engine))
    engine.dispose()


class TestCapacity:
    def test_append_one_past_capacity_evicts_oldest(self, make_event):
        store = EventStore(InMemoryStorage(), StoreConfig(max_events=1000))
        events = [make_event() for _ in range(1001)]

        assert store.extend(events[:1000])
        assert store.append(events[1000])

        stored = store.get_all()
        assert len(stored) == 1000
        assert stored[0].id == events[1].id
        assert events[0].id not in {e.id for e in stored}
        assert stored[-1].id == events[1000].id

    def test_single_appends_keep_most_recent(self, make_event):
        store = EventStore(InMemoryStorage(), StoreConfig(max_events=5))
        events = [make_event() for _ in range(8)]
        for event in events:
            assert store.append(event)

        assert [e.id for e in store.get_all()] == [e.id for e in events[3:]]

    def test_under_capacity_keeps_everything_in_order(self, store, make_event):
        events = [make_event() for _ in range(3)]
        for event in events:
            store.append(event)
        assert [e.id for e in store.get_all()] == [e.id for e in events]
        assert store.count() == 3

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValueError):
            StoreConfig(max_events=0)


class TestClear:
    def test_clear_user_keeps_other_users(self, store, make_event):
        store.append(make_event(user_id="user-a"))
        store.append(make_event(user_id="user-b"))
        store.append(make_event(user_id="user-a"))

        assert store.clear("user-a")

        remaining = store.get_all()
        assert len(remaining) == 1
        assert remaining[0].user_id == "user-b"

    def test_clear_all(self, store, make_event):
        store.append(make_event(user_id="user-a"))
        store.append(make_event(user_id="user-b"))

        assert store.clear()
        assert store.count() == 0

    def test_clear_empty_store(self, store):
        assert store.clear()
        assert store.clear("nobody")
        assert store.count() == 0


class TestDegradedReads:
    def test_corrupted_record_reads_as_empty(self, make_event):
        backend = InMemoryStorage()
        backend.write("inspirasi_analytics_data", "{not json")
        store = EventStore(backend)

        snapshot = store.read()
        assert snapshot.events == ()
        assert snapshot.degraded
        assert not snapshot.unavailable

    def test_corrupted_record_is_replaced_on_append(self, make_event):
        backend = InMemoryStorage()
        backend.write("inspirasi_analytics_data", "{not json")
        store = EventStore(backend)

        assert store.append(make_event())
        snapshot = store.read()
        assert len(snapshot.events) == 1
        assert not snapshot.degraded

    def test_non_list_record_is_corrupted(self):
        backend = InMemoryStorage()
        backend.write("inspirasi_analytics_data", json.dumps({"events": []}))
        snapshot = EventStore(backend).read()
        assert snapshot.events == ()
        assert snapshot.degraded

    def test_unreadable_entries_are_skipped(self, make_event):
        backend = InMemoryStorage()
        good = make_event().model_dump(mode="json", by_alias=True)
        backend.write("inspirasi_analytics_data", json.dumps([good, {"id": "broken"}]))

        snapshot = EventStore(backend).read()
        assert len(snapshot.events) == 1
        assert snapshot.issues == ("1 unreadable events skipped",)

    def test_unavailable_backend_never_raises(self, make_event):
        store = EventStore(BrokenStorage())

        assert store.append(make_event()) is False
        assert store.clear() is False
        assert store.clear("user-a") is False
        snapshot = store.read()
        assert snapshot.unavailable
        assert snapshot.degraded
        assert snapshot.events == ()

    def test_quota_exceeded_drops_write(self, make_event):
        store = EventStore(InMemoryStorage(quota_bytes=10))

        assert store.append(make_event()) is False
        snapshot = store.read()
        assert snapshot.events == ()
        assert not snapshot.degraded


class TestSQLStorage:
    def test_events_survive_a_new_store_instance(self, sql_backend, make_event, now):
        first = EventStore(sql_backend)
        first.append(make_event(at=now - timedelta(days=1), data={"author": "Gandhi"}))
        first.append(make_event(user_id="user-b"))

        reopened = EventStore(sql_backend)
        events = reopened.get_all()
        assert [e.user_id for e in events] == ["user-a", "user-b"]
        assert events[0].timestamp == now - timedelta(days=1)
        assert events[0].event_data == {"author": "Gandhi"}

    def test_overwrite_and_clear(self, sql_backend, make_event):
        store = EventStore(sql_backend, StoreConfig(max_events=2))
        for _ in range(3):
            store.append(make_event())
        assert store.count() == 2

        assert store.clear()
        assert store.count() == 0
        assert sql_backend.read(store.key) is None

    def test_separate_keys_are_isolated(self, sql_backend, make_event):
        a = EventStore(sql_backend, StoreConfig(storage_key="app_a"))
        b = EventStore(sql_backend, StoreConfig(storage_key="app_b"))
        a.append(make_event())

        assert a.count() == 1
        assert b.count() == 0

    def test_ping(self, sql_backend):
        assert sql_backend.ping()
