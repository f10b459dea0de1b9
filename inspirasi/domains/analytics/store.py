"""Bounded, append-only analytics event log.

The log is persisted as one namespaced JSON record. Appending beyond the
retention cap evicts the oldest appended events first. Storage failures
never propagate: writes are dropped and reads degrade to what could be
recovered, with the degradation reported on the returned snapshot.
"""

import json
import threading
from dataclasses import dataclass, field

import structlog
from pydantic import ValidationError

from .config import StoreConfig
from .models import AnalyticsEvent
from .storage import StorageBackend, StorageError

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoreSnapshot:
    """Result of reading the persisted log."""

    events: tuple[AnalyticsEvent, ...] = ()
    issues: tuple[str, ...] = field(default_factory=tuple)
    # The backend could not be read at all
    unavailable: bool = False

    @property
    def degraded(self) -> bool:
        return bool(self.issues)


class EventStore:
    """Append-only event log with FIFO eviction at ``max_events``.

    One instance is the single writer for its storage key; the lock only
    serializes read-modify-write cycles inside this process.
    """

    def __init__(self, backend: StorageBackend, config: StoreConfig | None = None) -> None:
        self._backend = backend
        self._config = config or StoreConfig()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._config.max_events

    @property
    def key(self) -> str:
        return self._config.storage_key

    def append(self, event: AnalyticsEvent) -> bool:
        """Add an event to the tail, evicting from the head past capacity.

        Returns False when the write was dropped.
        """
        return self.extend([event])

    def extend(self, new_events: list[AnalyticsEvent]) -> bool:
        """Append several events in order with a single write."""
        with self._lock:
            snapshot = self._load()
            if snapshot.unavailable:
                logger.warning("analytics_events_dropped", count=len(new_events))
                return False
            events = [*snapshot.events, *new_events]
            evicted = max(len(events) - self.capacity, 0)
            if evicted:
                events = events[evicted:]
            written = self._save(events)

        if written and evicted:
            logger.debug("analytics_events_evicted", count=evicted, capacity=self.capacity)
        return written

    def read(self) -> StoreSnapshot:
        with self._lock:
            return self._load()

    def get_all(self) -> tuple[AnalyticsEvent, ...]:
        return self.read().events

    def count(self) -> int:
        return len(self.get_all())

    def clear(self, user_id: str | None = None) -> bool:
        """Erase one user's events, or the whole log when no user is given."""
        with self._lock:
            if user_id is None:
                try:
                    self._backend.delete(self.key)
                except StorageError as exc:
                    logger.warning("analytics_clear_failed", key=self.key, error=str(exc))
                    return False
                logger.info("analytics_data_cleared", key=self.key)
                return True

            snapshot = self._load()
            if snapshot.unavailable:
                return False
            remaining = [e for e in snapshot.events if e.user_id != user_id]
            removed = len(snapshot.events) - len(remaining)
            written = self._save(remaining)

        if written:
            logger.info("analytics_user_data_cleared", user_id=user_id, removed=removed)
        return written

    def ping(self) -> bool:
        return self._backend.ping()

    # --- Persistence helpers ---

    def _load(self) -> StoreSnapshot:
        try:
            raw = self._backend.read(self.key)
        except StorageError as exc:
            logger.warning("analytics_load_failed", key=self.key, error=str(exc))
            return StoreSnapshot(issues=(f"storage unavailable: {exc}",), unavailable=True)

        if not raw:
            return StoreSnapshot()

        try:
            records = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("analytics_data_corrupted", key=self.key, error=str(exc))
            return StoreSnapshot(issues=("persisted event log is corrupted",))

        if not isinstance(records, list):
            logger.warning("analytics_data_corrupted", key=self.key, error="not a list")
            return StoreSnapshot(issues=("persisted event log is corrupted",))

        events: list[AnalyticsEvent] = []
        skipped = 0
        for record in records:
            try:
                events.append(AnalyticsEvent.model_validate(record))
            except ValidationError:
                skipped += 1

        issues: tuple[str, ...] = ()
        if skipped:
            logger.warning("analytics_events_skipped", key=self.key, skipped=skipped)
            issues = (f"{skipped} unreadable events skipped",)
        return StoreSnapshot(events=tuple(events), issues=issues)

    def _save(self, events: list[AnalyticsEvent]) -> bool:
        payload = json.dumps(
            [e.model_dump(mode="json", by_alias=True) for e in events],
            ensure_ascii=False,
        )
        try:
            self._backend.write(self.key, payload)
        except StorageError as exc:
            logger.warning(
                "analytics_save_failed", key=self.key, events=len(events), error=str(exc)
            )
            return False
        return True
