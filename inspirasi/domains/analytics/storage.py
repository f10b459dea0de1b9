"""Key/value persistence backends for the serialized event log.

Backends raise ``StorageError`` subclasses; the event store is the layer
that catches them and degrades.
"""

from datetime import UTC, datetime
from typing import Protocol

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inspirasi.db.models import AnalyticsRecord

logger = structlog.get_logger()


class StorageError(Exception):
    """Base class for persistence failures."""


class StorageUnavailableError(StorageError):
    pass


class StorageQuotaExceededError(StorageError):
    pass


class StorageBackend(Protocol):
    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def ping(self) -> bool: ...


class InMemoryStorage:
    """Process-local backend with an optional byte quota per record."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._records: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._records.get(key)

    def write(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if self.quota_bytes is not None and size > self.quota_bytes:
            raise StorageQuotaExceededError(
                f"record {key!r} is {size} bytes, quota is {self.quota_bytes}"
            )
        self._records[key] = value

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def ping(self) -> bool:
        return True


class SQLStorage:
    """Backend storing each namespaced record as one row."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def read(self, key: str) -> str | None:
        try:
            with self._session_factory() as session:
                row = session.get(AnalyticsRecord, key)
                return row.payload if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(str(exc)) from exc

    def write(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                row = session.get(AnalyticsRecord, key)
                if row is None:
                    session.add(
                        AnalyticsRecord(key=key, payload=value, updated_at=datetime.now(UTC))
                    )
                else:
                    row.payload = value
                    row.updated_at = datetime.now(UTC)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                row = session.get(AnalyticsRecord, key)
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(str(exc)) from exc

    def ping(self) -> bool:
        try:
            with self._session_factory() as session:
                session.get(AnalyticsRecord, "__ping__")
            return True
        except SQLAlchemyError:
            logger.warning("storage_ping_failed", exc_info=True)
            return False
