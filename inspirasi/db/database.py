"""SQLAlchemy engine and session management."""

from typing import Any

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = structlog.get_logger()

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def build_engine(database_url: str, echo: bool = False) -> Engine:
    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # FastAPI serves sync endpoints from a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
    if database_url in _MEMORY_URLS:
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    from inspirasi.db.models import Base

    Base.metadata.create_all(engine)
    logger.info("database_initialized", url=engine.url.render_as_string(hide_password=True))
