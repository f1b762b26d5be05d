"""Engine and session helpers for the state database."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from sunrise.core.config import settings


def make_engine(url: str | None = None) -> Engine:
    database_url = url or settings.database_url
    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        # sessions are not tied to the creating thread
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=False, pool_pre_ping=True, connect_args=connect_args)


engine = make_engine()


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables; alembic owns schema changes after that."""
    from sunrise import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


@contextmanager
def get_session(bind: Engine | None = None) -> Iterator[Session]:
    session = Session(bind or engine)
    try:
        yield session
    finally:
        session.close()


__all__ = ["engine", "get_session", "init_db", "make_engine"]
