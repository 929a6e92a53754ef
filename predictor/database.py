import functools
from datetime import UTC, datetime
from typing import Any, Callable

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, Session, create_engine

from .logging import get_logger

log = get_logger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create the engine once at process start."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=False, connect_args=connect_args)


def create_db_and_tables(engine: Engine) -> None:
    """Create all database tables."""
    # Register every table on the metadata before creating it
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """Dependency for getting database sessions."""
    with Session(request.app.state.engine) as session:
        yield session


def utcnow() -> datetime:
    """Current time as aware UTC, the form timestamps are stored in."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Aware UTC copy of ``value``; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def fallback_on_unavailable(default: Callable[[], Any]):
    """
    Make a read service return ``default()`` when the store is unreachable.

    The wrapped function must take the session as its first argument.
    Write paths are never wrapped: their failures surface as 503.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return func(db, *args, **kwargs)
            except OperationalError as exc:
                db.rollback()
                log.warning("store_unavailable_fallback", operation=func.__name__, error=str(exc.orig))
                return default()
        return wrapper
    return decorator
