"""Database configuration and session utilities for the SQL blob store."""
from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Base declarative class for SQLAlchemy models."""


def _resolve_sqlite_url(database_url: str) -> str:
    url = make_url(database_url)
    database_path = url.database
    if not database_path or database_path == ":memory:":
        return database_url

    # Normalise file URIs and ensure the directory exists before connecting.
    if database_path.startswith("file:"):
        database_path = database_path.replace("file:", "", 1)

    resolved_path = Path(database_path)
    if not resolved_path.is_absolute():
        resolved_path = (Path.cwd() / resolved_path).resolve(strict=False)
    else:
        resolved_path = resolved_path.expanduser().resolve(strict=False)

    os.makedirs(resolved_path.parent, exist_ok=True)
    return url.set(database=resolved_path.as_posix()).render_as_string(hide_password=False)


def create_db_engine(database_url: str, timeout: float | None = None) -> Engine:
    url = make_url(database_url)
    connect_args: dict[str, Any] = {}
    engine_kwargs: dict[str, Any] = {}
    if url.drivername.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if timeout is not None:
            connect_args["timeout"] = timeout
        if url.database in (None, "", ":memory:"):
            # A single shared connection keeps in-memory data visible across sessions.
            engine_kwargs["poolclass"] = StaticPool
        else:
            database_url = _resolve_sqlite_url(database_url)
    return create_engine(database_url, connect_args=connect_args, future=True, **engine_kwargs)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    # Import models within the function to avoid circular imports.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session, future=True)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
