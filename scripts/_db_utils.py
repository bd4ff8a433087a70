from __future__ import annotations

import os
from contextlib import contextmanager
from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker


def resolve_database_url(database_url: str | None = None) -> str:
    """Explicit url, else DATABASE_URL, else the local sqlite file the app defaults to."""
    return (database_url or os.environ.get("DATABASE_URL") or "sqlite:///storeapi.db").strip()


def create_script_engine(db_url: str) -> Engine:
    engine = create_engine(db_url, future=True, pool_pre_ping=True)
    if db_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _sqlite_foreign_keys(dbapi_connection, connection_record):  # type: ignore[no-redef]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


@contextmanager
def script_session(db_url: str) -> Generator[Session, None, None]:
    """Session for one-off scripts: commits on success, disposes the engine afterwards."""
    engine = create_script_engine(db_url)
    s: Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
