"""
Engine and sessions (SQLAlchemy 2.0, synchronous).

Routers get a session per request through ``get_db``; the worker, the CLI
and the cron sweep open their own with ``get_db_context``. Services commit
through ``safe_commit`` so a failed commit never leaves the session dirty.
"""

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from shared.config.settings import settings


def _engine_kwargs(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # API workers and the queue worker share the server, keep the pool modest
    return {
        "pool_pre_ping": True,
        "pool_size": min((os.cpu_count() or 4) * 2 + 1, 20),
        "max_overflow": 10,
        "pool_recycle": 1800,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(
    settings.database_url, echo=settings.database_echo, **_engine_kwargs(settings.database_url)
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def get_db_context() -> Iterator[Session]:
    """Session for code running outside a request: ``with get_db_context() as db:``."""
    with SessionLocal() as db:
        yield db


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency, closed when the response is sent."""
    with get_db_context() as db:
        yield db


def safe_commit(db: Session) -> None:
    """Commit, or roll back and re-raise."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
