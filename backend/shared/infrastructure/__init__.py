"""
Infrastructure module: Database, Redis and request correlation.

Provides:
- Database sessions and transactions (db.py)
- Redis connection pool for the workflow queue (redis/)
- Correlation IDs for logs (correlation.py)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
]
