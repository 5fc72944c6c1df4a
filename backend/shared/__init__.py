"""
Shared module for cross-cutting concerns used by the API, the workflow
worker and the CLI.

STRUCTURE:
- shared.infrastructure: Database, Redis and correlation
  - db.py: SQLAlchemy sessions, safe_commit()
  - redis/pool.py: async Redis pool for the workflow stream
  - correlation.py: X-Request-ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: OrderStatus, EventType, VisualStatus, Limits

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging and retry hints
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import OrderStatus, EventType
    from shared.utils.exceptions import OrderNotFoundError, InvalidTransitionError
"""
