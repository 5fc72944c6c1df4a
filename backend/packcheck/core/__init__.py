"""Application wiring: lifespan and CORS."""

from .cors import configure_cors, get_cors_origins
from .lifespan import check_configuration, lifespan

__all__ = ["configure_cors", "get_cors_origins", "check_configuration", "lifespan"]
