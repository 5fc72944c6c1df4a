"""Startup and shutdown of the API process."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from packcheck.models import Base
from packcheck.services.ai import close_gemini_client
from shared.config.logging import api_logger as logger, setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import engine
from shared.infrastructure.redis import close_redis_pool


def check_configuration() -> None:
    """
    Log every insecure setting. In production any of them aborts startup.
    """
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Insecure configuration", problem=problem)
    if problems and settings.environment == "production":
        raise RuntimeError("Refusing to start: " + "; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()

    Base.metadata.create_all(bind=engine)
    logger.info("PackCheck API started", env=settings.environment, port=settings.rest_api_port)

    yield

    # Clients are created lazily, closing an unused one is a no-op
    await close_redis_pool()
    await close_gemini_client()
    logger.info("PackCheck API stopped")
