"""
Process-wide async Redis client.

The dispatcher, the worker and the health check share one client. It is
built on first use inside the running event loop and dropped on shutdown.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

_client: redis.Redis | None = None
_lock: asyncio.Lock | None = None


def _build_client() -> redis.Redis:
    return redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_max_connections,
        decode_responses=True,
        socket_connect_timeout=settings.redis_socket_timeout,
        # XREADGROUP blocks up to the worker's block window, reads must outlast it
        socket_timeout=settings.redis_socket_timeout + 5,
        health_check_interval=30,
    )


async def get_redis_pool() -> redis.Redis:
    global _client, _lock

    if _client is None:
        if _lock is None:
            _lock = asyncio.Lock()
        async with _lock:
            if _client is None:
                _client = _build_client()
                logger.info(
                    "Redis client ready",
                    url=settings.redis_url.rsplit("@", 1)[-1],
                    max_connections=settings.redis_pool_max_connections,
                )
    return _client


async def close_redis_pool() -> None:
    """Close the shared client. The next get_redis_pool() builds a new one."""
    global _client, _lock

    client, _client, _lock = _client, None, None
    if client is not None:
        await client.aclose()
        logger.info("Redis client closed")
