"""
Redis access for the workflow queue.
"""

from .pool import get_redis_pool, close_redis_pool

__all__ = ["get_redis_pool", "close_redis_pool"]
