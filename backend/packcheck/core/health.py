"""Dependency probes shared by /api/health/detailed and ``packcheck health``."""

import time
from dataclasses import asdict, dataclass

from sqlalchemy import text

from shared.infrastructure.db import SessionLocal
from shared.infrastructure.redis import get_redis_pool


@dataclass
class ProbeResult:
    name: str
    healthy: bool
    latency_ms: float | None = None
    error: str | None = None

    def as_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None and k != "name"}


def probe_database() -> ProbeResult:
    started = time.perf_counter()
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception as e:
        return ProbeResult("database", False, error=f"{type(e).__name__}: {e}")
    return ProbeResult("database", True, round((time.perf_counter() - started) * 1000, 1))


async def probe_redis() -> ProbeResult:
    started = time.perf_counter()
    try:
        await (await get_redis_pool()).ping()
    except Exception as e:
        return ProbeResult("redis", False, error=f"{type(e).__name__}: {e}")
    return ProbeResult("redis", True, round((time.perf_counter() - started) * 1000, 1))


async def probe_all() -> list[ProbeResult]:
    return [probe_database(), await probe_redis()]
