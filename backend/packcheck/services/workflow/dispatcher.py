"""
Workflow dispatcher.

Jobs are appended to a Redis stream as a single JSON ``data`` field:

    {"workflow": "verify_visual", "payload": {...},
     "request_id": "...", "enqueued_at": 1718000000.0}

A consumer group (see worker.py) gives at-least-once delivery, so every
job handler must tolerate being run twice.
"""

from __future__ import annotations

import json
import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.config.constants import Workflow
from shared.config.logging import workflow_logger as logger
from shared.config.settings import settings
from shared.infrastructure.correlation import get_request_id
from shared.infrastructure.redis import get_redis_pool
from shared.utils.exceptions import ExternalServiceError, ValidationError

# Bound the stream; acknowledged entries past this are trimmed
STREAM_MAXLEN = 10000


def encode_job(workflow: str, payload: dict[str, Any]) -> dict[str, str]:
    return {
        "data": json.dumps(
            {
                "workflow": workflow,
                "payload": payload,
                "request_id": get_request_id() or None,
                "enqueued_at": time.time(),
            }
        )
    }


class WorkflowDispatcher:
    """Enqueues background jobs on the workflow stream."""

    def __init__(self, redis_client: redis.Redis, stream: str | None = None):
        self._redis = redis_client
        self._stream = stream or settings.workflow_stream

    @property
    def stream(self) -> str:
        return self._stream

    async def dispatch(self, workflow: str, payload: dict[str, Any]) -> str:
        """
        Enqueue ``workflow`` with ``payload`` and return the stream entry id.

        Raises:
            ValidationError: unknown workflow name.
            ExternalServiceError: the queue is unreachable (503).
        """
        if workflow not in Workflow.ALL:
            raise ValidationError(f"Unknown workflow '{workflow}'")

        try:
            job_id = await self._redis.xadd(
                self._stream,
                encode_job(workflow, payload),
                maxlen=STREAM_MAXLEN,
                approximate=True,
            )
        except RedisError as e:
            raise ExternalServiceError(
                "workflow queue", is_unavailable=True, workflow=workflow, error=str(e)
            ) from e

        if isinstance(job_id, bytes):
            job_id = job_id.decode("utf-8")
        logger.info("Workflow dispatched", workflow=workflow, job_id=job_id)
        return job_id


async def get_workflow_dispatcher() -> WorkflowDispatcher:
    """FastAPI dependency bound to the shared Redis pool."""
    return WorkflowDispatcher(await get_redis_pool())
