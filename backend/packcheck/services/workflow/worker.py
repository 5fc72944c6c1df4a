"""
Workflow worker.

Consumes the workflow stream through a consumer group:

1. Ensures the consumer group exists (MKSTREAM).
2. Reads new jobs (>) via XREADGROUP and runs their handler.
3. Acknowledges (XACK) on success or on a failure retrying cannot fix.
4. Leaves other failures in the PEL; they are reclaimed with XAUTOCLAIM
   and moved to the dead-letter stream after ``max_retries`` deliveries.
"""

from __future__ import annotations

import asyncio
import json
import random
import socket
import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import ResponseError

from packcheck.services.workflow.handlers import JobHandler
from shared.config.logging import workflow_logger as logger
from shared.config.settings import settings
from shared.infrastructure.correlation import bind_request_id
from shared.utils.exceptions import AppException

BATCH_COUNT = 10
BLOCK_MS = 2000

# PEL recovery
PEL_CHECK_INTERVAL_CYCLES = 30
PEL_MIN_IDLE_MS = 60000

# Error backoff
ERROR_BASE_DELAY = 1.0
ERROR_MAX_DELAY = 30.0
ERROR_JITTER_FACTOR = 0.3

DLQ_MAXLEN = 1000


def calculate_error_backoff(error_count: int) -> float:
    """Exponential backoff capped at ERROR_MAX_DELAY, plus up to 30% jitter."""
    delay = min(ERROR_BASE_DELAY * (2 ** (error_count - 1)), ERROR_MAX_DELAY)
    return delay + delay * ERROR_JITTER_FACTOR * random.random()


def _field(fields: dict | None, name: str) -> str | None:
    if not fields:
        return None
    value = fields.get(name) or fields.get(name.encode())
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return value


class WorkflowWorker:
    """Runs workflow jobs from the Redis stream."""

    def __init__(
        self,
        redis_client: redis.Redis,
        handlers: dict[str, JobHandler],
        stream: str | None = None,
        group: str | None = None,
        consumer: str | None = None,
        max_retries: int | None = None,
        dlq_stream: str | None = None,
    ):
        self._redis = redis_client
        self._handlers = handlers
        self.stream = stream or settings.workflow_stream
        self.group = group or settings.workflow_consumer_group
        self.consumer = consumer or f"worker-{socket.gethostname()}"
        self.max_retries = max_retries or settings.workflow_max_retries
        self.dlq_stream = dlq_stream or settings.workflow_dlq_stream
        self._error_count = 0

    async def ensure_group(self) -> None:
        try:
            await self._redis.xgroup_create(
                name=self.stream, groupname=self.group, id="0", mkstream=True
            )
            logger.info("Created consumer group", stream=self.stream, group=self.group)
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise
            logger.debug("Consumer group already exists", stream=self.stream, group=self.group)

    async def _dead_letter(
        self, message_id: str, data: str | None, reason: str, retry_count: int = 0
    ) -> None:
        """Copy a job to the dead-letter stream and acknowledge the original."""
        await self._redis.xadd(
            self.dlq_stream,
            {
                "original_id": str(message_id),
                "original_stream": self.stream,
                "data": data or "",
                "reason": reason,
                "retry_count": str(retry_count),
                "failed_at": str(time.time()),
                "consumer": self.consumer,
            },
            maxlen=DLQ_MAXLEN,
        )
        await self._redis.xack(self.stream, self.group, message_id)
        logger.error("Job moved to DLQ", msg_id=message_id, reason=reason, retries=retry_count)

    async def process_message(
        self, message_id: str, fields: dict | None, is_retry: bool = False
    ) -> bool:
        """
        Run one job. Returns True when the message was acknowledged
        (done or dead-lettered), False when it stays pending for retry.
        """
        data = _field(fields, "data")
        try:
            job: dict[str, Any] = json.loads(data) if data else {}
        except json.JSONDecodeError:
            await self._dead_letter(message_id, data, "invalid JSON")
            return True

        workflow = job.get("workflow")
        handler = self._handlers.get(workflow)
        if handler is None:
            await self._dead_letter(message_id, data, f"unknown workflow '{workflow}'")
            return True

        with bind_request_id(job.get("request_id")):
            try:
                result = await handler(job.get("payload") or {})
            except AppException as e:
                if e.retryable:
                    logger.warning(
                        "Job failed, will retry",
                        msg_id=message_id,
                        workflow=workflow,
                        error=e.detail,
                        is_retry=is_retry,
                    )
                    return False
                await self._dead_letter(message_id, data, str(e.detail))
                return True
            except Exception as e:
                logger.error(
                    "Job crashed, will retry",
                    msg_id=message_id,
                    workflow=workflow,
                    error=str(e),
                    is_retry=is_retry,
                )
                return False

            await self._redis.xack(self.stream, self.group, message_id)
            logger.info("Job completed", msg_id=message_id, workflow=workflow, result=result)
            return True

    async def _delivery_count(self, message_id: str) -> int:
        pending = await self._redis.xpending_range(
            name=self.stream,
            groupname=self.group,
            min=message_id,
            max=message_id,
            count=1,
        )
        if pending:
            return pending[0].get("times_delivered", 0)
        return 0

    async def recover_pending(self) -> int:
        """
        Reclaim jobs left pending by crashed or failed runs.
        Returns the number that now succeeded.
        """
        result = await self._redis.xautoclaim(
            name=self.stream,
            groupname=self.group,
            consumername=self.consumer,
            min_idle_time=PEL_MIN_IDLE_MS,
            start_id="0-0",
            count=BATCH_COUNT,
        )
        if not result or len(result) < 2 or not result[1]:
            return 0

        recovered = 0
        for message_id, fields in result[1]:
            retries = await self._delivery_count(message_id)
            if retries >= self.max_retries:
                await self._dead_letter(
                    message_id, _field(fields, "data"), "max retries exceeded", retries
                )
                continue
            if await self.process_message(message_id, fields, is_retry=True):
                recovered += 1

        if recovered:
            logger.info("Recovered pending jobs", count=recovered)
        return recovered

    async def run_once(self) -> int:
        """Read and process one batch. Returns the number of messages read."""
        entries = await self._redis.xreadgroup(
            groupname=self.group,
            consumername=self.consumer,
            streams={self.stream: ">"},
            count=BATCH_COUNT,
            block=BLOCK_MS,
        )
        count = 0
        for _stream, messages in entries or []:
            for message_id, fields in messages:
                await self.process_message(message_id, fields)
                count += 1
        return count

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Consume until ``stop`` is set or the task is cancelled."""
        stop = stop or asyncio.Event()
        await self.ensure_group()
        logger.info(
            "Starting workflow worker",
            stream=self.stream,
            group=self.group,
            consumer=self.consumer,
        )
        await self.recover_pending()

        cycle = 0
        while not stop.is_set():
            try:
                cycle += 1
                if cycle % PEL_CHECK_INTERVAL_CYCLES == 0:
                    await self.recover_pending()
                await self.run_once()
                self._error_count = 0
            except asyncio.CancelledError:
                logger.info("Workflow worker cancelled")
                break
            except ResponseError as e:
                if "NOGROUP" in str(e):
                    logger.warning("Consumer group was deleted externally, recreating")
                    await self.ensure_group()
                    continue
                await self._backoff(e)
            except Exception as e:
                await self._backoff(e)

        logger.info("Workflow worker stopped")

    async def _backoff(self, error: Exception) -> None:
        self._error_count += 1
        delay = calculate_error_backoff(self._error_count)
        logger.error(
            "Error in workflow worker loop",
            error=str(error),
            delay=round(delay, 2),
            error_count=self._error_count,
        )
        await asyncio.sleep(delay)
