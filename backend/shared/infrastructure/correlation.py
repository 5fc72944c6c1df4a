"""
Correlation ids.

An id is bound per HTTP request (from X-Request-ID, or fresh) and travels
with every workflow job the request enqueues, so a webhook and the job it
triggered log under the same id.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    return request_id_var.get()


@contextmanager
def bind_request_id(request_id: str | None = None) -> Iterator[str]:
    """Bind ``request_id`` (or a new one) for the block: worker jobs, CLI commands."""
    token = request_id_var.set(request_id or uuid.uuid4().hex)
    try:
        yield request_id_var.get()
    finally:
        request_id_var.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds the request's correlation id and echoes it in the response headers."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with bind_request_id(request.headers.get(HEADER)) as request_id:
            response = await call_next(request)
        response.headers[HEADER] = request_id
        return response


class CorrelationIdFilter(logging.Filter):
    """Stamps ``request_id`` ("-" when unbound) on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
