"""
Structured logging.

Every module logs through ``get_logger(__name__)``; keyword arguments become
structured fields:

    logger.info("Weight recorded", order_id=12, delta=-150)

Production renders one JSON object per line, development a colored line
with the fields appended. Records carry the correlation id when one is bound.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

# Third-party loggers and the level they are capped at
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "redis": logging.WARNING,
}


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    return request_id if request_id and request_id != "-" else None


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if request_id := _request_id(record):
            entry["request_id"] = request_id
        if fields := _fields(record):
            entry["data"] = fields
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["at"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored single-line output for a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        when = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{color}{when} {record.levelname:<8}{self.RESET}"]

        if request_id := _request_id(record):
            parts.append(f"{self.DIM}{request_id[:8]}{self.RESET}")
        parts.append(f"{record.name}: {record.getMessage()}")
        parts.extend(f"{self.DIM}{key}={value}{self.RESET}" for key, value in _fields(record).items())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """
    Logger whose methods accept arbitrary keyword fields.

    The standard keywords (exc_info, extra, stack_info, stacklevel) keep
    their meaning; everything else is stored on the record as ``extra_data``.
    """

    def _log(
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **fields: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["extra_data"] = fields or None
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel,
        )


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Call once per process."""
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(
        StructuredFormatter() if settings.environment == "production" else DevelopmentFormatter()
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name, cap in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(cap)


def get_logger(name: str) -> StructuredLogger:
    """
    Logger for ``name`` (usually ``__name__``).

        logger = get_logger(__name__)
        logger.error("Structuring failed", tenant_id=1, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """"orders@taqueria.test" -> "or***@taqueria.test"."""
    if not email:
        return "<no-email>"
    local, sep, domain = email.partition("@")
    if not sep or not local:
        return "***@invalid"
    return f"{local[:2]}***@{domain}"


# Component loggers
api_logger = get_logger("packcheck.api")
workflow_logger = get_logger("packcheck.workflow")
lifecycle_logger = get_logger("packcheck.lifecycle")
