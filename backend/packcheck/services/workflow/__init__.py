"""
Background workflows over a Redis stream.

- dispatcher.py: enqueue jobs (HTTP side)
- worker.py: consumer group loop with PEL recovery and a dead-letter stream
- handlers.py: process_order and verify_visual jobs
"""

from .dispatcher import WorkflowDispatcher, encode_job, get_workflow_dispatcher
from .handlers import build_handlers, process_order, verify_visual
from .worker import WorkflowWorker, calculate_error_backoff

__all__ = [
    "WorkflowDispatcher",
    "encode_job",
    "get_workflow_dispatcher",
    "build_handlers",
    "process_order",
    "verify_visual",
    "WorkflowWorker",
    "calculate_error_backoff",
]
