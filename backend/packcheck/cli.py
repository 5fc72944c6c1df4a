"""
PackCheck CLI.

Command-line interface for operating the order lifecycle engine.
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from shared.config.logging import setup_logging
from shared.config.settings import settings
from shared.infrastructure.correlation import bind_request_id
from shared.utils.exceptions import AppException

app = typer.Typer(
    name="packcheck",
    help="PackCheck order lifecycle CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================


@app.command()
def init_db():
    """Create all tables."""
    from packcheck.models import Base
    from shared.infrastructure.db import engine

    console.print("[blue]Creating tables...[/blue]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓ Tables created/verified[/green]")


@app.command()
def archive_sweep():
    """Archive pending_weight orders inactive for the configured window."""
    from packcheck.services.domain import archive_inactive_orders
    from shared.infrastructure.db import get_db_context

    setup_logging()
    with bind_request_id(), get_db_context() as db:
        try:
            result = archive_inactive_orders(db)
        except AppException as e:
            console.print(f"[red]✗ Sweep failed: {e.detail}[/red]")
            raise typer.Exit(1)

    console.print(
        f"[green]✓ Archived {result.archived} order(s) across {result.tenants} tenant(s)[/green]"
    )


@app.command()
def show_order(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    order_id: int = typer.Argument(..., help="Order id"),
):
    """Show an order with its items and audit trail."""
    from packcheck.repositories import get_order_event_repository, get_order_repository
    from packcheck.services.verification import format_weight
    from shared.infrastructure.db import get_db_context

    with get_db_context() as db:
        order = get_order_repository(db, tenant_id).find_by_id(order_id)
        if order is None:
            console.print(f"[red]Order {order_id} not found for tenant {tenant_id}[/red]")
            raise typer.Exit(1)

        summary = Table(title=f"Order {order.id} · check {order.check_number}")
        summary.add_column("Field", style="cyan")
        summary.add_column("Value", style="green")
        summary.add_row("Status", order.status)
        summary.add_row("Customer", order.customer_name)
        summary.add_row("Channel", order.channel)
        summary.add_row("Expected", format_weight(order.expected_weight))
        if order.actual_weight is not None:
            summary.add_row("Actual", format_weight(order.actual_weight))
            summary.add_row("Delta", f"{order.delta_weight} g")
        summary.add_row("Visual", order.visual_status or "-")
        console.print(summary)

        items = Table(title="Items")
        items.add_column("Qty", justify="right")
        items.add_column("Name", style="cyan")
        items.add_column("Modifiers")
        for item in order.items:
            items.add_row(str(item.quantity), item.name, ", ".join(m.name for m in item.modifiers))
        console.print(items)

        events = Table(title="Events")
        events.add_column("When", style="yellow")
        events.add_column("Type", style="cyan")
        events.add_column("Actor")
        events.add_column("Data")
        for event in get_order_event_repository(db, tenant_id).find_for_order(order.id):
            events.add_row(
                event.created_at.isoformat(timespec="seconds"),
                event.event_type,
                event.actor_id or "system",
                str(event.event_data),
            )
        console.print(events)


# =============================================================================
# Workflow Commands
# =============================================================================


@app.command()
def worker(
    consumer: Optional[str] = typer.Option(None, help="Consumer name (defaults to worker-<hostname>)"),
):
    """Run the workflow worker until interrupted."""
    from packcheck.services.ai import close_gemini_client
    from packcheck.services.workflow import WorkflowWorker, build_handlers
    from shared.infrastructure.redis import close_redis_pool, get_redis_pool

    setup_logging()

    async def _run():
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

        redis = await get_redis_pool()
        job_worker = WorkflowWorker(redis, build_handlers(), consumer=consumer)
        console.print(
            f"[blue]Worker {job_worker.consumer} consuming {job_worker.stream}[/blue]"
        )
        try:
            await job_worker.run(stop)
        finally:
            await close_gemini_client()
            await close_redis_pool()

    asyncio.run(_run())
    console.print("[green]✓ Worker stopped[/green]")


@app.command()
def ingest(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Raw order text file"),
):
    """Queue a process_order job for a raw order text file."""
    from packcheck.services.workflow import WorkflowDispatcher
    from shared.config.constants import Workflow
    from shared.infrastructure.redis import close_redis_pool, get_redis_pool

    raw_text = path.read_text(encoding="utf-8")

    async def _dispatch() -> str:
        try:
            dispatcher = WorkflowDispatcher(await get_redis_pool())
            return await dispatcher.dispatch(
                Workflow.PROCESS_ORDER, {"tenant_id": tenant_id, "raw_text": raw_text}
            )
        finally:
            await close_redis_pool()

    with bind_request_id():
        job_id = asyncio.run(_dispatch())
    console.print(f"[green]✓ Queued job {job_id}[/green]")


@app.command()
def dlq_stats(
    count: int = typer.Option(20, help="Entries to show"),
):
    """Show the most recent dead-lettered jobs."""
    from shared.infrastructure.redis import close_redis_pool, get_redis_pool

    async def _stats():
        redis = await get_redis_pool()
        try:
            total = await redis.xlen(settings.workflow_dlq_stream)
            entries = await redis.xrevrange(settings.workflow_dlq_stream, count=count)
        finally:
            await close_redis_pool()

        table = Table(title=f"DLQ {settings.workflow_dlq_stream} ({total} entries)")
        table.add_column("Id", style="cyan")
        table.add_column("Reason", style="red")
        table.add_column("Retries", style="yellow")
        for entry_id, fields in entries:
            table.add_row(entry_id, fields.get("reason", "?"), fields.get("retry_count", "0"))
        console.print(table)
        if not total:
            console.print("[green]✓ No failed jobs[/green]")

    asyncio.run(_stats())


# =============================================================================
# Health Commands
# =============================================================================


@app.command()
def health():
    """Check database and Redis connectivity."""
    from packcheck.core.health import probe_all
    from shared.infrastructure.redis import close_redis_pool

    async def _probe():
        try:
            return await probe_all()
        finally:
            await close_redis_pool()

    table = Table(title="Dependency Health")
    table.add_column("Dependency", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")
    results = asyncio.run(_probe())
    for result in results:
        if result.healthy:
            table.add_row(result.name, "✓ Healthy", f"{result.latency_ms:.0f}ms")
        else:
            table.add_row(result.name, f"✗ {result.error}", "-")
    console.print(table)

    if not all(result.healthy for result in results):
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    from packcheck import __version__

    table = Table(title="PackCheck Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("PackCheck", __version__)
    table.add_row("Python", sys.version.split()[0])
    console.print(table)


if __name__ == "__main__":
    app()
