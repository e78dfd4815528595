"""
Harvest CLI Commands
====================

CLI commands for running harvests and inspecting the LFW catalog.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from lfw_harvester.config import HarvestConfig, get_default_config
from lfw_harvester.core.enums import StoreBackend
from lfw_harvester.ingestion.client import JsonPageCache, LfwClient
from lfw_harvester.ingestion.jobs import (
    HarvestResult,
    enqueue_harvest,
    get_job_status,
    run_harvest,
    shared_harvest_lock,
)
from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator, pricing_summary
from lfw_harvester.store.engine import create_store
from lfw_harvester.store.memory import MemoryStore

console = Console()
harvest_app = typer.Typer(help="Harvest commands")


def _load_config(memory: bool) -> HarvestConfig:
    config = get_default_config()
    if memory:
        config.store.backend = StoreBackend.MEMORY
    return config


def _dump(store, dump: Optional[Path]) -> None:
    if dump is None:
        return
    if not isinstance(store, MemoryStore):
        rprint("[yellow]Warning:[/yellow] --dump only works with the memory store")
        return
    store.dump(dump)
    rprint(f"Graph written to [bold]{dump}[/bold]")


async def _run_sync(config: HarvestConfig, dump: Optional[Path]) -> HarvestResult:
    store = create_store(config.store)
    harvester = HarvestOrchestrator.from_config(config, store)
    try:
        return await run_harvest(harvester, shared_harvest_lock(config))
    finally:
        await harvester.close()
        _dump(store, dump)
        await store.close()


@harvest_app.command("run")
def run_harvest_command(
    sync: bool = typer.Option(False, "--sync", help="Run in this process (blocking)"),
    memory: bool = typer.Option(False, "--memory", help="Harvest into an in-memory store"),
    dump: Optional[Path] = typer.Option(None, "--dump", help="Write the memory store as N-Quads"),
) -> None:
    """
    Run a full harvest.

    Examples:
        lfw-harvester harvest run --sync
        lfw-harvester harvest run --sync --memory --dump harvest.nq
        lfw-harvester harvest run
    """
    if sync or memory:
        config = _load_config(memory)
        rprint(f"\n[bold]Harvesting store {config.api.store_id}[/bold] into {config.store.backend.value} store")

        try:
            with console.status("[bold blue]Harvesting...[/bold blue]"):
                result = asyncio.run(_run_sync(config, dump))
        except Exception as e:
            rprint(f"\n[red]Harvest failed:[/red] {e}")
            raise typer.Exit(1)

        _display_harvest_result(result.to_dict())
    else:
        rprint("\n[dim]Enqueueing harvest for the background worker...[/dim]")

        try:
            job_id = asyncio.run(enqueue_harvest())
        except Exception as e:
            rprint(f"\n[red]Error:[/red] Failed to enqueue harvest: {e}")
            rprint("\nMake sure Redis is running")
            raise typer.Exit(1)

        rprint("\n[green]Harvest enqueued successfully![/green]")
        rprint(f"Job ID: [bold]{job_id}[/bold]")
        rprint("\nCheck status with:")
        rprint(f"  lfw-harvester harvest status {job_id}")


@harvest_app.command("worker")
def start_worker(
    burst: bool = typer.Option(False, "--burst", help="Run in burst mode (exit when queue empty)"),
) -> None:
    """
    Start the harvest worker.

    The worker runs queued harvests, and scheduled ones when enabled in the
    configuration.
    """
    from arq import run_worker

    from lfw_harvester.ingestion.jobs import WorkerSettings

    rprint("[bold]Starting harvest worker...[/bold]")
    rprint("Press Ctrl+C to stop\n")

    try:
        run_worker(WorkerSettings, burst=burst)
    except Exception as e:
        rprint(f"[red]Error:[/red] Worker failed: {e}")
        rprint("\nMake sure Redis is running")
        raise typer.Exit(1)


@harvest_app.command("status")
def job_status(
    job_id: str = typer.Argument(..., help="Job ID returned by 'harvest run'"),
) -> None:
    """Check the status of an enqueued harvest."""
    try:
        result = asyncio.run(get_job_status(job_id))
    except Exception as e:
        rprint(f"[red]Error:[/red] Failed to get job status: {e}")
        raise typer.Exit(1)

    if result is None:
        rprint(f"[yellow]Job '{job_id}' not found[/yellow]")
        raise typer.Exit(1)

    rprint(f"\n[bold]Job: {job_id}[/bold]")
    rprint(f"  Status: {result['status']}")
    if isinstance(result.get("result"), dict):
        _display_harvest_result(result["result"])
    elif result.get("success") is False:
        rprint(f"  Error: {result.get('result')}")


@harvest_app.command("suppliers")
def load_suppliers(
    memory: bool = typer.Option(False, "--memory", help="Load into an in-memory store"),
) -> None:
    """Load the supplier roster without harvesting products."""
    config = _load_config(memory)

    async def _load() -> int:
        store = create_store(config.store)
        harvester = HarvestOrchestrator.from_config(config, store)
        try:
            return await harvester.suppliers.load_suppliers()
        finally:
            await harvester.close()
            await store.close()

    count = asyncio.run(_load())
    rprint(f"[green]Loaded {count} suppliers[/green]")


@harvest_app.command("product")
def load_product(
    product_id: int = typer.Argument(..., help="LFW product id"),
    memory: bool = typer.Option(False, "--memory", help="Load into an in-memory store"),
) -> None:
    """
    Load a single product from its detail page.

    Examples:
        lfw-harvester harvest product 181 --memory
    """
    config = _load_config(memory)

    async def _load():
        store = create_store(config.store)
        harvester = HarvestOrchestrator.from_config(config, store)
        try:
            return await harvester.reconciler.load_product({"id": product_id}, external=True)
        finally:
            await harvester.close()
            await store.close()

    try:
        result = asyncio.run(_load())
    except Exception as e:
        rprint(f"[red]Error:[/red] Failed to load product {product_id}: {e}")
        raise typer.Exit(1)

    rprint(f"\n[bold]Product {product_id}[/bold]")
    rprint(f"  URI: {result.product_uri}" + (" [green](new)[/green]" if result.created else ""))
    if result.excluded:
        rprint("  [yellow]Supplier is ignored, only the identifier was stored[/yellow]")
        return
    rprint(f"  Offering: {result.offering_uri}")
    rprint(f"  Thumbnail: {result.picture.value if result.picture else 'N/A'}")
    rprint(f"  Supplier: {result.supplier_uri or 'not linked'}")


@harvest_app.command("page")
def show_page(
    page: int = typer.Argument(0, help="Zero based page number"),
) -> None:
    """Show the pricing units of the products on a catalog page."""
    config = get_default_config()

    async def _fetch():
        client = LfwClient.from_config(config.api)
        try:
            return await client.fetch_page(page)
        finally:
            await client.close()

    try:
        catalog_page = asyncio.run(_fetch())
    except Exception as e:
        rprint(f"[red]Error:[/red] Failed to fetch page {page}: {e}")
        raise typer.Exit(1)

    table = Table(title=f"Catalog page {page}" + (" (last)" if catalog_page.last else ""))
    table.add_column("ID", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Measurement unit")
    table.add_column("Order unit")
    table.add_column("Factor", justify="right")

    for row in pricing_summary(catalog_page.content):
        table.add_row(
            str(row["id"]),
            row["name"] or "",
            row["measurement_unit"] or "",
            row["order_unit"] or "",
            str(row["factor"]) if row["factor"] is not None else "",
        )

    console.print(table)


@harvest_app.command("clear-cache")
def clear_cache() -> None:
    """Remove all cached LFW API documents."""
    api = get_default_config().api
    if not api.cache_dir:
        rprint("[yellow]Page cache is disabled[/yellow]")
        return
    removed = JsonPageCache(api.cache_dir).clear()
    rprint(f"Removed {removed} cached documents from {api.cache_dir}")


def _display_harvest_result(result: dict) -> None:
    """Display a harvest result."""
    status = result.get("status", "unknown")
    status_color = {
        "finished": "green",
        "running": "blue",
        "error": "red",
    }.get(status, "white")

    rprint("\n[bold]Results:[/bold]")
    rprint(f"  Status: [{status_color}]{status}[/{status_color}]")
    rprint(f"  Job: {result.get('job_uri', 'N/A')}")

    if result.get("duration_seconds"):
        rprint(f"  Duration: {result['duration_seconds']:.1f}s")

    rprint("\n[bold]Statistics:[/bold]")
    rprint(f"  Suppliers: {result.get('suppliers_loaded', 0)}")
    rprint(f"  Pages: {result.get('pages_loaded', 0)}")
    rprint(f"  Products: {result.get('products_loaded', 0)}")
    rprint(f"  New products: {result.get('products_created', 0)}")
    rprint(f"  Excluded products: {result.get('products_excluded', 0)}")

    errors = result.get("errors", [])
    if errors:
        rprint(f"\n[bold red]Errors ({len(errors)}):[/bold red]")
        for error in errors[:10]:
            rprint(f"  • {error}")
