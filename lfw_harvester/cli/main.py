"""LFW Harvester CLI using Typer."""

import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

from lfw_harvester.cli.harvest import harvest_app

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

app = typer.Typer(
    name="lfw-harvester",
    help="LFW Harvester - Loads the Local Food Works catalog into the webshop triple store",
    add_completion=False,
)
app.add_typer(harvest_app, name="harvest")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    if not verbose:
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)


@app.command()
def run(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
) -> None:
    """Start the harvester web service."""
    import uvicorn

    typer.echo(f"Starting LFW Harvester on http://{host}:{port}")
    typer.echo("Press Ctrl+C to stop the server")
    typer.echo("")

    uvicorn.run(
        "lfw_harvester.web.app:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def version() -> None:
    """Show the LFW Harvester version."""
    typer.echo("LFW Harvester v0.1.0")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    from lfw_harvester.config import get_default_config

    typer.echo("LFW Harvester Configuration")
    typer.echo("=" * 40)

    # Check .env file
    env_found = False
    for _env_path in _env_paths:
        if _env_path.exists():
            typer.echo(f"  .env file: {_env_path}")
            env_found = True
            break
    if not env_found:
        typer.echo("  .env file: Not found")

    config = get_default_config()
    typer.echo(f"  Config file: {config.config_path or 'Not found (defaults)'}")
    typer.echo(f"  LFW API: {config.api.base_url}")
    typer.echo(f"  Store / pick up point: {config.api.store_id} / {config.api.pickup_point_id}")
    typer.echo(f"  Page cache: {config.api.cache_dir or 'disabled'}")
    typer.echo(f"  Triple store: {config.store.backend.value} ({config.store.endpoint})")
    typer.echo(f"  Graph: {config.store.graph}")
    typer.echo(f"  Share path: {config.share_path}")
    typer.echo(f"  Ignored suppliers: {', '.join(config.ignored_suppliers) or 'none'}")
    typer.echo(f"  Redis: {config.redis_host}:{config.redis_port}/{config.redis_db}")
    if config.schedule.enabled:
        typer.echo(f"  Scheduled harvest: daily at {config.schedule.hour:02d}:{config.schedule.minute:02d}")
    else:
        typer.echo("  Scheduled harvest: disabled")


if __name__ == "__main__":
    app()
