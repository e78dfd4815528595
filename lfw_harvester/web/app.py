"""FastAPI application factory for the LFW harvester."""

from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="LFW Harvester",
        description="Harvests the Local Food Works catalog into the webshop triple store",
        version="0.1.0",
    )

    # Include routers (import here to avoid circular imports)
    from lfw_harvester.web.routes import harvest

    app.include_router(harvest.router)

    return app


# Application instance
app = create_app()
