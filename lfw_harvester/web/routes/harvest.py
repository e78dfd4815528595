"""Harvest routes: liveness and the admin triggered harvest."""

import logging
from contextlib import AbstractAsyncContextManager

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from lfw_harvester.ingestion.jobs import run_harvest
from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator
from lfw_harvester.store.engine import TripleStore
from lfw_harvester.web.dependencies import (
    get_harvest_lock,
    get_harvester,
    get_triple_store,
    is_admin_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["harvest"])


@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    """Liveness check."""
    return "LFW harvester is running"


@router.post("/harvest", response_class=PlainTextResponse)
async def harvest(
    request: Request,
    store: TripleStore = Depends(get_triple_store),
    harvester: HarvestOrchestrator = Depends(get_harvester),
    harvest_lock: AbstractAsyncContextManager | None = Depends(get_harvest_lock),
) -> PlainTextResponse:
    """
    Run a full harvest.

    Only administrators may harvest. The harvest runs within the request,
    holding the same lock as the worker so the two never interleave;
    failures are reported as a plain 500 with details in the logs only.
    """
    if not await is_admin_user(request, store):
        return PlainTextResponse("Missing access rights", status_code=500)

    try:
        result = await run_harvest(harvester, harvest_lock)
    except Exception:
        logger.exception("Harvest triggered over HTTP failed")
        return PlainTextResponse("Failed to harvest", status_code=500)

    logger.info(f"Harvest {result.job_uri} done in {result.duration_seconds:.1f}s")
    return PlainTextResponse("Harvest successful", status_code=200)
