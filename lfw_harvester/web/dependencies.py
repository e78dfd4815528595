"""FastAPI dependencies for store access and admin authorization."""

import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager

from fastapi import Depends, Request

from lfw_harvester.config import get_default_config
from lfw_harvester.ingestion.jobs import shared_harvest_lock
from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator
from lfw_harvester.store.engine import TripleStore, get_store
from lfw_harvester.store.statements import escape_uri, with_prefixes

logger = logging.getLogger(__name__)

SESSION_HEADER = "mu-session-id"


def get_triple_store() -> TripleStore:
    """Dependency returning the global triple store."""
    return get_store()


async def get_harvester(
    store: TripleStore = Depends(get_triple_store),
) -> AsyncIterator[HarvestOrchestrator]:
    """Dependency wiring a harvest against the given store.

    The LFW client is closed once the request is done.
    """
    harvester = HarvestOrchestrator.from_config(get_default_config(), store)
    try:
        yield harvester
    finally:
        await harvester.close()


def get_harvest_lock() -> AbstractAsyncContextManager | None:
    """Dependency returning the lock a harvest must hold across processes."""
    return shared_harvest_lock(get_default_config())


async def is_admin_user(request: Request, store: TripleStore) -> bool:
    """Check whether the session of the request belongs to an administrator.

    The session URI is taken from the ``mu-session-id`` header set by the
    identifier service; its account must have the administrator role.

    Returns:
        False when the header is missing, is not a valid IRI or the role
        is not found.
    """
    session_uri = request.headers.get(SESSION_HEADER)
    if not session_uri:
        logger.info("Harvest requested without session")
        return False

    try:
        session = escape_uri(session_uri)
    except ValueError:
        logger.info(f"Harvest requested with invalid session {session_uri!r}")
        return False

    return await store.ask(
        with_prefixes(
            "ASK {\n"
            f"  {session} session:account/^foaf:account/veeakker:role"
            " veeakker:Administrator .\n"
            "}"
        )
    )
