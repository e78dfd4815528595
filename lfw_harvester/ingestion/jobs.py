"""
Harvest Jobs Module
===================

Lifecycle of harvest jobs in the triple store, the harvest run wrapped in
such a job, and the arq tasks running harvests in the background.

A job moves from no status to ``running`` and from ``running`` to either
``finished`` or ``error``. Terminal jobs never change status again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from arq import create_pool
from arq.connections import RedisSettings
from arq.cron import cron
from arq.jobs import Job
from redis.asyncio import Redis

from lfw_harvester.config import HarvestConfig, get_default_config
from lfw_harvester.core.enums import JobStatus, StoreBackend
from lfw_harvester.core.vocabulary import DEFAULT_GRAPH, JOB_STATUS_PREDICATES, UriBase
from lfw_harvester.ingestion.identifiers import IdFactory, new_uuid
from lfw_harvester.ingestion.pictures import Clock, utc_now
from lfw_harvester.store.engine import TripleStore
from lfw_harvester.store.statements import (
    escape_datetime,
    escape_string,
    escape_uri,
    in_graph,
    insert_data,
    replace_property_group,
    triples_block,
    with_prefixes,
)

if TYPE_CHECKING:
    from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator

logger = logging.getLogger(__name__)

# Allowed source statuses per target status, None meaning "no status yet"
TRANSITIONS: dict[JobStatus, tuple[JobStatus | None, ...]] = {
    JobStatus.RUNNING: (None,),
    JobStatus.FINISHED: (JobStatus.RUNNING,),
    JobStatus.ERROR: (JobStatus.RUNNING,),
}


class JobStateError(RuntimeError):
    """Raised on a job status transition that is not allowed."""


class JobController:
    """Creates harvest jobs and moves them through their lifecycle."""

    def __init__(
        self,
        store: TripleStore,
        graph: str = DEFAULT_GRAPH,
        id_factory: IdFactory = new_uuid,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.graph = graph
        self.id_factory = id_factory
        self.clock = clock

    async def create_load_job(self) -> str:
        """
        Create a job without status.

        Returns:
            URI of the new job
        """
        job_uuid = self.id_factory()
        job_uri = f"{UriBase.JOB}{job_uuid}"
        block = triples_block(
            escape_uri(job_uri),
            [
                ("a", "veeakker:LfwFetchJob"),
                ("mu:uuid", escape_string(job_uuid)),
                ("dct:created", escape_datetime(self.clock())),
            ],
        )
        await self.store.update(with_prefixes(insert_data(self.graph, block)))
        logger.info(f"Created harvest job {job_uri}")
        return job_uri

    async def job_exists(self, job_uri: str) -> bool:
        pattern = f"  {escape_uri(job_uri)} a veeakker:LfwFetchJob ."
        return await self.store.ask(with_prefixes(f"ASK {{\n{in_graph(self.graph, pattern)}\n}}"))

    async def get_status(self, job_uri: str) -> JobStatus | None:
        """Current status of a job, None when it has none."""
        pattern = f"  {escape_uri(job_uri)} adms:status ?status ."
        rows = await self.store.query(
            with_prefixes(
                "SELECT ?status WHERE {\n"
                f"{in_graph(self.graph, pattern)}\n"
                "} ORDER BY ?status"
            )
        )
        if not rows:
            return None
        return JobStatus.from_uri(rows[0]["status"])

    async def _transition(self, job_uri: str, target: JobStatus) -> None:
        if not await self.job_exists(job_uri):
            raise JobStateError(f"Unknown job {job_uri}")

        current = await self.get_status(job_uri)
        if current not in TRANSITIONS[target]:
            source = current.value if current else "created"
            raise JobStateError(f"Job {job_uri} cannot move from {source} to {target.value}")

        await self.store.update(
            replace_property_group(
                job_uri,
                JOB_STATUS_PREDICATES,
                [("adms:status", escape_uri(target.uri))],
                self.graph,
            )
        )
        logger.info(f"Job {job_uri} is {target.value}")

    async def start_job(self, job_uri: str) -> None:
        await self._transition(job_uri, JobStatus.RUNNING)

    async def finish_job(self, job_uri: str) -> None:
        await self._transition(job_uri, JobStatus.FINISHED)

    async def error_job(self, job_uri: str) -> None:
        await self._transition(job_uri, JobStatus.ERROR)


@dataclass
class HarvestResult:
    """Result of a harvest run."""

    job_uri: str
    status: JobStatus = JobStatus.RUNNING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    suppliers_loaded: int = 0
    pages_loaded: int = 0
    products_loaded: int = 0
    products_created: int = 0
    products_excluded: int = 0
    errors: list[str] = field(default_factory=list)
    duration_seconds: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "job_uri": self.job_uri,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "suppliers_loaded": self.suppliers_loaded,
            "pages_loaded": self.pages_loaded,
            "products_loaded": self.products_loaded,
            "products_created": self.products_created,
            "products_excluded": self.products_excluded,
            "errors": self.errors,
            "duration_seconds": self.duration_seconds,
        }


HARVEST_LOCK_NAME = "lfw-harvester:harvest"
HARVEST_LOCK_TIMEOUT = 6 * 3600

# Serializes harvests within the process
_harvest_lock = asyncio.Lock()


@asynccontextmanager
async def redis_harvest_lock(redis: Redis, timeout: float = HARVEST_LOCK_TIMEOUT) -> AsyncIterator[None]:
    """
    Hold the harvest lock shared by every process using the same Redis.

    The worker and the web service both take it, so a scheduled harvest
    and one triggered over HTTP never interleave. The lock expires after
    ``timeout`` seconds in case its holder dies.
    """
    async with redis.lock(HARVEST_LOCK_NAME, timeout=timeout):
        yield


@asynccontextmanager
async def shared_harvest_lock(config: HarvestConfig) -> AsyncIterator[None]:
    """
    Hold the cross-process harvest lock for a harvest outside the worker.

    A memory store belongs to this process alone, so no Redis lock is taken.
    """
    if config.store.backend == StoreBackend.MEMORY:
        yield
        return
    redis = await create_pool(get_redis_settings(config))
    try:
        async with redis_harvest_lock(redis):
            yield
    finally:
        await redis.close()


async def run_harvest(
    harvester: HarvestOrchestrator,
    shared_lock: AbstractAsyncContextManager | None = None,
) -> HarvestResult:
    """
    Run a full harvest wrapped in a job.

    Suppliers are loaded before any product. On failure the job is marked
    as errored and the exception is re-raised.

    Args:
        harvester: Wired harvest components
        shared_lock: Lock held across processes for the whole run, see
            ``redis_harvest_lock``

    Returns:
        HarvestResult of the finished job
    """
    async with _harvest_lock:
        if shared_lock is None:
            return await _run_job(harvester)
        async with shared_lock:
            return await _run_job(harvester)


async def _run_job(harvester: HarvestOrchestrator) -> HarvestResult:
    jobs = harvester.jobs
    job_uri = await jobs.create_load_job()
    result = HarvestResult(job_uri=job_uri, started_at=datetime.now(timezone.utc))
    await jobs.start_job(job_uri)

    try:
        result.suppliers_loaded = await harvester.suppliers.load_suppliers()
        stats = await harvester.load_pages(job_uri)
        result.pages_loaded = stats.pages
        result.products_loaded = stats.products
        result.products_created = stats.created
        result.products_excluded = stats.excluded
        await jobs.finish_job(job_uri)
        result.status = JobStatus.FINISHED
    except Exception as e:
        logger.exception(f"Harvest job {job_uri} failed: {e}")
        result.status = JobStatus.ERROR
        result.errors.append(str(e))
        await jobs.error_job(job_uri)
        raise
    finally:
        result.completed_at = datetime.now(timezone.utc)
        result.duration_seconds = (result.completed_at - result.started_at).total_seconds()

    logger.info(
        f"Harvest job {job_uri} finished: {result.products_loaded} products "
        f"on {result.pages_loaded} pages in {result.duration_seconds:.1f}s"
    )
    return result


async def harvest_catalog(ctx: dict[str, Any]) -> dict[str, Any]:
    """
    arq task running a full harvest.

    Args:
        ctx: arq context

    Returns:
        HarvestResult as dictionary
    """
    from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator

    harvester = HarvestOrchestrator.from_config(get_default_config())
    try:
        result = await run_harvest(harvester, redis_harvest_lock(ctx["redis"]))
    finally:
        await harvester.close()
    return result.to_dict()


def get_redis_settings(config: HarvestConfig | None = None) -> RedisSettings:
    """Get Redis connection settings from configuration."""
    config = config or get_default_config()
    return RedisSettings(
        host=config.redis_host,
        port=config.redis_port,
        database=config.redis_db,
    )


async def enqueue_harvest() -> str:
    """
    Enqueue a harvest for the background worker.

    Returns:
        arq job id
    """
    redis = await create_pool(get_redis_settings())
    try:
        job = await redis.enqueue_job("harvest_catalog")
    finally:
        await redis.close()
    if job is None:
        raise RuntimeError("Harvest job was not enqueued")
    return job.job_id


async def get_job_status(job_id: str) -> dict[str, Any] | None:
    """
    Get the status of a queued harvest.

    Args:
        job_id: arq job id to look up

    Returns:
        Job info dict, or None if not found
    """
    redis = await create_pool(get_redis_settings())
    try:
        job = Job(job_id, redis)
        status = await job.status()
        if status.value == "not_found":
            return None
        info = await job.result_info()
    finally:
        await redis.close()

    return {
        "job_id": job_id,
        "status": status.value,
        "success": info.success if info else None,
        "result": info.result if info else None,
    }


async def startup(ctx: dict[str, Any]) -> None:
    """Harvest once when the worker starts, if configured."""
    if not get_default_config().schedule.run_on_startup:
        return
    logger.info("Running harvest on worker startup")
    try:
        await harvest_catalog(ctx)
    except Exception:
        # The job is already marked as errored, keep the worker up for queued runs
        logger.exception("Startup harvest failed, worker keeps running")


def _cron_jobs() -> list:
    schedule = get_default_config().schedule
    if not schedule.enabled:
        return []
    return [cron(harvest_catalog, hour=schedule.hour, minute=schedule.minute, run_at_startup=False)]


class WorkerSettings:
    """arq worker settings."""

    functions = [harvest_catalog]
    cron_jobs = _cron_jobs()
    on_startup = startup
    redis_settings = get_redis_settings()
    max_jobs = 1  # harvests must not interleave
    job_timeout = HARVEST_LOCK_TIMEOUT
    keep_result = 86400  # 24 hours
