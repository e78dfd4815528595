"""
Harvest Orchestrator
====================

Walks the catalog of the store page by page and loads every product.
Also wires the harvest components together from configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from lfw_harvester.config import HarvestConfig
from lfw_harvester.ingestion.client import LfwClient
from lfw_harvester.ingestion.identifiers import IdentityResolver
from lfw_harvester.ingestion.jobs import JobController
from lfw_harvester.ingestion.pictures import PictureSync
from lfw_harvester.ingestion.reconciler import ProductReconciler
from lfw_harvester.ingestion.resources import ResourceResolver
from lfw_harvester.ingestion.storage import ShareStorage
from lfw_harvester.ingestion.suppliers import SupplierLoader
from lfw_harvester.store.engine import TripleStore, get_store

logger = logging.getLogger(__name__)


@dataclass
class PageLoadStats:
    """Counters of one walk over the catalog."""

    pages: int = 0
    products: int = 0
    created: int = 0
    excluded: int = 0


def pricing_summary(listings: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Measurement unit, order unit and their ratio for each listing."""
    summary = []
    for listing in listings:
        pricing = listing.get("pricing") or {}
        consumer_price = pricing.get("consumerPrice") or {}
        summary.append(
            {
                "id": listing.get("id"),
                "name": listing.get("name"),
                "measurement_unit": (consumer_price.get("measurementUnitPrice") or {}).get("unitOfMeasurement"),
                "order_unit": (consumer_price.get("orderUnitPrice") or {}).get("unitOfMeasurement"),
                "factor": pricing.get("measurementUnitVsOrderUnitRatio"),
            }
        )
    return summary


class HarvestOrchestrator:
    """
    Drives a harvest over the catalog.

    Pages are fetched from 0 until the API flags the last one; products are
    loaded one at a time from their detail payload. Errors are not caught
    per product: the first failure aborts the walk.
    """

    def __init__(
        self,
        client: LfwClient,
        reconciler: ProductReconciler,
        suppliers: SupplierLoader,
        jobs: JobController,
    ) -> None:
        self.client = client
        self.reconciler = reconciler
        self.suppliers = suppliers
        self.jobs = jobs

    @classmethod
    def from_config(
        cls,
        config: HarvestConfig,
        store: TripleStore | None = None,
        client: LfwClient | None = None,
    ) -> HarvestOrchestrator:
        """
        Wire all harvest components.

        Args:
            config: Harvester configuration
            store: Triple store, the global store when omitted
            client: LFW API client, built from configuration when omitted
        """
        store = store or get_store()
        client = client or LfwClient.from_config(config.api)
        graph = config.store.graph

        identities = IdentityResolver(store, graph)
        suppliers = SupplierLoader(store, client, identities, graph)
        pictures = PictureSync(store, client, ShareStorage(config.share_path), graph)
        reconciler = ProductReconciler(
            store=store,
            client=client,
            identities=identities,
            resources=ResourceResolver(store, graph),
            pictures=pictures,
            suppliers=suppliers,
            graph=graph,
            ignored_suppliers=config.ignored_suppliers,
        )
        return cls(
            client=client,
            reconciler=reconciler,
            suppliers=suppliers,
            jobs=JobController(store, graph),
        )

    async def load_pages(self, job_uri: str | None = None) -> PageLoadStats:
        """
        Load every product of every catalog page.

        Args:
            job_uri: Job to tag the loaded products with

        Returns:
            PageLoadStats of the walk
        """
        stats = PageLoadStats()
        page_number = 0
        while True:
            page = await self.client.fetch_page(page_number)
            logger.info(f"Loading page {page_number} ({len(page.content)} products)")
            for row in pricing_summary(page.content):
                logger.debug(f"Pricing {row}")

            for listing in page.content:
                result = await self.reconciler.load_product(listing, external=True, job_uri=job_uri)
                stats.products += 1
                stats.created += int(result.created)
                stats.excluded += int(result.excluded)

            stats.pages += 1
            if page.last:
                break
            page_number += 1

        logger.info(f"Loaded {stats.products} products from {stats.pages} pages")
        return stats

    async def close(self) -> None:
        await self.client.close()
