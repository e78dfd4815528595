"""
LFW Harvest Pipeline
====================

This package harvests the catalog of one Local Food Works store and
reconciles it into the triple store of the webshop.

Pipeline Stages:
1. Job - Create the harvest job and mark it running
2. Suppliers - Create missing suppliers, refresh all supplier names
3. Pages - Walk the visible products listing page by page
4. Products - Re-fetch each product's detail payload and reconcile it:
   identity, base info, pricing, offering, ingredients, allergens,
   thumbnail and supplier link
5. Finish - Mark the job finished, or errored when anything failed
"""

from lfw_harvester.ingestion.client import (
    DownloadedFile,
    JsonPageCache,
    LfwApiError,
    LfwClient,
)
from lfw_harvester.ingestion.identifiers import (
    PRODUCT,
    SUPPLIER,
    EntityKind,
    EntityRef,
    IdentityResolver,
)
from lfw_harvester.ingestion.jobs import (
    HarvestResult,
    JobController,
    JobStateError,
    enqueue_harvest,
    get_job_status,
    run_harvest,
)
from lfw_harvester.ingestion.orchestrator import (
    HarvestOrchestrator,
    PageLoadStats,
)
from lfw_harvester.ingestion.pictures import PictureSync
from lfw_harvester.ingestion.reconciler import (
    ProductLoadResult,
    ProductReconciler,
)
from lfw_harvester.ingestion.resources import (
    OfferingResources,
    ResourceKind,
    ResourceResolver,
)
from lfw_harvester.ingestion.storage import (
    ShareStorage,
    StoredFile,
)
from lfw_harvester.ingestion.suppliers import SupplierLoader

__all__ = [
    # Client
    "DownloadedFile",
    "JsonPageCache",
    "LfwApiError",
    "LfwClient",
    # Identity
    "PRODUCT",
    "SUPPLIER",
    "EntityKind",
    "EntityRef",
    "IdentityResolver",
    # Resources
    "OfferingResources",
    "ResourceKind",
    "ResourceResolver",
    # Reconciliation
    "ProductLoadResult",
    "ProductReconciler",
    "PictureSync",
    "SupplierLoader",
    # Storage
    "ShareStorage",
    "StoredFile",
    # Orchestration
    "HarvestOrchestrator",
    "PageLoadStats",
    # Jobs
    "HarvestResult",
    "JobController",
    "JobStateError",
    "enqueue_harvest",
    "get_job_status",
    "run_harvest",
]
