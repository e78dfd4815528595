"""Shared fixtures for harvester tests."""

from __future__ import annotations

import itertools
from copy import deepcopy
from typing import Any

import pytest

from lfw_harvester.config import ApiConfig, HarvestConfig, StoreConfig
from lfw_harvester.core.enums import StoreBackend
from lfw_harvester.core.schema import CatalogPage, SupplierSummary
from lfw_harvester.core.vocabulary import DEFAULT_GRAPH
from lfw_harvester.ingestion.client import DownloadedFile, LfwApiError
from lfw_harvester.ingestion.identifiers import IdentityResolver
from lfw_harvester.ingestion.jobs import JobController
from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator
from lfw_harvester.ingestion.pictures import PictureSync
from lfw_harvester.ingestion.reconciler import ProductReconciler
from lfw_harvester.ingestion.resources import ResourceResolver
from lfw_harvester.ingestion.storage import ShareStorage
from lfw_harvester.ingestion.suppliers import SupplierLoader
from lfw_harvester.store.memory import MemoryStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
IMAGE_URL = "https://localfoodworks-images.s3-eu-west-1.amazonaws.com/products/181/c0339609.png"


class RecordingLock:
    """Async context manager standing in for the shared harvest lock."""

    def __init__(self, store: RecordingStore | None = None) -> None:
        self.store = store
        self.entered = 0
        self.held = False
        self.updates_on_enter: int | None = None

    async def __aenter__(self) -> None:
        self.entered += 1
        self.held = True
        if self.store is not None:
            self.updates_on_enter = len(self.store.updates)

    async def __aexit__(self, *exc_info: Any) -> None:
        self.held = False


class RecordingStore(MemoryStore):
    """Memory store remembering every update request."""

    def __init__(self) -> None:
        super().__init__()
        self.updates: list[str] = []

    async def update(self, sparql: str) -> None:
        self.updates.append(sparql)
        await super().update(sparql)


class FakeLfwClient:
    """In-memory stand-in for the LFW API client."""

    def __init__(self) -> None:
        self.pages: list[list[dict[str, Any]]] = []
        self.details: dict[int, dict[str, Any]] = {}
        self.suppliers: list[dict[str, Any]] = []
        self.files: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.downloads: list[str] = []
        self.closed = False

    def add_product(self, detail: dict[str, Any], page: int = 0) -> None:
        while len(self.pages) <= page:
            self.pages.append([])
        listing = deepcopy(detail)
        if isinstance(listing.get("supplier"), dict):
            listing["supplier"] = listing["supplier"]["name"]
        for key in ("ingredients", "allergens"):
            listing.pop(key, None)
        self.pages[page].append(listing)
        self.details[detail["id"]] = detail

    async def fetch_page(self, page: int) -> CatalogPage:
        content = self.pages[page] if page < len(self.pages) else []
        return CatalogPage(content=deepcopy(content), last=page >= len(self.pages) - 1, number=page)

    async def fetch_product_detail(self, product_id: int | str) -> dict[str, Any]:
        return deepcopy(self.details[int(product_id)])

    async def fetch_suppliers(self) -> list[SupplierSummary]:
        return [SupplierSummary.model_validate(s) for s in self.suppliers]

    async def download_file(self, url: str) -> DownloadedFile:
        self.downloads.append(url)
        if url not in self.files:
            raise LfwApiError(f"{url} answered 404")
        return DownloadedFile(self.files[url], self.content_types.get(url))

    async def close(self) -> None:
        self.closed = True


def make_product(product_id: int = 181, **overrides: Any) -> dict[str, Any]:
    """Product detail payload as returned by the LFW API."""
    payload: dict[str, Any] = {
        "id": product_id,
        "name": "5 pannenkoeken",
        "description": "Zelfgebakken",
        "supplier": {
            "name": "Het Nijswolkje",
            "description": "Bakkerij\nsinds 1980",
            "emailAddress": "info@nijswolkje.be",
            "image": None,
        },
        "pricing": {
            "consumerPrice": {
                "type": "UNIT",
                "measurementUnitPrice": {
                    "money": {"amount": 10.37, "currency": "EUR"},
                    "unitOfMeasurement": "kg",
                },
                "orderUnitPrice": {
                    "money": {"amount": 5.19, "currency": "EUR"},
                    "unitOfMeasurement": "stk",
                },
            },
            "measurementUnitVsOrderUnitRatio": 0.5,
        },
        "canBeOrderedAsFractionOfOrderUnit": False,
        "bio": False,
        "image": IMAGE_URL,
        "content": "5",
        "ingredients": [
            {"name": "melk", "position": 2},
            {"name": "bloem", "position": 1},
        ],
        "allergens": [
            {"allergen": {"id": 7, "name": "Melk"}},
            {"allergen": {"id": 1, "name": "Gluten"}},
        ],
    }
    payload.update(overrides)
    return payload


def sequential_ids(prefix: str = "id") -> Any:
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


class Harvest:
    """Harvest components wired against a recording memory store."""

    def __init__(self, tmp_path) -> None:
        self.store = RecordingStore()
        self.client = FakeLfwClient()
        self.storage = ShareStorage(tmp_path / "share")
        ids = sequential_ids()
        self.identities = IdentityResolver(self.store, DEFAULT_GRAPH, ids)
        self.resources = ResourceResolver(self.store, DEFAULT_GRAPH, ids)
        self.pictures = PictureSync(self.store, self.client, self.storage, DEFAULT_GRAPH, ids)
        self.suppliers = SupplierLoader(self.store, self.client, self.identities, DEFAULT_GRAPH)
        self.reconciler = ProductReconciler(
            store=self.store,
            client=self.client,
            identities=self.identities,
            resources=self.resources,
            pictures=self.pictures,
            suppliers=self.suppliers,
            graph=DEFAULT_GRAPH,
            ignored_suppliers=["Pintafish (VLB)"],
        )
        self.jobs = JobController(self.store, DEFAULT_GRAPH, ids)
        self.orchestrator = HarvestOrchestrator(
            client=self.client,
            reconciler=self.reconciler,
            suppliers=self.suppliers,
            jobs=self.jobs,
        )

    def triples(self) -> set[tuple[str, str, str]]:
        return self.store.graph_triples(DEFAULT_GRAPH)

    def objects(self, subject: str, predicate: str) -> set[str]:
        return {o for s, p, o in self.triples() if s == subject and p == predicate}


@pytest.fixture
def harvest(tmp_path) -> Harvest:
    """Wired harvest components with a fake LFW API."""
    h = Harvest(tmp_path)
    h.client.files[IMAGE_URL] = PNG_BYTES
    return h


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def memory_config(tmp_path) -> HarvestConfig:
    """Configuration harvesting into a memory store without page cache."""
    return HarvestConfig(
        api=ApiConfig(cache_dir=None),
        store=StoreConfig(backend=StoreBackend.MEMORY),
        share_path=str(tmp_path / "share"),
    )
