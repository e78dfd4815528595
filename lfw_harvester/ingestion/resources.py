"""
Resource Resolver Module
========================

Find-or-create for the sub-resources hanging off a product: its default
pricing nodes and its single offering with the offering's own nodes.
A sub-resource is found by following its relation from the owner, so
its URI stays stable across harvests.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass

from lfw_harvester.core.vocabulary import DEFAULT_GRAPH, UriBase
from lfw_harvester.ingestion.identifiers import IdFactory, new_uuid
from lfw_harvester.store.engine import TripleStore
from lfw_harvester.store.statements import (
    escape_string,
    escape_uri,
    in_graph,
    insert_data,
    triples_block,
    with_prefixes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceKind:
    """A sub-resource reached from its owner through ``relation``."""

    name: str
    relation: str  # prefixed predicate from owner to resource
    rdf_type: str  # prefixed class
    uri_base: str


SINGLE_UNIT_PRICE = ResourceKind(
    name="single-unit-price",
    relation="veeakker:singleUnitPrice",
    rdf_type="gr:UnitPriceSpecification",
    uri_base=UriBase.PRICE_SPECIFICATION,
)
TARGET_UNIT = ResourceKind(
    name="target-unit",
    relation="veeakker:targetUnit",
    rdf_type="gr:QuantitativeValue",
    uri_base=UriBase.QUANTITATIVE_VALUE,
)
OFFERING = ResourceKind(
    name="offering",
    relation="veeakker:offerings",
    rdf_type="gr:Offering",
    uri_base=UriBase.OFFERING,
)
OFFERING_TYPE_AND_QUANTITY = ResourceKind(
    name="offering-type-and-quantity",
    relation="gr:includesObject",
    rdf_type="gr:TypeAndQuantityNode",
    uri_base=UriBase.TYPE_AND_QUANTITY,
)
OFFERING_UNIT_PRICE = ResourceKind(
    name="offering-unit-price",
    relation="gr:hasPriceSpecification",
    rdf_type="gr:UnitPriceSpecification",
    uri_base=UriBase.PRICE_SPECIFICATION,
)

RESOURCE_KINDS = (
    SINGLE_UNIT_PRICE,
    TARGET_UNIT,
    OFFERING,
    OFFERING_TYPE_AND_QUANTITY,
    OFFERING_UNIT_PRICE,
)


@dataclass
class OfferingResources:
    """The offering of a product and the nodes it links to."""

    offering: str
    type_and_quantity: str
    unit_price: str


class ResourceResolver:
    """
    Ensures sub-resources exist, creating each at most once per owner.

    The check and the create of one (owner, relation) pair run under an
    asyncio lock, so concurrent callers within the process never mint two
    resources for the same owner.
    """

    def __init__(
        self,
        store: TripleStore,
        graph: str = DEFAULT_GRAPH,
        id_factory: IdFactory = new_uuid,
    ) -> None:
        self.store = store
        self.graph = graph
        self.id_factory = id_factory
        # Entries vanish once no caller holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, owner_uri: str, kind: ResourceKind) -> asyncio.Lock:
        key = (owner_uri, kind.relation)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def find(self, owner_uri: str, kind: ResourceKind) -> str | None:
        """Return the resource linked from the owner, if any."""
        pattern = f"  {escape_uri(owner_uri)} {kind.relation} ?resource ."
        sparql = with_prefixes(
            "SELECT ?resource WHERE {\n"
            f"{in_graph(self.graph, pattern)}\n"
            "} ORDER BY ?resource LIMIT 1"
        )
        rows = await self.store.query(sparql)
        return rows[0]["resource"] if rows else None

    async def create(self, owner_uri: str, kind: ResourceKind) -> str:
        """Mint a resource and link it from the owner."""
        resource_uuid = self.id_factory()
        resource_uri = f"{kind.uri_base}{resource_uuid}"
        resource = escape_uri(resource_uri)

        edge = triples_block(escape_uri(owner_uri), [(kind.relation, resource)])
        node = triples_block(
            resource,
            [("a", kind.rdf_type), ("mu:uuid", escape_string(resource_uuid))],
        )
        await self.store.update(with_prefixes(insert_data(self.graph, edge, node)))

        logger.debug(f"Created {kind.name} {resource_uri} for {owner_uri}")
        return resource_uri

    async def ensure(self, owner_uri: str, kind: ResourceKind) -> str:
        """
        Find the resource of the given kind for the owner, or create it.

        Args:
            owner_uri: URI of the owning product or offering
            kind: Which sub-resource to ensure

        Returns:
            URI of the existing or new resource
        """
        async with self._lock_for(owner_uri, kind):
            existing = await self.find(owner_uri, kind)
            if existing is not None:
                return existing
            return await self.create(owner_uri, kind)

    async def ensure_offering_resources(self, product_uri: str) -> OfferingResources:
        """Ensure the single offering of a product and its two nodes."""
        offering = await self.ensure(product_uri, OFFERING)
        return OfferingResources(
            offering=offering,
            type_and_quantity=await self.ensure(offering, OFFERING_TYPE_AND_QUANTITY),
            unit_price=await self.ensure(offering, OFFERING_UNIT_PRICE),
        )
