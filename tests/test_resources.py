"""Tests for identity resolution and the resource resolver."""

import asyncio
import gc

import pytest

from lfw_harvester.core.vocabulary import DEFAULT_GRAPH
from lfw_harvester.ingestion.identifiers import PRODUCT, SUPPLIER, IdentityResolver
from lfw_harvester.ingestion.resources import (
    OFFERING,
    OFFERING_TYPE_AND_QUANTITY,
    OFFERING_UNIT_PRICE,
    RESOURCE_KINDS,
    SINGLE_UNIT_PRICE,
    ResourceResolver,
)
from lfw_harvester.store.memory import MemoryStore
from tests.conftest import sequential_ids

PRODUCT_URI = "http://veeakker.be/products/p-1"
SKOS = "http://www.w3.org/2004/02/skos/core#"
DCT = "http://purl.org/dc/terms/"
RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"


class TestIdentityResolver:
    """Tests for IdentityResolver."""

    @pytest.mark.asyncio
    async def test_create_product(self) -> None:
        """Test the minted product and identifier nodes."""
        store = MemoryStore()
        identities = IdentityResolver(store, DEFAULT_GRAPH, sequential_ids("x"))

        ref = await identities.ensure(PRODUCT, 181)

        assert ref.created is True
        assert ref.uri == "http://veeakker.be/products/x-1"
        assert ref.identifier_uri == "http://data.redpencil.io/identifiers/x-2"
        triples = store.graph_triples(DEFAULT_GRAPH)
        assert (ref.uri, RDF_TYPE, "http://schema.org/Product") in triples
        assert (ref.identifier_uri, f"{SKOS}notation", "181") in triples
        assert (ref.identifier_uri, f"{DCT}creator", "https://localfoodworks.eu/") in triples
        assert (ref.identifier_uri, f"{DCT}title", "LFW 181") in triples

    @pytest.mark.asyncio
    async def test_stable_identity(self) -> None:
        """Test that the same external id resolves to the same URI."""
        store = MemoryStore()
        identities = IdentityResolver(store)

        first = await identities.ensure(PRODUCT, 181)
        second = await identities.ensure(PRODUCT, "181")

        assert second.uri == first.uri
        assert second.created is False

    @pytest.mark.asyncio
    async def test_kinds_do_not_collide(self) -> None:
        """Test that a supplier and a product with the same id stay apart."""
        store = MemoryStore()
        identities = IdentityResolver(store)

        product = await identities.ensure(PRODUCT, 5)
        assert await identities.exists(SUPPLIER, 5) is False

        supplier = await identities.ensure(SUPPLIER, 5)
        assert supplier.uri != product.uri
        assert supplier.uri.startswith("http://veeakker.be/suppliers/")
        assert (supplier.identifier_uri, f"{DCT}title", "LFW Supplier ID 5") in store.graph_triples(
            DEFAULT_GRAPH
        )

    @pytest.mark.asyncio
    async def test_other_creator_is_ignored(self) -> None:
        """Test that identifiers of other systems never match."""
        store = MemoryStore()
        await store.update(
            """
            PREFIX schema: <http://schema.org/>
            PREFIX adms: <http://www.w3.org/ns/adms#>
            PREFIX skos: <http://www.w3.org/2004/02/skos/core#>
            PREFIX dct: <http://purl.org/dc/terms/>
            INSERT DATA { GRAPH <http://mu.semte.ch/application> {
              <http://veeakker.be/products/other> a schema:Product ;
                adms:identifier <http://data.redpencil.io/identifiers/other> .
              <http://data.redpencil.io/identifiers/other> a adms:Identifier ;
                skos:notation "181" ;
                dct:creator <http://other.example.com/> .
            } }
            """
        )
        identities = IdentityResolver(store)

        assert await identities.find(PRODUCT, 181) is None


class TestResourceResolver:
    """Tests for ResourceResolver."""

    def test_five_kinds(self) -> None:
        assert len(RESOURCE_KINDS) == 5
        assert len({kind.relation for kind in RESOURCE_KINDS}) == 5

    @pytest.mark.asyncio
    async def test_creates_once(self) -> None:
        """Test that ensure mints a resource once and then finds it."""
        store = MemoryStore()
        resolver = ResourceResolver(store, DEFAULT_GRAPH, sequential_ids("r"))

        first = await resolver.ensure(PRODUCT_URI, SINGLE_UNIT_PRICE)
        second = await resolver.ensure(PRODUCT_URI, SINGLE_UNIT_PRICE)

        assert first == second == "http://veeakker.be/price-specifications/r-1"
        triples = store.graph_triples(DEFAULT_GRAPH)
        assert (PRODUCT_URI, "http://veeakker.be/vocabularies/shop/singleUnitPrice", first) in triples
        assert (first, RDF_TYPE, "http://purl.org/goodrelations/v1#UnitPriceSpecification") in triples
        assert (first, "http://mu.semte.ch/vocabularies/core/uuid", "r-1") in triples

    @pytest.mark.asyncio
    async def test_concurrent_ensure_creates_one(self) -> None:
        """Test that concurrent callers share one resource."""
        store = MemoryStore()
        resolver = ResourceResolver(store)

        uris = await asyncio.gather(*(resolver.ensure(PRODUCT_URI, OFFERING) for _ in range(5)))

        assert len(set(uris)) == 1
        offerings = {
            o
            for s, p, o in store.graph_triples(DEFAULT_GRAPH)
            if p == "http://veeakker.be/vocabularies/shop/offerings"
        }
        assert offerings == {uris[0]}

    @pytest.mark.asyncio
    async def test_locks_released_after_ensure(self) -> None:
        """Test that per-owner locks are not kept once resolved."""
        resolver = ResourceResolver(MemoryStore())

        await asyncio.gather(*(resolver.ensure(PRODUCT_URI, OFFERING) for _ in range(3)))
        await resolver.ensure("http://veeakker.be/products/p-2", OFFERING)
        gc.collect()

        assert len(resolver._locks) == 0

    @pytest.mark.asyncio
    async def test_offering_resources(self) -> None:
        """Test that the offering nodes hang off the offering."""
        store = MemoryStore()
        resolver = ResourceResolver(store)

        resources = await resolver.ensure_offering_resources(PRODUCT_URI)

        assert await resolver.find(PRODUCT_URI, OFFERING) == resources.offering
        assert await resolver.find(resources.offering, OFFERING_TYPE_AND_QUANTITY) == resources.type_and_quantity
        assert await resolver.find(resources.offering, OFFERING_UNIT_PRICE) == resources.unit_price
        assert resources.type_and_quantity.startswith("http://veeakker.be/type-and-quantities/")

        again = await resolver.ensure_offering_resources(PRODUCT_URI)
        assert again == resources
