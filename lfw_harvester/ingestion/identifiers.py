"""
Identity Resolution Module
==========================

Finds the internal resource for an external LFW id, or mints it. Every
product and supplier carries exactly one ``adms:Identifier`` whose
``skos:notation`` holds the external id and whose ``dct:creator`` marks
Local Food Works as the issuing system. That pair is the only join key
used to re-find an entity across harvests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import uuid4

from lfw_harvester.core.vocabulary import DEFAULT_GRAPH, LFW_CREATOR, UriBase
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

IdFactory = Callable[[], str]


def new_uuid() -> str:
    """Default id factory."""
    return str(uuid4())


@dataclass(frozen=True)
class EntityKind:
    """Shape of an entity identified by an external LFW id."""

    name: str
    rdf_type: str  # prefixed name
    uri_base: str
    title_prefix: str  # dct:title of the identifier is prefix + external id


PRODUCT = EntityKind(
    name="product",
    rdf_type="schema:Product",
    uri_base=UriBase.PRODUCT,
    title_prefix="LFW ",
)
SUPPLIER = EntityKind(
    name="supplier",
    rdf_type="gr:BusinessEntity",
    uri_base=UriBase.SUPPLIER,
    title_prefix="LFW Supplier ID ",
)


@dataclass
class EntityRef:
    """An internal entity and its LFW identifier node."""

    uri: str
    identifier_uri: str
    created: bool = False


class IdentityResolver:
    """
    Looks up and mints entities keyed on their external LFW id.

    Names, suppliers or any other payload field never take part in the
    lookup: two payloads with the same id always resolve to the same URI.
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

    def _identity_patterns(self, kind: EntityKind, external_id: int | str) -> str:
        return (
            f"  ?entity a {kind.rdf_type} ;\n"
            f"    adms:identifier ?identifier .\n"
            f"  ?identifier a adms:Identifier ;\n"
            f"    skos:notation {escape_string(str(external_id))} ;\n"
            f"    dct:creator {escape_uri(LFW_CREATOR)} ."
        )

    async def find(self, kind: EntityKind, external_id: int | str) -> EntityRef | None:
        """
        Find the entity minted for an external id.

        Returns:
            The existing entity, or None
        """
        sparql = with_prefixes(
            "SELECT ?entity ?identifier WHERE {\n"
            f"{in_graph(self.graph, self._identity_patterns(kind, external_id))}\n"
            "} ORDER BY ?entity LIMIT 1"
        )
        rows = await self.store.query(sparql)
        if not rows:
            return None
        return EntityRef(uri=rows[0]["entity"], identifier_uri=rows[0]["identifier"])

    async def exists(self, kind: EntityKind, external_id: int | str) -> bool:
        """Check whether an entity was minted for an external id."""
        sparql = with_prefixes(
            "ASK {\n"
            f"{in_graph(self.graph, self._identity_patterns(kind, external_id))}\n"
            "}"
        )
        return await self.store.ask(sparql)

    async def create(self, kind: EntityKind, external_id: int | str) -> EntityRef:
        """
        Mint a new entity with its identifier node.

        Does not check for an existing entity; use ``ensure`` for that.
        """
        entity_uuid = self.id_factory()
        identifier_uuid = self.id_factory()
        entity_uri = f"{kind.uri_base}{entity_uuid}"
        identifier_uri = f"{UriBase.IDENTIFIER}{identifier_uuid}"

        entity = triples_block(
            escape_uri(entity_uri),
            [
                ("a", kind.rdf_type),
                ("mu:uuid", escape_string(entity_uuid)),
                ("adms:identifier", escape_uri(identifier_uri)),
            ],
        )
        identifier = triples_block(
            escape_uri(identifier_uri),
            [
                ("a", "adms:Identifier"),
                ("mu:uuid", escape_string(identifier_uuid)),
                ("skos:notation", escape_string(str(external_id))),
                ("dct:creator", escape_uri(LFW_CREATOR)),
                ("dct:title", escape_string(f"{kind.title_prefix}{external_id}")),
            ],
        )
        await self.store.update(with_prefixes(insert_data(self.graph, entity, identifier)))

        logger.info(f"Created {kind.name} {entity_uri} for LFW id {external_id}")
        return EntityRef(uri=entity_uri, identifier_uri=identifier_uri, created=True)

    async def ensure(self, kind: EntityKind, external_id: int | str) -> EntityRef:
        """Find the entity for an external id, minting it when missing."""
        existing = await self.find(kind, external_id)
        if existing is not None:
            logger.debug(f"Found {kind.name} {existing.uri} for LFW id {external_id}")
            return existing
        return await self.create(kind, external_id)
