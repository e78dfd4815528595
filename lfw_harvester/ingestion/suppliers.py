"""
Supplier Loader Module
======================

Reconciles the supplier roster of the store, and links suppliers to the
offerings of products whose detail payload describes the supplier.

The roster is loaded in two phases. First every supplier id gets its
entity (created when missing, so existing URIs are kept), then a single
update overwrites the names of all suppliers at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lfw_harvester.core.schema import SupplierInfo, SupplierSummary
from lfw_harvester.core.vocabulary import DEFAULT_GRAPH, LFW_CREATOR, SUPPLIER_DETAIL_PREDICATES
from lfw_harvester.ingestion.identifiers import SUPPLIER, IdentityResolver
from lfw_harvester.ingestion.sanitizer import sanitize_multiline
from lfw_harvester.store.engine import TripleStore
from lfw_harvester.store.statements import (
    PropertyValue,
    delete_property_values,
    escape_string,
    escape_uri,
    in_graph,
    insert_data,
    triples_block,
    with_prefixes,
)

if TYPE_CHECKING:
    from lfw_harvester.ingestion.client import LfwClient

logger = logging.getLogger(__name__)


def supplier_names_update(roster: list[SupplierSummary], graph: str) -> str:
    """
    Build the update renaming every supplier of the roster in one pass.

    Suppliers are joined on the notation of their LFW identifier; the old
    name, if any, is replaced by the roster name.
    """
    rows = "\n".join(
        f"    ( {escape_string(str(s.id))} {escape_string(s.name)} )" for s in roster
    )
    patterns = (
        "  ?supplier a gr:BusinessEntity ;\n"
        "    adms:identifier ?identifier .\n"
        f"  ?identifier dct:creator {escape_uri(LFW_CREATOR)} ;\n"
        "    skos:notation ?externalIdentifier .\n"
        "  OPTIONAL { ?supplier gr:name ?oldName }"
    )
    return with_prefixes(
        f"DELETE {{\n{in_graph(graph, '  ?supplier gr:name ?oldName .')}\n}}\n"
        f"INSERT {{\n{in_graph(graph, '  ?supplier gr:name ?newName .')}\n}}\n"
        "WHERE {\n"
        f"  VALUES ( ?externalIdentifier ?newName ) {{\n{rows}\n  }}\n"
        f"{in_graph(graph, patterns)}\n"
        "}"
    )


class SupplierLoader:
    """Loads suppliers and links them to offerings."""

    def __init__(
        self,
        store: TripleStore,
        client: LfwClient,
        identities: IdentityResolver,
        graph: str = DEFAULT_GRAPH,
    ) -> None:
        self.store = store
        self.client = client
        self.identities = identities
        self.graph = graph

    async def load_suppliers(self) -> int:
        """
        Reconcile the supplier roster of the store.

        Returns:
            Number of suppliers in the roster
        """
        roster = await self.client.fetch_suppliers()
        if not roster:
            logger.warning("Supplier roster is empty, nothing to load")
            return 0

        created = 0
        for supplier in roster:
            if not await self.identities.exists(SUPPLIER, supplier.id):
                await self.identities.create(SUPPLIER, supplier.id)
                created += 1

        await self.store.update(supplier_names_update(roster, self.graph))

        logger.info(f"Loaded {len(roster)} suppliers ({created} new)")
        return len(roster)

    async def find_by_name(self, name: str) -> str | None:
        """Find a supplier by its exact name."""
        pattern = (
            "  ?supplier a gr:BusinessEntity ;\n"
            f"    gr:name {escape_string(name)} ."
        )
        rows = await self.store.query(
            with_prefixes(
                "SELECT ?supplier WHERE {\n"
                f"{in_graph(self.graph, pattern)}\n"
                "} ORDER BY ?supplier LIMIT 1"
            )
        )
        return rows[0]["supplier"] if rows else None

    async def load_product_supplier(self, offering_uri: str, supplier: SupplierInfo) -> str | None:
        """
        Update the details of a supplier and let it offer the given offering.

        The supplier is looked up by name among the loaded roster. When no
        supplier carries that name nothing is written.

        Args:
            offering_uri: Offering of the product being loaded
            supplier: Supplier block of the product detail payload

        Returns:
            URI of the linked supplier, or None
        """
        supplier_uri = await self.find_by_name(supplier.name)
        if supplier_uri is None:
            logger.debug(f"No supplier named {supplier.name!r}, {offering_uri} stays unlinked")
            return None

        values: list[PropertyValue] = []
        if supplier.email_address:
            values.append(("schema:email", escape_string(supplier.email_address)))
        values.append(("dct:description", escape_string(sanitize_multiline(supplier.description))))

        subject = escape_uri(supplier_uri)
        offers: list[PropertyValue] = [("gr:offers", escape_uri(offering_uri))]
        await self.store.update(
            with_prefixes(
                delete_property_values(subject, SUPPLIER_DETAIL_PREDICATES, self.graph),
                insert_data(self.graph, triples_block(subject, values + offers)),
            )
        )

        logger.debug(f"Linked supplier {supplier_uri} to {offering_uri}")
        return supplier_uri
