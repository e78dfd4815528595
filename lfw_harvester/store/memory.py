"""In-memory triple store backed by an rdflib Dataset."""

from __future__ import annotations

import logging
from pathlib import Path

from rdflib import Dataset, URIRef

from lfw_harvester.store.engine import StoreError, TripleStore

logger = logging.getLogger(__name__)


class MemoryStore(TripleStore):
    """
    Triple store kept in process memory.

    Patterns outside a GRAPH clause match the union of all graphs, like
    the default graph of a typical SPARQL endpoint. Useful for local dry
    runs and tests.
    """

    def __init__(self, dataset: Dataset | None = None) -> None:
        self.dataset = dataset if dataset is not None else Dataset(default_union=True)

    async def query(self, sparql: str) -> list[dict[str, str]]:
        """Run a SELECT query."""
        try:
            result = self.dataset.query(sparql)
        except Exception as e:
            raise StoreError(f"Invalid query: {e}") from e
        return [
            {str(name): str(value) for name, value in row.asdict().items()}
            for row in result
        ]

    async def ask(self, sparql: str) -> bool:
        """Run an ASK query."""
        try:
            result = self.dataset.query(sparql)
        except Exception as e:
            raise StoreError(f"Invalid query: {e}") from e
        return bool(result.askAnswer)

    async def update(self, sparql: str) -> None:
        """Execute an update request."""
        logger.debug(f"Memory update:\n{sparql}")
        try:
            self.dataset.update(sparql)
        except Exception as e:
            raise StoreError(f"Invalid update: {e}") from e

    def graph_triples(self, graph: str) -> set[tuple[str, str, str]]:
        """All triples of a named graph as string tuples."""
        return {
            (str(s), str(p), str(o))
            for s, p, o in self.dataset.graph(URIRef(graph))
        }

    def dump(self, path: str | Path) -> None:
        """Serialize the dataset to an N-Quads file."""
        self.dataset.serialize(destination=str(path), format="nquads")
