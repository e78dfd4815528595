"""Triple store interface and global store management."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from lfw_harvester.core.enums import StoreBackend

if TYPE_CHECKING:
    from lfw_harvester.config import StoreConfig


class StoreError(RuntimeError):
    """Raised when the triple store rejects or fails a request."""


class TripleStore(ABC):
    """
    Abstract SPARQL capable triple store.

    Bindings are returned as plain dictionaries mapping variable names
    to the string value of the bound term; unbound variables are omitted.
    """

    @abstractmethod
    async def query(self, sparql: str) -> list[dict[str, str]]:
        """
        Run a SELECT query.

        Args:
            sparql: SELECT query

        Returns:
            One dict per solution
        """

    @abstractmethod
    async def ask(self, sparql: str) -> bool:
        """Run an ASK query and return its boolean answer."""

    @abstractmethod
    async def update(self, sparql: str) -> None:
        """
        Execute an update request.

        The request may hold several ``;`` separated operations, which are
        sent and executed as one batch.
        """

    async def close(self) -> None:
        """Release resources held by the store."""


def create_store(config: StoreConfig) -> TripleStore:
    """
    Create a store for the configured backend.

    Args:
        config: Store configuration

    Returns:
        A SparqlStore or MemoryStore instance
    """
    if config.backend == StoreBackend.MEMORY:
        from lfw_harvester.store.memory import MemoryStore

        return MemoryStore()

    from lfw_harvester.store.sparql import SparqlStore

    return SparqlStore(
        endpoint=config.endpoint,
        update_endpoint=config.update_endpoint or config.endpoint,
        timeout=config.timeout,
        sudo=config.sudo,
    )


# Global store (initialized lazily)
_store: TripleStore | None = None


def get_store() -> TripleStore:
    """Get or create the global store from the default configuration."""
    global _store
    if _store is None:
        from lfw_harvester.config import get_default_config

        _store = create_store(get_default_config().store)
    return _store


async def reset_store() -> None:
    """Close and forget the global store (useful for testing)."""
    global _store
    if _store is not None:
        await _store.close()
    _store = None
