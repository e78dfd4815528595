"""Triple store access layer."""

from lfw_harvester.store.engine import (
    StoreError,
    TripleStore,
    create_store,
    get_store,
    reset_store,
)
from lfw_harvester.store.memory import MemoryStore
from lfw_harvester.store.sparql import SparqlStore
from lfw_harvester.store.statements import (
    delete_property_values,
    escape_bool,
    escape_datetime,
    escape_decimal,
    escape_int,
    escape_string,
    escape_uri,
    in_graph,
    insert_data,
    replace_property_group,
    triples_block,
    with_prefixes,
)

__all__ = [
    # Engine
    "StoreError",
    "TripleStore",
    "create_store",
    "get_store",
    "reset_store",
    # Backends
    "MemoryStore",
    "SparqlStore",
    # Statements
    "delete_property_values",
    "escape_bool",
    "escape_datetime",
    "escape_decimal",
    "escape_int",
    "escape_string",
    "escape_uri",
    "in_graph",
    "insert_data",
    "replace_property_group",
    "triples_block",
    "with_prefixes",
]
