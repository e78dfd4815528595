"""
SPARQL Statement Builders
=========================

Escaping helpers and builders for the update statements issued by the
harvester. The central one is ``replace_property_group``: delete every
value of a fixed set of predicates on one subject, then insert the fresh
values, in a single update request.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from rdflib import Literal, URIRef
from rdflib.namespace import XSD

from lfw_harvester.core.vocabulary import PREFIXES

# (predicate as prefixed name, escaped object)
PropertyValue = tuple[str, str]


def escape_uri(uri: str) -> str:
    """Escape a URI for use in a SPARQL statement.

    Raises:
        ValueError: If the URI holds characters not allowed in an IRI
    """
    try:
        return URIRef(uri).n3()
    except Exception as e:
        # rdflib raises a bare Exception for unserializable URIs
        raise ValueError(f"Invalid URI {uri!r}") from e


def escape_string(value: str) -> str:
    """Escape a plain string literal."""
    return Literal(str(value)).n3()


def escape_decimal(value: Decimal | int | float | str) -> str:
    """Escape a number as an xsd:decimal literal."""
    return Literal(Decimal(str(value)), datatype=XSD.decimal).n3()


def escape_datetime(value: datetime) -> str:
    """Escape a datetime as an xsd:dateTime literal."""
    return Literal(value, datatype=XSD.dateTime).n3()


def escape_bool(value: bool) -> str:
    """Escape a boolean as an xsd:boolean literal."""
    return Literal(bool(value), datatype=XSD.boolean).n3()


def escape_int(value: int) -> str:
    """Escape a number as an xsd:integer literal."""
    return Literal(int(value), datatype=XSD.integer).n3()


def in_graph(graph: str, body: str) -> str:
    """Wrap a block of triple patterns in a GRAPH clause."""
    return f"GRAPH {escape_uri(graph)} {{\n{body}\n}}"


def triples_block(subject: str, values: Sequence[PropertyValue]) -> str:
    """
    Render predicate/object pairs of one subject as a Turtle style block.

    Args:
        subject: Escaped subject (URI or variable)
        values: (predicate, escaped object) pairs

    Returns:
        Triple block terminated by a dot, or "" when values is empty
    """
    if not values:
        return ""
    lines = [f"    {predicate} {obj}" for predicate, obj in values]
    return f"  {subject}\n" + " ;\n".join(lines) + " ."


def with_prefixes(*statements: str) -> str:
    """Join update operations into one request, each with its own prefixes."""
    return " ;\n".join(f"{PREFIXES}\n{s}" for s in statements if s)


def insert_data(graph: str, *blocks: str) -> str:
    """INSERT DATA operation for the given triple blocks."""
    body = "\n".join(b for b in blocks if b)
    return f"INSERT DATA {{\n{in_graph(graph, body)}\n}}"


def delete_property_values(
    subject: str,
    predicates: Iterable[str],
    graph: str,
    bindings: str = "",
) -> str:
    """
    DELETE operation removing all values of the given predicates on a subject.

    Args:
        subject: Escaped subject (URI or variable bound in ``bindings``)
        predicates: Prefixed predicate names of the property group
        graph: Graph to operate on
        bindings: Extra triple patterns binding a variable subject

    Returns:
        A single DELETE/WHERE update operation
    """
    pattern = f"  {subject} ?p ?o ."
    where = "  VALUES ?p { " + " ".join(predicates) + " }\n"
    if bindings:
        where += bindings + "\n"
    where += pattern
    return (
        f"DELETE {{\n{in_graph(graph, pattern)}\n}}\n"
        f"WHERE {{\n{in_graph(graph, where)}\n}}"
    )


def replace_property_group(
    subject_uri: str,
    predicates: Sequence[str],
    values: Sequence[PropertyValue],
    graph: str,
) -> str:
    """
    Build the update that converges one property group of a resource.

    All stored values of ``predicates`` on the subject are deleted and the
    given values are inserted. Predicates outside the group are left alone.
    An empty ``values`` sequence only deletes.

    Args:
        subject_uri: URI of the resource
        predicates: Allowlist of prefixed predicates forming the group
        values: New (predicate, escaped object) pairs, each predicate must be
            part of the group
        graph: Graph to operate on

    Returns:
        A complete update request including prefixes
    """
    unknown = {predicate for predicate, _ in values} - set(predicates)
    if unknown:
        raise ValueError(f"Predicates outside the property group: {sorted(unknown)}")

    subject = escape_uri(subject_uri)
    operations = [delete_property_values(subject, predicates, graph)]
    if values:
        operations.append(insert_data(graph, triples_block(subject, values)))
    return with_prefixes(*operations)
