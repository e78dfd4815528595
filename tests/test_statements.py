"""Tests for the SPARQL statement builders."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from lfw_harvester.core.vocabulary import (
    BASE_INFO_PREDICATES,
    DEFAULT_GRAPH,
    PREFIXES,
    PRICE_SPECIFICATION_PREDICATES,
)
from lfw_harvester.store.memory import MemoryStore
from lfw_harvester.store.statements import (
    escape_bool,
    escape_datetime,
    escape_decimal,
    escape_string,
    escape_uri,
    insert_data,
    replace_property_group,
    triples_block,
    with_prefixes,
)

GR = "http://purl.org/goodrelations/v1#"
DCT = "http://purl.org/dc/terms/"
PRODUCT_URI = "http://veeakker.be/products/p-1"
PRICE_URI = "http://veeakker.be/price-specifications/1"


class TestEscaping:
    """Tests for literal and URI escaping."""

    def test_uri(self) -> None:
        assert escape_uri("http://example.com/a") == "<http://example.com/a>"

    def test_invalid_uri(self) -> None:
        with pytest.raises(ValueError, match="Invalid URI"):
            escape_uri("not a session <iri>")

    def test_string_quotes(self) -> None:
        """Test that quotes cannot break out of the literal."""
        escaped = escape_string('say "hi"')
        assert escaped.startswith('"')
        assert '\\"hi\\"' in escaped

    def test_decimal(self) -> None:
        escaped = escape_decimal(Decimal("10.37"))
        assert escaped.startswith('"10.37"^^')
        assert "decimal" in escaped

    def test_decimal_from_int(self) -> None:
        assert escape_decimal(1000181).startswith('"1000181"^^')

    def test_bool(self) -> None:
        assert escape_bool(False).startswith('"false"^^')

    def test_datetime(self) -> None:
        escaped = escape_datetime(datetime(2025, 4, 20, 12, 0, tzinfo=timezone.utc))
        assert escaped.startswith('"2025-04-20T12:00:00')
        assert "dateTime" in escaped


class TestTriplesBlock:
    """Tests for triples_block."""

    def test_empty(self) -> None:
        assert triples_block("<http://s>", []) == ""

    def test_block(self) -> None:
        block = triples_block("<http://s>", [("dct:title", '"a"'), ("dct:description", '"b"')])
        assert block == '  <http://s>\n    dct:title "a" ;\n    dct:description "b" .'


class TestReplacePropertyGroup:
    """Tests for the delete-then-insert builder against an rdflib store."""

    def test_rejects_foreign_predicates(self) -> None:
        """Test that values outside the allowlist are refused."""
        with pytest.raises(ValueError, match="gr:hasValue"):
            replace_property_group(
                PRICE_URI,
                PRICE_SPECIFICATION_PREDICATES,
                [("gr:hasValue", escape_decimal(1))],
                DEFAULT_GRAPH,
            )

    def test_delete_only_without_values(self) -> None:
        statement = replace_property_group(PRICE_URI, PRICE_SPECIFICATION_PREDICATES, [], DEFAULT_GRAPH)
        assert "DELETE" in statement
        assert "INSERT" not in statement

    @pytest.mark.asyncio
    async def test_replaces_group_and_keeps_other_predicates(self) -> None:
        """Test that only allowlisted predicates are replaced."""
        store = MemoryStore()
        seed = triples_block(
            escape_uri(PRICE_URI),
            [
                ("gr:hasUnitOfMeasurement", escape_string("KGM")),
                ("gr:hasCurrencyValue", escape_decimal("9.99")),
                ("gr:validFrom", escape_string("curated")),
            ],
        )
        await store.update(with_prefixes(insert_data(DEFAULT_GRAPH, seed)))

        await store.update(
            replace_property_group(
                PRICE_URI,
                PRICE_SPECIFICATION_PREDICATES,
                [
                    ("gr:hasUnitOfMeasurement", escape_string("LTR")),
                    ("gr:hasCurrencyValue", escape_decimal("3.50")),
                ],
                DEFAULT_GRAPH,
            )
        )

        triples = store.graph_triples(DEFAULT_GRAPH)
        assert (PRICE_URI, f"{GR}hasUnitOfMeasurement", "LTR") in triples
        assert (PRICE_URI, f"{GR}hasUnitOfMeasurement", "KGM") not in triples
        assert (PRICE_URI, f"{GR}validFrom", "curated") in triples
        values = {o for s, p, o in triples if p == f"{GR}hasCurrencyValue"}
        assert len(values) == 1
        assert Decimal(values.pop()) == Decimal("3.50")

    @pytest.mark.asyncio
    async def test_replace_is_idempotent(self) -> None:
        """Test that applying the same replacement twice changes nothing."""
        store = MemoryStore()
        statement = replace_property_group(
            PRICE_URI,
            PRICE_SPECIFICATION_PREDICATES,
            [("gr:hasUnitOfMeasurement", escape_string("C62"))],
            DEFAULT_GRAPH,
        )

        await store.update(statement)
        first = store.graph_triples(DEFAULT_GRAPH)
        await store.update(statement)

        assert store.graph_triples(DEFAULT_GRAPH) == first

    @pytest.mark.asyncio
    async def test_insert_after_delete_resolves_prefixes(self) -> None:
        """Test that the insert following the delete can use any prefix."""
        store = MemoryStore()

        await store.update(
            replace_property_group(
                PRODUCT_URI,
                BASE_INFO_PREDICATES,
                [("dct:title", escape_string("5 pannenkoeken"))],
                DEFAULT_GRAPH,
            )
        )

        assert store.graph_triples(DEFAULT_GRAPH) == {(PRODUCT_URI, f"{DCT}title", "5 pannenkoeken")}


class TestWithPrefixes:
    """Tests for joining update operations."""

    def test_every_operation_has_prefixes(self) -> None:
        statement = with_prefixes("INSERT DATA { }", "", "DELETE WHERE { ?s dct:title ?o }")

        operations = statement.split(" ;\n")
        assert len(operations) == 2
        assert all(operation.startswith(PREFIXES) for operation in operations)
