"""Tests for the harvest orchestrator."""

from pathlib import Path

import pytest

from lfw_harvester.config import HarvestConfig
from lfw_harvester.ingestion.orchestrator import HarvestOrchestrator, pricing_summary
from lfw_harvester.store.memory import MemoryStore
from tests.conftest import FakeLfwClient, Harvest, make_product


class TestPricingSummary:
    """Tests for pricing_summary."""

    def test_rows(self) -> None:
        rows = pricing_summary([make_product()])

        assert rows == [
            {
                "id": 181,
                "name": "5 pannenkoeken",
                "measurement_unit": "kg",
                "order_unit": "stk",
                "factor": 0.5,
            }
        ]

    def test_missing_pricing(self) -> None:
        rows = pricing_summary([{"id": 1, "name": "x"}])
        assert rows[0]["measurement_unit"] is None
        assert rows[0]["factor"] is None


class TestLoadPages:
    """Tests for the catalog walk."""

    @pytest.mark.asyncio
    async def test_walks_until_last_page(self, harvest: Harvest) -> None:
        harvest.client.add_product(make_product(181))
        harvest.client.add_product(make_product(182, image=None), page=1)
        harvest.client.add_product(make_product(183, supplier="Pintafish (VLB)"), page=2)

        stats = await harvest.orchestrator.load_pages()

        assert stats.pages == 3
        assert stats.products == 3
        assert stats.created == 3
        assert stats.excluded == 1

    @pytest.mark.asyncio
    async def test_empty_catalog(self, harvest: Harvest) -> None:
        stats = await harvest.orchestrator.load_pages()

        assert stats.pages == 1
        assert stats.products == 0

    @pytest.mark.asyncio
    async def test_products_loaded_from_detail(self, harvest: Harvest) -> None:
        """Test that listings are replaced by their detail payload."""
        harvest.client.add_product(make_product(181))

        await harvest.orchestrator.load_pages()

        texts = {o for _, p, o in harvest.triples() if p.endswith("ingredientListAsText")}
        assert texts == {"<ul>\n  <li>bloem</li>\n  <li>melk</li>\n</ul>"}

    @pytest.mark.asyncio
    async def test_close(self, harvest: Harvest) -> None:
        await harvest.orchestrator.close()
        assert harvest.client.closed is True


class TestFromConfig:
    """Tests for wiring from configuration."""

    @pytest.mark.asyncio
    async def test_wiring(self, memory_config: HarvestConfig) -> None:
        store = MemoryStore()
        client = FakeLfwClient()
        client.files[make_product()["image"]] = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8
        client.add_product(make_product())

        harvester = HarvestOrchestrator.from_config(memory_config, store=store, client=client)
        stats = await harvester.load_pages()

        assert stats.products == 1
        assert harvester.reconciler.ignored_suppliers == {"Pintafish (VLB)"}
        assert harvester.reconciler.pictures.storage.base_path == Path(memory_config.share_path)
        assert store.graph_triples(memory_config.store.graph)
