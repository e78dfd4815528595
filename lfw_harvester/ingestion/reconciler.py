"""
Product Reconciler Module
=========================

Upserts one LFW product into the triple store.

The product URI is resolved from the external id, then each property
group is converged with a delete-then-insert on its own predicate
allowlist:

1. Detail payload re-fetch (for external loads)
2. Identity lookup or creation
3. Supplier exclusion
4. Job tag
5. Base info
6. Default pricing
7. Offering
8. Ingredients
9. Allergens
10. Thumbnail
11. Supplier link

Steps run in order and are not rolled back: an error aborts the product
with the earlier groups already written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lfw_harvester.core.enums import PictureOutcome
from lfw_harvester.core.schema import Product, SupplierInfo
from lfw_harvester.core.units import convert_unit
from lfw_harvester.core.vocabulary import (
    ALLERGENS_PREDICATES,
    BASE_INFO_PREDICATES,
    BIO_LABEL,
    DEFAULT_GRAPH,
    INGREDIENTS_PREDICATES,
    LFW_LABEL,
    OFFERING_PRICE_UNIT,
    PLU_OFFSET,
    PRICE_SPECIFICATION_PREDICATES,
    QUANTITATIVE_VALUE_PREDICATES,
    TYPE_AND_QUANTITY_PREDICATES,
)
from lfw_harvester.ingestion.identifiers import PRODUCT, IdentityResolver
from lfw_harvester.ingestion.resources import (
    SINGLE_UNIT_PRICE,
    TARGET_UNIT,
    OfferingResources,
    ResourceResolver,
)
from lfw_harvester.ingestion.sanitizer import render_html_list
from lfw_harvester.store.engine import TripleStore
from lfw_harvester.store.statements import (
    PropertyValue,
    escape_bool,
    escape_decimal,
    escape_string,
    escape_uri,
    insert_data,
    replace_property_group,
    triples_block,
    with_prefixes,
)

if TYPE_CHECKING:
    from lfw_harvester.ingestion.client import LfwClient
    from lfw_harvester.ingestion.pictures import PictureSync
    from lfw_harvester.ingestion.suppliers import SupplierLoader

logger = logging.getLogger(__name__)


@dataclass
class ProductLoadResult:
    """Outcome of loading one product."""

    external_id: int
    product_uri: str
    created: bool = False
    excluded: bool = False  # supplier on the ignore list, only identity resolved
    offering_uri: str | None = None
    picture: PictureOutcome | None = None
    supplier_uri: str | None = None


def plu_for(external_id: int) -> int:
    """PLU and sort index of an LFW product."""
    return PLU_OFFSET + external_id


def ingredients_html(product: Product) -> str | None:
    """Ingredient names ordered by position, as an HTML list."""
    if product.ingredients is None:
        return None
    ordered = sorted(product.ingredients, key=lambda ingredient: ingredient.position)
    return render_html_list(ingredient.name for ingredient in ordered)


def allergens_html(product: Product) -> str | None:
    """Allergen names ordered by allergen id, as an HTML list."""
    if product.allergens is None:
        return None
    ordered = sorted((entry.allergen for entry in product.allergens), key=lambda a: a.id)
    return render_html_list(allergen.name for allergen in ordered)


class ProductReconciler:
    """Loads LFW products into the triple store."""

    def __init__(
        self,
        store: TripleStore,
        client: LfwClient,
        identities: IdentityResolver,
        resources: ResourceResolver,
        pictures: PictureSync,
        suppliers: SupplierLoader,
        graph: str = DEFAULT_GRAPH,
        ignored_suppliers: list[str] | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.identities = identities
        self.resources = resources
        self.pictures = pictures
        self.suppliers = suppliers
        self.graph = graph
        self.ignored_suppliers = set(ignored_suppliers or [])

    async def load_product(
        self,
        payload: dict[str, Any] | Product,
        *,
        external: bool = False,
        job_uri: str | None = None,
    ) -> ProductLoadResult:
        """
        Load a product.

        Args:
            payload: Catalog listing or product detail, raw or validated
            external: Replace the payload with the product detail fetched
                from the API
            job_uri: Harvest job to tag the product with

        Returns:
            ProductLoadResult describing what was written
        """
        if external:
            product_id = payload.id if isinstance(payload, Product) else payload["id"]
            payload = await self.client.fetch_product_detail(product_id)

        product = payload if isinstance(payload, Product) else Product.model_validate(payload)
        logger.debug(f"Loading product {product.id} ({product.name})")

        ref = await self.identities.ensure(PRODUCT, product.id)
        result = ProductLoadResult(
            external_id=product.id,
            product_uri=ref.uri,
            created=ref.created,
        )

        if product.supplier_name in self.ignored_suppliers:
            logger.info(f"Skipping product {product.id}, supplier {product.supplier_name!r} is ignored")
            result.excluded = True
            return result

        if job_uri:
            await self.tag_job(ref.uri, job_uri)
        await self.update_base_info(product, ref.uri)
        await self.update_default_pricing(product, ref.uri)
        offering = await self.update_offering(product, ref.uri)
        result.offering_uri = offering.offering
        await self.update_ingredients(product, ref.uri)
        await self.update_allergens(product, ref.uri)
        result.picture = await self.pictures.ensure_picture(ref.uri, product.image)

        if isinstance(product.supplier, SupplierInfo):
            result.supplier_uri = await self.suppliers.load_product_supplier(
                offering.offering, product.supplier
            )

        return result

    async def tag_job(self, product_uri: str, job_uri: str) -> None:
        """Record that the product was generated by the job."""
        block = triples_block(
            escape_uri(product_uri), [("prov:wasGeneratedBy", escape_uri(job_uri))]
        )
        await self.store.update(with_prefixes(insert_data(self.graph, block)))

    async def update_base_info(self, product: Product, product_uri: str) -> None:
        plu = escape_decimal(plu_for(product.id))
        values: list[PropertyValue] = [("dct:title", escape_string(product.name or ""))]
        if product.description:
            values.append(("dct:description", escape_string(product.description)))
        values.append(("veeakker:hasLabel", escape_uri(LFW_LABEL)))
        if product.bio:
            values.append(("veeakker:hasLabel", escape_uri(BIO_LABEL)))
        values += [
            ("veeakker:plu", plu),
            ("veeakker:sortIndex", plu),
            (
                "veeakker:lfwProductCanBeOrderedByFractionOfOrderUnit",
                escape_bool(product.can_be_ordered_as_fraction_of_order_unit),
            ),
        ]
        await self.store.update(
            replace_property_group(product_uri, BASE_INFO_PREDICATES, values, self.graph)
        )

    async def update_default_pricing(self, product: Product, product_uri: str) -> None:
        """
        Converge the price per measurement unit and the target unit.

        The unit is converted before anything is written, so an unknown
        unit leaves the pricing of the product untouched.
        """
        pricing = product.pricing
        measurement_price = pricing.consumer_price.measurement_unit_price
        unit = convert_unit(measurement_price.unit_of_measurement)

        single_unit_price = await self.resources.ensure(product_uri, SINGLE_UNIT_PRICE)
        target_unit = await self.resources.ensure(product_uri, TARGET_UNIT)

        await self.store.update(
            replace_property_group(
                single_unit_price,
                PRICE_SPECIFICATION_PREDICATES,
                [
                    ("gr:hasUnitOfMeasurement", escape_string(unit)),
                    ("gr:hasCurrencyValue", escape_decimal(measurement_price.money.amount)),
                ],
                self.graph,
            )
        )
        await self.store.update(
            replace_property_group(
                target_unit,
                QUANTITATIVE_VALUE_PREDICATES,
                [
                    ("gr:hasUnitOfMeasurement", escape_string(unit)),
                    ("gr:hasValue", escape_decimal(pricing.measurement_unit_vs_order_unit_ratio)),
                ],
                self.graph,
            )
        )

    async def update_offering(self, product: Product, product_uri: str) -> OfferingResources:
        """Converge the single offering of the product."""
        pricing = product.pricing
        unit = convert_unit(pricing.consumer_price.measurement_unit_price.unit_of_measurement)
        offering = await self.resources.ensure_offering_resources(product_uri)

        # One ordered piece; the measurement unit lives on the type and quantity node
        await self.store.update(
            replace_property_group(
                offering.unit_price,
                PRICE_SPECIFICATION_PREDICATES,
                [
                    ("gr:hasUnitOfMeasurement", escape_string(OFFERING_PRICE_UNIT)),
                    (
                        "gr:hasCurrencyValue",
                        escape_decimal(pricing.consumer_price.order_unit_price.money.amount),
                    ),
                ],
                self.graph,
            )
        )
        await self.store.update(
            replace_property_group(
                offering.type_and_quantity,
                TYPE_AND_QUANTITY_PREDICATES,
                [
                    ("gr:amountOfThisGood", escape_decimal(pricing.measurement_unit_vs_order_unit_ratio)),
                    ("gr:hasUnitOfMeasurement", escape_string(unit)),
                    ("gr:typeOfGood", escape_uri(product_uri)),
                ],
                self.graph,
            )
        )
        return offering

    async def update_ingredients(self, product: Product, product_uri: str) -> None:
        """Replace the ingredient list; a payload without ingredients clears it."""
        html = ingredients_html(product)
        values = [("food:ingredientListAsText", escape_string(html))] if html is not None else []
        await self.store.update(
            replace_property_group(product_uri, INGREDIENTS_PREDICATES, values, self.graph)
        )

    async def update_allergens(self, product: Product, product_uri: str) -> None:
        """Replace the allergen list; a payload without allergens clears it."""
        html = allergens_html(product)
        values = [("veeakker:allergensAsText", escape_string(html))] if html is not None else []
        await self.store.update(
            replace_property_group(product_uri, ALLERGENS_PREDICATES, values, self.graph)
        )
