"""Pydantic v2 models of the Local Food Works API payloads."""

from decimal import Decimal
from typing import Any

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LfwModel(BaseModel):
    """Base model accepting the camelCase keys of the LFW API."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
        extra="ignore",
    )


class Money(LfwModel):
    """An amount of money."""

    amount: Decimal
    currency: str = "EUR"


class UnitPrice(LfwModel):
    """A price for a given unit of measurement ("kg", "l" or "stk")."""

    money: Money
    unit_of_measurement: str


class ConsumerPrice(LfwModel):
    """Consumer facing prices of a product."""

    type: str | None = None
    measurement_unit_price: UnitPrice
    order_unit_price: UnitPrice


class Pricing(LfwModel):
    """Pricing block of a product."""

    consumer_price: ConsumerPrice
    measurement_unit_vs_order_unit_ratio: Decimal = Decimal(1)


class Ingredient(LfwModel):
    name: str
    position: int = 0


class Allergen(LfwModel):
    id: int
    name: str


class ProductAllergen(LfwModel):
    allergen: Allergen


class SupplierInfo(LfwModel):
    """Supplier block of a product detail page."""

    name: str
    description: str | None = None
    email_address: str | None = None
    image: str | None = None


class SupplierSummary(LfwModel):
    """Entry of the supplier roster of a store."""

    id: int
    name: str


class Product(LfwModel):
    """
    A product, either as listed in a catalog page or as a detail page.

    Listings carry the supplier as a bare name, detail pages carry a
    structured SupplierInfo together with ingredients and allergens.
    """

    id: int
    name: str | None = None
    description: str | None = None
    supplier: SupplierInfo | str | None = None
    pricing: Pricing
    can_be_ordered_as_fraction_of_order_unit: bool = False
    bio: bool = False
    image: str | None = None
    content: str | None = None
    ingredients: list[Ingredient] | None = None
    allergens: list[ProductAllergen] | None = None

    @property
    def supplier_name(self) -> str | None:
        """Name of the supplier regardless of the payload flavour."""
        if isinstance(self.supplier, SupplierInfo):
            return self.supplier.name
        return self.supplier

    @property
    def has_supplier_details(self) -> bool:
        return isinstance(self.supplier, SupplierInfo)


class CatalogPage(LfwModel):
    """One page of the visible products listing."""

    content: list[dict[str, Any]] = Field(default_factory=list)
    last: bool = True
    number: int | None = None
