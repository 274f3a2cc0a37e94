"""Typed views over Store API responses.

Only the fields the tools read are declared. Wire names are camelCase,
unknown keys are ignored and explicit nulls fall back to field defaults.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Translated(StoreModel):
    name: str | None = None
    description: str | None = None


class Named(StoreModel):
    name: str | None = None
    translated: Translated = Translated()

    @property
    def display_name(self) -> str | None:
        return self.name or self.translated.name or None


class Media(StoreModel):
    url: str | None = None


class ProductMedia(StoreModel):
    media: Media = Media()


class SeoUrl(StoreModel):
    seo_path_info: str | None = None


class CalculatedPrice(StoreModel):
    unit_price: float | None = None
    total_price: float | None = None


class PropertyGroup(Named):
    pass


class PropertyOption(Named):
    group: PropertyGroup | None = None


class Manufacturer(Named):
    pass


class DeliveryTime(Named):
    pass


class Category(Named):
    id: str
    parent_id: str | None = None
    active: bool | None = None
    level: int | None = None


class Product(Named):
    id: str = ""
    parent_id: str | None = None
    product_number: str | None = None
    description: str | None = None
    stock: int | None = None
    available_stock: int | None = None
    calculated_price: CalculatedPrice = CalculatedPrice()
    rating_average: float | None = None
    seo_urls: list[SeoUrl] = []
    media: list[ProductMedia] = []
    cover: ProductMedia | None = None
    manufacturer: Manufacturer | None = None
    delivery_time: DeliveryTime | None = None
    properties: list[PropertyOption] = []
    options: list[PropertyOption] = []
    children: list[Product] = []
    categories: list[Category] = []

    @property
    def display_description(self) -> str | None:
        return self.description or self.translated.description or None

    @property
    def variant_options(self) -> list[PropertyOption]:
        return self.properties or self.options


class EntitySearchResult(StoreModel, Generic[T]):
    total: int | None = None
    elements: list[T] = []


class ProductReview(StoreModel):
    id: str
    title: str | None = None
    content: str | None = None
    points: float | None = None
    created_at: datetime | None = None


class LineItem(StoreModel):
    id: str | None = None
    referenced_id: str | None = None
    label: str | None = None
    quantity: int = 0
    type: str | None = None
    price: CalculatedPrice | None = None


class Cart(StoreModel):
    token: str | None = None
    line_items: list[LineItem] = []
    price: CalculatedPrice | None = None


class StateMachineState(Named):
    technical_name: str | None = None


class Order(StoreModel):
    id: str
    order_number: str | None = None
    order_date_time: datetime | None = None
    state_machine_state: StateMachineState | None = None
    price: CalculatedPrice = CalculatedPrice()


class OrderList(StoreModel):
    orders: EntitySearchResult[Order] = EntitySearchResult[Order]()

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, data: Any) -> Any:
        # Some Store API versions return `orders` as a plain array.
        if isinstance(data, dict) and isinstance(data.get("orders"), list):
            return {**data, "orders": {"elements": data["orders"], "total": len(data["orders"])}}
        return data


class PlacedOrder(StoreModel):
    id: str | None = None
    order_number: str | None = None


class ShippingMethod(Named):
    id: str
    description: str | None = None


class PaymentMethod(Named):
    id: str
    description: str | None = None


class Currency(StoreModel):
    iso_code: str | None = None
    symbol: str | None = None


class SalesChannelContext(StoreModel):
    token: str | None = None
    currency: Currency | None = None


__all__ = [
    "Cart",
    "Category",
    "EntitySearchResult",
    "LineItem",
    "Order",
    "OrderList",
    "PaymentMethod",
    "PlacedOrder",
    "Product",
    "ProductReview",
    "PropertyOption",
    "SalesChannelContext",
    "ShippingMethod",
]
