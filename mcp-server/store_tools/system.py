from __future__ import annotations

import logging
from typing import Union

from formatters import bullet_list, strip_html
from models import EntitySearchResult, PaymentMethod, ShippingMethod
from store_client import StoreApiClient
from store_tools.common import UPSTREAM_ERRORS, ToolResponse

_LOGGER = logging.getLogger("storemcp.tools")


def _method_lines(methods: list[Union[ShippingMethod, PaymentMethod]]) -> str:
    return bullet_list(
        f"{method.display_name or 'Unknown'}: {strip_html(method.description) or ''}".rstrip()
        for method in methods
    )


async def list_shipping_methods(client: StoreApiClient, only_available: bool = True) -> ToolResponse:
    try:
        raw = await client.post(
            "shipping-method",
            {
                "onlyAvailable": only_available,
                "includes": {"shipping_method": ["id", "name", "translated", "description", "prices", "media"]},
            },
        )
        response = EntitySearchResult[ShippingMethod].model_validate(raw)
    except UPSTREAM_ERRORS as exc:
        _LOGGER.error("Failed to fetch shipping methods: %s", exc)
        return ToolResponse.error("Failed to fetch shipping methods.")

    if not response.elements:
        return ToolResponse.text("No shipping methods available.")
    return ToolResponse.text(f"Shipping Methods:\n{_method_lines(list(response.elements))}")


async def list_payment_methods(client: StoreApiClient, only_available: bool = True) -> ToolResponse:
    try:
        raw = await client.post(
            "payment-method",
            {
                "onlyAvailable": only_available,
                "includes": {"payment_method": ["id", "name", "translated", "description", "media"]},
            },
        )
        response = EntitySearchResult[PaymentMethod].model_validate(raw)
    except UPSTREAM_ERRORS as exc:
        _LOGGER.error("Failed to fetch payment methods: %s", exc)
        return ToolResponse.error("Failed to fetch payment methods.")

    if not response.elements:
        return ToolResponse.text("No payment methods available.")
    return ToolResponse.text(f"Payment Methods:\n{_method_lines(list(response.elements))}")


__all__ = ["list_payment_methods", "list_shipping_methods"]
