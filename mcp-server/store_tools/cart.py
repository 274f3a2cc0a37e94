from __future__ import annotations

import logging

from formatters import bullet_list, format_amount
from models import Cart
from store_client import StoreApiClient, StoreApiError
from store_tools.common import UPSTREAM_ERRORS, ToolResponse, not_logged_in

_LOGGER = logging.getLogger("storemcp.tools")


def _cart_total(cart: Cart) -> str:
    return format_amount(cart.price.total_price if cart.price else None)


async def get_cart(client: StoreApiClient) -> ToolResponse:
    try:
        cart = Cart.model_validate(await client.get("checkout/cart"))
    except StoreApiError as exc:
        if exc.is_unauthenticated:
            return not_logged_in("view the cart")
        return ToolResponse.error(f"Failed to load the cart. Error: {exc}")
    except UPSTREAM_ERRORS as exc:
        return ToolResponse.error(f"Failed to load the cart. Error: {exc}")

    if not cart.line_items:
        return ToolResponse.text("The cart is currently empty.")

    lines = [
        f"{item.quantity}x {item.label} ({item.type}) - "
        f"{format_amount(item.price.total_price) if item.price and item.price.total_price else 'N/A'}"
        for item in cart.line_items
    ]
    return ToolResponse.text(f"Current Cart ({_cart_total(cart)} total):\n{bullet_list(lines)}")


async def add_to_cart(client: StoreApiClient, product_id: str, quantity: int = 1) -> ToolResponse:
    resolved_id = await client.resolve_product_id(product_id)
    if not resolved_id:
        return ToolResponse.text(f"Product not found: {product_id}")

    quantity = max(1, quantity)
    try:
        raw = await client.post(
            "checkout/cart/line-item",
            {"items": [{"type": "product", "referencedId": resolved_id, "quantity": quantity}]},
        )
        cart = Cart.model_validate(raw)
    except StoreApiError as exc:
        if exc.is_unauthenticated:
            return not_logged_in("add products to the cart")
        return ToolResponse.error(f"Failed to add product to cart. Error: {exc}")
    except UPSTREAM_ERRORS as exc:
        return ToolResponse.error(f"Failed to add product to cart. Error: {exc}")

    _LOGGER.info(
        "Added product to cart",
        extra={"product_id": resolved_id, "quantity": quantity, "line_count": len(cart.line_items)},
    )
    return ToolResponse.text(
        f"Successfully added {quantity}x product to cart. New cart total: {_cart_total(cart)}"
    )


__all__ = ["add_to_cart", "get_cart"]
