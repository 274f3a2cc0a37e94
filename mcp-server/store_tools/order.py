from __future__ import annotations

import logging

from formatters import bullet_list, format_amount
from models import Order, OrderList, PlacedOrder
from store_client import StoreApiClient, StoreApiError
from store_tools.common import UPSTREAM_ERRORS, ToolResponse, compact, not_logged_in

_LOGGER = logging.getLogger("storemcp.tools")


def _order_line(order: Order) -> str:
    date = order.order_date_time.strftime("%Y-%m-%d") if order.order_date_time else "unknown date"
    state = order.state_machine_state.display_name if order.state_machine_state else None
    return (
        f"Order #{order.order_number} ({date}) - Status: {state or 'Unknown'} "
        f"- Total: {format_amount(order.price.total_price)}"
    )


async def list_orders(client: StoreApiClient, limit: int = 5) -> ToolResponse:
    try:
        raw = await client.post(
            "order",
            {
                "limit": max(1, limit),
                "sort": [{"field": "orderDateTime", "order": "DESC"}],
                "associations": {"lineItems": {}, "stateMachineState": {}},
            },
        )
        response = OrderList.model_validate(raw)
    except StoreApiError as exc:
        if exc.is_unauthenticated:
            return not_logged_in("view orders")
        return ToolResponse.error(f"Failed to fetch orders. Error: {exc}")
    except UPSTREAM_ERRORS as exc:
        return ToolResponse.error(f"Failed to fetch orders. Error: {exc}")

    if not response.orders.elements:
        return ToolResponse.text("No orders found for this customer.")

    lines = [_order_line(order) for order in response.orders.elements]
    return ToolResponse.text(f"Your Orders:\n{bullet_list(lines)}")


async def create_order(client: StoreApiClient, comment: str | None = None) -> ToolResponse:
    try:
        raw = await client.post("checkout/order", compact({"customerComment": comment}))
        order = PlacedOrder.model_validate(raw)
    except StoreApiError as exc:
        if exc.is_unauthenticated:
            return not_logged_in("place an order")
        return ToolResponse.error(
            "Failed to place order. Ensure you have items in cart and are logged in "
            f"(or provided guest details). Error: {exc}"
        )
    except UPSTREAM_ERRORS as exc:
        return ToolResponse.error(f"Failed to place order. Error: {exc}")

    _LOGGER.info("Order placed", extra={"order_number": order.order_number, "order_id": order.id})
    return ToolResponse.text(f"Success! Order placed. Order Number: {order.order_number} (ID: {order.id})")


__all__ = ["create_order", "list_orders"]
