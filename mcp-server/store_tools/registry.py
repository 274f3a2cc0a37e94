import logging
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncIterator, Awaitable, Callable

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from mcp.types import TextContent
from pydantic import Field

from config import Settings
from store_client import StoreApiClient
from store_tools import cart, category, order, product, review, system
from store_tools.common import ToolResponse
from store_tools.context import merge_credentials

ToolInvoker = Callable[..., Awaitable[list[TextContent]]]

_LOGGER = logging.getLogger("storemcp.tools")

# Credential fields are injected by the calling environment on every call.
AccessKey = Annotated[
    str | None, Field(description="The Shopware Sales Channel Access Key (public) - INJECTED AUTOMATICALLY")
]
ContextToken = Annotated[
    str | None, Field(description="The Visitor's Context Token (Session/Cart ID) - INJECTED AUTOMATICALLY")
]
LanguageId = Annotated[str | None, Field(description="The Language ID for the context (e.g. for English)")]
ShopUrl = Annotated[str | None, Field(description="The Base URL of the Shopware Shop - INJECTED AUTOMATICALLY")]


def _emit(response: ToolResponse) -> list[TextContent]:
    if response.is_error:
        raise ToolError(response.joined_text)
    return [TextContent(type="text", text=block["text"]) for block in response.content]


def register_tools(
    mcp: FastMCP,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, ToolInvoker]:
    @asynccontextmanager
    async def _store_client(
        swAccessKey: str | None,
        swContextToken: str | None,
        swLanguageId: str | None,
        shopUrl: str | None,
    ) -> AsyncIterator[StoreApiClient]:
        credentials = merge_credentials(swAccessKey, swContextToken, swLanguageId, shopUrl)
        credentials = credentials.with_default_language(settings.default_language_id)
        async with StoreApiClient(credentials, timeout=settings.request_timeout, transport=transport) as client:
            yield client

    async def _store_product_search(
        term: Annotated[str, Field(description="Search keyword (e.g., 't-shirt', 'blue')")],
        limit: Annotated[int, Field(ge=1, le=product.MAX_SEARCH_LIMIT, description="Max number of products")] = 3,
        page: Annotated[int, Field(ge=1, description="The page number")] = 1,
        sort: Annotated[product.SortKey | None, Field(description="Sort order")] = None,
        minPrice: Annotated[float | None, Field(description="Minimum price filter")] = None,
        maxPrice: Annotated[float | None, Field(description="Maximum price filter")] = None,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(
                await product.search_products(
                    client,
                    term=term,
                    limit=limit,
                    page=page,
                    sort=sort,
                    min_price=minPrice,
                    max_price=maxPrice,
                )
            )

    async def _store_product_detail(
        productId: Annotated[str, Field(description="The UUID or product number (SKU) of the product")],
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await product.get_product_detail(client, productId))

    async def _store_category_list(
        limit: Annotated[int, Field(ge=1, description="Max number of categories to return")] = 10,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await category.list_categories(client, limit=limit))

    async def _store_product_listing(
        categoryId: Annotated[str, Field(description="The UUID of the category")],
        limit: Annotated[int, Field(ge=1, description="Max number of products to return")] = 5,
        page: Annotated[int, Field(ge=1, description="The page number")] = 1,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await category.list_category_products(client, categoryId, limit=limit, page=page))

    async def _store_product_reviews(
        productId: Annotated[str, Field(description="The UUID or product number (SKU) of the product")],
        limit: Annotated[int, Field(ge=1, description="Max number of reviews to return")] = 5,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await review.get_product_reviews(client, productId, limit=limit))

    async def _store_cart_get(
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await cart.get_cart(client))

    async def _store_cart_add(
        productId: Annotated[str, Field(description="The UUID or product number (SKU) of the product to add")],
        quantity: Annotated[int, Field(ge=1, description="Quantity to add")] = 1,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await cart.add_to_cart(client, productId, quantity=quantity))

    async def _store_order_list(
        limit: Annotated[int, Field(ge=1, description="Max number of orders to return")] = 5,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await order.list_orders(client, limit=limit))

    async def _store_order_create(
        comment: Annotated[str | None, Field(description="Optional comment for the order")] = None,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await order.create_order(client, comment=comment))

    async def _store_get_shipping_methods(
        onlyAvailable: Annotated[bool, Field(description="Show only available methods")] = True,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await system.list_shipping_methods(client, only_available=onlyAvailable))

    async def _store_get_payment_methods(
        onlyAvailable: Annotated[bool, Field(description="Show only available methods")] = True,
        swAccessKey: AccessKey = None,
        swContextToken: ContextToken = None,
        swLanguageId: LanguageId = None,
        shopUrl: ShopUrl = None,
    ) -> list[TextContent]:
        async with _store_client(swAccessKey, swContextToken, swLanguageId, shopUrl) as client:
            return _emit(await system.list_payment_methods(client, only_available=onlyAvailable))

    tool_specs: list[tuple[str, str, ToolInvoker]] = [
        (
            "store_product_search",
            "Search for products in the current store context. Supports sorting and price filtering.",
            _store_product_search,
        ),
        (
            "store_product_detail",
            "Get detailed information about a specific product by ID or product number.",
            _store_product_detail,
        ),
        ("store_category_list", "List available product categories.", _store_category_list),
        ("store_product_listing", "Get products for a specific category.", _store_product_listing),
        ("store_product_reviews", "Get customer reviews for a specific product.", _store_product_reviews),
        ("store_cart_get", "View the current items in the customer's cart.", _store_cart_get),
        ("store_cart_add", "Add a product to the cart.", _store_cart_add),
        ("store_order_list", "List orders for the currently logged-in customer.", _store_order_list),
        ("store_order_create", "Place an order from the current cart.", _store_order_create),
        ("store_get_shipping_methods", "List available shipping methods.", _store_get_shipping_methods),
        ("store_get_payment_methods", "List available payment methods.", _store_get_payment_methods),
    ]

    tool_map: dict[str, ToolInvoker] = {}
    for name, description, invoker in tool_specs:
        mcp.tool(name=name, description=description)(invoker)
        tool_map[name] = invoker

    _LOGGER.info("Registered store tools", extra={"tool_count": len(tool_map)})
    return tool_map


def tool_result_payload(content: list[TextContent] | None = None, error: ToolError | None = None) -> dict[str, Any]:
    """Shape of a tool result for the plain JSON invoke route."""
    if error is not None:
        return ToolResponse.error(str(error)).to_dict()
    return {"content": [block.model_dump(exclude_none=True) for block in content or []], "isError": False}


__all__ = ["register_tools", "tool_result_payload", "ToolInvoker"]
