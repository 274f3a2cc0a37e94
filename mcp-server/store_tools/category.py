from __future__ import annotations

import logging

from formatters import bullet_list, format_amount, has_next_page, option_label
from models import Category, EntitySearchResult, Product
from store_client import StoreApiClient
from store_tools.common import UPSTREAM_ERRORS, ToolResponse, fetch_parents, resolved_name

_LOGGER = logging.getLogger("storemcp.tools")

_LISTING_INCLUDES = {
    "product": [
        "id",
        "productNumber",
        "name",
        "translated",
        "stock",
        "calculatedPrice",
        "parentId",
        "options",
        "properties",
        "availableStock",
    ],
    "product_media": ["media"],
    "media": ["url"],
}

_OPTION_ASSOCIATIONS = {"associations": {"group": {}}}


async def list_categories(client: StoreApiClient, limit: int = 10) -> ToolResponse:
    try:
        raw = await client.post(
            "category",
            {
                "limit": max(1, limit),
                "includes": {"category": ["id", "name", "translated", "parentId", "active", "level"]},
            },
        )
        response = EntitySearchResult[Category].model_validate(raw)
    except UPSTREAM_ERRORS as exc:
        _LOGGER.error("Failed to fetch categories: %s", exc)
        return ToolResponse.error("Failed to fetch categories.")

    if not response.elements:
        return ToolResponse.text("No categories found.")

    lines = [f"{category.display_name or 'Unknown'} (ID: {category.id})" for category in response.elements]
    return ToolResponse.text(f"Available Categories:\n{bullet_list(lines)}")


def _listing_line(product: Product, parents: dict[str, Product]) -> str:
    name = resolved_name(product, parents)
    options = " | ".join(option_label(option) for option in product.variant_options)
    full_name = f"{name} ( {options} )" if options else name
    price = product.calculated_price.total_price
    stock = product.available_stock if product.available_stock is not None else "Unknown"
    return (
        f"[{full_name}] (ID: {product.id}, SKU: {product.product_number}) "
        f"- Price: {format_amount(price) if price else 'N/A'} - Stock: {stock}"
    )


async def list_category_products(
    client: StoreApiClient,
    category_id: str,
    limit: int = 5,
    page: int = 1,
) -> ToolResponse:
    limit = max(1, limit)
    page = max(1, page)
    try:
        raw = await client.post(
            f"product-listing/{category_id}",
            {
                "limit": limit,
                "page": page,
                "includes": _LISTING_INCLUDES,
                "associations": {"properties": _OPTION_ASSOCIATIONS, "options": _OPTION_ASSOCIATIONS},
            },
        )
        response = EntitySearchResult[Product].model_validate(raw)
    except UPSTREAM_ERRORS as exc:
        _LOGGER.error("Failed to fetch product listing for %s: %s", category_id, exc)
        return ToolResponse.error(f"Failed to fetch products for category {category_id}.")

    if not response.elements:
        return ToolResponse.text(f"No products found in category {category_id}.")

    parents = await fetch_parents(client, response.elements)
    lines = [_listing_line(product, parents) for product in response.elements]

    total = response.total if response.total is not None else len(lines)
    more = "yes" if has_next_page(total, page, limit) else "no"
    return ToolResponse.text(
        f"Products in category (page {page}, {total} total, more pages: {more}):\n{bullet_list(lines)}"
    )


__all__ = ["list_categories", "list_category_products"]
