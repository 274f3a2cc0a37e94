from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import ValidationError

from formatters import (
    absolute_url,
    aggregate_options,
    cover_image_url,
    format_price,
    has_next_page,
    product_url,
    sort_by_rating,
    strip_html,
)
from models import EntitySearchResult, Product
from store_client import StoreApiClient
from store_tools.common import (
    UPSTREAM_ERRORS,
    ToolResponse,
    best_effort,
    compact,
    fetch_currency_symbol,
    fetch_parents,
    resolved_name,
)

_LOGGER = logging.getLogger("storemcp.tools")

MAX_SEARCH_LIMIT = 3

SortKey = Literal[
    "relevance",
    "price-asc",
    "price-desc",
    "rating",
    "rating-desc",
    "rating-asc",
    "name-asc",
    "name-desc",
]

_SORT_ORDERS: dict[str, str] = {
    "price-asc": "price-asc",
    "price-desc": "price-desc",
    "name-asc": "name-asc",
    "name-desc": "name-desc",
    "rating": "ratingAverage-desc",
    "rating-desc": "ratingAverage-desc",
    "rating-asc": "ratingAverage-asc",
}

_RATING_SORTS = {"rating": True, "rating-desc": True, "rating-asc": False}

_SEARCH_INCLUDES = {
    "product": [
        "id",
        "productNumber",
        "name",
        "translated",
        "stock",
        "availableStock",
        "calculatedPrice",
        "parentId",
        "ratingAverage",
        "seoUrls",
        "media",
        "cover",
        "description",
    ],
    "product_media": ["media"],
    "media": ["url"],
    "seo_url": ["seoPathInfo"],
}

_OPTION_ASSOCIATIONS = {"associations": {"group": {}}}

_DETAIL_ASSOCIATIONS = {
    "media": {},
    "cover": {},
    "manufacturer": {},
    "deliveryTime": {},
    "seoUrls": {},
    "properties": _OPTION_ASSOCIATIONS,
    "options": _OPTION_ASSOCIATIONS,
    "children": {"associations": {"options": _OPTION_ASSOCIATIONS}},
    "categories": {},
}


def sort_order(sort: str | None) -> str | None:
    if not sort:
        return None
    return _SORT_ORDERS.get(sort)


def price_filter(min_price: float | None, max_price: float | None) -> list[dict[str, Any]]:
    if min_price is None and max_price is None:
        return []
    bounds: dict[str, float] = {}
    if min_price is not None:
        bounds["gte"] = min_price
    if max_price is not None:
        bounds["lte"] = max_price
    return [{"type": "range", "field": "price", "parameters": bounds}]


async def search_products(
    client: StoreApiClient,
    term: str,
    limit: int = MAX_SEARCH_LIMIT,
    page: int = 1,
    sort: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
) -> ToolResponse:
    limit = max(1, min(limit, MAX_SEARCH_LIMIT))
    page = max(1, page)
    filters = price_filter(min_price, max_price)

    currency_symbol = await fetch_currency_symbol(client)

    try:
        raw = await client.post(
            "search",
            compact(
                {
                    "search": term,
                    "limit": limit,
                    "page": page,
                    "order": sort_order(sort),
                    "filter": filters or None,
                    "includes": _SEARCH_INCLUDES,
                    "associations": {"seoUrls": {}, "media": {}, "cover": {}},
                }
            ),
        )
        response = EntitySearchResult[Product].model_validate(raw)
    except UPSTREAM_ERRORS as exc:
        return ToolResponse.error(f"Failed to search products for \"{term}\". Error: {exc}")

    if not response.elements:
        return ToolResponse.text(f'No products found for search term: "{term}"')

    parents = await fetch_parents(client, response.elements)
    base_url = client.base_url

    elements = response.elements
    if sort in _RATING_SORTS:
        # Store API rating order is unreliable across variants; re-sort the page.
        elements = sort_by_rating(elements, descending=_RATING_SORTS[sort], key=lambda p: p.rating_average)

    results = []
    for product in elements:
        price = product.calculated_price.total_price or 0
        results.append(
            {
                "id": product.id,
                "productNumber": product.product_number,
                "name": resolved_name(product, parents),
                "price": price,
                "formattedPrice": format_price(price, currency_symbol),
                "currency": currency_symbol,
                "rating": product.rating_average,
                "stock": product.available_stock,
                "url": product_url(base_url, product),
                "imageUrl": cover_image_url(base_url, product),
            }
        )

    total = response.total if response.total is not None else len(results)
    return ToolResponse.json(
        {
            "results": results,
            "searchTerm": term,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "hasNextPage": has_next_page(total, page, limit),
            },
        }
    )


async def _fetch_parent_detail(client: StoreApiClient, parent_id: str) -> Product | None:
    raw = await best_effort(
        client.post("product", {"ids": [parent_id], "limit": 1, "associations": _DETAIL_ASSOCIATIONS}),
        "parent product detail",
    )
    if not raw:
        return None
    try:
        parents = EntitySearchResult[Product].model_validate(raw)
    except ValidationError as exc:
        _LOGGER.warning("Unexpected parent detail payload: %s", exc)
        return None
    return parents.elements[0] if parents.elements else None


async def get_product_detail(client: StoreApiClient, product_id: str) -> ToolResponse:
    """Full detail view of one product.

    Variants inherit name, description, media, manufacturer and category from
    their parent when they carry none of their own, and `availableOptions`
    aggregates the option values of every sibling variant.
    """
    resolved_id = await client.resolve_product_id(product_id)
    if not resolved_id:
        return ToolResponse.text(f"Product not found: {product_id}")

    try:
        raw = await client.post(
            "product",
            {"ids": [resolved_id], "limit": 1, "associations": _DETAIL_ASSOCIATIONS},
        )
        response = EntitySearchResult[Product].model_validate(raw)
    except UPSTREAM_ERRORS as exc:
        return ToolResponse.error(f"Failed to fetch product {product_id}. Error: {exc}")

    if not response.elements:
        return ToolResponse.text(f"Product not found with ID: {resolved_id}")

    product = response.elements[0]
    parent = await _fetch_parent_detail(client, product.parent_id) if product.parent_id else None
    currency_symbol = await fetch_currency_symbol(client)

    if parent is not None:
        variants = parent.children
    else:
        variants = product.children

    name = product.display_name or (parent.display_name if parent else None) or "Unknown"
    description = product.display_description or (parent.display_description if parent else None)
    media = product.media or (parent.media if parent else [])
    manufacturer = product.manufacturer or (parent.manufacturer if parent else None)
    categories = product.categories or (parent.categories if parent else [])

    base_url = client.base_url
    price = product.calculated_price.total_price or 0
    delivery_time = product.delivery_time.display_name if product.delivery_time else None

    detail = {
        "id": product.id,
        "productNumber": product.product_number,
        "name": name,
        "description": strip_html(description),
        "price": price,
        "formattedPrice": format_price(price, currency_symbol),
        "currency": currency_symbol,
        "manufacturer": manufacturer.display_name if manufacturer else None,
        "deliveryTime": delivery_time or "Standard Delivery",
        "stock": product.available_stock or 0,
        "rating": product.rating_average,
        "options": [
            {
                "group": option.group.display_name if option.group else None,
                "option": option.display_name,
            }
            for option in product.variant_options
        ],
        "availableOptions": aggregate_options([*variants, product]),
        "images": [url for url in (absolute_url(base_url, m.media.url) for m in media) if url],
        "url": product_url(base_url, product),
        "categoryName": categories[0].display_name if categories else None,
    }
    return ToolResponse.json(detail)


__all__ = ["MAX_SEARCH_LIMIT", "SortKey", "get_product_detail", "price_filter", "search_products", "sort_order"]
