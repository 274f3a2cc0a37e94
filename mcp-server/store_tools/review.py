from __future__ import annotations

import logging

from formatters import bullet_list, format_amount
from models import EntitySearchResult, ProductReview
from store_client import StoreApiClient
from store_tools.common import UPSTREAM_ERRORS, ToolResponse, best_effort

_LOGGER = logging.getLogger("storemcp.tools")

_REVIEW_INCLUDES = {"product_review": ["id", "title", "content", "points", "createdAt", "externalUser"]}


async def _fetch_reviews(client: StoreApiClient, product_id: str, limit: int) -> EntitySearchResult[ProductReview]:
    raw = await client.post(f"product/{product_id}/reviews", {"limit": limit, "includes": _REVIEW_INCLUDES})
    return EntitySearchResult[ProductReview].model_validate(raw)


async def _parent_reviews(
    client: StoreApiClient, product_id: str, limit: int
) -> EntitySearchResult[ProductReview] | None:
    # Variants usually have no reviews of their own; they live on the parent.
    raw = await best_effort(
        client.post("product", {"ids": [product_id], "includes": {"product": ["id", "parentId"]}}),
        "review parent lookup",
    )
    elements = raw.get("elements") if isinstance(raw, dict) else None
    first = elements[0] if isinstance(elements, list) and elements else None
    parent_id = first.get("parentId") if isinstance(first, dict) else None
    if not parent_id:
        return None
    return await best_effort(_fetch_reviews(client, parent_id, limit), "parent reviews")


def _review_line(review: ProductReview) -> str:
    date = review.created_at.strftime("%Y-%m-%d") if review.created_at else "unknown date"
    title = review.title or "No Title"
    points = format_amount(review.points or 0)
    return f'[{points}/5] {title} ({date}): "{review.content or ""}"'


async def get_product_reviews(client: StoreApiClient, product_id: str, limit: int = 5) -> ToolResponse:
    resolved_id = await client.resolve_product_id(product_id)
    if not resolved_id:
        return ToolResponse.text(f"Product not found: {product_id}")

    limit = max(1, limit)
    try:
        response = await _fetch_reviews(client, resolved_id, limit)
    except UPSTREAM_ERRORS as exc:
        _LOGGER.error("Failed to fetch reviews for %s: %s", product_id, exc)
        return ToolResponse.error(f"Failed to fetch reviews for product {product_id}.")

    if not response.elements:
        response = await _parent_reviews(client, resolved_id, limit) or response
        if not response.elements:
            return ToolResponse.text(f"No reviews found for product {product_id}.")

    lines = [_review_line(review) for review in response.elements]
    reviews = bullet_list(lines, separator="\n\n")
    return ToolResponse.text(f"Product Reviews:\n{reviews}")


__all__ = ["get_product_reviews"]
