from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Iterable, TypeVar

import httpx
from pydantic import ValidationError

from models import EntitySearchResult, Product, SalesChannelContext
from store_client import StoreApiClient, StoreApiError

_LOGGER = logging.getLogger("storemcp.tools")

T = TypeVar("T")

# Failures coming back from the Store API: HTTP status, transport, or a body
# that does not decode or does not match the expected record shape.
UPSTREAM_ERRORS: tuple[type[Exception], ...] = (
    StoreApiError,
    httpx.HTTPError,
    ValidationError,
    ValueError,
)


@dataclass
class ToolResponse:
    content: list[dict[str, str]] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> ToolResponse:
        return cls(content=[{"type": "text", "text": text}], is_error=is_error)

    @classmethod
    def json(cls, payload: Any) -> ToolResponse:
        return cls.text(json.dumps(payload, indent=2, ensure_ascii=False))

    @classmethod
    def error(cls, text: str) -> ToolResponse:
        return cls.text(text, is_error=True)

    @property
    def joined_text(self) -> str:
        return "\n".join(block.get("text", "") for block in self.content)

    def to_dict(self) -> dict[str, Any]:
        return {"content": list(self.content), "isError": self.is_error}


def not_logged_in(action: str) -> ToolResponse:
    return ToolResponse.text(
        f"You are not logged in. The customer must log in to the shop to {action}."
    )


async def best_effort(awaitable: Awaitable[T], what: str) -> T | None:
    """Await a secondary lookup, returning None instead of failing the tool."""
    try:
        return await awaitable
    except UPSTREAM_ERRORS as exc:
        _LOGGER.warning("Secondary lookup '%s' failed: %s", what, exc, extra={"lookup": what})
        return None


async def fetch_currency_symbol(client: StoreApiClient) -> str:
    context = await best_effort(client.get("context"), "context currency")
    if not context:
        return ""
    try:
        parsed = SalesChannelContext.model_validate(context)
    except ValidationError as exc:
        _LOGGER.warning("Unexpected context payload: %s", exc)
        return ""
    return (parsed.currency.symbol if parsed.currency else None) or ""


async def fetch_parents(client: StoreApiClient, products: Iterable[Product]) -> dict[str, Product]:
    """Batch-load parents of variants that carry no display name of their own."""
    parent_ids: list[str] = []
    for product in products:
        if product.display_name or not product.parent_id:
            continue
        if product.parent_id not in parent_ids:
            parent_ids.append(product.parent_id)
    if not parent_ids:
        return {}

    response = await best_effort(
        client.post("product", {"ids": parent_ids, "limit": len(parent_ids)}),
        "variant parents",
    )
    if not response:
        return {}
    try:
        parents = EntitySearchResult[Product].model_validate(response)
    except ValidationError as exc:
        _LOGGER.warning("Unexpected parent product payload: %s", exc)
        return {}
    return {parent.id: parent for parent in parents.elements}


def resolved_name(product: Product, parents: dict[str, Product]) -> str:
    name = product.display_name
    if not name and product.parent_id:
        parent = parents.get(product.parent_id)
        if parent is not None:
            name = parent.display_name
    return name or "Unknown"


def compact(body: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so they are omitted from request bodies."""
    return {key: value for key, value in body.items() if value is not None}


__all__ = [
    "ToolResponse",
    "UPSTREAM_ERRORS",
    "best_effort",
    "compact",
    "fetch_currency_symbol",
    "fetch_parents",
    "not_logged_in",
    "resolved_name",
]
