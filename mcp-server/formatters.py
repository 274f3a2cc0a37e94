from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Sequence, TypeVar

from models import Product, PropertyOption

_TAG_RE = re.compile(r"<[^>]*>")

T = TypeVar("T")


def strip_html(text: str | None) -> str | None:
    if text is None:
        return None
    return _TAG_RE.sub("", text).strip()


def format_amount(value: Any) -> str:
    """Render a price the way the storefront prints plain numbers (20.0 -> "20")."""
    if isinstance(value, bool) or value is None:
        return "N/A"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_price(value: Any, currency_symbol: str = "") -> str:
    amount = format_amount(value)
    return f"{amount} {currency_symbol}" if currency_symbol else amount


def absolute_url(base_url: str, url: str | None) -> str | None:
    if not url:
        return None
    if url.startswith("http") or not base_url:
        return url
    return f"{base_url}/{url.lstrip('/')}"


def product_url(base_url: str, product: Product) -> str:
    seo_path = next((seo.seo_path_info for seo in product.seo_urls if seo.seo_path_info), None)
    path = seo_path or f"detail/{product.id}"
    return f"{base_url}/{path}" if base_url else path


def cover_image_url(base_url: str, product: Product) -> str | None:
    url = product.cover.media.url if product.cover else None
    if not url and product.media:
        url = product.media[0].media.url
    return absolute_url(base_url, url)


def option_label(option: PropertyOption) -> str:
    group = option.group.display_name if option.group else None
    value = option.display_name or ""
    return f"{group}: {value}" if group else value


def aggregate_options(products: Iterable[Product]) -> dict[str, list[str]]:
    aggregated: dict[str, list[str]] = {}
    for product in products:
        for option in product.variant_options:
            group = option.group.display_name if option.group else None
            value = option.display_name
            if not group or not value:
                continue
            values = aggregated.setdefault(group, [])
            if value not in values:
                values.append(value)
    return aggregated


def sort_by_rating(
    items: Sequence[T],
    descending: bool = True,
    key: Callable[[T], Any] | None = None,
) -> list[T]:
    """Order items by rating; unrated items always go last in their original order."""
    rating = key or (lambda item: item)
    rated = [item for item in items if rating(item) is not None]
    unrated = [item for item in items if rating(item) is None]
    rated.sort(key=rating, reverse=descending)
    return rated + unrated


def has_next_page(total: int, page: int, limit: int) -> bool:
    return total > page * limit


def bullet_list(lines: Iterable[str], separator: str = "\n") -> str:
    return separator.join(f"- {line}" for line in lines)


__all__ = [
    "absolute_url",
    "aggregate_options",
    "bullet_list",
    "cover_image_url",
    "format_amount",
    "format_price",
    "has_next_page",
    "option_label",
    "product_url",
    "sort_by_rating",
    "strip_html",
]
