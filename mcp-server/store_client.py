from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from types import TracebackType
from typing import Any, Optional

import httpx

_LOGGER = logging.getLogger("storemcp.client")

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_HEX_UUID_RE = re.compile(r"^[0-9a-f]{32}$", re.IGNORECASE)


@dataclass(frozen=True)
class StoreCredentials:
    """Per-invocation storefront session data injected by the caller."""

    access_key: str | None = None
    context_token: str | None = None
    language_id: str | None = None
    shop_url: str | None = None

    def with_default_language(self, language_id: str) -> StoreCredentials:
        if self.language_id:
            return self
        return replace(self, language_id=language_id)


class StoreApiError(Exception):
    """Non-success HTTP response from the Store API."""

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"Store API Request failed: {status_code} {reason} - {body}")

    @property
    def is_unauthenticated(self) -> bool:
        return self.status_code == 403


def is_canonical_id(value: str) -> bool:
    return bool(_UUID_RE.match(value) or _HEX_UUID_RE.match(value))


class StoreApiClient:
    """Thin JSON wrapper around `{shop_url}/store-api/`.

    Use as an async context manager. When no `http_client` is supplied one is
    created on enter and closed on exit; an injected client is left open.
    """

    def __init__(
        self,
        credentials: StoreCredentials,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> StoreApiClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def credentials(self) -> StoreCredentials:
        return self._credentials

    @property
    def base_url(self) -> str:
        return (self._credentials.shop_url or "").rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "sw-access-key": self._credentials.access_key or "",
            "sw-context-token": self._credentials.context_token or "",
            "sw-language-id": self._credentials.language_id or "",
        }

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/store-api/{path.lstrip('/')}"

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("StoreApiClient is not open; use it with 'async with'")
        return self._http

    async def request(self, method: str, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        url = self.url_for(path)
        try:
            response = await self.http.request(
                method,
                url,
                headers=self.headers,
                json=body if method.upper() != "GET" else None,
            )
        except httpx.HTTPError as exc:
            _LOGGER.error("Store API transport error [%s]: %s", path, exc)
            raise

        if not response.is_success:
            error = StoreApiError(response.status_code, response.reason_phrase, response.text)
            _LOGGER.error(
                "Store API error [%s]: %s",
                path,
                error,
                extra={"status_code": response.status_code, "path": path},
            )
            raise error

        if response.status_code == 204:
            return {}

        return response.json()

    async def get(self, path: str) -> dict[str, Any]:
        return await self.request("GET", path)

    async def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", path, body)

    async def resolve_product_id(self, id_or_sku: str) -> str | None:
        """Return a canonical product id for a UUID or SKU, or None if unknown."""
        if is_canonical_id(id_or_sku):
            return id_or_sku

        _LOGGER.info("Input '%s' is not a UUID, searching by product number", id_or_sku)
        try:
            response = await self.post(
                "search",
                {
                    "filter": [{"type": "equals", "field": "productNumber", "value": id_or_sku}],
                    "includes": {"product": ["id"]},
                    "limit": 1,
                },
            )
        except (StoreApiError, httpx.HTTPError, ValueError) as exc:
            _LOGGER.warning("Product number lookup failed for '%s': %s", id_or_sku, exc)
            return None

        elements = response.get("elements") if isinstance(response, dict) else None
        if isinstance(elements, list) and elements and isinstance(elements[0], dict) and elements[0].get("id"):
            found_id = str(elements[0]["id"])
            _LOGGER.info("Resolved SKU '%s' to ID '%s'", id_or_sku, found_id)
            return found_id
        return None


__all__ = ["StoreApiClient", "StoreApiError", "StoreCredentials", "is_canonical_id"]
