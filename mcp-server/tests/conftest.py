"""
Shared fixtures: a fake Store API served through httpx.MockTransport.
"""

import json
from typing import Any, Callable, Union

import httpx
import pytest

from store_client import StoreApiClient, StoreCredentials

SHOP_URL = "https://shop.example.com"

Responder = Union[dict, list, bytes, Callable[[dict], Any]]


class FakeStoreApi:
    """Routes requests by (method, path under /store-api/) and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Responder | None]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, payload: Responder | None = None, status: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status, payload)

    def calls(self, method: str, path: str) -> list[dict]:
        """Decoded JSON bodies of recorded requests to one route."""
        bodies = []
        for request in self.requests:
            if request.method == method.upper() and self._path(request) == path:
                bodies.append(json.loads(request.content) if request.content else {})
        return bodies

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path.split("/store-api/", 1)[-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, self._path(request)))
        if route is None:
            return httpx.Response(404, text="no fake route")
        status, payload = route
        if callable(payload):
            body = json.loads(request.content) if request.content else {}
            payload = payload(body)
            if isinstance(payload, httpx.Response):
                return payload
        if status == 204:
            return httpx.Response(204)
        if status >= 400:
            return httpx.Response(status, text=json.dumps(payload or {"errors": []}))
        if isinstance(payload, bytes):
            return httpx.Response(status, content=payload, headers={"Content-Type": "application/json"})
        return httpx.Response(status, json=payload)


@pytest.fixture
def store_api():
    return FakeStoreApi()


@pytest.fixture
def credentials():
    return StoreCredentials(
        access_key="SWSCTESTKEY",
        context_token="ctx-token-1",
        language_id="2fbb5fe2e29a4d70aa5854ce7ce3e20b",
        shop_url=SHOP_URL + "/",
    )


@pytest.fixture
def client(store_api, credentials):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(store_api))
    return StoreApiClient(credentials, http_client=http_client)


def product_payload(**fields: Any) -> dict:
    """Minimal Store API product entity."""
    data = {
        "id": "0190a1b2c3d4e5f60718293a4b5c6d7e",
        "productNumber": "SW10001",
        "name": "Cotton Shirt",
        "translated": {"name": "Cotton Shirt"},
        "calculatedPrice": {"unitPrice": 19.99, "totalPrice": 19.99},
        "availableStock": 12,
        "parentId": None,
        "seoUrls": [{"seoPathInfo": "cotton-shirt/SW10001"}],
        "cover": {"media": {"url": "https://cdn.example.com/shirt.jpg"}},
        "media": [],
    }
    data.update(fields)
    return data


@pytest.fixture
def make_product():
    return product_payload
