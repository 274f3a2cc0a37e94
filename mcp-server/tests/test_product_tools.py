"""
Product search and product detail tools.
"""

import json

import httpx
import pytest

from store_tools.product import get_product_detail, price_filter, search_products, sort_order

PARENT_ID = "11112222333344445555666677778888"
VARIANT_ID = "99990000aaaabbbbccccddddeeeeffff"


def _payload(response):
    assert not response.is_error, response.joined_text
    return json.loads(response.content[0]["text"])


class TestSearchArguments:
    @pytest.mark.parametrize(
        "sort, expected",
        [
            ("price-asc", "price-asc"),
            ("price-desc", "price-desc"),
            ("name-asc", "name-asc"),
            ("name-desc", "name-desc"),
            ("rating", "ratingAverage-desc"),
            ("rating-desc", "ratingAverage-desc"),
            ("rating-asc", "ratingAverage-asc"),
            ("relevance", None),
            (None, None),
        ],
    )
    def test_sort_mapping(self, sort, expected):
        assert sort_order(sort) == expected

    def test_price_filter_only_when_bounded(self):
        assert price_filter(None, None) == []
        assert price_filter(10, None) == [{"type": "range", "field": "price", "parameters": {"gte": 10}}]
        assert price_filter(None, 50) == [{"type": "range", "field": "price", "parameters": {"lte": 50}}]
        assert price_filter(10, 50)[0]["parameters"] == {"gte": 10, "lte": 50}


class TestSearchProducts:
    @pytest.mark.asyncio
    async def test_results_and_pagination(self, client, store_api, make_product):
        store_api.on("GET", "context", {"currency": {"symbol": "€"}})
        store_api.on("POST", "search", {"total": 7, "elements": [make_product()]})

        payload = _payload(await search_products(client, term="shirt", limit=3, page=1, min_price=5))

        assert payload["searchTerm"] == "shirt"
        assert payload["pagination"] == {"total": 7, "page": 1, "limit": 3, "hasNextPage": True}
        result = payload["results"][0]
        assert result["name"] == "Cotton Shirt"
        assert result["formattedPrice"] == "19.99 €"
        assert result["url"] == "https://shop.example.com/cotton-shirt/SW10001"
        assert result["imageUrl"] == "https://cdn.example.com/shirt.jpg"

        body = store_api.calls("POST", "search")[0]
        assert body["filter"] == [{"type": "range", "field": "price", "parameters": {"gte": 5}}]
        assert "order" not in body

    @pytest.mark.asyncio
    async def test_last_page_has_no_next_page(self, client, store_api, make_product):
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", {"total": 7, "elements": [make_product()]})

        payload = _payload(await search_products(client, term="shirt", limit=3, page=3))

        assert payload["pagination"]["hasNextPage"] is False

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, client, store_api, make_product):
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", {"total": 1, "elements": [make_product()]})

        payload = _payload(await search_products(client, term="shirt", limit=25))

        assert payload["pagination"]["limit"] == 3
        assert store_api.calls("POST", "search")[0]["limit"] == 3

    @pytest.mark.asyncio
    async def test_currency_failure_is_not_fatal(self, client, store_api, make_product):
        store_api.on("GET", "context", status=500)
        store_api.on("POST", "search", {"total": 1, "elements": [make_product()]})

        result = _payload(await search_products(client, term="shirt"))["results"][0]

        assert result["currency"] == ""
        assert result["formattedPrice"] == "19.99"

    @pytest.mark.asyncio
    async def test_variant_without_name_uses_parent_name(self, client, store_api, make_product):
        variant = make_product(id=VARIANT_ID, name=None, translated={}, parentId=PARENT_ID)
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", {"total": 1, "elements": [variant]})
        store_api.on("POST", "product", {"elements": [{"id": PARENT_ID, "name": "Blue Shirt"}]})

        result = _payload(await search_products(client, term="shirt"))["results"][0]

        assert result["name"] == "Blue Shirt"
        assert store_api.calls("POST", "product") == [{"ids": [PARENT_ID], "limit": 1}]

    @pytest.mark.asyncio
    async def test_failed_parent_lookup_falls_back_to_unknown(self, client, store_api, make_product):
        variant = make_product(id=VARIANT_ID, name=None, translated={}, parentId=PARENT_ID)
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", {"total": 1, "elements": [variant]})
        store_api.on("POST", "product", status=500)

        result = _payload(await search_products(client, term="shirt"))["results"][0]

        assert result["id"] == VARIANT_ID
        assert result["name"] == "Unknown"

    @pytest.mark.asyncio
    async def test_rating_sort_puts_unrated_last(self, client, store_api, make_product):
        ratings = [5, None, 3, None, 4]
        elements = [make_product(id=f"p{i}", ratingAverage=rating) for i, rating in enumerate(ratings)]
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", {"total": 5, "elements": elements})

        desc = _payload(await search_products(client, term="shirt", sort="rating-desc"))["results"]
        asc = _payload(await search_products(client, term="shirt", sort="rating-asc"))["results"]

        assert [r["rating"] for r in desc] == [5, 4, 3, None, None]
        assert [r["rating"] for r in asc] == [3, 4, 5, None, None]
        assert store_api.calls("POST", "search")[0]["order"] == "ratingAverage-desc"

    @pytest.mark.asyncio
    async def test_no_hits_is_informational(self, client, store_api):
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", {"total": 0, "elements": []})

        response = await search_products(client, term="unicorn")

        assert not response.is_error
        assert response.joined_text == 'No products found for search term: "unicorn"'

    @pytest.mark.asyncio
    async def test_upstream_failure_is_error_result(self, client, store_api):
        store_api.on("GET", "context", {})
        store_api.on("POST", "search", status=500)

        response = await search_products(client, term="shirt")

        assert response.is_error
        assert "500" in response.joined_text


class TestProductDetail:
    def _detail_route(self, store_api, variant, parent):
        def respond(body):
            if body["ids"] == [PARENT_ID]:
                return {"elements": [parent]}
            return {"elements": [variant]}

        store_api.on("POST", "product", respond)

    @pytest.mark.asyncio
    async def test_variant_inherits_from_parent(self, client, store_api, make_product):
        variant = make_product(
            id=VARIANT_ID,
            name=None,
            translated={},
            parentId=PARENT_ID,
            description=None,
            options=[{"name": "Blue", "group": {"name": "Color"}}],
        )
        parent = make_product(
            id=PARENT_ID,
            name="Blue Shirt",
            description="<p>Soft <b>cotton</b></p>",
            media=[{"media": {"url": "/media/shirt.jpg"}}],
            manufacturer={"name": "Acme"},
            categories=[{"id": "c1", "name": "Shirts"}],
            children=[
                {"id": "v1", "options": [{"name": "Red", "group": {"name": "Color"}}]},
                {"id": VARIANT_ID, "options": [{"name": "Blue", "group": {"name": "Color"}}]},
            ],
        )
        self._detail_route(store_api, variant, parent)
        store_api.on("GET", "context", {"currency": {"symbol": "$"}})

        detail = _payload(await get_product_detail(client, VARIANT_ID))

        assert detail["name"] == "Blue Shirt"
        assert detail["description"] == "Soft cotton"
        assert detail["manufacturer"] == "Acme"
        assert detail["categoryName"] == "Shirts"
        assert detail["images"] == ["https://shop.example.com/media/shirt.jpg"]
        assert detail["availableOptions"] == {"Color": ["Red", "Blue"]}
        assert detail["options"] == [{"group": "Color", "option": "Blue"}]
        assert detail["formattedPrice"] == "19.99 $"
        assert detail["deliveryTime"] == "Standard Delivery"

    @pytest.mark.asyncio
    async def test_failed_parent_lookup_uses_variant_data(self, client, store_api, make_product):
        variant = make_product(
            id=VARIANT_ID,
            name=None,
            translated={},
            parentId=PARENT_ID,
            description="<p>Variant text</p>",
            options=[{"name": "Blue", "group": {"name": "Color"}}],
        )

        def respond(body):
            if body["ids"] == [PARENT_ID]:
                return httpx.Response(500, text="parent unavailable")
            return {"elements": [variant]}

        store_api.on("POST", "product", respond)
        store_api.on("GET", "context", {})

        detail = _payload(await get_product_detail(client, VARIANT_ID))

        assert detail["id"] == VARIANT_ID
        assert detail["name"] == "Unknown"
        assert detail["description"] == "Variant text"
        assert detail["availableOptions"] == {"Color": ["Blue"]}
        assert detail["manufacturer"] is None
        assert len(store_api.calls("POST", "product")) == 2

    @pytest.mark.asyncio
    async def test_detail_is_idempotent(self, client, store_api, make_product):
        self._detail_route(store_api, make_product(id=VARIANT_ID), {})
        store_api.on("GET", "context", {"currency": {"symbol": "€"}})

        first = await get_product_detail(client, VARIANT_ID)
        second = await get_product_detail(client, VARIANT_ID)

        assert first.content == second.content

    @pytest.mark.asyncio
    async def test_unknown_sku_is_informational(self, client, store_api):
        store_api.on("POST", "search", {"elements": []})

        response = await get_product_detail(client, "NOPE-1")

        assert not response.is_error
        assert response.joined_text == "Product not found: NOPE-1"
        assert store_api.calls("POST", "product") == []

    @pytest.mark.asyncio
    async def test_sku_is_resolved_before_fetch(self, client, store_api, make_product):
        store_api.on("POST", "search", {"elements": [{"id": VARIANT_ID}]})
        self._detail_route(store_api, make_product(id=VARIANT_ID), {})
        store_api.on("GET", "context", {})

        detail = _payload(await get_product_detail(client, "SW10001"))

        assert detail["id"] == VARIANT_ID
        assert store_api.calls("POST", "product")[0]["ids"] == [VARIANT_ID]
