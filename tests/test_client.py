from __future__ import annotations

import pytest
import requests

from craftpublish.errors import AuthError, TransportError, ValidationError
from craftpublish.shopify.client import ShopifyClient

from fakes import PRODUCTS_URL, SHOP, SHOP_URL, FakeResponse


@pytest.fixture
def client(config, http) -> ShopifyClient:
    return ShopifyClient(f"https://{SHOP}/", "shpat_x", config, http)


def test_get_shop_returns_profile(client, http):
    http.add("GET", SHOP_URL, FakeResponse(200, {"shop": {"name": "Craft"}}))
    assert client.get_shop() == {"name": "Craft"}
    (call,) = http.calls
    assert call["timeout"] == 10.0
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_x"


@pytest.mark.parametrize("limit, expected", [(0, 1), (50, 50), (1000, 250)])
def test_list_products_clamps_limit(client, http, limit, expected):
    http.add("GET", PRODUCTS_URL, FakeResponse(200, {"products": []}))
    assert client.list_products(limit=limit) == []
    assert http.calls[0]["params"] == {"limit": expected}


@pytest.mark.parametrize(
    "response, error_type",
    [
        (FakeResponse(401, {"errors": "[API] Invalid API key"}), AuthError),
        (FakeResponse(422, {"errors": {"base": ["nope"]}}), ValidationError),
        (FakeResponse(503, text="unavailable"), TransportError),
        (FakeResponse(200, text="<html>"), ValidationError),
        (FakeResponse(200, ["not", "an", "object"]), ValidationError),
        (FakeResponse(200, {"unexpected": True}), ValidationError),
    ],
)
def test_get_shop_failures(client, http, response, error_type):
    http.add("GET", SHOP_URL, response)
    with pytest.raises(error_type):
        client.get_shop()


def test_timeout_is_a_transport_error(client, http):
    http.add("GET", SHOP_URL, requests.Timeout("slow"))
    with pytest.raises(TransportError, match="timed out"):
        client.get_shop()


def test_transport_error_keeps_response_text(client, http):
    http.add("GET", PRODUCTS_URL, FakeResponse(500, text="x" * 800))
    with pytest.raises(TransportError) as excinfo:
        client.list_products()
    assert excinfo.value.status_code == 500
    assert excinfo.value.errors == "x" * 500
