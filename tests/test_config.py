from __future__ import annotations

import pytest

from craftpublish.config import PublishConfig
from craftpublish.shopify.urls import ensure_https, strip_shop_scheme


def test_defaults():
    config = PublishConfig()
    assert config.api_version == "2023-10"
    assert (config.fetch_timeout, config.upload_timeout, config.product_timeout) == (
        15.0,
        30.0,
        30.0,
    )
    assert (config.max_dimension, config.jpeg_quality) == (2048, 85)


def test_from_env_overrides_typed_values():
    config = PublishConfig.from_env(
        {
            "CRAFTPUBLISH_API_VERSION": "2024-04",
            "CRAFTPUBLISH_MAX_WORKERS": "8",
            "CRAFTPUBLISH_UPLOAD_TIMEOUT": "45",
            "CRAFTPUBLISH_DEFAULT_VENDOR": " ",
        }
    )
    assert config.api_version == "2024-04"
    assert config.max_workers == 8
    assert config.upload_timeout == 45.0
    assert config.default_vendor == "CraftConnect"


@pytest.mark.parametrize(
    "environ",
    [{"CRAFTPUBLISH_MAX_WORKERS": "many"}, {"CRAFTPUBLISH_MAX_WORKERS": "0"}],
)
def test_from_env_rejects_bad_values(environ):
    with pytest.raises(ValueError):
        PublishConfig.from_env(environ)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://cdn.shopify.com/a.jpg", "https://cdn.shopify.com/a.jpg"),
        ("HTTP://cdn.shopify.com/a.jpg", "https://cdn.shopify.com/a.jpg"),
        ("https://cdn.shopify.com/a.jpg", "https://cdn.shopify.com/a.jpg"),
        ("//cdn.shopify.com/a.jpg", "https://cdn.shopify.com/a.jpg"),
        ("cdn.shopify.com/a.jpg", "https://cdn.shopify.com/a.jpg"),
        ("ftp://cdn.shopify.com/a.jpg", "https://cdn.shopify.com/a.jpg"),
        ("s3://bucket.example.com/a.jpg?v=2", "https://bucket.example.com/a.jpg?v=2"),
    ],
)
def test_ensure_https(url, expected):
    assert ensure_https(url) == expected


@pytest.mark.parametrize(
    "shop",
    ["shop.myshopify.com", "https://shop.myshopify.com", "http://shop.myshopify.com/"],
)
def test_strip_shop_scheme(shop):
    assert strip_shop_scheme(shop) == "shop.myshopify.com"
