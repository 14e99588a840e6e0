"""URL helpers for shop identifiers and asset addresses."""

from __future__ import annotations

import re
from urllib.parse import urlparse

_SCHEME_PREFIX = re.compile(r"^https?://", re.IGNORECASE)


def ensure_https(url: str) -> str:
    """Return *url* with its scheme forced to ``https``.

    Protocol-relative (``//host/...``) and scheme-less addresses are
    qualified with ``https`` as well, and any other scheme is replaced.
    """
    cleaned = url.strip()
    if not cleaned:
        return cleaned
    if cleaned.startswith("//"):
        return f"https:{cleaned}"
    if _SCHEME_PREFIX.match(cleaned):
        return "https://" + _SCHEME_PREFIX.sub("", cleaned, count=1)
    parsed = urlparse(cleaned)
    if parsed.scheme and parsed.netloc:
        return parsed._replace(scheme="https").geturl()
    return f"https://{cleaned}"


def strip_shop_scheme(shop: str) -> str:
    """Return the bare shop host, dropping any http(s) prefix and trailing slash."""
    return _SCHEME_PREFIX.sub("", shop.strip()).rstrip("/")


def shop_api_url(shop: str, api_version: str, resource: str) -> str:
    """Return the admin API URL for *resource* (e.g. ``products.json``)."""
    return f"https://{strip_shop_scheme(shop)}/admin/api/{api_version}/{resource}"


def product_url(shop: str, handle: str) -> str:
    return f"https://{strip_shop_scheme(shop)}/products/{handle}"


def admin_product_url(shop: str, product_id: str) -> str:
    return f"https://{strip_shop_scheme(shop)}/admin/products/{product_id}"
