"""Validation of inbound publish requests."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping
from urllib.parse import urlparse

from .errors import InvalidRequestError
from .io.models import ProductFields
from .shopify.publisher import LIFECYCLE_STATUSES

_HOST_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}(?::\d{1,5})?$",
    re.IGNORECASE,
)


@dataclass(slots=True)
class PublishRequest:
    """A validated publish request."""

    fields: ProductFields
    shop_url: str
    access_token: str
    sources: List[Any] = field(default_factory=list)


def is_valid_shop_url(value: str) -> bool:
    """Return ``True`` for a bare host or an http(s) URL with a dotted host."""
    cleaned = value.strip()
    if not cleaned:
        return False
    if "://" in cleaned:
        parsed = urlparse(cleaned)
        if parsed.scheme.lower() not in {"http", "https"}:
            return False
        host = parsed.netloc
    else:
        host = cleaned.split("/", 1)[0]
    return bool(_HOST_PATTERN.match(host))


def _non_empty_string(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _price(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price) or price < 0:
        return None
    return price


def parse_publish_request(payload: Mapping[str, Any]) -> PublishRequest:
    """Validate *payload* and return a :class:`PublishRequest`.

    Every failing field is reported at once through
    :class:`InvalidRequestError`, whose ``errors`` is a list of
    ``{"field", "message"}`` entries.
    """
    errors: List[Dict[str, str]] = []

    def fail(name: str, message: str) -> None:
        errors.append({"field": name, "message": message})

    title = _non_empty_string(payload, "title")
    if title is None:
        fail("title", "Product title is required")
    description = _non_empty_string(payload, "description")
    if description is None:
        fail("description", "Product description is required")
    price = _price(payload.get("price"))
    if price is None:
        fail("price", "Price must be a positive number")
    shop_url = _non_empty_string(payload, "shopUrl")
    if shop_url is None or not is_valid_shop_url(shop_url):
        fail("shopUrl", "Shop URL must be valid")
    access_token = _non_empty_string(payload, "accessToken")
    if access_token is None:
        fail("accessToken", "Access token is required")

    images = payload.get("images")
    if images is None:
        images = []
    elif not isinstance(images, (list, tuple)):
        fail("images", "Images must be a list")
        images = []

    status = payload.get("status")
    if status is not None and str(status).strip().lower() not in LIFECYCLE_STATUSES:
        fail("status", f"Status must be one of {', '.join(LIFECYCLE_STATUSES)}")

    inventory = payload.get("inventory")
    if inventory is not None and (
        isinstance(inventory, bool) or not isinstance(inventory, int) or inventory < 0
    ):
        fail("inventory", "Inventory must be a non-negative integer")
        inventory = None

    tags = payload.get("tags")
    if tags is not None and not isinstance(tags, (str, list, tuple)):
        fail("tags", "Tags must be a string or a list of strings")

    if errors:
        raise InvalidRequestError("Validation Error", errors=errors)

    fields = ProductFields(
        title=title,
        description=description,
        price=payload.get("price"),
        vendor=_non_empty_string(payload, "vendor"),
        product_type=_non_empty_string(payload, "productType"),
        tags=tags,
        status=status,
        inventory=inventory,
    )
    return PublishRequest(
        fields=fields,
        shop_url=shop_url,
        access_token=access_token,
        sources=list(images),
    )
