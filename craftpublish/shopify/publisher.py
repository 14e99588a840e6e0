"""Build product payloads and submit them to the product endpoint."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from requests import Session

from ..config import (
    DEFAULT_INVENTORY,
    DEFAULT_STATUS,
    META_DESCRIPTION_LIMIT,
    PublishConfig,
)
from ..errors import ValidationError
from ..io.models import ProductFields, ProductRecord, PublishOutcome, UploadResult
from .client import ShopifyClient
from .urls import admin_product_url, ensure_https, product_url

logger = logging.getLogger(__name__)

LIFECYCLE_STATUSES = ("draft", "active")


def format_price(value: Any) -> str:
    """Return *value* as a non-negative decimal string."""
    try:
        if isinstance(value, bool):
            raise ValueError("booleans are not prices")
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(
            "Price must be a number", errors={"price": ["is not a number"]}
        ) from exc
    if not amount.is_finite() or amount < 0:
        raise ValidationError(
            "Price must be a non-negative number",
            errors={"price": ["must be greater than or equal to 0"]},
        )
    return format(amount, "f")


def format_tags(tags: str | Sequence[str] | None, default: str) -> str:
    if tags is None:
        return default
    if isinstance(tags, str):
        return tags.strip() or default
    joined = ",".join(str(tag).strip() for tag in tags if str(tag).strip())
    return joined or default


def resolve_status(status: str | None) -> str:
    """Return the lifecycle status, defaulting to ``draft``."""
    if status is None or not str(status).strip():
        return DEFAULT_STATUS
    normalized = str(status).strip().lower()
    if normalized not in LIFECYCLE_STATUSES:
        raise ValidationError(
            f"Unsupported product status {status!r}",
            errors={"status": [f"must be one of {', '.join(LIFECYCLE_STATUSES)}"]},
        )
    return normalized


def resolve_inventory(inventory: Any) -> int:
    """Return the initial stock level, defaulting to one unit."""
    if inventory is None:
        return DEFAULT_INVENTORY
    try:
        if isinstance(inventory, bool):
            raise ValueError("booleans are not quantities")
        quantity = int(inventory)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "Inventory must be an integer", errors={"inventory": ["is not a number"]}
        ) from exc
    if quantity < 0:
        raise ValidationError(
            "Inventory must not be negative",
            errors={"inventory": ["must be greater than or equal to 0"]},
        )
    return quantity


def check_product_fields(fields: ProductFields) -> None:
    """Raise :class:`ValidationError` if *fields* cannot become a product.

    Runs the same checks as :func:`build_product_record` without needing the
    uploaded images, so callers can reject a request before uploading.
    """
    format_price(fields.price)
    resolve_status(fields.status)
    resolve_inventory(fields.inventory)


def build_product_record(
    fields: ProductFields,
    image_results: Sequence[UploadResult],
    config: PublishConfig,
) -> ProductRecord:
    """Combine business fields and uploaded images into a :class:`ProductRecord`."""
    description = fields.description or ""
    return ProductRecord(
        title=fields.title,
        html_description=description,
        vendor=fields.vendor or config.default_vendor,
        product_type=fields.product_type or config.default_product_type,
        lifecycle_status=resolve_status(fields.status),
        price=format_price(fields.price),
        inventory_quantity=resolve_inventory(fields.inventory),
        image_urls=tuple(ensure_https(result.public_url) for result in image_results),
        tags=format_tags(fields.tags, config.default_tags),
        meta_title=fields.title,
        meta_description=description[:META_DESCRIPTION_LIMIT],
    )


class ProductPublisher:
    """Creates one product per call; no retries."""

    def __init__(self, config: PublishConfig, http: Session) -> None:
        self.config = config
        self.http = http

    def publish(
        self,
        fields: ProductFields,
        image_results: Sequence[UploadResult],
        shop: str,
        credential: str,
    ) -> PublishOutcome:
        record = build_product_record(fields, image_results, self.config)
        client = ShopifyClient(shop, credential, self.config, self.http)
        logger.info(
            "Creating product %r on %s (price=%s, images=%d, status=%s)",
            record.title,
            client.shop,
            record.price,
            len(record.image_urls),
            record.lifecycle_status,
        )
        body = client.request(
            "POST",
            "products.json",
            timeout=self.config.product_timeout,
            action="Product creation",
            invalid_message="Product validation failed",
            json=record.to_payload(),
        )

        product = body.get("product")
        if not isinstance(product, dict) or product.get("id") is None:
            raise ValidationError("Invalid response from Shopify product creation API")

        product_id = str(product["id"])
        handle = str(product.get("handle") or product_id)
        logger.info(
            "Created product %s (handle=%s, status=%s)",
            product_id,
            handle,
            product.get("status"),
        )
        image_urls = list(record.image_urls)
        return PublishOutcome(
            remote_product_id=product_id,
            title=str(product.get("title") or record.title),
            handle=handle,
            status=product.get("status"),
            product_url=product_url(client.shop, handle),
            admin_url=admin_product_url(client.shop, product_id),
            image_urls=image_urls,
            image_count=len(image_urls),
            product=product,
        )
