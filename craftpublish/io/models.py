"""Data models shared across the publishing pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple, Union


@dataclass(frozen=True, slots=True)
class InlineEncodedData:
    """A self-describing ``data:`` URI carrying an encoded image."""

    uri: str

    @property
    def mime_type(self) -> str | None:
        header = self.uri.split(",", 1)[0]
        if not header.startswith("data:"):
            return None
        mime = header[len("data:"):].split(";", 1)[0].strip().lower()
        return mime or None


@dataclass(frozen=True, slots=True)
class RemoteReference:
    """An absolute http(s) URL pointing at an image."""

    url: str


@dataclass(frozen=True, slots=True)
class RawBuffer:
    """Raw image bytes received directly from the caller."""

    data: bytes
    filename: str | None = None


ImageSource = Union[InlineEncodedData, RemoteReference, RawBuffer]


@dataclass(slots=True)
class NormalizedImage:
    """Canonical JPEG rendition of one image, ready for upload."""

    content: bytes
    filename: str
    width: int
    height: int
    mime_type: str = "image/jpeg"


@dataclass(slots=True)
class UploadResult:
    """Asset stored on the remote platform."""

    asset_id: str
    public_url: str
    original_filename: str


@dataclass(slots=True)
class ProductFields:
    """Business fields of one publish request."""

    title: str
    description: str
    price: Any
    vendor: str | None = None
    product_type: str | None = None
    tags: str | List[str] | None = None
    status: str | None = None
    inventory: int | None = None


@dataclass(slots=True)
class ProductRecord:
    """Platform product as it is submitted to the product endpoint."""

    title: str
    html_description: str
    vendor: str
    product_type: str
    lifecycle_status: str
    price: str
    inventory_quantity: int
    image_urls: Tuple[str, ...]
    tags: str
    meta_title: str
    meta_description: str

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body expected by the product endpoint."""
        return {
            "product": {
                "title": self.title,
                "body_html": self.html_description,
                "vendor": self.vendor,
                "product_type": self.product_type,
                "status": self.lifecycle_status,
                "variants": [
                    {
                        "price": self.price,
                        "inventory_quantity": self.inventory_quantity,
                        "inventory_management": "shopify",
                        "inventory_policy": "deny",
                    }
                ],
                "images": [{"src": url} for url in self.image_urls],
                "tags": self.tags,
                "metafields_global_title_tag": self.meta_title,
                "metafields_global_description_tag": self.meta_description,
            }
        }


@dataclass(slots=True)
class PublishOutcome:
    """Result of a successful publish, recorded in the session activity log."""

    remote_product_id: str
    title: str
    handle: str
    status: str | None
    product_url: str
    admin_url: str
    image_urls: List[str]
    image_count: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    product: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remote_product_id": self.remote_product_id,
            "title": self.title,
            "handle": self.handle,
            "status": self.status,
            "product_url": self.product_url,
            "admin_url": self.admin_url,
            "image_urls": list(self.image_urls),
            "image_count": self.image_count,
            "timestamp": self.timestamp.isoformat(),
        }
