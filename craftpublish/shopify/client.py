"""Thin client for the shop admin REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests
from requests import Response, Session

from ..config import PublishConfig
from ..errors import AuthError, TransportError, ValidationError
from .urls import shop_api_url, strip_shop_scheme

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
MAX_PRODUCT_PAGE = 250


class ShopifyClient:
    """Issues admin API requests for one shop and maps failures to errors.

    Statuses are normalised the same way for every endpoint: 401 becomes
    :class:`AuthError`, 422 becomes :class:`ValidationError` carrying the
    response's ``errors`` object verbatim, and every other failure is a
    :class:`TransportError`.
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        config: PublishConfig,
        http: Session,
    ) -> None:
        self.shop = strip_shop_scheme(shop)
        self.access_token = access_token
        self.config = config
        self.http = http

    def url(self, resource: str) -> str:
        return shop_api_url(self.shop, self.config.api_version, resource)

    def request(
        self,
        method: str,
        resource: str,
        *,
        timeout: float,
        action: str,
        invalid_message: str | None = None,
        index: int | None = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body of a 2xx reply."""
        url = self.url(resource)
        headers = {ACCESS_TOKEN_HEADER: self.access_token, "Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}) or {})
        try:
            response = self.http.request(
                method, url, headers=headers, timeout=timeout, **kwargs
            )
        except requests.Timeout as exc:
            raise TransportError(
                f"{action} timed out after {timeout:.0f}s", index=index
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(f"{action} failed: {exc}", index=index) from exc

        if not 200 <= response.status_code < 300:
            raise self._status_error(response, action, invalid_message, index)

        try:
            body = response.json()
        except ValueError as exc:
            raise ValidationError(
                f"Invalid response from {action}: body is not JSON",
                index=index,
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise ValidationError(
                f"Invalid response from {action}: expected a JSON object",
                index=index,
                status_code=response.status_code,
            )
        return body

    def _status_error(
        self,
        response: Response,
        action: str,
        invalid_message: str | None,
        index: int | None,
    ):
        status = response.status_code
        detail = _error_detail(response)
        logger.debug("%s returned HTTP %s: %s", action, status, detail)
        if status == 401:
            return AuthError(
                "Invalid Shopify access token", index=index, status_code=status
            )
        if status == 422:
            message = invalid_message or f"{action} validation failed"
            return ValidationError(
                message, index=index, status_code=status, errors=detail
            )
        return TransportError(
            f"{action} failed with HTTP {status}",
            index=index,
            status_code=status,
            errors=detail,
        )

    def get_shop(self) -> Dict[str, Any]:
        """Return the shop's profile object."""
        body = self.request(
            "GET",
            "shop.json",
            timeout=self.config.shop_info_timeout,
            action="Shop info request",
        )
        shop = body.get("shop")
        if not isinstance(shop, dict):
            raise ValidationError("Invalid response from shop info request")
        return shop

    def list_products(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Return up to *limit* products (clamped to 1..250)."""
        page_size = max(1, min(int(limit), MAX_PRODUCT_PAGE))
        body = self.request(
            "GET",
            "products.json",
            timeout=self.config.list_timeout,
            action="Product list request",
            params={"limit": page_size},
        )
        products = body.get("products")
        if not isinstance(products, list):
            raise ValidationError("Invalid response from product list request")
        return products


def _error_detail(response: Response) -> Any:
    """Return the ``errors`` member of a JSON error body, or the raw text."""
    try:
        body = response.json()
    except ValueError:
        text = response.text or ""
        return text[:500] or None
    if isinstance(body, dict) and "errors" in body:
        return body["errors"]
    return body
