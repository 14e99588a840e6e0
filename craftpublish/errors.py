"""Error taxonomy for the product publishing pipeline."""

from __future__ import annotations

from typing import Any


class PublishError(Exception):
    """Base class for every failure raised by the publishing pipeline.

    ``index`` identifies the offending image (``None`` for product-level
    failures), ``status_code`` carries the upstream HTTP status when one was
    received and ``errors`` holds any structured detail returned upstream.
    """

    def __init__(
        self,
        message: str,
        *,
        index: int | None = None,
        status_code: int | None = None,
        errors: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.index = index
        self.status_code = status_code
        self.errors = errors

    def with_index(self, index: int) -> "PublishError":
        """Attach an image index if none was recorded yet and return self."""
        if self.index is None:
            self.index = index
        return self

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": type(self).__name__,
            "message": self.message,
        }
        if self.index is not None:
            payload["index"] = self.index
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        if self.errors is not None:
            payload["errors"] = self.errors
        return payload


class DecodeError(PublishError):
    """Raised when an image source cannot be parsed as an image."""


class FetchError(PublishError):
    """Raised when a remote image reference cannot be retrieved."""


class AuthError(PublishError):
    """Raised when the remote platform rejects the access token."""


class ValidationError(PublishError):
    """Raised when the remote platform rejects a payload or replies malformed."""


class TransportError(PublishError):
    """Raised for network failures, timeouts and unexpected HTTP statuses."""


class PublishCancelled(PublishError):
    """Raised when the caller aborted the publish before the product was created."""


class InvalidRequestError(PublishError):
    """Raised when an inbound publish request fails field validation."""
