"""Classify caller-supplied image inputs and decode inline payloads."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any
from urllib.parse import unquote_to_bytes

from ..errors import DecodeError
from ..io.models import ImageSource, InlineEncodedData, RawBuffer, RemoteReference

logger = logging.getLogger(__name__)

_SOURCE_TYPES = (InlineEncodedData, RemoteReference, RawBuffer)


def coerce_source(value: Any) -> ImageSource:
    """Return the typed :data:`ImageSource` for a raw request value."""
    if isinstance(value, _SOURCE_TYPES):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("data:"):
            return InlineEncodedData(stripped)
        if stripped.lower().startswith(("http://", "https://")):
            return RemoteReference(stripped)
        raise DecodeError("Invalid image format")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawBuffer(bytes(value))
    raise DecodeError(f"Unsupported image type: {type(value).__name__}")


def decode_data_uri(uri: str) -> bytes:
    """Decode the body of an image ``data:`` URI into raw bytes."""
    if not uri.startswith("data:"):
        raise DecodeError("Inline image is missing the data: scheme")
    try:
        header, data = uri.split(",", 1)
    except ValueError as exc:
        raise DecodeError("Inline image has no payload separator") from exc

    params = header[len("data:"):].split(";")
    mime = params[0].strip().lower()
    if not mime.startswith("image/"):
        raise DecodeError(f"Inline payload is not an image (media type {mime!r})")

    if "base64" in (param.strip().lower() for param in params[1:]):
        try:
            decoded = base64.b64decode("".join(data.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("Inline image has a malformed base64 body") from exc
    else:
        decoded = unquote_to_bytes(data)

    if not decoded:
        raise DecodeError("Inline image payload is empty")
    logger.debug("Decoded %d bytes of %s inline data", len(decoded), mime)
    return decoded
