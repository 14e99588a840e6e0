"""Normalize heterogeneous image sources into bounded progressive JPEGs."""

from __future__ import annotations

import logging
import re
import uuid
from io import BytesIO
from pathlib import PurePosixPath
from urllib.parse import urlparse

from PIL import Image, ImageOps, UnidentifiedImageError
from PIL.Image import DecompressionBombError
from requests import Session

from ..config import PublishConfig
from ..errors import DecodeError, PublishError
from ..io.models import (
    ImageSource,
    InlineEncodedData,
    NormalizedImage,
    RawBuffer,
    RemoteReference,
)
from .fetch import fetch_image_bytes
from .sources import decode_data_uri

try:  # pragma: no cover - optional dependency
    import cairosvg  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    cairosvg = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

CANONICAL_EXTENSION = ".jpg"
DEFAULT_STEM = "product_image"
_BACKGROUND_RGB = (255, 255, 255)
_STEM_PATTERN = re.compile(r"[^a-z0-9]+")


def reencode_jpeg(
    image_bytes: bytes, max_dimension: int = 2048, quality: int = 85
) -> tuple[bytes, int, int]:
    """Return ``(jpeg_bytes, width, height)`` for *image_bytes*.

    The image is rotated per its EXIF orientation, flattened onto white,
    shrunk to fit ``max_dimension`` on both axes (never enlarged) and saved
    as a progressive JPEG.
    """
    if not image_bytes:
        raise DecodeError("Empty image payload cannot be normalized")
    if max_dimension <= 0:
        raise ValueError("max_dimension must be a positive integer")

    data = image_bytes
    if _looks_like_svg(image_bytes):
        data = _rasterize_svg(image_bytes)

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            work = ImageOps.exif_transpose(img)
            work = _flatten_to_rgb(work)
            work.thumbnail((max_dimension, max_dimension), _resample_filter())
            output = BytesIO()
            work.save(
                output,
                format="JPEG",
                quality=quality,
                progressive=True,
                optimize=True,
            )
            width, height = work.size
    except (UnidentifiedImageError, DecompressionBombError) as exc:
        raise DecodeError(f"Unrecognised image data: {exc}") from exc
    except (OSError, ValueError, SyntaxError, EOFError) as exc:
        raise DecodeError(f"Image processing failed: {exc}") from exc
    return output.getvalue(), width, height


def assign_filename(index_hint: int, original_name: str | None = None) -> str:
    """Return a collision-free ``.jpg`` filename for the image at *index_hint*."""
    stem = DEFAULT_STEM
    if original_name:
        candidate = PurePosixPath(original_name).stem.lower()
        candidate = _STEM_PATTERN.sub("_", candidate).strip("_")[:40]
        if candidate:
            stem = candidate
    return f"{stem}_{index_hint + 1}_{uuid.uuid4().hex[:12]}{CANONICAL_EXTENSION}"


class ImageNormalizer:
    """Turns any :data:`ImageSource` into a :class:`NormalizedImage`."""

    def __init__(self, config: PublishConfig, http: Session) -> None:
        self.config = config
        self.http = http

    def load_bytes(self, source: ImageSource, index_hint: int) -> bytes:
        """Return the undecoded bytes carried or referenced by *source*."""
        if isinstance(source, InlineEncodedData):
            return decode_data_uri(source.uri)
        if isinstance(source, RemoteReference):
            return fetch_image_bytes(
                source.url,
                self.http,
                timeout=self.config.fetch_timeout,
                index=index_hint,
            )
        if isinstance(source, RawBuffer):
            return source.data
        raise DecodeError(f"Unsupported image source: {type(source).__name__}")

    def normalize(self, source: ImageSource, index_hint: int) -> NormalizedImage:
        try:
            raw = self.load_bytes(source, index_hint)
            content, width, height = reencode_jpeg(
                raw,
                max_dimension=self.config.max_dimension,
                quality=self.config.jpeg_quality,
            )
        except PublishError as exc:
            raise exc.with_index(index_hint)

        filename = assign_filename(index_hint, _source_name(source))
        logger.debug(
            "Normalized image %d: %d -> %d bytes (%dx%d) as %s",
            index_hint + 1,
            len(raw),
            len(content),
            width,
            height,
            filename,
        )
        return NormalizedImage(
            content=content, filename=filename, width=width, height=height
        )


def _source_name(source: ImageSource) -> str | None:
    if isinstance(source, RawBuffer):
        return source.filename
    if isinstance(source, RemoteReference):
        path = urlparse(source.url).path
        name = path.rsplit("/", 1)[-1]
        return name or None
    return None


def _flatten_to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "RGB":
        return img
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in {"RGBA", "LA"}:
        rgba = img.convert("RGBA")
        canvas = Image.new("RGB", rgba.size, _BACKGROUND_RGB)
        canvas.paste(rgba, mask=rgba.getchannel("A"))
        return canvas
    return img.convert("RGB")


def _resample_filter():
    resample_attr = getattr(Image, "Resampling", None)
    resample_filter = getattr(resample_attr, "LANCZOS", None) if resample_attr else None
    if resample_filter is None:
        resample_filter = getattr(Image, "LANCZOS", Image.BICUBIC)
    return resample_filter


def _rasterize_svg(image_bytes: bytes) -> bytes:
    if cairosvg is None:
        raise DecodeError("SVG images require the optional cairosvg dependency")
    try:
        return cairosvg.svg2png(bytestring=image_bytes)  # type: ignore[attr-defined]
    except Exception as exc:  # noqa: BLE001 - cairosvg raises assorted parser errors
        raise DecodeError(f"SVG rasterisation failed: {exc}") from exc


def _looks_like_svg(image_bytes: bytes) -> bool:
    snippet = image_bytes[:1024].lstrip().lower()
    return snippet.startswith(b"<svg") or (
        snippet.startswith(b"<?xml") and b"<svg" in snippet
    )
