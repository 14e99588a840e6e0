"""Configuration objects and constants for the publishing pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

API_VERSION = "2023-10"
DEFAULT_VENDOR = "CraftConnect"
DEFAULT_PRODUCT_TYPE = "Handmade"
DEFAULT_TAGS = "handmade,craft,artisan"
DEFAULT_STATUS = "draft"
DEFAULT_INVENTORY = 1
META_DESCRIPTION_LIMIT = 160

_ENV_PREFIX = "CRAFTPUBLISH_"


@dataclass(slots=True)
class PublishConfig:
    """Settings shared by every stage of one publish call."""

    api_version: str = API_VERSION
    fetch_timeout: float = 15.0
    upload_timeout: float = 30.0
    product_timeout: float = 30.0
    shop_info_timeout: float = 10.0
    list_timeout: float = 15.0
    max_dimension: int = 2048
    jpeg_quality: int = 85
    max_workers: int = 4
    default_vendor: str = DEFAULT_VENDOR
    default_product_type: str = DEFAULT_PRODUCT_TYPE
    default_tags: str = DEFAULT_TAGS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PublishConfig":
        """Build a config, overriding defaults from ``CRAFTPUBLISH_*`` variables."""
        env = os.environ if environ is None else environ
        config = cls()
        for name in cls.__dataclass_fields__:
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is None or not raw.strip():
                continue
            current = getattr(config, name)
            try:
                value = type(current)(raw.strip())
            except ValueError as exc:
                raise ValueError(
                    f"Invalid value for {_ENV_PREFIX}{name.upper()}: {raw!r}"
                ) from exc
            setattr(config, name, value)
        if config.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        return config
