"""Upload normalized images to the shop's asset store."""

from __future__ import annotations

import logging

from requests import Session

from ..config import PublishConfig
from ..errors import ValidationError
from ..io.models import NormalizedImage, UploadResult
from .client import ShopifyClient
from .urls import ensure_https

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "upload[attachment]"


class AssetUploader:
    """Sends one :class:`NormalizedImage` to the asset endpoint."""

    def __init__(self, config: PublishConfig, http: Session) -> None:
        self.config = config
        self.http = http

    def upload(
        self,
        image: NormalizedImage,
        shop: str,
        credential: str,
        index: int | None = None,
    ) -> UploadResult:
        client = ShopifyClient(shop, credential, self.config, self.http)
        logger.info(
            "Uploading %s (%d bytes) to %s",
            image.filename,
            len(image.content),
            client.shop,
        )
        body = client.request(
            "POST",
            "uploads.json",
            timeout=self.config.upload_timeout,
            action="Image upload",
            invalid_message="Invalid image data or format",
            index=index,
            files={UPLOAD_FIELD: (image.filename, image.content, image.mime_type)},
        )

        upload = body.get("upload")
        if not isinstance(upload, dict):
            raise ValidationError(
                "Invalid response from Shopify upload API", index=index
            )
        asset_id = upload.get("id")
        public_url = upload.get("public_url")
        if asset_id is None or not isinstance(public_url, str) or not public_url:
            raise ValidationError(
                "Upload response is missing the asset id or public URL", index=index
            )

        result = UploadResult(
            asset_id=str(asset_id),
            public_url=ensure_https(public_url),
            original_filename=image.filename,
        )
        logger.info("Uploaded %s as %s", image.filename, result.public_url)
        return result
