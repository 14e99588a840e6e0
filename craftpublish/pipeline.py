"""High-level orchestration of one product publish."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Sequence

from requests import Session

from .config import PublishConfig
from .errors import PublishCancelled
from .images.batch import ImageBatchProcessor
from .images.fetch import ThreadLocalSession, new_session
from .images.normalize import ImageNormalizer
from .io.models import ProductFields, PublishOutcome
from .io.session import SHOPIFY_UPLOAD_KIND, SessionLog
from .shopify.publisher import ProductPublisher, check_product_fields
from .shopify.uploader import AssetUploader
from .shopify.urls import strip_shop_scheme

logger = logging.getLogger(__name__)


class PublishOrchestrator:
    """Sequences the image batch and the product creation for one request.

    Image failures are absorbed by the batch; only product-level errors
    reach the caller. A successful publish is appended to the session log.
    """

    def __init__(
        self,
        session_log: SessionLog,
        config: PublishConfig | None = None,
        http_factory: Callable[[], Session] = new_session,
        progress: bool = False,
    ) -> None:
        self.session_log = session_log
        self.config = config or PublishConfig()
        self.http_factory = http_factory
        self.progress = progress

    def run_publish(
        self,
        fields: ProductFields,
        sources: Sequence[Any],
        shop_identifier: str,
        credential: str,
        session_key: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PublishOutcome:
        shop = strip_shop_scheme(shop_identifier)
        start = time.perf_counter()
        logger.info(
            "Publishing %r to %s with %d image source(s)",
            fields.title,
            shop,
            len(sources),
        )

        check_product_fields(fields)
        http = ThreadLocalSession(self.http_factory)
        try:
            batch = ImageBatchProcessor(
                ImageNormalizer(self.config, http),
                AssetUploader(self.config, http),
                max_workers=self.config.max_workers,
                progress=self.progress,
            )
            image_results = batch.process(list(sources), shop, credential, cancel_event)
            if cancel_event is not None and cancel_event.is_set():
                raise PublishCancelled("Publish cancelled before product creation")
            outcome = ProductPublisher(self.config, http).publish(
                fields, image_results, shop, credential
            )
        finally:
            http.close()

        key = session_key or self.session_log.current_identity()
        self.session_log.append_activity(key, SHOPIFY_UPLOAD_KIND, outcome)
        logger.info(
            "Published product %s with %d image(s) in %.2fs",
            outcome.remote_product_id,
            outcome.image_count,
            time.perf_counter() - start,
        )
        return outcome

    def session_uploads(self, session_key: str | None = None) -> list[dict[str, Any]]:
        """Return the publishes recorded for *session_key* in arrival order."""
        key = session_key or self.session_log.current_identity()
        return self.session_log.activities(key, SHOPIFY_UPLOAD_KIND)
