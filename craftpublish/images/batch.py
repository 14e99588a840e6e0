"""Best-effort fan-out of image sources through normalization and upload."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, TypeVar

from tqdm import tqdm

from ..errors import PublishCancelled, PublishError
from ..io.models import UploadResult
from ..shopify.uploader import AssetUploader
from .normalize import ImageNormalizer
from .sources import coerce_source

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class ImageOutcome:
    """Per-image result: either an upload or the error that stopped it."""

    index: int
    result: UploadResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class ImageBatchProcessor:
    """Runs every image through normalize-then-upload, dropping failures.

    Items are processed independently, concurrently when ``max_workers`` is
    greater than one. Outcomes are always returned in input order.
    """

    def __init__(
        self,
        normalizer: ImageNormalizer,
        uploader: AssetUploader,
        max_workers: int = 4,
        progress: bool = False,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.normalizer = normalizer
        self.uploader = uploader
        self.max_workers = max_workers
        self.progress = progress

    def process(
        self,
        sources: Sequence[Any],
        shop: str,
        credential: str,
        cancel_event: threading.Event | None = None,
    ) -> List[UploadResult]:
        """Return the uploads that succeeded, in the order of their sources."""
        outcomes = self.outcomes(sources, shop, credential, cancel_event)
        results = [outcome.result for outcome in outcomes if outcome.ok]
        logger.info("Uploaded %d of %d images", len(results), len(outcomes))
        return results

    def outcomes(
        self,
        sources: Sequence[Any],
        shop: str,
        credential: str,
        cancel_event: threading.Event | None = None,
    ) -> List[ImageOutcome]:
        """Return one :class:`ImageOutcome` per source, in input order."""
        total = len(sources)
        if not total:
            return []
        logger.info("Processing %d images for upload", total)

        workers = min(self.max_workers, total)
        if workers == 1:
            ordered = []
            for index, source in enumerate(self._progress(sources, total)):
                ordered.append(
                    self._run_one(index, source, shop, credential, cancel_event)
                )
            return ordered

        collected: Dict[int, ImageOutcome] = {}
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures: Dict[Future[ImageOutcome], int] = {
                pool.submit(
                    self._run_one, index, source, shop, credential, cancel_event
                ): index
                for index, source in enumerate(sources)
            }
            for future in self._progress(as_completed(futures), total):
                index = futures[future]
                if future.cancelled():
                    collected[index] = ImageOutcome(
                        index, error=PublishCancelled("Publish cancelled", index=index)
                    )
                    continue
                collected[index] = future.result()
                if cancel_event is not None and cancel_event.is_set():
                    for pending in futures:
                        pending.cancel()
        return [collected[index] for index in range(total)]

    def _progress(self, iterable: Iterable[T], total: int) -> Iterable[T]:
        return tqdm(
            iterable,
            total=total,
            desc="Publishing images",
            unit="image",
            leave=False,
            disable=not self.progress,
        )

    def _run_one(
        self,
        index: int,
        raw_source: Any,
        shop: str,
        credential: str,
        cancel_event: threading.Event | None,
    ) -> ImageOutcome:
        try:
            _check_cancelled(cancel_event, index)
            source = coerce_source(raw_source)
            normalized = self.normalizer.normalize(source, index)
            _check_cancelled(cancel_event, index)
            result = self.uploader.upload(normalized, shop, credential, index=index)
        except PublishCancelled as exc:
            logger.info("Skipping image %d: publish cancelled", index + 1)
            return ImageOutcome(index, error=exc)
        except PublishError as exc:
            exc.with_index(index)
            logger.warning(
                "Error processing image %d (%s): %s", index + 1, type(exc).__name__, exc
            )
            return ImageOutcome(index, error=exc)
        except Exception as exc:  # noqa: BLE001 - isolate per-image failures
            logger.exception("Unexpected error processing image %d", index + 1)
            return ImageOutcome(index, error=exc)
        return ImageOutcome(index, result=result)


def _check_cancelled(cancel_event: threading.Event | None, index: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PublishCancelled("Publish cancelled", index=index)
