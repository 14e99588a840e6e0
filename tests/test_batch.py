from __future__ import annotations

import threading

import pytest

from craftpublish.errors import AuthError, DecodeError, FetchError, PublishCancelled
from craftpublish.images.batch import ImageBatchProcessor
from craftpublish.images.normalize import ImageNormalizer
from craftpublish.shopify.uploader import AssetUploader

from fakes import (
    SHOP,
    UPLOADS_URL,
    FakeResponse,
    connection_refused,
    image_number,
    make_data_uri,
    make_image_bytes,
    upload_handler,
)


def _processor(config, http, max_workers=3) -> ImageBatchProcessor:
    return ImageBatchProcessor(
        ImageNormalizer(config, http),
        AssetUploader(config, http),
        max_workers=max_workers,
    )


def _numbers(results) -> list[int]:
    return [image_number(result.original_filename) for result in results]


@pytest.mark.parametrize("workers", [1, 3])
def test_empty_batch_yields_empty_result(config, http, workers):
    assert _processor(config, http, workers).process([], SHOP, "token") == []
    assert http.calls == []


@pytest.mark.parametrize("workers", [1, 4])
def test_output_order_follows_input_not_completion(config, http, workers):
    # Earlier images finish last.
    http.add(
        "POST",
        UPLOADS_URL,
        upload_handler(delays={1: 0.3, 2: 0.2, 3: 0.1}),
    )
    sources = [make_image_bytes() for _ in range(4)]
    results = _processor(config, http, workers).process(sources, SHOP, "token")
    assert _numbers(results) == [1, 2, 3, 4]


def test_unreachable_image_is_dropped(config, http):
    url = "https://images.example.com/unreachable.png"
    http.add("GET", url, connection_refused)
    http.add("POST", UPLOADS_URL, upload_handler())
    sources = [make_data_uri(), url, make_image_bytes()]

    processor = _processor(config, http)
    outcomes = processor.outcomes(sources, SHOP, "token")
    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, FetchError)
    assert outcomes[1].error.index == 1

    results = [outcome.result for outcome in outcomes if outcome.ok]
    assert _numbers(results) == [1, 3]
    assert all(result.public_url.startswith("https://") for result in results)


def test_all_failing_batch_is_empty_not_an_error(config, http):
    http.add("GET", "https://images.example.com/a.png", FakeResponse(500))
    sources = [
        b"not an image",
        "data:image/png;base64,@@@",
        "https://images.example.com/a.png",
        "C:/local/path.png",
        12345,
    ]
    outcomes = _processor(config, http).outcomes(sources, SHOP, "token")
    assert not any(outcome.ok for outcome in outcomes)
    assert [outcome.index for outcome in outcomes] == [0, 1, 2, 3, 4]
    assert isinstance(outcomes[0].error, DecodeError)
    assert http.calls_to(UPLOADS_URL) == []


def test_upload_rejection_drops_only_that_image(config, http):
    http.add(
        "POST",
        UPLOADS_URL,
        upload_handler(fail_numbers={1: FakeResponse(401, {"errors": "bad token"})}),
    )
    processor = _processor(config, http)
    outcomes = processor.outcomes([make_image_bytes(), make_image_bytes()], SHOP, "t")
    assert isinstance(outcomes[0].error, AuthError)
    assert outcomes[0].error.index == 0
    assert _numbers([outcomes[1].result]) == [2]


def test_unexpected_exception_is_contained(config, http):
    http.add("POST", UPLOADS_URL, upload_handler(fail_numbers={2: RuntimeError("boom")}))
    sources = [make_image_bytes(), make_image_bytes(), make_image_bytes()]
    results = _processor(config, http).process(sources, SHOP, "token")
    assert _numbers(results) == [1, 3]


def test_output_never_longer_than_input(config, http):
    http.add("POST", UPLOADS_URL, upload_handler(fail_numbers={3: FakeResponse(500)}))
    sources = [make_image_bytes(), b"junk", make_image_bytes(), make_image_bytes()]
    results = _processor(config, http).process(sources, SHOP, "token")
    assert len(results) <= len(sources)
    assert _numbers(results) == [1, 4]


def test_cancelled_batch_uploads_nothing(config, http):
    http.add("POST", UPLOADS_URL, upload_handler())
    cancel = threading.Event()
    cancel.set()
    outcomes = _processor(config, http).outcomes(
        [make_image_bytes(), make_image_bytes()], SHOP, "token", cancel_event=cancel
    )
    assert all(isinstance(outcome.error, PublishCancelled) for outcome in outcomes)
    assert http.calls == []


def test_max_workers_must_be_positive(config, http):
    with pytest.raises(ValueError):
        _processor(config, http, max_workers=0)
