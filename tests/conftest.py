from __future__ import annotations

import pytest

from craftpublish.config import PublishConfig
from craftpublish.io.models import ProductFields

from fakes import FakeHTTP


@pytest.fixture
def http() -> FakeHTTP:
    return FakeHTTP()


@pytest.fixture
def config() -> PublishConfig:
    return PublishConfig(max_workers=3)


@pytest.fixture
def fields() -> ProductFields:
    return ProductFields(
        title="Hand-thrown mug",
        description="A stoneware mug glazed in deep blue.",
        price=24.5,
    )
