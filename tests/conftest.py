"""Shared fixtures for the client-state store tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from tests import _ensure_repo_on_path

_ensure_repo_on_path()

from localsza.schemas.products import ProductReference  # noqa: E402
from localsza.settings import get_settings  # noqa: E402
from localsza.storage import MemoryStorage, close_redis  # noqa: E402

_SETTINGS_ENV = (
    "REDIS_URL",
    "USE_MEMORY_STORAGE",
    "STORAGE_KEY_PREFIX",
    "STORAGE_QUOTA_BYTES",
    "REDIS_RETRY_BACKOFF_SECONDS",
    "SHARE_BASE_URL",
    "LOG_LEVEL",
)


class FailingStorage(MemoryStorage):
    """Storage double whose writes always fail, like a full browser quota."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.write_attempts = 0

    def set(self, key: str, value: str) -> bool:
        self.write_attempts += 1
        return False


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep developer ``.env`` values and cached settings out of every test."""

    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    close_redis()
    yield
    get_settings.cache_clear()
    close_redis()


@pytest.fixture
def storage() -> MemoryStorage:
    """Empty in-memory durable storage."""

    return MemoryStorage()


@pytest.fixture
def failing_storage() -> FailingStorage:
    return FailingStorage()


@pytest.fixture
def make_product() -> Callable[..., ProductReference]:
    """Factory building product references with sensible catalogue defaults."""

    def _make(product_id: str = "p1", **fields: Any) -> ProductReference:
        payload: dict[str, Any] = {
            "id": product_id,
            "name": f"Product {product_id}",
            "price": 10,
            "image_url": f"https://cdn.example/{product_id}.jpg",
        }
        payload.update(fields)
        return ProductReference(**payload)

    return _make
