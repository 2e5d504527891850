"""Centralized configuration management for the LocalsZA client-state layer."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`localsza.settings` sees the
# same values regardless of import order.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_REDIS_RETRY_BACKOFF_SECONDS = 30.0
DEFAULT_SHARE_BASE_URL = "http://localhost:5173"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    The class groups the environment variables consumed by the storage
    backends, the shared-cart link builder, and logging, and exposes small
    helpers (numeric log level, configuration warnings) so callers never
    repeat parsing logic.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True

    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description=(
            "Redis connection string used as durable storage for carts and"
            " favorites. Defaults to a localhost instance."
        ),
    )
    use_memory_storage: bool = Field(
        default=False,
        alias="USE_MEMORY_STORAGE",
        description=(
            "Force the in-process storage backend regardless of REDIS_URL."
            " Helpful for local development and test suites."
        ),
    )
    storage_key_prefix: str = Field(
        default="",
        alias="STORAGE_KEY_PREFIX",
        description="Optional namespace prepended to every storage key.",
    )
    storage_quota_bytes: int | None = Field(
        default=None,
        alias="STORAGE_QUOTA_BYTES",
        ge=0,
        description=(
            "Byte budget for the in-process backend. Writes that would exceed"
            " it fail the same way a full browser storage area does."
        ),
    )
    redis_retry_backoff_seconds: float = Field(
        default=DEFAULT_REDIS_RETRY_BACKOFF_SECONDS,
        alias="REDIS_RETRY_BACKOFF_SECONDS",
        description="Cooldown duration applied after Redis connection failures.",
    )
    share_base_url: str = Field(
        default=DEFAULT_SHARE_BASE_URL,
        alias="SHARE_BASE_URL",
        description="Storefront origin used when building shared-cart links.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def normalized_share_base_url(self) -> str:
        """Return ``share_base_url`` stripped of whitespace and trailing slashes."""

        return self.share_base_url.strip().rstrip("/")

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if self.use_memory_storage:
            warnings.append(
                "USE_MEMORY_STORAGE is enabled - carts and favorites are lost "
                "when the process exits"
            )
        elif not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - storage will fall back to memory when "
                "the default localhost instance is unreachable"
            )

        if self.share_base_url == DEFAULT_SHARE_BASE_URL:
            warnings.append(
                "SHARE_BASE_URL is not set - shared cart links point at the "
                "local development server"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


def configure_logging(settings: AppSettings | None = None) -> None:
    """Apply the package-wide logging format at the configured level."""

    resolved = settings or get_settings()
    logging.basicConfig(level=resolved.log_level_numeric, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    for warning in resolved.optional_config_warnings():
        logger.warning(f"  • {warning}")


__all__ = [
    "AppSettings",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_REDIS_RETRY_BACKOFF_SECONDS",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SHARE_BASE_URL",
    "LOG_FORMAT",
    "configure_logging",
    "get_settings",
]
