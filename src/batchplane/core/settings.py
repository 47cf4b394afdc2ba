"""Centralized settings for batchplane.

All fields can be set via ``BATCHPLANE_*`` environment variables (e.g.
``BATCHPLANE_DEFAULT_LAUNCHER=sync_job_launcher``) or a ``.env`` file.

Fields
──────
default_launcher      : launcher name used when none is given or the given one is unknown
default_parameter_key : key of the synthesized timestamp parameter
default_page_size     : ``max`` used by the UI models when the caller gives none
max_page_size         : upper bound applied to a caller-supplied ``max``
serialize_launches    : hold a per-job lock across guard check and launch
                        for non-concurrent launches
log_level / log_format / service_name : applied by ``configure_logging_from_settings``

Tags:
    batchplane, configuration, settings, pydantic
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from batchplane.core.logging import configure_logging


class BatchPlaneSettings(BaseSettings):
    """Batchplane control-plane configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BATCHPLANE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Launching ────────────────────────────────────────────────
    default_launcher: str = Field(default="job_launcher")
    default_parameter_key: str = Field(default="date")
    serialize_launches: bool = Field(
        default=False,
        description="Lock per job across the running check and the launch",
    )

    # ── Pagination ───────────────────────────────────────────────
    default_page_size: int = Field(default=10, gt=0)
    max_page_size: int = Field(default=100, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    service_name: str = Field(default="batchplane")

    @model_validator(mode="after")
    def _check_page_sizes(self) -> BatchPlaneSettings:
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) exceeds "
                f"max_page_size ({self.max_page_size})"
            )
        return self

    @property
    def json_logs(self) -> bool:
        return self.log_format.lower() == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, BatchPlaneSettings] = {}


def get_settings(*, reload: bool = False) -> BatchPlaneSettings:
    """Load, validate, and cache a :class:`BatchPlaneSettings` instance.

    Pass ``reload=True`` to re-read the environment.
    """
    if not reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = BatchPlaneSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (for tests)."""
    _settings_cache.clear()


def configure_logging_from_settings(settings: BatchPlaneSettings | None = None) -> None:
    """Configure structlog from the logging fields of *settings*.

    Example:
        >>> configure_logging_from_settings(BatchPlaneSettings(log_format="console"))
    """
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.json_logs,
        service=settings.service_name,
    )
