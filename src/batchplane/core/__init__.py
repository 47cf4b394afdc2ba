"""
Core primitives shared by the engine and ops layers.

- logging: structlog configuration and ``get_logger``
- errors: typed error hierarchy with categories and context
- settings: ``BatchPlaneSettings`` (pydantic-settings, ``BATCHPLANE_`` prefix)
"""

from batchplane.core.errors import (
    BatchPlaneError,
    ConfigError,
    EngineUnavailableError,
    ErrorCategory,
    ErrorContext,
    JobEngineError,
    JobExecutionAlreadyRunningError,
    JobExecutionNotRunningError,
    JobInstanceAlreadyCompleteError,
    JobRestartError,
    JobStateError,
    LauncherNotFoundError,
    NoSuchJobError,
    NoSuchJobExecutionError,
    NoSuchJobInstanceError,
    NoSuchStepExecutionError,
    NotFoundError,
    is_retryable,
)
from batchplane.core.logging import LogContext, configure_logging, get_logger
from batchplane.core.settings import BatchPlaneSettings, configure_logging_from_settings, get_settings

__all__ = [
    "BatchPlaneError",
    "BatchPlaneSettings",
    "ConfigError",
    "EngineUnavailableError",
    "ErrorCategory",
    "ErrorContext",
    "JobEngineError",
    "JobExecutionAlreadyRunningError",
    "JobExecutionNotRunningError",
    "JobInstanceAlreadyCompleteError",
    "JobRestartError",
    "JobStateError",
    "LauncherNotFoundError",
    "LogContext",
    "NoSuchJobError",
    "NoSuchJobExecutionError",
    "NoSuchJobInstanceError",
    "NoSuchStepExecutionError",
    "NotFoundError",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "get_settings",
    "is_retryable",
]
