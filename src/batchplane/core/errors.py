"""
Structured error types for batchplane.

Every error raised by the job engine adapters or the control plane extends
:class:`BatchPlaneError` and carries:

- **Category:** what kind of failure (not found, state conflict, config, ...)
- **Retryable:** whether calling again later can succeed
- **Context:** job name, instance/execution/step ids, launcher name
- **Cause:** the chained underlying exception

Architecture:
    ::

        BatchPlaneError (category, retryable, context, cause)
          │
          ├── ConfigError                 (CONFIG)
          │     └── LauncherNotFoundError
          │
          ├── JobEngineError              (ENGINE)
          │     ├── NotFoundError         (NOT_FOUND)
          │     │     ├── NoSuchJobError
          │     │     ├── NoSuchJobInstanceError
          │     │     ├── NoSuchJobExecutionError
          │     │     └── NoSuchStepExecutionError
          │     ├── JobStateError         (STATE)
          │     │     ├── JobInstanceAlreadyCompleteError
          │     │     ├── JobExecutionAlreadyRunningError
          │     │     ├── JobExecutionNotRunningError
          │     │     └── JobRestartError
          │     └── EngineUnavailableError (TRANSIENT, retryable)

Where they surface:
    - Launch admission failures are never raised to callers; the launch
      operation turns them into a ``LaunchResult`` with a failure priority.
    - ``stop`` / ``restart`` propagate engine errors unmodified.
    - The running-execution guard swallows and logs them (fail-open).

Usage:
    from batchplane.core.errors import NoSuchJobError

    raise NoSuchJobError(f"No job configuration with the name [{name}] was registered").with_context(
        job_name=name
    )

Tags:
    error-handling, exception-hierarchy, batchplane
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and alert routing.

    Attributes:
        ENGINE: Generic job engine failure
        NOT_FOUND: Unknown job, instance, execution or step
        STATE: Operation conflicts with the current execution state
        CONFIG: Missing or invalid configuration (launchers, settings)
        TRANSIENT: Engine or store temporarily unreachable
        INTERNAL: Bugs, unexpected state
    """

    ENGINE = "ENGINE"
    NOT_FOUND = "NOT_FOUND"
    STATE = "STATE"
    CONFIG = "CONFIG"
    TRANSIENT = "TRANSIENT"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging and alerting.

    Only the fields that are set end up in :meth:`to_dict`; anything that
    does not have a dedicated field goes into ``metadata``.

    Example:
        >>> ctx = ErrorContext(job_name="nightly", job_execution_id=7)
        >>> ctx.to_dict()
        {'job_name': 'nightly', 'job_execution_id': 7}
    """

    job_name: str | None = None
    job_instance_id: int | None = None
    job_execution_id: int | None = None
    step_name: str | None = None
    step_execution_id: int | None = None
    launcher: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["job_name", "job_instance_id", "job_execution_id",
                    "step_name", "step_execution_id", "launcher"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class BatchPlaneError(Exception):
    """
    Base exception for all batchplane errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.

    Examples:
        >>> error = BatchPlaneError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> error = BatchPlaneError("Stop failed").with_context(job_execution_id=3)
        >>> error.context.job_execution_id
        3
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BatchPlaneError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NoSuchJobExecutionError("missing").with_context(job_execution_id=42)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(BatchPlaneError):
    """Missing or invalid configuration. Never retryable."""

    default_category = ErrorCategory.CONFIG


class LauncherNotFoundError(ConfigError):
    """No job launcher is registered under the requested name."""


# =============================================================================
# JOB ENGINE ERRORS
# =============================================================================


class JobEngineError(BatchPlaneError):
    """Failure reported by a job engine adapter."""

    default_category = ErrorCategory.ENGINE


class NotFoundError(JobEngineError):
    """The engine has no record of the requested entity."""

    default_category = ErrorCategory.NOT_FOUND


class NoSuchJobError(NotFoundError):
    """No job is registered (or recorded) under the requested name."""


class NoSuchJobInstanceError(NotFoundError):
    """No job instance exists with the requested id."""


class NoSuchJobExecutionError(NotFoundError):
    """No job execution exists with the requested id."""


class NoSuchStepExecutionError(NotFoundError):
    """No step execution exists with the requested id in that job execution."""


class JobStateError(JobEngineError):
    """The requested operation conflicts with the current execution state."""

    default_category = ErrorCategory.STATE


class JobInstanceAlreadyCompleteError(JobStateError):
    """The job instance for these identifying parameters already completed."""


class JobExecutionAlreadyRunningError(JobStateError):
    """An execution of this job instance is already running."""


class JobExecutionNotRunningError(JobStateError):
    """Stop was requested for an execution that is not running."""


class JobRestartError(JobStateError):
    """The execution cannot be restarted (abandoned, or job not restartable)."""


class EngineUnavailableError(JobEngineError):
    """The engine or its metadata store cannot be reached right now."""

    default_category = ErrorCategory.TRANSIENT
    default_retryable = True


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """True if *error* is a :class:`BatchPlaneError` flagged retryable."""
    if isinstance(error, BatchPlaneError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "BatchPlaneError",
    "ConfigError",
    "LauncherNotFoundError",
    "JobEngineError",
    "NotFoundError",
    "NoSuchJobError",
    "NoSuchJobInstanceError",
    "NoSuchJobExecutionError",
    "NoSuchStepExecutionError",
    "JobStateError",
    "JobInstanceAlreadyCompleteError",
    "JobExecutionAlreadyRunningError",
    "JobExecutionNotRunningError",
    "JobRestartError",
    "EngineUnavailableError",
    "is_retryable",
]
