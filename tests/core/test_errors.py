"""Tests for batchplane.core.errors module."""

import pytest

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


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.job_name is None
        assert ctx.job_execution_id is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_includes_set_fields(self):
        """to_dict includes only non-None fields."""
        ctx = ErrorContext(job_name="nightly", job_execution_id=7, metadata={"key": "value"})
        d = ctx.to_dict()
        assert d == {"job_name": "nightly", "job_execution_id": 7, "key": "value"}
        assert "step_name" not in d


class TestBatchPlaneError:
    def test_defaults(self):
        error = BatchPlaneError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_overrides(self):
        error = BatchPlaneError("x", category=ErrorCategory.ENGINE, retryable=True)
        assert error.category == ErrorCategory.ENGINE
        assert error.retryable is True

    def test_with_context_sets_known_fields_and_metadata(self):
        error = NoSuchJobExecutionError("missing").with_context(job_execution_id=42, shard="a")
        assert error.context.job_execution_id == 42
        assert error.context.metadata == {"shard": "a"}

    def test_with_context_returns_same_instance(self):
        error = JobRestartError("nope")
        assert error.with_context(job_name="nightly") is error

    def test_cause_is_chained(self):
        root = ConnectionError("db down")
        error = EngineUnavailableError("engine unreachable", cause=root)
        assert error.__cause__ is root
        assert error.to_dict()["cause"] == "db down"

    def test_to_dict(self):
        error = JobExecutionNotRunningError("not running").with_context(job_execution_id=3)
        assert error.to_dict() == {
            "error_type": "JobExecutionNotRunningError",
            "message": "not running",
            "category": "STATE",
            "retryable": False,
            "context": {"job_execution_id": 3},
        }

    def test_repr(self):
        assert repr(NoSuchJobError("nope")) == "NoSuchJobError('nope', category=NOT_FOUND)"


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls, parent, category",
        [
            (LauncherNotFoundError, ConfigError, ErrorCategory.CONFIG),
            (NoSuchJobError, NotFoundError, ErrorCategory.NOT_FOUND),
            (NoSuchJobInstanceError, NotFoundError, ErrorCategory.NOT_FOUND),
            (NoSuchJobExecutionError, NotFoundError, ErrorCategory.NOT_FOUND),
            (NoSuchStepExecutionError, NotFoundError, ErrorCategory.NOT_FOUND),
            (JobInstanceAlreadyCompleteError, JobStateError, ErrorCategory.STATE),
            (JobExecutionAlreadyRunningError, JobStateError, ErrorCategory.STATE),
            (JobExecutionNotRunningError, JobStateError, ErrorCategory.STATE),
            (JobRestartError, JobStateError, ErrorCategory.STATE),
            (EngineUnavailableError, JobEngineError, ErrorCategory.TRANSIENT),
        ],
    )
    def test_parent_and_category(self, cls, parent, category):
        error = cls("x")
        assert isinstance(error, parent)
        assert isinstance(error, BatchPlaneError)
        assert error.category == category

    def test_engine_errors_share_base(self):
        assert issubclass(NotFoundError, JobEngineError)
        assert issubclass(JobStateError, JobEngineError)
        assert not issubclass(ConfigError, JobEngineError)


class TestIsRetryable:
    def test_transient_is_retryable(self):
        assert is_retryable(EngineUnavailableError("later")) is True

    def test_state_errors_are_not(self):
        assert is_retryable(JobExecutionAlreadyRunningError("busy")) is False

    def test_foreign_exceptions_are_not(self):
        assert is_retryable(ValueError("x")) is False
