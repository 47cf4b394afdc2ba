"""
Shared pytest fixtures and configuration for batchplane tests.

This module provides:
- Settings cache and structlog cleanup for test isolation
- Sample job definitions (plain, failing, slow, non-restartable)
- Factories for hand-built executions and step executions
"""

import sys
import threading
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog

# Ensure batchplane package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from batchplane.core.settings import clear_settings_cache
from batchplane.engine.models import (
    BatchStatus,
    ExitStatus,
    Job,
    JobExecution,
    JobInstance,
    JobParameters,
    Step,
    StepExecution,
)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path) or "_threaded" in item.name:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache_fixture() -> Generator[None, None, None]:
    """Drop cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_structlog_fixture() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call a test made."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# =============================================================================
# Sample Jobs
# =============================================================================


def _count_items(step: StepExecution, params: JobParameters) -> None:
    step.read_count += 3
    step.write_count += 3
    step.commit_count += 1


def _explode(step: StepExecution, params: JobParameters) -> None:
    raise RuntimeError("boom")


@pytest.fixture
def simple_job() -> Job:
    """Two-step job: extract -> load."""
    return Job(
        name="job1",
        steps=[Step("extract", _count_items), Step("load", _count_items)],
    )


@pytest.fixture
def second_job() -> Job:
    """One-step job with an incrementer."""
    return Job(
        name="job2",
        steps=[Step("only", _count_items)],
        incrementer=lambda previous: JobParameters.from_mapping({"run": 1}),
    )


@pytest.fixture
def failing_job() -> Job:
    """Job whose second step raises."""
    return Job(
        name="failing",
        steps=[Step("extract", _count_items), Step("explode", _explode)],
    )


@pytest.fixture
def not_restartable_job() -> Job:
    return Job(name="once", steps=[Step("only", _count_items)], restartable=False)


@pytest.fixture
def blocking_job() -> tuple[Job, threading.Event, threading.Event]:
    """Job whose first step blocks until released.

    Returns ``(job, started, release)``: ``started`` is set once the step
    runs, the step finishes after ``release`` is set.
    """
    started = threading.Event()
    release = threading.Event()

    def wait_for_release(step: StepExecution, params: JobParameters) -> None:
        started.set()
        release.wait(timeout=5)

    job = Job(
        name="blocking",
        steps=[Step("wait", wait_for_release), Step("after", _count_items)],
    )
    return job, started, release


# =============================================================================
# Record Factories
# =============================================================================


@pytest.fixture
def make_execution() -> Callable[..., JobExecution]:
    """Factory for hand-built JobExecution records."""

    def _make(
        execution_id: int = 1,
        job_name: str = "job1",
        instance_id: int = 1,
        status: BatchStatus = BatchStatus.COMPLETED,
        exit_status: ExitStatus = ExitStatus.COMPLETED,
        start_time: datetime | None = datetime(2025, 1, 9, 6, 0, tzinfo=UTC),
        seconds: int = 10,
        step_names: tuple[str, ...] = ("step1",),
    ) -> JobExecution:
        instance = JobInstance(instance_id, job_name, JobParameters())
        end_time = None
        if start_time is not None and not status.is_running():
            end_time = start_time + timedelta(seconds=seconds)
        execution = JobExecution(
            execution_id,
            instance,
            status=status,
            exit_status=exit_status,
            start_time=start_time,
            end_time=end_time,
        )
        execution.add_step_executions([
            StepExecution(
                execution_id * 100 + n,
                name,
                execution_id,
                status=status,
                start_time=start_time,
                end_time=end_time,
            )
            for n, name in enumerate(step_names, start=1)
        ])
        return execution

    return _make
