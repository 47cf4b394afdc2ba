"""Shared fixtures for batchplane.ops tests."""

from unittest.mock import MagicMock

import pytest

from batchplane.core.settings import BatchPlaneSettings
from batchplane.engine.launchers import JOB_LAUNCHER, SYNC_JOB_LAUNCHER, LauncherRegistry, SyncJobLauncher
from batchplane.engine.memory import InMemoryJobEngine
from batchplane.engine.protocol import JobEngine
from batchplane.ops.context import BatchContext
from batchplane.ops.readiness import Readiness


@pytest.fixture()
def settings() -> BatchPlaneSettings:
    return BatchPlaneSettings()


@pytest.fixture()
def engine(simple_job, second_job, failing_job) -> InMemoryJobEngine:
    """In-memory engine with job1, job2 and failing registered."""
    return InMemoryJobEngine([simple_job, second_job, failing_job])


@pytest.fixture()
def launchers(engine: InMemoryJobEngine) -> LauncherRegistry:
    """Both conventional names backed by synchronous launchers."""
    return LauncherRegistry({
        JOB_LAUNCHER: SyncJobLauncher(engine),
        SYNC_JOB_LAUNCHER: SyncJobLauncher(engine),
    })


@pytest.fixture()
def ctx(engine, launchers, settings) -> BatchContext:
    """Ready BatchContext wired to the in-memory engine."""
    return BatchContext(
        engine=engine,
        launchers=launchers,
        readiness=Readiness(ready=True),
        settings=settings,
        caller="test",
    )


@pytest.fixture()
def mock_engine() -> MagicMock:
    """MagicMock constrained to the JobEngine protocol."""
    return MagicMock(spec=JobEngine)


@pytest.fixture()
def mock_ctx(mock_engine, settings) -> BatchContext:
    """Ready BatchContext around a mock engine and an empty launcher registry."""
    return BatchContext(
        engine=mock_engine,
        launchers=LauncherRegistry(),
        readiness=Readiness(ready=True),
        settings=settings,
        caller="test",
    )
