"""Tests for job launchers and LauncherRegistry."""

import threading

import pytest

from batchplane.core.errors import LauncherNotFoundError, NoSuchJobExecutionError
from batchplane.engine.launchers import (
    JOB_LAUNCHER,
    SYNC_JOB_LAUNCHER,
    LauncherRegistry,
    SyncJobLauncher,
    ThreadPoolJobLauncher,
)
from batchplane.engine.memory import InMemoryJobEngine
from batchplane.engine.models import BatchStatus, JobParameters
from batchplane.engine.protocol import JobLauncher


class TestSyncJobLauncher:
    def test_runs_to_completion(self, simple_job):
        engine = InMemoryJobEngine([simple_job])
        launcher = SyncJobLauncher(engine)

        execution = launcher.run(simple_job, JobParameters.from_mapping({"run": 1}))

        assert execution.status is BatchStatus.COMPLETED
        assert isinstance(launcher, JobLauncher)


class TestThreadPoolJobLauncher:
    def test_returns_before_steps_finish_threaded(self, blocking_job):
        job, started, release = blocking_job
        engine = InMemoryJobEngine([job])
        launcher = ThreadPoolJobLauncher(engine, max_workers=1)
        try:
            execution = launcher.run(job, JobParameters.from_mapping({"run": 1}))

            assert started.wait(timeout=5)
            assert execution.is_running()
            assert engine.running_executions_for("blocking") == [execution]

            release.set()
            finished = launcher.wait(execution.id, timeout=5)
            assert finished is execution
            assert execution.status is BatchStatus.COMPLETED
        finally:
            release.set()
            launcher.shutdown()

    def test_stop_while_running_threaded(self, blocking_job):
        job, started, release = blocking_job
        engine = InMemoryJobEngine([job])
        launcher = ThreadPoolJobLauncher(engine, max_workers=1)
        try:
            execution = launcher.run(job, JobParameters.from_mapping({"run": 1}))
            assert started.wait(timeout=5)

            engine.stop(execution.id)
            release.set()

            launcher.wait(execution.id, timeout=5)
            assert execution.status is BatchStatus.STOPPED
            assert [s.step_name for s in execution.step_executions] == ["wait"]
        finally:
            release.set()
            launcher.shutdown()

    def test_finished_futures_dropped_threaded(self, simple_job):
        engine = InMemoryJobEngine([simple_job])
        launcher = ThreadPoolJobLauncher(engine, max_workers=2)
        executions = [
            launcher.run(simple_job, JobParameters.from_mapping({"run": run})) for run in range(5)
        ]
        launcher.shutdown(wait=True)

        assert len(launcher._futures) == 0
        assert launcher.pending == 0
        assert all(e.status is BatchStatus.COMPLETED for e in executions)

    def test_wait_after_finish_returns_execution_threaded(self, simple_job):
        engine = InMemoryJobEngine([simple_job])
        launcher = ThreadPoolJobLauncher(engine, max_workers=1)
        try:
            execution = launcher.run(simple_job, JobParameters.from_mapping({"run": 1}))
            assert launcher.wait(execution.id, timeout=5) is execution
            launcher.shutdown(wait=True)

            assert launcher.wait(execution.id) is execution
        finally:
            launcher.shutdown()

    def test_wait_unknown_execution(self, simple_job):
        launcher = ThreadPoolJobLauncher(InMemoryJobEngine([simple_job]), max_workers=1)
        try:
            with pytest.raises(NoSuchJobExecutionError):
                launcher.wait(999)
        finally:
            launcher.shutdown()

    def test_wait_on_execution_from_another_launcher(self, simple_job):
        engine = InMemoryJobEngine([simple_job])
        launcher = ThreadPoolJobLauncher(engine, max_workers=1)
        try:
            recorded = engine.launch(simple_job, JobParameters.from_mapping({"run": 1}))

            with pytest.raises(NoSuchJobExecutionError) as exc_info:
                launcher.wait(recorded.id)
            assert exc_info.value.context.job_execution_id == recorded.id
        finally:
            launcher.shutdown()


class TestLauncherRegistry:
    def test_register_and_get(self, simple_job):
        launcher = SyncJobLauncher(InMemoryJobEngine([simple_job]))
        registry = LauncherRegistry()
        registry.register("mine", launcher)

        assert registry.get("mine") is launcher
        assert registry.has("mine")
        assert registry.names() == ["mine"]

    def test_get_unknown(self):
        registry = LauncherRegistry()
        with pytest.raises(LauncherNotFoundError) as exc_info:
            registry.get("missing")
        assert exc_info.value.context.launcher == "missing"
        assert "Available: none" in exc_info.value.message

    def test_unregister(self, simple_job):
        registry = LauncherRegistry({"mine": SyncJobLauncher(InMemoryJobEngine([simple_job]))})
        registry.unregister("mine")
        registry.unregister("mine")
        assert not registry.has("mine")

    def test_with_defaults(self, simple_job):
        registry = LauncherRegistry.with_defaults(InMemoryJobEngine([simple_job]), max_workers=1)
        try:
            assert registry.names() == [JOB_LAUNCHER, SYNC_JOB_LAUNCHER]
            assert isinstance(registry.get(JOB_LAUNCHER), ThreadPoolJobLauncher)
            assert isinstance(registry.get(SYNC_JOB_LAUNCHER), SyncJobLauncher)
        finally:
            registry.get(JOB_LAUNCHER).shutdown()

    def test_concurrent_registration(self, simple_job):
        launcher = SyncJobLauncher(InMemoryJobEngine([simple_job]))
        registry = LauncherRegistry()

        threads = [
            threading.Thread(target=registry.register, args=(f"l{i}", launcher))
            for i in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry.names()) == 20
