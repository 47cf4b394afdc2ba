"""Job launchers and the launcher registry.

Manifesto:
A launcher decides *how* an execution runs once the engine has recorded
it: in the caller's thread (``SyncJobLauncher``) or on a worker pool
(``ThreadPoolJobLauncher``).  The control plane picks one by name from a
``LauncherRegistry`` and falls back to the configured default.

ARCHITECTURE
────────────
::

    LauncherRegistry
      ├── .register(name, launcher)  ─ store launcher
      ├── .get(name)                 ─ lookup (LauncherNotFoundError)
      ├── .has(name) / .names()
      └── LauncherRegistry.with_defaults(engine)
            "job_launcher"      → ThreadPoolJobLauncher (default)
            "sync_job_launcher" → SyncJobLauncher

Tags:
    batchplane, engine, launcher, registry, thread-pool
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

from batchplane.core.errors import LauncherNotFoundError, NoSuchJobExecutionError
from batchplane.core.logging import get_logger

from .models import Job, JobExecution, JobParameters
from .protocol import JobEngine, JobLauncher

logger = get_logger(__name__)

JOB_LAUNCHER = "job_launcher"
SYNC_JOB_LAUNCHER = "sync_job_launcher"


class ExecutingJobEngine(JobEngine, Protocol):
    """A job engine that can also run a recorded execution in-process."""

    def execute(self, job_execution_id: int) -> JobExecution:
        ...


class SyncJobLauncher:
    """Runs the execution in the calling thread and returns it finished."""

    def __init__(self, engine: ExecutingJobEngine):
        self.engine = engine

    def run(self, job: Job, parameters: JobParameters) -> JobExecution:
        execution = self.engine.launch(job, parameters)
        logger.debug("job_run_sync", job_name=job.name, job_execution_id=execution.id)
        return self.engine.execute(execution.id)


class ThreadPoolJobLauncher:
    """ThreadPoolExecutor-based launcher.

    ``run`` records the execution and returns it in STARTING state right
    away; a worker thread runs the steps.  Only pending futures are kept;
    each one is dropped as soon as its execution finishes.  Use :meth:`wait`
    to block on a particular execution (tests, graceful shutdown).

    Example:
        >>> launcher = ThreadPoolJobLauncher(engine, max_workers=2)
        >>> execution = launcher.run(job, params)
        >>> launcher.wait(execution.id).status
        <BatchStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        engine: ExecutingJobEngine,
        max_workers: int = 4,
        pool: ThreadPoolExecutor | None = None,
    ):
        self.engine = engine
        self.pool = pool or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="batchplane-job"
        )
        self._futures: dict[int, Future] = {}
        self._lock = threading.Lock()

    def run(self, job: Job, parameters: JobParameters) -> JobExecution:
        execution = self.engine.launch(job, parameters)
        future = self.pool.submit(self._execute, execution.id)
        with self._lock:
            self._futures[execution.id] = future
        future.add_done_callback(lambda done, key=execution.id: self._forget(key, done))
        logger.debug("job_run_submitted", job_name=job.name, job_execution_id=execution.id)
        return execution

    def _execute(self, job_execution_id: int) -> JobExecution:
        try:
            return self.engine.execute(job_execution_id)
        except Exception:
            logger.exception("job_execution_crashed", job_execution_id=job_execution_id)
            raise

    def _forget(self, job_execution_id: int, future: Future) -> None:
        with self._lock:
            if self._futures.get(job_execution_id) is future:
                del self._futures[job_execution_id]

    @property
    def pending(self) -> int:
        """Number of submitted executions whose worker has not finished."""
        with self._lock:
            return len(self._futures)

    def wait(self, job_execution_id: int, timeout: float | None = None) -> JobExecution:
        """Block until the execution's worker finishes and return it.

        Raises:
            NoSuchJobExecutionError: If this launcher never ran *job_execution_id*
        """
        with self._lock:
            future = self._futures.get(job_execution_id)
        if future is not None:
            return future.result(timeout=timeout)
        execution = self.engine.get_job_execution(job_execution_id)
        if execution.is_running():
            raise NoSuchJobExecutionError(
                f"JobExecution {job_execution_id} was not submitted by this launcher"
            ).with_context(job_execution_id=job_execution_id)
        return execution

    def shutdown(self, wait: bool = True) -> None:
        self.pool.shutdown(wait=wait)


class LauncherRegistry:
    """Injectable name → launcher lookup.

    Example:
        >>> registry = LauncherRegistry()
        >>> registry.register("sync_job_launcher", SyncJobLauncher(engine))
        >>> registry.get("sync_job_launcher")
        <batchplane.engine.launchers.SyncJobLauncher object at ...>
    """

    def __init__(self, launchers: Mapping[str, JobLauncher] | None = None):
        self._launchers: dict[str, JobLauncher] = dict(launchers or {})
        self._lock = threading.Lock()

    @classmethod
    def with_defaults(cls, engine: ExecutingJobEngine, max_workers: int = 4) -> LauncherRegistry:
        """Registry holding ``job_launcher`` (thread pool) and ``sync_job_launcher``."""
        return cls({
            JOB_LAUNCHER: ThreadPoolJobLauncher(engine, max_workers=max_workers),
            SYNC_JOB_LAUNCHER: SyncJobLauncher(engine),
        })

    def register(self, name: str, launcher: JobLauncher) -> None:
        with self._lock:
            self._launchers[name] = launcher

    def unregister(self, name: str) -> None:
        with self._lock:
            self._launchers.pop(name, None)

    def get(self, name: str) -> JobLauncher:
        """Get a launcher.

        Raises:
            LauncherNotFoundError: If nothing is registered under *name*
        """
        with self._lock:
            launcher = self._launchers.get(name)
            available = sorted(self._launchers)
        if launcher is None:
            raise LauncherNotFoundError(
                f"No job launcher registered as {name!r}. Available: {available or 'none'}"
            ).with_context(launcher=name)
        return launcher

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._launchers

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._launchers)
