"""Job engine protocol: the contract the control plane consumes.

Manifesto:
The control plane never runs job logic and never touches the engine's
metadata tables.  Everything it needs (counts, pages, lookups, launch and
stop primitives, the running-execution query) goes through ``JobEngine``.
It is a ``typing.Protocol``: any object with the right methods satisfies
it, no base class required.

ARCHITECTURE
────────────
::

    JobEngine (Protocol)
      ├── counts     ─ count_jobs, count_job_instances, count_job_executions_for_job
      ├── pages      ─ list_jobs, list_job_instances, list_job_executions_for_job,
      │                list_step_executions_for_step           (offset/max pushed down)
      ├── lookups    ─ get_job_instance, get_job_execution, get_step_execution,
      │                get_job_executions_for_job_instance, get_step_executions
      ├── predicates ─ is_launchable, is_incrementable
      ├── mutators   ─ launch, stop, restart
      ├── registry   ─ resolve_job
      └── operator   ─ running_execution_ids, running_executions_for

    JobLauncher (Protocol)
      └── .run(job, parameters) ─ start a JobExecution (sync or async)

    Implementations:
      InMemoryJobEngine     ─ thread-safe, in-process (tests, development)
      SyncJobLauncher       ─ runs the execution in the caller's thread
      ThreadPoolJobLauncher ─ runs the execution on a worker pool

Ordering:
    Listings of instances and executions are newest first, so
    ``list_job_executions_for_job(name, 0, 1)`` is the most recent run.

Tags:
    batchplane, engine, protocol, interface
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Job, JobExecution, JobInstance, JobParameters, StepExecution


@runtime_checkable
class JobEngine(Protocol):
    """Job engine adapter that registers, runs and persists batch jobs."""

    # ── Counts ───────────────────────────────────────────────────

    def count_jobs(self) -> int:
        """Number of known job names (registered or with history)."""
        ...

    def count_job_instances(self, job_name: str) -> int:
        ...

    def count_job_executions_for_job(self, job_name: str) -> int:
        ...

    # ── Pages and lookups ────────────────────────────────────────

    def list_jobs(self, offset: int, max: int) -> list[str]:
        """Job names in ``[offset, offset + max)``, sorted by name."""
        ...

    def list_job_instances(self, job_name: str, offset: int, max: int) -> list[JobInstance]:
        ...

    def list_job_executions_for_job(self, job_name: str, offset: int, max: int) -> list[JobExecution]:
        ...

    def list_step_executions_for_step(
        self, job_name: str, step_name: str, offset: int, max: int
    ) -> list[StepExecution]:
        ...

    def get_job_executions_for_job_instance(
        self, job_name: str, job_instance_id: int
    ) -> list[JobExecution]:
        """All executions of one instance (no pagination primitive)."""
        ...

    def get_step_executions(self, job_execution_id: int) -> list[StepExecution]:
        ...

    def get_job_instance(self, job_instance_id: int) -> JobInstance:
        """Raises NoSuchJobInstanceError."""
        ...

    def get_job_execution(self, job_execution_id: int) -> JobExecution:
        """Raises NoSuchJobExecutionError."""
        ...

    def get_step_execution(self, job_execution_id: int, step_execution_id: int) -> StepExecution:
        """Raises NoSuchJobExecutionError / NoSuchStepExecutionError."""
        ...

    # ── Predicates ───────────────────────────────────────────────

    def is_launchable(self, job_name: str) -> bool:
        ...

    def is_incrementable(self, job_name: str) -> bool:
        ...

    # ── Mutators ─────────────────────────────────────────────────

    def launch(self, job: Job, parameters: JobParameters) -> JobExecution:
        """Create the execution record in STARTING state.

        Raises:
            JobInstanceAlreadyCompleteError: instance + parameters already completed
            JobExecutionAlreadyRunningError: the instance has a running execution
            JobRestartError: the job is not restartable
        """
        ...

    def stop(self, job_execution_id: int) -> JobExecution:
        """Request a cooperative stop. Raises JobExecutionNotRunningError."""
        ...

    def restart(self, job_execution_id: int) -> JobExecution:
        """Start a new execution of a FAILED or STOPPED execution's instance."""
        ...

    # ── Registry ─────────────────────────────────────────────────

    def resolve_job(self, job_name: str) -> Job:
        """Raises NoSuchJobError."""
        ...

    # ── Operator queries ─────────────────────────────────────────

    def running_execution_ids(self, job_name: str) -> set[int]:
        """Ids of executions not yet finished (STARTING, STARTED, STOPPING)."""
        ...

    def running_executions_for(self, job_name: str) -> list[JobExecution]:
        """Executions in STARTING or STARTED, read from authoritative state.

        Must bypass any cache; the concurrency guard depends on it.
        """
        ...


@runtime_checkable
class JobLauncher(Protocol):
    """Strategy that actually starts a JobExecution.

    Example implementation:
        >>> class InlineLauncher:
        ...     def __init__(self, engine):
        ...         self.engine = engine
        ...
        ...     def run(self, job, parameters):
        ...         execution = self.engine.launch(job, parameters)
        ...         self.engine.execute(execution.id)
        ...         return execution
    """

    def run(self, job: Job, parameters: JobParameters) -> JobExecution:
        ...
