"""In-memory job engine for testing and development.

Implements the whole :class:`~batchplane.engine.protocol.JobEngine`
contract in the current process: a job registry, job instances deduplicated
by identifying parameters, step-by-step execution with counters,
cooperative stop and restart.  Nothing is persisted; everything is lost
when the process exits.  Do NOT use it as a production job repository.

ARCHITECTURE
────────────
::

    InMemoryJobEngine(jobs=[...])
      ├── .register(job) / .unregister(name)  ─ job registry
      ├── .launch(job, params)   ─ find-or-create instance, new STARTING execution
      ├── .execute(id)           ─ run the steps (called by a launcher)
      ├── .stop(id)              ─ STOPPING; the runner stops before the next step
      ├── .restart(id)           ─ new execution of a FAILED / STOPPED instance
      └── count / list / get     ─ newest-first views for the control plane

    Job names known to the engine are the registered names plus every name
    that has recorded instances, so a job keeps its history (and is listed,
    but not launchable) after it is unregistered.

Example::

    engine = InMemoryJobEngine([Job("nightly", steps=[Step("load", load)])])
    execution = engine.launch(engine.resolve_job("nightly"), JobParameters())
    engine.execute(execution.id)
    assert execution.status is BatchStatus.COMPLETED
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable
from concurrent.futures import Executor
from typing import TypeVar

from batchplane.core.errors import (
    JobExecutionAlreadyRunningError,
    JobExecutionNotRunningError,
    JobInstanceAlreadyCompleteError,
    JobRestartError,
    JobStateError,
    NoSuchJobError,
    NoSuchJobExecutionError,
    NoSuchJobInstanceError,
    NoSuchStepExecutionError,
)
from batchplane.core.logging import get_logger

from .models import (
    ACTIVE_STATUSES,
    BatchStatus,
    ExitStatus,
    Job,
    JobExecution,
    JobInstance,
    JobParameters,
    StepExecution,
    utcnow,
)

logger = get_logger(__name__)

T = TypeVar("T")


def _page(items: list[T], offset: int, max: int) -> list[T]:
    return items[offset:offset + max]


class InMemoryJobEngine:
    """Thread-safe in-process job engine.

    All bookkeeping happens under one re-entrant lock; step handlers run
    outside of it so a stop request can land while a step is working.

    Args:
        jobs: Job definitions to register up front.
        restart_executor: Optional ``concurrent.futures.Executor`` used to
            run restarted executions.  Without one, :meth:`restart` runs the
            new execution in the caller's thread.
    """

    def __init__(
        self,
        jobs: Iterable[Job] = (),
        *,
        restart_executor: Executor | None = None,
    ):
        self._lock = threading.RLock()
        self._jobs: dict[str, Job] = {}
        self._instances: dict[int, JobInstance] = {}
        self._executions: dict[int, JobExecution] = {}
        self._instance_ids = itertools.count(1)
        self._execution_ids = itertools.count(1)
        self._step_ids = itertools.count(1)
        self._restart_executor = restart_executor
        for job in jobs:
            self.register(job)

    # ------------------------------------------------------------------ #
    # Registry
    # ------------------------------------------------------------------ #

    def register(self, job: Job) -> None:
        with self._lock:
            self._jobs[job.name] = job

    def unregister(self, job_name: str) -> None:
        """Remove a job definition; its history stays queryable."""
        with self._lock:
            self._jobs.pop(job_name, None)

    def resolve_job(self, job_name: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_name)
        if job is None:
            raise NoSuchJobError(
                f"No job configuration with the name [{job_name}] was registered"
            ).with_context(job_name=job_name)
        return job

    def is_launchable(self, job_name: str) -> bool:
        with self._lock:
            return job_name in self._jobs

    def is_incrementable(self, job_name: str) -> bool:
        with self._lock:
            job = self._jobs.get(job_name)
            return job is not None and job.incrementer is not None

    # ------------------------------------------------------------------ #
    # Counts and pages
    # ------------------------------------------------------------------ #

    def _job_names(self) -> list[str]:
        names = set(self._jobs)
        names.update(instance.job_name for instance in self._instances.values())
        return sorted(names)

    def _instances_for(self, job_name: str) -> list[JobInstance]:
        return sorted(
            (i for i in self._instances.values() if i.job_name == job_name),
            key=lambda i: i.id,
            reverse=True,
        )

    def _executions_for_job(self, job_name: str) -> list[JobExecution]:
        return sorted(
            (e for e in self._executions.values() if e.job_name == job_name),
            key=lambda e: e.id,
            reverse=True,
        )

    def _executions_for_instance(self, job_instance_id: int) -> list[JobExecution]:
        return sorted(
            (e for e in self._executions.values() if e.job_id == job_instance_id),
            key=lambda e: e.id,
            reverse=True,
        )

    def count_jobs(self) -> int:
        with self._lock:
            return len(self._job_names())

    def list_jobs(self, offset: int, max: int) -> list[str]:
        with self._lock:
            return _page(self._job_names(), offset, max)

    def count_job_instances(self, job_name: str) -> int:
        with self._lock:
            return len(self._instances_for(job_name))

    def list_job_instances(self, job_name: str, offset: int, max: int) -> list[JobInstance]:
        with self._lock:
            return _page(self._instances_for(job_name), offset, max)

    def count_job_executions_for_job(self, job_name: str) -> int:
        with self._lock:
            return len(self._executions_for_job(job_name))

    def list_job_executions_for_job(self, job_name: str, offset: int, max: int) -> list[JobExecution]:
        with self._lock:
            return _page(self._executions_for_job(job_name), offset, max)

    def list_step_executions_for_step(
        self, job_name: str, step_name: str, offset: int, max: int
    ) -> list[StepExecution]:
        with self._lock:
            steps = [
                step
                for execution in self._executions_for_job(job_name)
                for step in execution.step_executions
                if step.step_name == step_name
            ]
            steps.sort(key=lambda s: s.id, reverse=True)
            return _page(steps, offset, max)

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def get_job_instance(self, job_instance_id: int) -> JobInstance:
        with self._lock:
            instance = self._instances.get(job_instance_id)
        if instance is None:
            raise NoSuchJobInstanceError(
                f"JobInstance with id={job_instance_id} does not exist"
            ).with_context(job_instance_id=job_instance_id)
        return instance

    def get_job_execution(self, job_execution_id: int) -> JobExecution:
        with self._lock:
            execution = self._executions.get(job_execution_id)
        if execution is None:
            raise NoSuchJobExecutionError(
                f"JobExecution with id={job_execution_id} does not exist"
            ).with_context(job_execution_id=job_execution_id)
        return execution

    def get_job_executions_for_job_instance(
        self, job_name: str, job_instance_id: int
    ) -> list[JobExecution]:
        instance = self.get_job_instance(job_instance_id)
        if instance.job_name != job_name:
            raise NoSuchJobInstanceError(
                f"JobInstance with id={job_instance_id} does not belong to job [{job_name}]"
            ).with_context(job_name=job_name, job_instance_id=job_instance_id)
        with self._lock:
            return self._executions_for_instance(job_instance_id)

    def get_step_executions(self, job_execution_id: int) -> list[StepExecution]:
        execution = self.get_job_execution(job_execution_id)
        with self._lock:
            return list(execution.step_executions)

    def get_step_execution(self, job_execution_id: int, step_execution_id: int) -> StepExecution:
        for step in self.get_step_executions(job_execution_id):
            if step.id == step_execution_id:
                return step
        raise NoSuchStepExecutionError(
            f"StepExecution with id={step_execution_id} does not exist "
            f"in JobExecution {job_execution_id}"
        ).with_context(job_execution_id=job_execution_id, step_execution_id=step_execution_id)

    # ------------------------------------------------------------------ #
    # Operator queries
    # ------------------------------------------------------------------ #

    def running_execution_ids(self, job_name: str) -> set[int]:
        with self._lock:
            return {e.id for e in self._executions_for_job(job_name) if e.is_running()}

    def running_executions_for(self, job_name: str) -> list[JobExecution]:
        with self._lock:
            return [e for e in self._executions_for_job(job_name) if e.status in ACTIVE_STATUSES]

    # ------------------------------------------------------------------ #
    # Mutators
    # ------------------------------------------------------------------ #

    def launch(self, job: Job, parameters: JobParameters) -> JobExecution:
        with self._lock:
            if job.name not in self._jobs:
                raise NoSuchJobError(
                    f"No job configuration with the name [{job.name}] was registered"
                ).with_context(job_name=job.name)

            instance = self._find_instance(job.name, parameters)
            if instance is None:
                instance = JobInstance(next(self._instance_ids), job.name, parameters)
                self._instances[instance.id] = instance
            else:
                self._check_relaunch(job, instance, parameters)

            execution = JobExecution(next(self._execution_ids), instance)
            execution.last_updated = execution.create_time
            self._executions[execution.id] = execution

        logger.debug(
            "job_execution_created",
            job_name=job.name,
            job_instance_id=instance.id,
            job_execution_id=execution.id,
        )
        return execution

    def _find_instance(self, job_name: str, parameters: JobParameters) -> JobInstance | None:
        identity = parameters.identity()
        for instance in self._instances.values():
            if instance.job_name == job_name and instance.parameters.identity() == identity:
                return instance
        return None

    def _check_relaunch(self, job: Job, instance: JobInstance, parameters: JobParameters) -> None:
        executions = self._executions_for_instance(instance.id)
        for execution in executions:
            if execution.is_running():
                raise JobExecutionAlreadyRunningError(
                    f"A job execution for this job is already running: {instance.job_name} "
                    f"(job_execution_id={execution.id})"
                ).with_context(job_name=job.name, job_execution_id=execution.id)
            if execution.status in (BatchStatus.COMPLETED, BatchStatus.ABANDONED):
                raise JobInstanceAlreadyCompleteError(
                    f"A job instance already exists and is complete for parameters={parameters.to_dict()}. "
                    "If you want to run this job again, change the parameters."
                ).with_context(job_name=job.name, job_instance_id=instance.id)
        if executions and not job.restartable:
            raise JobRestartError(
                f"JobInstance already exists and is not restartable: {job.name}"
            ).with_context(job_name=job.name, job_instance_id=instance.id)

    def execute(self, job_execution_id: int) -> JobExecution:
        """Run the steps of a STARTING execution to completion.

        Steps that already completed in an earlier execution of the same
        instance are skipped.  A handler exception fails the step and the
        job; a stop request is honored before each step.
        """
        execution = self.get_job_execution(job_execution_id)

        with self._lock:
            if execution.status is BatchStatus.STOPPING:
                self._finish(execution, BatchStatus.STOPPED, ExitStatus.STOPPED)
                return execution
            if execution.status is not BatchStatus.STARTING:
                raise JobStateError(
                    f"JobExecution {job_execution_id} cannot be executed from status "
                    f"{execution.status.value}"
                ).with_context(job_execution_id=job_execution_id)
            job = self._jobs.get(execution.job_name)
            if job is None:
                execution.failure_exceptions.append(f"Job [{execution.job_name}] is no longer registered")
                self._finish(execution, BatchStatus.FAILED, ExitStatus.FAILED)
                return execution
            completed_steps = self._completed_step_names(execution)
            execution.status = BatchStatus.STARTED
            execution.exit_status = ExitStatus.EXECUTING
            execution.start_time = utcnow()
            execution.last_updated = execution.start_time

        for step in job.steps:
            if step.name in completed_steps:
                continue
            with self._lock:
                if execution.status is BatchStatus.STOPPING:
                    self._finish(execution, BatchStatus.STOPPED, ExitStatus.STOPPED)
                    return execution
                step_execution = StepExecution(
                    next(self._step_ids),
                    step.name,
                    execution.id,
                    status=BatchStatus.STARTED,
                    start_time=utcnow(),
                )
                execution.step_executions.append(step_execution)

            try:
                exit_status = step.handler(step_execution, execution.parameters)
            except Exception as exc:
                description = f"{type(exc).__name__}: {exc}"
                logger.warning(
                    "step_failed",
                    job_name=execution.job_name,
                    job_execution_id=execution.id,
                    step_name=step.name,
                    error=description,
                )
                with self._lock:
                    step_execution.status = BatchStatus.FAILED
                    step_execution.exit_status = ExitStatus.FAILED.and_description(description)
                    step_execution.end_time = utcnow()
                    execution.failure_exceptions.append(description)
                    self._finish(execution, BatchStatus.FAILED, ExitStatus.FAILED.and_description(description))
                return execution

            with self._lock:
                step_execution.status = BatchStatus.COMPLETED
                step_execution.exit_status = exit_status or ExitStatus.COMPLETED
                step_execution.end_time = utcnow()
                execution.last_updated = step_execution.end_time

        with self._lock:
            if execution.status is BatchStatus.STOPPING:
                self._finish(execution, BatchStatus.STOPPED, ExitStatus.STOPPED)
            else:
                self._finish(execution, BatchStatus.COMPLETED, ExitStatus.COMPLETED)
        return execution

    def _completed_step_names(self, execution: JobExecution) -> set[str]:
        return {
            step.step_name
            for previous in self._executions_for_instance(execution.job_id)
            if previous.id != execution.id
            for step in previous.step_executions
            if step.status is BatchStatus.COMPLETED
        }

    def _finish(self, execution: JobExecution, status: BatchStatus, exit_status: ExitStatus) -> None:
        execution.status = status
        execution.exit_status = exit_status
        execution.end_time = utcnow()
        execution.last_updated = execution.end_time
        logger.info(
            "job_execution_finished",
            job_name=execution.job_name,
            job_execution_id=execution.id,
            status=status.value,
        )

    def stop(self, job_execution_id: int) -> JobExecution:
        execution = self.get_job_execution(job_execution_id)
        with self._lock:
            if not execution.is_running():
                raise JobExecutionNotRunningError(
                    f"JobExecution must be running so that it can be stopped: {job_execution_id}"
                ).with_context(job_execution_id=job_execution_id, job_name=execution.job_name)
            execution.status = BatchStatus.STOPPING
            execution.last_updated = utcnow()
        logger.info("job_execution_stopping", job_name=execution.job_name, job_execution_id=execution.id)
        return execution

    def restart(self, job_execution_id: int) -> JobExecution:
        execution = self.get_job_execution(job_execution_id)
        job = self.resolve_job(execution.job_name)
        with self._lock:
            if execution.is_running():
                raise JobExecutionAlreadyRunningError(
                    f"JobExecution is still running: {job_execution_id}"
                ).with_context(job_execution_id=job_execution_id, job_name=job.name)
            if execution.status is BatchStatus.COMPLETED:
                raise JobInstanceAlreadyCompleteError(
                    f"JobExecution already completed: {job_execution_id}"
                ).with_context(job_execution_id=job_execution_id, job_name=job.name)
            if execution.status is BatchStatus.ABANDONED or not job.restartable:
                raise JobRestartError(
                    f"JobExecution cannot be restarted: {job_execution_id}"
                ).with_context(job_execution_id=job_execution_id, job_name=job.name)
            restarted = self.launch(job, execution.parameters)

        logger.info(
            "job_execution_restarted",
            job_name=job.name,
            job_execution_id=restarted.id,
            restart_of=job_execution_id,
        )
        if self._restart_executor is not None:
            self._restart_executor.submit(self.execute, restarted.id)
            return restarted
        return self.execute(restarted.id)
