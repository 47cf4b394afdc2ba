"""
Launch orchestration.

:func:`launch` admits or refuses a launch request and, when admitted, hands
the job to a launcher.  Admission is an ordered, short-circuiting chain:

1. host readiness            → ``low``  (benign: starting up or shutting down)
2. job lookup                → ``high`` (misconfiguration)
3. concurrency guard         → ``low``  (only when ``can_be_concurrent`` is false)
4. launcher selection        → ``high`` (neither the named nor the default launcher exists)
5. parameter defaulting      (only when ``job_params`` is ``None``; never fails)
6. launcher run              → ``high`` on an already-complete instance

Refusals come back as a :class:`~batchplane.ops.responses.LaunchResult`;
they are never raised.  Any other engine exception raised by the launcher
propagates to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import nullcontext
from datetime import datetime
from typing import Any

from batchplane.core.errors import JobInstanceAlreadyCompleteError, LauncherNotFoundError, NoSuchJobError
from batchplane.core.logging import LogContext, get_logger
from batchplane.engine.models import Job, JobParameter, JobParameters
from batchplane.engine.protocol import JobLauncher
from batchplane.ops.context import BatchContext
from batchplane.ops.guard import has_running_executions
from batchplane.ops.responses import FailurePriority, LaunchResult

logger = get_logger(__name__)


def default_job_parameters(ctx: BatchContext) -> dict[str, JobParameter]:
    """Single timestamp parameter keyed by ``settings.default_parameter_key``.

    The value has microsecond resolution, so two default launches in a row
    create two distinct job instances.
    """
    return {ctx.settings.default_parameter_key: JobParameter(datetime.now().isoformat())}


def map_to_job_parameters(values: Mapping[str, Any]) -> JobParameters:
    """Turn a plain mapping (raw values or :class:`JobParameter`) into JobParameters."""
    if isinstance(values, JobParameters):
        return values
    return JobParameters.from_mapping(values)


def _select_launcher(ctx: BatchContext, job_launcher_name: str | None) -> JobLauncher | None:
    if job_launcher_name:
        try:
            return ctx.launchers.get(job_launcher_name)
        except LauncherNotFoundError:
            logger.debug(
                "launcher_not_found_using_default",
                launcher=job_launcher_name,
                default_launcher=ctx.settings.default_launcher,
            )
    try:
        return ctx.launchers.get(ctx.settings.default_launcher)
    except LauncherNotFoundError:
        return None


def launch(
    ctx: BatchContext,
    job_name: str,
    can_be_concurrent: bool = True,
    job_params: Mapping[str, Any] | None = None,
    job_launcher_name: str | None = None,
) -> LaunchResult:
    """Launch *job_name* if it may be launched right now.

    Args:
        ctx: Operation context.
        job_name: Registered job name.
        can_be_concurrent: When ``False``, refuse if the job already has an
            execution in STARTING or STARTED.
        job_params: Launch parameters; ``None`` means a fresh timestamp
            parameter.  An empty mapping launches with no parameters.
        job_launcher_name: Registered launcher name; unknown names fall back
            to ``settings.default_launcher``.

    Returns:
        :class:`LaunchResult` with ``job_id`` / ``job_execution_id`` on
        success, or ``failure_priority`` and a message on refusal.
    """
    with LogContext(**ctx.log_fields(job_name=job_name)):
        if not ctx.readiness.is_ready():
            logger.info("launch_refused", reason="not_ready")
            return LaunchResult.failed(
                f"Attempted to launch {job_name}, but app is not ready or job processing is disabled.",
                FailurePriority.LOW,
            )

        try:
            job = ctx.engine.resolve_job(job_name)
        except NoSuchJobError:
            logger.warning("launch_refused", reason="no_such_job")
            return LaunchResult.failed(f"Did not find batch job: {job_name}", FailurePriority.HIGH)

        serialize = ctx.settings.serialize_launches and not can_be_concurrent
        with ctx.launch_locks.hold(job_name) if serialize else nullcontext():
            return _guarded_launch(ctx, job, can_be_concurrent, job_params, job_launcher_name)


def _guarded_launch(
    ctx: BatchContext,
    job: Job,
    can_be_concurrent: bool,
    job_params: Mapping[str, Any] | None,
    job_launcher_name: str | None,
) -> LaunchResult:
    if not can_be_concurrent and has_running_executions(ctx, job.name):
        logger.info("launch_refused", reason="already_running")
        return LaunchResult.failed(
            f"Attempted to launch {job.name}, but it is currently running. Aborting launch.",
            FailurePriority.LOW,
        )

    launcher = _select_launcher(ctx, job_launcher_name)
    if launcher is None:
        logger.warning("launch_refused", reason="invalid_launcher", launcher=job_launcher_name)
        return LaunchResult.failed(
            f"Invalid job launcher {job_launcher_name} selected", FailurePriority.HIGH
        )

    if job_params is None:
        logger.debug("default_job_parameters_used")
        job_params = default_job_parameters(ctx)
    parameters = map_to_job_parameters(job_params)

    try:
        execution = launcher.run(job, parameters)
    except JobInstanceAlreadyCompleteError as exc:
        logger.warning("launch_refused", reason="already_complete")
        return LaunchResult.failed(exc.message, FailurePriority.HIGH)

    logger.info("job_launched", job_id=execution.job_id, job_execution_id=execution.id)
    return LaunchResult.launched(job.name, execution)
