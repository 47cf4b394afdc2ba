"""
Stop, restart and stop-all operations.

``stop`` and ``restart`` are thin delegations: engine errors
(``NoSuchJobExecutionError``, ``JobExecutionNotRunningError``,
``JobRestartError``, ...) propagate unchanged.

``stop_all_job_executions`` is a best-effort sweep.  One execution refusing
to stop never prevents the others from being asked; failures are logged and
collected in the returned :class:`~batchplane.ops.responses.StopSummary`.
"""

from __future__ import annotations

from batchplane.core.logging import LogContext, get_logger
from batchplane.engine.models import JobExecution
from batchplane.ops.context import BatchContext
from batchplane.ops.guard import has_running_executions
from batchplane.ops.responses import StopSummary

logger = get_logger(__name__)


def stop(ctx: BatchContext, job_execution_id: int) -> JobExecution:
    """Ask the engine to stop one execution."""
    logger.info("job_execution_stop_requested", job_execution_id=job_execution_id)
    return ctx.engine.stop(job_execution_id)


def restart(ctx: BatchContext, job_execution_id: int) -> JobExecution:
    """Ask the engine to restart a FAILED or STOPPED execution."""
    logger.info("job_execution_restart_requested", job_execution_id=job_execution_id)
    return ctx.engine.restart(job_execution_id)


def _stop_job(ctx: BatchContext, job_name: str) -> StopSummary:
    summary = StopSummary()
    with LogContext(job_name=job_name):
        execution_ids = sorted(ctx.engine.running_execution_ids(job_name))
        logger.info("stopping_job_executions", count=len(execution_ids))
        for execution_id in execution_ids:
            summary.attempted.append(execution_id)
            try:
                ctx.engine.stop(execution_id)
            except Exception as exc:
                logger.debug("job_execution_stop_failed", job_execution_id=execution_id, exc_info=True)
                summary.failed[execution_id] = str(exc)
            else:
                summary.stopped.append(execution_id)
    return summary


def stop_all_job_executions(ctx: BatchContext, job_name: str | None = None) -> StopSummary:
    """Stop every running execution of *job_name*, or of every job.

    Without a name, every job the engine knows is checked with the
    concurrency guard and only jobs reported as running are swept.
    """
    with LogContext(**ctx.log_fields()):
        if job_name is not None:
            return _stop_job(ctx, job_name)

        summary = StopSummary()
        for name in ctx.engine.list_jobs(0, ctx.engine.count_jobs()):
            if has_running_executions(ctx, name):
                summary.merge(_stop_job(ctx, name))
        logger.info(
            "stop_all_completed",
            attempted=len(summary.attempted),
            stopped=len(summary.stopped),
            failed=len(summary.failed),
        )
        return summary
