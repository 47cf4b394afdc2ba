"""
Last-run status of a job, for automated monitoring.

Gives a subset of what the job UI model shows, shaped for health checks:
did the most recent execution succeed, is it still running, and when did
it start and end.
"""

from __future__ import annotations

from typing import Any

from batchplane.ops.context import BatchContext


def job_status(ctx: BatchContext, job_name: str) -> dict[str, Any]:
    """Return the status of the most recent execution of *job_name*.

    Returns exactly ``{"success": False}`` when the job never ran.  A
    STOPPED execution counts as successful; only FAILED and ABANDONED do not.
    """
    most_recent = ctx.engine.list_job_executions_for_job(job_name, 0, 1)
    if not most_recent:
        return {"success": False}

    execution = most_recent[0]
    return {
        "success": not execution.status.is_unsuccessful(),
        "running": execution.status.is_running(),
        "execution_start_time": execution.start_time,
        "execution_end_time": execution.end_time,
    }
