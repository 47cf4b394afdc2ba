"""
Single-record lookups.

Thin delegations to the engine; ``NoSuch*Error`` exceptions propagate.
"""

from __future__ import annotations

from batchplane.engine.models import JobExecution, JobInstance, StepExecution
from batchplane.ops.context import BatchContext


def job_instance(ctx: BatchContext, job_instance_id: int) -> JobInstance:
    return ctx.engine.get_job_instance(job_instance_id)


def job_execution(ctx: BatchContext, job_execution_id: int) -> JobExecution:
    return ctx.engine.get_job_execution(job_execution_id)


def step_execution(ctx: BatchContext, job_execution_id: int, step_execution_id: int) -> StepExecution:
    return ctx.engine.get_step_execution(job_execution_id, step_execution_id)


def previous_step_executions(
    ctx: BatchContext,
    job_name: str,
    step_name: str,
    offset: int = 0,
    max: int = 10,
) -> list[StepExecution]:
    """Earlier runs of one step across the job's executions, newest first."""
    return ctx.engine.list_step_executions_for_step(job_name, step_name, offset, max)
