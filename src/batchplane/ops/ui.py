"""
Paginated UI models.

Four getters build a :class:`~batchplane.ops.responses.UiModel`: the
unpaginated total plus one page of items, walking job → instance →
execution → step.

* Jobs and instances push ``offset``/``max`` down to the engine, and the
  per-item enrichment queries run only for the items in the page.
* Executions of an instance and steps of an execution have no engine-side
  pagination: the full list is fetched and sliced here.

An ``offset`` at or beyond the total yields an empty page, never an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from batchplane.core.logging import get_logger
from batchplane.ops.context import BatchContext
from batchplane.ops.requests import PageRequest
from batchplane.ops.responses import (
    JobExecutionModel,
    JobInstanceModel,
    JobModel,
    StepExecutionModel,
    UiModel,
)

logger = get_logger(__name__)

Params = Mapping[str, Any] | None


def _page(ctx: BatchContext, params: Params) -> PageRequest:
    return PageRequest.from_params(params, ctx.settings)


def get_job_ui_model(ctx: BatchContext, params: Params = None) -> UiModel[JobModel]:
    """All known jobs, each enriched with execution count and launch flags."""
    page = _page(ctx, params)
    engine = ctx.engine

    total = engine.count_jobs()
    models = [
        JobModel(
            name=name,
            execution_count=engine.count_job_executions_for_job(name),
            launchable=engine.is_launchable(name),
            incrementable=engine.is_incrementable(name),
        )
        for name in engine.list_jobs(page.offset, page.max)
    ]
    logger.debug("job_ui_model_built", total=total, offset=page.offset, max=page.max)
    return UiModel(model_instances=models, model_total=total, offset=page.offset, max=page.max)


def get_job_instance_ui_model(
    ctx: BatchContext, job_name: str, params: Params = None
) -> UiModel[JobInstanceModel]:
    """Instances of *job_name*, each with all of its executions."""
    page = _page(ctx, params)
    engine = ctx.engine

    total = engine.count_job_instances(job_name)
    models = [
        JobInstanceModel.from_instance(
            instance, engine.get_job_executions_for_job_instance(job_name, instance.id)
        )
        for instance in engine.list_job_instances(job_name, page.offset, page.max)
    ]
    return UiModel(
        model_instances=models,
        model_total=total,
        offset=page.offset,
        max=page.max,
        context={"job_name": job_name},
    )


def get_job_execution_ui_model(
    ctx: BatchContext, job_name: str, job_instance_id: int, params: Params = None
) -> UiModel[JobExecutionModel]:
    """Executions of one job instance, sliced in memory."""
    page = _page(ctx, params)

    executions = ctx.engine.get_job_executions_for_job_instance(job_name, job_instance_id)
    return UiModel(
        model_instances=[JobExecutionModel.from_execution(e) for e in page.window(executions)],
        model_total=len(executions),
        offset=page.offset,
        max=page.max,
        context={"job_name": job_name, "job_instance_id": job_instance_id},
    )


def get_step_execution_ui_model(
    ctx: BatchContext, job_execution_id: int, params: Params = None
) -> UiModel[StepExecutionModel]:
    """Step executions of one job execution, sliced in memory."""
    page = _page(ctx, params)

    steps = ctx.engine.get_step_executions(job_execution_id)
    return UiModel(
        model_instances=[StepExecutionModel.from_step_execution(s) for s in page.window(steps)],
        model_total=len(steps),
        offset=page.offset,
        max=page.max,
        context={"job_execution_id": job_execution_id},
    )
