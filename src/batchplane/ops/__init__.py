"""
Operations layer: the batch control plane.

The ops package decides whether jobs may launch, launches them, stops them
and reports on them, always through the :class:`~batchplane.engine.protocol.JobEngine`
carried by the context:

- All functions accept ``BatchContext`` as first argument
- Launch refusals are returned as ``LaunchResult`` (never raised)
- Listing functions return ``UiModel[T]`` pages with the unpaginated total
- All functions are transport-agnostic (no HTTP, no CLI knowledge)

Usage::

    from batchplane.engine import InMemoryJobEngine, LauncherRegistry
    from batchplane.ops import BatchContext, Readiness
    from batchplane.ops.launch import launch

    engine = InMemoryJobEngine([nightly_job])
    ctx = BatchContext(
        engine=engine,
        launchers=LauncherRegistry.with_defaults(engine),
        readiness=Readiness(ready=True),
    )
    result = launch(ctx, "nightly")
    assert result.success
"""

from batchplane.ops.context import BatchContext
from batchplane.ops.guard import LaunchLocks, has_running_executions
from batchplane.ops.launch import default_job_parameters, launch, map_to_job_parameters
from batchplane.ops.lookups import job_execution, job_instance, previous_step_executions, step_execution
from batchplane.ops.readiness import LifecycleListener, Readiness, ReadinessListener
from batchplane.ops.requests import PageRequest
from batchplane.ops.responses import (
    FailurePriority,
    JobExecutionModel,
    JobInstanceModel,
    JobModel,
    LaunchResult,
    StepExecutionModel,
    StopSummary,
    UiModel,
)
from batchplane.ops.status import job_status
from batchplane.ops.stop import restart, stop, stop_all_job_executions
from batchplane.ops.ui import (
    get_job_execution_ui_model,
    get_job_instance_ui_model,
    get_job_ui_model,
    get_step_execution_ui_model,
)

__all__ = [
    "BatchContext",
    "FailurePriority",
    "JobExecutionModel",
    "JobInstanceModel",
    "JobModel",
    "LaunchLocks",
    "LaunchResult",
    "LifecycleListener",
    "PageRequest",
    "Readiness",
    "ReadinessListener",
    "StepExecutionModel",
    "StopSummary",
    "UiModel",
    "default_job_parameters",
    "get_job_execution_ui_model",
    "get_job_instance_ui_model",
    "get_job_ui_model",
    "get_step_execution_ui_model",
    "has_running_executions",
    "job_execution",
    "job_instance",
    "job_status",
    "launch",
    "map_to_job_parameters",
    "previous_step_executions",
    "restart",
    "stop",
    "stop_all_job_executions",
    "step_execution",
]
