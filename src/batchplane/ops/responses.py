"""
Typed response objects for operations.

Each dataclass represents the *output* contract of an operation function.
They are serialisation-friendly (no engine internals leak out) and expose
``to_dict()`` for JSON transports.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

from batchplane.engine.models import (
    BatchStatus,
    ExitStatus,
    JobExecution,
    JobInstance,
    StepExecution,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _seconds(value: timedelta | None) -> float | None:
    return value.total_seconds() if value is not None else None


# ------------------------------------------------------------------ #
# Launch
# ------------------------------------------------------------------ #


class FailurePriority(str, Enum):
    """Operational severity of a refused launch.

    ``LOW`` is a benign, expected refusal (not ready, already running);
    ``HIGH`` points at a misconfiguration or a duplicate launch.
    """

    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class LaunchResult:
    """Outcome of :func:`batchplane.ops.launch.launch`.

    ``failure_priority`` is set only on failure; ``job_id`` and
    ``job_execution_id`` only on success.
    """

    success: bool
    message: str
    failure_priority: FailurePriority | None = None
    job_id: int | None = None
    job_execution_id: int | None = None

    @classmethod
    def launched(cls, job_name: str, execution: JobExecution) -> LaunchResult:
        return cls(
            success=True,
            message=f"Batch job {job_name} launched",
            job_id=execution.job_id,
            job_execution_id=execution.id,
        )

    @classmethod
    def failed(cls, message: str, priority: FailurePriority) -> LaunchResult:
        return cls(success=False, message=message, failure_priority=priority)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.failure_priority is not None:
            d["failure_priority"] = self.failure_priority.value
        if self.job_id is not None:
            d["job_id"] = self.job_id
        if self.job_execution_id is not None:
            d["job_execution_id"] = self.job_execution_id
        return d


# ------------------------------------------------------------------ #
# Stop
# ------------------------------------------------------------------ #


@dataclass
class StopSummary:
    """Outcome of a stop-all sweep.

    Attributes:
        attempted: Execution ids a stop was requested for, in order.
        stopped: Ids the engine accepted the stop for.
        failed: Id → error message for stops the engine refused.
    """

    attempted: list[int] = field(default_factory=list)
    stopped: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def all_stopped(self) -> bool:
        return not self.failed

    def merge(self, other: StopSummary) -> None:
        self.attempted.extend(other.attempted)
        self.stopped.extend(other.stopped)
        self.failed.update(other.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": list(self.attempted),
            "stopped": list(self.stopped),
            "failed": {str(k): v for k, v in self.failed.items()},
        }


# ------------------------------------------------------------------ #
# UI models
# ------------------------------------------------------------------ #


class _Serializable(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class JobModel:
    """One job name enriched for the job listing."""

    name: str
    execution_count: int = 0
    launchable: bool = False
    incrementable: bool = False

    @property
    def has_executions(self) -> bool:
        return self.execution_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "execution_count": self.execution_count,
            "has_executions": self.has_executions,
            "launchable": self.launchable,
            "incrementable": self.incrementable,
        }


@dataclass(frozen=True, slots=True)
class JobExecutionModel:
    """Flattened view of a :class:`JobExecution`."""

    id: int
    job_instance_id: int
    job_name: str
    status: BatchStatus
    exit_status: ExitStatus
    create_time: datetime | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: timedelta | None = None
    step_count: int = 0

    @classmethod
    def from_execution(cls, execution: JobExecution) -> JobExecutionModel:
        return cls(
            id=execution.id,
            job_instance_id=execution.job_id,
            job_name=execution.job_name,
            status=execution.status,
            exit_status=execution.exit_status,
            create_time=execution.create_time,
            start_time=execution.start_time,
            end_time=execution.end_time,
            duration=execution.duration,
            step_count=len(execution.step_executions),
        )

    @property
    def running(self) -> bool:
        return self.status.is_running()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "job_instance_id": self.job_instance_id,
            "job_name": self.job_name,
            "status": self.status.value,
            "exit_status": self.exit_status.to_dict(),
            "create_time": _iso(self.create_time),
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration_seconds": _seconds(self.duration),
            "step_count": self.step_count,
        }


@dataclass(frozen=True, slots=True)
class JobInstanceModel:
    """A job instance plus every execution it has had."""

    id: int
    job_name: str
    parameters: dict[str, Any] = field(default_factory=dict)
    executions: list[JobExecutionModel] = field(default_factory=list)

    @classmethod
    def from_instance(
        cls, instance: JobInstance, executions: Sequence[JobExecution]
    ) -> JobInstanceModel:
        return cls(
            id=instance.id,
            job_name=instance.job_name,
            parameters=instance.parameters.to_dict(),
            executions=[JobExecutionModel.from_execution(e) for e in executions],
        )

    @property
    def last_execution(self) -> JobExecutionModel | None:
        return max(self.executions, key=lambda e: e.id, default=None)

    def to_dict(self) -> dict[str, Any]:
        last = self.last_execution
        return {
            "id": self.id,
            "job_name": self.job_name,
            "parameters": {k: v.isoformat() if isinstance(v, datetime) else v
                           for k, v in self.parameters.items()},
            "execution_count": len(self.executions),
            "last_status": last.status.value if last else None,
            "executions": [e.to_dict() for e in self.executions],
        }


@dataclass(frozen=True, slots=True)
class StepExecutionModel:
    """Flattened view of a :class:`StepExecution` with every counter."""

    id: int
    step_name: str
    job_execution_id: int
    status: BatchStatus
    exit_status: ExitStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: timedelta | None = None
    read_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    rollback_count: int = 0
    read_skip_count: int = 0
    write_skip_count: int = 0
    process_skip_count: int = 0

    @classmethod
    def from_step_execution(cls, step: StepExecution) -> StepExecutionModel:
        return cls(
            id=step.id,
            step_name=step.step_name,
            job_execution_id=step.job_execution_id,
            status=step.status,
            exit_status=step.exit_status,
            start_time=step.start_time,
            end_time=step.end_time,
            duration=step.duration,
            read_count=step.read_count,
            write_count=step.write_count,
            commit_count=step.commit_count,
            rollback_count=step.rollback_count,
            read_skip_count=step.read_skip_count,
            write_skip_count=step.write_skip_count,
            process_skip_count=step.process_skip_count,
        )

    @property
    def skip_count(self) -> int:
        return self.read_skip_count + self.write_skip_count + self.process_skip_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "step_name": self.step_name,
            "job_execution_id": self.job_execution_id,
            "status": self.status.value,
            "exit_status": self.exit_status.to_dict(),
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration_seconds": _seconds(self.duration),
            "read_count": self.read_count,
            "write_count": self.write_count,
            "commit_count": self.commit_count,
            "rollback_count": self.rollback_count,
            "read_skip_count": self.read_skip_count,
            "write_skip_count": self.write_skip_count,
            "process_skip_count": self.process_skip_count,
            "skip_count": self.skip_count,
        }


T = TypeVar("T", bound=_Serializable)


@dataclass
class UiModel(Generic[T]):
    """One page of UI items plus the unpaginated total.

    Attributes:
        model_instances: Items in ``[offset, offset + max)``.
        model_total: Count over the full, unpaginated result set.
        offset: Requested offset, echoed back.
        max: Requested page size, echoed back.
        context: Identifying query context (``job_name``,
            ``job_instance_id``, ``job_execution_id``).
    """

    model_instances: list[T] = field(default_factory=list)
    model_total: int = 0
    offset: int = 0
    max: int = 10
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def has_more(self) -> bool:
        return (self.offset + self.max) < self.model_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "model_instances": [item.to_dict() for item in self.model_instances],
            "model_total": self.model_total,
            "offset": self.offset,
            "max": self.max,
            "has_more": self.has_more,
            **self.context,
        }
