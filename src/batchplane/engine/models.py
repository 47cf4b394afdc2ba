"""Job engine domain models.

Defines the records a job engine reports and the control plane reads:
- Job / Step: a registered job definition
- JobParameters: typed launch parameters identifying a JobInstance
- JobInstance: one distinct parameterization of a job
- JobExecution: one run attempt of a JobInstance
- StepExecution: one step run inside a JobExecution

The control plane never mutates these; engines update JobExecution and
StepExecution in place as a run progresses.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class BatchStatus(str, Enum):
    """Status of a job or step execution.

    Running statuses are STARTING, STARTED and STOPPING. FAILED and
    ABANDONED are unsuccessful; STOPPED is neither running nor unsuccessful.

    Lifecycle::

        UNSTARTED → STARTING → STARTED → COMPLETED | FAILED
                                  │
                                  └→ STOPPING → STOPPED
        FAILED | STOPPED  → (restart creates a new execution)
        STOPPED | FAILED  → ABANDONED (terminal)
    """

    UNSTARTED = "unstarted"
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"

    def is_running(self) -> bool:
        """True for STARTING, STARTED and STOPPING."""
        return self in RUNNING_STATUSES

    def is_unsuccessful(self) -> bool:
        """True for FAILED and ABANDONED."""
        return self in UNSUCCESSFUL_STATUSES


RUNNING_STATUSES: frozenset[BatchStatus] = frozenset({
    BatchStatus.STARTING,
    BatchStatus.STARTED,
    BatchStatus.STOPPING,
})

# What the concurrency guard treats as "already running".
ACTIVE_STATUSES: frozenset[BatchStatus] = frozenset({
    BatchStatus.STARTING,
    BatchStatus.STARTED,
})

UNSUCCESSFUL_STATUSES: frozenset[BatchStatus] = frozenset({
    BatchStatus.FAILED,
    BatchStatus.ABANDONED,
})


@dataclass(frozen=True, slots=True)
class ExitStatus:
    """Exit code plus free-form description of a finished execution.

    Common values are available as class attributes (``ExitStatus.COMPLETED``,
    ``ExitStatus.FAILED``, ...).
    """

    exit_code: str = "UNKNOWN"
    exit_description: str = ""

    def and_description(self, description: str) -> ExitStatus:
        """Return a copy with *description* appended."""
        if not description:
            return self
        if self.exit_description:
            description = f"; {description}"
        return ExitStatus(self.exit_code, self.exit_description + description)

    def to_dict(self) -> dict[str, str]:
        return {"exit_code": self.exit_code, "exit_description": self.exit_description}


ExitStatus.UNKNOWN = ExitStatus("UNKNOWN")
ExitStatus.EXECUTING = ExitStatus("EXECUTING")
ExitStatus.COMPLETED = ExitStatus("COMPLETED")
ExitStatus.NOOP = ExitStatus("NOOP")
ExitStatus.FAILED = ExitStatus("FAILED")
ExitStatus.STOPPED = ExitStatus("STOPPED")


# =============================================================================
# PARAMETERS
# =============================================================================


@dataclass(frozen=True, slots=True)
class JobParameter:
    """A typed launch parameter.

    Only identifying parameters take part in the JobInstance identity.
    """

    value: str | int | float | datetime
    identifying: bool = True

    @property
    def type(self) -> str:
        if isinstance(self.value, datetime):
            return "DATE"
        if isinstance(self.value, int):
            return "LONG"
        if isinstance(self.value, float):
            return "DOUBLE"
        return "STRING"


class JobParameters(Mapping[str, JobParameter]):
    """Immutable name → :class:`JobParameter` mapping.

    Example:
        >>> params = JobParameters.from_mapping({"date": "2025-01-09", "run": 3})
        >>> params["run"].type
        'LONG'
    """

    __slots__ = ("_parameters",)

    def __init__(self, parameters: Mapping[str, JobParameter] | None = None):
        self._parameters: dict[str, JobParameter] = dict(parameters or {})

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> JobParameters:
        """Wrap raw values as identifying parameters; JobParameter values pass through."""
        return cls({
            key: value if isinstance(value, JobParameter) else JobParameter(value)
            for key, value in values.items()
        })

    def __getitem__(self, key: str) -> JobParameter:
        return self._parameters[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._parameters.items(), key=lambda kv: kv[0])))

    def __repr__(self) -> str:
        return f"JobParameters({self.to_dict()!r})"

    def identity(self) -> tuple[tuple[str, Any], ...]:
        """Hashable key of the identifying parameters (instance dedup)."""
        return tuple(
            (key, param.value)
            for key, param in sorted(self._parameters.items(), key=lambda kv: kv[0])
            if param.identifying
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain name → value dict."""
        return {key: param.value for key, param in self._parameters.items()}


# =============================================================================
# JOB DEFINITIONS
# =============================================================================


StepHandler = Callable[["StepExecution", JobParameters], "ExitStatus | None"]


@dataclass(frozen=True, slots=True)
class Step:
    """A named unit of work inside a job.

    The handler receives the live :class:`StepExecution` (to bump counters)
    and the launch parameters. Returning an :class:`ExitStatus` overrides
    the default COMPLETED exit status; raising fails the step and the job.
    """

    name: str
    handler: StepHandler


@dataclass(frozen=True)
class Job:
    """A job definition registered with an engine."""

    name: str
    steps: Sequence[Step] = ()
    restartable: bool = True
    incrementer: Callable[[JobParameters | None], JobParameters] | None = None
    description: str | None = None

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]


# =============================================================================
# INSTANCES AND EXECUTIONS
# =============================================================================


@dataclass(frozen=True)
class JobInstance:
    """One distinct parameterization of a job. Never mutated."""

    id: int
    job_name: str
    parameters: JobParameters = field(default_factory=JobParameters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "job_name": self.job_name,
            "parameters": self.parameters.to_dict(),
        }


def _duration(start: datetime | None, end: datetime | None) -> timedelta | None:
    if start is None:
        return None
    return (end or utcnow()) - start


@dataclass
class StepExecution:
    """A single step run inside a job execution."""

    id: int
    step_name: str
    job_execution_id: int
    status: BatchStatus = BatchStatus.STARTING
    exit_status: ExitStatus = ExitStatus.EXECUTING
    start_time: datetime | None = None
    end_time: datetime | None = None
    read_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    rollback_count: int = 0
    read_skip_count: int = 0
    write_skip_count: int = 0
    process_skip_count: int = 0

    @property
    def skip_count(self) -> int:
        return self.read_skip_count + self.write_skip_count + self.process_skip_count

    @property
    def duration(self) -> timedelta | None:
        """Elapsed time; measured against now while the step is running."""
        return _duration(self.start_time, self.end_time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "step_name": self.step_name,
            "job_execution_id": self.job_execution_id,
            "status": self.status.value,
            "exit_status": self.exit_status.to_dict(),
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "read_count": self.read_count,
            "write_count": self.write_count,
            "commit_count": self.commit_count,
            "rollback_count": self.rollback_count,
            "read_skip_count": self.read_skip_count,
            "write_skip_count": self.write_skip_count,
            "process_skip_count": self.process_skip_count,
        }


@dataclass
class JobExecution:
    """One run attempt of a job instance.

    ``end_time`` stays ``None`` while the execution is running.

    Example:
        >>> instance = JobInstance(1, "nightly")
        >>> execution = JobExecution(10, instance)
        >>> execution.status
        <BatchStatus.STARTING: 'starting'>
        >>> execution.job_id
        1
    """

    id: int
    job_instance: JobInstance
    status: BatchStatus = BatchStatus.STARTING
    exit_status: ExitStatus = ExitStatus.UNKNOWN
    create_time: datetime = field(default_factory=utcnow)
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None
    step_executions: list[StepExecution] = field(default_factory=list)
    failure_exceptions: list[str] = field(default_factory=list)

    @property
    def job_id(self) -> int:
        """Id of the owning job instance."""
        return self.job_instance.id

    @property
    def job_name(self) -> str:
        return self.job_instance.job_name

    @property
    def parameters(self) -> JobParameters:
        return self.job_instance.parameters

    @property
    def duration(self) -> timedelta | None:
        return _duration(self.start_time, self.end_time)

    def is_running(self) -> bool:
        return self.status.is_running()

    def add_step_executions(self, step_executions: Sequence[StepExecution]) -> None:
        self.step_executions.extend(step_executions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "job_id": self.job_id,
            "job_name": self.job_name,
            "parameters": self.parameters.to_dict(),
            "status": self.status.value,
            "exit_status": self.exit_status.to_dict(),
            "create_time": self.create_time.isoformat() if self.create_time else None,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "step_executions": [s.to_dict() for s in self.step_executions],
            "failure_exceptions": list(self.failure_exceptions),
        }
