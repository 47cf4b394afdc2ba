"""Job engine contract, domain models, launchers and the in-memory engine.

MODULE MAP
──────────
  1. models.py     ─ BatchStatus, ExitStatus, JobParameters, Job, JobInstance,
                     JobExecution, StepExecution
  2. protocol.py   ─ JobEngine / JobLauncher protocols (what the ops layer consumes)
  3. launchers.py  ─ SyncJobLauncher, ThreadPoolJobLauncher, LauncherRegistry
  4. memory.py     ─ InMemoryJobEngine (testing, development)
"""

from .launchers import (
    JOB_LAUNCHER,
    SYNC_JOB_LAUNCHER,
    LauncherRegistry,
    SyncJobLauncher,
    ThreadPoolJobLauncher,
)
from .memory import InMemoryJobEngine
from .models import (
    ACTIVE_STATUSES,
    RUNNING_STATUSES,
    UNSUCCESSFUL_STATUSES,
    BatchStatus,
    ExitStatus,
    Job,
    JobExecution,
    JobInstance,
    JobParameter,
    JobParameters,
    Step,
    StepExecution,
)
from .protocol import JobEngine, JobLauncher

__all__ = [
    "ACTIVE_STATUSES",
    "BatchStatus",
    "ExitStatus",
    "InMemoryJobEngine",
    "JOB_LAUNCHER",
    "Job",
    "JobEngine",
    "JobExecution",
    "JobInstance",
    "JobLauncher",
    "JobParameter",
    "JobParameters",
    "LauncherRegistry",
    "RUNNING_STATUSES",
    "SYNC_JOB_LAUNCHER",
    "Step",
    "StepExecution",
    "SyncJobLauncher",
    "ThreadPoolJobLauncher",
    "UNSUCCESSFUL_STATUSES",
]
