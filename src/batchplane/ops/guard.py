"""
Concurrency guard.

Answers "does this job have an execution in flight right now?" for
non-concurrent launches and for the stop-all sweep.  The question goes to
the engine's direct query (``running_executions_for``), never to a cached
listing, so an execution launched a moment ago is visible.

The guard fails open: if the query itself raises, the failure is logged
and the job is reported as *not* running.

:class:`LaunchLocks` backs the optional serialized-launch mode
(``BATCHPLANE_SERIALIZE_LAUNCHES=true``), in which the guard check and the
launch run under one per-job lock.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from batchplane.core.logging import get_logger

if TYPE_CHECKING:
    from batchplane.ops.context import BatchContext

logger = get_logger(__name__)


def has_running_executions(ctx: BatchContext, job_name: str) -> bool:
    """Return ``True`` when *job_name* has an execution in STARTING or STARTED."""
    try:
        executions = ctx.engine.running_executions_for(job_name)
    except Exception:
        logger.info("running_executions_query_failed", job_name=job_name, exc_info=True)
        return False
    return len(executions) > 0


class LaunchLocks:
    """Lazily created per-job locks.

    Example:
        >>> locks = LaunchLocks()
        >>> with locks.hold("nightly"):
        ...     pass
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, job_name: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(job_name)
            if lock is None:
                lock = self._locks[job_name] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, job_name: str) -> Iterator[None]:
        with self.lock_for(job_name):
            yield

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
