"""
Request-scoped context for control-plane operations.

Every operation function receives a :class:`BatchContext` as its first
argument.  The context carries the job engine, the launcher registry, the
readiness gate and the settings, so operations hold no module-level state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from batchplane.core.settings import BatchPlaneSettings, get_settings
from batchplane.engine.launchers import LauncherRegistry
from batchplane.engine.protocol import JobEngine
from batchplane.ops.guard import LaunchLocks
from batchplane.ops.readiness import Readiness


@dataclass
class BatchContext:
    """Context passed to every operation function.

    Attributes:
        engine: Object satisfying :class:`batchplane.engine.protocol.JobEngine`.
        launchers: Name → launcher lookup used by ``launch``.
        readiness: Host readiness gate (starts not ready).
        settings: Control-plane settings; defaults to the cached env settings.
        launch_locks: Per-job locks for serialized launches.
        request_id: Unique ID for this invocation (auto-generated).
        caller: Origin of the request, e.g. ``"api"``, ``"scheduler"``, ``"sdk"``.
        metadata: Arbitrary key/value pairs bound to the log context of
            ``launch`` and the stop sweep (see :meth:`log_fields`).
    """

    engine: JobEngine
    launchers: LauncherRegistry
    readiness: Readiness = field(default_factory=Readiness)
    settings: BatchPlaneSettings = field(default_factory=get_settings)
    launch_locks: LaunchLocks = field(default_factory=LaunchLocks)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    metadata: dict[str, Any] = field(default_factory=dict)

    def log_fields(self, **extra: Any) -> dict[str, Any]:
        """Fields to bind on the log context for one operation.

        ``request_id`` and ``caller`` win over same-named metadata keys, and
        *extra* wins over both.
        """
        return {**self.metadata, "request_id": self.request_id, "caller": self.caller, **extra}
