"""
Host readiness gate for launches.

A process-wide "may new launches be admitted?" flag.  It starts *not
ready*, flips to ready once the host reports it has finished starting, and
flips back when the host begins shutting down.  The launch orchestrator
consults it first; the listing and status operations ignore it.

The flag lives in a :class:`Readiness` object injected through
:class:`~batchplane.ops.context.BatchContext` so tests can create as many
independent gates as they like.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from batchplane.core.logging import get_logger

logger = get_logger(__name__)


class Readiness:
    """Atomic boolean readiness flag backed by :class:`threading.Event`."""

    __slots__ = ("_event",)

    def __init__(self, ready: bool = False) -> None:
        self._event = threading.Event()
        if ready:
            self._event.set()

    def is_ready(self) -> bool:
        return self._event.is_set()

    def set_ready(self, ready: bool) -> None:
        if ready:
            self._event.set()
        else:
            self._event.clear()

    def __repr__(self) -> str:
        return f"Readiness(ready={self.is_ready()})"


@runtime_checkable
class LifecycleListener(Protocol):
    """Host lifecycle hooks (process started / process stopping)."""

    def on_started(self) -> None:
        ...

    def on_stopping(self) -> None:
        ...


class ReadinessListener:
    """Drives a :class:`Readiness` from host lifecycle events.

    Example:
        >>> readiness = Readiness()
        >>> listener = ReadinessListener(readiness)
        >>> listener.on_started()
        >>> readiness.is_ready()
        True
    """

    def __init__(self, readiness: Readiness) -> None:
        self.readiness = readiness

    def on_started(self) -> None:
        self.readiness.set_ready(True)
        logger.debug("batch_launches_enabled")

    def on_stopping(self) -> None:
        self.readiness.set_ready(False)
        logger.info("batch_launches_disabled", reason="host_stopping")
