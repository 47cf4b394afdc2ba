"""
Typed request objects for operations.

Transport layers hand the paginated getters a loose ``{"offset": ..,
"max": ..}`` mapping (often straight from query parameters, so values may
be strings).  :meth:`PageRequest.from_params` turns that into a validated
window.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from batchplane.core.settings import BatchPlaneSettings, get_settings

T = TypeVar("T")


def _coerce_int(value: Any, default: int, *, minimum: int) -> int:
    """Parse *value* as an int; ``None``, junk and values below *minimum* give *default*."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(value.strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        return default
    if number < minimum:
        return default
    return number


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Offset/max window for the paginated model getters.

    Attributes:
        offset: Index of the first item (``>= 0``).
        max: Page size (``> 0``).
    """

    offset: int = 0
    max: int = 10

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any] | None = None,
        settings: BatchPlaneSettings | None = None,
    ) -> PageRequest:
        """Build a window from a loose params mapping.

        Missing or invalid values fall back to ``offset=0`` and
        ``settings.default_page_size``; ``max`` is capped at
        ``settings.max_page_size``.
        """
        settings = settings or get_settings()
        params = params or {}
        offset = _coerce_int(params.get("offset"), 0, minimum=0)
        size = _coerce_int(params.get("max"), settings.default_page_size, minimum=1)
        return cls(offset=offset, max=min(size, settings.max_page_size))

    @property
    def end(self) -> int:
        return self.offset + self.max

    def window(self, items: Sequence[T]) -> list[T]:
        """Slice ``[offset, offset + max)`` out of an in-memory list."""
        return list(items[self.offset:self.end])
