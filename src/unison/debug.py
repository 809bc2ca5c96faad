"""
Unison debug events.

Emits one orjson line per event on stdout when enabled, plus stage timing
helpers modelled on a request-scoped stopwatch.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any

import orjson


class DebugLog:
    """JSON-line event sink. Disabled instances are no-ops."""

    __slots__ = ("enabled",)

    def __init__(self, enabled: bool = False):
        self.enabled = enabled

    def event(self, event: str, **fields: Any) -> None:
        if not self.enabled:
            return
        print(orjson.dumps({"event": event, **fields}, default=str).decode())

    def warn(self, message: str) -> None:
        """Always printed, independent of `enabled`."""
        print(f"[unison] {message}")

    @contextmanager
    def stage(self, name: str, **fields: Any):
        start = time.perf_counter()
        try:
            yield
        finally:
            ms = round((time.perf_counter() - start) * 1000.0, 3)
            self.event("stage_timing", stage=name, ms=ms, **fields)
