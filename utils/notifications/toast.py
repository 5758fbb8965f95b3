"""
Ephemeral toast notifications.

A single queue lives for the whole process. Entries expire on the running
event loop after their duration; a duration of 0 keeps them until removed.
The queue has no length cap.

Expiry timers belong to the loop that was running when the toast was pushed.
If that loop closes first (for example when ``asyncio.run`` returns), those
toasts never expire and must be removed by hand; toasts pushed from a later
loop are timed on that loop.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from utils.constants import (
    DEFAULT_ERROR_TOAST_DURATION_MS, DEFAULT_TOAST_DURATION_MS, TOAST_SEVERITIES,
)
from utils.reactive import ReactiveState

# Shared by every queue so ids stay unique for the process lifetime
_toast_ids = itertools.count(1)


@dataclass(frozen=True)
class ToastEntry:
    """A single on-screen notification."""
    id: int
    message: str
    severity: str = "info"


class ToastQueue(ReactiveState):
    """Ordered, observable queue of toasts with auto-expiry."""

    _reactive_fields = ("toasts",)

    def __init__(self):
        super().__init__()
        self.toasts: Tuple[ToastEntry, ...] = ()
        self._timers: Dict[int, asyncio.TimerHandle] = {}
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def push(self, message: str, severity: str = "info",
             duration_ms: int = DEFAULT_TOAST_DURATION_MS) -> int:
        """
        Append a toast and return its id.

        Args:
            message: Text to show
            severity: One of ``success``, ``error``, ``info``
            duration_ms: Auto-removal delay; 0 keeps the toast until ``remove``

        Raises:
            ValueError: For an unknown severity
            RuntimeError: If expiry is requested outside a running event loop
        """
        if severity not in TOAST_SEVERITIES:
            raise ValueError(
                f"Invalid toast severity '{severity}'. "
                f"Must be one of: {', '.join(sorted(TOAST_SEVERITIES))}"
            )
        loop = asyncio.get_running_loop() if duration_ms and duration_ms > 0 else None

        entry = ToastEntry(id=next(_toast_ids), message=message, severity=severity)
        self.toasts = self.toasts + (entry,)
        if loop is not None:
            self._timers[entry.id] = loop.call_later(duration_ms / 1000, self._expire, entry.id)
        self._logger.debug(f"Toast {entry.id} ({severity}): {message}")
        return entry.id

    def remove(self, toast_id: int) -> None:
        """Drop a toast. Unknown or already-removed ids are ignored."""
        timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()
        if any(t.id == toast_id for t in self.toasts):
            self.toasts = tuple(t for t in self.toasts if t.id != toast_id)

    def _expire(self, toast_id: int) -> None:
        self._timers.pop(toast_id, None)
        self.remove(toast_id)

    def success(self, message: str, duration_ms: int = DEFAULT_TOAST_DURATION_MS) -> int:
        return self.push(message, "success", duration_ms)

    def error(self, message: str, duration_ms: Optional[int] = None) -> int:
        if duration_ms is None:
            duration_ms = DEFAULT_ERROR_TOAST_DURATION_MS
        return self.push(message, "error", duration_ms)

    def info(self, message: str, duration_ms: int = DEFAULT_TOAST_DURATION_MS) -> int:
        return self.push(message, "info", duration_ms)

    def __len__(self) -> int:
        return len(self.toasts)

    def __contains__(self, toast_id: int) -> bool:
        return any(t.id == toast_id for t in self.toasts)


toast_queue = ToastQueue()
