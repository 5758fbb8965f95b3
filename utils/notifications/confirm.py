"""
Single-slot confirmation gate.

An initiator calls ``confirm`` and awaits the returned future; a UI surface
watches ``pending`` and calls ``respond`` with the user's answer. Only one
request can be pending. A new ``confirm`` replaces the old one, and the
replaced future is abandoned: it is never resolved, rejected or cancelled, so
whoever awaits it waits forever.

The shared ``confirmation_gate`` creates its futures on whichever event loop is
running when ``confirm`` is called. A future left pending when that loop
closes (for example at the end of ``asyncio.run``) cannot be awaited or
resolved from a later loop, so respond to or abandon it before the loop ends.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_CONFIRM_TITLE
from utils.reactive import ReactiveState


@dataclass(frozen=True)
class PendingConfirmation:
    title: str
    message: str
    future: "asyncio.Future[bool]"


class ConfirmationGate(ReactiveState):
    """One-element mailbox holding the outstanding confirmation."""

    _reactive_fields = ("pending",)

    def __init__(self):
        super().__init__()
        self.pending: Optional[PendingConfirmation] = None
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def confirm(self, message: str, title: str = DEFAULT_CONFIRM_TITLE) -> "asyncio.Future[bool]":
        """Open a confirmation request. Must be called from a running event loop."""
        future = asyncio.get_running_loop().create_future()
        if self.pending is not None:
            self._logger.debug(f"Confirmation '{self.pending.title}' preempted by '{title}'")
        self.pending = PendingConfirmation(title=title, message=message, future=future)
        return future

    def respond(self, result: bool) -> None:
        """Resolve the pending request with ``result``; no-op when nothing is pending."""
        pending = self.pending
        if pending is None:
            return
        if not pending.future.done():
            pending.future.set_result(result)
        self.pending = None


confirmation_gate = ConfirmationGate()
