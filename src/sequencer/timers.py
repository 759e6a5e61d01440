"""
Timers for the progression state machine.

Every timed transition (countdown ticks, feedback windows, the pause before
the next video) is a cancellable handle owned by the state that scheduled
it. Leaving the state cancels its handles, so no transition can fire against
a state that is gone.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerService(Protocol):
    """Schedules a callback after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimerService:
    """TimerService backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


@dataclass(eq=False)
class _Pending:
    handle: TimerHandle | None = None


class StateTimers:
    """Handles scheduled by the current state, cancelled together on exit."""

    def __init__(self, service: TimerService):
        self._service = service
        self._pending: list[_Pending] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        entry = _Pending()

        def fire() -> None:
            if entry in self._pending:
                self._pending.remove(entry)
                callback()

        self._pending.append(entry)
        entry.handle = self._service.call_later(delay, fire)

    def cancel_all(self) -> None:
        pending, self._pending = self._pending, []
        for entry in pending:
            if entry.handle is not None:
                entry.handle.cancel()
