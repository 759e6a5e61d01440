"""
Quiz helpers: shuffling and the per-question countdown.

The countdown runs in ticks (one per `tick_seconds`). Reaching zero counts
as a wrong answer. Its display phase follows the remaining share of the
duration: normal above a quarter, warning above ten ticks, critical below.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from enum import Enum

from src.catalog.models import Question
from src.sequencer.timers import StateTimers

CRITICAL_TICKS = 10


def shuffle_questions(questions: Sequence[Question], rng: random.Random | None = None) -> tuple[Question, ...]:
    """Shuffle question order and each question's choice order."""
    rng = rng or random.Random()
    shuffled = list(questions)
    rng.shuffle(shuffled)
    return tuple(q.with_choices(rng.sample(q.choices, len(q.choices))) for q in shuffled)


class CountdownPhase(str, Enum):
    """Urgency of the remaining quiz time."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class Countdown:
    """Tick-based countdown for one quiz question."""

    def __init__(
        self,
        duration: int,
        timers: StateTimers,
        tick_seconds: float,
        on_expire: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
    ):
        self.duration = max(1, duration)
        self.remaining = self.duration
        self._timers = timers
        self._tick_seconds = tick_seconds
        self._on_expire = on_expire
        self._on_tick = on_tick

    @property
    def phase(self) -> CountdownPhase:
        if self.remaining > self.duration // 4:
            return CountdownPhase.NORMAL
        if self.remaining > CRITICAL_TICKS:
            return CountdownPhase.WARNING
        return CountdownPhase.CRITICAL

    @property
    def expired(self) -> bool:
        return self.remaining <= 0

    def start(self) -> None:
        self._timers.schedule(self._tick_seconds, self._tick)

    def _tick(self) -> None:
        self.remaining = max(0, self.remaining - 1)
        if self._on_tick:
            self._on_tick(self.remaining)
        if self.remaining == 0:
            self._on_expire()
        else:
            self._timers.schedule(self._tick_seconds, self._tick)
