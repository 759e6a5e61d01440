"""
Remediation session wiring.

CatalogAdapter -> subject/track filter -> LearningQueueBuilder ->
ProgressionStateMachine, with the availability gate, evaluation scheduler and
telemetry sink attached.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import date

from loguru import logger

from src.catalog.adapter import CatalogAdapter, load_catalog
from src.catalog.levels import Level
from src.sequencer.availability import AvailabilityGate
from src.sequencer.evaluation import EvaluationScheduler
from src.sequencer.queue_builder import LearningQueueBuilder
from src.sequencer.state_machine import ProgressionStateMachine, SequencerTiming
from src.sequencer.states import ProgressionState
from src.sequencer.timers import AsyncioTimerService, TimerService
from src.telemetry.notifier import NotificationSink


async def open_session(
    adapter: CatalogAdapter,
    level: str,
    subject: str | None = None,
    notifier: NotificationSink | None = None,
    timers: TimerService | None = None,
    timing: SequencerTiming | None = None,
    evaluation_divisor: int = 4,
    navigate: Callable[[str], None] | None = None,
    on_transition: Callable[[ProgressionState], None] | None = None,
    today: Callable[[], date] = date.today,
    rng: random.Random | None = None,
) -> ProgressionStateMachine:
    """
    Fetch the catalog, build the queue and start a progression state machine.

    Args:
        adapter: Catalog source
        level: Learner level label ("6e", "2nde C")
        subject: Subject filter (None keeps every subject)
        notifier: Telemetry sink
        timers: Timer service (asyncio event loop by default)
        timing: Transition durations
        evaluation_divisor: Evaluation draws max(1, pool // divisor) questions
        navigate: Navigation collaborator for "subject_complete"
        on_transition: State listener
        today: Clock for the calendar gate
        rng: Random source for shuffles and evaluation draws

    Returns:
        Started state machine (focused on the first entry, or NoContent)
    """
    rng = rng or random.Random()
    learner = Level.parse(level)
    catalog = await load_catalog(adapter, learner.label, subject)

    queue = LearningQueueBuilder().build(catalog, learner.stage)
    machine = ProgressionStateMachine(
        queue=queue,
        gate=AvailabilityGate(learner.stage, today=today),
        scheduler=EvaluationScheduler(queue, rng=rng, divisor=evaluation_divisor),
        timers=timers or AsyncioTimerService(),
        timing=timing,
        notifier=notifier,
        navigate=navigate,
        on_transition=on_transition,
        rng=rng,
    )
    machine.start()
    logger.info(f"Remediation session opened for {learner} / {subject}: {len(queue)} videos")
    return machine
