"""
Learning Sequencer.

Orders remediation videos so prerequisites come first, gates them by release
month, runs the video/quiz progression and schedules skill evaluations.

Components:
- PrerequisiteResolver: expands prerequisite skills into dependency videos
- LearningQueueBuilder: builds the ordered, deduplicated LearningQueue
- AvailabilityGate: calendar release policy
- EvaluationScheduler: cross-video skill evaluations
- ProgressionStateMachine: playback, quiz and evaluation states
- open_session: wires a session from a catalog source
"""
from src.sequencer.availability import Availability, AvailabilityGate, month_name
from src.sequencer.evaluation import EvaluationScheduler, EvaluationSession
from src.sequencer.queue_builder import LearningQueue, LearningQueueBuilder, build_learning_queue
from src.sequencer.quiz import Countdown, CountdownPhase, shuffle_questions
from src.sequencer.resolver import PrerequisiteResolver
from src.sequencer.session import open_session
from src.sequencer.state_machine import ProgressionStateMachine, SequencerTiming
from src.sequencer.states import (
    AnswerCorrect,
    AnswerWrong,
    EvaluationActive,
    Idle,
    Locked,
    NoContent,
    Phase,
    Playing,
    ProgressionState,
    QuizActive,
    SubjectComplete,
    VideoCompleted,
)
from src.sequencer.timers import AsyncioTimerService, StateTimers, TimerService

__all__ = [
    # Queue construction
    "PrerequisiteResolver",
    "LearningQueue",
    "LearningQueueBuilder",
    "build_learning_queue",
    # Gating
    "AvailabilityGate",
    "Availability",
    "month_name",
    # Evaluations
    "EvaluationScheduler",
    "EvaluationSession",
    # Progression
    "ProgressionStateMachine",
    "SequencerTiming",
    "open_session",
    "Countdown",
    "CountdownPhase",
    "shuffle_questions",
    # States
    "ProgressionState",
    "Phase",
    "NoContent",
    "Locked",
    "Idle",
    "Playing",
    "QuizActive",
    "EvaluationActive",
    "AnswerCorrect",
    "AnswerWrong",
    "VideoCompleted",
    "SubjectComplete",
    # Timers
    "TimerService",
    "AsyncioTimerService",
    "StateTimers",
]
