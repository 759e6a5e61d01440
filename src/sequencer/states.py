"""
Progression states.

The state machine holds exactly one of these at a time. Each carries the data
its phase needs, so combinations such as "playing while a quiz is open"
cannot be expressed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from src.catalog.models import Question, VideoRecord
from src.sequencer.evaluation import EvaluationSession


class Phase(str, Enum):
    NO_CONTENT = "no_content"
    LOCKED = "locked"
    IDLE = "idle"
    PLAYING = "playing"
    QUIZ_ACTIVE = "quiz_active"
    ANSWER_CORRECT = "answer_correct"
    ANSWER_WRONG = "answer_wrong"
    EVALUATION_ACTIVE = "evaluation_active"
    VIDEO_COMPLETED = "video_completed"
    SUBJECT_COMPLETE = "subject_complete"


@dataclass(frozen=True)
class NoContent:
    """The queue is empty; nothing can be played."""

    phase: ClassVar[Phase] = Phase.NO_CONTENT


@dataclass(frozen=True)
class Locked:
    """Focused video is calendar-gated."""

    video: VideoRecord
    unlock_month: str | None
    phase: ClassVar[Phase] = Phase.LOCKED


@dataclass(frozen=True)
class Idle:
    """Focused video ready to start; `questions` is the quiz shuffled for this viewing."""

    video: VideoRecord
    questions: tuple[Question, ...]
    phase: ClassVar[Phase] = Phase.IDLE


@dataclass(frozen=True)
class Playing:
    video: VideoRecord
    questions: tuple[Question, ...]
    phase: ClassVar[Phase] = Phase.PLAYING


@dataclass(frozen=True)
class QuizActive:
    video: VideoRecord
    questions: tuple[Question, ...]
    index: int = 0
    phase: ClassVar[Phase] = Phase.QUIZ_ACTIVE

    @property
    def question(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index >= len(self.questions) - 1


@dataclass(frozen=True)
class EvaluationActive:
    """Cross-video evaluation of a skill; `video` is the one whose completion triggered it."""

    video: VideoRecord
    session: EvaluationSession
    phase: ClassVar[Phase] = Phase.EVALUATION_ACTIVE

    @property
    def question(self) -> Question:
        return self.session.current


@dataclass(frozen=True)
class AnswerCorrect:
    """Feedback window after a correct answer; `answered` is the state to resume from."""

    answered: QuizActive | EvaluationActive
    phase: ClassVar[Phase] = Phase.ANSWER_CORRECT

    @property
    def video(self) -> VideoRecord:
        return self.answered.video


@dataclass(frozen=True)
class AnswerWrong:
    """Feedback window after a wrong answer or an expired countdown."""

    answered: QuizActive | EvaluationActive
    timed_out: bool = False
    phase: ClassVar[Phase] = Phase.ANSWER_WRONG

    @property
    def video(self) -> VideoRecord:
        return self.answered.video


@dataclass(frozen=True)
class VideoCompleted:
    """Quiz passed; the next video is focused after a short pause."""

    video: VideoRecord
    phase: ClassVar[Phase] = Phase.VIDEO_COMPLETED


@dataclass(frozen=True)
class SubjectComplete:
    phase: ClassVar[Phase] = Phase.SUBJECT_COMPLETE


ProgressionState = Union[
    NoContent,
    Locked,
    Idle,
    Playing,
    QuizActive,
    EvaluationActive,
    AnswerCorrect,
    AnswerWrong,
    VideoCompleted,
    SubjectComplete,
]
