"""
Progression State Machine.

Drives one learner through a LearningQueue:

    Locked/Idle -> Playing -> QuizActive -> AnswerCorrect -> ... -> VideoCompleted -> next
                                         -> AnswerWrong -> Idle (same video, rewatch)
    VideoCompleted may open an EvaluationActive for a finished skill; a missed
    evaluation question routes back to the video that introduced it.

All events run to completion on the event loop. Timed transitions belong to
the state that scheduled them and are cancelled when it is left; close()
cancels everything.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from src.catalog.models import VideoRecord
from src.errors import InvalidTransitionError, VideoLockedError
from src.sequencer.availability import AvailabilityGate
from src.sequencer.evaluation import EvaluationScheduler
from src.sequencer.queue_builder import LearningQueue
from src.sequencer.quiz import Countdown, CountdownPhase, shuffle_questions
from src.sequencer.states import (
    AnswerCorrect,
    AnswerWrong,
    EvaluationActive,
    Idle,
    Locked,
    NoContent,
    Playing,
    ProgressionState,
    QuizActive,
    SubjectComplete,
    VideoCompleted,
)
from src.sequencer.timers import StateTimers, TimerService
from src.telemetry.notifier import (
    NotificationSink,
    NullNotificationSink,
    RemediationNotice,
    VideoFinishedNotice,
)

SUBJECT_COMPLETE_EVENT = "subject_complete"


@dataclass(frozen=True)
class SequencerTiming:
    """Durations of the timed transitions, in seconds (countdown in ticks)."""

    question_duration: int = 600
    tick_seconds: float = 1.0
    correct_feedback: float = 1.2
    wrong_feedback: float = 1.8
    advance_delay: float = 1.0

    @classmethod
    def from_settings(cls, settings) -> SequencerTiming:
        return cls(
            question_duration=settings.quiz_question_duration,
            tick_seconds=settings.countdown_tick_seconds,
            correct_feedback=settings.correct_feedback_seconds,
            wrong_feedback=settings.wrong_feedback_seconds,
            advance_delay=settings.advance_delay_seconds,
        )


class ProgressionStateMachine:
    """
    Playback, quiz and evaluation state for the focused queue entry.

    Owns the queue cursor, the completed set and the seen-at-level set; the
    evaluation scheduler reads them within the same event that changed them.
    """

    def __init__(
        self,
        queue: LearningQueue,
        gate: AvailabilityGate,
        scheduler: EvaluationScheduler,
        timers: TimerService,
        timing: SequencerTiming | None = None,
        notifier: NotificationSink | None = None,
        navigate: Callable[[str], None] | None = None,
        on_transition: Callable[[ProgressionState], None] | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the state machine.

        Args:
            queue: Learning queue for the session
            gate: Calendar release policy
            scheduler: Skill evaluation scheduler
            timers: Timer service for countdowns and feedback windows
            timing: Transition durations (defaults match the web player)
            notifier: Telemetry sink
            navigate: Navigation collaborator, called with "subject_complete"
            on_transition: Listener called with every new state
            rng: Random source for shuffling
        """
        self.queue = queue
        self.gate = gate
        self.scheduler = scheduler
        self.timing = timing or SequencerTiming()
        self.notifier = notifier or NullNotificationSink()
        self.navigate = navigate
        self.on_transition = on_transition
        self.rng = rng or random.Random()

        self._timers = StateTimers(timers)
        self._state: ProgressionState = NoContent()
        self._cursor = 0
        self._completed: set[str] = set()
        self._seen_at_level: set[str] = set()
        self._countdown: Countdown | None = None
        self._notified_focus: tuple[str, str | None] | None = None
        self._closed = False

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def state(self) -> ProgressionState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def completed(self) -> frozenset[str]:
        return frozenset(self._completed)

    @property
    def current_video(self) -> VideoRecord | None:
        if 0 <= self._cursor < len(self.queue):
            return self.queue[self._cursor]
        return None

    @property
    def next_video(self) -> VideoRecord | None:
        if 0 <= self._cursor + 1 < len(self.queue):
            return self.queue[self._cursor + 1]
        return None

    @property
    def countdown_remaining(self) -> int | None:
        return self._countdown.remaining if self._countdown else None

    @property
    def countdown_phase(self) -> CountdownPhase | None:
        return self._countdown.phase if self._countdown else None

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Events
    # =========================================================================

    def start(self) -> ProgressionState:
        """Focus the first queue entry, or report that there is no content."""
        self._ensure_open("start")
        if not len(self.queue):
            logger.info("Learning queue is empty, no content available")
            self._transition(NoContent())
        else:
            self._focus(0)
        return self._state

    def select(self, video_id: str) -> ProgressionState:
        """Move focus to any queue entry (sidebar navigation)."""
        self._ensure_open("select")
        if not isinstance(self._state, (Idle, Locked, Playing, SubjectComplete)):
            raise InvalidTransitionError("select", self._state.phase.value)
        position = self.queue.index_of(video_id)
        if position is None:
            raise KeyError(f"Video {video_id} is not in the learning queue")
        self._focus(position)
        return self._state

    def refresh(self) -> ProgressionState:
        """Re-check the calendar gate for the focused video (e.g. a new month started)."""
        self._ensure_open("refresh")
        if isinstance(self._state, (Idle, Locked)):
            self._enter_focus_state(self._state.video)
        return self._state

    def play(self) -> ProgressionState:
        """Start playback of the focused video."""
        self._ensure_open("play")
        state = self._state
        if isinstance(state, Locked):
            raise VideoLockedError(state.video.id, state.unlock_month)
        if not isinstance(state, Idle):
            raise InvalidTransitionError("play", state.phase.value)
        if not self.gate.is_unlocked(state.video, self._completed):
            raise VideoLockedError(state.video.id, self.gate.unlock_hint(state.video))

        logger.debug(f"Playing {state.video.id} ({state.video.title})")
        self._transition(Playing(state.video, state.questions))
        return self._state

    def video_ended(self) -> ProgressionState:
        """The playback surface reports the end of the video."""
        self._ensure_open("video_ended")
        state = self._state
        if not isinstance(state, Playing):
            raise InvalidTransitionError("video_ended", state.phase.value)

        self._notify_video_finished()
        questions = state.questions
        if not questions:
            logger.debug(f"{state.video.id} has no quiz, completing on end")
            self._complete_video(state.video)
        else:
            self._enter_question(QuizActive(state.video, questions, 0))
        return self._state

    def answer(self, choice: str) -> ProgressionState:
        """Submit an answer to the current quiz or evaluation question."""
        self._ensure_open("answer")
        state = self._state
        if not isinstance(state, (QuizActive, EvaluationActive)):
            raise InvalidTransitionError("answer", state.phase.value)

        if state.question.is_correct(choice):
            self._transition(AnswerCorrect(state))
            self._timers.schedule(self.timing.correct_feedback, self._after_correct)
        else:
            self._answer_wrong(state, timed_out=False)
        return self._state

    def close(self) -> None:
        """Leave the session: cancel every pending timer."""
        self._timers.cancel_all()
        self._countdown = None
        self._closed = True
        logger.debug("Progression state machine closed")

    # =========================================================================
    # Transitions
    # =========================================================================

    def _ensure_open(self, event: str) -> None:
        if self._closed:
            raise InvalidTransitionError(event, "closed")

    def _transition(self, state: ProgressionState) -> None:
        self._timers.cancel_all()
        self._countdown = None
        self._state = state
        logger.debug(f"-> {state.phase.value}")
        if self.on_transition:
            self.on_transition(state)

    def _focus(self, position: int) -> None:
        self._cursor = position
        self._enter_focus_state(self.queue[position])
        self._notify_focus()

    def _enter_focus_state(self, video: VideoRecord) -> None:
        availability = self.gate.check(video, self._completed)
        if availability.unlocked:
            self._transition(Idle(video, shuffle_questions(video.questions, self.rng)))
        else:
            self._transition(Locked(video, availability.unlock_month))

    def _enter_question(self, state: QuizActive | EvaluationActive) -> None:
        self._transition(state)
        duration = state.question.duration or self.timing.question_duration
        self._countdown = Countdown(
            duration,
            self._timers,
            self.timing.tick_seconds,
            on_expire=self._on_countdown_expired,
        )
        self._countdown.start()

    def _on_countdown_expired(self) -> None:
        state = self._state
        if isinstance(state, (QuizActive, EvaluationActive)):
            logger.info(f"Time is up on {state.video.id}, counting as a wrong answer")
            self._answer_wrong(state, timed_out=True)

    def _answer_wrong(self, state: QuizActive | EvaluationActive, timed_out: bool) -> None:
        self._transition(AnswerWrong(state, timed_out=timed_out))
        self._timers.schedule(self.timing.wrong_feedback, self._after_wrong)

    def _after_correct(self) -> None:
        state = self._state
        if not isinstance(state, AnswerCorrect):
            return
        answered = state.answered

        if isinstance(answered, QuizActive):
            if answered.is_last:
                self._complete_video(answered.video)
            else:
                self._enter_question(QuizActive(answered.video, answered.questions, answered.index + 1))
            return

        session = answered.session
        if session.is_last:
            self.scheduler.mark_passed(session.skill)
            logger.info(f"Evaluation passed for '{session.skill}'")
            self._advance()
        else:
            self._enter_question(EvaluationActive(answered.video, session.advanced()))

    def _after_wrong(self) -> None:
        state = self._state
        if not isinstance(state, AnswerWrong):
            return
        answered = state.answered

        if isinstance(answered, QuizActive):
            # Quiz progress is dropped; the same video must be watched again.
            self._transition(Idle(answered.video, shuffle_questions(answered.video.questions, self.rng)))
            return

        missed = answered.session.current
        source = answered.session.source_of(missed.id)
        position = self.queue.index_of(source.id) if source else None
        if position is None:
            logger.warning(f"No source video for missed question {missed.id}, moving on")
            self._advance()
            return
        logger.info(f"Evaluation of '{answered.session.skill}' failed, back to {source.id}")
        self._focus(position)

    def _complete_video(self, video: VideoRecord) -> None:
        self._completed.add(video.id)
        logger.info(f"Completed {video.id} ({video.title})")

        if self.queue.is_native(video):
            self._seen_at_level.add(video.id)
            session = self.scheduler.schedule(video, self._completed)
            if session is not None:
                self._enter_question(EvaluationActive(video, session))
                return

        self._transition(VideoCompleted(video))
        self._timers.schedule(self.timing.advance_delay, self._advance)

    def _advance(self) -> None:
        position = self._cursor + 1
        while position < len(self.queue):
            candidate = self.queue[position]
            if not (self.queue.is_native(candidate) and candidate.id in self._seen_at_level):
                break
            position += 1

        if position >= len(self.queue):
            logger.info("Learning queue finished")
            self._transition(SubjectComplete())
            if self.navigate:
                self.navigate(SUBJECT_COMPLETE_EVENT)
            return
        self._focus(position)

    # =========================================================================
    # Telemetry
    # =========================================================================

    def _notify_focus(self) -> None:
        current = self.current_video
        if current is None:
            return
        following = self.next_video
        focus = (current.title, following.title if following else None)
        if focus == self._notified_focus:
            return
        self._notified_focus = focus

        try:
            self.notifier.notify_remediation(RemediationNotice(
                level=self.queue.target_level,
                video_title=focus[0],
                next_video_title=focus[1],
                start_month=current.first_release_month or "",
            ))
        except Exception as e:
            logger.error(f"Error sending remediation notification: {e}")
        self._notify_video_finished()

    def _notify_video_finished(self) -> None:
        current = self.current_video
        if current is None:
            return
        following = self.next_video
        try:
            self.notifier.notify_video_finished(VideoFinishedNotice(
                video_title=current.title,
                next_video_title=following.title if following else None,
            ))
        except Exception as e:
            logger.error(f"Error sending videofinish notification: {e}")
