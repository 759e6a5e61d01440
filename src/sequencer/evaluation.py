"""
Evaluation Scheduler.

Once every learner-level video teaching a skill (notion) is completed, the
learner is given a cross-video evaluation for that skill: a random quarter of
the pooled questions (at least one), choices shuffled. A missed evaluation
question sends the learner back to the video that introduced it.
"""

from __future__ import annotations

import random
from collections.abc import Set
from dataclasses import dataclass, field, replace

from loguru import logger

from src.catalog.models import Question, VideoRecord
from src.sequencer.queue_builder import LearningQueue
from src.sequencer.quiz import shuffle_questions


@dataclass(frozen=True)
class EvaluationSession:
    """A running evaluation of one skill; advancing yields a new session."""

    skill: str
    questions: tuple[Question, ...]
    source_videos: tuple[VideoRecord, ...]
    index: int = 0
    _sources: dict[str, VideoRecord] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for video in self.source_videos:
            for question in video.questions:
                self._sources.setdefault(question.id, video)

    @property
    def source_ids(self) -> frozenset[str]:
        return frozenset(v.id for v in self.source_videos)

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index >= len(self.questions) - 1

    def advanced(self) -> EvaluationSession:
        return replace(self, index=self.index + 1)

    def source_of(self, question_id: str) -> VideoRecord | None:
        """Video that introduced a question."""
        return self._sources.get(question_id)


class EvaluationScheduler:
    """Decide when a skill evaluation is due and build it."""

    def __init__(
        self,
        queue: LearningQueue,
        rng: random.Random | None = None,
        divisor: int = 4,
    ):
        self.queue = queue
        self.rng = rng or random.Random()
        self.divisor = max(1, divisor)
        self.passed_skills: set[str] = set()

    def sample_size(self, pool_size: int) -> int:
        return max(1, pool_size // self.divisor)

    def skill_completed(self, skill: str, completed: Set[str]) -> bool:
        videos = self.queue.videos_for_skill(skill)
        return bool(videos) and all(v.id in completed for v in videos)

    def schedule(self, video: VideoRecord, completed: Set[str]) -> EvaluationSession | None:
        """
        Evaluation triggered by a completed video, if any.

        Skills are checked in the order the video declares them; the first
        completed, not yet passed skill with at least one question wins.
        """
        for skill in video.skills:
            if skill in self.passed_skills or not self.skill_completed(skill, completed):
                continue
            session = self.build_session(skill, self.queue.videos_for_skill(skill))
            if session is not None:
                return session
        return None

    def build_session(self, skill: str, videos: list[VideoRecord]) -> EvaluationSession | None:
        pool = [q for v in videos for q in v.questions]
        if not pool:
            logger.debug(f"Skill '{skill}' has no questions, no evaluation")
            return None

        drawn = self.rng.sample(pool, self.sample_size(len(pool)))
        logger.info(f"Evaluation for '{skill}': {len(drawn)} of {len(pool)} questions from {len(videos)} videos")
        return EvaluationSession(
            skill=skill,
            questions=shuffle_questions(drawn, self.rng),
            source_videos=tuple(videos),
        )

    def mark_passed(self, skill: str) -> None:
        self.passed_skills.add(skill)
