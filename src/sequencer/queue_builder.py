"""
Learning Queue Builder.

Orders a catalog into the sequence a learner works through:
- catalog videos are visited by level rank (lower levels first)
- each video is preceded by its resolved prerequisite chain
- right after a learner-level video come the other learner-level videos
  sharing one of its skills, so variants of a skill stay together
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from loguru import logger

from src.catalog.levels import is_at_level, level_sort_key
from src.catalog.models import VideoRecord
from src.errors import PrerequisiteCycleError
from src.sequencer.resolver import PrerequisiteResolver


class LearningQueue:
    """Ordered, id-unique sequence of videos for one (level, track, subject) selection."""

    def __init__(self, videos: Sequence[VideoRecord], target_level: str):
        self.target_level = target_level
        self._videos = list(videos)
        self._index: dict[str, int] = {}
        for position, video in enumerate(self._videos):
            if video.id in self._index:
                raise ValueError(f"Duplicate video id in learning queue: {video.id}")
            self._index[video.id] = position

    def __len__(self) -> int:
        return len(self._videos)

    def __iter__(self) -> Iterator[VideoRecord]:
        return iter(self._videos)

    def __getitem__(self, position: int) -> VideoRecord:
        return self._videos[position]

    def __contains__(self, video_id: object) -> bool:
        return video_id in self._index

    @property
    def ids(self) -> list[str]:
        return [v.id for v in self._videos]

    def index_of(self, video_id: str) -> int | None:
        return self._index.get(video_id)

    def get(self, video_id: str) -> VideoRecord | None:
        position = self._index.get(video_id)
        return self._videos[position] if position is not None else None

    def is_native(self, video: VideoRecord) -> bool:
        """Whether a video is at the learner's level (not an imported prerequisite)."""
        return is_at_level(video.level, self.target_level)

    def videos_for_skill(self, skill: str) -> list[VideoRecord]:
        """Learner-level videos teaching a skill, in queue order."""
        return [v for v in self._videos if self.is_native(v) and v.teaches(skill)]

    def parcours(self) -> dict[str, list[VideoRecord]]:
        """Learner-level videos grouped by skill (skills in first-seen order)."""
        groups: dict[str, list[VideoRecord]] = {}
        for video in self._videos:
            if not self.is_native(video):
                continue
            for skill in video.skills:
                groups.setdefault(skill, []).append(video)
        return groups


class LearningQueueBuilder:
    """Build a LearningQueue from a catalog."""

    def build(self, catalog: Sequence[VideoRecord], target_level: str) -> LearningQueue:
        """
        Build the learning queue.

        Args:
            catalog: Videos in catalog order
            target_level: The learner's level label

        Returns:
            LearningQueue with unique ids, prerequisites before dependents

        Raises:
            PrerequisiteCycleError: If prerequisite skills loop across levels
        """
        resolver = PrerequisiteResolver(catalog, target_level)
        seen_at_level: set[str] = set()
        ordered: list[VideoRecord] = []
        placed: set[str] = set()

        def place(video: VideoRecord) -> None:
            if video.id in placed:
                return
            placed.add(video.id)
            ordered.append(video)
            if resolver.is_native(video):
                seen_at_level.add(video.id)

        def place_with_prerequisites(video: VideoRecord) -> None:
            try:
                dependencies = resolver.expand(video, seen_at_level)
            except PrerequisiteCycleError as e:
                logger.error(f"Cannot build learning queue for {target_level}: {e}")
                raise
            for dependency in dependencies:
                place(dependency)
            place(video)

        for video in sorted(catalog, key=lambda v: level_sort_key(v.level)):
            place_with_prerequisites(video)

            if resolver.is_native(video):
                for sibling in catalog:
                    if (
                        sibling.id != video.id
                        and sibling.id not in placed
                        and resolver.is_native(sibling)
                        and sibling.shares_skill_with(video)
                    ):
                        place_with_prerequisites(sibling)

        logger.info(
            f"Built learning queue for {target_level}: {len(ordered)} videos "
            f"({len(seen_at_level)} at level) from {len(catalog)} catalog entries"
        )
        return LearningQueue(ordered, target_level)


def build_learning_queue(catalog: Sequence[VideoRecord], target_level: str) -> LearningQueue:
    """Convenience wrapper around LearningQueueBuilder."""
    return LearningQueueBuilder().build(catalog, target_level)
