"""
Prerequisite Resolver.

Expands the prerequisite skills a video declares into the ordered list of
videos that teach them, pulling in each dependency's own chain first.

Resolution rules:
- A skill resolves to the first catalog video teaching it (catalog order
  breaks ties); a skill nobody teaches is skipped.
- A dependency at the learner's level is emitted once per queue build
  (tracked by the shared seen-at-level set).
- A dependency from another level is emitted after its own prerequisites,
  once per resolution call.
- The ids on the current resolution path are threaded through every
  recursive call. Looping back to the video itself or to a learner-level
  video drops that edge with a warning; looping back to another-level video
  raises PrerequisiteCycleError.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from src.catalog.levels import is_at_level
from src.catalog.models import VideoRecord
from src.errors import PrerequisiteCycleError


class PrerequisiteResolver:
    """Resolve declared prerequisite skills against a catalog."""

    def __init__(self, catalog: Sequence[VideoRecord], target_level: str):
        """
        Initialize resolver.

        Args:
            catalog: Videos in catalog order (first match wins)
            target_level: The learner's level label
        """
        self.catalog = list(catalog)
        self.target_level = target_level
        self._sources: dict[str, VideoRecord] = {}
        for video in self.catalog:
            for skill in video.skills:
                self._sources.setdefault(skill, video)

    def source_for(self, skill: str) -> VideoRecord | None:
        """First catalog video teaching a skill."""
        return self._sources.get(skill)

    def is_native(self, video: VideoRecord) -> bool:
        return is_at_level(video.level, self.target_level)

    def expand(self, video: VideoRecord, seen_at_level: set[str]) -> list[VideoRecord]:
        """
        Ordered dependency videos for one video.

        Args:
            video: Video whose prerequisites are resolved
            seen_at_level: Learner-level ids already placed; updated in place

        Returns:
            Dependencies, each preceded by its own transitive prerequisites

        Raises:
            PrerequisiteCycleError: If the chain loops back to another-level video
        """
        return self._expand(video, seen_at_level, [video.id])

    def _expand(
        self,
        video: VideoRecord,
        seen_at_level: set[str],
        path: list[str],
    ) -> list[VideoRecord]:
        result: list[VideoRecord] = []
        emitted: set[str] = set()

        def emit(dep: VideoRecord) -> None:
            if dep.id not in emitted:
                emitted.add(dep.id)
                result.append(dep)

        for skill in video.prerequisite_skills:
            prereq = self.source_for(skill)
            if prereq is None:
                logger.debug(f"No catalog video teaches '{skill}' (required by {video.id}), skipping")
                continue

            if prereq.id in path:
                if prereq.id == video.id or self.is_native(prereq):
                    logger.warning(
                        f"Ignoring looping prerequisite '{skill}' of {video.id} "
                        f"({' -> '.join(path + [prereq.id])})"
                    )
                    continue
                raise PrerequisiteCycleError(path + [prereq.id])

            if self.is_native(prereq):
                if prereq.id in seen_at_level:
                    continue
                seen_at_level.add(prereq.id)

            for dep in self._expand(prereq, seen_at_level, path + [prereq.id]):
                emit(dep)
            emit(prereq)

        return result
