"""
Education levels.

A level label is "<stage>" or "<stage> <track>" ("6e", "2nde C", "1ère F2").
Stages are ranked by an explicit curriculum table so that ordering never
depends on how labels happen to sort as strings.

Collège stages ignore tracks. For lycée stages the learner's track is matched
against the video's track, where a series may be split into sub-series
(F -> F1..F4).
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from src.catalog.normalize import fold

COLLEGE_STAGES = ("6e", "5e", "4e", "3e")
LYCEE_STAGES = ("2nde", "1ère", "Terminale")
SERIES = ("A", "B", "C", "D", "E", "F", "G")
SUB_SERIES: dict[str, tuple[str, ...]] = {
    "A": ("A1", "A2"),
    "F": ("F1", "F2", "F3", "F4"),
    "G": ("G1", "G2", "G3"),
}

STAGE_RANK: dict[str, int] = {
    fold(stage): rank for rank, stage in enumerate(COLLEGE_STAGES + LYCEE_STAGES)
}
UNKNOWN_RANK = len(STAGE_RANK)

_COLLEGE = {fold(stage) for stage in COLLEGE_STAGES}
_warned_stages: set[str] = set()


@dataclass(frozen=True)
class Level:
    """A parsed level label."""

    stage: str
    track: str | None = None

    @classmethod
    def parse(cls, label: str) -> Level:
        parts = (label or "").split(maxsplit=1)
        if not parts:
            return cls(stage="")
        track = parts[1].strip() if len(parts) > 1 else None
        return cls(stage=parts[0], track=track or None)

    @property
    def label(self) -> str:
        return f"{self.stage} {self.track}" if self.track else self.stage

    @property
    def is_college(self) -> bool:
        return fold(self.stage) in _COLLEGE

    @property
    def rank(self) -> int:
        key = fold(self.stage)
        if key in STAGE_RANK:
            return STAGE_RANK[key]
        if key not in _warned_stages:
            _warned_stages.add(key)
            logger.warning(f"Unknown level stage '{self.stage}', ranking it after known stages")
        return UNKNOWN_RANK

    def sort_key(self) -> tuple[int, str, str]:
        return (self.rank, fold(self.stage), fold(self.track or ""))

    def same_stage(self, other: Level) -> bool:
        return fold(self.stage) == fold(other.stage)

    def __str__(self) -> str:
        return self.label


def level_sort_key(label: str) -> tuple[int, str, str]:
    """Sort key for a raw level label."""
    return Level.parse(label).sort_key()


def is_at_level(video_level: str, target_level: str) -> bool:
    """Whether a video belongs to the learner's stage (track already filtered)."""
    return Level.parse(video_level).same_stage(Level.parse(target_level))


def track_matches(video_track: str | None, learner_track: str | None) -> bool:
    """
    Match a lycée video track against the learner's track.

    A video without a track, or a learner without one, always matches.
    A series with sub-series accepts each of its sub-series.
    """
    if not video_track or not learner_track:
        return True
    video_key = video_track.upper()
    learner_key = learner_track.upper()
    if video_key == learner_key:
        return True
    return learner_key in SUB_SERIES.get(video_key, ())


def is_video_for_level(video_level: str, learner: Level) -> bool:
    """Whether a video is native content for the learner (same stage, compatible track)."""
    video = Level.parse(video_level)
    if not video.same_stage(learner):
        return False
    if learner.is_college:
        return True
    return track_matches(video.track, learner.track)


def accepts_video_level(video_level: str, learner: Level) -> bool:
    """
    Catalog filter: keep every other-stage video (prerequisite sources) and
    only the same-stage videos that match the learner's track.
    """
    if not Level.parse(video_level).same_stage(learner):
        return True
    return is_video_for_level(video_level, learner)
