"""
Availability Gate.

Calendar release policy for queue entries. A learner-level video may carry a
list of release months; it is playable only during one of them, unless the
learner already passed it. Prerequisite videos imported from other levels are
never calendar-gated.
"""

from __future__ import annotations

from collections.abc import Callable, Set
from dataclasses import dataclass
from datetime import date

from src.catalog.levels import is_at_level
from src.catalog.models import VideoRecord
from src.catalog.normalize import fold

FRENCH_MONTHS = (
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
)


def month_name(day: date) -> str:
    """French month name for a date."""
    return FRENCH_MONTHS[day.month - 1]


@dataclass(frozen=True)
class Availability:
    """Gate decision for one video."""

    unlocked: bool
    reason: str  # completed | other_level | no_release_months | release_month | locked
    unlock_month: str | None = None


class AvailabilityGate:
    """Decide whether a queue entry can be started now."""

    def __init__(
        self,
        learner_level: str,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize the gate.

        Args:
            learner_level: Level whose videos are calendar-gated
            today: Clock used for the current month
        """
        self.learner_level = learner_level
        self._today = today

    def current_month(self) -> str:
        return month_name(self._today())

    def check(
        self,
        video: VideoRecord,
        completed: Set[str],
        current_month: str | None = None,
    ) -> Availability:
        if video.id in completed:
            return Availability(True, "completed")
        if not is_at_level(video.level, self.learner_level):
            return Availability(True, "other_level")
        if not video.release_months:
            return Availability(True, "no_release_months")

        month = fold(current_month if current_month is not None else self.current_month())
        if any(fold(m) == month for m in video.release_months):
            return Availability(True, "release_month")
        return Availability(False, "locked", unlock_month=video.first_release_month)

    def is_unlocked(
        self,
        video: VideoRecord,
        completed: Set[str],
        current_month: str | None = None,
    ) -> bool:
        return self.check(video, completed, current_month).unlocked

    def unlock_hint(self, video: VideoRecord) -> str | None:
        """Month shown to the learner while a video is locked."""
        return video.first_release_month
