"""Exceptions raised by the remediation player."""

from __future__ import annotations


class SequencerError(Exception):
    """Base class for learning sequencer errors."""


class PrerequisiteCycleError(SequencerError):
    """Prerequisite skills reference each other in a loop."""

    def __init__(self, path: list[str]):
        self.path = path
        super().__init__(f"Prerequisite cycle detected: {' -> '.join(path)}")


class VideoLockedError(SequencerError):
    """Playback was requested for a video the availability gate keeps locked."""

    def __init__(self, video_id: str, unlock_month: str | None):
        self.video_id = video_id
        self.unlock_month = unlock_month
        hint = f" until {unlock_month}" if unlock_month else ""
        super().__init__(f"Video {video_id} is locked{hint}")


class InvalidTransitionError(SequencerError):
    """An event arrived that the current progression state cannot handle."""

    def __init__(self, event: str, state: str):
        self.event = event
        self.state = state
        super().__init__(f"Cannot handle '{event}' while in state {state}")


class CatalogError(SequencerError):
    """The video catalog could not be fetched or decoded."""
