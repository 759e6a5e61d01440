"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog.models import Question, VideoRecord  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# =============================================================================
# Catalog builders
# =============================================================================


def make_question(qid: str, correct: str = "a", choices=("a", "b", "c"), prompt: str | None = None, **kwargs) -> Question:
    return Question(
        id=qid,
        prompt=prompt or f"Question {qid}?",
        choices=tuple(choices),
        correct_choice=correct,
        **kwargs,
    )


def make_video(
    vid: str,
    level: str = "6e",
    skills=(),
    prereqs=(),
    questions=None,
    months=(),
    subject: str = "maths",
    title: str | None = None,
) -> VideoRecord:
    if questions is None:
        questions = [make_question(f"{vid}-q1"), make_question(f"{vid}-q2")]
    return VideoRecord(
        id=vid,
        title=title or f"Video {vid}",
        level=level,
        subject=subject,
        video_url=f"https://videos.example.org/{vid}.mp4",
        skills=tuple(skills),
        prerequisite_skills=tuple(prereqs),
        questions=tuple(questions),
        release_months=tuple(months),
    )


@pytest.fixture
def video_factory():
    return make_video


@pytest.fixture
def question_factory():
    return make_question


# =============================================================================
# Timers and telemetry doubles
# =============================================================================


class ManualHandle:
    def __init__(self, due: float, seq: int, callback):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """TimerService driven by advance() instead of a real clock."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._handles: list[ManualHandle] = []

    def call_later(self, delay, callback):
        self._seq += 1
        handle = ManualHandle(self.now + delay, self._seq, callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            live = [h for h in self._handles if not h.cancelled and h.due <= target + 1e-9]
            if not live:
                break
            handle = min(live, key=lambda h: (h.due, h.seq))
            self._handles.remove(handle)
            self.now = max(self.now, handle.due)
            handle.callback()
        self.now = target
        self._handles = [h for h in self._handles if not h.cancelled]


class RecordingSink:
    """NotificationSink that keeps every notice."""

    def __init__(self):
        self.remediation = []
        self.video_finished = []

    def notify_remediation(self, notice) -> None:
        self.remediation.append(notice)

    def notify_video_finished(self, notice) -> None:
        self.video_finished.append(notice)


class FailingSink:
    def notify_remediation(self, notice) -> None:
        raise RuntimeError("telemetry down")

    def notify_video_finished(self, notice) -> None:
        raise RuntimeError("telemetry down")


@pytest.fixture
def manual_timers():
    return ManualTimers()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return FailingSink()


# =============================================================================
# Sample catalog (wire format)
# =============================================================================


@pytest.fixture
def sample_catalog_records():
    """Catalog records as served by the backend."""
    return [
        {
            "id": "v-frac-1",
            "titre": "Les fractions (1)",
            "videoUrl": ' "https://videos.example.org/frac1.mp4" ',
            "notions": ["fractions"],
            "prerequis": ["division"],
            "niveau": "6e",
            "matiere": "Maths",
            "mois": ["Mars"],
            "questions": [
                {"id": "q1", "question": "1/2 + 1/2 ?", "choix": ["1", "2", "1/4"], "bonne_reponse": "1"},
            ],
        },
        {
            "id": "v-div",
            "titre": "La division",
            "videoUrl": "https://youtu.be/abc",
            "notions": ["division"],
            "prerequis": None,
            "niveau": "CM2",
            "matiere": "maths",
            "questions": [
                {"id": "q2", "question": "6 / 3 ?", "choix": ["2", "3"], "bonne_reponse": "2"},
            ],
        },
        {
            "id": "v-verbs",
            "titre": "Les verbes",
            "notions": ["conjugaison"],
            "niveau": "6e",
            "matiere": "francais",
            "questions": [],
        },
    ]
