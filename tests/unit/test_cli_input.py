"""
Unit tests for terminal input in the interactive player.

The terminal is a scripted line queue standing in for Prompt.ask; every
test feeds enough lines that no reader thread is left blocked.
"""

import asyncio
import queue

import pytest

from src.cli import main as cli
from src.cli.main import _ask_question, _LineReader
from src.sequencer.states import QuizActive


class ScriptedTerminal:
    def __init__(self):
        self.lines = queue.Queue()
        self.prompts = []

    def ask(self, prompt, default=""):
        self.prompts.append(prompt)
        return self.lines.get(timeout=5)


class QuizMachine:
    """Just enough of the state machine for one quiz question."""

    def __init__(self, state):
        self.state = state
        self.countdown_remaining = 5
        self.answers = []

    def answer(self, choice):
        self.answers.append(choice)


@pytest.fixture
def terminal(monkeypatch):
    terminal = ScriptedTerminal()
    monkeypatch.setattr(cli.Prompt, "ask", terminal.ask)
    return terminal


@pytest.fixture
def quiz_state(video_factory):
    video = video_factory("v1")
    return QuizActive(video, video.questions, 0)


class TestLineReader:
    @pytest.mark.asyncio
    async def test_unanswered_read_carries_over(self, terminal):
        reader = _LineReader()
        first = reader.read("Your answer")

        assert reader.read("Enter to play") is first

        terminal.lines.put("v2")
        assert await reader.ask("Enter to play") == "v2"
        assert terminal.prompts == ["Your answer"]

    @pytest.mark.asyncio
    async def test_unconsumed_reply_is_dropped(self, terminal):
        reader = _LineReader()
        terminal.lines.put("2")
        await reader.read("Your answer")

        terminal.lines.put("")
        assert await reader.ask("Enter to play") == ""
        assert terminal.prompts == ["Your answer", "Enter to play"]


class TestAskQuestion:
    @pytest.mark.asyncio
    async def test_numbered_reply_answers(self, terminal, quiz_state):
        machine = QuizMachine(quiz_state)
        terminal.lines.put("2")

        await _ask_question(machine, quiz_state, _LineReader(), asyncio.Event())

        assert machine.answers == [quiz_state.question.choices[1]]

    @pytest.mark.asyncio
    async def test_expiry_leaves_read_for_next_prompt(self, terminal, quiz_state):
        machine = QuizMachine(quiz_state)
        reader = _LineReader()
        changed = asyncio.Event()

        task = asyncio.create_task(_ask_question(machine, quiz_state, reader, changed))
        await asyncio.sleep(0)
        machine.state = None
        changed.set()
        await asyncio.wait_for(task, timeout=1)

        assert machine.answers == []

        terminal.lines.put("")
        assert await reader.ask("Enter to play") == ""
        assert terminal.prompts == ["Your answer"]
