"""
Typer CLI for the remediation player.

Commands:
    remediation queue       - Show the ordered learning queue for a level/subject
    remediation parcours    - Show learner-level videos grouped by skill
    remediation check       - Show which queue entries are unlocked this month
    remediation play        - Work through the queue in the terminal

Usage:
    remediation queue --level 6e --subject maths
    remediation queue --level "2nde C" --catalog data/catalog.json
    remediation check --level 6e --month mars
    remediation play --level 6e --catalog data/catalog.json
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from config import get_settings
from src.catalog.adapter import CatalogAdapter, HttpCatalogAdapter, JsonCatalogAdapter, load_catalog
from src.catalog.levels import Level
from src.errors import SequencerError
from src.sequencer.availability import AvailabilityGate
from src.sequencer.queue_builder import LearningQueue, LearningQueueBuilder
from src.sequencer.session import open_session
from src.sequencer.state_machine import ProgressionStateMachine, SequencerTiming
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
from src.telemetry.notifier import HttpNotificationSink, NotificationSink, NullNotificationSink

app = typer.Typer(
    help="Remediation player: prerequisite-ordered videos, quizzes and skill evaluations",
    no_args_is_help=True,
)

console = Console()

LevelOption = typer.Option(None, "--level", "-l", help="Learner level, e.g. '6e' or '2nde C'")
SubjectOption = typer.Option(None, "--subject", "-s", help="Subject (matière)")
CatalogOption = typer.Option(None, "--catalog", "-c", help="Read the catalog from a JSON file instead of the API")


# ========================================
# Helpers
# ========================================


def _resolve(level: Optional[str], subject: Optional[str]) -> tuple[str, str]:
    settings = get_settings()
    return level or settings.default_level, subject or settings.default_subject


def _make_adapter(catalog: Optional[Path]) -> CatalogAdapter:
    if catalog is not None:
        return JsonCatalogAdapter(catalog)
    settings = get_settings()
    return HttpCatalogAdapter(
        settings.api_base_url,
        endpoint=settings.catalog_endpoint,
        token=settings.api_token,
        timeout_ms=settings.http_timeout_ms,
        retry_attempts=settings.http_retry_attempts,
    )


async def _fetch(adapter: CatalogAdapter, level: str, subject: str):
    try:
        return await load_catalog(adapter, level, subject)
    finally:
        if isinstance(adapter, HttpCatalogAdapter):
            await adapter.close()


def _build_queue(level: str, subject: str, catalog: Optional[Path]) -> LearningQueue:
    videos = asyncio.run(_fetch(_make_adapter(catalog), level, subject))
    return LearningQueueBuilder().build(videos, Level.parse(level).stage)


def _exit_on_error(e: SequencerError) -> None:
    console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(code=1)


# ========================================
# Commands
# ========================================


@app.command()
def queue(
    level: Optional[str] = LevelOption,
    subject: Optional[str] = SubjectOption,
    catalog: Optional[Path] = CatalogOption,
):
    """Show the ordered learning queue."""
    level, subject = _resolve(level, subject)
    try:
        learning_queue = _build_queue(level, subject, catalog)
    except SequencerError as e:
        _exit_on_error(e)

    if not len(learning_queue):
        console.print("[yellow]Aucune vidéo disponible.[/yellow]")
        return

    table = Table(title=f"Parcours {level.upper()} - {subject}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Video")
    table.add_column("Level")
    table.add_column("Skills", style="cyan")
    table.add_column("Prerequisites", style="magenta")
    table.add_column("Questions", justify="right")

    for position, video in enumerate(learning_queue, start=1):
        style = None if learning_queue.is_native(video) else "dim"
        table.add_row(
            str(position),
            video.title,
            video.level,
            ", ".join(video.skills),
            ", ".join(video.prerequisite_skills),
            str(len(video.questions)),
            style=style,
        )
    console.print(table)


@app.command()
def parcours(
    level: Optional[str] = LevelOption,
    subject: Optional[str] = SubjectOption,
    catalog: Optional[Path] = CatalogOption,
):
    """Show learner-level videos grouped by skill."""
    level, subject = _resolve(level, subject)
    try:
        learning_queue = _build_queue(level, subject, catalog)
    except SequencerError as e:
        _exit_on_error(e)

    groups = learning_queue.parcours()
    if not groups:
        console.print("[yellow]Aucune vidéo disponible.[/yellow]")
        return
    for skill, videos in groups.items():
        console.print(f"[bold cyan]{skill}[/bold cyan]")
        for video in videos:
            console.print(f"  - {video.title} [dim]({video.id})[/dim]")


@app.command()
def check(
    level: Optional[str] = LevelOption,
    subject: Optional[str] = SubjectOption,
    catalog: Optional[Path] = CatalogOption,
    month: Optional[str] = typer.Option(None, "--month", "-m", help="Month to check (default: current month)"),
):
    """Show which queue entries are unlocked for a month."""
    level, subject = _resolve(level, subject)
    try:
        learning_queue = _build_queue(level, subject, catalog)
    except SequencerError as e:
        _exit_on_error(e)

    gate = AvailabilityGate(learning_queue.target_level)
    month = month or gate.current_month()

    table = Table(title=f"Disponibilité - {month}")
    table.add_column("Video")
    table.add_column("Release months")
    table.add_column("Status")
    for video in learning_queue:
        availability = gate.check(video, set(), month)
        status = (
            f"[green]unlocked[/green] [dim]({availability.reason})[/dim]"
            if availability.unlocked
            else f"[yellow]locked until {availability.unlock_month}[/yellow]"
        )
        table.add_row(video.title, ", ".join(video.release_months) or "-", status)
    console.print(table)


@app.command()
def play(
    level: Optional[str] = LevelOption,
    subject: Optional[str] = SubjectOption,
    catalog: Optional[Path] = CatalogOption,
):
    """Work through the learning queue in the terminal."""
    level, subject = _resolve(level, subject)
    try:
        asyncio.run(_play(level, subject, catalog))
    except SequencerError as e:
        _exit_on_error(e)


# ========================================
# Interactive player
# ========================================


def _make_notifier() -> NotificationSink:
    settings = get_settings()
    if not settings.learner_email:
        return NullNotificationSink()
    return HttpNotificationSink(
        settings.api_base_url,
        learner_email=settings.learner_email,
        token=settings.api_token,
        remediation_endpoint=settings.notify_remediation_endpoint,
        videofinish_endpoint=settings.notify_videofinish_endpoint,
        timeout_ms=settings.http_timeout_ms,
    )


async def _play(level: str, subject: str, catalog: Optional[Path]) -> None:
    settings = get_settings()
    changed = asyncio.Event()
    notifier = _make_notifier()

    def on_transition(state: ProgressionState) -> None:
        changed.set()
        _render_feedback(state)

    adapter = _make_adapter(catalog)
    try:
        machine = await open_session(
            adapter,
            level,
            subject,
            notifier=notifier,
            timing=SequencerTiming.from_settings(settings),
            evaluation_divisor=settings.evaluation_divisor,
            on_transition=on_transition,
        )
    finally:
        if isinstance(adapter, HttpCatalogAdapter):
            await adapter.close()

    try:
        await _drive(machine, changed, _LineReader())
    finally:
        machine.close()
        if isinstance(notifier, HttpNotificationSink):
            await notifier.close()


class _LineReader:
    """Reads terminal lines off the event loop.

    A read blocked in its worker thread cannot be cancelled. When the state
    moves on under it, the next prompt takes over that read instead of
    starting a second one, and a reply nobody consumed is dropped.
    """

    def __init__(self):
        self._pending: Optional[asyncio.Future] = None

    def read(self, prompt: str) -> asyncio.Future:
        pending = self._pending
        if pending is not None and not pending.done():
            console.print(f"{prompt}: ", end="")
            return pending
        if pending is not None:
            stale = None if pending.cancelled() or pending.exception() else pending.result()
            logger.debug(f"Dropping input typed for an earlier prompt: {stale!r}")
        self._pending = asyncio.ensure_future(asyncio.to_thread(Prompt.ask, prompt, default=""))
        return self._pending

    def take(self) -> str:
        """Consume the reply of the finished read."""
        reply = self._pending.result()
        self._pending = None
        return reply

    async def ask(self, prompt: str) -> str:
        await self.read(prompt)
        return self.take()


async def _drive(machine: ProgressionStateMachine, changed: asyncio.Event, reader: _LineReader) -> None:
    while True:
        state = machine.state
        changed.clear()

        if isinstance(state, NoContent):
            console.print("[yellow]Aucune vidéo disponible.[/yellow]")
            return
        if isinstance(state, SubjectComplete):
            console.print("[bold green]Parcours terminé ![/bold green]")
            return

        if isinstance(state, (AnswerCorrect, AnswerWrong, VideoCompleted)):
            await changed.wait()
            continue

        if isinstance(state, Locked):
            console.print(f"[yellow]🔒 {state.video.title}: disponible à partir du mois de {state.unlock_month}[/yellow]")
            reply = await reader.ask("Video id to open, or q to quit")
            if reply.lower() == "q":
                return
            if reply:
                _select(machine, reply)
            continue

        if isinstance(state, Idle):
            console.print(f"\n[bold]{state.video.title}[/bold] [dim]({state.video.level}, {state.video.video_url or 'no url'})[/dim]")
            reply = await reader.ask("Enter to play, a video id to jump, q to quit")
            if reply.lower() == "q":
                return
            if reply:
                _select(machine, reply)
            elif machine.state is state:
                machine.play()
            continue

        if isinstance(state, Playing):
            await reader.ask("Press Enter when the video has ended")
            if machine.state is state:
                machine.video_ended()
            continue

        if isinstance(state, (QuizActive, EvaluationActive)):
            await _ask_question(machine, state, reader, changed)


async def _ask_question(
    machine: ProgressionStateMachine,
    state: QuizActive | EvaluationActive,
    reader: _LineReader,
    changed: asyncio.Event,
) -> None:
    question = state.question
    header = f"Évaluation - {state.session.skill}" if isinstance(state, EvaluationActive) else state.video.title
    console.print(f"\n[bold cyan]{header}[/bold cyan]  [dim]⏱ {machine.countdown_remaining}s[/dim]")
    console.print(question.prompt)
    for number, choice in enumerate(question.choices, start=1):
        console.print(f"  [cyan]{number}[/cyan]. {choice}")

    read = reader.read("Your answer")
    moved_on = asyncio.ensure_future(changed.wait())
    await asyncio.wait({read, moved_on}, return_when=asyncio.FIRST_COMPLETED)
    moved_on.cancel()
    if machine.state is not state:
        # Countdown expired; the unanswered read carries over to the next prompt.
        return
    reply = reader.take()
    try:
        choice = question.choices[int(reply) - 1]
    except (ValueError, IndexError):
        choice = reply
    machine.answer(choice)


def _select(machine: ProgressionStateMachine, video_id: str) -> None:
    try:
        machine.select(video_id)
    except KeyError:
        console.print(f"[red]Unknown video id: {video_id}[/red]")


def _render_feedback(state: ProgressionState) -> None:
    if isinstance(state, AnswerCorrect):
        console.print("[green]✅ Bravo ! Réponse correcte[/green]")
    elif isinstance(state, AnswerWrong):
        if state.timed_out:
            console.print("[red]⏰ Temps écoulé ! Vous devez revoir la vidéo pour continuer[/red]")
        elif isinstance(state.answered, EvaluationActive):
            console.print("[red]❌ Mauvaise réponse ! Vous devez revoir la vidéo portant cette question[/red]")
        else:
            console.print("[red]❌ Mauvaise réponse ! Vous devez revoir la vidéo[/red]")
    elif isinstance(state, EvaluationActive) and state.session.index == 0:
        console.print(f"[bold magenta]Évaluation de la notion « {state.session.skill} »[/bold magenta]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    app()


if __name__ == "__main__":
    main()
