"""
lms-player: terminal course player and practice-test runner.

Commands:
- lmsplayer course       - Work through a course's lessons and quizzes
- lmsplayer test         - Take a timed practice test
- lmsplayer print-page   - Print a CMS page
"""
from __future__ import annotations

import asyncio
import sys
from typing import Optional

import httpx
import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from lmsplayer.config import Settings, get_settings
from lmsplayer.core.errors import (
    DeviceUnavailable,
    InvalidTransition,
    LMSPlayerError,
    NotFound,
    UnsupportedQuestionType,
)
from lmsplayer.core.events import EngineEvent
from lmsplayer.core.models import Lesson, LessonType, TestQuestion, TestResult
from lmsplayer.engine.course import CoursePlayer
from lmsplayer.engine.progress import ProgressOutcome
from lmsplayer.engine.questions import QuestionType, is_media
from lmsplayer.engine.questions.choice import INSERTION_GAPS, JUDGMENT_LABELS
from lmsplayer.engine.questions.text import split_blank
from lmsplayer.engine.quiz import Finished, QuizEngine
from lmsplayer.engine.sequencer import SequencerState, Transition
from lmsplayer.engine.session import PracticeTestSession
from lmsplayer.engine.session_store import SessionStore
from lmsplayer.integrations.lms_client import LMSClient


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="lmsplayer",
    help="lms-player: courses and practice tests in the terminal",
    no_args_is_help=True,
)
console = Console()

LESSON_ICONS = {
    LessonType.VIDEO: "[blue]video[/blue]",
    LessonType.TEXT: "[cyan]text[/cyan]",
    LessonType.QUIZ: "[magenta]quiz[/magenta]",
}


async def _ask(prompt: str, **kwargs) -> str:
    """Prompt without blocking the event loop, so section timers keep running."""
    return await asyncio.to_thread(Prompt.ask, prompt, **kwargs)


async def _confirm(prompt: str, default: bool) -> bool:
    return await asyncio.to_thread(Confirm.ask, prompt, default=default)


async def _login(client: LMSClient, user: Optional[str]) -> None:
    if user is None:
        return
    password = await _ask("Password", password=True)
    result = await client.authenticate(user, password)
    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Display Helpers
# =============================================================================

def display_outline(player: CoursePlayer) -> None:
    """Course outline with completion marks and the overall progress bar."""
    table = Table(title=player.course.title, title_justify="left")
    table.add_column("", width=2)
    table.add_column("Module", style="dim")
    table.add_column("Lesson")
    table.add_column("Type")

    for module in player.modules:
        for lesson in module.lessons:
            if lesson.id == player.active_lesson.id:
                mark = "[bold yellow]>[/bold yellow]"
            elif player.is_lesson_completed(lesson.id):
                mark = "[green]✓[/green]"
            else:
                mark = ""
            table.add_row(mark, module.title, lesson.title, LESSON_ICONS.get(lesson.type, ""))

    console.print(table)
    console.print(ProgressBar(total=100, completed=player.progress, width=40))
    console.print(f"[dim]{player.progress}% complete[/dim]")


def display_lesson(lesson: Lesson, index: int, total: int) -> None:
    header = f"Lesson {index + 1}/{total}  |  {LESSON_ICONS.get(lesson.type, lesson.type)}"
    if lesson.type == LessonType.VIDEO:
        body = f"Watch: {lesson.content}"
    elif lesson.type == LessonType.QUIZ:
        body = "This lesson is a quiz. Choose [bold]z[/bold] to take it."
    else:
        body = lesson.content or "[dim]No content[/dim]"

    console.print(Panel(body, title=f"{lesson.title}  [dim]{header}[/dim]", title_align="left", border_style="cyan"))


def display_result(result: TestResult) -> None:
    if result.requires_manual_evaluation:
        body = (
            "[bold]Answers submitted.[/bold]\n\n"
            "Some responses need manual evaluation. Your final band will be available later."
        )
    else:
        body = f"[bold]Overall band:[/bold] {result.overall_band or 'n/a'}"
    console.print(Panel(body, title="Result", border_style="green"))


# =============================================================================
# Course
# =============================================================================

async def _take_quiz(player: CoursePlayer) -> None:
    quiz = player.start_quiz()
    if quiz.is_invalid:
        console.print("[yellow]This quiz could not be loaded.[/yellow]")
        return

    while not quiz.is_finished:
        question = quiz.current_question
        lines = [question.question, ""]
        lines += [f"  {i + 1}. {option}" for i, option in enumerate(question.options)]
        console.print(Panel("\n".join(lines), border_style="magenta"))

        choice = await asyncio.to_thread(
            IntPrompt.ask,
            "Your answer",
            choices=[str(i + 1) for i in range(len(question.options))],
        )
        quiz.select_option(choice - 1)
        if quiz.submit():
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect[/red] - answer: {question.options[question.correct]}")
        quiz.next()

    _display_quiz_summary(quiz)


def _display_quiz_summary(quiz: QuizEngine) -> None:
    finished: Finished = quiz.state
    style = "green" if finished.passed else "yellow"
    verdict = "Passed" if finished.passed else "Not passed"
    console.print(Panel(
        f"[bold]{verdict}[/bold]\n\nScore: {finished.score}/{finished.total}",
        title="Quiz",
        border_style=style,
    ))


async def _run_course(course_id: str, lesson_id: Optional[str], user: Optional[str], settings: Settings) -> None:
    async with LMSClient(settings.api) as client:
        await _login(client, user)
        try:
            player = await CoursePlayer.load(client, course_id, lesson_id, settings=settings)
        except NotFound:
            console.print("[red]Course not found.[/red]")
            raise typer.Exit(1)

        if player.active_lesson is None:
            console.print("[yellow]This course has no lessons yet.[/yellow]")
            return

        player.events.on(
            EngineEvent.COURSE_COMPLETED,
            lambda _: console.print("\n[bold green]Course complete![/bold green]"),
        )

        while True:
            console.print()
            display_outline(player)
            lesson = player.active_lesson
            display_lesson(lesson, player.active_index, len(player.lessons))

            choices = ["c", "n", "p", "q"]
            if lesson.type == LessonType.QUIZ:
                choices.insert(0, "z")
            action = await _ask(
                "[c]omplete, [n]ext, [p]revious, [q]uit" + (", qui[z]" if "z" in choices else ""),
                choices=choices,
                default="c",
            )

            if action == "q":
                return
            if action == "n" and player.next() is None:
                console.print("[dim]Already at the last lesson.[/dim]")
            elif action == "p" and player.previous() is None:
                console.print("[dim]Already at the first lesson.[/dim]")
            elif action == "z":
                await _take_quiz(player)
            elif action == "c":
                outcome = await player.mark_complete()
                if outcome == ProgressOutcome.FAILED:
                    console.print(f"[red]Progress was not saved:[/red] {player.tracker.last_error}")
                elif outcome == ProgressOutcome.COURSE_COMPLETED:
                    return


@app.command()
def course(
    course_id: str = typer.Argument(..., help="Course to open"),
    lesson: Optional[str] = typer.Option(None, "--lesson", "-l", help="Lesson to start at"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Learner ID to log in with"),
) -> None:
    """
    Open a course and work through its lessons.

    Marking a lesson complete saves progress and moves on to the next lesson.
    """
    settings = get_settings()
    try:
        asyncio.run(_run_course(course_id, lesson, user, settings))
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach the platform:[/red] {e}")
        raise typer.Exit(1)


# =============================================================================
# Practice tests
# =============================================================================

async def _answer_question(session: PracticeTestSession, question: TestQuestion) -> None:
    """Prompt for one question and write the answer through the session."""
    question_type = QuestionType.parse(question.type)
    state = session.question_state(question.id)

    console.print(f"\n[bold]{question.id}[/bold] [dim]({question.type})[/dim]")
    if not state.configured:
        console.print("[yellow]This question type is not configured.[/yellow]")
        return

    if question_type in (QuestionType.FILL_BLANKS, QuestionType.NOTE_COMPLETION, QuestionType.SENTENCE_COMPLETION):
        before, after = split_blank(question.text)
        console.print(f"{before}[bold]____[/bold]{after}")
    else:
        console.print(question.text)
    if question.target_sentence:
        console.print(f"[italic]{question.target_sentence}[/italic]")
    if question.image:
        console.print(f"[dim]Image: {question.image}[/dim]")

    try:
        if is_media(question_type):
            await _record_answer(session, question)
        elif question_type == QuestionType.MCQ:
            _print_options(question)
            choice = await _ask("Option", default=_default(state.value, offset=1))
            if choice:
                session.answer(question.id, int(choice) - 1)
        elif question_type in (QuestionType.MCQ_MULTIPLE, QuestionType.ORDERING):
            await _toggle_options(session, question)
        elif question_type in JUDGMENT_LABELS:
            labels = JUDGMENT_LABELS[question_type]
            console.print("  " + " / ".join(labels))
            label = await _ask("Answer", default=_default(state.value))
            if label:
                session.answer(question.id, label)
        elif question_type == QuestionType.INSERT_SENTENCE:
            gap = await _ask("Gap", choices=list(INSERTION_GAPS) + [""], default=_default(state.value))
            if gap:
                session.answer(question.id, gap)
        elif question_type == QuestionType.MATCHING:
            await _match_segments(session, question)
        else:
            text = await _ask("Answer", default=state.value or "")
            session.answer(question.id, text)
            state = session.question_state(question.id)
            if state.word_limit is not None:
                console.print(f"[dim]{state.word_count}/{state.word_limit} words[/dim]")
    except (ValueError, UnsupportedQuestionType) as e:
        console.print(f"[red]{e}[/red]")


def _default(value, offset: int = 0) -> str:
    if value is None:
        return ""
    if isinstance(value, int):
        return str(value + offset)
    return str(value)


def _print_options(question: TestQuestion) -> None:
    for i, option in enumerate(question.options or []):
        console.print(f"  {i + 1}. {option}")


async def _toggle_options(session: PracticeTestSession, question: TestQuestion) -> None:
    while True:
        state = session.question_state(question.id)
        _print_options(question)
        console.print(f"[dim]Current: {state.value}[/dim]")
        choice = await _ask("Toggle option (blank when done)", default="")
        if not choice:
            return
        session.answer(question.id, int(choice) - 1)


async def _match_segments(session: PracticeTestSession, question: TestQuestion) -> None:
    options = question.options or []
    for i, option in enumerate(options):
        console.print(f"  {i}. {option}")
    for slot, segment in enumerate(options):
        current = session.question_state(question.id).value[slot]
        choice = await _ask(f"Category for '{segment}' (blank to clear)", default=current or "")
        session.answer(question.id, (slot, choice))


async def _record_answer(session: PracticeTestSession, question: TestQuestion) -> None:
    if session.question_state(question.id).answered:
        console.print("[green]Recording captured.[/green]")
        if not await _confirm("Record again?", default=False):
            return
    if not await _confirm("Start recording?", default=True):
        return
    try:
        await session.start_recording()
    except DeviceUnavailable as e:
        console.print(f"[red]Microphone unavailable:[/red] {e}")
        return
    await _ask("[bold red]Recording[/bold red] - press Enter to stop", default="")
    await session.stop_recording(question.id)
    console.print("[green]Recording captured.[/green]")


async def _run_section(session: PracticeTestSession) -> None:
    section = session.section
    index = session.section_index
    minutes, seconds = divmod(session.remaining_seconds, 60)
    console.print()
    console.print(Panel(
        f"{len(section.questions)} questions  |  {minutes:02d}:{seconds:02d} remaining",
        title=f"Section {index + 1}/{len(session.test.sections)}: {section.title}",
        title_align="left",
        border_style="cyan",
    ))
    if section.passage_text:
        console.print(Panel(section.passage_text, title="Passage", border_style="dim"))
    if section.audio_url:
        console.print(f"[dim]Listen: {section.audio_url}[/dim]")

    for question in section.questions:
        if session.section_index != index or session.sequencer.state != SequencerState.IN_SECTION:
            return
        try:
            await _answer_question(session, question)
        except InvalidTransition:
            # The section closed while the prompt was open
            return


async def _run_test(test_id: str, resume: bool, user: Optional[str], settings: Settings) -> None:
    store = SessionStore(settings.session_dir)

    def on_tick(remaining: int) -> None:
        if remaining == 60:
            console.print("\n[bold yellow]One minute remaining in this section.[/bold yellow]")

    async with LMSClient(settings.api) as client:
        await _login(client, user)
        try:
            session = await PracticeTestSession.open(client, test_id, settings=settings, on_tick=on_tick)
        except NotFound:
            console.print("[red]Test not found.[/red]")
            raise typer.Exit(1)

        async with session:
            session.events.on(
                EngineEvent.SECTION_ADVANCED,
                lambda i: console.print(f"\n[cyan]Now in section {i + 1}.[/cyan]"),
            )
            saved = store.get_latest(test_id) if resume else None
            if saved is not None:
                session.resume(saved)
            else:
                session.start()

            while not session.is_finished:
                if session.sequencer.state == SequencerState.SUBMITTING:
                    await session.sequencer.timer.wait()
                    continue

                index = session.section_index
                await _run_section(session)
                if session.section_index != index or session.is_finished:
                    continue

                action = await _ask(
                    "[n]ext section, [s]ave and quit" if not session.sequencer.is_last_section
                    else "[n] submit, [s]ave and quit",
                    choices=["n", "s"],
                    default="n",
                )
                if session.section_index != index or session.is_finished:
                    continue
                if action == "s":
                    path = store.save(session.snapshot())
                    console.print(f"[green]Saved session {session.record.session_id}[/green] [dim]{path}[/dim]")
                    return

                outcome = await session.advance()
                if outcome == Transition.FAILED:
                    console.print(f"[red]Submission failed:[/red] {session.sequencer.last_error}")
                    console.print("[dim]Your answers are kept. Submit again to retry.[/dim]")

            store.delete(session.record.session_id)
            display_result(session.result)


@app.command()
def test(
    test_id: str = typer.Argument(..., help="Practice test to take"),
    resume: bool = typer.Option(False, "--resume", "-r", help="Continue the latest saved attempt"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Learner ID to log in with"),
) -> None:
    """
    Take a timed practice test.

    Each section has its own countdown; when it runs out the test moves on
    by itself, and the answers are submitted after the last section.
    """
    settings = get_settings()
    try:
        asyncio.run(_run_test(test_id, resume, user, settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Test abandoned.[/yellow]")
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach the platform:[/red] {e}")
        raise typer.Exit(1)


# =============================================================================
# CMS pages
# =============================================================================

async def _fetch_page(node_id: str, settings: Settings):
    async with LMSClient(settings.api) as client:
        return await client.fetch_page(node_id)


@app.command("print-page")
def print_page(
    node_id: str = typer.Argument(..., help="CMS node to print"),
) -> None:
    """Print a CMS page."""
    settings = get_settings()
    try:
        page = asyncio.run(_fetch_page(node_id, settings))
    except NotFound:
        console.print("Node not found.")
        raise typer.Exit(1)
    except (httpx.HTTPError, LMSPlayerError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]{page.title}[/bold]\n")
    console.print(page.content)


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
