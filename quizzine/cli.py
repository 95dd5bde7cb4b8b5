"""
Typer CLI for the quiz engine.

Commands:
    quizzine courses                    - List courses in the question bank
    quizzine weeks                      - List weeks of the current course
    quizzine select-course ID           - Choose the current course
    quizzine quiz weekly --week 3       - Take a quiz (weekly/full/bookmark/smart/custom)
    quizzine quiz custom --quiz-id ID
    quizzine stats                      - Progress dashboard
    quizzine streak                     - Current activity streak
    quizzine bookmark QUESTION_ID       - Toggle a bookmark
    quizzine bookmarks                  - List bookmarked questions
    quizzine custom create|list|show|rename|delete
    quizzine settings show|set
    quizzine data export|import|reset
"""

from __future__ import annotations

import asyncio
import sys
from functools import lru_cache
from pathlib import Path
from typing import NoReturn

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from quizzine.config import QuizzineSettings, get_settings
from quizzine.content.repository import QuestionBank, QuestionRepository
from quizzine.exceptions import QuizzineError
from quizzine.library import BookmarkManager, CustomQuizManager, PreferencesManager
from quizzine.models import QuizMode, UserSettings
from quizzine.progress import (
    StreakTracker,
    recent_attempts,
    summarize,
    tag_performance,
    weekly_scores,
)
from quizzine.progress.stats import quiz_title
from quizzine.session import QuizSession, SessionState
from quizzine.store import DocumentStore, SqlStorage

console = Console()

app = typer.Typer(
    help="Quizzine: weekly course quizzes, Smart Boost review and streaks",
    no_args_is_help=True,
)
custom_app = typer.Typer(help="Manage custom quizzes", no_args_is_help=True)
settings_app = typer.Typer(help="Show or change settings", no_args_is_help=True)
data_app = typer.Typer(help="Backup, restore and reset local data", no_args_is_help=True)
app.add_typer(custom_app, name="custom")
app.add_typer(settings_app, name="settings")
app.add_typer(data_app, name="data")


# =============================================================================
# Wiring
# =============================================================================


def configure_logging(level: str, log_file: str | None = None) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if log_file:
        logger.add(log_file, level="DEBUG", rotation="5 MB", retention=3)


@lru_cache(maxsize=None)
def get_storage(url: str) -> SqlStorage:
    """One SqlStorage (and engine) per URL for the life of the process."""
    return SqlStorage(url)


def get_store(settings: QuizzineSettings | None = None) -> DocumentStore:
    settings = settings or get_settings()
    return DocumentStore(get_storage(settings.resolved_storage_url), key=settings.storage_key)


def get_repository(settings: QuizzineSettings | None = None) -> QuestionRepository:
    settings = settings or get_settings()
    return QuestionRepository(settings.question_bank_url, timeout=settings.fetch_timeout_seconds)


async def _fetch_bank() -> QuestionBank:
    async with get_repository() as repository:
        return await repository.get_all()


def load_bank() -> QuestionBank:
    bank = asyncio.run(_fetch_bank())
    if bank.is_empty:
        console.print("[yellow]Question bank is empty or could not be loaded.[/yellow]")
    return bank


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def startup() -> None:
    """Configure logging and count today's visit toward the streak."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    StreakTracker(get_store(settings)).record_activity()


# =============================================================================
# Courses
# =============================================================================


@app.command()
def courses() -> None:
    """List courses in the question bank."""
    bank = load_bank()
    current = PreferencesManager(get_store()).current_course_id(bank)

    table = Table(title="Courses")
    table.add_column("")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Questions", justify="right")
    for course in bank.courses:
        marker = "*" if course.id == current else ""
        table.add_row(marker, course.id, course.name, str(len(bank.for_course(course.id))))
    console.print(table)


@app.command()
def weeks(
    course: str | None = typer.Option(None, "--course", help="Course id (default: current)"),
) -> None:
    """List the weeks of a course."""
    bank = load_bank()
    course_id = course or PreferencesManager(get_store()).current_course_id(bank)
    if course_id is None:
        _fail("No course available.")

    table = Table(title=f"Weeks of {course_id}")
    table.add_column("Week", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("Questions", justify="right")
    table.add_column("Tags", style="dim")
    for summary in bank.weeks(course_id):
        table.add_row(
            str(summary.week),
            summary.title or "",
            str(summary.question_count),
            ", ".join(summary.tags),
        )
    console.print(table)


@app.command("select-course")
def select_course(course_id: str = typer.Argument(..., help="Course id")) -> None:
    """Choose the course used by weekly, full and Smart Boost quizzes."""
    bank = load_bank()
    if bank.course(course_id) is None:
        _fail(f"Unknown course: {course_id}")
    PreferencesManager(get_store()).select_course(course_id)
    console.print(f"[green]Current course set to {course_id}[/green]")


# =============================================================================
# Quiz
# =============================================================================


async def _start_session(mode: QuizMode, week: int | None, quiz_id: str | None) -> QuizSession:
    async with get_repository() as repository:
        session = QuizSession(mode, get_store(), repository, week=week, custom_quiz_id=quiz_id)
        await session.load()
    return session


def _ask_answer(session: QuizSession) -> None:
    view = session.current_view
    position, total = session.progress
    body = "\n".join(f"  {i}. {option}" for i, option in enumerate(view.options, start=1))
    console.print(Panel(f"{view.question.question}\n\n{body}", title=f"{position}/{total}"))

    choice = IntPrompt.ask(
        "Your answer",
        choices=[str(i) for i in range(1, len(view.options) + 1)],
        show_choices=False,
    )
    answer = session.answer(choice - 1)
    if answer.correct:
        console.print("[green]Correct![/green]")
    else:
        console.print(f"[red]Incorrect.[/red] Answer: {view.options[view.correct_index]}")


def _print_review(session: QuizSession) -> None:
    view = session.start_review()
    while True:
        answer = session.answer_for(view.question_id)
        mark = "[green]✓[/green]" if answer and answer.correct else "[red]✗[/red]"
        console.print(f"{mark} {view.question.question}")
        if answer is not None:
            console.print(f"    you: {answer.selected_option_text}")
        console.print(f"    correct: {view.options[view.correct_index]}")
        if session.current_index == len(session.questions) - 1:
            break
        view = session.review_next()
    session.back_to_results()


@app.command()
def quiz(
    mode: QuizMode = typer.Argument(..., help="weekly, full, bookmark, smart or custom"),
    week: int | None = typer.Option(None, "--week", "-w", help="Week number (weekly mode)"),
    quiz_id: str | None = typer.Option(None, "--quiz-id", help="Custom quiz id (custom mode)"),
) -> None:
    """Take a quiz interactively."""
    session = asyncio.run(_start_session(mode, week, quiz_id))
    if session.state is SessionState.EMPTY:
        console.print("[yellow]No questions available for this quiz.[/yellow]")
        return

    console.print(f"[bold]{session.title}[/bold]")
    while True:
        while session.state is SessionState.IN_PROGRESS:
            _ask_answer(session)

        attempt = session.attempt
        console.print(
            Panel(f"{attempt.score} / {attempt.total_questions} correct ({attempt.percentage}%)", title="Results")
        )

        has_incorrect = attempt.score < attempt.total_questions
        choices = ["review", "retry", "quit"] if has_incorrect else ["review", "quit"]
        action = Prompt.ask("Next", choices=choices, default="quit")
        while action == "review":
            _print_review(session)
            action = Prompt.ask("Next", choices=choices, default="quit")
        if action == "retry":
            session.retry_incorrect()
            continue
        break

    session.close()


# =============================================================================
# Progress
# =============================================================================


@app.command()
def stats() -> None:
    """Show the progress dashboard."""
    doc = get_store().load()
    summary = summarize(doc.attempts, doc.streaks.current_streak)

    table = Table(title="Progress")
    table.add_column("Metric")
    table.add_column("Value", justify="right", style="cyan")
    table.add_row("Quizzes taken", str(summary.total_attempts))
    table.add_row("Questions answered", str(summary.total_questions_answered))
    table.add_row("Average score", f"{summary.average_score}%")
    table.add_row("Current streak", f"{summary.current_streak} days")
    console.print(table)

    if not doc.attempts:
        console.print("[dim]No quizzes taken yet.[/dim]")
        return

    weekly = weekly_scores(doc.attempts)
    if weekly:
        week_table = Table(title="Weekly scores")
        week_table.add_column("Week")
        week_table.add_column("Score", justify="right")
        for entry in weekly:
            week_table.add_row(entry.label, f"{entry.score}%")
        console.print(week_table)

    history = Table(title="Recent quizzes")
    history.add_column("When")
    history.add_column("Quiz")
    history.add_column("Score", justify="right")
    for attempt in recent_attempts(doc.attempts):
        history.add_row(
            attempt.timestamp.strftime("%Y-%m-%d %H:%M"),
            quiz_title(attempt.mode, week=attempt.week),
            f"{attempt.score}/{attempt.total_questions}",
        )
    console.print(history)

    tags = tag_performance(doc.attempts, load_bank())
    if tags:
        tag_table = Table(title="By tag")
        tag_table.add_column("Tag")
        tag_table.add_column("Correct", justify="right")
        tag_table.add_column("%", justify="right")
        for entry in tags:
            tag_table.add_row(entry.tag, f"{entry.correct}/{entry.total}", f"{entry.percentage}%")
        console.print(tag_table)


@app.command()
def streak() -> None:
    """Show the current activity streak."""
    state = StreakTracker(get_store()).current()
    if not state.last_activity_date:
        console.print("No activity yet.")
        return
    console.print(
        f"[bold]{state.current_streak}[/bold] day streak (last active {state.last_activity_date})"
    )


# =============================================================================
# Bookmarks
# =============================================================================


@app.command()
def bookmark(question_id: str = typer.Argument(..., help="Question id")) -> None:
    """Toggle a bookmark."""
    if BookmarkManager(get_store()).toggle_bookmark(question_id):
        console.print(f"[green]Bookmarked {question_id}[/green]")
    else:
        console.print(f"Removed bookmark {question_id}")


@app.command()
def bookmarks() -> None:
    """List bookmarked questions."""
    manager = BookmarkManager(get_store())
    questions = manager.bookmarked_questions(load_bank())
    if not questions:
        console.print("[dim]No bookmarks.[/dim]")
        return
    table = Table(title="Bookmarks")
    table.add_column("ID", style="cyan")
    table.add_column("Course")
    table.add_column("Week", justify="right")
    table.add_column("Question")
    for q in questions:
        table.add_row(q.id, q.course_id, str(q.week), q.question)
    console.print(table)


# =============================================================================
# Custom quizzes
# =============================================================================


@custom_app.command("create")
def custom_create(
    name: str = typer.Argument(..., help="Quiz name"),
    question_ids: list[str] = typer.Argument(..., help="Question ids in order"),
) -> None:
    """Create a custom quiz from question ids."""
    try:
        created = CustomQuizManager(get_store()).save_custom_quiz(name, question_ids)
    except QuizzineError as e:
        _fail(str(e))
    console.print(f"[green]Created custom quiz {created.id}[/green] ({len(created.question_ids)} questions)")


@custom_app.command("list")
def custom_list() -> None:
    """List custom quizzes."""
    quizzes = CustomQuizManager(get_store()).list_custom_quizzes()
    if not quizzes:
        console.print("[dim]No custom quizzes.[/dim]")
        return
    table = Table(title="Custom quizzes")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Questions", justify="right")
    table.add_column("Created")
    for q in quizzes:
        table.add_row(q.id, q.name, str(len(q.question_ids)), q.timestamp.strftime("%Y-%m-%d"))
    console.print(table)


@custom_app.command("show")
def custom_show(quiz_id: str = typer.Argument(..., help="Custom quiz id")) -> None:
    """Show the questions a custom quiz currently resolves to."""
    manager = CustomQuizManager(get_store())
    if manager.get_custom_quiz(quiz_id) is None:
        _fail(f"Custom quiz not found: {quiz_id}")
    bank = load_bank()
    for q in manager.get_questions_for_custom_quiz(quiz_id, bank.questions_by_id):
        console.print(f"[cyan]{q.id}[/cyan] {q.question}")


@custom_app.command("rename")
def custom_rename(
    quiz_id: str = typer.Argument(..., help="Custom quiz id"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a custom quiz."""
    try:
        CustomQuizManager(get_store()).update_custom_quiz(quiz_id, name=name)
    except QuizzineError as e:
        _fail(str(e))
    console.print(f"[green]Renamed {quiz_id}[/green]")


@custom_app.command("delete")
def custom_delete(quiz_id: str = typer.Argument(..., help="Custom quiz id")) -> None:
    """Delete a custom quiz."""
    try:
        CustomQuizManager(get_store()).delete_custom_quiz(quiz_id)
    except QuizzineError as e:
        _fail(str(e))
    console.print(f"Deleted {quiz_id}")


# =============================================================================
# Settings
# =============================================================================


@settings_app.command("show")
def settings_show() -> None:
    """Show current settings."""
    current = PreferencesManager(get_store()).get_settings()
    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in current.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


def _coerce_setting(key: str, value: str) -> object:
    field = UserSettings.model_fields.get(key)
    if field is None:
        return value
    if field.annotation is bool:
        lowered = value.lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{key} expects on/off, got {value!r}")
    return value


@settings_app.command("set")
def settings_set(
    key: str = typer.Argument(..., help="hard_mode, reminders, dark_mode, last_visited_week, current_course_id"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change one setting."""
    try:
        PreferencesManager(get_store()).update_settings(**{key: _coerce_setting(key, value)})
    except ValueError as e:
        _fail(str(e))
    console.print(f"[green]{key} = {value}[/green]")


# =============================================================================
# Data
# =============================================================================


@data_app.command("export")
def data_export(
    directory: Path | None = typer.Option(None, "--dir", help="Target directory"),
) -> None:
    """Write a timestamped JSON backup."""
    path = get_store().export_to_file(directory or get_settings().export_dir)
    console.print(f"[green]Exported to {path}[/green]")


@data_app.command("import")
def data_import(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Backup JSON file"),
) -> None:
    """Replace all local data with a backup file."""
    if not get_store().import_json(path.read_text(encoding="utf-8")):
        _fail("Failed to import data. Invalid format.")
    console.print("[green]Data imported successfully[/green]")


@data_app.command("reset")
def data_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Erase all local data."""
    if not yes and not Confirm.ask("Reset all data?"):
        raise typer.Abort()
    get_store().reset()
    console.print("All data has been reset")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
