"""
Theory Practice CLI - driving-theory exam practice in the terminal.

Usage:
    theory start                  # Weighted drill focused on weak questions
    theory start sequential       # Walk the bank in order from question 1
    theory start sequential -r    # Continue where the last sequential run stopped
    theory start test             # Timed 40-question exam
    theory stats                  # Progress summary and mastery grid
    theory show 17                # One question with its answer and history
    theory reset                  # Forget all progress
"""

from __future__ import annotations

import random
import sys
import time
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, Prompt

from config import Settings, get_settings
from src.cli import render
from src.practice.bank import QuestionBank, load_bank
from src.practice.errors import BankLoadError
from src.practice.progress import ProgressStore
from src.practice.session import Mode, SessionController, SessionStatus
from src.practice.stats import question_report, question_row, summarize, tier_counts
from src.practice.storage import JsonFileStore

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="theory",
    help="Driving-theory practice - adaptive drills, sequential review and timed tests",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

SKIP_INPUTS = {"s", "skip"}
QUIT_INPUTS = {"q", "quit", "exit"}


@app.callback()
def main_callback() -> None:
    """Configure logging before any command runs."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


def _open_progress(settings: Settings) -> tuple[QuestionBank, ProgressStore]:
    """Load the bank and the learner's progress, or exit with an error."""
    try:
        bank = load_bank(settings.bank_path, limit=settings.bank_limit)
    except BankLoadError as e:
        logger.error(str(e))
        console.print(f"[red]Failed to load quiz data: {e}[/]")
        raise typer.Exit(1)

    store = ProgressStore(JsonFileStore(settings.data_dir), bank.numbers())
    store.load()
    return bank, store


# =============================================================================
# Practice
# =============================================================================


@app.command()
def start(
    mode: Annotated[
        Mode, typer.Argument(help="random, sequential or test")
    ] = Mode.RANDOM,
    resume: Annotated[
        bool, typer.Option("--resume", "-r", help="Sequential: continue from the saved position")
    ] = False,
    seed: Annotated[
        int | None, typer.Option("--seed", help="Seed the question order for a reproducible run")
    ] = None,
) -> None:
    """
    Start a practice session.

    Answer with the choice number, [bold]s[/] to skip (counts as incorrect)
    or [bold]q[/] to quit.

    In test mode the countdown is checked after each input, so time
    spent idle at the prompt is reported when the next answer is typed.
    """
    settings = get_settings()
    bank, store = _open_progress(settings)

    controller = SessionController.from_settings(bank, store, settings, rng=random.Random(seed))
    controller.start(mode, resume=resume)

    try:
        _run_session(controller)
    except KeyboardInterrupt:
        controller.exit()
        console.print()

    render.session_summary(console, controller)


def _run_session(controller: SessionController) -> None:
    """Question loop; returns when the run finishes or the learner quits."""
    controller.advance()

    while controller.state.status is SessionStatus.RUNNING:
        question = controller.state.current
        render.question_panel(console, controller)

        raw = Prompt.ask("Answer", console=console).strip().lower()

        controller.tick()
        if controller.state.status is not SessionStatus.RUNNING:
            console.print("[yellow]Time is up![/]")
            return

        if raw in QUIT_INPUTS:
            controller.exit()
            return
        if raw in SKIP_INPUTS:
            controller.skip()
            continue
        if not raw.isdigit() or not 1 <= int(raw) <= len(question.choices):
            console.print(f"[yellow]Enter a number from 1 to {len(question.choices)}, s or q[/]")
            continue

        outcome = controller.answer(int(raw) - 1)
        render.feedback(console, outcome)

        if outcome.auto_advance_ms is not None:
            time.sleep(outcome.auto_advance_ms / 1000)
        else:
            raw = Prompt.ask("Press Enter for the next question", default="", console=console)
            if raw.strip().lower() in QUIT_INPUTS:
                controller.exit()
                return

        if controller.state.status is SessionStatus.RUNNING:
            controller.advance()


# =============================================================================
# Progress Commands
# =============================================================================


@app.command()
def stats() -> None:
    """Show overall progress and the per-question mastery grid."""
    settings = get_settings()
    bank, store = _open_progress(settings)
    records = store.records()

    render.progress_summary(console, summarize(records), tier_counts(records))
    render.mastery_grid(console, question_report(bank, records))


@app.command()
def show(
    number: Annotated[int, typer.Argument(help="Question number")],
) -> None:
    """Show one question with its correct answer and your history."""
    settings = get_settings()
    bank, store = _open_progress(settings)

    if number not in bank:
        console.print(f"[red]No question {number} (bank has 1-{len(bank)})[/]")
        raise typer.Exit(1)

    question = bank.get(number)
    record = store.get(number)
    render.question_detail(console, question, record, question_row(question, record))


@app.command()
def reset(
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")
    ] = False,
) -> None:
    """Forget all recorded progress and the sequential position."""
    settings = get_settings()
    _, store = _open_progress(settings)

    if not yes and not Confirm.ask("Erase all progress?", console=console):
        console.print("[dim]Nothing changed[/]")
        return

    store.reset()
    console.print("[green]✓ Progress reset[/]")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
