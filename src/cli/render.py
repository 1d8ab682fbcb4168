"""
Terminal rendering for practice sessions and progress views.

Pure presentation: every function takes engine objects and a Console and
prints. No engine state is changed here.
"""

from __future__ import annotations

from rich import box
from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.practice.bank import Question
from src.practice.mastery import MasteryTier
from src.practice.progress import ProgressRecord
from src.practice.session import AnswerOutcome, Mode, SessionController, SessionStatus
from src.practice.stats import ProgressSummary, QuestionReport

CORRECT_MARK = "✓"
INCORRECT_MARK = "✗"


def header_label(controller: SessionController) -> str:
    """Position label shown above each question."""
    state = controller.state
    if state.current is None:
        return ""
    if state.mode is Mode.TEST:
        return f"Question {state.cursor}/{len(state.sequence)}"
    if state.mode is Mode.SEQUENTIAL:
        return f"Question {state.current.number}/{len(controller.bank)}"
    return f"Question {state.current.number}"


def question_panel(console: Console, controller: SessionController) -> None:
    """Display the current question with numbered choices."""
    question = controller.state.current
    body = Text(question.display_prompt, style="bold")
    for image in question.images:
        body.append(f"\n[image] {image}", style="dim")
    body.append("\n")
    for i, choice in enumerate(question.choices, start=1):
        body.append(f"\n  {i}. {choice.text}")

    subtitle = None
    if controller.state.mode is Mode.TEST:
        subtitle = f"⏱ {controller.format_remaining()}"

    console.print(
        Panel(
            body,
            title=f"[bold cyan]{header_label(controller)}[/bold cyan]",
            subtitle=subtitle,
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        )
    )


def feedback(console: Console, outcome: AnswerOutcome) -> None:
    if outcome.correct:
        console.print(f"[bold green]{CORRECT_MARK} Correct![/bold green]")
    else:
        console.print(f"[bold red]{INCORRECT_MARK} Incorrect[/bold red]")
        console.print(f"  Answer: [green]{outcome.correct_choice.text}[/green]")


def session_summary(console: Console, controller: SessionController) -> None:
    state = controller.state
    table = Table(title="Session Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Mode", state.mode.value.title() if state.mode else "-")
    table.add_row("Status", state.status.value.title())
    if state.mode is Mode.TEST:
        table.add_row("Questions Served", f"{state.cursor}/{len(state.sequence)}")
    else:
        table.add_row("Answered", str(state.answered))
    table.add_row("Correct", str(state.correct))
    console.print(table)

    if state.mode is Mode.TEST and state.status is SessionStatus.FINISHED:
        console.print("[bold cyan]Test completed![/bold cyan]")


def progress_summary(console: Console, summary: ProgressSummary, tiers: dict[MasteryTier, int]) -> None:
    table = Table(title="Progress")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Questions Seen", str(summary.questions_seen))
    table.add_row("Total Correct", str(summary.total_correct))
    table.add_row("Accuracy", f"{summary.accuracy_pct}%")
    for tier, count in tiers.items():
        table.add_row(f"[{tier.color}]{tier.display_name}[/{tier.color}]", str(count))
    console.print(table)


def mastery_grid(console: Console, rows: list[QuestionReport]) -> None:
    """Grid of question numbers coloured by mastery tier."""
    cells = [Text(f"{row.number:>3}", style=row.tier.color) for row in rows]
    console.print(Panel(Columns(cells, equal=True), title="Mastery", border_style="cyan"))
    legend = "  ".join(f"[{t.color}]■ {t.display_name}[/{t.color}]" for t in MasteryTier)
    console.print(legend)


def question_detail(console: Console, question: Question, record: ProgressRecord, row: QuestionReport) -> None:
    """Full view of one question: prompt, choices, answer and history."""
    body = Text()
    body.append(f"{question.display_prompt}\n\n", style="bold")
    for image in question.images:
        body.append(f"[image] {image}\n", style="dim")
    for choice in question.choices:
        body.append(f"{choice.text}\n")
    answer = f"\n{CORRECT_MARK} {row.answer}"
    if record.seen:
        answer += f" ({record.correct_count}/{record.attempt_count})"
    body.append(answer, style="green")

    console.print(Panel(body, title=f"Question {question.number}", border_style=row.tier.color))
    console.print(
        f"Tier: [{row.tier.color}]{row.tier.display_name}[/{row.tier.color}]  "
        f"Weight: {row.weight:.1f}  "
        f"Avg time: {record.avg_time_ms / 1000:.1f}s"
    )
