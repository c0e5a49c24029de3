"""
Command-line interface for studying a deck.
"""

import logging
from datetime import date
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from flipdeck.models import Difficulty, Flashcard
from flipdeck.review_manager import AnswerOutcome, StudySessionManager
from flipdeck.session_engine import SessionState

logger = logging.getLogger(__name__)
console = Console()


def _get_difficulty() -> Difficulty:
    """
    Prompt until the user enters a difficulty between 1 and 3.
    """
    while True:
        try:
            value = int(
                console.input(
                    "[bold]Difficulty (1:Easy, 2:Medium, 3:Hard): [/bold]"
                )
            )
            if 1 <= value <= 3:
                return Difficulty(value)
            console.print(
                "[bold red]Invalid difficulty. Please enter 1, 2 or 3.[/bold red]"
            )
        except (ValueError, TypeError):
            console.print(
                "[bold red]Invalid input. Please enter a number.[/bold red]"
            )


def _show_front(card: Flashcard) -> None:
    console.print(Panel(card.front, title="Front", border_style="green"))
    console.input("[italic]Press Enter to reveal the back...[/italic]")


def _show_back(card: Flashcard) -> None:
    console.print(Panel(card.back, title="Back", border_style="blue"))


def _report_answer(manager: StudySessionManager, outcome: AnswerOutcome) -> None:
    verdict = (
        "[green]Correct.[/green]" if outcome.correct else "[red]Marked hard.[/red]"
    )
    if not outcome.recorded:
        console.print(
            f"{verdict} [bold yellow]Could not save this review; "
            "continuing with the session.[/bold yellow]"
        )
        return
    next_date = manager.scheduler.next_review_date(outcome.difficulty)
    days = (next_date - date.today()).days
    console.print(
        f"{verdict} Next review in [bold]{days} day{'s' if days != 1 else ''}"
        f"[/bold] on {next_date.strftime('%Y-%m-%d')}."
    )


def _display_summary(manager: StudySessionManager) -> None:
    stats = manager.get_session_stats()
    table = Table(title="Session Complete", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Cards Studied", str(stats["studied"]))
    table.add_row("Correct", str(stats["correct"]))
    table.add_row("Incorrect", str(stats["incorrect"]))
    table.add_row("Accuracy", f"{stats['accuracy']}%")
    table.add_row("Time", f"{stats['elapsed_minutes']}m")
    console.print(table)
    if manager.recorder_errors:
        console.print(
            f"[yellow]{len(manager.recorder_errors)} review(s) could not be saved.[/yellow]"
        )


def _run_cards(manager: StudySessionManager) -> None:
    while (card := manager.current_card) is not None:
        session = manager.session
        console.rule(
            f"[bold]Card {session.position + 1} of {session.total}[/bold]"
        )
        _show_front(card)
        manager.flip()
        _show_back(card)
        outcome = manager.answer(_get_difficulty())
        _report_answer(manager, outcome)
        console.print("")


def start_study_flow(
    manager: StudySessionManager,
    shuffle: Optional[bool] = None,
    due_only: bool = False,
    seed: Optional[int] = None,
) -> None:
    """
    Manages the command-line study flow.

    Args:
        manager: An instance of StudySessionManager.
        shuffle: Shuffle the cards; None uses the configured default.
        due_only: Only study cards that are due for review.
        seed: Optional seed for a reproducible shuffle.
    """
    console.print("[bold cyan]Starting study session...[/bold cyan]")
    manager.initialize_session(shuffle=shuffle, due_only=due_only, seed=seed)

    if manager.state is SessionState.NOTHING_TO_STUDY:
        if due_only:
            console.print(
                "[bold green]All caught up! No cards are due for review.[/bold green]"
            )
        else:
            console.print(
                "[bold yellow]This deck has no cards to study.[/bold yellow]"
            )
        return

    while True:
        _run_cards(manager)
        _display_summary(manager)
        again = Prompt.ask(
            "Study these cards again?",
            choices=["y", "n"],
            default="n",
            console=console,
        )
        if again != "y":
            break
        manager.restart()

    console.print("[bold cyan]Study session finished. Well done![/bold cyan]")
