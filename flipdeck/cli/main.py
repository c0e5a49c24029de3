"""
CLI entry point for flipdeck.
"""

# Standard library imports
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Third-party imports
import typer
from rich.console import Console
from rich.table import Table

# Local application imports
from flipdeck.config import settings
from flipdeck.db.database import FlashcardDatabase
from flipdeck.exceptions import DatabaseError, FlipdeckError
from flipdeck.models import Deck, Difficulty, Flashcard
from flipdeck.scheduler import IntervalScheduler
from flipdeck.stats import compute_overview
from flipdeck.cli._study_logic import study_logic


console = Console()

app = typer.Typer(
    name="flipdeck",
    help="flipdeck: flashcard decks with interval-based reviews.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# ---------------------------------------------------------------------------
# Helpers for resolving the --db path (--db flag, else FLIPDECK_DB_PATH)
# ---------------------------------------------------------------------------


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve db path from the CLI flag, falling back to settings."""
    if db is not None:
        return db
    return settings.db_path


_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. "
    "Falls back to the FLIPDECK_DB_PATH setting.",
)

_deck_argument = typer.Argument(  # noqa: B008
    ..., help="Deck name or id."
)


def _fail(message: str, error: Exception) -> None:
    console.print(f"[bold red]{message}: {error}[/bold red]")
    raise typer.Exit(code=1) from error


def _difficulty_label(difficulty: int) -> str:
    try:
        return Difficulty(difficulty).name
    except ValueError:
        return "Unknown"


def _format_ts(ts: Optional[datetime]) -> str:
    return ts.strftime("%Y-%m-%d %H:%M") if ts else "Never reviewed"


# ---------------------------------------------------------------------------
# Setup & deck commands
# ---------------------------------------------------------------------------


@app.command()
def init(db: Optional[Path] = _db_option):
    """Create the database tables if they do not exist."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
        console.print(f"[green]Database ready at[/green] {db_path}")
    except DatabaseError as e:
        _fail("A database error occurred", e)


@app.command("add-deck")
def add_deck(
    name: str = typer.Argument(..., help="Name of the new deck."),  # noqa: B008
    description: Optional[str] = typer.Option(  # noqa: B008
        None, "--description", "-d", help="Optional deck description."
    ),
    db: Optional[Path] = _db_option,
):
    """Create a new deck."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            deck = db_inst.create_deck(Deck(name=name, description=description))
        console.print(
            f"[green]Created deck[/green] [bold]{deck.name}[/bold] ({deck.id})"
        )
    except (DatabaseError, ValueError) as e:
        _fail("Could not create deck", e)


@app.command("list-decks")
def list_decks(db: Optional[Path] = _db_option):
    """List all decks with their card counts."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            decks = db_inst.get_all_decks()
            if not decks:
                console.print("[yellow]No decks found.[/yellow]")
                return

            table = Table(title="Decks")
            table.add_column("Name", style="cyan")
            table.add_column("Id", style="dim")
            table.add_column("Cards", style="magenta")
            table.add_column("Reviewed", style="green")
            table.add_column("Avg Difficulty", style="yellow")
            for deck in decks:
                deck_stats = db_inst.get_deck_stats(deck.id)
                table.add_row(
                    deck.name,
                    str(deck.id),
                    str(deck_stats.total_cards),
                    str(deck_stats.reviewed_cards),
                    f"{deck_stats.avg_difficulty:.1f}",
                )
            console.print(table)
    except DatabaseError as e:
        _fail("A database error occurred", e)


@app.command("delete-deck")
def delete_deck(
    deck_ref: str = _deck_argument,
    yes: bool = typer.Option(  # noqa: B008
        False, "--yes", "-y", help="Do not ask for confirmation."
    ),
    db: Optional[Path] = _db_option,
):
    """Delete a deck and all of its flashcards."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            deck = db_inst.resolve_deck(deck_ref)
            if not yes and not typer.confirm(
                f"Delete deck '{deck.name}' and all of its cards?"
            ):
                console.print("Aborted.")
                raise typer.Exit(code=0)
            removed = db_inst.delete_deck(deck.id)
        console.print(
            f"[green]Deleted deck[/green] [bold]{deck.name}[/bold] "
            f"and {removed} card(s)."
        )
    except DatabaseError as e:
        _fail("Could not delete deck", e)


@app.command("edit-deck")
def edit_deck(
    deck_ref: str = _deck_argument,
    name: Optional[str] = typer.Option(  # noqa: B008
        None, "--name", "-n", help="New deck name."
    ),
    description: Optional[str] = typer.Option(  # noqa: B008
        None, "--description", "-d", help="New deck description."
    ),
    db: Optional[Path] = _db_option,
):
    """Rename a deck or change its description."""
    if name is None and description is None:
        console.print(
            "[yellow]Nothing to change; pass --name or --description.[/yellow]"
        )
        raise typer.Exit(code=1)
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            deck = db_inst.resolve_deck(deck_ref)
            deck = db_inst.update_deck(
                deck.id, name=name, description=description
            )
        console.print(f"[green]Updated deck[/green] [bold]{deck.name}[/bold]")
    except (DatabaseError, ValueError) as e:
        _fail("Could not update deck", e)


# ---------------------------------------------------------------------------
# Card commands
# ---------------------------------------------------------------------------


@app.command("add-card")
def add_card(
    deck_ref: str = _deck_argument,
    front: str = typer.Argument(..., help="Question side."),  # noqa: B008
    back: str = typer.Argument(..., help="Answer side."),  # noqa: B008
    db: Optional[Path] = _db_option,
):
    """Add a flashcard to a deck."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            deck = db_inst.resolve_deck(deck_ref)
            card = db_inst.add_flashcard(
                Flashcard(deck_id=deck.id, front=front, back=back)
            )
        console.print(
            f"[green]Added card[/green] {card.id} to [bold]{deck.name}[/bold]"
        )
    except (DatabaseError, ValueError) as e:
        _fail("Could not add card", e)


_card_id_argument = typer.Argument(  # noqa: B008
    ..., help="Flashcard id."
)


@app.command("edit-card")
def edit_card(
    card_id: str = _card_id_argument,
    front: Optional[str] = typer.Option(  # noqa: B008
        None, "--front", help="New question side."
    ),
    back: Optional[str] = typer.Option(  # noqa: B008
        None, "--back", help="New answer side."
    ),
    db: Optional[Path] = _db_option,
):
    """Change the front and/or back of a flashcard."""
    if front is None and back is None:
        console.print("[yellow]Nothing to change; pass --front or --back.[/yellow]")
        raise typer.Exit(code=1)
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            card = db_inst.update_flashcard(
                uuid.UUID(card_id), front=front, back=back
            )
        console.print(f"[green]Updated card[/green] {card.id}")
    except (DatabaseError, ValueError) as e:
        _fail("Could not edit card", e)


@app.command("delete-card")
def delete_card(
    card_id: str = _card_id_argument,
    yes: bool = typer.Option(  # noqa: B008
        False, "--yes", "-y", help="Do not ask for confirmation."
    ),
    db: Optional[Path] = _db_option,
):
    """Delete a single flashcard."""
    db_path = _resolve_db_path(db)
    try:
        parsed_id = uuid.UUID(card_id)
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            if not yes and not typer.confirm(f"Delete card {parsed_id}?"):
                console.print("Aborted.")
                raise typer.Exit(code=0)
            db_inst.delete_flashcard(parsed_id)
        console.print(f"[green]Deleted card[/green] {parsed_id}")
    except (DatabaseError, ValueError) as e:
        _fail("Could not delete card", e)


def _cards_table(title: str, cards, scheduler: IntervalScheduler) -> Table:
    now = datetime.now(timezone.utc)
    table = Table(title=title)
    table.add_column("Front", style="cyan")
    table.add_column("Back")
    table.add_column("Difficulty", style="yellow")
    table.add_column("Last Reviewed", style="dim")
    table.add_column("Reviews", style="magenta")
    table.add_column("Due", style="green")
    for card in cards:
        table.add_row(
            card.front,
            card.back,
            _difficulty_label(card.difficulty),
            _format_ts(card.last_reviewed),
            str(card.review_count),
            "yes" if scheduler.is_due(card, now) else "no",
        )
    return table


@app.command("list-cards")
def list_cards(
    deck_ref: str = _deck_argument,
    db: Optional[Path] = _db_option,
):
    """List the flashcards of a deck."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            deck = db_inst.resolve_deck(deck_ref)
            cards = db_inst.list_cards_for_deck(deck.id)
        if not cards:
            console.print(f"[yellow]Deck '{deck.name}' has no cards.[/yellow]")
            return
        console.print(_cards_table(deck.name, cards, IntervalScheduler()))
    except DatabaseError as e:
        _fail("A database error occurred", e)


@app.command()
def due(
    deck_ref: str = _deck_argument,
    db: Optional[Path] = _db_option,
):
    """Show the cards of a deck that are due for review now."""
    db_path = _resolve_db_path(db)
    scheduler = IntervalScheduler()
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            deck = db_inst.resolve_deck(deck_ref)
            cards = db_inst.list_cards_for_deck(deck.id)
        due_cards = scheduler.select_due(cards, datetime.now(timezone.utc))
        if not due_cards:
            console.print(
                "[bold green]All caught up! No cards are due for review.[/bold green]"
            )
            return
        console.print(
            f"[bold]{len(due_cards)}[/bold] card(s) due in [cyan]{deck.name}[/cyan]"
        )
        console.print(_cards_table("Cards Due", due_cards, scheduler))
    except DatabaseError as e:
        _fail("A database error occurred", e)


@app.command()
def schedule():
    """Show the review interval used for each difficulty."""
    table = Table(title="Review Schedule")
    table.add_column("Difficulty", style="cyan")
    table.add_column("Interval", style="magenta")
    for index, days in enumerate(IntervalScheduler().intervals, start=1):
        table.add_row(
            f"{index} ({_difficulty_label(index)})",
            f"{days} day{'s' if days != 1 else ''}",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Study & stats
# ---------------------------------------------------------------------------


@app.command()
def study(
    deck_ref: str = _deck_argument,
    shuffle: Optional[bool] = typer.Option(  # noqa: B008
        None,
        "--shuffle/--no-shuffle",
        help="Shuffle the card order (default from FLIPDECK_SHUFFLE).",
    ),
    due_only: bool = typer.Option(  # noqa: B008
        False, "--due-only", help="Only study cards due for review."
    ),
    seed: Optional[int] = typer.Option(  # noqa: B008
        None, "--seed", help="Seed for a reproducible shuffle."
    ),
    db: Optional[Path] = _db_option,
):
    """Study the cards of a deck one at a time."""
    db_path = _resolve_db_path(db)
    try:
        study_logic(
            deck_ref=deck_ref,
            db_path=db_path,
            shuffle=shuffle,
            due_only=due_only,
            seed=seed,
        )
    except (DatabaseError, FlipdeckError) as e:
        _fail("Study session failed", e)


@app.command()
def stats(
    deck_ref: Optional[str] = typer.Argument(  # noqa: B008
        None, help="Deck name or id; omit for all decks."
    ),
    db: Optional[Path] = _db_option,
):
    """Display study statistics."""
    db_path = _resolve_db_path(db)
    try:
        with FlashcardDatabase(db_path=db_path) as db_inst:
            db_inst.initialize_schema()
            if deck_ref is not None:
                deck = db_inst.resolve_deck(deck_ref)
                deck_stats = db_inst.get_deck_stats(deck.id)
                table = Table(title=f"Deck: {deck.name}", show_header=False)
                table.add_column("Metric", style="cyan")
                table.add_column("Value", style="magenta")
                table.add_row("Total Cards", str(deck_stats.total_cards))
                table.add_row("Reviewed Cards", str(deck_stats.reviewed_cards))
                table.add_row(
                    "Avg Difficulty", f"{deck_stats.avg_difficulty:.1f}"
                )
                console.print(table)
                return

            overview = compute_overview(
                db_inst.get_all_decks(),
                db_inst.get_all_flashcards(),
                recent_limit=settings.recent_activity_limit,
            )
    except DatabaseError as e:
        _fail("A database error occurred", e)

    table = Table(title="Overall Stats", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Total Decks", str(overview.total_decks))
    table.add_row("Total Cards", str(overview.total_cards))
    table.add_row("Total Reviews", str(overview.total_reviews))
    table.add_row("Avg Difficulty", f"{overview.average_difficulty}/3")
    table.add_row("Cards Mastered", str(overview.mastered_cards))
    table.add_row("Needs Review", str(overview.needs_review_cards))
    console.print(table)

    if overview.recent_activity:
        recent = Table(title="Recent Activity")
        recent.add_column("Front", style="cyan")
        recent.add_column("Difficulty", style="yellow")
        recent.add_column("Reviewed", style="dim")
        for card in overview.recent_activity:
            recent.add_row(
                card.front,
                _difficulty_label(card.difficulty),
                _format_ts(card.last_reviewed),
            )
        console.print(recent)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """
    Run the CLI application.

    If an unexpected exception occurs, print a bold red error message to the console and exit the process with status code 1.
    """
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
