"""
CLI entry point for vocabcore.
"""

# Standard library imports
import logging
from pathlib import Path
from typing import Optional
from uuid import UUID

# Third-party imports
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

# Local application imports
from vocabcore import config
from vocabcore.cli.study_ui import start_study_flow
from vocabcore.db.database import CardDatabase
from vocabcore.exceptions import (
    CardNotFoundError,
    CardValidationError,
    PersistenceError,
)
from vocabcore.models import CardContent, CardDraft, Difficulty
from vocabcore.session_runner import SessionRunner


console = Console()

app = typer.Typer(
    name="vocabcore",
    help="Vocabcore: spaced repetition for vocabulary cards.",
    add_completion=False,
    rich_markup_mode="markdown",
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log scheduling and storage activity."
    ),
):
    """Vocabcore: spaced repetition for vocabulary cards."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


# ---------------------------------------------------------------------------
# Helpers for resolving --db and --owner (settings fallback)
# ---------------------------------------------------------------------------


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve db path from the CLI flag, falling back to VOCABCORE_DB_PATH."""
    return db if db is not None else config.settings.db_path


def _resolve_owner(owner: Optional[str]) -> str:
    """Resolve the learner id from the CLI flag or VOCABCORE_OWNER_ID. Exits on missing."""
    if owner:
        return owner
    if config.settings.owner_id:
        return config.settings.owner_id
    console.print(
        "[bold red]Error: --owner is required "
        "(or set the VOCABCORE_OWNER_ID environment variable).[/bold red]"
    )
    raise typer.Exit(code=1)


def _parse_card_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[bold red]Error: '{value}' is not a valid card id.[/bold red]")
        raise typer.Exit(code=1)


_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. "
    "Falls back to VOCABCORE_DB_PATH.",
)

_owner_option = typer.Option(  # noqa: B008
    None,
    "--owner",
    "-o",
    help="Learner id. Falls back to VOCABCORE_OWNER_ID.",
)

_course_option = typer.Option(  # noqa: B008
    None,
    "--course",
    "-c",
    help="Restrict to cards of this course.",
)


# ---------------------------------------------------------------------------
# Card management
# ---------------------------------------------------------------------------


@app.command()
def add(
    front: str = typer.Argument(..., help="Term in the language being learned."),
    back: str = typer.Argument(..., help="Translation of the term."),
    example: Optional[str] = typer.Option(None, "--example", "-e"),
    category: Optional[str] = typer.Option(None, "--category"),
    difficulty: Difficulty = typer.Option(Difficulty.Medium, "--difficulty"),
    course: Optional[str] = _course_option,
    owner: Optional[str] = _owner_option,
    db: Optional[Path] = _db_option,
):
    """Create a new vocabulary card."""
    owner_id = _resolve_owner(owner)
    draft = CardDraft(
        owner_id=owner_id,
        course_id=course,
        front=front,
        back=back,
        example=example,
        category=category,
        difficulty=difficulty,
    )
    try:
        with CardDatabase(db_path=_resolve_db_path(db)) as db_inst:
            card = db_inst.create(draft)
    except CardValidationError as e:
        console.print(f"[bold red]Invalid card:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    except PersistenceError as e:
        console.print(f"[bold red]Database Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Card created:[/green] {card.uuid}")


@app.command()
def edit(
    card_id: str = typer.Argument(..., help="UUID of the card to edit."),
    front: Optional[str] = typer.Option(None, "--front"),
    back: Optional[str] = typer.Option(None, "--back"),
    example: Optional[str] = typer.Option(None, "--example", "-e"),
    category: Optional[str] = typer.Option(None, "--category"),
    difficulty: Optional[Difficulty] = typer.Option(None, "--difficulty"),
    db: Optional[Path] = _db_option,
):
    """Edit the content of a card. Its review schedule is kept."""
    card_uuid = _parse_card_uuid(card_id)
    try:
        with CardDatabase(db_path=_resolve_db_path(db)) as db_inst:
            card = db_inst.get_card_by_uuid(card_uuid)
            if card is None:
                raise CardNotFoundError(f"Card {card_uuid} not found.")
            content = CardContent(
                front=front if front is not None else card.front,
                back=back if back is not None else card.back,
                example=example if example is not None else card.example,
                category=category if category is not None else card.category,
                difficulty=difficulty or card.difficulty,
            )
            db_inst.update_content(card_uuid, content)
    except CardValidationError as e:
        console.print(f"[bold red]Invalid card:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    except PersistenceError as e:
        console.print(f"[bold red]Database Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Card updated:[/green] {card_uuid}")


@app.command("list")
def list_cards(
    course: Optional[str] = _course_option,
    owner: Optional[str] = _owner_option,
    db: Optional[Path] = _db_option,
):
    """List a learner's cards, newest first."""
    owner_id = _resolve_owner(owner)
    try:
        with CardDatabase(db_path=_resolve_db_path(db)) as db_inst:
            cards = db_inst.load_pool(owner_id, course_id=course)
    except PersistenceError as e:
        console.print(f"[bold red]Database Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if not cards:
        console.print("[yellow]No cards found.[/yellow]")
        return

    table = Table(title=f"Cards of {owner_id}")
    table.add_column("Id", style="dim")
    table.add_column("Front", style="cyan")
    table.add_column("Back", style="magenta")
    table.add_column("Category")
    table.add_column("Next Review", style="yellow")
    for card in cards:
        table.add_row(
            str(card.uuid),
            card.front,
            card.back,
            card.category,
            card.next_review.strftime("%Y-%m-%d") if card.next_review else "new",
        )
    console.print(table)


@app.command()
def delete(
    card_id: str = typer.Argument(..., help="UUID of the card to delete."),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
    db: Optional[Path] = _db_option,
):
    """Delete a card."""
    card_uuid = _parse_card_uuid(card_id)
    if not yes:
        confirmed = typer.confirm("Are you sure you want to delete this card?")
        if not confirmed:
            console.print("Delete cancelled.")
            raise typer.Exit()
    try:
        with CardDatabase(db_path=_resolve_db_path(db)) as db_inst:
            deleted = db_inst.delete(card_uuid)
    except PersistenceError as e:
        console.print(f"[bold red]Database Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    if not deleted:
        console.print(f"[bold red]Error: card {card_uuid} not found.[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Card deleted:[/green] {card_uuid}")


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


def _display_overall_stats(cons: Console, stats_data: dict):
    overall_table = Table(title="Overall Stats", show_header=False)
    overall_table.add_column("Metric", style="cyan")
    overall_table.add_column("Value", style="magenta")
    overall_table.add_row("Total Cards", str(stats_data["total_cards"]))
    overall_table.add_row("Due Now", str(stats_data["due_count"]))
    overall_table.add_row("Never Reviewed", str(stats_data["new_count"]))
    mean_easiness = stats_data["mean_easiness"]
    overall_table.add_row(
        "Mean Easiness",
        f"{mean_easiness:.2f}" if mean_easiness is not None else "N/A",
    )
    cons.print(overall_table)


def _display_counter(cons: Console, title: str, label: str, counts: dict):
    table = Table(title=title)
    table.add_column(label, style="cyan")
    table.add_column("Count", style="magenta")
    for key, count in sorted(counts.items()):
        table.add_row(key, str(count))
    cons.print(table)


@app.command()
def stats(
    owner: Optional[str] = _owner_option,
    db: Optional[Path] = _db_option,
):
    """Display statistics about a learner's cards."""
    owner_id = _resolve_owner(owner)
    try:
        with CardDatabase(db_path=_resolve_db_path(db)) as db_inst:
            stats_data = db_inst.get_owner_stats(owner_id)
    except PersistenceError as e:
        console.print(f"[bold]A database error occurred: {e}[/bold]")
        raise typer.Exit(code=1) from e

    _display_overall_stats(console, stats_data)
    if not stats_data["total_cards"]:
        console.print("[yellow]No cards found.[/yellow]")
        return
    _display_counter(console, "Categories", "Category", stats_data["categories"])
    _display_counter(console, "Difficulties", "Difficulty", stats_data["difficulties"])


# ---------------------------------------------------------------------------
# Study
# ---------------------------------------------------------------------------


@app.command()
def study(
    course: Optional[str] = _course_option,
    size: Optional[int] = typer.Option(
        None,
        "--size",
        "-n",
        min=1,
        help="Number of cards in the session. Falls back to VOCABCORE_SESSION_SIZE.",
    ),
    owner: Optional[str] = _owner_option,
    db: Optional[Path] = _db_option,
):
    """Start an interactive study session."""
    owner_id = _resolve_owner(owner)
    target_size = size if size is not None else config.settings.session_size
    try:
        with CardDatabase(db_path=_resolve_db_path(db)) as db_inst:
            runner = SessionRunner(store=db_inst)
            start_study_flow(
                runner, owner_id, course_id=course, target_size=target_size
            )
    except PersistenceError as e:
        console.print(f"[bold]A database error occurred: {e}[/bold]")
        raise typer.Exit(code=1) from e


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """
    Run the CLI application, turning unexpected exceptions into exit code 1.
    """
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
