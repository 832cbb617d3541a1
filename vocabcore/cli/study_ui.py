"""
Command-line interface for studying vocabulary cards.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vocabcore.exceptions import PersistenceError
from vocabcore.models import Card, Rating, SessionSummary, StudySession
from vocabcore.session_runner import SessionRunner

logger = logging.getLogger(__name__)
console = Console()

_RATING_PROMPT = "[bold]Rating (0:Hard, 1:Difficult, 2:Good, 3:Easy): [/bold]"


def _get_user_rating() -> Rating:
    """
    Prompt until the learner enters a rating between 0 and 3.
    """
    while True:
        try:
            rating = int(console.input(_RATING_PROMPT))
        except (ValueError, TypeError):
            console.print(
                "[bold red]Invalid input. Please enter a number.[/bold red]"
            )
            continue
        if Rating.Hard <= rating <= Rating.Easy:
            return Rating(rating)
        console.print(
            "[bold red]Invalid rating. Please enter a number between 0 and 3.[/bold red]"
        )


def _confirm_retry() -> bool:
    answer = console.input("[bold]Retry saving this rating? (y/n): [/bold]")
    return answer.strip().lower() in {"y", "yes"}


def _show_front(card: Card) -> None:
    console.print(Panel(card.front, title="Front", border_style="green"))


def _show_back(card: Card) -> None:
    body = card.back
    if card.example:
        body += f"\n\n[italic]{card.example}[/italic]"
    console.print(Panel(body, title="Back", border_style="blue"))


def _report_outcome(session: StudySession) -> None:
    outcome = session.outcomes[-1]
    due_date_str = outcome.next_review.strftime("%Y-%m-%d")
    console.print(
        f"[green]Saved.[/green] Next review in [bold]{outcome.interval} days[/bold] on {due_date_str}."
    )


def display_summary(summary: SessionSummary) -> None:
    """Print the session summary as a table of rating counts."""
    console.print(
        f"[bold]Session Summary: {summary.seen} of {summary.total_cards} cards[/bold]"
    )
    table = Table()
    table.add_column("Rating", style="cyan")
    table.add_column("Count", style="magenta")
    for rating, count in summary.by_rating.items():
        table.add_row(rating.name, str(count))
    console.print(table)


def _rate_with_retry(
    runner: SessionRunner, session: StudySession, rating: Rating
) -> bool:
    """
    Submit a rating, offering retries while the store keeps failing.

    Returns:
        bool: True once the rating is saved, False if the learner gives up.
    """
    while True:
        try:
            runner.rate(session, rating)
            return True
        except PersistenceError as e:
            logger.error(f"Failed to save rating: {e}")
            console.print(f"[bold red]Could not save this rating: {e}[/bold red]")
            if not _confirm_retry():
                return False


def start_study_flow(
    runner: SessionRunner,
    owner_id: str,
    course_id: Optional[str] = None,
    target_size: int = 10,
) -> SessionSummary:
    """
    Run an interactive study session for one learner.

    Args:
        runner: SessionRunner bound to the learner's card store.
        owner_id: Learner whose cards are studied.
        course_id: Optional course to restrict the pool to.
        target_size: Number of cards to aim for.

    Returns:
        SessionSummary: Counts for the cards rated before the session ended.
    """
    console.print("[bold cyan]Starting study session...[/bold cyan]")
    session = runner.start_session_for_owner(
        owner_id, course_id=course_id, target_size=target_size
    )

    total = len(session.cards)
    if runner.is_complete(session):
        console.print("[bold yellow]No cards to study.[/bold yellow]")
        console.print("[bold cyan]Study session finished.[/bold cyan]")
        return runner.summary(session)

    while not runner.is_complete(session):
        card = session.current_card
        console.rule(f"[bold]Card {session.cursor + 1} of {total}[/bold]")

        _show_front(card)
        console.input("[italic]Press Enter to see the answer...[/italic]")
        runner.reveal(session)
        _show_back(card)

        rating = _get_user_rating()
        if not _rate_with_retry(runner, session, rating):
            console.print(
                "[yellow]Session abandoned. Ratings already saved are kept.[/yellow]"
            )
            break
        _report_outcome(session)
        console.print("")

    summary = runner.summary(session)
    display_summary(summary)
    if runner.is_complete(session):
        console.print("[bold cyan]Study session finished. Well done![/bold cyan]")
    return summary
