"""
Unit tests for the vocabcore.cli.study_ui module.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from vocabcore.cli.study_ui import display_summary, start_study_flow
from vocabcore.db.database import CardDatabase
from vocabcore.exceptions import CardOperationError
from vocabcore.models import Rating, SessionSummary
from vocabcore.session_runner import SessionRunner


@pytest.fixture
def mock_store() -> MagicMock:
    """Provides a mock card store with an empty pool."""
    store = MagicMock(spec=CardDatabase)
    store.load_pool.return_value = []
    return store


@pytest.fixture
def runner(mock_store, seeded_selector, now) -> SessionRunner:
    return SessionRunner(store=mock_store, selector=seeded_selector, clock=lambda: now)


@pytest.fixture
def one_card_pool(mock_store, make_card):
    card = make_card(front="le pain", back="bread", example="Du pain frais.")
    mock_store.load_pool.return_value = [card]
    return card


def test_study_flow_no_cards(runner, mock_store, owner_id, capsys):
    summary = start_study_flow(runner, owner_id)

    captured = capsys.readouterr()
    assert "No cards to study." in captured.out
    assert "Study session finished." in captured.out
    assert summary.seen == 0
    mock_store.load_pool.assert_called_once_with(owner_id, course_id=None)
    mock_store.save.assert_not_called()


def test_study_flow_with_one_card(runner, mock_store, owner_id, one_card_pool, now, capsys):
    with patch("rich.console.Console.input", side_effect=["", "3"]) as mock_input:
        summary = start_study_flow(runner, owner_id, course_id="french-101")

    assert mock_input.call_count == 2
    mock_store.load_pool.assert_called_once_with(owner_id, course_id="french-101")
    mock_store.save.assert_called_once()
    saved = mock_store.save.call_args[0][0]
    assert saved.uuid == one_card_pool.uuid
    assert saved.repetitions == 1

    captured = capsys.readouterr()
    assert "Card 1 of 1" in captured.out
    assert "le pain" in captured.out
    assert "bread" in captured.out
    assert "Du pain frais." in captured.out
    due_str = (now + timedelta(days=1)).strftime("%Y-%m-%d")
    assert f"Next review in 1 days on {due_str}" in captured.out
    assert "Study session finished. Well done!" in captured.out
    assert summary.seen == 1
    assert summary.by_rating[Rating.Easy] == 1


def test_study_flow_reprompts_on_invalid_rating(runner, mock_store, owner_id, one_card_pool, capsys):
    with patch("rich.console.Console.input", side_effect=["", "abc", "7", "2"]):
        summary = start_study_flow(runner, owner_id)

    captured = capsys.readouterr()
    assert "Invalid input. Please enter a number." in captured.out
    assert "Invalid rating. Please enter a number between 0 and 3." in captured.out
    mock_store.save.assert_called_once()
    assert summary.by_rating[Rating.Good] == 1


def test_study_flow_retries_failed_save(runner, mock_store, owner_id, one_card_pool, capsys):
    mock_store.save.side_effect = [CardOperationError("disk full"), None]

    with patch("rich.console.Console.input", side_effect=["", "3", "y"]):
        summary = start_study_flow(runner, owner_id)

    captured = capsys.readouterr()
    assert "Could not save this rating: disk full" in captured.out
    assert mock_store.save.call_count == 2
    assert summary.seen == 1
    assert "Study session finished. Well done!" in captured.out


def test_study_flow_abandoned_after_failed_save(runner, mock_store, owner_id, make_card, capsys):
    mock_store.load_pool.return_value = [make_card(), make_card()]
    mock_store.save.side_effect = CardOperationError("disk full")

    with patch("rich.console.Console.input", side_effect=["", "3", "n"]):
        summary = start_study_flow(runner, owner_id)

    captured = capsys.readouterr()
    assert "Session abandoned. Ratings already saved are kept." in captured.out
    assert "Well done!" not in captured.out
    assert mock_store.save.call_count == 1
    assert summary.seen == 0
    assert summary.total_cards == 2


def test_display_summary_lists_every_rating(capsys):
    summary = SessionSummary(
        seen=3,
        total_cards=5,
        by_rating={Rating.Hard: 1, Rating.Difficult: 0, Rating.Good: 0, Rating.Easy: 2},
    )
    display_summary(summary)

    captured = capsys.readouterr()
    assert "Session Summary: 3 of 5 cards" in captured.out
    assert "3 of\n" not in captured.out
    for name in ("Hard", "Difficult", "Good", "Easy"):
        assert name in captured.out
