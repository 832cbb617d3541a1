# Standard library imports
import re
from pathlib import Path
from unittest.mock import patch
from uuid import UUID, uuid4

# Third-party imports
import pytest
from typer.testing import CliRunner

# Local application imports
from vocabcore import config
from vocabcore.cli import main as cli_main
from vocabcore.cli import study_ui
from vocabcore.cli.main import app
from vocabcore.db.database import CardDatabase


runner = CliRunner()

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


def normalize_output(text: str) -> str:
    """Strip ANSI codes and collapse whitespace so wrapped output can be matched."""
    text = strip_ansi(text)
    return re.sub(r"\s+", " ", text).strip()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables wide enough that cells are never wrapped."""
    monkeypatch.setattr(cli_main.console, "width", 200)
    monkeypatch.setattr(study_ui.console, "width", 200)


@pytest.fixture
def db_file(tmp_path) -> Path:
    return tmp_path / "cli_vocab.db"


@pytest.fixture
def add_card(db_file, owner_id):
    """Add a card through the CLI and return its UUID."""

    def _add(front="le chat", back="the cat", *extra) -> UUID:
        result = runner.invoke(
            app,
            ["add", front, back, "--owner", owner_id, "--db", str(db_file), *extra],
        )
        assert result.exit_code == 0, result.stdout
        match = _UUID_RE.search(strip_ansi(result.stdout))
        assert match, result.stdout
        return UUID(match.group(0))

    return _add


class TestAdd:
    def test_add_creates_card(self, add_card, db_file, owner_id):
        card_uuid = add_card(
            "  le chien ", "the dog", "--example", "Le chien court.",
            "--category", "Animals", "--difficulty", "hard", "--course", "french-101",
        )
        with CardDatabase(db_file) as db:
            card = db.get_card_by_uuid(card_uuid)
        assert card.owner_id == owner_id
        assert card.front == "le chien"
        assert card.example == "Le chien court."
        assert card.category == "Animals"
        assert card.difficulty.value == "hard"
        assert card.course_id == "french-101"

    def test_add_blank_front_fails(self, db_file, owner_id):
        result = runner.invoke(
            app, ["add", "   ", "the cat", "--owner", owner_id, "--db", str(db_file)]
        )
        assert result.exit_code == 1
        output = normalize_output(result.stdout)
        assert "Invalid card:" in output
        assert "front" in output

    def test_missing_owner_fails(self, db_file, monkeypatch):
        monkeypatch.setattr(config.settings, "owner_id", None)
        result = runner.invoke(app, ["add", "oui", "yes", "--db", str(db_file)])
        assert result.exit_code == 1
        assert "--owner is required" in normalize_output(result.stdout)

    def test_owner_falls_back_to_settings(self, db_file, monkeypatch):
        monkeypatch.setattr(config.settings, "owner_id", "from-env")
        result = runner.invoke(app, ["add", "oui", "yes", "--db", str(db_file)])
        assert result.exit_code == 0
        with CardDatabase(db_file) as db:
            assert len(db.load_pool("from-env")) == 1


class TestList:
    def test_list_empty(self, db_file, owner_id):
        result = runner.invoke(app, ["list", "--owner", owner_id, "--db", str(db_file)])
        assert result.exit_code == 0
        assert "No cards found." in result.stdout

    def test_list_shows_cards(self, add_card, db_file, owner_id):
        add_card("la pomme", "the apple")
        result = runner.invoke(app, ["list", "--owner", owner_id, "--db", str(db_file)])
        assert result.exit_code == 0
        output = normalize_output(result.stdout)
        assert "la pomme" in output
        assert "the apple" in output
        assert "new" in output

    def test_list_scoped_to_course(self, add_card, db_file, owner_id):
        add_card("la pomme", "the apple", "--course", "french-101")
        add_card("der Apfel", "the apple", "--course", "german-101")
        result = runner.invoke(
            app,
            ["list", "--owner", owner_id, "--course", "german-101", "--db", str(db_file)],
        )
        output = normalize_output(result.stdout)
        assert "der Apfel" in output
        assert "la pomme" not in output


class TestEdit:
    def test_edit_updates_only_given_fields(self, add_card, db_file):
        card_uuid = add_card("la pome", "the apple", "--category", "Food")
        result = runner.invoke(
            app, ["edit", str(card_uuid), "--front", "la pomme", "--db", str(db_file)]
        )
        assert result.exit_code == 0
        assert "Card updated:" in result.stdout
        with CardDatabase(db_file) as db:
            card = db.get_card_by_uuid(card_uuid)
        assert card.front == "la pomme"
        assert card.back == "the apple"
        assert card.category == "Food"

    def test_edit_unknown_card(self, db_file, add_card):
        add_card()
        result = runner.invoke(app, ["edit", str(uuid4()), "--front", "x", "--db", str(db_file)])
        assert result.exit_code == 1
        assert "not found" in normalize_output(result.stdout)

    def test_edit_invalid_id(self, db_file):
        result = runner.invoke(app, ["edit", "not-a-uuid", "--db", str(db_file)])
        assert result.exit_code == 1
        assert "is not a valid card id" in normalize_output(result.stdout)


class TestDelete:
    def test_delete_with_yes(self, add_card, db_file, owner_id):
        card_uuid = add_card()
        result = runner.invoke(app, ["delete", str(card_uuid), "--yes", "--db", str(db_file)])
        assert result.exit_code == 0
        assert "Card deleted:" in result.stdout
        with CardDatabase(db_file) as db:
            assert db.load_pool(owner_id) == []

    def test_delete_cancelled(self, add_card, db_file, owner_id):
        card_uuid = add_card()
        result = runner.invoke(
            app, ["delete", str(card_uuid), "--db", str(db_file)], input="n\n"
        )
        assert result.exit_code == 0
        assert "Delete cancelled." in result.stdout
        with CardDatabase(db_file) as db:
            assert len(db.load_pool(owner_id)) == 1

    def test_delete_unknown_card(self, add_card, db_file):
        add_card()
        result = runner.invoke(app, ["delete", str(uuid4()), "--yes", "--db", str(db_file)])
        assert result.exit_code == 1
        assert "not found" in normalize_output(result.stdout)


class TestStats:
    def test_stats_without_cards(self, db_file, owner_id):
        result = runner.invoke(app, ["stats", "--owner", owner_id, "--db", str(db_file)])
        assert result.exit_code == 0
        output = normalize_output(result.stdout)
        assert "Total Cards" in output
        assert "N/A" in output
        assert "No cards found." in output

    def test_stats_with_cards(self, add_card, db_file, owner_id):
        add_card("le chat", "the cat", "--category", "Animals")
        add_card("le pain", "bread", "--category", "Food", "--difficulty", "easy")
        result = runner.invoke(app, ["stats", "--owner", owner_id, "--db", str(db_file)])
        assert result.exit_code == 0
        output = normalize_output(result.stdout)
        assert "Overall Stats" in output
        assert "Total Cards" in output
        assert "Due Now" in output
        assert "2.50" in output
        assert "Animals" in output
        assert "Food" in output
        assert "easy" in output
        assert "medium" in output


class TestStudy:
    def test_study_without_cards(self, db_file, owner_id):
        result = runner.invoke(app, ["study", "--owner", owner_id, "--db", str(db_file)])
        assert result.exit_code == 0
        assert "No cards to study." in result.stdout

    def test_study_rates_card(self, add_card, db_file, owner_id):
        card_uuid = add_card("le pain", "bread")
        with patch("rich.console.Console.input", side_effect=["", "3"]):
            result = runner.invoke(
                app, ["study", "--owner", owner_id, "--size", "5", "--db", str(db_file)]
            )
        assert result.exit_code == 0, result.stdout
        output = normalize_output(result.stdout)
        assert "le pain" in output
        assert "Study session finished. Well done!" in output

        with CardDatabase(db_file) as db:
            card = db.get_card_by_uuid(card_uuid)
        assert card.repetitions == 1
        assert card.interval == 1
        assert card.next_review is not None

    def test_study_rejects_zero_size(self, db_file, owner_id):
        result = runner.invoke(
            app, ["study", "--owner", owner_id, "--size", "0", "--db", str(db_file)]
        )
        assert result.exit_code != 0
