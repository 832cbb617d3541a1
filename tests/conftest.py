import random
import sys
import pytest
from pathlib import Path
from typing import Callable, Generator
from datetime import datetime, timezone

from vocabcore.models import Card, CardDraft, Difficulty
from vocabcore.db import CardDatabase
from vocabcore.selector import SessionSelector


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """
    Run each test from its own tmpdir so stray files (e.g. a .env) never leak between tests.
    """
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


# --- Time Fixtures ---
@pytest.fixture
def now() -> datetime:
    """A fixed 'current time' for deterministic scheduling."""
    return datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_vocab.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[CardDatabase, None, None]:
    """
    Provide a CardDatabase that is either in-memory or file-backed, closed on teardown.
    """
    if request.param == "memory":
        db_man = CardDatabase(db_path_memory)
    else:
        db_man = CardDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()
        if request.param == "file" and db_path_file.exists():
            try:
                db_path_file.unlink()
            except OSError as e:
                import logging

                logging.warning(
                    f"Error removing temporary DB file in test fixture teardown: {e}"
                )


@pytest.fixture
def initialized_db_manager(db_manager: CardDatabase) -> CardDatabase:
    db_manager.initialize_schema()
    return db_manager


# --- Card Fixtures ---
@pytest.fixture
def owner_id() -> str:
    return "learner-1"


@pytest.fixture
def sample_draft(owner_id: str) -> CardDraft:
    return CardDraft(
        owner_id=owner_id,
        course_id="french-101",
        front="  le chat ",
        back="the cat",
        example="Le chat dort.",
        category="Animals",
        difficulty=Difficulty.Easy,
    )


@pytest.fixture
def make_card(owner_id: str) -> Callable[..., Card]:
    """
    Factory for cards with sensible content; keyword arguments override any field.
    """
    counter = {"n": 0}

    def _make(**overrides) -> Card:
        counter["n"] += 1
        fields = {
            "owner_id": owner_id,
            "front": f"mot {counter['n']}",
            "back": f"word {counter['n']}",
        }
        fields.update(overrides)
        return Card(**fields)

    return _make


@pytest.fixture
def seeded_selector() -> SessionSelector:
    return SessionSelector(rng=random.Random(1234))
