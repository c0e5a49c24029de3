import pytest
from pathlib import Path
from typing import Generator, List
from datetime import datetime, timedelta, timezone

from flipdeck.models import Deck, Flashcard
from flipdeck.db import FlashcardDatabase


BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """
    Run each test inside its own tmpdir so stray .env or db files never leak
    between tests.
    """
    tmpdir = request.getfixturevalue("tmpdir")
    with tmpdir.as_cwd():
        yield


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    """
    Returns:
        Path: Path to the file named "test_flipdeck.db" inside `tmp_path`.
    """
    return tmp_path / "test_flipdeck.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[FlashcardDatabase, None, None]:
    """
    Provide a FlashcardDatabase, either in-memory or file-backed, and close
    it on teardown.

    Parameters:
        request: pytest `FixtureRequest`; `param` is "memory" or "file".
    """
    if request.param == "memory":
        db_man = FlashcardDatabase(db_path_memory)
    else:
        db_man = FlashcardDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()


@pytest.fixture
def initialized_db_manager(db_manager: FlashcardDatabase) -> FlashcardDatabase:
    """Same `db_manager` with its schema created."""
    db_manager.initialize_schema()
    return db_manager


# --- Model Fixtures ---
@pytest.fixture
def sample_deck() -> Deck:
    return Deck(
        id="aaaaaaaa-0000-4000-8000-000000000001",
        name="Spanish",
        description="Basic vocabulary",
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )


@pytest.fixture
def sample_cards(sample_deck: Deck) -> List[Flashcard]:
    """
    Three never-reviewed cards A, B, C in the sample deck, created one
    minute apart so that creation order is unambiguous.
    """
    return [
        Flashcard(
            deck_id=sample_deck.id,
            front=f"Front {label}",
            back=f"Back {label}",
            created_at=BASE_TIME + timedelta(minutes=i),
            updated_at=BASE_TIME + timedelta(minutes=i),
        )
        for i, label in enumerate("ABC")
    ]


@pytest.fixture
def populated_db(
    initialized_db_manager: FlashcardDatabase,
    sample_deck: Deck,
    sample_cards: List[Flashcard],
) -> FlashcardDatabase:
    """Database holding the sample deck and its three cards."""
    initialized_db_manager.create_deck(sample_deck)
    for card in sample_cards:
        initialized_db_manager.add_flashcard(card)
    return initialized_db_manager
