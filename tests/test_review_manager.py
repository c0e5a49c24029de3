"""
Unit and integration tests for StudySessionManager in flipdeck.review_manager.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import List
from unittest.mock import MagicMock, patch

import pytest

from flipdeck.db.database import FlashcardDatabase
from flipdeck.exceptions import (
    CardNotFoundError,
    InvalidInputError,
    InvalidStateError,
    RecorderFailure,
    SessionOperationError,
)
from flipdeck.models import Deck, Difficulty, Flashcard, StudySessionRecord
from flipdeck.review_manager import StudySessionManager
from flipdeck.review_processor import ReviewRecorder
from flipdeck.session_engine import SessionState

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

# --- Fixtures ---


@pytest.fixture
def deck_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def cards(deck_id: uuid.UUID) -> List[Flashcard]:
    return [
        Flashcard(deck_id=deck_id, front="A", back="a"),
        Flashcard(
            deck_id=deck_id,
            front="B",
            back="b",
            difficulty=Difficulty.Hard,
            last_reviewed=NOW - timedelta(days=1),
        ),
        Flashcard(
            deck_id=deck_id,
            front="C",
            back="c",
            difficulty=Difficulty.Medium,
            last_reviewed=NOW - timedelta(days=5),
        ),
    ]


@pytest.fixture
def mock_db(cards: List[Flashcard]) -> MagicMock:
    """
    A FlashcardDatabase-shaped MagicMock that serves `cards` and
    echoes reviews and session records back.
    """
    db = MagicMock(spec=FlashcardDatabase)
    db.list_cards_for_deck.return_value = cards
    db.apply_review.side_effect = lambda card_id, difficulty, reviewed_at: next(
        c for c in cards if c.id == card_id
    ).model_copy(
        update={
            "difficulty": Difficulty(difficulty),
            "last_reviewed": reviewed_at,
        }
    )
    db.create_study_session.side_effect = lambda record: record
    db.update_study_session.side_effect = (
        lambda session_id, cards_studied, correct_answers, completed=False: StudySessionRecord(
            id=session_id,
            deck_id=uuid.uuid4(),
            cards_studied=cards_studied,
            correct_answers=correct_answers,
            completed_at=NOW if completed else None,
        )
    )
    return db


@pytest.fixture
def manager(mock_db: MagicMock, deck_id: uuid.UUID) -> StudySessionManager:
    return StudySessionManager(db_manager=mock_db, deck_id=deck_id)


# --- Initialization ---


def test_init_defaults(manager, mock_db):
    assert manager.state is SessionState.NOTHING_TO_STUDY
    assert isinstance(manager.recorder, ReviewRecorder)
    assert manager.recorder.store is mock_db
    assert manager.record is None


def test_initialize_session_loads_all_cards_in_order(manager, mock_db, deck_id):
    session = manager.initialize_session(shuffle=False)

    mock_db.list_cards_for_deck.assert_called_once_with(deck_id)
    assert [c.front for c in session.order] == ["A", "B", "C"]
    assert manager.state is SessionState.PRESENTING
    assert manager.current_card.front == "A"
    mock_db.create_study_session.assert_called_once()
    assert manager.record.deck_id == deck_id


def test_initialize_session_due_only(manager):
    session = manager.initialize_session(shuffle=False, due_only=True, now=NOW)
    # B is Hard, reviewed yesterday: not due for a week.
    assert [c.front for c in session.order] == ["A", "C"]


def test_initialize_session_nothing_due(manager, mock_db, cards):
    mock_db.list_cards_for_deck.return_value = [cards[1]]
    manager.initialize_session(due_only=True, now=NOW)
    assert manager.state is SessionState.NOTHING_TO_STUDY
    mock_db.create_study_session.assert_not_called()


def test_initialize_session_seeded_shuffle(mock_db, deck_id):
    first = StudySessionManager(mock_db, deck_id)
    second = StudySessionManager(mock_db, deck_id)
    order_1 = first.initialize_session(shuffle=True, seed=5).order
    order_2 = second.initialize_session(shuffle=True, seed=5).order
    assert [c.id for c in order_1] == [c.id for c in order_2]


def test_initialize_session_uses_configured_shuffle(manager):
    with patch("flipdeck.review_manager.settings") as mock_settings:
        mock_settings.shuffle = True
        session = manager.initialize_session(seed=1)
    assert session.shuffle


def test_record_creation_failure_is_not_fatal(manager, mock_db):
    mock_db.create_study_session.side_effect = SessionOperationError("nope")
    manager.initialize_session()
    assert manager.record is None
    manager.answer(1)
    mock_db.update_study_session.assert_not_called()


# --- Answering ---


def test_answer_records_and_advances(manager, mock_db, cards):
    manager.initialize_session(shuffle=False)
    manager.flip()
    assert manager.state is SessionState.REVEALED

    outcome = manager.answer(Difficulty.Medium, reviewed_at=NOW)

    mock_db.apply_review.assert_called_once_with(cards[0].id, 2, reviewed_at=NOW)
    assert outcome.card.front == "A"
    assert outcome.correct
    assert outcome.recorded
    assert outcome.updated_card.difficulty == Difficulty.Medium
    assert manager.position == 1
    assert manager.state is SessionState.PRESENTING


def test_answer_syncs_session_record(manager, mock_db):
    manager.initialize_session(shuffle=False)
    manager.answer(1)
    manager.answer(3)
    manager.answer(2)

    last_call = mock_db.update_study_session.call_args
    assert last_call.kwargs == {
        "cards_studied": 3,
        "correct_answers": 2,
        "completed": True,
    }
    assert manager.record.is_completed


def test_recorder_failure_does_not_roll_back(manager, mock_db):
    manager.initialize_session(shuffle=False)
    mock_db.apply_review.side_effect = CardNotFoundError("card deleted")

    outcome = manager.answer(3)

    assert not outcome.recorded
    assert isinstance(outcome.error, RecorderFailure)
    assert manager.recorder_errors == [outcome.error]
    assert manager.position == 1
    assert manager.session.studied == 1
    assert manager.session.incorrect == 1


def test_session_completes_despite_failures(manager, mock_db):
    manager.initialize_session(shuffle=False)
    mock_db.apply_review.side_effect = RuntimeError("offline")
    for _ in range(3):
        manager.answer(1)
    assert manager.state is SessionState.COMPLETED
    assert len(manager.recorder_errors) == 3


def test_answer_invalid_difficulty(manager, mock_db):
    manager.initialize_session(shuffle=False)
    with pytest.raises(InvalidInputError):
        manager.answer(4)
    mock_db.apply_review.assert_not_called()
    assert manager.position == 0


def test_answer_when_completed_raises(manager, mock_db):
    manager.initialize_session(shuffle=False)
    for _ in range(3):
        manager.answer(2)
    with pytest.raises(InvalidStateError):
        manager.answer(2)
    assert mock_db.apply_review.call_count == 3


def test_answer_with_custom_recorder(mock_db, deck_id):
    recorder = MagicMock(spec=ReviewRecorder)
    recorder.record_review.side_effect = RecorderFailure("boom")
    manager = StudySessionManager(mock_db, deck_id, recorder=recorder)
    manager.initialize_session(shuffle=False)

    outcome = manager.answer(1)

    recorder.record_review.assert_called_once()
    assert outcome.error is recorder.record_review.side_effect
    mock_db.apply_review.assert_not_called()


# --- Restart & stats ---


def test_restart_keeps_cards_and_opens_new_record(manager, mock_db):
    manager.initialize_session(shuffle=False)
    for difficulty in (1, 3, 2):
        manager.answer(difficulty)

    manager.restart()

    assert manager.state is SessionState.PRESENTING
    assert manager.session.total == 3
    assert manager.session.studied == 0
    assert mock_db.create_study_session.call_count == 2


def test_get_session_stats(manager):
    manager.initialize_session(shuffle=False)
    manager.answer(1)
    manager.answer(3)
    manager.answer(2)

    stats = manager.get_session_stats()

    assert stats["total"] == 3
    assert stats["studied"] == 3
    assert stats["correct"] == 2
    assert stats["incorrect"] == 1
    assert stats["accuracy"] == 67
    assert stats["state"] == "completed"
    assert stats["elapsed_minutes"] >= 0


# --- Integration with DuckDB ---


def test_full_session_against_database(in_memory_db_with_deck):
    db, deck = in_memory_db_with_deck
    manager = StudySessionManager(db, deck.id)
    manager.initialize_session(shuffle=False)

    outcomes = [manager.answer(d) for d in (1, 2, 3)]

    assert all(o.recorded for o in outcomes)
    stored = db.list_cards_for_deck(deck.id)
    assert [c.difficulty for c in stored] == [1, 2, 3]
    assert all(c.review_count == 1 for c in stored)
    record = db.get_study_session(manager.record.id)
    assert record.cards_studied == 3
    assert record.correct_answers == 2
    assert record.is_completed

    # Everything was just reviewed, so nothing is due.
    manager.initialize_session(due_only=True)
    assert manager.state is SessionState.NOTHING_TO_STUDY


@pytest.fixture
def in_memory_db_with_deck():
    db = FlashcardDatabase(":memory:")
    db.initialize_schema()
    deck = db.create_deck(Deck(name="Integration"))
    for i, label in enumerate("XYZ"):
        db.add_flashcard(
            Flashcard(
                deck_id=deck.id,
                front=label,
                back=label.lower(),
                created_at=NOW + timedelta(seconds=i),
            )
        )
    try:
        yield db, deck
    finally:
        db.close_connection()
