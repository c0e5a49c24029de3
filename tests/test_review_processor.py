"""
Tests for difficulty validation and the ReviewRecorder.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from flipdeck.db.database import FlashcardDatabase
from flipdeck.exceptions import (
    CardNotFoundError,
    InvalidInputError,
    RecorderFailure,
)
from flipdeck.models import Difficulty, Flashcard
from flipdeck.review_processor import (
    ReviewRecorder,
    is_correct,
    validate_difficulty,
)


@pytest.fixture
def card() -> Flashcard:
    return Flashcard(deck_id=uuid4(), front="hola", back="hello")


@pytest.fixture
def mock_store(card: Flashcard) -> MagicMock:
    store = MagicMock(spec=FlashcardDatabase)
    store.apply_review.side_effect = lambda card_id, difficulty, reviewed_at: card.model_copy(
        update={
            "difficulty": Difficulty(difficulty),
            "last_reviewed": reviewed_at,
            "review_count": card.review_count + 1,
        }
    )
    return store


class TestValidateDifficulty:
    @pytest.mark.parametrize("value", [1, 2, 3])
    def test_accepts_valid(self, value):
        assert validate_difficulty(value) == Difficulty(value)

    def test_accepts_enum(self):
        assert validate_difficulty(Difficulty.Hard) is Difficulty.Hard

    @pytest.mark.parametrize("value", [0, 4, -1, 99])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(InvalidInputError, match="Must be 1-3"):
            validate_difficulty(value)

    @pytest.mark.parametrize("value", ["2", 2.0, None, True])
    def test_rejects_non_integers(self, value):
        with pytest.raises(InvalidInputError):
            validate_difficulty(value)

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_difficulty(5)


@pytest.mark.parametrize(
    "difficulty, expected", [(1, True), (2, True), (3, False)]
)
def test_is_correct(difficulty, expected):
    assert is_correct(difficulty) is expected


def test_is_correct_rejects_invalid():
    with pytest.raises(InvalidInputError):
        is_correct(4)


class TestReviewRecorder:
    def test_records_through_store(self, card, mock_store):
        recorder = ReviewRecorder(mock_store)
        ts = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

        updated = recorder.record_review(card, Difficulty.Medium, reviewed_at=ts)

        mock_store.apply_review.assert_called_once_with(card.id, 2, reviewed_at=ts)
        assert updated.difficulty == Difficulty.Medium
        assert updated.last_reviewed == ts
        assert updated.review_count == 1

    def test_defaults_timestamp_to_now(self, card, mock_store):
        recorder = ReviewRecorder(mock_store)
        before = datetime.now(timezone.utc)

        recorder.record_review(card, 1)

        ts = mock_store.apply_review.call_args.kwargs["reviewed_at"]
        assert ts.tzinfo is not None
        assert before <= ts <= datetime.now(timezone.utc)

    def test_invalid_difficulty_never_reaches_store(self, card, mock_store):
        recorder = ReviewRecorder(mock_store)
        with pytest.raises(InvalidInputError):
            recorder.record_review(card, 0)
        mock_store.apply_review.assert_not_called()

    def test_store_failure_becomes_recorder_failure(self, card, mock_store):
        original = CardNotFoundError("gone")
        mock_store.apply_review.side_effect = original
        recorder = ReviewRecorder(mock_store)

        with pytest.raises(RecorderFailure) as exc_info:
            recorder.record_review(card, 3)

        assert exc_info.value.card_id == card.id
        assert exc_info.value.original_exception is original
        assert "gone" in str(exc_info.value)

    def test_unexpected_error_is_wrapped(self, card, mock_store):
        mock_store.apply_review.side_effect = RuntimeError("disk full")
        recorder = ReviewRecorder(mock_store)
        with pytest.raises(RecorderFailure):
            recorder.record_review(card, 2)
