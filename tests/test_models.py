import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from flipdeck.models import Deck, Difficulty, Flashcard, StudySessionRecord


class TestDeck:
    def test_defaults(self):
        deck = Deck(name="Biology")
        assert isinstance(deck.id, uuid.UUID)
        assert deck.description is None
        assert deck.created_at.tzinfo is not None

    def test_name_is_stripped(self):
        assert Deck(name="  Biology \n").name == "Biology"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 256])
    def test_invalid_names(self, name):
        with pytest.raises(ValidationError):
            Deck(name=name)

    def test_assignment_is_validated(self):
        deck = Deck(name="Biology")
        with pytest.raises(ValidationError):
            deck.name = " "

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            Deck(name="Biology", tags=["x"])


class TestFlashcard:
    def test_defaults(self):
        card = Flashcard(deck_id=uuid.uuid4(), front="Q", back="A")
        assert card.difficulty is Difficulty.Easy
        assert card.last_reviewed is None
        assert card.review_count == 0
        assert card.is_new

    def test_difficulty_from_int(self):
        card = Flashcard(deck_id=uuid.uuid4(), front="Q", back="A", difficulty=3)
        assert card.difficulty is Difficulty.Hard

    @pytest.mark.parametrize("difficulty", [0, 4])
    def test_difficulty_range(self, difficulty):
        with pytest.raises(ValidationError):
            Flashcard(
                deck_id=uuid.uuid4(), front="Q", back="A", difficulty=difficulty
            )

    @pytest.mark.parametrize(
        "front, back", [("", "A"), ("Q", ""), ("x" * 1025, "A")]
    )
    def test_content_length(self, front, back):
        with pytest.raises(ValidationError):
            Flashcard(deck_id=uuid.uuid4(), front=front, back=back)

    def test_negative_review_count(self):
        with pytest.raises(ValidationError):
            Flashcard(deck_id=uuid.uuid4(), front="Q", back="A", review_count=-1)

    def test_reviewed_card_is_not_new(self):
        card = Flashcard(
            deck_id=uuid.uuid4(),
            front="Q",
            back="A",
            last_reviewed=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        assert not card.is_new


def test_difficulty_ordering():
    assert Difficulty.Easy < Difficulty.Medium < Difficulty.Hard
    assert int(Difficulty.Medium) == 2


def test_study_session_record():
    record = StudySessionRecord(deck_id=uuid.uuid4())
    assert record.cards_studied == 0
    assert not record.is_completed
    record.completed_at = datetime.now(timezone.utc)
    assert record.is_completed
    with pytest.raises(ValidationError):
        record.correct_answers = -1
