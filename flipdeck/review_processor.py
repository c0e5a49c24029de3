"""
Review recording for flipdeck.

Validates the difficulty a learner gives a card, scores it as correct or
incorrect, and hands the write off to the card store:
1. Difficulty validation
2. Timestamp handling
3. Store delegation
4. Failure wrapping
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from .constants import CORRECT_DIFFICULTY_THRESHOLD
from .exceptions import InvalidInputError, RecorderFailure
from .models import Difficulty, Flashcard
from .store import CardStore

logger = logging.getLogger(__name__)


def validate_difficulty(value: Any) -> Difficulty:
    """
    Coerce an answer value to a Difficulty.

    Raises:
        InvalidInputError: If the value is not an integer in 1..3.
    """
    # bool is an int subclass; True would otherwise pass as Easy.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(
            f"Invalid difficulty: {value!r}. Must be 1-3 (1=Easy, 2=Medium, 3=Hard)."
        )
    try:
        return Difficulty(value)
    except ValueError as e:
        raise InvalidInputError(
            f"Invalid difficulty: {value}. Must be 1-3 (1=Easy, 2=Medium, 3=Hard)."
        ) from e


def is_correct(difficulty: int) -> bool:
    """Easy and Medium answers are correct; Hard is incorrect."""
    return validate_difficulty(difficulty) <= CORRECT_DIFFICULTY_THRESHOLD


class ReviewRecorder:
    """
    Applies the outcome of answering a card through a CardStore.

    The given difficulty replaces the card's stored one; it is not a delta.
    """

    def __init__(self, store: CardStore):
        """
        Initialize the ReviewRecorder.

        Args:
            store: Card store that persists review outcomes
        """
        self.store = store

    def record_review(
        self,
        card: Flashcard,
        difficulty: int,
        reviewed_at: Optional[datetime] = None,
    ) -> Flashcard:
        """
        Record a review of `card`.

        Args:
            card: The card being reviewed
            difficulty: Difficulty the learner assigned (1=Easy .. 3=Hard)
            reviewed_at: Review timestamp (defaults to current time)

        Returns:
            The updated card as returned by the store

        Raises:
            InvalidInputError: If difficulty is outside 1..3 (nothing is sent
                to the store)
            RecorderFailure: If the store fails to persist the review
        """
        rating = validate_difficulty(difficulty)
        ts = reviewed_at or datetime.now(timezone.utc)

        logger.debug(
            f"Recording review for card {card.id} with difficulty {int(rating)}"
        )

        try:
            updated_card = self.store.apply_review(
                card.id, int(rating), reviewed_at=ts
            )
        except Exception as e:
            logger.exception(f"Failed to record review for card {card.id}")
            raise RecorderFailure(
                f"Could not record review for card {card.id}: {e}",
                card_id=card.id,
                original_exception=e,
            ) from e

        logger.debug(
            f"Review recorded for card {card.id}. "
            f"Review count: {updated_card.review_count}"
        )
        return updated_card
