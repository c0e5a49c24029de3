"""Protocol for the data-access collaborator the study core depends on."""

from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from .models import Flashcard


class CardStore(Protocol):
    """Card reads and review writes needed by the scheduler and sessions."""

    def list_cards_for_deck(self, deck_id: UUID) -> List[Flashcard]:
        """
        Get all flashcards of a deck.

        Args:
            deck_id: The deck ID

        Returns:
            List of flashcards in the store's natural order (creation time)
        """
        ...

    def apply_review(
        self,
        card_id: UUID,
        difficulty: int,
        reviewed_at: Optional[datetime] = None,
    ) -> Flashcard:
        """
        Record a review outcome.

        Replaces the card's difficulty with `difficulty`, sets its
        last-reviewed timestamp to `reviewed_at` (now when omitted) and
        increments its review count by one.

        Args:
            card_id: The flashcard ID
            difficulty: The difficulty the learner just gave (1..3)
            reviewed_at: Review instant

        Returns:
            The updated flashcard

        Raises:
            Exception: Any failure to persist the review
        """
        ...
