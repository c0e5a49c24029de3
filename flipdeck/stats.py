"""
Study statistics computed from decks and flashcards.
"""

from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .models import Deck, Difficulty, Flashcard


class DeckStats(BaseModel):
    """Card totals for a single deck."""

    model_config = ConfigDict(extra="forbid")

    total_cards: int = Field(default=0, ge=0)
    reviewed_cards: int = Field(default=0, ge=0)
    avg_difficulty: float = Field(
        default=0.0,
        ge=0.0,
        description="Mean difficulty of reviewed cards (0 if none).",
    )


class OverviewStats(BaseModel):
    """Dashboard figures across all decks."""

    model_config = ConfigDict(extra="forbid")

    total_decks: int = Field(default=0, ge=0)
    total_cards: int = Field(default=0, ge=0)
    total_reviews: int = Field(default=0, ge=0)
    average_difficulty: float = Field(
        default=0.0,
        ge=0.0,
        description="Mean difficulty of all cards, one decimal place.",
    )
    mastered_cards: int = Field(
        default=0,
        ge=0,
        description="Cards whose last difficulty was Easy.",
    )
    needs_review_cards: int = Field(
        default=0,
        ge=0,
        description="Cards whose last difficulty was Hard.",
    )
    recent_activity: List[Flashcard] = Field(
        default_factory=list,
        description="Most recently reviewed cards, newest first.",
    )


def _round_one_decimal(value: float) -> float:
    # Half-up, so 1.25 -> 1.3 rather than banker's 1.2.
    return int(value * 10 + 0.5) / 10


def compute_overview(
    decks: Sequence[Deck],
    cards: Sequence[Flashcard],
    recent_limit: int = 5,
) -> OverviewStats:
    """
    Summarise all decks and cards.

    Args:
        decks: Every deck.
        cards: Every flashcard, across decks.
        recent_limit: Maximum number of cards in `recent_activity`.
    """
    average = (
        _round_one_decimal(
            sum(int(card.difficulty) for card in cards) / len(cards)
        )
        if cards
        else 0.0
    )
    recent = sorted(
        (card for card in cards if card.last_reviewed is not None),
        key=lambda card: card.last_reviewed,
        reverse=True,
    )[: max(recent_limit, 0)]

    return OverviewStats(
        total_decks=len(decks),
        total_cards=len(cards),
        total_reviews=sum(card.review_count for card in cards),
        average_difficulty=average,
        mastered_cards=sum(
            1 for card in cards if card.difficulty == Difficulty.Easy
        ),
        needs_review_cards=sum(
            1 for card in cards if card.difficulty == Difficulty.Hard
        ),
        recent_activity=recent,
    )
