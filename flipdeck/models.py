"""
Data models for decks, flashcards and persisted study-session records.
"""

from __future__ import annotations

import uuid
from enum import IntEnum
from uuid import UUID
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Difficulty(IntEnum):
    """
    The learner's recall rating for a card. It also selects the card's next
    review interval.
    """

    Easy = 1
    Medium = 2
    Hard = 3


class Deck(BaseModel):
    """
    A named collection of flashcards.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: UUID = Field(
        default_factory=uuid.uuid4,
        description="Unique UUIDv4 for the deck. Auto-generated.",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name of the deck.",
    )
    description: Optional[str] = Field(
        default=None,
        description="Optional free-text description.",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp when the deck was created.",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp of the last edit.",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, name: str) -> str:
        """Reject names that are only whitespace."""
        stripped = name.strip()
        if not stripped:
            raise ValueError("Deck name must not be blank.")
        return stripped


class Flashcard(BaseModel):
    """
    A two-sided card owned by a deck.

    `difficulty` and `last_reviewed` only change together, through a review.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: UUID = Field(
        default_factory=uuid.uuid4,
        description="Unique UUIDv4 for the card. Auto-generated.",
    )
    deck_id: UUID = Field(
        ...,
        description="UUID of the owning deck (links to Deck.id).",
    )
    front: str = Field(
        ...,
        min_length=1,
        max_length=1024,
        description="Question side of the card.",
    )
    back: str = Field(
        ...,
        min_length=1,
        max_length=1024,
        description="Answer side of the card.",
    )
    difficulty: Difficulty = Field(
        default=Difficulty.Easy,
        description="Last difficulty given (1=Easy, 2=Medium, 3=Hard).",
    )
    last_reviewed: Optional[datetime] = Field(
        default=None,
        description="UTC timestamp of the last review (None if never).",
    )
    review_count: int = Field(
        default=0,
        ge=0,
        description="Number of reviews recorded for this card.",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp when the card was added.",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp of the last modification.",
    )

    @property
    def is_new(self) -> bool:
        """True if the card has never been reviewed."""
        return self.last_reviewed is None


class StudySessionRecord(BaseModel):
    """
    Summary row for one study pass over a deck.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: UUID = Field(
        default_factory=uuid.uuid4,
        description="Unique session identifier.",
    )
    deck_id: UUID = Field(
        ...,
        description="Deck that was studied.",
    )
    cards_studied: int = Field(
        default=0,
        ge=0,
        description="Cards answered in this session.",
    )
    correct_answers: int = Field(
        default=0,
        ge=0,
        description="Answers scored as correct.",
    )
    started_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp when the session started.",
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="UTC timestamp when the last card was answered.",
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
