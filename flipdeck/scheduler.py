# flipdeck/scheduler.py

"""
Defines the BaseScheduler abstract class and the IntervalScheduler, which
decides which flashcards are due using a fixed difficulty-indexed table.
"""

import logging
from abc import ABC, abstractmethod
import datetime
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_INTERVAL_DAYS,
    REVIEW_INTERVALS_DAYS,
    SECONDS_PER_DAY,
)
from .models import Flashcard

logger = logging.getLogger(__name__)


def ensure_utc(ts: datetime.datetime) -> datetime.datetime:
    """Ensures the given datetime is UTC. Assumes UTC if naive."""
    if ts.tzinfo is None or ts.tzinfo.utcoffset(ts) is None:
        return ts.replace(tzinfo=datetime.timezone.utc)
    if ts.tzinfo != datetime.timezone.utc:
        return ts.astimezone(datetime.timezone.utc)
    return ts


def elapsed_days(
    last_reviewed: datetime.datetime, now: datetime.datetime
) -> int:
    """
    Whole days between two instants, floored.

    A review at 23:59 checked at 00:01 the next day is 0 days, not 1;
    partial days never count. A `last_reviewed` later than `now` gives a
    negative result.
    """
    delta = ensure_utc(now) - ensure_utc(last_reviewed)
    return int(delta.total_seconds() // SECONDS_PER_DAY)


class BaseScheduler(ABC):
    """
    Abstract base class for all schedulers in flipdeck.
    """

    @abstractmethod
    def is_due(self, card: Flashcard, now: datetime.datetime) -> bool:
        """
        Decides whether a single card needs review at `now`.

        Args:
            card: The card to classify.
            now: The reference instant.

        Returns:
            True if the card is due.
        """
        pass

    def select_due(
        self, cards: Iterable[Flashcard], now: datetime.datetime
    ) -> List[Flashcard]:
        """Returns the due cards, preserving input order."""
        due = [card for card in cards if self.is_due(card, now)]
        logger.debug(f"{len(due)} card(s) due at {now.isoformat()}")
        return due


class IntervalSchedulerConfig(BaseModel):
    """Configuration for the interval scheduler."""

    intervals: Tuple[int, ...] = Field(
        default_factory=lambda: tuple(REVIEW_INTERVALS_DAYS)
    )
    default_interval: int = Field(default=DEFAULT_INTERVAL_DAYS, ge=0)

    @field_validator("intervals")
    @classmethod
    def check_intervals_positive(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if not v:
            raise ValueError("Interval table must not be empty.")
        if any(days < 0 for days in v):
            raise ValueError(f"Intervals must be non-negative: {v}")
        return v


class IntervalScheduler(BaseScheduler):
    """
    Schedules reviews from a fixed interval table looked up by
    `difficulty - 1`. Difficulties with no table entry use the default
    interval instead of failing.
    """

    def __init__(self, config: Optional[IntervalSchedulerConfig] = None):
        if config is None:
            config = IntervalSchedulerConfig()
        self.config = config

    @property
    def intervals(self) -> Tuple[int, ...]:
        return self.config.intervals

    def interval_for(self, difficulty: Optional[int]) -> int:
        """
        Looks up the review interval (in days) for a difficulty.

        Indexes below zero are treated as missing rather than wrapping
        around to the end of the table.
        """
        if difficulty is None:
            return self.config.default_interval
        index = int(difficulty) - 1
        if 0 <= index < len(self.config.intervals):
            return self.config.intervals[index]
        logger.debug(
            f"No interval for difficulty {difficulty}; "
            f"using {self.config.default_interval} day(s)."
        )
        return self.config.default_interval

    def is_due(self, card: Flashcard, now: datetime.datetime) -> bool:
        if card.last_reviewed is None:
            return True
        return elapsed_days(card.last_reviewed, now) >= self.interval_for(
            card.difficulty
        )

    def next_review_date(
        self, difficulty: int, from_date: Optional[datetime.date] = None
    ) -> datetime.date:
        """Date a card answered with `difficulty` on `from_date` becomes due."""
        start = from_date or datetime.date.today()
        return start + datetime.timedelta(days=self.interval_for(difficulty))


_default_scheduler = IntervalScheduler()


def select_due(
    cards: Iterable[Flashcard], now: datetime.datetime
) -> List[Flashcard]:
    """
    Returns the subset of `cards` due for review at `now` using the default
    interval table. Cards that were never reviewed are always due.
    """
    return _default_scheduler.select_due(cards, now)
