"""
Study-session state machine.

A StudySession is an immutable value; every transition returns a new one.
Persisting review outcomes is not done here: callers run the pure
transition first and then record the review (see review_manager).
"""

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .exceptions import InvalidStateError
from .models import Flashcard
from .review_processor import is_correct, validate_difficulty

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOTHING_TO_STUDY = "nothing_to_study"
    PRESENTING = "presenting"
    REVEALED = "revealed"
    COMPLETED = "completed"


def shuffle_cards(
    cards: Sequence[Flashcard], rng: Optional[random.Random] = None
) -> List[Flashcard]:
    """
    Return a uniformly shuffled copy of `cards` (Fisher-Yates).

    Pass a seeded `random.Random` for a reproducible order.
    """
    rng = rng or random.Random()
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


@dataclass(frozen=True)
class StudySession:
    """
    One pass over an ordered set of cards.

    `source` keeps the cards in the order they were given so a restart can
    reshuffle them; `order` is the sequence actually presented.
    """

    source: Tuple[Flashcard, ...]
    order: Tuple[Flashcard, ...]
    shuffle: bool = False
    position: int = 0
    flipped: bool = False
    completed: bool = False
    studied: int = 0
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return len(self.order)

    @property
    def state(self) -> SessionState:
        if not self.order:
            return SessionState.NOTHING_TO_STUDY
        if self.completed:
            return SessionState.COMPLETED
        if self.flipped:
            return SessionState.REVEALED
        return SessionState.PRESENTING

    @property
    def current_card(self) -> Optional[Flashcard]:
        """The card being shown, or None when empty or completed."""
        if not self.order or self.completed:
            return None
        return self.order[self.position]

    @property
    def is_last_card(self) -> bool:
        return bool(self.order) and self.position == len(self.order) - 1

    @property
    def accuracy(self) -> int:
        """Percentage of correct answers, rounded half-up."""
        if self.studied == 0:
            return 0
        return (self.correct * 200 + self.studied) // (2 * self.studied)

    @property
    def progress(self) -> float:
        """Position of the current card as a percentage of the total."""
        if not self.order:
            return 0.0
        return (self.position + 1) / len(self.order) * 100


def _ordered(
    cards: Sequence[Flashcard], shuffle: bool, rng: Optional[random.Random]
) -> Tuple[Flashcard, ...]:
    if shuffle:
        return tuple(shuffle_cards(cards, rng))
    return tuple(cards)


def start_session(
    cards: Sequence[Flashcard],
    shuffle: bool = False,
    rng: Optional[random.Random] = None,
) -> StudySession:
    """
    Start a session over `cards`, in input order or shuffled once up front.

    An empty card list yields a session in NOTHING_TO_STUDY.
    """
    source = tuple(cards)
    session = StudySession(
        source=source, order=_ordered(source, shuffle, rng), shuffle=shuffle
    )
    logger.debug(
        f"Started session over {session.total} card(s) (shuffle={shuffle})"
    )
    return session


def _require_current_card(session: StudySession, action: str) -> Flashcard:
    card = session.current_card
    if card is None:
        raise InvalidStateError(
            f"Cannot {action}: session is {session.state.value}."
        )
    return card


def flip(session: StudySession) -> StudySession:
    """Toggle between the front and back of the current card."""
    _require_current_card(session, "flip")
    return replace(session, flipped=not session.flipped)


def answer(session: StudySession, difficulty: int) -> StudySession:
    """
    Score the current card and move on.

    Answering does not require the card to be flipped first.

    Raises:
        InvalidInputError: If difficulty is outside 1..3.
        InvalidStateError: If there is no current card.
    """
    rating = validate_difficulty(difficulty)
    _require_current_card(session, "answer")

    correct = is_correct(rating)
    counters = dict(
        studied=session.studied + 1,
        correct=session.correct + (1 if correct else 0),
        incorrect=session.incorrect + (0 if correct else 1),
    )
    if session.is_last_card:
        return replace(session, completed=True, flipped=False, **counters)
    return replace(
        session, position=session.position + 1, flipped=False, **counters
    )


def restart(
    session: StudySession,
    shuffle: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> StudySession:
    """
    Reset position, flip state and counters, keeping the same cards.

    With shuffle enabled (the session's setting unless `shuffle` is given)
    the cards are reshuffled from their original order.
    """
    shuffle = session.shuffle if shuffle is None else shuffle
    return StudySession(
        source=session.source,
        order=_ordered(session.source, shuffle, rng),
        shuffle=shuffle,
    )
