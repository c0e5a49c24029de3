"""
This module defines the StudySessionManager class, which drives one study
session over a deck. It loads cards from the store, optionally keeps only the
due ones, runs the session engine and records every answer.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from . import session_engine
from .config import settings
from .db.database import FlashcardDatabase
from .exceptions import RecorderFailure
from .models import Difficulty, Flashcard, StudySessionRecord
from .review_processor import ReviewRecorder, is_correct
from .scheduler import BaseScheduler, IntervalScheduler
from .session_engine import SessionState, StudySession

logger = logging.getLogger(__name__)


@dataclass
class AnswerOutcome:
    """
    Result of answering one card.

    `session` is the state after the local transition. It has already
    advanced even when `error` is set.
    """

    card: Flashcard
    difficulty: Difficulty
    correct: bool
    session: StudySession
    updated_card: Optional[Flashcard] = None
    error: Optional[RecorderFailure] = None

    @property
    def recorded(self) -> bool:
        return self.error is None


class StudySessionManager:
    """
    Manages a study session for one deck.

    This class is responsible for:
    - Loading the deck's cards, or only the due ones.
    - Driving the flip/answer/restart cycle through the session engine.
    - Recording each answer with the ReviewRecorder.
    - Keeping the persisted study-session summary up to date.
    """

    def __init__(
        self,
        db_manager: FlashcardDatabase,
        deck_id: UUID,
        scheduler: Optional[BaseScheduler] = None,
        recorder: Optional[ReviewRecorder] = None,
    ):
        """
        Parameters:
            db_manager (FlashcardDatabase): Card store for loading cards and
                persisting reviews and session summaries.
            deck_id (UUID): Deck to study.
            scheduler (BaseScheduler): Decides which cards are due; defaults
                to the standard interval table.
            recorder (ReviewRecorder): Records answers; defaults to one
                writing to `db_manager`.
        """
        self.db = db_manager
        self.deck_id = deck_id
        self.scheduler = scheduler or IntervalScheduler()
        self.recorder = recorder or ReviewRecorder(db_manager)
        self.session: StudySession = session_engine.start_session([])
        self.record: Optional[StudySessionRecord] = None
        self.recorder_errors: List[RecorderFailure] = []
        self.session_start_time = datetime.now(timezone.utc)
        self._rng: Optional[random.Random] = None

    # --- Lifecycle ---

    def initialize_session(
        self,
        shuffle: Optional[bool] = None,
        due_only: bool = False,
        now: Optional[datetime] = None,
        seed: Optional[int] = None,
    ) -> StudySession:
        """
        Load the deck's cards and start a new session.

        Parameters:
            shuffle (Optional[bool]): Shuffle the card order; None uses the
                configured default.
            due_only (bool): Keep only cards the scheduler reports as due.
            now (Optional[datetime]): Reference instant for due selection.
            seed (Optional[int]): Seed for a reproducible shuffle.
        """
        if shuffle is None:
            shuffle = settings.shuffle
        logger.info(
            f"Initializing study session for deck {self.deck_id} "
            f"(shuffle={shuffle}, due_only={due_only})"
        )

        cards = self.db.list_cards_for_deck(self.deck_id)
        if due_only:
            cards = self.scheduler.select_due(
                cards, now or datetime.now(timezone.utc)
            )

        self._rng = random.Random(seed) if seed is not None else None
        self.session = session_engine.start_session(
            cards, shuffle=shuffle, rng=self._rng
        )
        self.session_start_time = datetime.now(timezone.utc)
        self.recorder_errors = []
        self._start_record()

        logger.info(f"Initialized session with {self.session.total} cards.")
        return self.session

    def restart(
        self, shuffle: Optional[bool] = None, seed: Optional[int] = None
    ) -> StudySession:
        """Start the same cards over; counters reset, total unchanged."""
        if seed is not None:
            self._rng = random.Random(seed)
        self.session = session_engine.restart(
            self.session, shuffle=shuffle, rng=self._rng
        )
        self.session_start_time = datetime.now(timezone.utc)
        self._start_record()
        logger.info(f"Restarted session over {self.session.total} cards.")
        return self.session

    # --- Transitions ---

    def flip(self) -> StudySession:
        self.session = session_engine.flip(self.session)
        return self.session

    def answer(
        self, difficulty: int, reviewed_at: Optional[datetime] = None
    ) -> AnswerOutcome:
        """
        Answer the current card.

        The local transition happens first and is kept whatever the store
        does. A failed write is returned in the outcome and appended to
        `recorder_errors`, never raised.

        Raises:
            InvalidInputError: If difficulty is outside 1..3.
            InvalidStateError: If there is no current card.
        """
        next_session = session_engine.answer(self.session, difficulty)
        card = self.session.order[self.session.position]
        rating = Difficulty(difficulty)
        self.session = next_session

        outcome = AnswerOutcome(
            card=card,
            difficulty=rating,
            correct=is_correct(rating),
            session=next_session,
        )
        try:
            outcome.updated_card = self.recorder.record_review(
                card, rating, reviewed_at=reviewed_at
            )
        except RecorderFailure as e:
            logger.warning(
                f"Review for card {card.id} was not saved; session continues: {e}"
            )
            outcome.error = e
            self.recorder_errors.append(e)

        self._sync_record()
        return outcome

    # --- Accessors ---

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def current_card(self) -> Optional[Flashcard]:
        return self.session.current_card

    @property
    def position(self) -> int:
        return self.session.position

    @property
    def elapsed_minutes(self) -> int:
        elapsed = datetime.now(timezone.utc) - self.session_start_time
        return round(elapsed.total_seconds() / 60)

    def get_session_stats(self) -> Dict[str, Any]:
        """
        Provide aggregated statistics for the current session.

        Returns:
            dict: "total", "studied", "correct", "incorrect", "accuracy"
            (int percent), "position", "state" and "elapsed_minutes".
        """
        return {
            "total": self.session.total,
            "studied": self.session.studied,
            "correct": self.session.correct,
            "incorrect": self.session.incorrect,
            "accuracy": self.session.accuracy,
            "position": self.session.position,
            "state": self.session.state.value,
            "elapsed_minutes": self.elapsed_minutes,
        }

    # --- Session record ---

    def _start_record(self) -> None:
        if self.session.state is SessionState.NOTHING_TO_STUDY:
            self.record = None
            return
        try:
            self.record = self.db.create_study_session(
                StudySessionRecord(deck_id=self.deck_id)
            )
        except Exception as e:
            logger.warning(f"Failed to create study session record: {e}")
            self.record = None

    def _sync_record(self) -> None:
        if self.record is None:
            return
        try:
            self.record = self.db.update_study_session(
                self.record.id,
                cards_studied=self.session.studied,
                correct_answers=self.session.correct,
                completed=self.session.completed,
            )
        except Exception as e:
            logger.warning(f"Failed to update study session record: {e}")
