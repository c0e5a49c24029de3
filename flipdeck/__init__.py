"""flipdeck - flashcard decks with interval-based review scheduling."""

from .models import Deck, Difficulty, Flashcard, StudySessionRecord
from .constants import REVIEW_INTERVALS_DAYS, DEFAULT_INTERVAL_DAYS
from .db import FlashcardDatabase
from .exceptions import (
    InvalidInputError,
    InvalidStateError,
    RecorderFailure,
)
from .review_processor import ReviewRecorder, is_correct
from .review_manager import StudySessionManager, AnswerOutcome
from .scheduler import IntervalScheduler, IntervalSchedulerConfig, select_due
from .session_engine import (
    SessionState,
    StudySession,
    answer,
    flip,
    restart,
    shuffle_cards,
    start_session,
)

__all__ = [
    "Deck",
    "Difficulty",
    "Flashcard",
    "StudySessionRecord",
    "REVIEW_INTERVALS_DAYS",
    "DEFAULT_INTERVAL_DAYS",
    "FlashcardDatabase",
    "InvalidInputError",
    "InvalidStateError",
    "RecorderFailure",
    "ReviewRecorder",
    "is_correct",
    "StudySessionManager",
    "AnswerOutcome",
    "IntervalScheduler",
    "IntervalSchedulerConfig",
    "select_due",
    "SessionState",
    "StudySession",
    "answer",
    "flip",
    "restart",
    "shuffle_cards",
    "start_session",
]
