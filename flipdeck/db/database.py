"""
DuckDB database interactions for flipdeck.
Implements FlashcardDatabase, the card store used by the study core.
"""

import duckdb
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union

from datetime import datetime, timezone
import logging

from . import db_utils
from ..exceptions import (
    CardNotFoundError,
    CardOperationError,
    DatabaseConnectionError,
    DatabaseError,
    DeckNotFoundError,
    DeckOperationError,
    MarshallingError,
    ReviewOperationError,
    SessionOperationError,
)
from ..models import Deck, Difficulty, Flashcard, StudySessionRecord
from ..stats import DeckStats
from .connection import ConnectionHandler
from .schema_manager import SchemaManager

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlashcardDatabase:
    """
    Acts as a Facade for the database subsystem, providing a simple, high-level
    interface for deck, flashcard and study-session operations.

    Implements the CardStore protocol (`list_cards_for_deck`, `apply_review`).
    Intended for use as a context manager.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        read_only: bool = False,
    ):
        """
        Create a FlashcardDatabase backed by the given DuckDB path.

        Args:
            db_path (str | Path | None): Path to the database file. Use ':memory:' for an
                in-memory database; None uses the configured FLIPDECK_DB_PATH.
            read_only (bool): If True, open the database in read-only mode.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)
        logger.info(
            f"FlashcardDatabase initialized for DB at: {self._handler.db_path_resolved}"
        )

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    @property
    def read_only(self) -> bool:
        return self._handler.read_only

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self._handler.get_connection()

    def close_connection(self) -> None:
        self._handler.close_connection()

    def __enter__(self) -> "FlashcardDatabase":
        """
        Open the database connection and initialize the schema if a new
        writable database was created.
        """
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Ensures the connection is closed on exiting the context."""
        self.close_connection()

    def initialize_schema(self) -> None:
        """Ensure the database tables exist."""
        self._schema_manager.initialize_schema()

    # --- Helpers ---

    def _ensure_writable(self, action: str) -> None:
        if self.read_only:
            raise DatabaseConnectionError(
                f"Cannot {action} in read-only mode."
            )

    def _fetch_rows(
        self,
        sql: str,
        params: Sequence[Any],
        error_cls: Type[DatabaseError],
        action: str,
    ) -> List[Dict[str, Any]]:
        conn = self.get_connection()
        try:
            cursor = conn.execute(sql, list(params))
            return db_utils.rows_to_dicts(cursor)
        except duckdb.Error as e:
            logger.error(f"Error while trying to {action}: {e}")
            raise error_cls(
                f"Failed to {action}: {e}", original_exception=e
            ) from e

    def _run_transaction(
        self,
        work: Callable[[duckdb.DuckDBPyConnection], Any],
        error_cls: Type[DatabaseError],
        action: str,
    ) -> Any:
        """
        Run `work(cursor)` inside a transaction, rolling back on failure.

        DatabaseErrors raised by `work` propagate unchanged; DuckDB errors are
        wrapped in `error_cls`.
        """
        conn = self.get_connection()
        with conn.cursor() as cursor:
            cursor.begin()
            try:
                result = work(cursor)
                cursor.commit()
                return result
            except Exception as e:
                logger.error(f"Error while trying to {action}: {e}")
                try:
                    cursor.rollback()
                    logger.info(f"Transaction rolled back ({action}).")
                except duckdb.Error as rb_err:
                    logger.error(f"Failed to rollback transaction: {rb_err}")
                if isinstance(e, DatabaseError):
                    raise
                if isinstance(e, duckdb.Error):
                    raise error_cls(
                        f"Failed to {action}: {e}", original_exception=e
                    ) from e
                raise

    # --- Deck Operations ---

    def create_deck(self, deck: Deck) -> Deck:
        """
        Insert a new deck.

        Raises:
            DeckOperationError: If the insert fails (e.g. duplicate id).
        """
        self._ensure_writable("create deck")
        sql = """
        INSERT INTO decks (id, name, description, created_at, updated_at)
        VALUES ($1, $2, $3, $4, $5);
        """
        self._run_transaction(
            lambda cur: cur.execute(sql, db_utils.deck_to_db_params(deck)),
            DeckOperationError,
            f"create deck '{deck.name}'",
        )
        logger.info(f"Created deck '{deck.name}' ({deck.id})")
        return deck

    def get_deck(self, deck_id: uuid.UUID) -> Optional[Deck]:
        rows = self._fetch_rows(
            "SELECT * FROM decks WHERE id = $1;",
            (deck_id,),
            DeckOperationError,
            f"fetch deck {deck_id}",
        )
        if not rows:
            return None
        try:
            return db_utils.db_row_to_deck(rows[0])
        except MarshallingError as e:
            raise DeckOperationError(
                f"Failed to parse deck {deck_id} from database.",
                original_exception=e,
            ) from e

    def require_deck(self, deck_id: uuid.UUID) -> Deck:
        """
        Like get_deck, but raises DeckNotFoundError for an unknown id.
        """
        deck = self.get_deck(deck_id)
        if deck is None:
            raise DeckNotFoundError(f"Deck {deck_id} not found.")
        return deck

    def get_all_decks(self) -> List[Deck]:
        """Return all decks, newest first."""
        rows = self._fetch_rows(
            "SELECT * FROM decks ORDER BY created_at DESC, name;",
            (),
            DeckOperationError,
            "fetch decks",
        )
        try:
            return [db_utils.db_row_to_deck(row) for row in rows]
        except MarshallingError as e:
            raise DeckOperationError(
                "Failed to parse decks from database.", original_exception=e
            ) from e

    def find_decks_by_name(self, name: str) -> List[Deck]:
        """Return decks whose name matches `name` case-insensitively."""
        rows = self._fetch_rows(
            "SELECT * FROM decks WHERE lower(name) = lower($1) ORDER BY created_at;",
            (name,),
            DeckOperationError,
            f"look up deck '{name}'",
        )
        try:
            return [db_utils.db_row_to_deck(row) for row in rows]
        except MarshallingError as e:
            raise DeckOperationError(
                "Failed to parse decks from database.", original_exception=e
            ) from e

    def resolve_deck(self, deck_ref: str) -> Deck:
        """
        Find a deck by id or, failing that, by name.

        Raises:
            DeckNotFoundError: If nothing matches.
            DeckOperationError: If the name matches more than one deck.
        """
        try:
            deck_id: Optional[uuid.UUID] = uuid.UUID(deck_ref)
        except ValueError:
            deck_id = None
        if deck_id is not None:
            return self.require_deck(deck_id)
        matches = self.find_decks_by_name(deck_ref)
        if not matches:
            raise DeckNotFoundError(f"Deck '{deck_ref}' not found.")
        if len(matches) > 1:
            raise DeckOperationError(
                f"Deck name '{deck_ref}' is ambiguous ({len(matches)} decks); use the deck id."
            )
        return matches[0]

    def update_deck(
        self,
        deck_id: uuid.UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Deck:
        """
        Edit a deck's name and/or description.

        Raises:
            DeckNotFoundError: If no deck has this id.
            DeckOperationError: If the update fails.
        """
        self._ensure_writable("update deck")
        deck = self.require_deck(deck_id)
        # Assignment re-runs the model validators.
        if name is not None:
            deck.name = name
        if description is not None:
            deck.description = description
        deck.updated_at = _utcnow()

        sql = """
        UPDATE decks SET name = $1, description = $2, updated_at = $3
        WHERE id = $4;
        """
        self._run_transaction(
            lambda cur: cur.execute(
                sql,
                (
                    deck.name,
                    deck.description,
                    db_utils.to_db_timestamp(deck.updated_at),
                    deck_id,
                ),
            ),
            DeckOperationError,
            f"update deck {deck_id}",
        )
        return deck

    def delete_deck(self, deck_id: uuid.UUID) -> int:
        """
        Delete a deck together with its flashcards and study sessions.

        Returns:
            int: Number of flashcards removed with the deck.

        Raises:
            DeckNotFoundError: If no deck has this id.
        """
        self._ensure_writable("delete deck")

        def work(cursor) -> int:
            cursor.execute(
                "DELETE FROM flashcards WHERE deck_id = $1 RETURNING id;",
                (deck_id,),
            )
            removed_cards = len(cursor.fetchall())
            cursor.execute(
                "DELETE FROM study_sessions WHERE deck_id = $1;", (deck_id,)
            )
            cursor.execute(
                "DELETE FROM decks WHERE id = $1 RETURNING id;", (deck_id,)
            )
            if not cursor.fetchall():
                raise DeckNotFoundError(f"Deck {deck_id} not found.")
            return removed_cards

        removed = self._run_transaction(
            work, DeckOperationError, f"delete deck {deck_id}"
        )
        logger.info(f"Deleted deck {deck_id} and {removed} flashcard(s).")
        return removed

    # --- Flashcard Operations ---

    def add_flashcard(self, card: Flashcard) -> Flashcard:
        """
        Insert a flashcard into an existing deck.

        Raises:
            DeckNotFoundError: If the owning deck does not exist.
            CardOperationError: If the insert fails.
        """
        self._ensure_writable("add flashcard")
        self.require_deck(card.deck_id)
        sql = """
        INSERT INTO flashcards (id, deck_id, front, back, difficulty, last_reviewed,
                                review_count, created_at, updated_at)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9);
        """
        self._run_transaction(
            lambda cur: cur.execute(sql, db_utils.flashcard_to_db_params(card)),
            CardOperationError,
            f"add flashcard {card.id}",
        )
        logger.debug(f"Added flashcard {card.id} to deck {card.deck_id}")
        return card

    def _rows_to_flashcards(
        self, rows: List[Dict[str, Any]], context: str
    ) -> List[Flashcard]:
        try:
            return [db_utils.db_row_to_flashcard(row) for row in rows]
        except MarshallingError as e:
            raise CardOperationError(
                f"Failed to parse {context} from database.",
                original_exception=e,
            ) from e

    def get_flashcard(self, card_id: uuid.UUID) -> Optional[Flashcard]:
        rows = self._fetch_rows(
            "SELECT * FROM flashcards WHERE id = $1;",
            (card_id,),
            CardOperationError,
            f"fetch flashcard {card_id}",
        )
        cards = self._rows_to_flashcards(rows, f"flashcard {card_id}")
        return cards[0] if cards else None

    def list_cards_for_deck(self, deck_id: uuid.UUID) -> List[Flashcard]:
        """Return a deck's flashcards, oldest first."""
        rows = self._fetch_rows(
            "SELECT * FROM flashcards WHERE deck_id = $1 ORDER BY created_at ASC;",
            (deck_id,),
            CardOperationError,
            f"list flashcards for deck {deck_id}",
        )
        return self._rows_to_flashcards(rows, f"flashcards of deck {deck_id}")

    def get_all_flashcards(self) -> List[Flashcard]:
        rows = self._fetch_rows(
            "SELECT * FROM flashcards ORDER BY created_at ASC;",
            (),
            CardOperationError,
            "fetch all flashcards",
        )
        return self._rows_to_flashcards(rows, "flashcards")

    def update_flashcard(
        self,
        card_id: uuid.UUID,
        front: Optional[str] = None,
        back: Optional[str] = None,
    ) -> Flashcard:
        """
        Edit a card's content. Scheduling fields only change via apply_review.

        Raises:
            CardNotFoundError: If no card has this id.
        """
        self._ensure_writable("update flashcard")
        card = self.get_flashcard(card_id)
        if card is None:
            raise CardNotFoundError(f"Flashcard {card_id} not found.")
        if front is not None:
            card.front = front
        if back is not None:
            card.back = back
        card.updated_at = _utcnow()

        sql = """
        UPDATE flashcards SET front = $1, back = $2, updated_at = $3
        WHERE id = $4;
        """
        self._run_transaction(
            lambda cur: cur.execute(
                sql,
                (
                    card.front,
                    card.back,
                    db_utils.to_db_timestamp(card.updated_at),
                    card_id,
                ),
            ),
            CardOperationError,
            f"update flashcard {card_id}",
        )
        return card

    def delete_flashcard(self, card_id: uuid.UUID) -> None:
        """
        Raises:
            CardNotFoundError: If no card has this id.
        """
        self._ensure_writable("delete flashcard")

        def work(cursor) -> None:
            cursor.execute(
                "DELETE FROM flashcards WHERE id = $1 RETURNING id;", (card_id,)
            )
            if not cursor.fetchall():
                raise CardNotFoundError(f"Flashcard {card_id} not found.")

        self._run_transaction(
            work, CardOperationError, f"delete flashcard {card_id}"
        )
        logger.debug(f"Deleted flashcard {card_id}")

    # --- Review Operations ---

    def apply_review(
        self,
        card_id: uuid.UUID,
        difficulty: int,
        reviewed_at: Optional[datetime] = None,
    ) -> Flashcard:
        """
        Record a review: replace the difficulty, stamp last_reviewed and
        increment review_count by one, atomically.

        Parameters:
            card_id (UUID): Card being reviewed.
            difficulty (int): Difficulty given, 1..3.
            reviewed_at (Optional[datetime]): Review instant; defaults to now (UTC).

        Returns:
            Flashcard: The card after the update.

        Raises:
            ReviewOperationError: If the difficulty is invalid or the update fails.
            CardNotFoundError: If no card has this id.
        """
        self._ensure_writable("apply review")
        try:
            rating = Difficulty(difficulty)
        except ValueError as e:
            raise ReviewOperationError(
                f"Invalid difficulty {difficulty!r} for flashcard {card_id}.",
                original_exception=e,
            ) from e
        ts = db_utils.to_db_timestamp(reviewed_at or _utcnow())

        sql = """
        UPDATE flashcards
        SET difficulty = $1, last_reviewed = $2, review_count = review_count + 1, updated_at = $2
        WHERE id = $3
        RETURNING *;
        """

        def work(cursor) -> List[Dict[str, Any]]:
            cursor.execute(sql, (int(rating), ts, card_id))
            rows = db_utils.rows_to_dicts(cursor)
            if not rows:
                raise CardNotFoundError(f"Flashcard {card_id} not found.")
            return rows

        rows = self._run_transaction(
            work, ReviewOperationError, f"apply review to flashcard {card_id}"
        )
        return self._rows_to_flashcards(rows, f"flashcard {card_id}")[0]

    # --- Study Session Operations ---

    def create_study_session(
        self, record: StudySessionRecord
    ) -> StudySessionRecord:
        self._ensure_writable("create study session")
        sql = """
        INSERT INTO study_sessions (id, deck_id, cards_studied, correct_answers,
                                    started_at, completed_at)
        VALUES ($1, $2, $3, $4, $5, $6);
        """
        self._run_transaction(
            lambda cur: cur.execute(
                sql, db_utils.study_session_to_db_params(record)
            ),
            SessionOperationError,
            f"create study session {record.id}",
        )
        logger.info(
            f"Created study session {record.id} for deck {record.deck_id}"
        )
        return record

    def update_study_session(
        self,
        session_id: uuid.UUID,
        cards_studied: int,
        correct_answers: int,
        completed: bool = False,
    ) -> StudySessionRecord:
        """
        Store the running totals of a study session; `completed` stamps
        completed_at.

        Raises:
            SessionOperationError: If the session does not exist or the
                update fails.
        """
        self._ensure_writable("update study session")
        if completed:
            sql = """
            UPDATE study_sessions
            SET cards_studied = $1, correct_answers = $2, completed_at = $3
            WHERE id = $4 RETURNING *;
            """
            params: Sequence[Any] = (
                cards_studied,
                correct_answers,
                db_utils.to_db_timestamp(_utcnow()),
                session_id,
            )
        else:
            sql = """
            UPDATE study_sessions SET cards_studied = $1, correct_answers = $2
            WHERE id = $3 RETURNING *;
            """
            params = (cards_studied, correct_answers, session_id)

        def work(cursor) -> List[Dict[str, Any]]:
            cursor.execute(sql, params)
            rows = db_utils.rows_to_dicts(cursor)
            if not rows:
                raise SessionOperationError(
                    f"Study session {session_id} not found."
                )
            return rows

        rows = self._run_transaction(
            work, SessionOperationError, f"update study session {session_id}"
        )
        try:
            return db_utils.db_row_to_study_session(rows[0])
        except MarshallingError as e:
            raise SessionOperationError(
                f"Failed to parse study session {session_id}.",
                original_exception=e,
            ) from e

    def get_study_session(
        self, session_id: uuid.UUID
    ) -> Optional[StudySessionRecord]:
        rows = self._fetch_rows(
            "SELECT * FROM study_sessions WHERE id = $1;",
            (session_id,),
            SessionOperationError,
            f"fetch study session {session_id}",
        )
        if not rows:
            return None
        try:
            return db_utils.db_row_to_study_session(rows[0])
        except MarshallingError as e:
            raise SessionOperationError(
                f"Failed to parse study session {session_id}.",
                original_exception=e,
            ) from e

    # --- Statistics ---

    def get_deck_stats(self, deck_id: uuid.UUID) -> DeckStats:
        """
        Card totals for one deck. The average difficulty only covers
        reviewed cards; an unknown deck reports zeros.
        """
        sql = """
        SELECT
            COUNT(*) AS total_cards,
            COUNT(last_reviewed) AS reviewed_cards,
            AVG(CASE WHEN last_reviewed IS NOT NULL THEN difficulty END) AS avg_difficulty
        FROM flashcards
        WHERE deck_id = $1;
        """
        rows = self._fetch_rows(
            sql, (deck_id,), CardOperationError, f"compute stats for deck {deck_id}"
        )
        row = rows[0] if rows else {}
        return DeckStats(
            total_cards=row.get("total_cards") or 0,
            reviewed_cards=row.get("reviewed_cards") or 0,
            avg_difficulty=float(row.get("avg_difficulty") or 0.0),
        )
