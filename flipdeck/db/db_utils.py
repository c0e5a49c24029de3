"""
Utility functions for data marshalling between Pydantic models and database formats.
This module helps decouple the core database logic from the specifics of data conversion.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import duckdb
from pydantic import ValidationError

from ..models import Deck, Flashcard, StudySessionRecord
from ..exceptions import MarshallingError


def rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Dict[str, Any]]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


def to_db_timestamp(ts: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to the naive UTC value stored in DuckDB."""
    if ts is None:
        return None
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.replace(tzinfo=None)


def from_db_timestamp(ts: Optional[datetime]) -> Optional[datetime]:
    """Re-attach UTC to a naive timestamp read from DuckDB."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


_TIMESTAMP_FIELDS = (
    "created_at",
    "updated_at",
    "last_reviewed",
    "started_at",
    "completed_at",
)


def _restore_timestamps(row_dict: Dict[str, Any]) -> Dict[str, Any]:
    data = row_dict.copy()
    for key in _TIMESTAMP_FIELDS:
        if key in data:
            data[key] = from_db_timestamp(data[key])
    return data


def deck_to_db_params(deck: Deck) -> Tuple:
    """
    Returns:
        Tuple: (id, name, description, created_at, updated_at)
    """
    return (
        deck.id,
        deck.name,
        deck.description,
        to_db_timestamp(deck.created_at),
        to_db_timestamp(deck.updated_at),
    )


def flashcard_to_db_params(card: Flashcard) -> Tuple:
    """
    Returns:
        Tuple: (id, deck_id, front, back, difficulty, last_reviewed,
        review_count, created_at, updated_at)
    """
    return (
        card.id,
        card.deck_id,
        card.front,
        card.back,
        int(card.difficulty),
        to_db_timestamp(card.last_reviewed),
        card.review_count,
        to_db_timestamp(card.created_at),
        to_db_timestamp(card.updated_at),
    )


def study_session_to_db_params(record: StudySessionRecord) -> Tuple:
    """
    Returns:
        Tuple: (id, deck_id, cards_studied, correct_answers, started_at,
        completed_at)
    """
    return (
        record.id,
        record.deck_id,
        record.cards_studied,
        record.correct_answers,
        to_db_timestamp(record.started_at),
        to_db_timestamp(record.completed_at),
    )


def db_row_to_deck(row_dict: Dict[str, Any]) -> Deck:
    """
    Raises:
        MarshallingError: If the row cannot be validated into a Deck.
    """
    try:
        return Deck(**_restore_timestamps(row_dict))
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse deck from DB row: {row_dict}",
            original_exception=e,
        ) from e


def db_row_to_flashcard(row_dict: Dict[str, Any]) -> Flashcard:
    """
    Create a Flashcard model from a database row dictionary.

    Raises:
        MarshallingError: If the row cannot be validated into a Flashcard
            (wraps the original ValidationError).
    """
    try:
        return Flashcard(**_restore_timestamps(row_dict))
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse flashcard from DB row: {row_dict}",
            original_exception=e,
        ) from e


def db_row_to_study_session(row_dict: Dict[str, Any]) -> StudySessionRecord:
    """
    Raises:
        MarshallingError: If the row cannot be validated into a record.
    """
    try:
        return StudySessionRecord(**_restore_timestamps(row_dict))
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse study session from DB row: {row_dict}",
            original_exception=e,
        ) from e
