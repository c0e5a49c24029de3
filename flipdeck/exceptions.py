from typing import Optional
from uuid import UUID


class FlipdeckError(Exception):
    """Base exception for study-core errors."""

    pass


class InvalidInputError(FlipdeckError, ValueError):
    """Raised when a difficulty or other argument is outside its domain."""

    pass


class InvalidStateError(FlipdeckError):
    """Raised when a session operation is not valid in the current state."""

    pass


class RecorderFailure(FlipdeckError):
    """Raised when the store could not persist a review outcome."""

    def __init__(
        self,
        message: str,
        card_id: Optional[UUID] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.card_id = card_id
        self.original_exception = original_exception


class DatabaseError(Exception):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class DeckOperationError(DatabaseError):
    """Raised for errors during deck operations (CRUD)."""

    pass


class CardOperationError(DatabaseError):
    """Raised for errors during flashcard operations (CRUD)."""

    pass


class ReviewOperationError(DatabaseError):
    """Indicates an error while applying a review to a flashcard."""

    pass


class MarshallingError(DatabaseError):
    """Indicates an error during data conversion between application models
    and DB format."""

    pass


class SessionOperationError(DatabaseError):
    """Indicates an error during a study-session database operation."""

    pass


class DeckNotFoundError(DatabaseError):
    """Raised when a specified deck is not found."""

    pass


class CardNotFoundError(DatabaseError):
    """Raised when a specified flashcard is not found."""

    pass
