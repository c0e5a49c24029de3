"""
Defines the database schema for flipdeck using a SQL string constant.
This keeps the schema definition separate from the database connection and
operation logic.

Timestamps are stored as naive UTC TIMESTAMPs; db_utils re-attaches UTC on
the way out. Deck deletion cascades in FlashcardDatabase.delete_deck because
DuckDB foreign keys do not support ON DELETE CASCADE.
"""

DB_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS decks (
        id UUID PRIMARY KEY,
        name VARCHAR NOT NULL,
        description VARCHAR,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    );

    CREATE TABLE IF NOT EXISTS flashcards (
        id UUID PRIMARY KEY,
        deck_id UUID NOT NULL,
        front VARCHAR NOT NULL,
        back VARCHAR NOT NULL,
        difficulty INTEGER NOT NULL DEFAULT 1 CHECK (difficulty >= 1 AND difficulty <= 3),
        last_reviewed TIMESTAMP,
        review_count INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    );

    CREATE TABLE IF NOT EXISTS study_sessions (
        id UUID PRIMARY KEY,
        deck_id UUID NOT NULL,
        cards_studied INTEGER NOT NULL DEFAULT 0,
        correct_answers INTEGER NOT NULL DEFAULT 0,
        started_at TIMESTAMP NOT NULL,
        completed_at TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_flashcards_deck_id ON flashcards (deck_id);
    CREATE INDEX IF NOT EXISTS idx_study_sessions_deck_id ON study_sessions (deck_id);
"""
