from pathlib import Path
from typing import Optional

from flipdeck.cli.study_ui import start_study_flow
from flipdeck.db.database import FlashcardDatabase
from flipdeck.review_manager import StudySessionManager
from flipdeck.scheduler import IntervalScheduler


def study_logic(
    deck_ref: str,
    db_path: Path,
    shuffle: Optional[bool] = None,
    due_only: bool = False,
    seed: Optional[int] = None,
):
    """
    Set up and start a study session for the specified deck.

    Parameters:
        deck_ref (str): Name or id of the deck to study.
        db_path (Path): Path to the flashcard database file.
        shuffle (Optional[bool]): Shuffle the cards; None uses the
            configured default.
        due_only (bool): Only study cards that are due for review.
        seed (Optional[int]): Seed for a reproducible shuffle.
    """
    with FlashcardDatabase(db_path=db_path) as db_manager:
        db_manager.initialize_schema()
        deck = db_manager.resolve_deck(deck_ref)

        manager = StudySessionManager(
            db_manager=db_manager,
            deck_id=deck.id,
            scheduler=IntervalScheduler(),
        )
        start_study_flow(manager, shuffle=shuffle, due_only=due_only, seed=seed)
