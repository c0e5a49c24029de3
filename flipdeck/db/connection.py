import duckdb
import logging
from pathlib import Path
from typing import Optional, Union

from ..config import settings
from ..exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


def resolve_db_path(db_path: Optional[Union[str, Path]]) -> Path:
    """
    Map a user-supplied location to the path DuckDB should open.

    None means the configured FLIPDECK_DB_PATH. ":memory:" is accepted in
    any case. Files are expanded (``~``) and made absolute.
    """
    if db_path is None:
        db_path = settings.db_path
    if isinstance(db_path, str) and db_path.lower() == MEMORY_PATH:
        return Path(MEMORY_PATH)
    return Path(db_path).expanduser().resolve()


class ConnectionHandler:
    """
    Owns the single DuckDB connection behind a FlashcardDatabase.

    The connection is opened on first use. Opening a file that does not
    exist creates it (and its directory) and flags it as new so the schema
    gets built; in read-only mode a missing file is an error instead.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        read_only: bool = False,
    ):
        self.db_path_resolved = resolve_db_path(db_path)
        self.read_only: bool = read_only
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self.is_new_db: bool = False
        logger.debug(
            f"Card store location: {self.db_path_resolved} "
            f"(read_only={read_only})"
        )

    @property
    def is_memory(self) -> bool:
        return str(self.db_path_resolved) == MEMORY_PATH

    def _prepare_file(self) -> None:
        if self.db_path_resolved.exists():
            self.is_new_db = False
            return
        if self.read_only:
            raise DatabaseConnectionError(
                f"No flipdeck database at {self.db_path_resolved}; "
                "run `flipdeck init` first."
            )
        self.is_new_db = True
        self.db_path_resolved.parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Return the open connection, connecting first if needed.

        Raises:
            DatabaseConnectionError: If the file is missing in read-only mode
                or DuckDB cannot open the database.
        """
        if self._connection is not None:
            return self._connection

        if self.is_memory:
            # A fresh in-memory database is always empty and always writable.
            self.is_new_db = True
        else:
            self._prepare_file()

        try:
            self._connection = duckdb.connect(
                database=str(self.db_path_resolved),
                read_only=self.read_only and not self.is_memory,
            )
        except duckdb.Error as e:
            raise DatabaseConnectionError(
                f"Failed to open flipdeck database at {self.db_path_resolved}: {e}",
                original_exception=e,
            ) from e
        logger.info(f"Opened flipdeck database at {self.db_path_resolved}")
        return self._connection

    def close_connection(self) -> None:
        """Close the connection, if open. A later call reconnects."""
        if self._connection is None:
            return
        try:
            self._connection.close()
            logger.info(f"Closed flipdeck database at {self.db_path_resolved}")
        except duckdb.Error as e:
            logger.error(f"Error closing the database connection: {e}")
        finally:
            self._connection = None

    def __enter__(self) -> duckdb.DuckDBPyConnection:
        return self.get_connection()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()
