import duckdb
import logging

from .connection import ConnectionHandler
from . import schema
from ..exceptions import SchemaInitializationError

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates the flipdeck tables if they do not exist."""

    def __init__(self, handler: ConnectionHandler):
        """
        Args:
            handler: The ConnectionHandler instance for the database.
        """
        self._handler = handler

    def initialize_schema(self) -> None:
        """
        Creates the schema inside a transaction. Skipped for file databases
        opened read-only.

        Raises:
            SchemaInitializationError: If the DDL fails.
        """
        if self._handler.read_only and not self._handler.is_memory:
            logger.warning(
                "Attempting to initialize schema in read-only mode. Skipping."
            )
            return

        conn = self._handler.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                cursor.execute(schema.DB_SCHEMA_SQL)
                cursor.commit()
            logger.info(
                f"Database schema at {self._handler.db_path_resolved} initialized successfully (or already exists)."
            )
        except duckdb.Error as e:
            logger.error(
                f"Error initializing database schema at {self._handler.db_path_resolved}: {e}"
            )
            try:
                conn.rollback()
                logger.info(
                    "Transaction rolled back due to schema initialization error."
                )
            except duckdb.Error as rb_err:
                logger.error(f"Failed to rollback transaction: {rb_err}")
            raise SchemaInitializationError(
                f"Failed to initialize schema: {e}", original_exception=e
            ) from e
