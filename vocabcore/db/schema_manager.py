"""
Creation of the `cards` table, with a guarded drop-and-recreate path.
"""

import duckdb
import logging

from . import schema
from .connection import ConnectionHandler
from ..exceptions import DatabaseConnectionError, SchemaInitializationError
from .. import config as vocabcore_config

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates the card table and, on request, recreates it."""

    def __init__(self, handler: ConnectionHandler):
        self._handler = handler

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Run the schema DDL in one transaction.

        A read-only store is left as it is. `force_recreate_tables` drops the
        cards table first; a file-backed table that still holds cards is
        refused unless `testing_mode` is set.

        Raises:
            DatabaseConnectionError: If recreation is requested on a read-only store.
            SchemaInitializationError: If the DDL fails or the drop is refused.
        """
        if self._handler.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError(
                    "Cannot recreate the cards table in read-only mode."
                )
            logger.debug("Read-only card store; schema left untouched.")
            return

        conn = self._handler.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                if force_recreate_tables:
                    self._drop_cards_table(cursor)
                cursor.execute(schema.DB_SCHEMA_SQL)
                cursor.commit()
        except duckdb.Error as e:
            logger.error(f"Schema setup failed for {self._handler.db_path_resolved}: {e}")
            raise SchemaInitializationError(
                f"Failed to initialize schema: {e}", original_exception=e
            ) from e
        logger.info(f"Card schema ready at {self._handler.db_path_resolved}.")

    def _stored_card_count(self, cursor: duckdb.DuckDBPyConnection) -> int:
        (tables,) = cursor.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = 'cards'"
        ).fetchone()
        if not tables:
            return 0
        (count,) = cursor.execute("SELECT COUNT(*) FROM cards").fetchone()
        return count

    def _drop_cards_table(self, cursor: duckdb.DuckDBPyConnection) -> None:
        guarded = not (
            self._handler.is_in_memory or vocabcore_config.settings.testing_mode
        )
        if guarded:
            count = self._stored_card_count(cursor)
            if count:
                msg = f"Refusing to drop the cards table: it holds {count} cards."
                logger.error(msg)
                raise SchemaInitializationError(msg)
        logger.warning(f"Dropping the cards table at {self._handler.db_path_resolved}.")
        cursor.execute("DROP TABLE IF EXISTS cards;")
