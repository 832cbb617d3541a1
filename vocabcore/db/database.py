"""
DuckDB database interactions for vocabcore.
Implements CardDatabase, the DuckDB-backed CardStore.
"""

import duckdb
import json
import logging
import uuid
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, cast

from . import db_utils
from .connection import ConnectionHandler
from .schema_manager import SchemaManager
from .store import CardStore
from ..clock import system_clock
from ..exceptions import (
    CardNotFoundError,
    CardOperationError,
    MarshallingError,
)
from ..models import Card, CardContent, CardDraft

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Dict[str, Any]]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class CardDatabase(CardStore):
    """
    Acts as a Facade for the database subsystem, providing a simple, high-level
    interface for all card data operations.

    It coordinates the ConnectionHandler, SchemaManager, and data marshalling
    utilities. Intended for use as a context manager.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Create a CardDatabase backed by the given DuckDB path.

        Args:
            db_path (str | Path): Path to the database file. Use ':memory:' for an in-memory database.
            read_only (bool): If True, open the database in read-only mode; every write raises CardOperationError.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)

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

    def __enter__(self) -> "CardDatabase":
        """
        Open the connection and create the schema if a new writable database was created.
        """
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Ensures the connection is closed on exiting the context."""
        self.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Ensure the card table exists; optionally drop and recreate it.
        """
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    # --- Helpers ---

    def _ensure_writable(self, operation: str) -> None:
        if self.read_only:
            raise CardOperationError(f"Cannot {operation} in read-only mode.")

    def _rollback_quietly(self, conn, context: str) -> None:
        """Roll back after a failed write; rollback failures are only logged."""
        if conn is None:
            return
        try:
            conn.rollback()
            logger.info(f"Transaction rolled back due to {context} error.")
        except duckdb.Error as rb_err:
            logger.error(f"Failed to rollback transaction: {rb_err}")

    def _rows_to_cards(self, rows: List[Dict[str, Any]]) -> List[Card]:
        try:
            return [
                db_utils.db_row_to_card(cast(Dict[str, Any], row))
                for row in rows
            ]
        except MarshallingError as e:
            raise CardOperationError(
                "Failed to parse cards from database.",
                original_exception=e,
            ) from e

    # --- Card Operations ---
    # fmt: off
    _INSERT_CARD_SQL = f"""
        INSERT INTO cards ({", ".join(db_utils.CARD_COLUMNS)})
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15)
        """

    _UPSERT_CARD_SQL = _INSERT_CARD_SQL + """
        ON CONFLICT (uuid) DO UPDATE SET
            -- owner_id, course_id and created_at are fixed at creation
            front = EXCLUDED.front,
            back = EXCLUDED.back,
            example = EXCLUDED.example,
            category = EXCLUDED.category,
            difficulty = EXCLUDED.difficulty,
            repetitions = EXCLUDED.repetitions,
            easiness_factor = EXCLUDED.easiness_factor,
            interval_days = EXCLUDED.interval_days,
            last_reviewed = EXCLUDED.last_reviewed,
            next_review = EXCLUDED.next_review,
            modified_at = EXCLUDED.modified_at;
        """
    # fmt: on

    def _execute_write(self, sql: str, params: tuple, context: str) -> List[Any]:
        """
        Run one write statement in its own transaction and return any rows it produced.

        Raises:
            CardOperationError: If DuckDB rejects the statement; the transaction is rolled back.
        """
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                cursor.execute(sql, params)
                rows = cursor.fetchall() if cursor.description else []
                cursor.commit()
            return rows
        except duckdb.Error as e:
            logger.error(f"Error during card {context}: {e}")
            self._rollback_quietly(conn, context)
            raise CardOperationError(
                f"Card {context} failed: {e}", original_exception=e
            ) from e

    def create(self, draft: CardDraft) -> Card:
        """
        Persist a new card built from the draft.

        Returns:
            Card: The stored card with a fresh UUID and default scheduling state.

        Raises:
            CardValidationError: If the draft's `front` or `back` is blank.
            CardOperationError: If the database is read-only or the insert fails.
        """
        card = draft.to_card()
        self._ensure_writable("create cards")
        self._execute_write(
            self._INSERT_CARD_SQL, db_utils.card_to_db_params(card), "insert"
        )
        logger.info(f"Created card {card.uuid} for owner '{card.owner_id}'.")
        return card

    def save(self, card: Card) -> None:
        """
        Overwrite the stored record of a card with its current values.

        Saving the same card twice leaves the same record. Ownership and
        creation time of an existing record are never changed.

        Raises:
            CardOperationError: If the database is read-only or the write fails.
        """
        self._ensure_writable("save cards")
        self._execute_write(
            self._UPSERT_CARD_SQL, db_utils.card_to_db_params(card), "save"
        )
        logger.debug(
            f"Saved card {card.uuid} (next review {card.next_review})."
        )

    def delete(self, card_uuid: uuid.UUID) -> bool:
        """
        Delete a card by UUID.

        Returns:
            bool: True if a card was deleted, False if none matched.

        Raises:
            CardOperationError: If the database is read-only or the delete fails.
        """
        self._ensure_writable("delete cards")
        rows = self._execute_write(
            "DELETE FROM cards WHERE uuid = $1 RETURNING uuid;",
            (card_uuid,),
            "delete",
        )
        deleted = bool(rows)
        if deleted:
            logger.info(f"Deleted card {card_uuid}.")
        else:
            logger.warning(f"Delete requested for unknown card {card_uuid}.")
        return deleted

    def update_content(
        self, card_uuid: uuid.UUID, content: CardContent
    ) -> Card:
        """
        Replace the editable content of a card, leaving its scheduling state alone.

        Returns:
            Card: The card as stored after the edit.

        Raises:
            CardValidationError: If `front` or `back` is blank.
            CardNotFoundError: If no card has the given UUID.
            CardOperationError: If the database is read-only or the update fails.
        """
        content.ensure_complete()
        self._ensure_writable("edit cards")
        sql = """
        UPDATE cards
        SET front = $1, back = $2, example = $3, category = $4, difficulty = $5, modified_at = $6
        WHERE uuid = $7
        RETURNING uuid;
        """
        params = (
            content.front,
            content.back,
            content.example,
            content.category,
            content.difficulty.value,
            db_utils.to_db_timestamp(system_clock()),
            card_uuid,
        )
        rows = self._execute_write(sql, params, "edit")
        if not rows:
            raise CardNotFoundError(f"Card {card_uuid} not found.")

        updated_card = self.get_card_by_uuid(card_uuid)
        if updated_card is None:
            raise CardNotFoundError(
                f"Card {card_uuid} disappeared right after being edited."
            )
        return updated_card

    def get_card_by_uuid(self, card_uuid: uuid.UUID) -> Optional[Card]:
        """
        Fetches a card by its UUID.

        Returns:
            Card | None: The card, or `None` if no matching card exists.

        Raises:
            CardOperationError: If a database error occurs or the row cannot be parsed into a Card.
        """
        conn = self.get_connection()
        sql = "SELECT * FROM cards WHERE uuid = $1;"
        try:
            cursor = conn.execute(sql, (card_uuid,))
            rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            logger.error(f"Error fetching card by UUID {card_uuid}: {e}")
            raise CardOperationError(
                f"Failed to fetch card by UUID: {e}", original_exception=e
            ) from e
        if not rows:
            return None
        return self._rows_to_cards(rows)[0]

    def load_pool(
        self, owner_id: str, course_id: Optional[str] = None
    ) -> List[Card]:
        """
        Retrieve every card of a learner, newest first.

        Parameters:
            owner_id (str): Learner whose cards are loaded.
            course_id (Optional[str]): If given, only cards of this course are returned.

        Raises:
            CardOperationError: If the query fails or rows cannot be converted to Card objects.
        """
        conn = self.get_connection()
        sql = "SELECT * FROM cards WHERE owner_id = $1"
        params: List[Any] = [owner_id]
        if course_id is not None:
            sql += " AND course_id = $2"
            params.append(course_id)
        sql += " ORDER BY created_at DESC, uuid;"
        try:
            cursor = conn.execute(sql, params)
            rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            logger.error(
                f"Error loading cards for owner '{owner_id}' (course: {course_id}): {e}"
            )
            raise CardOperationError(
                f"Failed to load card pool: {e}", original_exception=e
            ) from e
        cards = self._rows_to_cards(rows)
        logger.debug(f"Loaded {len(cards)} cards for owner '{owner_id}'.")
        return cards

    def get_categories(self, owner_id: str) -> List[str]:
        """
        Return the sorted distinct categories used by a learner's cards.

        Raises:
            CardOperationError: If the query fails.
        """
        conn = self.get_connection()
        sql = "SELECT DISTINCT category FROM cards WHERE owner_id = $1 ORDER BY category;"
        try:
            rows = conn.execute(sql, (owner_id,)).fetchall()
        except duckdb.Error as e:
            logger.error(f"Could not fetch categories for '{owner_id}': {e}")
            raise CardOperationError(
                "Could not fetch categories.", original_exception=e
            ) from e
        return [row[0] for row in rows]

    def get_owner_stats(
        self, owner_id: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Aggregate statistics over one learner's cards.

        Returns:
            dict: A dictionary with the following keys:
                - total_cards (int)
                - due_count (int): cards never reviewed or due at `now`.
                - new_count (int): cards never reviewed.
                - mean_easiness (float | None): None when the learner has no cards.
                - categories (collections.Counter): card count per category.
                - difficulties (collections.Counter): card count per difficulty.

        Raises:
            CardOperationError: If the query fails.
        """
        conn = self.get_connection()
        at = db_utils.to_db_timestamp(now or system_clock())
        sql = """
        WITH OwnerCards AS (
            SELECT * FROM cards WHERE owner_id = $1
        ), CategoryStats AS (
            SELECT category, COUNT(*) AS n FROM OwnerCards GROUP BY category
        ), DifficultyStats AS (
            SELECT difficulty, COUNT(*) AS n FROM OwnerCards GROUP BY difficulty
        )
        SELECT
            (SELECT COUNT(*) FROM OwnerCards) AS total_cards,
            (SELECT COUNT(*) FROM OwnerCards WHERE next_review IS NULL OR next_review <= $2) AS due_count,
            (SELECT COUNT(*) FROM OwnerCards WHERE next_review IS NULL) AS new_count,
            (SELECT AVG(easiness_factor) FROM OwnerCards) AS mean_easiness,
            (SELECT json_group_object(category, n) FROM CategoryStats) AS categories,
            (SELECT json_group_object(difficulty, n) FROM DifficultyStats) AS difficulties;
        """
        try:
            result = conn.execute(sql, (owner_id, at)).fetchone()
            if not result or not result[0]:
                return {
                    "total_cards": 0,
                    "due_count": 0,
                    "new_count": 0,
                    "mean_easiness": None,
                    "categories": Counter(),
                    "difficulties": Counter(),
                }

            (
                total_cards,
                due_count,
                new_count,
                mean_easiness,
                categories_json,
                difficulties_json,
            ) = result
            return {
                "total_cards": total_cards,
                "due_count": due_count or 0,
                "new_count": new_count or 0,
                "mean_easiness": mean_easiness,
                "categories": (
                    Counter(json.loads(categories_json))
                    if categories_json
                    else Counter()
                ),
                "difficulties": (
                    Counter(json.loads(difficulties_json))
                    if difficulties_json
                    else Counter()
                ),
            }
        except (duckdb.Error, json.JSONDecodeError) as e:
            logger.error(
                f"Could not retrieve stats for owner '{owner_id}': {e}"
            )
            raise CardOperationError(
                "Could not retrieve card statistics.", original_exception=e
            ) from e
