"""
Utility functions for data marshalling between Pydantic models and database formats.
Keeps conversion details (column names, timestamp handling) out of the query code.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from ..clock import ensure_utc
from ..exceptions import MarshallingError
from ..models import Card, Difficulty

# Column order shared by INSERT statements and card_to_db_params.
CARD_COLUMNS: Tuple[str, ...] = (
    "uuid",
    "owner_id",
    "course_id",
    "front",
    "back",
    "example",
    "category",
    "difficulty",
    "repetitions",
    "easiness_factor",
    "interval_days",
    "last_reviewed",
    "next_review",
    "created_at",
    "modified_at",
)


def to_db_timestamp(ts: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to the naive UTC value stored in TIMESTAMP columns."""
    if ts is None:
        return None
    return ensure_utc(ts).replace(tzinfo=None)


def from_db_timestamp(ts: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive TIMESTAMP value read back from the database."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def card_to_db_params(card: Card) -> Tuple:
    """
    Convert a Card into a parameter tuple ordered like CARD_COLUMNS.
    """
    return (
        card.uuid,
        card.owner_id,
        card.course_id,
        card.front,
        card.back,
        card.example,
        card.category,
        card.difficulty.value,
        card.repetitions,
        card.easiness_factor,
        card.interval,
        to_db_timestamp(card.last_reviewed),
        to_db_timestamp(card.next_review),
        to_db_timestamp(card.created_at),
        to_db_timestamp(card.modified_at),
    )


def transform_db_row_for_card(row_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Prepare a database row dictionary for constructing a Card model.

    Renames `interval_days` to `interval`, turns `difficulty` into the enum
    and re-attaches UTC to every timestamp.
    """
    data = row_dict.copy()

    if "interval_days" in data:
        data["interval"] = data.pop("interval_days")

    difficulty_val = data.get("difficulty")
    if difficulty_val is not None:
        try:
            data["difficulty"] = Difficulty(difficulty_val)
        except ValueError as e:
            raise MarshallingError(
                f"Unknown difficulty '{difficulty_val}' in DB row.",
                original_exception=e,
            ) from e

    for key in ("last_reviewed", "next_review", "created_at", "modified_at"):
        if key in data:
            data[key] = from_db_timestamp(data[key])

    return data


def db_row_to_card(row_dict: Dict[str, Any]) -> Card:
    """
    Create a Card model from a database row dictionary.

    Raises:
        MarshallingError: If the row cannot be validated into a Card (wraps the original ValidationError).
    """
    data = transform_db_row_for_card(row_dict)

    try:
        return Card(**data)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse card from DB row: {row_dict}. Error: {e}",
            original_exception=e,
        ) from e
