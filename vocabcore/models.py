"""
Pydantic models for vocabulary cards and study sessions.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .clock import ensure_utc
from .constants import (
    DEFAULT_CATEGORY,
    DEFAULT_EASINESS_FACTOR,
    DEFAULT_INTERVAL,
    MINIMUM_EASINESS_FACTOR,
)
from .exceptions import CardValidationError


class Difficulty(str, Enum):
    """
    Author-assigned difficulty label. Independent of scheduling state.
    """

    Easy = "easy"
    Medium = "medium"
    Hard = "hard"


class Rating(IntEnum):
    """
    Represents the learner's rating of their recall after seeing the answer.
    """

    Hard = 0
    Difficult = 1
    Good = 2
    Easy = 3


class CardFace(str, Enum):
    """
    The side of the current card a study session is showing.
    """

    Front = "front"
    Back = "back"
    Complete = "complete"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CardContent(BaseModel):
    """
    Learner-editable content of a card.

    Text fields are trimmed on the way in; a blank example becomes None and a
    blank category falls back to the default category.
    """

    model_config = ConfigDict(extra="forbid")

    front: str = Field(
        default="",
        max_length=1024,
        description="Term in the language being learned.",
    )
    back: str = Field(
        default="",
        max_length=1024,
        description="Translation of the term.",
    )
    example: Optional[str] = Field(
        default=None,
        description="Optional example sentence using the term.",
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Free-text grouping label.",
    )
    difficulty: Difficulty = Field(
        default=Difficulty.Medium,
        description="Author-assigned difficulty.",
    )

    @field_validator("front", "back", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("example", mode="before")
    @classmethod
    def blank_example_is_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("category", mode="before")
    @classmethod
    def blank_category_is_default(cls, v):
        if v is None:
            return DEFAULT_CATEGORY
        if isinstance(v, str):
            return v.strip() or DEFAULT_CATEGORY
        return v

    def ensure_complete(self) -> None:
        """
        Reject content that cannot become a card.

        Raises:
            CardValidationError: If `front` or `back` is empty.
        """
        missing = [name for name in ("front", "back") if not getattr(self, name)]
        if missing:
            raise CardValidationError(
                f"Card is missing required content: {', '.join(missing)}."
            )

    def content_fields(self) -> Dict[str, object]:
        """Return the content fields as a plain mapping."""
        return {
            "front": self.front,
            "back": self.back,
            "example": self.example,
            "category": self.category,
            "difficulty": self.difficulty,
        }


class CardDraft(CardContent):
    """
    A card as submitted by its author, before it has an identity.
    """

    owner_id: str = Field(
        ...,
        min_length=1,
        description="Learner who will own the card.",
    )
    course_id: Optional[str] = Field(
        default=None,
        description="Optional course the card is grouped under.",
    )

    def to_card(self) -> Card:
        """
        Build a new Card with a fresh identity and default scheduling state.

        Raises:
            CardValidationError: If `front` or `back` is empty.
        """
        self.ensure_complete()
        return Card(
            owner_id=self.owner_id,
            course_id=self.course_id,
            **self.content_fields(),
        )


class Card(BaseModel):
    """
    A single vocabulary fact owned by one learner, with its SM-2
    scheduling state.

    Scheduling fields are only changed by the scheduler; ownership fields are
    fixed at creation.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    uuid: UUID = Field(
        default_factory=uuid.uuid4,
        frozen=True,
        description="Unique UUIDv4 for the card. Auto-generated.",
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Learner who owns the card.",
    )
    course_id: Optional[str] = Field(
        default=None,
        frozen=True,
        description="Optional course grouping.",
    )

    front: str = Field(..., min_length=1, max_length=1024)
    back: str = Field(..., min_length=1, max_length=1024)
    example: Optional[str] = None
    category: str = DEFAULT_CATEGORY
    difficulty: Difficulty = Difficulty.Medium

    repetitions: int = Field(
        default=0,
        ge=0,
        description="Consecutive correct recalls since the last lapse.",
    )
    easiness_factor: float = Field(
        default=DEFAULT_EASINESS_FACTOR,
        ge=MINIMUM_EASINESS_FACTOR,
        description="Multiplier controlling interval growth.",
    )
    interval: int = Field(
        default=DEFAULT_INTERVAL,
        ge=1,
        description="Days until the next review.",
    )
    last_reviewed: Optional[datetime] = Field(
        default=None,
        description="UTC timestamp of the most recent rating.",
    )
    next_review: Optional[datetime] = Field(
        default=None,
        description="UTC timestamp the card is due again. None means never "
        "reviewed, always due.",
    )

    created_at: datetime = Field(
        default_factory=_utc_now,
        description="UTC timestamp when the card was created.",
    )
    modified_at: datetime = Field(
        default_factory=_utc_now,
        description="UTC timestamp of the last content edit.",
    )

    @field_validator("last_reviewed", "next_review", "created_at", "modified_at")
    @classmethod
    def normalize_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store every timestamp as an aware UTC datetime."""
        return ensure_utc(v) if v is not None else None

    @property
    def is_new(self) -> bool:
        """True until the card receives its first rating."""
        return self.next_review is None

    def is_due(self, now: datetime) -> bool:
        """A card is due when it was never reviewed or its review time has passed."""
        return self.next_review is None or self.next_review <= ensure_utc(now)


class ReviewOutcome(BaseModel):
    """
    One entry of a study session's outcome log.
    """

    model_config = ConfigDict(extra="forbid")

    card_uuid: UUID
    rating: Rating
    reviewed_at: datetime
    repetitions: int = Field(..., ge=0)
    easiness_factor: float
    interval: int = Field(..., ge=1)
    next_review: datetime


class StudySession(BaseModel):
    """
    An ephemeral, ordered run through selected cards.

    Never persisted; discarded on completion or abandonment.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    session_uuid: UUID = Field(default_factory=uuid.uuid4)
    owner_id: Optional[str] = None
    cards: List[Card] = Field(default_factory=list)
    cursor: int = Field(default=0, ge=0)
    face: CardFace = CardFace.Front
    outcomes: List[ReviewOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utc_now)
    completed_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.face == CardFace.Complete

    @property
    def current_card(self) -> Optional[Card]:
        """The card under the cursor, or None once the session is complete."""
        if self.is_complete or self.cursor >= len(self.cards):
            return None
        return self.cards[self.cursor]

    @property
    def remaining(self) -> int:
        """Number of cards not yet rated."""
        return len(self.cards) - len(self.outcomes)

    @property
    def progress_percentage(self) -> int:
        """Share of the session already rated, rounded to a whole percent."""
        if not self.cards:
            return 100
        return round(len(self.outcomes) / len(self.cards) * 100)


class SessionSummary(BaseModel):
    """Aggregate statistics reported when a session ends."""

    model_config = ConfigDict(extra="forbid")

    seen: int = Field(..., ge=0)
    total_cards: int = Field(..., ge=0)
    by_rating: Dict[Rating, int]
