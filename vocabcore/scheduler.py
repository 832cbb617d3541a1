# vocabcore/scheduler.py

"""
Defines the BaseScheduler abstract class and the SM2_Scheduler, a
SuperMemo-2 style scheduler working on a card's cached scheduling state.
"""

import logging
import math
from abc import ABC, abstractmethod
import datetime
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from .clock import ensure_utc
from .constants import (
    CORRECT_RATING_THRESHOLD,
    DEFAULT_INTERVAL,
    MINIMUM_EASINESS_FACTOR,
    SECOND_INTERVAL,
)
from .exceptions import InvariantViolation
from .models import Card, Rating

logger = logging.getLogger(__name__)


@dataclass
class SchedulerOutput:
    repetitions: int
    easiness_factor: float
    interval: int
    last_reviewed: datetime.datetime
    next_review: datetime.datetime
    review_type: str


class BaseScheduler(ABC):
    """
    Abstract base class for all schedulers in vocabcore.
    """

    @abstractmethod
    def compute_next_state(
        self, card: Card, rating: int, review_ts: datetime.datetime
    ) -> SchedulerOutput:
        """
        Computes the next scheduling state of a card from its current state and a new rating.

        Args:
            card: The Card whose cached state (repetitions, easiness_factor, interval) is used.
            rating: The rating for the current review (0=Hard, 1=Difficult, 2=Good, 3=Easy).
            review_ts: The timestamp of the current review.

        Returns:
            A SchedulerOutput object containing the new state.

        Raises:
            InvariantViolation: If the rating or the card's state is invalid.
        """
        pass

    def update(
        self, card: Card, rating: int, now: datetime.datetime
    ) -> Card:
        """
        Return a copy of `card` carrying the scheduling state produced by `rating`.

        The given card is left untouched.
        """
        output = self.compute_next_state(card, rating, now)
        return Card.model_validate(
            {
                **card.model_dump(),
                "repetitions": output.repetitions,
                "easiness_factor": output.easiness_factor,
                "interval": output.interval,
                "last_reviewed": output.last_reviewed,
                "next_review": output.next_review,
            }
        )


class SM2SchedulerConfig(BaseModel):
    """Configuration for the SM-2 Scheduler."""

    correct_threshold: int = Field(default=CORRECT_RATING_THRESHOLD, ge=0)
    first_interval: int = Field(default=DEFAULT_INTERVAL, ge=1)
    second_interval: int = Field(default=SECOND_INTERVAL, ge=1)
    minimum_easiness: float = Field(default=MINIMUM_EASINESS_FACTOR, gt=0)


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


class SM2_Scheduler(BaseScheduler):
    """
    SuperMemo-2 style scheduler.

    A rating at or above the correct threshold grows the interval
    (1 day, then 6 days, then interval * easiness); anything below is a lapse
    that resets the repetition count and interval. The easiness factor is
    adjusted on every rating using the raw 0-3 rating in the classic
    formula, floored at the minimum easiness.
    """

    def __init__(self, config: Optional[SM2SchedulerConfig] = None):
        if config is None:
            config = SM2SchedulerConfig()
        self.config = config

    def _validate_rating(self, rating: int) -> Rating:
        """Maps a raw rating to Rating and validates."""
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise InvariantViolation(
                f"Invalid rating: {rating!r}. Must be an integer 0-3."
            )
        if not (Rating.Hard <= rating <= Rating.Easy):
            raise InvariantViolation(
                f"Invalid rating: {rating}. Must be 0-3 (0=Hard, 1=Difficult, 2=Good, 3=Easy)."
            )
        return Rating(rating)

    def _validate_card_state(self, card: Card) -> None:
        if card.easiness_factor < self.config.minimum_easiness:
            raise InvariantViolation(
                f"Card {card.uuid} has easiness factor {card.easiness_factor} "
                f"below the minimum of {self.config.minimum_easiness}."
            )
        if card.interval < 1:
            raise InvariantViolation(
                f"Card {card.uuid} has interval {card.interval}; must be at least 1."
            )
        if card.repetitions < 0:
            raise InvariantViolation(
                f"Card {card.uuid} has negative repetitions ({card.repetitions})."
            )

    def next_easiness(self, easiness_factor: float, rating: int) -> float:
        """Apply the easiness adjustment for one rating."""
        q = 5 - rating
        adjusted = easiness_factor + (0.1 - q * (0.08 + q * 0.02))
        return max(self.config.minimum_easiness, adjusted)

    def compute_next_state(
        self, card: Card, rating: int, review_ts: datetime.datetime
    ) -> SchedulerOutput:
        """
        Computes the next SM-2 state of a card from its cached state.
        """
        valid_rating = self._validate_rating(rating)
        self._validate_card_state(card)
        utc_review_ts = ensure_utc(review_ts)

        if valid_rating >= self.config.correct_threshold:
            if card.repetitions == 0:
                interval = self.config.first_interval
            elif card.repetitions == 1:
                interval = self.config.second_interval
            else:
                interval = _round_half_up(card.interval * card.easiness_factor)
            repetitions = card.repetitions + 1
            review_type = "correct"
        else:
            repetitions = 0
            interval = self.config.first_interval
            review_type = "lapse"

        # Old easiness drives the interval above; the new one applies from the next review.
        easiness_factor = self.next_easiness(card.easiness_factor, valid_rating)
        next_review = utc_review_ts + datetime.timedelta(days=interval)

        logger.debug(
            f"Card {card.uuid} rated {valid_rating.name}: {review_type}, "
            f"interval {card.interval} -> {interval}, "
            f"easiness {card.easiness_factor:.2f} -> {easiness_factor:.2f}"
        )

        return SchedulerOutput(
            repetitions=repetitions,
            easiness_factor=easiness_factor,
            interval=interval,
            last_reviewed=utc_review_ts,
            next_review=next_review,
            review_type=review_type,
        )
