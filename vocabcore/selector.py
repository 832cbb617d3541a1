"""
Chooses which cards of a learner's pool enter a study session and in which
order they are presented.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .clock import ensure_utc
from .constants import DEFAULT_SESSION_SIZE
from .models import Card

logger = logging.getLogger(__name__)


class SessionSelector:
    """
    Builds session decks out of due cards, topped up with not-yet-due filler.

    All randomness goes through `rng`; pass a seeded `random.Random` for
    reproducible sessions.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    @staticmethod
    def is_due(card: Card, now: datetime) -> bool:
        """A card is due if it has never been scheduled or its review time has passed."""
        return card.is_due(now)

    def partition(
        self, pool: Sequence[Card], now: datetime
    ) -> Tuple[List[Card], List[Card]]:
        """
        Split the pool into due and not-due cards, keeping pool order in both.

        Returns:
            tuple: (due, not_due)
        """
        utc_now = ensure_utc(now)
        due: List[Card] = []
        not_due: List[Card] = []
        for card in pool:
            (due if card.is_due(utc_now) else not_due).append(card)
        return due, not_due

    def select(
        self,
        pool: Sequence[Card],
        now: datetime,
        target_size: int = DEFAULT_SESSION_SIZE,
    ) -> List[Card]:
        """
        Select and order the cards for one session.

        When at least `target_size` cards are due, the first `target_size` of
        them are used. Otherwise every due card is used and the shortfall is
        filled with a uniform random sample of not-due cards; the session is
        shorter than `target_size` when the pool runs out. The result is
        shuffled before it is returned.

        Raises:
            ValueError: If `target_size` is not a positive integer.
        """
        if isinstance(target_size, bool) or not isinstance(target_size, int) or target_size < 1:
            raise ValueError(
                f"Invalid target_size: {target_size!r}. Must be a positive integer."
            )
        if not pool:
            return []

        due, not_due = self.partition(pool, now)

        if len(due) >= target_size:
            session_cards = due[:target_size]
        else:
            shortfall = target_size - len(due)
            filler = self.rng.sample(not_due, min(shortfall, len(not_due)))
            session_cards = due + filler

        self.rng.shuffle(session_cards)
        logger.debug(
            f"Selected {len(session_cards)} of {len(pool)} cards "
            f"({len(due)} due, target {target_size})."
        )
        return session_cards
