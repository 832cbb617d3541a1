"""
The card store interface used by the session runner and hosts.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from ..models import Card, CardDraft


class CardStore(ABC):
    """
    Persistence of card records on behalf of their owning learner.

    Implementations offer per-record writes only; concurrent saves of the
    same card are last-write-wins. Failures raise PersistenceError
    subclasses.
    """

    @abstractmethod
    def load_pool(
        self, owner_id: str, course_id: Optional[str] = None
    ) -> List[Card]:
        """Return every card of `owner_id`, optionally limited to one course."""

    @abstractmethod
    def save(self, card: Card) -> None:
        """Overwrite the stored record of `card` (keyed by its UUID) with its current values."""

    @abstractmethod
    def create(self, draft: CardDraft) -> Card:
        """Persist a new card built from `draft` with default scheduling state."""

    @abstractmethod
    def delete(self, card_uuid: UUID) -> bool:
        """Remove a card. Returns False if no such card existed."""
