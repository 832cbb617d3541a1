"""
This module defines the SessionRunner class, which drives one learner through
a study session. It asks the selector for the session's cards, walks them
through the front/back/rate cycle, schedules each rating with the scheduler
and persists the result through the card store, one card at a time.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Sequence

from .clock import Clock, ensure_utc, system_clock
from .constants import DEFAULT_SESSION_SIZE
from .db.store import CardStore
from .exceptions import PersistenceError, SessionStateError
from .models import (
    Card,
    CardFace,
    Rating,
    ReviewOutcome,
    SessionSummary,
    StudySession,
)
from .scheduler import BaseScheduler, SM2_Scheduler
from .selector import SessionSelector

# Initialize logger
logger = logging.getLogger(__name__)


class SessionRunner:
    """
    Runs study sessions against a card store.

    The runner holds no per-session state itself; everything lives on the
    StudySession it hands out, which belongs to a single caller. Each rating
    is committed on its own, so an abandoned session keeps every rating
    already made.
    """

    def __init__(
        self,
        store: CardStore,
        scheduler: Optional[BaseScheduler] = None,
        selector: Optional[SessionSelector] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Parameters:
            store (CardStore): Where the pool is loaded from and ratings are saved to.
            scheduler (BaseScheduler): Defaults to an SM2_Scheduler.
            selector (SessionSelector): Defaults to a selector with an unseeded random source.
            clock (Clock): Source of "now" when a call does not pass one; defaults to UTC wall time.
        """
        self.store = store
        self.scheduler = scheduler or SM2_Scheduler()
        self.selector = selector or SessionSelector()
        self.clock = clock or system_clock

    def _now(self, now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now is not None else ensure_utc(self.clock())

    def start_session(
        self,
        pool: Sequence[Card],
        target_size: int = DEFAULT_SESSION_SIZE,
        now: Optional[datetime] = None,
        owner_id: Optional[str] = None,
    ) -> StudySession:
        """
        Select cards from `pool` and open a session on the first one.

        An empty selection yields a session that is already complete.
        """
        ts = self._now(now)
        cards = self.selector.select(pool, now=ts, target_size=target_size)
        session = StudySession(
            owner_id=owner_id,
            cards=cards,
            started_at=ts,
        )
        if not cards:
            session.face = CardFace.Complete
            session.completed_at = ts
            logger.info(
                f"Session {session.session_uuid} has no cards; nothing to study."
            )
        else:
            logger.info(
                f"Started session {session.session_uuid} with {len(cards)} cards "
                f"(pool of {len(pool)})."
            )
        return session

    def start_session_for_owner(
        self,
        owner_id: str,
        course_id: Optional[str] = None,
        target_size: int = DEFAULT_SESSION_SIZE,
        now: Optional[datetime] = None,
    ) -> StudySession:
        """
        Load a learner's pool from the store and start a session on it.

        Raises:
            PersistenceError: If the pool cannot be loaded.
        """
        pool = self.store.load_pool(owner_id, course_id=course_id)
        return self.start_session(
            pool, target_size=target_size, now=now, owner_id=owner_id
        )

    def reveal(self, session: StudySession) -> StudySession:
        """
        Turn the current card over to show its answer.

        Raises:
            SessionStateError: If the session is not showing a card's front.
        """
        if session.face != CardFace.Front:
            raise SessionStateError(
                f"Cannot reveal while the session is on '{session.face.value}'."
            )
        session.face = CardFace.Back
        return session

    def rate(
        self,
        session: StudySession,
        rating: int,
        now: Optional[datetime] = None,
    ) -> StudySession:
        """
        Rate the revealed card, persist its new schedule and move on.

        Parameters:
            session (StudySession): A session whose current card shows its back.
            rating (int): 0=Hard, 1=Difficult, 2=Good, 3=Easy.
            now (Optional[datetime]): Review time; defaults to the runner's clock.

        Returns:
            StudySession: The same session, on the next card's front or complete.

        Raises:
            SessionStateError: If the current card has not been revealed or the session is complete.
            InvariantViolation: If the rating is not 0-3; nothing is written.
            PersistenceError: If saving fails. The session stays on the same
                card's back, so the same rating can be submitted again.
        """
        if session.face != CardFace.Back:
            raise SessionStateError(
                f"Cannot rate while the session is on '{session.face.value}'."
            )
        card = session.current_card
        if card is None:
            raise SessionStateError("Session has no current card to rate.")

        ts = self._now(now)
        updated_card = self.scheduler.update(card, rating, ts)

        try:
            self.store.save(updated_card)
        except PersistenceError as e:
            logger.error(
                f"Failed to save rating for card {card.uuid} in session "
                f"{session.session_uuid}: {e}"
            )
            raise

        session.cards[session.cursor] = updated_card
        session.outcomes.append(
            ReviewOutcome(
                card_uuid=updated_card.uuid,
                rating=Rating(rating),
                reviewed_at=ts,
                repetitions=updated_card.repetitions,
                easiness_factor=updated_card.easiness_factor,
                interval=updated_card.interval,
                next_review=updated_card.next_review,
            )
        )
        self._advance(session, ts)
        return session

    def _advance(self, session: StudySession, ts: datetime) -> None:
        if session.cursor + 1 < len(session.cards):
            session.cursor += 1
            session.face = CardFace.Front
        else:
            session.face = CardFace.Complete
            session.completed_at = ts
            logger.info(
                f"Session {session.session_uuid} complete: "
                f"{len(session.outcomes)} cards rated."
            )

    def is_complete(self, session: StudySession) -> bool:
        return session.is_complete

    def summary(self, session: StudySession) -> SessionSummary:
        """
        Report how many cards were rated and how often each rating was given.

        Every rating level appears in `by_rating`, with 0 when unused.
        """
        by_rating: Dict[Rating, int] = {rating: 0 for rating in Rating}
        for outcome in session.outcomes:
            by_rating[outcome.rating] += 1
        return SessionSummary(
            seen=len(session.outcomes),
            total_cards=len(session.cards),
            by_rating=by_rating,
        )
