"""
Review Service: application layer orchestrator.

Loads a card's state from the repository, applies the scheduler, and saves
the result while holding the card's lock so reviews of one card never overlap.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from studydeck.domain.constants import REVIEW_XP
from studydeck.domain.review.models import (
    CardId,
    CardMemoryState,
    DeckStats,
    MasteryStatus,
    ReviewEvent,
    SessionMode,
    require_instant,
)
from studydeck.domain.review.ports import CardStateRepository, StoredCard

from .classifier import calculate_deck_stats, classify
from .day_boundary import client_timezone, due_label
from .scheduler import ReviewScheduler
from .session import remaining_due, select_for_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of one accepted review."""

    card_id: CardId
    previous: CardMemoryState
    state: CardMemoryState
    status: MasteryStatus
    due_label: str
    xp_earned: int
    version: int


class ReviewService:
    """
    Application service for submitting reviews and building study sessions.

    Depends on the CardStateRepository abstraction, not a concrete store.
    """

    def __init__(
        self,
        repo: CardStateRepository,
        scheduler: ReviewScheduler | None = None,
        review_xp: int = REVIEW_XP,
    ):
        self._repo = repo
        self._scheduler = scheduler or ReviewScheduler()
        self._review_xp = review_xp

    @property
    def scheduler(self) -> ReviewScheduler:
        return self._scheduler

    @property
    def mastery_threshold(self) -> int:
        return self._scheduler.settings.mastery_threshold

    async def create_card(self, card_id: CardId, now: datetime) -> StoredCard:
        require_instant(now)
        state = CardMemoryState.initial(now, self._scheduler.settings.initial_ease)
        return await self._repo.add(card_id, state)

    async def get_card(self, card_id: CardId) -> StoredCard:
        return await self._repo.get(card_id)

    async def submit(self, event: ReviewEvent) -> ReviewOutcome:
        """
        Apply a review to the stored state of one card.

        Raises:
            CardNotFound: If the card has no stored state.
            NaiveInstantError: If reviewed_at has no timezone.
            InvalidOffset: If the client offset is out of range.
        """
        require_instant(event.reviewed_at, "reviewed_at")
        client_timezone(event.client_offset_minutes)

        async with self._repo.lock(event.card_id):
            stored = await self._repo.get(event.card_id)
            new_state = self._scheduler.apply(stored.state, event.quality, event.reviewed_at)
            version = await self._repo.save(event.card_id, new_state, stored.version)

        logger.info(
            f"Review {event.card_id}: {event.quality.label} -> interval {new_state.interval}d"
        )
        return ReviewOutcome(
            card_id=event.card_id,
            previous=stored.state,
            state=new_state,
            status=classify(new_state, event.reviewed_at, self.mastery_threshold),
            due_label=due_label(
                new_state.next_review, event.reviewed_at, event.client_offset_minutes
            ),
            xp_earned=self._review_xp,
            version=version,
        )

    async def build_session(
        self,
        now: datetime,
        mode: SessionMode = SessionMode.DUE,
        limit: int | None = None,
    ) -> tuple[list[CardId], int]:
        """Return the session queue and the number of cards currently due."""
        cards = await self._repo.list_cards()
        queue = select_for_session(cards, now, mode, limit, self.mastery_threshold)
        return queue, remaining_due(cards, now)

    async def deck_stats(self, now: datetime) -> DeckStats:
        cards = await self._repo.list_cards()
        return calculate_deck_stats((state for _, state in cards), now, self.mastery_threshold)
