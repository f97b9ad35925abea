"""
Pending-review bookkeeping for clients that apply ratings optimistically.

A client may show the locally computed state before the authoritative result
arrives. Each card carries at most one pending guess; the guess is dropped as
soon as the authoritative state is reconciled.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from studydeck.domain.review.errors import ReviewPending
from studydeck.domain.review.models import CardId, CardMemoryState, QualityRating

from .scheduler import ReviewScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingReview:
    card_id: CardId
    prior: CardMemoryState
    quality: QualityRating
    reviewed_at: datetime
    guess: CardMemoryState


class PendingReviewTracker:
    def __init__(self, scheduler: ReviewScheduler | None = None):
        self._scheduler = scheduler or ReviewScheduler()
        self._pending: dict[CardId, PendingReview] = {}

    def mark_pending(
        self,
        card_id: CardId,
        prior: CardMemoryState,
        quality: QualityRating,
        reviewed_at: datetime,
    ) -> CardMemoryState:
        """
        Record an optimistic review and return the locally computed state.

        Raises:
            ReviewPending: If the card already has an unreconciled review.
        """
        if card_id in self._pending:
            raise ReviewPending(card_id)
        guess = self._scheduler.apply(prior, quality, reviewed_at)
        self._pending[card_id] = PendingReview(card_id, prior, quality, reviewed_at, guess)
        return guess

    def is_pending(self, card_id: CardId) -> bool:
        return card_id in self._pending

    def get(self, card_id: CardId) -> PendingReview | None:
        return self._pending.get(card_id)

    def reconcile(self, card_id: CardId, authoritative: CardMemoryState) -> bool:
        """
        Clear the pending marker and report whether the guess was right.

        Returns True when there was no pending review or the guess matched.
        """
        pending = self._pending.pop(card_id, None)
        if pending is None:
            return True
        if pending.guess != authoritative:
            logger.warning(
                f"Optimistic review of {card_id} diverged: guessed {pending.guess}, "
                f"stored {authoritative}"
            )
            return False
        return True

    def discard(self, card_id: CardId) -> None:
        """Forget a pending review whose submission failed."""
        self._pending.pop(card_id, None)
