"""
SM-2 family review scheduler.

Given a card's memory state and the learner's rating, computes the next
interval, ease factor and due instant. This is a pure computation module
with no I/O; persistence of the result is the caller's job.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta

from studydeck.application.utils.numbers import round_half_up
from studydeck.domain.constants import (
    EASE_PRECISION,
    FIRST_INTERVAL_DAYS,
    SECOND_INTERVAL_DAYS,
)
from studydeck.domain.review.errors import InvariantViolation
from studydeck.domain.review.models import (
    CardMemoryState,
    QualityRating,
    SchedulerSettings,
    require_instant,
)

logger = logging.getLogger(__name__)


def ease_delta(score: int) -> float:
    """
    Canonical SM-2 ease adjustment for a successful review.

    q=5 -> +0.10, q=4 -> 0.00, q=3 -> -0.14
    """
    miss = 5 - score
    return 0.1 - miss * (0.08 + miss * 0.02)


class ReviewScheduler:
    """
    Applies one review to one card's memory state.

    Stateless apart from its settings; the same inputs always give the same output.
    """

    def __init__(self, settings: SchedulerSettings | None = None):
        self.settings = settings or SchedulerSettings()

    def apply(
        self, state: CardMemoryState, quality: QualityRating, now: datetime
    ) -> CardMemoryState:
        """
        Compute the state that results from reviewing a card at `now`.

        Args:
            state: The card's current memory state as loaded from storage.
            quality: The rating the learner gave.
            now: Instant of the review. Must be timezone-aware.

        Returns:
            A new CardMemoryState; the input is never modified.
        """
        require_instant(now)
        state = self.sanitize(state)

        if quality.is_lapse:
            new_state = self._lapse(state, now)
        else:
            new_state = self._success(state, quality.score, now)

        logger.debug(
            f"{quality.label}: interval {state.interval}->{new_state.interval}, "
            f"ease {state.ease_factor}->{new_state.ease_factor}, "
            f"reps {state.repetitions}->{new_state.repetitions}"
        )
        return new_state

    def sanitize(self, state: CardMemoryState) -> CardMemoryState:
        """
        Re-apply the state invariants to a state read from storage.

        Corrupted values are clamped and logged. With strict_invariants on,
        InvariantViolation is raised instead.
        """
        broken = state.violations(self.settings.ease_floor)
        if not broken:
            return state

        if self.settings.strict_invariants:
            raise InvariantViolation(broken)

        logger.warning(f"Clamping corrupted card memory state ({', '.join(broken)}): {state}")

        ease = state.ease_factor
        if not math.isfinite(ease):
            ease = self.settings.initial_ease
        return replace(
            state,
            interval=max(0, state.interval),
            ease_factor=max(self.settings.ease_floor, ease),
            repetitions=max(0, state.repetitions),
        )

    def _lapse(self, state: CardMemoryState, now: datetime) -> CardMemoryState:
        ease = self._clamp_ease(state.ease_factor - self.settings.lapse_ease_penalty)
        return CardMemoryState(
            interval=0,
            ease_factor=ease,
            repetitions=0,
            next_review=now + self.settings.lapse_delay,
        )

    def _success(self, state: CardMemoryState, score: int, now: datetime) -> CardMemoryState:
        ease = self._clamp_ease(state.ease_factor + ease_delta(score))

        # Growth is indexed by repetition count, not compounded on every step
        if state.repetitions == 0:
            interval = FIRST_INTERVAL_DAYS
        elif state.repetitions == 1:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = round_half_up(state.interval * ease)
        interval = max(1, min(self.settings.max_interval, interval))

        return CardMemoryState(
            interval=interval,
            ease_factor=ease,
            repetitions=state.repetitions + 1,
            next_review=now + timedelta(days=interval),
        )

    def _clamp_ease(self, ease: float) -> float:
        return max(self.settings.ease_floor, round(ease, EASE_PRECISION))


_default_scheduler = ReviewScheduler()


def apply(state: CardMemoryState, quality: QualityRating, now: datetime) -> CardMemoryState:
    """Apply a review with the default scheduler settings."""
    return _default_scheduler.apply(state, quality, now)
