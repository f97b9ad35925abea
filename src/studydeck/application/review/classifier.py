"""
Mastery status classification.

Statuses are always derived from the memory state and the current instant;
nothing here is stored or cached.
"""

from collections.abc import Iterable
from datetime import datetime

from studydeck.application.utils.numbers import round_half_up
from studydeck.domain.constants import MASTERY_THRESHOLD_DAYS
from studydeck.domain.review.models import CardMemoryState, DeckStats, MasteryStatus, as_utc


def classify(
    state: CardMemoryState,
    now: datetime,
    mastery_threshold: int = MASTERY_THRESHOLD_DAYS,
) -> MasteryStatus:
    """
    Derive a card's status. First matching rule wins:

    1. next_review <= now      -> DUE
    2. repetitions == 0        -> LEARNING
    3. interval >= threshold   -> MASTERED
    4. otherwise               -> REVIEWING
    """
    if as_utc(state.next_review) <= as_utc(now):
        return MasteryStatus.DUE
    if state.repetitions <= 0:
        return MasteryStatus.LEARNING
    if state.interval >= mastery_threshold:
        return MasteryStatus.MASTERED
    return MasteryStatus.REVIEWING


def calculate_deck_stats(
    states: Iterable[CardMemoryState],
    now: datetime,
    mastery_threshold: int = MASTERY_THRESHOLD_DAYS,
) -> DeckStats:
    """Count cards per status and compute the deck's mastery percentage."""
    stats = DeckStats()
    for state in states:
        status = classify(state, now, mastery_threshold)
        setattr(stats, status.value, getattr(stats, status.value) + 1)
        stats.total += 1

    if stats.total:
        stats.mastery_percentage = round_half_up(stats.mastered / stats.total * 100)
    return stats
