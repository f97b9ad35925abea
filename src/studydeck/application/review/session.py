"""
Study session queue selection.

Builds the ordered list of card ids for a session. Every card is classified
exactly once, so selection stays linear in the number of cards.
"""

from collections.abc import Sequence
from datetime import datetime

from studydeck.domain.constants import MASTERY_THRESHOLD_DAYS
from studydeck.domain.review.models import CardId, CardMemoryState, MasteryStatus, SessionMode

from .classifier import classify

CardEntry = tuple[CardId, CardMemoryState]


def select_for_session(
    cards: Sequence[CardEntry],
    now: datetime,
    mode: SessionMode = SessionMode.DUE,
    limit: int | None = None,
    mastery_threshold: int = MASTERY_THRESHOLD_DAYS,
) -> list[CardId]:
    """
    Choose and order the cards to study.

    DUE mode keeps only due cards. ALL mode keeps every card, due ones first.
    Both partitions keep their input order, so repeated calls with the same
    input give the same queue. An empty result means nothing to study.

    Args:
        cards: (card_id, state) pairs in display order.
        now: Instant used for the due comparison.
        mode: SessionMode.DUE or SessionMode.ALL.
        limit: Optional maximum queue length, applied after ordering.
    """
    mode = SessionMode(mode)
    due: list[CardId] = []
    later: list[CardId] = []

    for card_id, state in cards:
        if classify(state, now, mastery_threshold) is MasteryStatus.DUE:
            due.append(card_id)
        else:
            later.append(card_id)

    queue = due if mode is SessionMode.DUE else due + later
    if limit is not None and limit > 0:
        queue = queue[:limit]
    return queue


def next_due(cards: Sequence[CardEntry], now: datetime) -> CardId | None:
    """First due card in input order, or None when nothing is due."""
    for card_id, state in cards:
        if classify(state, now) is MasteryStatus.DUE:
            return card_id
    return None


def remaining_due(cards: Sequence[CardEntry], now: datetime) -> int:
    return sum(1 for _, state in cards if classify(state, now) is MasteryStatus.DUE)
