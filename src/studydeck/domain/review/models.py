"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, EnumMeta

from studydeck.domain.constants import (
    DEFAULT_EASE,
    EASE_FLOOR,
    LAPSE_DELAY_MINUTES,
    LAPSE_EASE_PENALTY,
    MASTERY_THRESHOLD_DAYS,
    MAX_INTERVAL_DAYS,
)

from .errors import InvalidQuality, NaiveInstantError

CardId = str


def require_instant(value: datetime, name: str = "now") -> datetime:
    """Reject naive datetimes; an instant must carry its UTC offset."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise NaiveInstantError(name)
    return value


def as_utc(value: datetime) -> datetime:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    Naive values are read as UTC, which is how relational stores commonly
    persist them.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _QualityRatingMeta(EnumMeta):
    def __call__(cls, value, *args, **kwargs):
        # Enum lookup is by equality, so False and 3.0 would match FORGOT and STRUGGLED
        if not args and not kwargs and not isinstance(value, cls):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidQuality(value)
        return super().__call__(value, *args, **kwargs)


class QualityRating(Enum, metaclass=_QualityRatingMeta):
    """
    The learner's self-assessment of a single review.

    A closed set of four buttons. Scores 1 and 2 do not exist on purpose.
    Only the integers 0, 3, 4 and 5 construct a rating.
    """

    FORGOT = 0
    STRUGGLED = 3
    GOT_IT = 4
    TOO_EASY = 5

    @classmethod
    def _missing_(cls, value: object) -> "QualityRating":
        raise InvalidQuality(value)

    @classmethod
    def from_score(cls, score: object) -> "QualityRating":
        return cls(score)

    @classmethod
    def from_label(cls, label: str) -> "QualityRating":
        key = " ".join(label.strip().lower().replace("-", " ").replace("_", " ").split())
        try:
            return _LABELS[key]
        except KeyError:
            raise InvalidQuality(label) from None

    @classmethod
    def parse(cls, value: object) -> "QualityRating":
        """Accept a canonical score, a button label, or an existing rating."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            digits = value.strip()
            # isdigit() also accepts "²" and other non-ASCII digits that int() rejects
            if digits.isascii() and digits.isdecimal():
                return cls.from_score(int(digits))
            return cls.from_label(value)
        return cls.from_score(value)

    @property
    def score(self) -> int:
        return self.value

    @property
    def label(self) -> str:
        return _DISPLAY[self]

    @property
    def is_lapse(self) -> bool:
        return self.value < 3


_DISPLAY = {
    QualityRating.FORGOT: "Forgot",
    QualityRating.STRUGGLED: "Struggled",
    QualityRating.GOT_IT: "Got it",
    QualityRating.TOO_EASY: "Too easy",
}
_LABELS = {label.lower(): rating for rating, label in _DISPLAY.items()}


class MasteryStatus(str, Enum):
    """Derived learning stage of a card. Never stored."""

    DUE = "due"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"

    @property
    def label(self) -> str:
        return "Due now" if self is MasteryStatus.DUE else self.value.capitalize()


class SessionMode(str, Enum):
    DUE = "due"
    ALL = "all"


@dataclass(frozen=True)
class CardMemoryState:
    """
    Scheduling state of one flashcard.

    Attributes:
        interval: Days until the next review assuming success (0 = due immediately).
        ease_factor: Multiplier governing interval growth, never below the floor.
        repetitions: Consecutive successful reviews since creation or the last lapse.
        next_review: Instant at which the card becomes due.
    """

    interval: int
    ease_factor: float
    repetitions: int
    next_review: datetime

    @classmethod
    def initial(cls, now: datetime, ease_factor: float = DEFAULT_EASE) -> "CardMemoryState":
        """Default state of a card that was just added to a deck."""
        return cls(interval=0, ease_factor=ease_factor, repetitions=0, next_review=now)

    def violations(self, ease_floor: float = EASE_FLOOR) -> list[str]:
        """Names of the fields that break the state invariants."""
        broken = []
        if self.interval < 0:
            broken.append("interval")
        if not math.isfinite(self.ease_factor) or self.ease_factor < ease_floor:
            broken.append("ease_factor")
        if self.repetitions < 0:
            broken.append("repetitions")
        return broken


@dataclass(frozen=True)
class ReviewEvent:
    """
    A single submitted review.

    Attributes:
        card_id: The card that was reviewed.
        quality: The button the learner pressed.
        reviewed_at: Instant of the review.
        client_offset_minutes: Browser-style timezone offset, only used for
            day-granularity reporting, never for interval math.
    """

    card_id: CardId
    quality: QualityRating
    reviewed_at: datetime
    client_offset_minutes: int = 0


@dataclass(frozen=True)
class SchedulerSettings:
    """Tunable scheduling parameters, projected from the application config."""

    ease_floor: float = EASE_FLOOR
    initial_ease: float = DEFAULT_EASE
    lapse_ease_penalty: float = LAPSE_EASE_PENALTY
    lapse_delay: timedelta = field(default_factory=lambda: timedelta(minutes=LAPSE_DELAY_MINUTES))
    max_interval: int = MAX_INTERVAL_DAYS
    mastery_threshold: int = MASTERY_THRESHOLD_DAYS
    strict_invariants: bool = False


@dataclass
class DeckStats:
    """Status counts for a collection of cards."""

    total: int = 0
    due: int = 0
    learning: int = 0
    reviewing: int = 0
    mastered: int = 0
    mastery_percentage: int = 0
