# Domain Review Package
from .errors import (
    CardNotFound,
    ConcurrentUpdate,
    InvalidOffset,
    InvalidQuality,
    InvariantViolation,
    NaiveInstantError,
    ReviewPending,
    SchedulingError,
)
from .models import (
    CardId,
    CardMemoryState,
    DeckStats,
    MasteryStatus,
    QualityRating,
    ReviewEvent,
    SchedulerSettings,
    SessionMode,
)
from .ports import CardStateRepository, StoredCard

__all__ = [
    "CardId",
    "CardMemoryState",
    "CardNotFound",
    "CardStateRepository",
    "ConcurrentUpdate",
    "DeckStats",
    "InvalidOffset",
    "InvalidQuality",
    "InvariantViolation",
    "MasteryStatus",
    "NaiveInstantError",
    "QualityRating",
    "ReviewEvent",
    "ReviewPending",
    "SchedulerSettings",
    "SchedulingError",
    "SessionMode",
    "StoredCard",
]
