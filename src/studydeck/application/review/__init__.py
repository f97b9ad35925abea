# Application Review Package
from .classifier import calculate_deck_stats, classify
from .day_boundary import count_due_within, days_until_due, due_label, resolve_now
from .optimistic import PendingReviewTracker
from .scheduler import ReviewScheduler, apply
from .service import ReviewOutcome, ReviewService
from .session import next_due, remaining_due, select_for_session

__all__ = [
    "PendingReviewTracker",
    "ReviewOutcome",
    "ReviewScheduler",
    "ReviewService",
    "apply",
    "calculate_deck_stats",
    "classify",
    "count_due_within",
    "days_until_due",
    "due_label",
    "next_due",
    "remaining_due",
    "resolve_now",
    "select_for_session",
]
