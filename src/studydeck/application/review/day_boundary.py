"""
Client day boundaries for day-granularity reporting.

The client sends its timezone offset the way browsers report it
(`Date.getTimezoneOffset()`): minutes to add to local time to get UTC, so
UTC-5 is +300 and UTC+2 is -120. None of this feeds the scheduler's
interval math; it only decides which local calendar day an instant falls on.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone

from studydeck.domain.constants import DAYS_PER_MONTH, DAYS_PER_WEEK, MAX_OFFSET_MINUTES
from studydeck.domain.review.errors import InvalidOffset
from studydeck.domain.review.models import CardMemoryState, as_utc, require_instant


def client_timezone(offset_minutes: int) -> timezone:
    """Fixed-offset timezone for a browser-style offset."""
    if (
        isinstance(offset_minutes, bool)
        or not isinstance(offset_minutes, int)
        or abs(offset_minutes) > MAX_OFFSET_MINUTES
    ):
        raise InvalidOffset(offset_minutes)
    return timezone(-timedelta(minutes=offset_minutes))


def resolve_now(server_instant: datetime, client_offset_minutes: int = 0) -> datetime:
    """
    The instant to use as "now", expressed in the client's local time.

    The instant itself is unchanged (it compares equal to server_instant);
    only its wall-clock representation moves to the client's timezone.
    """
    require_instant(server_instant, "server_instant")
    return server_instant.astimezone(client_timezone(client_offset_minutes))


def local_date(instant: datetime, offset_minutes: int = 0) -> date:
    return as_utc(instant).astimezone(client_timezone(offset_minutes)).date()


def local_day_start(instant: datetime, offset_minutes: int = 0) -> datetime:
    """Local midnight that starts the client's day containing `instant`."""
    tz = client_timezone(offset_minutes)
    return datetime.combine(local_date(instant, offset_minutes), time.min, tzinfo=tz)


def days_until_due(next_review: datetime, now: datetime, offset_minutes: int = 0) -> int:
    """Number of local calendar days between now and next_review (negative when overdue)."""
    return (local_date(next_review, offset_minutes) - local_date(now, offset_minutes)).days


def due_label(next_review: datetime, now: datetime, offset_minutes: int = 0) -> str:
    """Human label for when a card is next due, e.g. "Tomorrow" or "3 weeks"."""
    if as_utc(next_review) <= as_utc(now):
        return "Now"

    days = days_until_due(next_review, now, offset_minutes)
    if days <= 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days < DAYS_PER_WEEK:
        return f"{days} days"
    if days < DAYS_PER_MONTH:
        weeks = math.ceil(days / DAYS_PER_WEEK)
        return f"{weeks} week" if weeks == 1 else f"{weeks} weeks"
    months = math.ceil(days / DAYS_PER_MONTH)
    return f"{months} month" if months == 1 else f"{months} months"


def count_due_within(
    states: Iterable[CardMemoryState],
    now: datetime,
    offset_minutes: int = 0,
    days: int = 0,
) -> int:
    """
    Count cards due on or before the local day `days` after today.

    days=0 gives the "due today" badge, days=6 the "due this week" badge.
    Overdue cards are included.
    """
    cutoff = local_date(now, offset_minutes) + timedelta(days=days)
    return sum(1 for state in states if local_date(state.next_review, offset_minutes) <= cutoff)
