"""Centralized constants for studydeck.

All scheduling tunables and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor ----------
EASE_FLOOR = 1.3
DEFAULT_EASE = 2.5
LAPSE_EASE_PENALTY = 0.2
EASE_PRECISION = 2  # decimal places kept on the stored ease factor

# ---------- Intervals ----------
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
MAX_INTERVAL_DAYS = 365
LAPSE_DELAY_MINUTES = 10

# ---------- Classification ----------
MASTERY_THRESHOLD_DAYS = 14

# ---------- Sessions ----------
DEFAULT_CARDS_PER_SESSION = 20

# ---------- Gamification ----------
REVIEW_XP = 1

# ---------- Client timezone offsets (minutes) ----------
MAX_OFFSET_MINUTES = 24 * 60 - 1

# ---------- Reporting ----------
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
