from datetime import datetime, timedelta, timezone

import pytest

from studydeck.application.review.classifier import calculate_deck_stats, classify
from studydeck.domain.review.models import CardMemoryState, MasteryStatus


def make_state(t0, interval=0, repetitions=0, due_in=timedelta(days=1), ease=2.5):
    return CardMemoryState(
        interval=interval, ease_factor=ease, repetitions=repetitions, next_review=t0 + due_in
    )


class TestClassify:
    def test_due_when_next_review_passed(self, t0):
        state = make_state(t0, interval=30, repetitions=5, due_in=-timedelta(seconds=1))
        assert classify(state, t0) is MasteryStatus.DUE

    def test_due_exactly_at_next_review(self, t0):
        assert classify(make_state(t0, due_in=timedelta(0)), t0) is MasteryStatus.DUE

    def test_learning_when_never_successful(self, t0):
        assert classify(make_state(t0, repetitions=0), t0) is MasteryStatus.LEARNING

    def test_mastered_at_two_weeks(self, t0):
        assert classify(make_state(t0, interval=20, repetitions=4), t0) is MasteryStatus.MASTERED
        assert classify(make_state(t0, interval=14, repetitions=3), t0) is MasteryStatus.MASTERED

    def test_reviewing_below_threshold(self, t0):
        assert classify(make_state(t0, interval=13, repetitions=3), t0) is MasteryStatus.REVIEWING
        assert classify(make_state(t0, interval=1, repetitions=1), t0) is MasteryStatus.REVIEWING

    def test_custom_mastery_threshold(self, t0):
        state = make_state(t0, interval=7, repetitions=2)
        assert classify(state, t0, mastery_threshold=7) is MasteryStatus.MASTERED

    def test_compares_instants_across_offsets(self, t0):
        # 10:00+02:00 is 08:00 UTC, before t0 (09:30 UTC)
        next_review = datetime(2026, 3, 2, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        state = CardMemoryState(interval=3, ease_factor=2.5, repetitions=2, next_review=next_review)
        assert classify(state, t0) is MasteryStatus.DUE

    def test_naive_stored_timestamp_read_as_utc(self, t0):
        state = CardMemoryState(
            interval=3, ease_factor=2.5, repetitions=2, next_review=datetime(2026, 3, 2, 10, 0)
        )
        assert classify(state, t0) is MasteryStatus.REVIEWING

    def test_status_follows_the_clock(self, t0):
        state = make_state(t0, interval=6, repetitions=2, due_in=timedelta(days=6))
        assert classify(state, t0) is MasteryStatus.REVIEWING
        assert classify(state, t0 + timedelta(days=6)) is MasteryStatus.DUE

    @pytest.mark.parametrize("interval", [0, 1, 13, 14, 365])
    @pytest.mark.parametrize("repetitions", [0, 1, 7])
    @pytest.mark.parametrize("due_in", [timedelta(days=-1), timedelta(0), timedelta(days=1)])
    def test_always_returns_a_status(self, t0, interval, repetitions, due_in):
        state = make_state(t0, interval=interval, repetitions=repetitions, due_in=due_in)
        assert classify(state, t0) in set(MasteryStatus)


class TestDeckStats:
    def test_counts_and_percentage(self, t0):
        states = [
            make_state(t0, due_in=-timedelta(hours=1)),
            make_state(t0, repetitions=0),
            make_state(t0, interval=6, repetitions=2),
            make_state(t0, interval=20, repetitions=4),
            make_state(t0, interval=40, repetitions=5),
            make_state(t0, interval=90, repetitions=6),
        ]
        stats = calculate_deck_stats(states, t0)

        assert stats.total == 6
        assert stats.due == 1
        assert stats.learning == 1
        assert stats.reviewing == 1
        assert stats.mastered == 3
        assert stats.mastery_percentage == 50

    def test_percentage_rounds_half_up(self, t0):
        states = [make_state(t0, interval=20, repetitions=3)] + [
            make_state(t0, repetitions=0) for _ in range(7)
        ]
        # 1 / 8 = 12.5%
        assert calculate_deck_stats(states, t0).mastery_percentage == 13

    def test_empty_deck(self, t0):
        stats = calculate_deck_stats([], t0)
        assert stats.total == 0
        assert stats.mastery_percentage == 0
