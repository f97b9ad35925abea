"""Exception taxonomy for the review scheduling core."""


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class InvalidQuality(SchedulingError, ValueError):
    """A rating value outside the four canonical review buttons."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid quality rating {value!r}: expected one of 0, 3, 4, 5 "
            "or forgot/struggled/got it/too easy"
        )


class InvariantViolation(SchedulingError):
    """A card memory state that breaks the scheduler's invariants on input."""

    def __init__(self, card_fields: list[str]):
        self.fields = card_fields
        super().__init__(f"Corrupted card memory state: {', '.join(card_fields)}")


class NaiveInstantError(SchedulingError, ValueError):
    """A timestamp without timezone information where an instant is required."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"'{name}' must be timezone-aware, got a naive datetime")


class InvalidOffset(SchedulingError, ValueError):
    """A client timezone offset that cannot describe a real timezone."""

    def __init__(self, minutes: object):
        self.minutes = minutes
        super().__init__(f"Invalid client timezone offset: {minutes!r} minutes")


class CardNotFound(SchedulingError, KeyError):
    """No stored memory state exists for the requested card."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"


class ConcurrentUpdate(SchedulingError):
    """A save raced with another write to the same card."""

    def __init__(self, card_id: str, expected: int, actual: int):
        self.card_id = card_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Card {card_id} was modified concurrently (expected version {expected}, found {actual})"
        )


class ReviewPending(SchedulingError):
    """An optimistic review for this card has not been reconciled yet."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card {card_id} already has a pending review")
