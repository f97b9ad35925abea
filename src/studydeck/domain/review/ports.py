"""
Ports (interfaces) for card state persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from .models import CardId, CardMemoryState


@dataclass(frozen=True)
class StoredCard:
    """A card's memory state together with its optimistic-concurrency version."""

    card_id: CardId
    state: CardMemoryState
    version: int


class CardStateRepository(ABC):
    """
    Port for loading and saving card memory states.

    Implementations:
        - InMemoryCardRepository: process-local dictionary with per-card locks.
    """

    @abstractmethod
    async def add(self, card_id: CardId, state: CardMemoryState) -> StoredCard:
        """Store the initial state of a newly created card."""
        pass

    @abstractmethod
    async def get(self, card_id: CardId) -> StoredCard:
        """
        Load a card's state.

        Raises:
            CardNotFound: If no state is stored for the card.
        """
        pass

    @abstractmethod
    async def save(self, card_id: CardId, state: CardMemoryState, expected_version: int) -> int:
        """
        Persist a new state for a card and return the new version.

        Raises:
            CardNotFound: If no state is stored for the card.
            ConcurrentUpdate: If the stored version differs from expected_version.
        """
        pass

    @abstractmethod
    async def list_cards(self) -> list[tuple[CardId, CardMemoryState]]:
        """All stored cards, in insertion order."""
        pass

    @abstractmethod
    def lock(self, card_id: CardId) -> AbstractAsyncContextManager:
        """An async context manager that serializes updates to one card."""
        pass
