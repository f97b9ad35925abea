import asyncio
import logging

from studydeck.domain.review.errors import CardNotFound, ConcurrentUpdate
from studydeck.domain.review.models import CardId, CardMemoryState
from studydeck.domain.review.ports import CardStateRepository, StoredCard


class InMemoryCardRepository(CardStateRepository):
    """
    Process-local card store.

    Every card gets its own asyncio.Lock, so reviews of different cards run
    independently while reviews of one card are serialized.
    """

    def __init__(self):
        self._cards: dict[CardId, StoredCard] = {}
        self._locks: dict[CardId, asyncio.Lock] = {}
        self.logger = logging.getLogger(__name__)

    async def add(self, card_id: CardId, state: CardMemoryState) -> StoredCard:
        if card_id in self._cards:
            raise ValueError(f"Card already exists: {card_id}")
        stored = StoredCard(card_id=card_id, state=state, version=1)
        self._cards[card_id] = stored
        return stored

    async def get(self, card_id: CardId) -> StoredCard:
        try:
            return self._cards[card_id]
        except KeyError:
            raise CardNotFound(card_id) from None

    async def save(self, card_id: CardId, state: CardMemoryState, expected_version: int) -> int:
        current = await self.get(card_id)
        if current.version != expected_version:
            raise ConcurrentUpdate(card_id, expected_version, current.version)
        version = current.version + 1
        self._cards[card_id] = StoredCard(card_id=card_id, state=state, version=version)
        self.logger.debug(f"Saved {card_id} at version {version}")
        return version

    async def list_cards(self) -> list[tuple[CardId, CardMemoryState]]:
        return [(card_id, stored.state) for card_id, stored in self._cards.items()]

    def lock(self, card_id: CardId) -> asyncio.Lock:
        lock = self._locks.get(card_id)
        if lock is None:
            lock = self._locks[card_id] = asyncio.Lock()
        return lock
