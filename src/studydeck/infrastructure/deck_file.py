"""
YAML deck snapshots.

A deck file holds the cards of one deck together with their memory states:

    deck: Biology 101
    cards:
      - id: card_01J...
        front: Mitochondria
        back: Powerhouse of the cell
        interval: 6
        ease_factor: 2.6
        repetitions: 2
        next_review: '2026-10-25T09:00:00+00:00'
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml  # type: ignore
from ulid import ULID

from studydeck.domain.constants import DEFAULT_EASE
from studydeck.domain.review.models import CardId, CardMemoryState, as_utc

logger = logging.getLogger(__name__)


class DeckFileError(Exception):
    """A deck file that cannot be read or does not have the expected shape."""


def new_card_id() -> CardId:
    """Generate a stable card ID using ULID."""
    return f"card_{ULID()}"


@dataclass
class DeckCard:
    id: CardId
    state: CardMemoryState
    front: str = ""
    back: str = ""


@dataclass
class Deck:
    name: str
    cards: list[DeckCard] = field(default_factory=list)

    def entries(self) -> list[tuple[CardId, CardMemoryState]]:
        return [(card.id, card.state) for card in self.cards]

    def find(self, card_id: CardId) -> DeckCard | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None


def _parse_instant(value: Any, card_id: str) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        try:
            return as_utc(datetime.fromisoformat(value))
        except ValueError as e:
            raise DeckFileError(f"Card {card_id}: bad next_review {value!r}") from e
    raise DeckFileError(f"Card {card_id}: missing next_review")


def _card_from_dict(raw: Any, index: int) -> DeckCard:
    if not isinstance(raw, dict):
        raise DeckFileError(f"Card #{index} is not a mapping")
    card_id = raw.get("id")
    if not card_id:
        raise DeckFileError(f"Card #{index} has no id")
    card_id = str(card_id)

    try:
        state = CardMemoryState(
            interval=int(raw.get("interval", 0)),
            ease_factor=float(raw.get("ease_factor", DEFAULT_EASE)),
            repetitions=int(raw.get("repetitions", 0)),
            next_review=_parse_instant(raw.get("next_review"), card_id),
        )
    except (TypeError, ValueError) as e:
        raise DeckFileError(f"Card {card_id}: {e}") from e

    return DeckCard(
        id=card_id,
        state=state,
        front=str(raw.get("front") or ""),
        back=str(raw.get("back") or ""),
    )


def parse_deck(text: str) -> Deck:
    try:
        meta = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise DeckFileError(f"Invalid YAML: {e}") from e

    if not isinstance(meta, dict):
        raise DeckFileError("Deck file must be a mapping with 'deck' and 'cards'")

    cards = meta.get("cards") or []
    if not isinstance(cards, list):
        raise DeckFileError("'cards' must be a list")

    return Deck(
        name=str(meta.get("deck") or "Untitled"),
        cards=[_card_from_dict(raw, i) for i, raw in enumerate(cards)],
    )


def dump_deck(deck: Deck) -> str:
    data = {
        "deck": deck.name,
        "cards": [
            {
                "id": card.id,
                "front": card.front,
                "back": card.back,
                "interval": card.state.interval,
                "ease_factor": card.state.ease_factor,
                "repetitions": card.state.repetitions,
                "next_review": as_utc(card.state.next_review).isoformat(),
            }
            for card in deck.cards
        ],
    }
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def load_deck(path: Path) -> Deck:
    if not path.exists():
        raise DeckFileError(f"Deck file not found: {path}")
    deck = parse_deck(path.read_text(encoding="utf-8"))
    logger.debug(f"Loaded {len(deck.cards)} cards from {path}")
    return deck


def save_deck(path: Path, deck: Deck) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_deck(deck), encoding="utf-8")
    logger.info(f"Saved {len(deck.cards)} cards to {path}")
