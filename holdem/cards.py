from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUITS = ("♠", "♥", "♦", "♣")
RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}

# ASCII aliases so clients without the suit glyphs can still talk to us.
_SUIT_ALIASES = {"s": "♠", "h": "♥", "d": "♦", "c": "♣"}
_RANK_ALIASES = {"T": "10"}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_VALUE:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def is_red(self) -> bool:
        return self.suit in ("♥", "♦")

    def __str__(self) -> str:
        return self.label


def build_deck(seed: Optional[Union[int, random.Random]] = None) -> List[Card]:
    """Return all 52 cards in uniformly shuffled order."""
    rng = seed if isinstance(seed, random.Random) else random.Random(seed)
    deck = [Card(rank, suit) for suit in SUITS for rank in RANKS]
    rng.shuffle(deck)
    return deck


class Deck:
    """A single hand's card source. The front of the list is the top card."""

    def __init__(self, cards: Iterable[Card]) -> None:
        self.cards: List[Card] = list(cards)

    @classmethod
    def shuffled(cls, seed: Optional[Union[int, random.Random]] = None) -> "Deck":
        return cls(build_deck(seed))

    def __len__(self) -> int:
        return len(self.cards)

    def deal(self) -> Card:
        return deal(self.cards, 1)[0]

    def deal_many(self, count: int) -> List[Card]:
        return deal(self.cards, count)

    def burn(self) -> Card:
        return self.deal()


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def cards_to_labels(cards: Iterable[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    label = label.strip()
    if len(label) < 2:
        raise ValueError(f"Invalid card label: {label}")
    rank, suit = label[:-1], label[-1]
    rank = _RANK_ALIASES.get(rank.upper(), rank.upper())
    suit = _SUIT_ALIASES.get(suit.lower(), suit)
    return Card(rank, suit)


def parse_cards(labels: Iterable[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
