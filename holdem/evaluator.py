from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .cards import Card
from .errors import InvalidHandError


class HandType(str, Enum):
    HIGH_CARD = "HIGH_CARD"
    ONE_PAIR = "ONE_PAIR"
    TWO_PAIR = "TWO_PAIR"
    THREE_OF_A_KIND = "THREE_OF_A_KIND"
    STRAIGHT = "STRAIGHT"
    FLUSH = "FLUSH"
    FULL_HOUSE = "FULL_HOUSE"
    FOUR_OF_A_KIND = "FOUR_OF_A_KIND"
    STRAIGHT_FLUSH = "STRAIGHT_FLUSH"
    ROYAL_FLUSH = "ROYAL_FLUSH"

    @property
    def rank(self) -> int:
        return HAND_RANKINGS[self]


HAND_RANKINGS = {hand_type: idx for idx, hand_type in enumerate(HandType, start=1)}

HAND_NAMES = {
    HandType.ROYAL_FLUSH: "Royal Flush",
    HandType.STRAIGHT_FLUSH: "Straight Flush",
    HandType.FOUR_OF_A_KIND: "Four of a Kind",
    HandType.FULL_HOUSE: "Full House",
    HandType.FLUSH: "Flush",
    HandType.STRAIGHT: "Straight",
    HandType.THREE_OF_A_KIND: "Three of a Kind",
    HandType.TWO_PAIR: "Two Pair",
    HandType.ONE_PAIR: "One Pair",
    HandType.HIGH_CARD: "High Card",
}


@dataclass(frozen=True)
class Hand:
    type: HandType
    rank: int
    tiebreakers: List[int]
    cards: List[Card] = field(default_factory=list)

    @property
    def strength(self) -> Tuple[int, Tuple[int, ...]]:
        return self.rank, tuple(self.tiebreakers)

    @property
    def name(self) -> str:
        return hand_name(self.type)


def evaluate(cards: Sequence[Card]) -> Hand:
    """Return the best five-card hand out of five or more cards."""
    if len(cards) < 5:
        raise InvalidHandError(f"Hand must contain at least 5 cards, got {len(cards)}")
    best: Optional[Hand] = None
    for combo in itertools.combinations(cards, 5):
        hand = _evaluate_five(combo)
        if best is None or hand.strength > best.strength:
            best = hand
    assert best is not None
    return best


def compare(a: Hand, b: Hand) -> int:
    if a.strength > b.strength:
        return 1
    if a.strength < b.strength:
        return -1
    return 0


def hand_name(hand_type: HandType) -> str:
    return HAND_NAMES.get(HandType(hand_type), "Unknown")


def _evaluate_five(cards: Iterable[Card]) -> Hand:
    ordered = sorted(cards, key=lambda card: card.value, reverse=True)
    ranks = [card.value for card in ordered]

    is_flush = len({card.suit for card in ordered}) == 1
    straight_high = _straight_high(ranks)

    counts = Counter(ranks)
    # Most copies first, higher rank breaks the tie.
    grouped = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    count_values = [count for _, count in grouped]
    by_group = [rank for rank, _ in grouped]

    if straight_high and is_flush:
        if straight_high == 14:
            return _hand(HandType.ROYAL_FLUSH, [14], ordered)
        return _hand(HandType.STRAIGHT_FLUSH, [straight_high], ordered)
    if count_values[0] == 4:
        return _hand(HandType.FOUR_OF_A_KIND, by_group, ordered)
    if count_values[0] == 3 and count_values[1] == 2:
        return _hand(HandType.FULL_HOUSE, by_group, ordered)
    if is_flush:
        return _hand(HandType.FLUSH, ranks, ordered)
    if straight_high:
        return _hand(HandType.STRAIGHT, [straight_high], ordered)
    if count_values[0] == 3:
        return _hand(HandType.THREE_OF_A_KIND, by_group, ordered)
    if count_values[0] == 2 and count_values[1] == 2:
        return _hand(HandType.TWO_PAIR, by_group, ordered)
    if count_values[0] == 2:
        return _hand(HandType.ONE_PAIR, by_group, ordered)
    return _hand(HandType.HIGH_CARD, ranks, ordered)


def _hand(hand_type: HandType, tiebreakers: List[int], cards: List[Card]) -> Hand:
    return Hand(type=hand_type, rank=hand_type.rank, tiebreakers=list(tiebreakers), cards=list(cards))


def _straight_high(ranks: List[int]) -> Optional[int]:
    """Top card of a five-card straight, or None. The wheel counts as 5-high."""
    distinct = sorted(set(ranks), reverse=True)
    if len(distinct) != 5:
        return None
    if distinct == [14, 5, 4, 3, 2]:
        return 5
    if distinct[0] - distinct[-1] == 4:
        return distinct[0]
    return None
