from __future__ import annotations

import random
from collections import Counter
from typing import Dict, List, Optional, Sequence

from .cards import Card
from .errors import InvalidHandError
from .evaluator import evaluate
from .models import ActionType, Decision, Difficulty, GameView, Personality, Phase, Player

_RNG = random.Random()

# (low, high) sampling ranges plus fixed thresholds per difficulty.
_PERSONALITY_RANGES: Dict[Difficulty, Dict[str, object]] = {
    Difficulty.EASY: {
        "aggressiveness": (0.2, 0.5),
        "bluff_frequency": (0.1, 0.3),
        "tightness": (0.6, 0.9),
        "fold_threshold": 0.3,
        "raise_threshold": 0.7,
    },
    Difficulty.MEDIUM: {
        "aggressiveness": (0.3, 0.7),
        "bluff_frequency": (0.2, 0.5),
        "tightness": (0.4, 0.8),
        "fold_threshold": 0.25,
        "raise_threshold": 0.65,
    },
    Difficulty.HARD: {
        "aggressiveness": (0.4, 0.8),
        "bluff_frequency": (0.3, 0.7),
        "tightness": (0.2, 0.6),
        "fold_threshold": 0.2,
        "raise_threshold": 0.6,
    },
}

# Evaluator rank (1 = high card .. 10 = royal flush) to strength.
_MADE_HAND_STRENGTH = {
    1: 0.1,
    2: 0.25,
    3: 0.4,
    4: 0.55,
    5: 0.65,
    6: 0.75,
    7: 0.85,
    8: 0.92,
    9: 0.97,
    10: 1.0,
}

ALL_IN_CALL_STRENGTH = 0.6
BLUFF_BONUS = 0.15
RAISE_INCREMENT = 25

_FIRST_NAMES = [
    "Alex", "Blake", "Casey", "Dana", "Drew", "Ellis", "Finley", "Grey",
    "Harper", "Indiana", "Jett", "Kai", "Lane", "Morgan", "Nova", "Onyx",
    "Parker", "Quinn", "River", "Sage", "Taylor", "Uma", "Vale", "West",
    "Zane", "Storm", "Raven", "Phoenix", "Frost", "Blaze", "Shadow", "Echo",
]
_NAME_SUFFIXES = [
    "Pro", "King", "Queen", "Ace", "Shark", "Wolf", "Fox", "Hawk",
    "Steel", "Gold", "Diamond", "Thunder", "Lightning", "Fire", "Ice",
]


def generate_personality(difficulty: Difficulty, rng: Optional[random.Random] = None) -> Personality:
    rng = rng or _RNG
    try:
        ranges = _PERSONALITY_RANGES[Difficulty(difficulty)]
    except ValueError:
        ranges = _PERSONALITY_RANGES[Difficulty.MEDIUM]

    def sample(key: str) -> float:
        low, high = ranges[key]  # type: ignore[misc]
        return low + rng.random() * (high - low)

    return Personality(
        aggressiveness=sample("aggressiveness"),
        bluff_frequency=sample("bluff_frequency"),
        tightness=sample("tightness"),
        fold_threshold=float(ranges["fold_threshold"]),  # type: ignore[arg-type]
        raise_threshold=float(ranges["raise_threshold"]),  # type: ignore[arg-type]
    )


def generate_names(count: int, rng: Optional[random.Random] = None) -> List[str]:
    """Unique opponent names like "Kai", "NovaShark" or "Frost42"."""
    rng = rng or _RNG
    names: List[str] = []
    while len(names) < count:
        name = rng.choice(_FIRST_NAMES)
        if rng.random() < 0.3:
            name += rng.choice(_NAME_SUFFIXES)
        if rng.random() < 0.2:
            name += str(rng.randint(1, 99))
        if name not in names:
            names.append(name)
    return names


# Hand strength ---------------------------------------------------------


def hand_strength(hole: Sequence[Card], community: Sequence[Card]) -> float:
    """Rough 0..1 strength of a holding given the visible board."""
    if len(hole) < 2:
        return 0.0
    all_cards = list(hole) + list(community)
    if len(all_cards) >= 5:
        try:
            return _MADE_HAND_STRENGTH.get(evaluate(all_cards).rank, 0.1)
        except InvalidHandError:
            return preflop_strength(hole)
    if community:
        return _partial_strength(all_cards)
    return preflop_strength(hole)


def preflop_strength(hole: Sequence[Card]) -> float:
    first, second = hole[0], hole[1]
    suited = first.suit == second.suit
    high = max(first.value, second.value)
    low = min(first.value, second.value)

    if high == low:
        if high >= 10:
            return 0.9
        if high >= 7:
            return 0.7
        return 0.5
    if high == 14 and low >= 10:
        return 0.8 if suited else 0.75
    if low >= 10:
        return 0.65 if suited else 0.6
    if suited and high - low <= 2:
        return 0.55
    if high >= 11:
        return 0.45
    # Capped below the face-card tier so unpaired low cards never outrank it.
    return max(0.1, min(0.4, (high + low) / 28))


def _partial_strength(cards: Sequence[Card]) -> float:
    suits = Counter(card.suit for card in cards)
    ranks = Counter(card.value for card in cards)

    strength = 0.3
    top_count = max(ranks.values())
    if top_count >= 3:
        strength += 0.4
    elif top_count == 2:
        strength += 0.25

    if max(suits.values()) >= 4:
        strength += 0.2

    ordered = sorted(ranks)
    if len(ordered) >= 3:
        run = best = 1
        for prev, cur in zip(ordered, ordered[1:]):
            run = run + 1 if cur - prev == 1 else 1
            best = max(best, run)
        if best >= 3:
            strength += 0.15

    return min(1.0, strength)


# Adjustments -----------------------------------------------------------


def _position_factor(position: int, num_players: int) -> float:
    if num_players <= 0:
        return 0.0
    return (position / num_players) * 0.5


def _aggression_factor(personality: Personality, betting_round: Phase, pot_size: int, chips: int) -> float:
    factor = 0.0
    if betting_round == Phase.TURN:
        factor += 0.2
    elif betting_round == Phase.RIVER:
        factor += 0.3
    if pot_size > chips * 0.5:
        factor += 0.1
    return factor * personality.aggressiveness


def _should_bluff(personality: Personality, betting_round: Phase, num_players: int, rng: random.Random) -> bool:
    chance = personality.bluff_frequency * (1 - (num_players - 2) * 0.2)
    street_multiplier = {Phase.TURN: 1.2, Phase.RIVER: 1.5}.get(betting_round, 1.0)
    return rng.random() < chance * street_multiplier


# Decision --------------------------------------------------------------


def decide(player: Player, view: GameView, rng: Optional[random.Random] = None) -> Decision:
    """Pick an action for an AI seat. Amounts are chips added this action."""
    rng = rng or _RNG
    if player.personality is None:
        # Drawn once, then kept for the rest of the player's life.
        player.personality = generate_personality(player.difficulty or Difficulty.MEDIUM, rng)
    personality = player.personality

    strength = hand_strength(player.hole_cards, view.community_cards)
    call_amount = max(view.current_bet - player.current_bet, 0)
    pot_odds = call_amount / (view.pot_size + call_amount) if view.pot_size > 0 else 1.0

    adjusted = strength
    adjusted += _position_factor(view.position, view.num_players_in_hand) * 0.1
    adjusted += _aggression_factor(personality, view.betting_round, view.pot_size, player.chips) * 0.05
    if _should_bluff(personality, view.betting_round, view.num_players_in_hand, rng):
        adjusted += BLUFF_BONUS
    adjusted = min(1.0, max(0.0, adjusted))

    if call_amount == 0:
        threshold = personality.raise_threshold + (rng.random() - 0.5) * 0.2
        if adjusted > threshold and view.can_raise:
            raise_decision = _raise_decision(player, view, personality, strength, call_amount, rng)
            if raise_decision is not None:
                return raise_decision
        return Decision(ActionType.CHECK)

    if call_amount >= player.chips:
        if adjusted > ALL_IN_CALL_STRENGTH:
            return Decision(ActionType.CALL, player.chips)
        return Decision(ActionType.FOLD)

    if adjusted < personality.fold_threshold:
        return Decision(ActionType.FOLD)
    if adjusted > personality.raise_threshold and view.can_raise:
        raise_decision = _raise_decision(player, view, personality, strength, call_amount, rng)
        if raise_decision is None:
            # Minimum raise is out of reach while facing a bet.
            return Decision(ActionType.FOLD)
        return raise_decision
    if pot_odds < adjusted or call_amount <= player.chips * 0.1:
        return Decision(ActionType.CALL, call_amount)
    return Decision(ActionType.FOLD)


def _raise_decision(
    player: Player,
    view: GameView,
    personality: Personality,
    strength: float,
    call_amount: int,
    rng: random.Random,
) -> Optional[Decision]:
    min_total = call_amount + max(view.min_raise_increment, view.big_blind)
    if min_total > player.chips:
        # Never propose a raise we cannot afford; caller checks or folds instead.
        return None
    size = choose_raise_size(view.pot_size, player.chips - call_amount, view.big_blind, strength, personality, rng)
    amount = max(min_total, min(player.chips, call_amount + size))
    return Decision(ActionType.RAISE, amount)


def choose_raise_size(
    pot_size: int,
    chips: int,
    big_blind: int,
    strength: float,
    personality: Personality,
    rng: random.Random,
) -> int:
    low = max(big_blind, int(pot_size * 0.3))
    high = max(low, min(chips, int(pot_size * 1.2)))

    if strength > 0.8:
        size = low + (high - low) * 0.6
    elif strength < 0.3:
        size = low + (high - low) * 0.3
    else:
        size = low + (high - low) * personality.aggressiveness

    size *= 0.8 + rng.random() * 0.4
    size = round(size / RAISE_INCREMENT) * RAISE_INCREMENT
    return int(max(low, min(high, size)))
