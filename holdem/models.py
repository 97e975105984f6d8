from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .cards import Card


class Phase(str, Enum):
    PRE_FLOP = "PRE_FLOP"
    FLOP = "FLOP"
    TURN = "TURN"
    RIVER = "RIVER"
    SHOWDOWN = "SHOWDOWN"


class ActionType(str, Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    RAISE = "RAISE"


class GameMode(str, Enum):
    CASUAL = "casual"
    RANKED = "ranked"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


MODE_STARTING_STACKS = {
    GameMode.CASUAL: 5_000,
    GameMode.RANKED: 10_000,
}


@dataclass
class TableConfig:
    max_players: int = 5
    starting_stack: int = 5_000
    sb: int = 25
    bb: int = 50
    mode: GameMode = GameMode.CASUAL
    ai_delay_ms: int = 0

    @classmethod
    def for_mode(cls, mode: GameMode, **overrides: object) -> "TableConfig":
        mode = GameMode(mode)
        config = cls(starting_stack=MODE_STARTING_STACKS[mode], mode=mode)
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config


@dataclass(frozen=True)
class Personality:
    aggressiveness: float
    bluff_frequency: float
    tightness: float
    fold_threshold: float
    raise_threshold: float


@dataclass(frozen=True)
class PlayerSpec:
    name: str
    is_human: bool = False
    initial_chips: Optional[int] = None
    difficulty: Optional[Difficulty] = None


@dataclass
class Player:
    name: str
    chips: int
    is_human: bool = False
    seat: int = 0
    difficulty: Optional[Difficulty] = None
    personality: Optional[Personality] = None
    hole_cards: List[Card] = field(default_factory=list)
    folded: bool = False
    all_in: bool = False
    current_bet: int = 0
    total_bet_this_hand: int = 0

    def new_hand(self) -> None:
        self.hole_cards.clear()
        self.folded = False
        self.all_in = False
        self.current_bet = 0
        self.total_bet_this_hand = 0

    def reset_for_street(self) -> None:
        self.current_bet = 0

    @property
    def can_act(self) -> bool:
        return not self.folded and not self.all_in and self.chips > 0


@dataclass(frozen=True)
class Decision:
    action: ActionType
    amount: int = 0


@dataclass(frozen=True)
class GameView:
    """What a seat can observe when it is asked to act."""

    current_bet: int
    pot_size: int
    community_cards: List[Card]
    num_players_in_hand: int
    betting_round: Phase
    position: int = 0
    big_blind: int = 50
    min_raise_increment: int = 50
    can_raise: bool = True


@dataclass(frozen=True)
class Standing:
    place: int
    name: str
    final_chips: int
    is_human: bool

    def as_dict(self) -> Dict[str, object]:
        return {
            "place": self.place,
            "name": self.name,
            "final_chips": self.final_chips,
            "is_human": self.is_human,
        }
