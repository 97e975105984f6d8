"""Texas Hold'em engine: cards, hand ranking, AI opponents and the hand loop."""

from .ai import decide, generate_names, generate_personality, hand_strength
from .cards import Card, Deck, RANKS, SUITS, build_deck, deal, parse_cards, parse_label
from .errors import IllegalActionError, IllegalStateError, InvalidHandError, PokerError
from .evaluator import Hand, HandType, compare, evaluate, hand_name
from .game import HandContext, HandEngine
from .models import (
    ActionType,
    Decision,
    Difficulty,
    GameMode,
    GameView,
    Personality,
    Phase,
    Player,
    PlayerSpec,
    Standing,
    TableConfig,
)
from .session import GameSession, create_table, start_session
from .store import JsonFileStore, KeyValueStore, MemoryStore, ResultsRecorder

__all__ = [
    "Card",
    "Deck",
    "RANKS",
    "SUITS",
    "build_deck",
    "deal",
    "parse_cards",
    "parse_label",
    "Hand",
    "HandType",
    "compare",
    "evaluate",
    "hand_name",
    "decide",
    "generate_names",
    "generate_personality",
    "hand_strength",
    "HandContext",
    "HandEngine",
    "GameSession",
    "create_table",
    "start_session",
    "ActionType",
    "Decision",
    "Difficulty",
    "GameMode",
    "GameView",
    "Personality",
    "Phase",
    "Player",
    "PlayerSpec",
    "Standing",
    "TableConfig",
    "PokerError",
    "InvalidHandError",
    "IllegalActionError",
    "IllegalStateError",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "ResultsRecorder",
]
