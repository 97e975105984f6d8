from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from holdem.cards import Card, build_deck, parse_cards, parse_label
from holdem.game import HandContext, HandEngine
from holdem.models import ActionType, Player, TableConfig


def create_engine(
    *,
    players: int = 3,
    starting_stack: int = 500,
    sb: int = 25,
    bb: int = 50,
    stacks: Optional[Sequence[int]] = None,
) -> HandEngine:
    """Instantiate a hand engine with a populated table."""
    engine = HandEngine(TableConfig(max_players=max(players, 2), starting_stack=starting_stack, sb=sb, bb=bb))
    for idx in range(players):
        chips = stacks[idx] if stacks is not None else starting_stack
        engine.add_player(Player(name=f"Player{idx}", chips=chips))
    return engine


def start_hand(engine: HandEngine, seed: int = 42) -> HandContext:
    ctx = engine.start_hand(seed=seed)
    assert ctx is not None
    return ctx


def stacked_deck(holes: Sequence[Tuple[str, str]], board: Sequence[str]) -> List[Card]:
    """Deck that deals `holes` (in deal order, left of the button first) then `board`.

    Burn cards are taken from the unused remainder.
    """
    wanted = [parse_label(label) for pair in holes for label in pair] + parse_cards(board)
    rest = [card for card in build_deck(0) if card not in wanted]
    burns, rest = rest[:3], rest[3:]
    community = parse_cards(board)
    order = [parse_label(pair[0]) for pair in holes] + [parse_label(pair[1]) for pair in holes]
    order += [burns[0], *community[:3], burns[1], community[3], burns[2], community[4]]
    return order + rest


def rig_deck(monkeypatch, cards: Iterable[Card]) -> None:
    cards = list(cards)
    monkeypatch.setattr("holdem.game.build_deck", lambda seed=None: list(cards))


def perform_actions(engine: HandEngine, actions: Iterable[Tuple[int, ActionType, Optional[int]]]) -> None:
    """Apply a scripted sequence of actions (seat, action, amount)."""
    for seat_idx, action, amount in actions:
        engine.apply_action(seat_idx, action, amount)


def passive_action(engine: HandEngine, seat_idx: int) -> Tuple[ActionType, Optional[int]]:
    legal, *_ = engine.legal_actions(seat_idx)
    if ActionType.CHECK in legal:
        return ActionType.CHECK, None
    return ActionType.CALL, None


def auto_complete_hand(engine: HandEngine) -> List[dict]:
    """Check or call every decision until the hand resolves."""
    events: List[dict] = []
    while not engine.is_hand_complete():
        actor = engine.next_actor()
        if actor is None:
            break
        action, amount = passive_action(engine, actor)
        events.extend(engine.apply_action(actor, action, amount))
    return events


def chip_state(engine: HandEngine) -> tuple:
    ctx = engine.hand
    assert ctx is not None
    return (
        [(p.chips, p.current_bet, p.total_bet_this_hand, p.folded, p.all_in) for p in engine.players],
        ctx.pot,
        ctx.current_bet,
        ctx.min_raise_increment,
        set(ctx.pending),
        ctx.current_actor,
        ctx.phase,
    )
