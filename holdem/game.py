from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .cards import Card, Deck, build_deck, cards_to_labels
from .errors import IllegalActionError, IllegalStateError
from .evaluator import Hand, evaluate, hand_name
from .models import ActionType, GameView, Phase, Player, TableConfig

# HandEngine keeps all table state in memory. No I/O lives here, only poker
# rules, chip accounting, and betting order. There are no side pots: every
# player who has not folded can win the whole pot.


@dataclass
class HandContext:
    # All mutable info about the current hand (deck, pot, whose turn, etc.).
    hand_id: str
    seed: int
    button: int
    deck: Deck
    community: List[Card] = field(default_factory=list)
    phase: Phase = Phase.PRE_FLOP
    pot: int = 0
    current_bet: int = 0
    min_raise_increment: int = 0
    last_raise_seat: Optional[int] = None
    sb_seat: Optional[int] = None
    bb_seat: Optional[int] = None
    current_actor: Optional[int] = None
    pending: Set[int] = field(default_factory=set)
    # Seats that already acted before a short all-in; they may only call or fold.
    raise_closed: Set[int] = field(default_factory=set)
    pre_events: List[Dict[str, object]] = field(default_factory=list)
    complete: bool = False
    resolved_by_fold: bool = False
    winners: List[int] = field(default_factory=list)
    winning_hand: Optional[str] = None


class HandEngine:
    """Texas Hold'em hand engine for a single table of 2+ players."""

    def __init__(
        self,
        config: TableConfig,
        players: Sequence[Player] = (),
        dealer: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.players: List[Player] = []
        self.button: Optional[int] = dealer
        self.hand_counter = 0
        self.hand: Optional[HandContext] = None
        self.rng = rng or random.Random()
        for player in players:
            self.add_player(player)

    # Seat management -------------------------------------------------

    def add_player(self, player: Player) -> Player:
        name = player.name.strip()
        if not name:
            raise ValueError("NAME_REQUIRED")
        if any(existing.name.casefold() == name.casefold() for existing in self.players):
            raise ValueError("NAME_TAKEN")
        if len(self.players) >= self.config.max_players:
            raise RuntimeError("Table is full")
        player.name = name
        player.seat = len(self.players)
        self.players.append(player)
        return player

    def funded_seats(self) -> List[int]:
        return [player.seat for player in self.players if player.chips > 0]

    def total_chips(self) -> int:
        pot = self.hand.pot if self.hand else 0
        return sum(player.chips for player in self.players) + pot

    # Hand lifecycle --------------------------------------------------

    def can_start_hand(self) -> bool:
        return len(self.funded_seats()) >= 2

    def start_hand(self, seed: Optional[int] = None) -> HandContext:
        if not self.can_start_hand():
            raise IllegalStateError("Not enough funded players to start a hand")

        for player in self.players:
            player.new_hand()
            if player.chips == 0:
                # Busted seats sit the hand out.
                player.folded = True

        if seed is None:
            seed = self.rng.getrandbits(32)
        deck = Deck(build_deck(seed))

        if self.button is None:
            self.button = self.funded_seats()[0]
        else:
            self.button = self._next_seat(self.button, self._is_in_hand)

        hand_id = f"H-{time.strftime('%Y%m%d')}-{self.hand_counter:05d}"
        self.hand_counter += 1

        ctx = HandContext(
            hand_id=hand_id,
            seed=seed,
            button=self.button,
            deck=deck,
            min_raise_increment=self.config.bb,
        )
        self.hand = ctx
        ctx.pre_events.append({"ev": "HAND_START", **self.start_hand_payload(ctx)})

        self._post_blinds(ctx)
        self._deal_hole_cards(ctx)
        self._setup_betting_round(ctx, preflop=True)
        if not ctx.pending:
            # Blinds put everyone but one player all-in; run the board out.
            ctx.pre_events.extend(self._advance_phase(ctx))
        return ctx

    def _post_blinds(self, ctx: HandContext) -> None:
        in_hand = self._seats_in_hand()
        if len(in_hand) == 2:
            sb_seat = ctx.button
            bb_seat = self._next_seat(ctx.button, self._is_in_hand)
        else:
            sb_seat = self._next_seat(ctx.button, self._is_in_hand)
            bb_seat = self._next_seat(sb_seat, self._is_in_hand)
        sb_player = self.players[sb_seat]
        bb_player = self.players[bb_seat]

        sb_amount = self._commit_chips(sb_player, self.config.sb, ctx)
        bb_amount = self._commit_chips(bb_player, self.config.bb, ctx)

        ctx.sb_seat = sb_seat
        ctx.bb_seat = bb_seat
        ctx.current_bet = max(sb_player.current_bet, bb_player.current_bet)
        ctx.min_raise_increment = self.config.bb
        ctx.last_raise_seat = bb_seat
        ctx.pre_events.append(
            {
                "ev": "POST_BLINDS",
                "sb_seat": sb_seat,
                "bb_seat": bb_seat,
                "sb": sb_amount,
                "bb": bb_amount,
                "pot": ctx.pot,
            }
        )

    def _deal_hole_cards(self, ctx: HandContext) -> None:
        ordered = self._seats_from(ctx.button, self._is_in_hand)
        for _ in range(2):
            for seat_idx in ordered:
                self.players[seat_idx].hole_cards.append(ctx.deck.deal())
        ctx.pre_events.append({"ev": "DEAL", "seats": ordered})

    def _setup_betting_round(self, ctx: HandContext, preflop: bool) -> None:
        actionable = [seat for seat in self._seats_in_hand() if self.players[seat].can_act]
        if len(actionable) <= 1:
            # Nobody left to bet against; only an unmatched bet needs an answer.
            ctx.pending = {seat for seat in actionable if self.players[seat].current_bet < ctx.current_bet}
        else:
            ctx.pending = set(actionable)

        start = ctx.bb_seat if preflop else ctx.button
        assert start is not None
        ctx.current_actor = self._next_pending(ctx, start) if ctx.pending else None

    def _commit_chips(self, player: Player, amount: int, ctx: HandContext) -> int:
        amount = min(amount, player.chips)
        player.chips -= amount
        player.current_bet += amount
        player.total_bet_this_hand += amount
        ctx.pot += amount
        if player.chips == 0:
            player.all_in = True
        return amount

    # Seat iteration --------------------------------------------------

    def _is_in_hand(self, player: Player) -> bool:
        return not player.folded

    def _seats_in_hand(self) -> List[int]:
        return [player.seat for player in self.players if not player.folded]

    def _seats_from(self, start: int, predicate: Callable[[Player], bool]) -> List[int]:
        """Seats matching predicate, beginning with the one left of start."""
        count = len(self.players)
        ordered = []
        for offset in range(1, count + 1):
            player = self.players[(start + offset) % count]
            if predicate(player):
                ordered.append(player.seat)
        return ordered

    def _next_seat(self, start: int, predicate: Callable[[Player], bool]) -> int:
        seats = self._seats_from(start, predicate)
        if not seats:
            raise IllegalStateError("No eligible seat found")
        return seats[0]

    def _next_pending(self, ctx: HandContext, start: int) -> Optional[int]:
        seats = self._seats_from(start, lambda p: p.seat in ctx.pending)
        return seats[0] if seats else None

    # Action handling -------------------------------------------------

    def legal_actions(self, seat_idx: int) -> Tuple[List[ActionType], Optional[int], Optional[int], Optional[int]]:
        """Legal moves plus helper numbers (amount to call, min/max raise).

        All amounts are chips added by the action, never a "raise to" total.
        """
        ctx = self._require_hand()
        player = self._require_seat(seat_idx)

        legal: List[ActionType] = [ActionType.FOLD]
        to_call = max(ctx.current_bet - player.current_bet, 0)
        if to_call == 0:
            legal.append(ActionType.CHECK)
        else:
            legal.append(ActionType.CALL)

        min_raise = None
        max_raise = None
        if player.chips > to_call and seat_idx not in ctx.raise_closed:
            min_raise = min(to_call + ctx.min_raise_increment, player.chips)
            max_raise = player.chips
            legal.append(ActionType.RAISE)

        call_amount = min(to_call, player.chips) if to_call > 0 else None
        return legal, call_amount, min_raise, max_raise

    def apply_action(self, seat_idx: int, action: object, amount: Optional[int] = None) -> List[Dict[str, object]]:
        ctx = self._require_hand()
        player = self._require_seat(seat_idx)
        if ctx.current_actor != seat_idx:
            raise IllegalActionError("OUT_OF_TURN", "Not this seat's turn")
        action_type = self._coerce_action(action)
        paid = self._validate(ctx, player, action_type, amount)

        # Validation passed; from here on nothing raises.
        events: List[Dict[str, object]] = []
        if action_type == ActionType.FOLD:
            player.folded = True
            ctx.pending.discard(seat_idx)
        elif action_type == ActionType.CHECK:
            ctx.pending.discard(seat_idx)
        elif action_type == ActionType.CALL:
            self._commit_chips(player, paid, ctx)
            ctx.pending.discard(seat_idx)
        else:
            previous_bet = ctx.current_bet
            self._commit_chips(player, paid, ctx)
            ctx.current_bet = player.current_bet
            raised_by = ctx.current_bet - previous_bet
            actionable = {
                seat
                for seat in self._seats_in_hand()
                if seat != seat_idx and self.players[seat].can_act
            }
            if raised_by >= ctx.min_raise_increment:
                ctx.min_raise_increment = raised_by
                ctx.last_raise_seat = seat_idx
                ctx.raise_closed = set()
            else:
                # Short all-in: whoever already acted must answer it but cannot re-raise.
                ctx.raise_closed |= actionable - ctx.pending
            ctx.pending = actionable

        if player.all_in:
            ctx.pending.discard(seat_idx)

        events.append(
            {
                "ev": "ACTION",
                "seat": seat_idx,
                "player": player.name,
                "action": action_type.value,
                "amount": paid,
                "all_in": player.all_in,
                "pot": ctx.pot,
            }
        )
        events.extend(self._advance_after_action(ctx, seat_idx))
        return events

    def _coerce_action(self, action: object) -> ActionType:
        if isinstance(action, ActionType):
            return action
        if isinstance(action, str):
            try:
                return ActionType(action.strip().upper())
            except ValueError:
                pass
        raise IllegalActionError("UNKNOWN_ACTION", f"Unsupported action {action}")

    def _validate(self, ctx: HandContext, player: Player, action: ActionType, amount: Optional[int]) -> int:
        """Return the chips the action will move, or raise without touching state."""
        if amount is not None and (isinstance(amount, bool) or not isinstance(amount, int) or amount < 0):
            raise IllegalActionError("BAD_AMOUNT", "Amount must be a non-negative integer")

        to_call = max(ctx.current_bet - player.current_bet, 0)
        if action == ActionType.FOLD:
            return 0
        if action == ActionType.CHECK:
            if to_call > 0:
                raise IllegalActionError("CANNOT_CHECK", "Cannot check when facing a bet")
            if amount:
                raise IllegalActionError("BAD_AMOUNT", "Check does not take an amount")
            return 0
        if action == ActionType.CALL:
            if to_call == 0:
                raise IllegalActionError("NOTHING_TO_CALL", "Nothing to call")
            owed = min(to_call, player.chips)
            if amount is not None and amount > player.chips:
                raise IllegalActionError("BAD_AMOUNT", "Call exceeds stack")
            if amount is not None and amount != owed:
                raise IllegalActionError("BAD_AMOUNT", f"Call amount must be {owed}")
            return owed

        if player.seat in ctx.raise_closed:
            raise IllegalActionError("RAISE_NOT_REOPENED", "A short all-in does not reopen raising")
        if amount is None:
            raise IllegalActionError("BAD_AMOUNT", "Raise requires amount")
        if amount > player.chips:
            raise IllegalActionError("RAISE_EXCEEDS_STACK", "Raise exceeds stack")
        if amount <= to_call:
            raise IllegalActionError("RAISE_TOO_SMALL", "Raise must exceed the amount to call")
        short_all_in = amount - to_call < ctx.min_raise_increment
        if short_all_in and amount != player.chips:
            raise IllegalActionError("RAISE_TOO_SMALL", "Raise below minimum")
        return amount

    def _advance_after_action(self, ctx: HandContext, seat_idx: int) -> List[Dict[str, object]]:
        alive = self._seats_in_hand()
        if len(alive) == 1:
            return self._award_uncontested(ctx, alive[0])

        if ctx.pending:
            ctx.current_actor = self._next_pending(ctx, seat_idx)
            return []

        return self._advance_phase(ctx)

    def is_betting_round_complete(self) -> bool:
        if not self.hand or self.hand.complete:
            return True
        ctx = self.hand
        alive = self._seats_in_hand()
        if len(alive) <= 1:
            return True
        if ctx.pending:
            return False
        return all(
            self.players[seat].current_bet == ctx.current_bet
            for seat in alive
            if not self.players[seat].all_in
        )

    def _advance_phase(self, ctx: HandContext) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []

        while True:
            for player in self.players:
                player.reset_for_street()
            ctx.current_bet = 0
            ctx.min_raise_increment = self.config.bb
            ctx.last_raise_seat = None
            ctx.raise_closed = set()

            if ctx.phase == Phase.PRE_FLOP:
                ctx.phase = Phase.FLOP
                count = 3
            elif ctx.phase == Phase.FLOP:
                ctx.phase = Phase.TURN
                count = 1
            elif ctx.phase == Phase.TURN:
                ctx.phase = Phase.RIVER
                count = 1
            else:
                ctx.phase = Phase.SHOWDOWN
                events.extend(self._resolve_showdown(ctx))
                return events

            ctx.deck.burn()
            cards = ctx.deck.deal_many(count)
            ctx.community.extend(cards)
            events.append(
                {
                    "ev": "STREET",
                    "phase": ctx.phase.value,
                    "cards": cards_to_labels(cards),
                    "community": cards_to_labels(ctx.community),
                }
            )

            self._setup_betting_round(ctx, preflop=False)
            if ctx.pending:
                return events
            # Nobody can bet any more; keep revealing to showdown.

    # Resolution ------------------------------------------------------

    def _award_uncontested(self, ctx: HandContext, winner_idx: int) -> List[Dict[str, object]]:
        ctx.resolved_by_fold = True
        ctx.phase = Phase.SHOWDOWN
        events = self._award(ctx, [winner_idx])
        events.extend(self._finish_hand(ctx))
        return events

    def _resolve_showdown(self, ctx: HandContext) -> List[Dict[str, object]]:
        board_labels = cards_to_labels(ctx.community)
        contenders = self._seats_from(ctx.button, self._is_in_hand)

        best_hands: Dict[int, Hand] = {}
        shown = []
        for seat_idx in contenders:
            player = self.players[seat_idx]
            best = evaluate(player.hole_cards + ctx.community)
            best_hands[seat_idx] = best
            shown.append(
                {
                    "seat": seat_idx,
                    "player": player.name,
                    "hole": cards_to_labels(player.hole_cards),
                    "hand": best.name,
                    "cards": cards_to_labels(best.cards),
                }
            )

        top = max(hand.strength for hand in best_hands.values())
        # Seat order left of the button; the split remainder follows it.
        winners = [seat for seat in contenders if best_hands[seat].strength == top]
        ctx.winning_hand = hand_name(best_hands[winners[0]].type)

        events: List[Dict[str, object]] = [
            {
                "ev": "SHOWDOWN",
                "board": board_labels,
                "hands": shown,
                "winners": [self.players[seat].name for seat in winners],
                "hand_name": ctx.winning_hand,
            }
        ]
        events.extend(self._award(ctx, winners))
        events.extend(self._finish_hand(ctx))
        return events

    def _award(self, ctx: HandContext, winners: List[int]) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        share, remainder = divmod(ctx.pot, len(winners))
        for idx, seat_idx in enumerate(winners):
            payout = share + (1 if idx < remainder else 0)
            self.players[seat_idx].chips += payout
            events.append(
                {
                    "ev": "POT_AWARD",
                    "seat": seat_idx,
                    "player": self.players[seat_idx].name,
                    "amount": payout,
                }
            )
        ctx.winners = list(winners)
        ctx.pot = 0
        return events

    def _finish_hand(self, ctx: HandContext) -> List[Dict[str, object]]:
        pot_awarded = sum(player.total_bet_this_hand for player in self.players)
        ctx.complete = True
        ctx.current_actor = None
        ctx.pending.clear()
        return [{"ev": "HAND_END", "pot_awarded": pot_awarded, **self.end_hand_payload()}]

    # Public/Snapshot helpers -----------------------------------------

    def _require_hand(self) -> HandContext:
        if not self.hand or self.hand.complete:
            raise IllegalActionError("HAND_NOT_ACTIVE", "Hand not in progress")
        return self.hand

    def _require_seat(self, seat_idx: int) -> Player:
        if not 0 <= seat_idx < len(self.players):
            raise IllegalActionError("SEAT_NOT_ACTIVE", "Seat not active")
        player = self.players[seat_idx]
        if player.folded or player.all_in:
            raise IllegalActionError("SEAT_NOT_ACTIVE", "Seat not active")
        return player

    def consume_pre_events(self) -> List[Dict[str, object]]:
        if not self.hand:
            return []
        events = list(self.hand.pre_events)
        self.hand.pre_events.clear()
        return events

    def next_actor(self) -> Optional[int]:
        if not self.hand or self.hand.complete:
            return None
        return self.hand.current_actor

    def is_hand_complete(self) -> bool:
        return bool(self.hand and self.hand.complete)

    def game_view(self, seat_idx: int) -> GameView:
        """Observable table state for the seat about to act."""
        if not self.hand:
            raise IllegalStateError("Hand not active")
        ctx = self.hand
        order = self._seats_from(ctx.button, self._is_in_hand)
        position = order.index(seat_idx) + 1 if seat_idx in order else 0
        return GameView(
            current_bet=ctx.current_bet,
            pot_size=ctx.pot,
            community_cards=list(ctx.community),
            num_players_in_hand=len(order),
            betting_round=ctx.phase,
            position=position,
            big_blind=self.config.bb,
            min_raise_increment=ctx.min_raise_increment,
            can_raise=seat_idx not in ctx.raise_closed,
        )

    def start_hand_payload(self, ctx: HandContext) -> Dict[str, object]:
        return {
            "hand_id": ctx.hand_id,
            "seed": ctx.seed,
            "button": ctx.button,
            "stacks": [
                {"seat": player.seat, "name": player.name, "stack": player.chips + player.total_bet_this_hand}
                for player in self.players
            ],
        }

    def end_hand_payload(self) -> Dict[str, object]:
        if not self.hand:
            raise IllegalStateError("Hand not active")
        ctx = self.hand
        return {
            "hand_id": ctx.hand_id,
            "winners": [self.players[seat].name for seat in ctx.winners],
            "resolved_by_fold": ctx.resolved_by_fold,
            "stacks": [{"seat": player.seat, "stack": player.chips} for player in self.players],
            "eliminated": [player.seat for player in self.players if player.chips == 0],
        }

    def act_payload(self, seat_idx: int) -> Dict[str, object]:
        ctx = self._require_hand()
        player = self.players[seat_idx]
        legal, call_amount, min_raise, max_raise = self.legal_actions(seat_idx)
        return {
            "hand_id": ctx.hand_id,
            "seat": seat_idx,
            "phase": ctx.phase.value,
            "pot": ctx.pot,
            "current_bet": ctx.current_bet,
            "min_raise_increment": ctx.min_raise_increment,
            "you": {
                "hole": cards_to_labels(player.hole_cards),
                "chips": player.chips,
                "current_bet": player.current_bet,
                "to_call": max(ctx.current_bet - player.current_bet, 0),
            },
            "community": cards_to_labels(ctx.community),
            "legal": [action.value for action in legal],
            "call_amount": call_amount,
            "min_raise": min_raise,
            "max_raise": max_raise,
        }

    def table_state(self, viewer_seat: Optional[int] = None) -> Dict[str, object]:
        """Public table view; hole cards only for the viewer, or everyone after showdown."""
        ctx = self.hand
        reveal_all = bool(ctx and ctx.complete and not ctx.resolved_by_fold)
        seats = []
        for player in self.players:
            visible = reveal_all or player.seat == viewer_seat
            seats.append(
                {
                    "seat": player.seat,
                    "name": player.name,
                    "is_human": player.is_human,
                    "chips": player.chips,
                    "current_bet": player.current_bet,
                    "folded": player.folded,
                    "all_in": player.all_in,
                    "hole": cards_to_labels(player.hole_cards) if visible else [],
                    "is_button": bool(ctx and ctx.button == player.seat),
                }
            )
        return {
            "hand_id": ctx.hand_id if ctx else None,
            "phase": ctx.phase.value if ctx else None,
            "pot": ctx.pot if ctx else 0,
            "current_bet": ctx.current_bet if ctx else 0,
            "community": cards_to_labels(ctx.community) if ctx else [],
            "next_actor": self.next_actor(),
            "seats": seats,
            "sb": self.config.sb,
            "bb": self.config.bb,
        }
