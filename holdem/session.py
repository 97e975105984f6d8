from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .ai import decide, generate_names, generate_personality
from .errors import IllegalActionError, IllegalStateError
from .game import HandEngine
from .models import ActionType, Difficulty, GameMode, Player, PlayerSpec, Standing, TableConfig

LOGGER = logging.getLogger("holdem.session")

Listener = Callable[[Dict[str, object]], None]

# Each sit-down game is coordinated through one GameSession. Nothing here is
# shared between sessions, so a server can run many side by side.


class GameSession:
    """Plays hands at one table until a single player holds every chip."""

    def __init__(
        self,
        config: TableConfig,
        players: Sequence[Player],
        dealer: Optional[int] = None,
        rng: Optional[random.Random] = None,
        listeners: Iterable[Listener] = (),
    ) -> None:
        if not 2 <= len(players) <= config.max_players:
            raise ValueError(f"Sessions need 2-{config.max_players} players, got {len(players)}")
        if sum(1 for player in players if player.is_human) > 1:
            raise ValueError("Only one human player per session")
        self.config = config
        self.rng = rng or random.Random()
        self.engine = HandEngine(config, players, dealer=dealer, rng=self.rng)
        self.listeners: List[Listener] = list(listeners)
        self.started = False
        self.finished = False
        self.abandoned = False
        self.hands_played = 0

    @property
    def players(self) -> List[Player]:
        return self.engine.players

    def subscribe(self, listener: Listener) -> None:
        self.listeners.append(listener)

    # Flow ------------------------------------------------------------

    def start(self) -> None:
        if self.started:
            raise IllegalStateError("Session already started")
        self.started = True
        LOGGER.info("Session starting with %d players", len(self.players))
        self._drive()

    def run(self) -> List[Standing]:
        """Play an all-AI session to the end and return the standings."""
        if not self.started:
            self.start()
        else:
            self._drive()
        if self.awaiting_human():
            raise IllegalStateError("Session is waiting for a human action")
        return self.standings()

    def submit_action(self, action: object, amount: Optional[int] = None) -> None:
        if self.finished or self.abandoned:
            raise IllegalActionError("SESSION_OVER", "Session is over")
        seat_idx = self.engine.next_actor()
        if seat_idx is None or not self.players[seat_idx].is_human:
            raise IllegalActionError("OUT_OF_TURN", "Not the human player's turn")

        # apply_action validates before it mutates, so a rejection leaves no trace.
        events = self.engine.apply_action(seat_idx, action, amount)
        self._emit_all(events)
        self._drive()

    def awaiting_human(self) -> bool:
        seat_idx = self.engine.next_actor()
        return seat_idx is not None and self.players[seat_idx].is_human and not self.finished

    def human_seat(self) -> Optional[int]:
        for player in self.players:
            if player.is_human:
                return player.seat
        return None

    def abandon(self) -> None:
        """Drop the in-flight hand. Nothing persists until a hand resolves."""
        if self.finished:
            return
        LOGGER.info("Session abandoned after %d hands", self.hands_played)
        self.abandoned = True
        self.engine.hand = None

    def _drive(self) -> None:
        # Hand loop: start hands, let AI seats act, stop when the human must act.
        while not self.finished and not self.abandoned:
            if self.engine.hand is None or self.engine.is_hand_complete():
                if not self._next_hand():
                    return
                continue

            seat_idx = self.engine.next_actor()
            if seat_idx is None:
                raise IllegalStateError("Hand in progress without an actor")
            if self.players[seat_idx].is_human:
                return
            self._play_ai_turn(seat_idx)

    def _next_hand(self) -> bool:
        if not self.engine.can_start_hand():
            self._end_session()
            return False
        self.engine.start_hand()
        self.hands_played += 1
        self._emit_all(self.engine.consume_pre_events())
        return True

    def _play_ai_turn(self, seat_idx: int) -> None:
        player = self.players[seat_idx]
        try:
            decision = decide(player, self.engine.game_view(seat_idx), self.rng)
            events = self.engine.apply_action(seat_idx, decision.action, decision.amount)
        except IllegalActionError as exc:
            LOGGER.warning("AI %s proposed an illegal action (%s); folding", player.name, exc.msg)
            events = self.engine.apply_action(seat_idx, ActionType.FOLD)
        except Exception:  # noqa: BLE001
            LOGGER.exception("AI decision failed for %s; folding", player.name)
            events = self.engine.apply_action(seat_idx, ActionType.FOLD)
        self._emit_all(events)

    def _end_session(self) -> None:
        self.finished = True
        standings = self.standings()
        LOGGER.info(
            "Session finished after %d hands, winner %s",
            self.hands_played,
            standings[0].name if standings else None,
        )
        self._emit({"ev": "SESSION_END", "hands_played": self.hands_played, "standings": [s.as_dict() for s in standings]})

    # Results ---------------------------------------------------------

    def standings(self) -> List[Standing]:
        # sorted() is stable, so equal stacks keep seating order.
        ordered = sorted(self.players, key=lambda player: player.chips, reverse=True)
        return [
            Standing(place=idx, name=player.name, final_chips=player.chips, is_human=player.is_human)
            for idx, player in enumerate(ordered, start=1)
        ]

    def _emit_all(self, events: Iterable[Dict[str, object]]) -> None:
        for event in events:
            self._emit(event)

    def _emit(self, event: Dict[str, object]) -> None:
        for listener in self.listeners:
            listener(event)


def build_players(
    specs: Sequence[PlayerSpec],
    config: TableConfig,
    rng: Optional[random.Random] = None,
) -> List[Player]:
    rng = rng or random.Random()
    players = []
    for spec in specs:
        chips = config.starting_stack if spec.initial_chips is None else spec.initial_chips
        if chips < 0:
            raise ValueError(f"Negative starting stack for {spec.name}")
        if spec.is_human:
            players.append(Player(name=spec.name, chips=chips, is_human=True))
            continue
        difficulty = Difficulty(spec.difficulty or Difficulty.MEDIUM)
        players.append(
            Player(
                name=spec.name,
                chips=chips,
                difficulty=difficulty,
                personality=generate_personality(difficulty, rng),
            )
        )
    return players


def start_session(
    specs: Sequence[PlayerSpec],
    config: Optional[TableConfig] = None,
    rng: Optional[random.Random] = None,
    listeners: Iterable[Listener] = (),
    dealer: Optional[int] = None,
) -> GameSession:
    """Seat the players and deal until the first human decision (or the end)."""
    config = config or TableConfig()
    rng = rng or random.Random()
    session = GameSession(config, build_players(specs, config, rng), dealer=dealer, rng=rng, listeners=listeners)
    session.start()
    return session


def table_specs(
    human_name: str = "Player",
    num_players: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[PlayerSpec]:
    """One human against randomly drawn AI opponents (3-5 seats unless told otherwise)."""
    rng = rng or random.Random()
    if num_players is None:
        num_players = 3 + rng.randrange(3)
    specs = [PlayerSpec(name=human_name, is_human=True)]
    taken = {human_name.casefold()}
    names = [name for name in generate_names(num_players + 4, rng) if name.casefold() not in taken]
    for name in names[: num_players - 1]:
        specs.append(PlayerSpec(name=name, difficulty=rng.choice(list(Difficulty))))
    return specs


def create_table(
    human_name: str = "Player",
    mode: GameMode = GameMode.CASUAL,
    num_players: Optional[int] = None,
    rng: Optional[random.Random] = None,
    listeners: Iterable[Listener] = (),
    config: Optional[TableConfig] = None,
) -> GameSession:
    rng = rng or random.Random()
    config = config or TableConfig.for_mode(mode)
    specs = table_specs(human_name, num_players, rng)
    dealer = rng.randrange(len(specs))
    return start_session(specs, config=config, rng=rng, listeners=listeners, dealer=dealer)
