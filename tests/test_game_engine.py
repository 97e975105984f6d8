from holdem.cards import parse_cards
from holdem.game import HandEngine
from holdem.models import ActionType, Phase, Player, TableConfig

from .helpers import auto_complete_hand, create_engine, perform_actions, rig_deck, stacked_deck, start_hand

SHOWDOWN_HOLES = [("2c", "7d"), ("Ks", "Kh"), ("Qd", "8h")]  # seats 1, 2, 0
SHOWDOWN_BOARD = ["Ad", "9c", "5h", "3s", "Jc"]


def test_start_hand_assigns_button_and_blinds():
    engine = create_engine()
    ctx = start_hand(engine)
    assert ctx.button == 0
    events = engine.consume_pre_events()
    assert [event["ev"] for event in events] == ["HAND_START", "POST_BLINDS", "DEAL"]
    assert events[1] == {"ev": "POST_BLINDS", "sb_seat": 1, "bb_seat": 2, "sb": 25, "bb": 50, "pot": 75}
    assert events[2]["seats"] == [1, 2, 0]
    assert ctx.current_bet == 50
    assert engine.next_actor() == 0


def test_hole_cards_are_distinct_and_leave_the_deck():
    engine = create_engine(players=5)
    ctx = start_hand(engine, seed=8)
    hole = [card for player in engine.players for card in player.hole_cards]
    assert all(len(player.hole_cards) == 2 for player in engine.players)
    assert len(set(hole)) == 10
    assert not set(hole) & set(ctx.deck.cards)
    assert len(ctx.deck) == 42


def test_hole_cards_dealt_one_per_pass_starting_left_of_button(monkeypatch):
    rig_deck(monkeypatch, stacked_deck(SHOWDOWN_HOLES, SHOWDOWN_BOARD))
    engine = create_engine()
    start_hand(engine)
    assert engine.players[1].hole_cards == parse_cards(["2c", "7d"])
    assert engine.players[2].hole_cards == parse_cards(["Ks", "Kh"])
    assert engine.players[0].hole_cards == parse_cards(["Qd", "8h"])


def test_heads_up_button_posts_small_blind_and_acts_first():
    engine = create_engine(players=2)
    ctx = start_hand(engine, seed=123)
    pre_events = engine.consume_pre_events()
    blinds = next(event for event in pre_events if event["ev"] == "POST_BLINDS")
    assert blinds["sb_seat"] == ctx.button == 0
    assert blinds["bb_seat"] == 1
    assert engine.next_actor() == 0


def test_legal_actions_facing_big_blind():
    engine = create_engine()
    start_hand(engine)
    legal, call_amount, min_raise, max_raise = engine.legal_actions(0)
    assert legal == [ActionType.FOLD, ActionType.CALL, ActionType.RAISE]
    assert call_amount == 50
    assert min_raise == 100
    assert max_raise == 500


def test_big_blind_gets_option_to_check():
    engine = create_engine()
    start_hand(engine)
    perform_actions(engine, [(0, ActionType.CALL, None), (1, ActionType.CALL, None)])
    assert engine.next_actor() == 2
    legal, call_amount, *_ = engine.legal_actions(2)
    assert ActionType.CHECK in legal
    assert call_amount is None


def test_raise_updates_pot_and_pending_players():
    engine = create_engine()
    ctx = start_hand(engine)
    events = engine.apply_action(0, ActionType.RAISE, 150)
    assert events[0]["ev"] == "ACTION"
    assert events[0]["amount"] == 150
    assert ctx.current_bet == 150
    assert ctx.min_raise_increment == 100
    assert ctx.last_raise_seat == 0
    assert ctx.pot == 225
    assert ctx.pending == {1, 2}
    assert engine.next_actor() == 1


def test_fold_immediately_ends_hand_without_extra_prompt():
    engine = create_engine(players=2)
    ctx = start_hand(engine, seed=5)
    events = engine.apply_action(0, ActionType.FOLD)
    assert any(ev["ev"] == "POT_AWARD" and ev["seat"] == 1 and ev["amount"] == 75 for ev in events)
    assert events[-1]["ev"] == "HAND_END"
    assert engine.is_hand_complete()
    assert ctx.resolved_by_fold
    assert engine.next_actor() is None
    assert [p.chips for p in engine.players] == [475, 525]


def test_streets_burn_then_reveal(monkeypatch):
    deck = stacked_deck(SHOWDOWN_HOLES, SHOWDOWN_BOARD)
    rig_deck(monkeypatch, deck)
    engine = create_engine()
    ctx = start_hand(engine)

    perform_actions(engine, [(0, ActionType.CALL, None), (1, ActionType.CALL, None)])
    events = engine.apply_action(2, ActionType.CHECK)
    street = next(event for event in events if event["ev"] == "STREET")
    assert street["phase"] == "FLOP"
    assert ctx.community == parse_cards(SHOWDOWN_BOARD[:3])
    assert deck[6] not in ctx.community  # burned
    assert ctx.current_bet == 0
    assert all(player.current_bet == 0 for player in engine.players)
    assert engine.next_actor() == 1

    perform_actions(engine, [(1, ActionType.CHECK, None), (2, ActionType.CHECK, None), (0, ActionType.CHECK, None)])
    assert ctx.phase == Phase.TURN
    assert ctx.community == parse_cards(SHOWDOWN_BOARD[:4])


def test_three_players_check_down_single_winner(monkeypatch):
    rig_deck(monkeypatch, stacked_deck(SHOWDOWN_HOLES, SHOWDOWN_BOARD))
    engine = create_engine(players=3, starting_stack=500, sb=25, bb=50)
    ctx = start_hand(engine)

    events = auto_complete_hand(engine)

    assert engine.is_hand_complete()
    assert not ctx.resolved_by_fold
    showdown = next(event for event in events if event["ev"] == "SHOWDOWN")
    assert showdown["winners"] == ["Player2"]
    assert showdown["hand_name"] == "One Pair"
    hand_end = events[-1]
    assert hand_end["ev"] == "HAND_END"
    assert hand_end["pot_awarded"] == 150
    # Winner gets back 50 plus the other two contributions; losers lose exactly their calls.
    assert [p.chips for p in engine.players] == [450, 450, 600]
    assert ctx.pot == 0


def test_split_pot_remainder_goes_to_first_winner_left_of_button(monkeypatch):
    holes = [("2d", "3c"), ("4d", "5c"), ("6d", "7c")]  # seats 1, 2, 0
    rig_deck(monkeypatch, stacked_deck(holes, ["Ts", "Jh", "Qd", "Kc", "As"]))
    engine = create_engine()
    start_hand(engine)

    perform_actions(engine, [(0, ActionType.CALL, None), (1, ActionType.FOLD, None)])
    events = auto_complete_hand(engine)

    awards = {event["seat"]: event["amount"] for event in events if event["ev"] == "POT_AWARD"}
    assert awards == {2: 63, 0: 62}
    assert [p.chips for p in engine.players] == [512, 475, 513]


def test_three_way_split_returns_equal_shares(monkeypatch):
    holes = [("2d", "3c"), ("4d", "5c"), ("6d", "7c")]
    rig_deck(monkeypatch, stacked_deck(holes, ["Ts", "Jh", "Qd", "Kc", "As"]))
    engine = create_engine()
    start_hand(engine)
    auto_complete_hand(engine)
    assert [p.chips for p in engine.players] == [500, 500, 500]


def test_fold_cascade_post_flop_skips_remaining_streets():
    engine = create_engine(players=3, starting_stack=300, sb=10, bb=20)
    ctx = start_hand(engine, seed=50)
    while ctx.phase != Phase.FLOP:
        actor = engine.next_actor()
        legal, *_ = engine.legal_actions(actor)
        action = ActionType.CHECK if ActionType.CHECK in legal else ActionType.CALL
        engine.apply_action(actor, action)

    first = engine.next_actor()
    engine.apply_action(first, ActionType.FOLD)
    engine.apply_action(engine.next_actor(), ActionType.FOLD)

    assert engine.is_hand_complete()
    assert ctx.resolved_by_fold
    assert len(ctx.community) == 3
    assert sum(p.chips for p in engine.players) == 900


def test_postflop_action_skips_folded_players():
    engine = create_engine()
    start_hand(engine)
    perform_actions(
        engine,
        [(0, ActionType.CALL, None), (1, ActionType.FOLD, None), (2, ActionType.CHECK, None)],
    )
    assert engine.hand.phase == Phase.FLOP
    assert engine.next_actor() == 2


def test_game_view_reports_position_and_table_state():
    engine = create_engine(players=4)
    start_hand(engine)
    view = engine.game_view(3)
    assert view.current_bet == 50
    assert view.pot_size == 75
    assert view.num_players_in_hand == 4
    assert view.betting_round == Phase.PRE_FLOP
    assert view.position == 3
    assert engine.game_view(0).position == 4  # button acts last after the flop


def test_act_payload_has_flat_legal_fields():
    engine = create_engine()
    start_hand(engine)
    payload = engine.act_payload(0)
    assert payload["legal"] == ["FOLD", "CALL", "RAISE"]
    assert payload["call_amount"] == 50
    assert payload["min_raise"] == 100
    assert payload["max_raise"] == 500
    assert payload["pot"] == 75
    assert len(payload["you"]["hole"]) == 2


def test_table_state_hides_other_hole_cards_until_showdown(monkeypatch):
    rig_deck(monkeypatch, stacked_deck(SHOWDOWN_HOLES, SHOWDOWN_BOARD))
    engine = create_engine()
    start_hand(engine)
    state = engine.table_state(viewer_seat=0)
    seats = {entry["seat"]: entry for entry in state["seats"]}
    assert len(seats[0]["hole"]) == 2
    assert seats[1]["hole"] == [] and seats[2]["hole"] == []
    assert seats[0]["is_button"]

    auto_complete_hand(engine)
    state = engine.table_state(viewer_seat=0)
    assert all(len(entry["hole"]) == 2 for entry in state["seats"])


def test_first_hand_advances_from_configured_dealer():
    players = [Player(name=name, chips=500) for name in ("A", "B", "C")]
    engine = HandEngine(TableConfig(), players, dealer=1)
    ctx = engine.start_hand(seed=3)
    assert ctx.button == 2
