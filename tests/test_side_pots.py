from holdem.game import build_side_pots
from holdem.models import ActionType, GamePhase, PlayerStatus, SidePot

from .helpers import auto_complete_hand, create_engine, force_deck, perform_actions, start_hand, table_total

BOARD = ["3s", "8c", "9h", "Js", "4d"]


def _three_way_all_in(engine):
    perform_actions(
        engine,
        [
            ("p0", ActionType.ALL_IN, None),
            ("p1", ActionType.ALL_IN, None),
            ("p2", ActionType.CALL, None),
        ],
    )


def test_layered_all_ins_build_main_and_side_pot():
    engine = create_engine(seats=3, stacks=[100, 300, 500])
    start_hand(engine)
    _three_way_all_in(engine)

    assert engine.state.game_phase == GamePhase.TRANSITION
    assert engine.state.pot == 700
    assert build_side_pots(engine.state) == [
        SidePot(300, ["p0", "p1", "p2"]),
        SidePot(400, ["p1", "p2"]),
    ]


def test_short_stack_wins_main_pot_only(monkeypatch):
    # Dealt from the dealer's left: p1, p2, then the dealer p0.
    force_deck(monkeypatch, [["Kh", "Kd"], ["2c", "7d"], ["Ah", "Ad"]], BOARD)
    engine = create_engine(seats=3, stacks=[100, 300, 500])
    start_hand(engine)
    _three_way_all_in(engine)
    events = engine.advance_until_action()

    chips = [player.chips for player in engine.state.players]
    assert chips == [300, 400, 200]
    awards = [(event["player"], event["amount"], event["pot"]) for event in events if event["ev"] == "POT_AWARD"]
    assert awards == [("p0", 300, 0), ("p1", 400, 1)]
    assert table_total(engine) == 900


def test_side_pot_goes_to_best_eligible_hand(monkeypatch):
    force_deck(monkeypatch, [["2c", "7d"], ["Kh", "Kd"], ["Ah", "Ad"]], BOARD)
    engine = create_engine(seats=3, stacks=[100, 300, 500])
    start_hand(engine)
    _three_way_all_in(engine)
    events = engine.advance_until_action()

    assert [player.chips for player in engine.state.players] == [300, 0, 600]
    assert {"ev": "ELIMINATED", "player": "p1"} in events

    engine.next_hand()
    assert engine.state.players[1].status == PlayerStatus.OUT


def test_uncalled_excess_returns_to_bettor(monkeypatch):
    # Heads-up: p1 is dealt first, the dealer p0 second.
    force_deck(monkeypatch, [["Ah", "Ad"], ["Kh", "Kd"]], BOARD)
    engine = create_engine(seats=2, stacks=[1_000, 300])
    start_hand(engine)
    perform_actions(engine, [("p0", ActionType.ALL_IN, None), ("p1", ActionType.CALL, None)])

    assert build_side_pots(engine.state) == [SidePot(600, ["p0", "p1"]), SidePot(700, ["p0"])]
    engine.advance_until_action()
    assert [player.chips for player in engine.state.players] == [700, 600]


def test_folded_contributions_stay_in_the_pot():
    engine = create_engine(seats=3)
    start_hand(engine)
    perform_actions(
        engine,
        [
            ("p0", ActionType.RAISE, 100),
            ("p1", ActionType.FOLD, None),
            ("p2", ActionType.CALL, None),
        ],
    )
    assert build_side_pots(engine.state) == [SidePot(210, ["p0", "p2"])]


def test_split_pot_odd_chip_goes_left_of_dealer(monkeypatch):
    force_deck(
        monkeypatch,
        [["2c", "3d"], ["4c", "6d"], ["4d", "6c"], ["7c", "8d"]],
        ["As", "Ks", "Qs", "Js", "10s"],
    )
    engine = create_engine(seats=4, sb=5, bb=10)
    start_hand(engine)
    perform_actions(
        engine,
        [
            ("p3", ActionType.CALL, None),
            ("p0", ActionType.FOLD, None),
            ("p1", ActionType.FOLD, None),
            ("p2", ActionType.CHECK, None),
        ],
    )
    assert engine.state.pot == 25
    events = auto_complete_hand(engine)

    awards = [(event["player"], event["amount"]) for event in events if event["ev"] == "POT_AWARD"]
    assert awards == [("p2", 13), ("p3", 12)]
    assert [player.chips for player in engine.state.players] == [1_000, 995, 1_003, 1_002]


def test_even_split_between_tied_hands(monkeypatch):
    force_deck(
        monkeypatch,
        [["2c", "3d"], ["4c", "6d"], ["4d", "6c"]],
        ["As", "Ks", "Qs", "Js", "10s"],
    )
    engine = create_engine(seats=3)
    start_hand(engine)
    auto_complete_hand(engine)

    # Royal flush on the board plays for everyone.
    assert [player.chips for player in engine.state.players] == [1_000, 1_000, 1_000]
    assert len(engine.state.side_pots) == 1
    assert engine.state.side_pots[0].amount == 60
