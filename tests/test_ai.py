import copy
import random

import pytest

from holdem.ai import (
    PERSONALITIES,
    PREFLOP_STRENGTH,
    SUITED_BONUS,
    Decision,
    classify_preflop,
    decide,
    postflop_strength,
    pot_odds,
    preflop_strength,
)
from holdem.cards import parse_cards
from holdem.models import ActionType, Player

from .helpers import create_engine, force_deck, perform_actions, start_hand


class FixedRandom(random.Random):
    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


@pytest.mark.parametrize(
    "labels, category",
    [
        (["Ah", "Ad"], "premium_pair"),
        (["10h", "10d"], "strong_pair"),
        (["8c", "8s"], "medium_pair"),
        (["3c", "3s"], "small_pair"),
        (["As", "Ks"], "big_ace"),
        (["Ah", "Jd"], "ace_broadway"),
        (["Ah", "5d"], "ace_x"),
        (["Kh", "Qd"], "king_broadway"),
        (["Kh", "4d"], "king_x"),
        (["Qh", "Jd"], "queen_broadway"),
        (["9s", "8s"], "suited_connector"),
        (["9s", "6s"], "suited_gapper"),
        (["Jh", "10d"], "offsuit_connector"),
        (["Jh", "6d"], "high_cards"),
        (["7c", "2d"], "trash"),
    ],
)
def test_preflop_categories(labels, category):
    assert classify_preflop(parse_cards(labels)) == category


def test_suited_hands_get_a_bonus():
    offsuit = preflop_strength(parse_cards(["9s", "8d"]))
    suited = preflop_strength(parse_cards(["9s", "8s"]))
    assert offsuit == PREFLOP_STRENGTH["trash"]
    assert suited == pytest.approx(PREFLOP_STRENGTH["suited_connector"] + SUITED_BONUS)
    assert preflop_strength(parse_cards(["Ah", "Ad"])) == 0.97


@pytest.mark.parametrize(
    "hand, board, expected",
    [
        (["As", "Ks"], ["Qs", "Js", "10s"], 1.0),
        (["Jh", "Jd"], ["Js", "7c", "2d"], 0.82),
        (["2c", "2d"], ["Kh", "9s", "5d"], 0.35),
        (["Ah", "7d"], ["Kh", "9s", "4c"], 0.32),
        (["3h", "7d"], ["8c", "9s", "4c"], 0.15),
    ],
)
def test_postflop_strength_table(hand, board, expected):
    assert postflop_strength(parse_cards(hand), parse_cards(board)) == pytest.approx(expected)


def test_postflop_strength_falls_back_before_the_flop():
    hand = parse_cards(["Ah", "Ad"])
    assert postflop_strength(hand, []) == preflop_strength(hand)


def test_pot_odds():
    assert pot_odds(0, 100) == 0.0
    assert pot_odds(50, 100) == pytest.approx(1 / 3)


def test_player_without_chips_folds():
    engine = create_engine(seats=3)
    start_hand(engine)
    broke = Player(id="ghost", name="Ghost", chips=0, position=5)
    assert decide(engine.state, broke) == Decision(ActionType.FOLD)


def test_premium_pair_raises_preflop(monkeypatch):
    force_deck(monkeypatch, [["7c", "2d"], ["9c", "4d"], ["Ah", "Ad"]])
    engine = create_engine(seats=3)
    start_hand(engine)

    state = engine.state
    decision = decide(state, state.player("p0"), PERSONALITIES["shark"], FixedRandom(0.5))
    assert decision.action == ActionType.RAISE
    assert decision.amount >= state.current_bet + state.min_raise
    perform_actions(engine, [("p0", decision.action, decision.amount)])
    assert engine.state.current_bet == decision.amount


def test_short_stack_raise_becomes_all_in(monkeypatch):
    force_deck(monkeypatch, [["7c", "2d"], ["9c", "4d"], ["Ah", "Ad"]])
    engine = create_engine(seats=3, stacks=[100, 1_000, 1_000])
    start_hand(engine)

    state = engine.state
    decision = decide(state, state.player("p0"), PERSONALITIES["shark"], FixedRandom(0.5))
    assert decision == Decision(ActionType.ALL_IN)


def test_rock_folds_trash_to_a_big_raise(monkeypatch):
    force_deck(monkeypatch, [["7c", "2d"], ["9c", "4d"], ["Ah", "Ad"]])
    engine = create_engine(seats=3)
    start_hand(engine)
    perform_actions(engine, [("p0", ActionType.RAISE, 200)])

    state = engine.state
    decision = decide(state, state.player("p1"), PERSONALITIES["rock"], FixedRandom(0.99))
    assert decision == Decision(ActionType.FOLD)


def test_weak_hand_checks_when_free(monkeypatch):
    force_deck(monkeypatch, [["7c", "2d"], ["9c", "4d"], ["Ah", "Ad"]], ["Ks", "Qh", "9d"])
    engine = create_engine(seats=3)
    start_hand(engine)
    perform_actions(
        engine,
        [("p0", ActionType.CALL, None), ("p1", ActionType.CALL, None), ("p2", ActionType.CHECK, None)],
    )
    engine.advance_round()

    state = engine.state
    assert state.current_player_id == "p1"
    decision = decide(state, state.player("p1"), PERSONALITIES["rock"], FixedRandom(0.99))
    assert decision == Decision(ActionType.CHECK)


def test_personality_falls_back_to_player_setting():
    engine = create_engine(seats=3)
    start_hand(engine)
    state = engine.state
    seat = copy.deepcopy(state.player("p0"))
    seat.personality = "maniac"
    decision = decide(state, seat, rng=random.Random(3))
    assert decision.action in ActionType


def test_decide_never_mutates_state():
    engine = create_engine(seats=4)
    rng = random.Random(99)
    for seed in range(20):
        engine.start_hand(seed=seed)
        engine.advance_until_action()
        while engine.state.game_phase.value == "betting":
            before = copy.deepcopy(engine.state)
            actor = engine.state.current_player
            decision = decide(engine.state, actor, rng=rng)
            assert engine.state == before
            engine.apply_action(actor.id, decision.action, decision.amount)
            engine.advance_until_action()
        if engine.is_match_over():
            break
