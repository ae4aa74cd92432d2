import random

from holdem.ai import decide
from holdem.models import GamePhase

from .helpers import create_engine, passive, table_total


def _play_match(engine, choose, max_hands):
    total = table_total(engine)
    hands = 0
    while hands < max_hands and engine.can_start_hand():
        engine.start_hand()
        hands += 1
        engine.advance_until_action()
        while engine.state.game_phase == GamePhase.BETTING:
            actor = engine.next_actor()
            action, amount = choose(engine, actor)
            engine.apply_action(actor, action, amount)
            assert table_total(engine) == total
            engine.advance_until_action()
        assert engine.is_hand_complete()
        assert table_total(engine) == total
        assert all(player.chips >= 0 for player in engine.state.players)
    return hands


def test_ai_table_conserves_chips_over_many_hands():
    rng = random.Random(1234)

    def ai_choice(engine, actor):
        decision = decide(engine.state, engine.state.player(actor), rng=rng)
        return decision.action, decision.amount

    for personality_seed in range(3):
        engine = create_engine(seats=6, starting_stack=400, rng=random.Random(personality_seed))
        for player, name in zip(engine.state.players, ["shark", "maniac", "rock"] * 2):
            player.personality = name
        hands = _play_match(engine, ai_choice, max_hands=300)
        assert hands > 0


def test_passive_table_runs_hundreds_of_hands():
    engine = create_engine(seats=5, starting_stack=2_000, rng=random.Random(8))
    hands = _play_match(engine, passive, max_hands=200)
    assert hands == 200
    assert engine.state.hand_number == 200


def test_heads_up_all_in_match_ends_with_single_winner():
    engine = create_engine(seats=2, starting_stack=300, rng=random.Random(2))

    def shove(engine, actor):
        legal, *_ = engine.legal_actions(actor)
        return legal[-1], None

    _play_match(engine, shove, max_hands=500)
    assert engine.is_match_over()
    result = engine.match_result_payload()
    assert result["winner"] is not None
    assert sum(entry["chips"] for entry in result["final_stacks"]) == 600
