from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from holdem.cards import Card, create_deck, parse_cards
from holdem.engine import GameEngine
from holdem.ledger import FundsLedger
from holdem.models import ActionType, GamePhase, TableConfig

Chooser = Callable[[GameEngine, str], Tuple[ActionType, Optional[int]]]


def create_engine(
    *,
    seats: int = 4,
    starting_stack: int = 1_000,
    sb: int = 10,
    bb: int = 20,
    stacks: Optional[Sequence[int]] = None,
    human_seat: Optional[int] = None,
    ledger: Optional[FundsLedger] = None,
    rng: Optional[random.Random] = None,
) -> GameEngine:
    """Instantiate an engine with a populated table; player ids are p0, p1, ..."""
    engine = GameEngine(
        TableConfig(seats=seats, starting_stack=starting_stack, sb=sb, bb=bb),
        ledger=ledger,
        rng=rng,
    )
    for idx in range(seats):
        chips = stacks[idx] if stacks is not None else None
        engine.seat_player(f"Player{idx}", chips, player_id=f"p{idx}", is_human=idx == human_seat)
    return engine


def start_hand(engine: GameEngine, seed: int = 42) -> List[Dict[str, object]]:
    events = engine.start_hand(seed=seed)
    assert engine.state.game_phase in (GamePhase.BETTING, GamePhase.TRANSITION)
    return events


def stacked_deck(hole_cards: Sequence[Sequence[str]], board: Sequence[str] = ()) -> List[Card]:
    """Deck that deals ``hole_cards`` (listed from the dealer's left) and then ``board``."""
    top: List[str] = []
    for idx in range(2):
        for hand in hole_cards:
            top.append(hand[idx])
    top.extend(board)
    cards = parse_cards(top)
    assert len(set(cards)) == len(cards)
    return cards + [card for card in create_deck() if card not in cards]


def force_deck(monkeypatch, hole_cards: Sequence[Sequence[str]], board: Sequence[str] = ()) -> None:
    deck = stacked_deck(hole_cards, board)
    monkeypatch.setattr("holdem.game.build_deck", lambda rng=None: list(deck))


def table_total(engine: GameEngine) -> int:
    return sum(player.chips for player in engine.state.players) + engine.state.pot


def passive(engine: GameEngine, player_id: str) -> Tuple[ActionType, Optional[int]]:
    legal, *_ = engine.legal_actions(player_id)
    if ActionType.CHECK in legal:
        return ActionType.CHECK, None
    if ActionType.CALL in legal:
        return ActionType.CALL, None
    return ActionType.FOLD, None


def perform_actions(engine: GameEngine, actions: Sequence[Tuple[str, ActionType, Optional[int]]]) -> List[Dict[str, object]]:
    """Apply a scripted sequence of (player, action, amount), checking turn order."""
    events: List[Dict[str, object]] = []
    for player_id, action, amount in actions:
        assert engine.next_actor() == player_id, f"expected {player_id}, got {engine.next_actor()}"
        events.extend(engine.apply_action(player_id, action, amount))
    return events


def auto_complete_hand(engine: GameEngine, choose: Chooser = passive) -> List[Dict[str, object]]:
    """Advance the current hand with ``choose`` until the pot is paid out."""
    events: List[Dict[str, object]] = []
    while not engine.is_hand_complete():
        if engine.state.game_phase == GamePhase.TRANSITION:
            events.extend(engine.advance_round())
            continue
        actor = engine.next_actor()
        assert actor is not None
        action, amount = choose(engine, actor)
        events.extend(engine.apply_action(actor, action, amount))
    return events
