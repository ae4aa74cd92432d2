from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .cards import Card
from .evaluator import evaluate
from .models import ActionType, GameState, Player, Round


@dataclass(frozen=True)
class Personality:
    name: str
    aggression: float
    bluff_rate: float
    fold_threshold: float
    call_threshold: float
    raise_factor: float


PERSONALITIES: Dict[str, Personality] = {
    "shark": Personality("shark", aggression=0.85, bluff_rate=0.45, fold_threshold=0.2, call_threshold=0.3, raise_factor=1.8),
    "maniac": Personality("maniac", aggression=0.95, bluff_rate=0.6, fold_threshold=0.1, call_threshold=0.2, raise_factor=2.2),
    "rock": Personality("rock", aggression=0.35, bluff_rate=0.1, fold_threshold=0.4, call_threshold=0.55, raise_factor=1.0),
}
DEFAULT_PERSONALITY = "shark"

PREFLOP_STRENGTH: Dict[str, float] = {
    "premium_pair": 0.97,  # QQ+
    "strong_pair": 0.85,  # TT-JJ
    "medium_pair": 0.72,  # 77-99
    "small_pair": 0.58,
    "big_ace": 0.9,  # AK, AQ
    "ace_broadway": 0.76,  # AJ, AT
    "ace_x": 0.52,
    "king_broadway": 0.68,  # KQ, KJ, KT
    "king_x": 0.42,
    "queen_broadway": 0.6,  # QJ, QT
    "suited_connector": 0.6,
    "suited_gapper": 0.48,
    "offsuit_connector": 0.5,
    "high_cards": 0.36,
    "trash": 0.18,
}
SUITED_BONUS = 0.04

# Made-hand category -> strength, refined below for trips, pairs and high cards.
POSTFLOP_STRENGTH: Dict[int, float] = {
    10: 1.0,
    9: 0.98,
    8: 0.95,
    7: 0.92,
    6: 0.88,
    5: 0.85,
}


@dataclass(frozen=True)
class Decision:
    action: ActionType
    amount: Optional[int] = None


def classify_preflop(hand: Sequence[Card]) -> str:
    high, low = sorted((card.value for card in hand), reverse=True)
    suited = hand[0].suit == hand[1].suit
    gap = high - low

    if high == low:
        if high >= 12:
            return "premium_pair"
        if high >= 10:
            return "strong_pair"
        if high >= 7:
            return "medium_pair"
        return "small_pair"
    if high == 14:
        if low >= 12:
            return "big_ace"
        if low >= 10:
            return "ace_broadway"
        return "ace_x"
    if high == 13:
        return "king_broadway" if low >= 10 else "king_x"
    if high == 12 and low >= 10:
        return "queen_broadway"
    if suited:
        if gap <= 1 and high >= 6:
            return "suited_connector"
        if gap <= 3:
            return "suited_gapper"
    if gap <= 1 and high >= 10:
        return "offsuit_connector"
    if high >= 11:
        return "high_cards"
    return "trash"


def preflop_strength(hand: Sequence[Card]) -> float:
    if len(hand) != 2:
        return 0.0
    strength = PREFLOP_STRENGTH[classify_preflop(hand)]
    if hand[0].suit == hand[1].suit and hand[0].rank != hand[1].rank:
        strength += SUITED_BONUS
    return min(strength, 1.0)


def postflop_strength(hand: Sequence[Card], board: Sequence[Card]) -> float:
    cards = list(hand) + list(board)
    if len(cards) < 5:
        return preflop_strength(hand)
    made = evaluate(cards)
    if made.rank in POSTFLOP_STRENGTH:
        return POSTFLOP_STRENGTH[made.rank]
    top = made.values[0]
    if made.rank == 4:
        return 0.82 if top >= 11 else 0.75
    if made.rank == 3:
        return 0.68 if top >= 11 else 0.58
    if made.rank == 2:
        if top >= 13:
            return 0.65
        if top >= 11:
            return 0.58
        if top >= 8:
            return 0.48
        return 0.35
    if top >= 14:
        return 0.32
    if top >= 11:
        return 0.2 + (top - 11) * 0.04
    return 0.15


def pot_odds(call_amount: int, pot: int) -> float:
    if call_amount <= 0:
        return 0.0
    return call_amount / (pot + call_amount)


def decide(
    state: GameState,
    player: Player,
    personality: Optional[Personality] = None,
    rng: Optional[random.Random] = None,
) -> Decision:
    """Pick an action for an AI seat. Reads ``state`` only; never mutates it."""
    if player.chips <= 0:
        return Decision(ActionType.FOLD)

    rng = rng or random.Random()
    profile = personality or PERSONALITIES.get(player.personality or "", PERSONALITIES[DEFAULT_PERSONALITY])

    call_amount = max(state.current_bet - player.current_bet, 0)
    odds = pot_odds(call_amount, state.pot)
    preflop = state.round == Round.PRE_FLOP or len(state.community_cards) < 3
    if preflop:
        strength = preflop_strength(player.hand)
    else:
        strength = postflop_strength(player.hand, state.community_cards)

    # Bigger pots make every personality a little braver.
    aggression = min(1.0, profile.aggression + (state.pot / (state.big_blind * 10)) * 0.2)
    can_raise = player.chips + player.current_bet > state.current_bet
    comfortable = call_amount <= (state.big_blind * 4 if preflop else state.pot * 0.6)
    roll = rng.random()

    if strength >= 0.8:
        raise_chance = max(aggression, 0.9) if strength >= 0.9 else aggression
        if can_raise and roll < raise_chance:
            multiple = 3 + rng.random() * 3 if preflop else 0.75 + rng.random() * 0.5
            return _raise(state, player, profile, multiple, preflop)
        return _continue(call_amount)

    if strength >= max(profile.call_threshold + 0.25, odds):
        if can_raise and comfortable and roll < aggression * 0.6:
            return _raise(state, player, profile, 2.5 if preflop else 0.6, preflop)
        if comfortable or strength >= 0.6:
            return _continue(call_amount)
        return Decision(ActionType.FOLD)

    if call_amount == 0:
        if can_raise and roll < profile.bluff_rate * 0.5:
            return _raise(state, player, profile, 2 if preflop else 0.5, preflop)
        return Decision(ActionType.CHECK)

    if strength >= max(profile.call_threshold, odds) and comfortable:
        return Decision(ActionType.CALL)
    if comfortable and roll < profile.bluff_rate * 0.5:
        return Decision(ActionType.CALL)
    if strength > profile.fold_threshold and odds < 0.2:
        return Decision(ActionType.CALL)
    return Decision(ActionType.FOLD)


def _continue(call_amount: int) -> Decision:
    return Decision(ActionType.CALL if call_amount > 0 else ActionType.CHECK)


def _raise(
    state: GameState, player: Player, profile: Personality, multiple: float, preflop: bool
) -> Decision:
    # Pre-flop sizes are big-blind multiples, later streets are pot fractions.
    base = state.big_blind if preflop else max(state.pot, state.big_blind)
    size = int(base * multiple * profile.raise_factor)
    target = state.current_bet + max(size, state.min_raise, state.big_blind)
    if target >= player.chips + player.current_bet:
        return Decision(ActionType.ALL_IN)
    return Decision(ActionType.RAISE, target)
