"""Texas Hold'em rules engine: deck, hand evaluation, betting state machine and AI seats."""

from .ai import PERSONALITIES, Decision, Personality, decide
from .cards import Card, RANKS, SUITS, create_deck, deal, parse_cards, shuffle_deck
from .engine import GameEngine
from .errors import EngineBusy, InsufficientFunds, InvalidAction, PokerError, StateInvariantViolation
from .evaluator import INVALID_HAND, HandStrength, compare_hands, evaluate
from .game import advance_round, perform_action, resolve_showdown, start_new_hand
from .ledger import FundsLedger, SimulatedWallet
from .models import ActionType, GamePhase, GameState, Player, PlayerStatus, Round, TableConfig

__all__ = [
    "PERSONALITIES",
    "Decision",
    "Personality",
    "decide",
    "Card",
    "RANKS",
    "SUITS",
    "create_deck",
    "deal",
    "parse_cards",
    "shuffle_deck",
    "GameEngine",
    "EngineBusy",
    "InsufficientFunds",
    "InvalidAction",
    "PokerError",
    "StateInvariantViolation",
    "INVALID_HAND",
    "HandStrength",
    "compare_hands",
    "evaluate",
    "advance_round",
    "perform_action",
    "resolve_showdown",
    "start_new_hand",
    "FundsLedger",
    "SimulatedWallet",
    "ActionType",
    "GamePhase",
    "GameState",
    "Player",
    "PlayerStatus",
    "Round",
    "TableConfig",
]
