from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .cards import Card
from .evaluator import HandStrength


class Round(str, Enum):
    PRE_FLOP = "pre-flop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"


class GamePhase(str, Enum):
    WAITING = "waiting"
    READY = "ready"
    BETTING = "betting"
    TRANSITION = "transition"
    SHOWDOWN = "showdown"


class PlayerStatus(str, Enum):
    ACTIVE = "active"
    FOLDED = "folded"
    OUT = "out"


class ActionType(str, Enum):
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE = "raise"
    ALL_IN = "all-in"


# Community card count after each street is dealt.
BOARD_SIZE = {
    Round.PRE_FLOP: 0,
    Round.FLOP: 3,
    Round.TURN: 4,
    Round.RIVER: 5,
    Round.SHOWDOWN: 5,
}


@dataclass
class TableConfig:
    seats: int = 6
    starting_stack: int = 10_000
    sb: int = 50
    bb: int = 100
    default_raise_bb: int = 2
    ai_delay_ms: int = 800
    transition_delay_ms: int = 1_500
    showdown_delay_ms: int = 3_000
    variant: str = "NLHE"


@dataclass
class Player:
    id: str
    name: str
    chips: int
    position: int
    is_human: bool = False
    personality: Optional[str] = None
    hand: List[Card] = field(default_factory=list)
    current_bet: int = 0
    total_bet: int = 0
    status: PlayerStatus = PlayerStatus.ACTIVE
    is_all_in: bool = False
    is_dealer: bool = False
    show_cards: bool = False
    has_acted: bool = False
    hand_strength: Optional[HandStrength] = None

    @property
    def in_hand(self) -> bool:
        return self.status == PlayerStatus.ACTIVE

    @property
    def can_act(self) -> bool:
        return self.status == PlayerStatus.ACTIVE and not self.is_all_in

    def reset_for_hand(self) -> None:
        self.hand = []
        self.current_bet = 0
        self.total_bet = 0
        self.status = PlayerStatus.ACTIVE if self.chips > 0 else PlayerStatus.OUT
        self.is_all_in = False
        self.show_cards = False
        self.has_acted = False
        self.hand_strength = None

    def reset_for_round(self) -> None:
        self.current_bet = 0
        self.has_acted = False


@dataclass
class ActionRecord:
    player_id: str
    action: ActionType
    amount: int
    timestamp: float


@dataclass
class SidePot:
    amount: int
    eligible: List[str] = field(default_factory=list)


@dataclass
class GameState:
    small_blind: int
    big_blind: int
    max_seats: int = 6
    default_raise_bb: int = 2
    players: List[Player] = field(default_factory=list)
    community_cards: List[Card] = field(default_factory=list)
    deck: List[Card] = field(default_factory=list)
    pot: int = 0
    current_bet: int = 0
    min_raise: int = 0
    round: Round = Round.PRE_FLOP
    current_player_id: Optional[str] = None
    dealer_position: int = 0
    game_phase: GamePhase = GamePhase.WAITING
    action_history: List[ActionRecord] = field(default_factory=list)
    side_pots: List[SidePot] = field(default_factory=list)
    hand_number: int = 0
    winner_id: Optional[str] = None
    log: List[Dict[str, object]] = field(default_factory=list)

    def player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    @property
    def current_player(self) -> Optional[Player]:
        return self.player(self.current_player_id)

    def contenders(self) -> List[Player]:
        return [player for player in self.players if player.in_hand]
