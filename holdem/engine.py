from __future__ import annotations

import contextlib
import logging
import random
import threading
from typing import Any, Dict, Iterator, List, Optional, Tuple

from . import game
from .cards import cards_to_labels
from .errors import EngineBusy, InvalidAction
from .ledger import FundsLedger
from .models import ActionType, GamePhase, GameState, Player, TableConfig

LOGGER = logging.getLogger("holdem_engine")

WAGER_EVENTS = frozenset({"BLIND", "CALL", "RAISE", "ALL_IN"})

# GameEngine owns the one authoritative GameState. Every mutation computes the
# next state with the pure transitions in game.py, settles the human's wallet,
# checks invariants and only then swaps the new state in.


class GameEngine:
    """Single-table Texas Hold'em engine with single-writer state updates."""

    def __init__(
        self,
        config: TableConfig,
        ledger: Optional[FundsLedger] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.rng = rng or random.Random()
        self.state: GameState = game.new_game(config)
        self._lock = threading.Lock()

    @contextlib.contextmanager
    def _writer(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise EngineBusy("Another state change is already in progress")
        try:
            yield
        finally:
            self._lock.release()

    def _replace(self, new: GameState, fresh_log: bool = False) -> List[Dict[str, object]]:
        events = list(new.log) if fresh_log else new.log[len(self.state.log):]
        game.check_invariants(new)
        self._settle_ledger(new, events)
        self.state = new
        return events

    def _settle_ledger(self, new: GameState, events: List[Dict[str, object]]) -> None:
        if self.ledger is None:
            return
        humans = {player.id for player in new.players if player.is_human}
        if not humans:
            return
        payouts: Dict[str, int] = {}
        for event in events:
            player_id = event.get("player")
            amount = int(event.get("amount", 0) or 0)
            if player_id not in humans or amount <= 0:
                continue
            if event["ev"] in WAGER_EVENTS:
                self.ledger.spend_funds(amount)
            elif event["ev"] == "POT_AWARD":
                payouts[player_id] = payouts.get(player_id, 0) + amount
        for amount in payouts.values():
            self.ledger.add_funds(amount)

    # Seat management -------------------------------------------------

    def seat_player(
        self,
        name: str,
        chips: Optional[int] = None,
        *,
        player_id: Optional[str] = None,
        is_human: bool = False,
        personality: Optional[str] = None,
    ) -> Player:
        with self._writer():
            new = game.seat_player(
                self.state,
                name,
                self.config.starting_stack if chips is None else chips,
                player_id=player_id,
                is_human=is_human,
                personality=personality,
            )
            self._replace(new)
        seated = self.state.players[-1]
        LOGGER.info("Seat %s claimed by %s (chips=%s)", seated.position, seated.name, seated.chips)
        return seated

    # Hand lifecycle --------------------------------------------------

    def can_start_hand(self) -> bool:
        live = [player for player in self.state.players if player.chips > 0]
        return len(live) >= 2 and self.state.game_phase in (GamePhase.READY, GamePhase.SHOWDOWN)

    def start_hand(self, seed: Optional[int] = None) -> List[Dict[str, object]]:
        rng = random.Random(seed) if seed is not None else self.rng
        with self._writer():
            previous_hand = self.state.hand_number
            new = game.start_new_hand(self.state, rng)
            return self._replace(new, fresh_log=new.hand_number != previous_hand)

    def apply_action(
        self, player_id: str, action: ActionType, amount: Optional[int] = None
    ) -> List[Dict[str, object]]:
        with self._writer():
            try:
                new = game.perform_action(self.state, player_id, action, amount)
            except InvalidAction as exc:
                LOGGER.warning("Rejected %s from %s: %s", action, player_id, exc)
                raise
            return self._replace(new)

    def advance_round(self) -> List[Dict[str, object]]:
        with self._writer():
            return self._replace(game.advance_round(self.state))

    def resolve_showdown(self) -> List[Dict[str, object]]:
        with self._writer():
            return self._replace(game.resolve_showdown(self.state))

    def next_hand(self) -> List[Dict[str, object]]:
        with self._writer():
            return self._replace(game.next_hand(self.state))

    def advance_until_action(self) -> List[Dict[str, object]]:
        """Deal streets until someone must act or the hand is over."""
        events: List[Dict[str, object]] = []
        while self.state.game_phase == GamePhase.TRANSITION:
            events.extend(self.advance_round())
        return events

    # Queries ---------------------------------------------------------

    def next_actor(self) -> Optional[str]:
        if self.state.game_phase != GamePhase.BETTING:
            return None
        return self.state.current_player_id

    def legal_actions(
        self, player_id: str
    ) -> Tuple[List[ActionType], Optional[int], Optional[int], Optional[int]]:
        return game.legal_actions(self.state, player_id)

    def is_hand_complete(self) -> bool:
        return self.state.game_phase == GamePhase.SHOWDOWN and self.state.pot == 0

    def is_match_over(self) -> bool:
        live = [player for player in self.state.players if player.chips > 0]
        return len(live) <= 1

    def match_result_payload(self) -> Dict[str, object]:
        live = [player for player in self.state.players if player.chips > 0]
        winner = live[0] if len(live) == 1 else None
        return {
            "winner": {"id": winner.id, "name": winner.name} if winner else None,
            "final_stacks": [
                {"id": player.id, "name": player.name, "chips": player.chips}
                for player in self.state.players
            ],
        }

    def snapshot_payload(self, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """Table view for one player: other hole cards stay hidden until shown."""
        state = self.state
        players = []
        for player in state.players:
            visible = player.id == viewer_id or player.show_cards
            players.append(
                {
                    "id": player.id,
                    "name": player.name,
                    "seat": player.position,
                    "chips": player.chips,
                    "current_bet": player.current_bet,
                    "total_bet": player.total_bet,
                    "status": player.status.value,
                    "is_all_in": player.is_all_in,
                    "is_dealer": player.is_dealer,
                    "is_human": player.is_human,
                    "hand": cards_to_labels(player.hand) if visible else [],
                    "hand_strength": player.hand_strength.name if player.hand_strength else None,
                }
            )
        return {
            "hand_number": state.hand_number,
            "round": state.round.value,
            "phase": state.game_phase.value,
            "pot": state.pot,
            "current_bet": state.current_bet,
            "min_raise": state.min_raise,
            "sb": state.small_blind,
            "bb": state.big_blind,
            "dealer_position": state.dealer_position,
            "current_player_id": state.current_player_id,
            "community": cards_to_labels(state.community_cards),
            "players": players,
        }

    def act_payload(self, player_id: str) -> Dict[str, Any]:
        legal, call_amount, min_raise_to, max_raise_to = self.legal_actions(player_id)
        return {
            "player": player_id,
            "legal": [action.value for action in legal],
            "call_amount": call_amount,
            "min_raise_to": min_raise_to,
            "max_raise_to": max_raise_to,
            "table": self.snapshot_payload(player_id),
        }
