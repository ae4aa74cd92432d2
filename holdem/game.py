from __future__ import annotations

import copy
import functools
import logging
import random
import time
from typing import Callable, Dict, List, Optional, Tuple

from .cards import build_deck, cards_to_labels, deal
from .errors import InvalidAction, StateInvariantViolation
from .evaluator import HandStrength, compare_hands, evaluate
from .models import (
    ActionRecord,
    ActionType,
    GamePhase,
    GameState,
    Player,
    PlayerStatus,
    Round,
    SidePot,
    TableConfig,
)

LOGGER = logging.getLogger("holdem_engine")

# Every transition below copies the incoming GameState, mutates the copy and
# returns it. Callers keep the old state untouched, so a rejected request
# (InvalidAction raised before the copy is returned) never leaks a half-applied
# change.

MAX_SEATS = 10

_STREETS: Dict[Round, Tuple[Round, int]] = {
    Round.PRE_FLOP: (Round.FLOP, 3),
    Round.FLOP: (Round.TURN, 1),
    Round.TURN: (Round.RIVER, 1),
}


def _evolve(state: GameState) -> GameState:
    return copy.deepcopy(state)


# Seating -------------------------------------------------------------


def new_game(config: TableConfig) -> GameState:
    if not 2 <= config.seats <= MAX_SEATS:
        raise ValueError(f"Table needs between 2 and {MAX_SEATS} seats")
    if config.sb <= 0 or config.bb < config.sb:
        raise ValueError("Blinds must be positive with bb >= sb")
    return GameState(
        small_blind=config.sb,
        big_blind=config.bb,
        max_seats=config.seats,
        default_raise_bb=config.default_raise_bb,
    )


def _normalize_name(name: str) -> str:
    return name.strip().casefold()


def seat_player(
    state: GameState,
    name: str,
    chips: int,
    *,
    player_id: Optional[str] = None,
    is_human: bool = False,
    personality: Optional[str] = None,
) -> GameState:
    display = name.strip()
    if not display:
        raise InvalidAction("Player name required", code="BAD_SEAT")
    if state.game_phase not in (GamePhase.WAITING, GamePhase.READY):
        raise InvalidAction("Cannot seat players while a hand is running", code="WRONG_PHASE")
    if chips < 0:
        raise InvalidAction("Starting chips must be non-negative", code="BAD_AMOUNT")
    key = _normalize_name(display)
    if any(_normalize_name(player.name) == key for player in state.players):
        raise InvalidAction(f"{display} is already seated", code="BAD_SEAT")
    if len(state.players) >= state.max_seats:
        raise InvalidAction("Table is full", code="TABLE_FULL")

    position = len(state.players)
    pid = player_id or f"player{position + 1}"
    if state.player(pid) is not None:
        raise InvalidAction(f"Player id {pid} already in use", code="BAD_SEAT")

    new = _evolve(state)
    new.players.append(
        Player(
            id=pid,
            name=display,
            chips=chips,
            position=position,
            is_human=is_human,
            personality=personality,
            status=PlayerStatus.ACTIVE if chips > 0 else PlayerStatus.OUT,
            is_dealer=position == new.dealer_position,
        )
    )
    if len(new.players) >= 2:
        new.game_phase = GamePhase.READY
    new.log.append({"ev": "SEAT", "player": pid, "seat": position, "chips": chips})
    return new


# Turn order ----------------------------------------------------------


def seats_after(
    state: GameState,
    position: int,
    predicate: Optional[Callable[[Player], bool]] = None,
) -> List[Player]:
    """Players in seating order starting left of ``position``, wrapping around.

    The player seated at ``position`` comes last. Blind posting, next-to-act
    and first-to-act on a new street all go through this one helper so the
    skip rules (folded, all-in, out) live in the predicate only.
    """
    count = len(state.players)
    if count == 0:
        return []
    ordered = [state.players[(position + offset) % count] for offset in range(1, count + 1)]
    if predicate is None:
        return ordered
    return [player for player in ordered if predicate(player)]


def _owes_action(state: GameState, player: Player) -> bool:
    return player.can_act and (not player.has_acted or player.current_bet < state.current_bet)


def _next_to_act(state: GameState, position: int) -> Optional[Player]:
    actionable = [player for player in state.players if player.can_act]
    if not actionable:
        return None
    # A lone player with chips behind who already matches the bet has nobody to bet against.
    if len(actionable) == 1 and actionable[0].current_bet >= state.current_bet:
        return None
    pending = seats_after(state, position, lambda player: _owes_action(state, player))
    return pending[0] if pending else None


# Chip movement -------------------------------------------------------


def _commit(state: GameState, player: Player, amount: int) -> int:
    amount = max(0, min(amount, player.chips))
    player.chips -= amount
    player.current_bet += amount
    player.total_bet += amount
    state.pot += amount
    if player.chips == 0:
        player.is_all_in = True
    return amount


def _raise_table_bet(state: GameState, player: Player, target: int) -> None:
    increment = target - state.current_bet
    if increment >= state.min_raise:
        state.min_raise = increment
    state.current_bet = target
    for other in state.players:
        if other is not player and other.can_act:
            other.has_acted = False


# Hand lifecycle ------------------------------------------------------


def start_new_hand(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    if state.game_phase == GamePhase.SHOWDOWN:
        state = next_hand(state)
        if state.game_phase == GamePhase.WAITING:
            return state
    if state.game_phase != GamePhase.READY:
        raise InvalidAction(f"Cannot start a hand while {state.game_phase.value}", code="WRONG_PHASE")

    new = _evolve(state)
    live = [player for player in new.players if player.chips > 0]
    if len(live) <= 1:
        return _end_session(new)

    for player in new.players:
        player.reset_for_hand()
        player.is_dealer = False

    dealer = new.players[new.dealer_position % len(new.players)]
    if dealer.chips == 0:
        dealer = seats_after(new, dealer.position, lambda player: player.chips > 0)[0]
    new.dealer_position = dealer.position
    dealer.is_dealer = True

    new.hand_number += 1
    new.deck = build_deck(rng)
    new.community_cards = []
    new.pot = 0
    new.side_pots = []
    new.action_history = []
    new.log = []
    new.round = Round.PRE_FLOP
    new.winner_id = None
    new.log.append({"ev": "START_HAND", "hand": new.hand_number, "dealer": dealer.id})

    order = seats_after(new, dealer.position, lambda player: player.in_hand)
    for _ in range(2):
        for player in order:
            player.hand.extend(deal(new.deck, 1))

    if len(order) == 2:
        sb_player, bb_player = dealer, order[0]
    else:
        sb_player, bb_player = order[0], order[1]
    sb_paid = _commit(new, sb_player, new.small_blind)
    bb_paid = _commit(new, bb_player, new.big_blind)
    new.log.append({"ev": "BLIND", "player": sb_player.id, "amount": sb_paid, "blind": "small"})
    new.log.append({"ev": "BLIND", "player": bb_player.id, "amount": bb_paid, "blind": "big"})

    new.current_bet = new.big_blind
    new.min_raise = new.big_blind
    new.game_phase = GamePhase.BETTING
    first = _next_to_act(new, bb_player.position)
    if first is None:
        new.game_phase = GamePhase.TRANSITION
        new.current_player_id = None
    else:
        new.current_player_id = first.id

    LOGGER.info(
        "Hand %s started: dealer=%s sb=%s bb=%s first=%s",
        new.hand_number,
        dealer.id,
        sb_player.id,
        bb_player.id,
        new.current_player_id,
    )
    return new


def perform_action(
    state: GameState,
    player_id: str,
    action: ActionType,
    amount: Optional[int] = None,
    *,
    timestamp: Optional[float] = None,
) -> GameState:
    if state.game_phase != GamePhase.BETTING:
        raise InvalidAction(f"Cannot act while {state.game_phase.value}", code="WRONG_PHASE")
    if state.player(player_id) is None:
        raise InvalidAction(f"Unknown player {player_id}", code="UNKNOWN_PLAYER")
    if state.current_player_id != player_id:
        raise InvalidAction(
            f"Not {player_id}'s turn (waiting on {state.current_player_id})", code="OUT_OF_TURN"
        )
    try:
        action = ActionType(action)
    except ValueError:
        raise InvalidAction(f"Unsupported action {action}") from None
    if amount is not None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAction("Amount must be a whole number of chips", code="BAD_AMOUNT")
        if amount < 0:
            raise InvalidAction("Amount must be non-negative", code="BAD_AMOUNT")

    new = _evolve(state)
    seat = new.player(player_id)
    assert seat is not None
    to_call = max(new.current_bet - seat.current_bet, 0)
    moved = 0

    # Each branch records what happened so the host can broadcast it.
    if action == ActionType.FOLD:
        seat.status = PlayerStatus.FOLDED
        new.log.append({"ev": "FOLD", "player": player_id})
    elif action == ActionType.CHECK:
        if to_call > 0:
            raise InvalidAction("Cannot check when facing a bet")
        new.log.append({"ev": "CHECK", "player": player_id})
    elif action == ActionType.CALL:
        if to_call == 0:
            action = ActionType.CHECK
            new.log.append({"ev": "CHECK", "player": player_id})
        else:
            moved = _commit(new, seat, to_call)
            new.log.append({"ev": "CALL", "player": player_id, "amount": moved})
    elif action == ActionType.RAISE:
        target = amount if amount is not None else new.current_bet + new.default_raise_bb * new.big_blind
        max_target = seat.chips + seat.current_bet
        target = min(target, max_target)
        all_in = target == max_target
        if target <= new.current_bet:
            if not all_in:
                raise InvalidAction("Raise must exceed current bet")
            # Stack too short to raise: the chips go in as an all-in call.
            moved = _commit(new, seat, seat.chips)
            action = ActionType.ALL_IN
            new.log.append({"ev": "ALL_IN", "player": player_id, "amount": moved})
        else:
            if target < new.current_bet + new.min_raise and not all_in:
                raise InvalidAction(f"Raise below minimum of {new.current_bet + new.min_raise}")
            moved = _commit(new, seat, target - seat.current_bet)
            _raise_table_bet(new, seat, target)
            new.log.append({"ev": "RAISE", "player": player_id, "amount": moved, "to": target})
    elif action == ActionType.ALL_IN:
        moved = _commit(new, seat, seat.chips)
        if seat.current_bet > new.current_bet:
            _raise_table_bet(new, seat, seat.current_bet)
        new.log.append({"ev": "ALL_IN", "player": player_id, "amount": moved})

    seat.has_acted = True
    new.action_history.append(
        ActionRecord(
            player_id=player_id,
            action=action,
            amount=moved,
            timestamp=timestamp if timestamp is not None else time.time(),
        )
    )
    return _after_action(new, seat)


def _after_action(state: GameState, actor: Player) -> GameState:
    if len(state.contenders()) == 1:
        return _award_uncontested(state)

    upcoming = _next_to_act(state, actor.position)
    if upcoming is None:
        state.current_player_id = None
        state.game_phase = GamePhase.TRANSITION
        state.log.append({"ev": "ROUND_COMPLETE", "round": state.round.value})
    else:
        state.current_player_id = upcoming.id
    return state


def advance_round(state: GameState) -> GameState:
    if state.game_phase != GamePhase.TRANSITION:
        raise InvalidAction(f"Cannot advance the round while {state.game_phase.value}", code="WRONG_PHASE")

    new = _evolve(state)
    if len(new.contenders()) <= 1:
        return _award_uncontested(new)
    if new.round == Round.RIVER:
        return _showdown(new)

    _deal_street(new)
    first = _next_to_act(new, new.dealer_position)
    if first is None:
        # Everyone left is all-in: keep running the board out.
        new.game_phase = GamePhase.TRANSITION
        new.current_player_id = None
    else:
        new.game_phase = GamePhase.BETTING
        new.current_player_id = first.id
    return new


def _deal_street(state: GameState) -> None:
    next_round, count = _STREETS[state.round]
    cards = deal(state.deck, count)
    state.community_cards.extend(cards)
    state.round = next_round
    for player in state.players:
        player.reset_for_round()
    state.current_bet = 0
    state.min_raise = state.big_blind
    state.log.append({"ev": next_round.name, "cards": cards_to_labels(cards)})
    LOGGER.debug("Dealt %s: %s", next_round.value, cards_to_labels(state.community_cards))


def resolve_showdown(state: GameState) -> GameState:
    """Settle the hand now, running out any missing community cards first."""
    if state.game_phase != GamePhase.TRANSITION:
        raise InvalidAction(f"Cannot resolve showdown while {state.game_phase.value}", code="WRONG_PHASE")
    new = _evolve(state)
    if len(new.contenders()) <= 1:
        return _award_uncontested(new)
    while new.round in _STREETS:
        _deal_street(new)
    return _showdown(new)


def _award_uncontested(state: GameState) -> GameState:
    winner = state.contenders()[0]
    amount = state.pot
    winner.chips += amount
    state.side_pots = [SidePot(amount, [winner.id])]
    state.pot = 0
    state.log.append({"ev": "POT_AWARD", "player": winner.id, "amount": amount, "pot": 0, "uncontested": True})
    LOGGER.info("Hand %s: %s wins %s uncontested", state.hand_number, winner.id, amount)
    return _finish_hand(state)


def _showdown(state: GameState) -> GameState:
    state.round = Round.SHOWDOWN
    board = list(state.community_cards)
    scores: Dict[str, HandStrength] = {}
    for player in state.contenders():
        strength = evaluate(player.hand + board)
        player.hand_strength = strength
        player.show_cards = True
        scores[player.id] = strength
        state.log.append(
            {
                "ev": "SHOWDOWN",
                "player": player.id,
                "hand": cards_to_labels(player.hand),
                "board": cards_to_labels(board),
                "rank": strength.name,
            }
        )

    pots = build_side_pots(state)
    ranking = functools.cmp_to_key(compare_hands)
    for idx, pot in enumerate(pots):
        best = max((scores[pid] for pid in pot.eligible), key=ranking)
        winners = {pid for pid in pot.eligible if compare_hands(scores[pid], best) == 0}
        # Odd chips go to the tied winners closest to the dealer's left.
        ordered = seats_after(state, state.dealer_position, lambda player: player.id in winners)
        share, remainder = divmod(pot.amount, len(ordered))
        for order_idx, player in enumerate(ordered):
            payout = share + (1 if order_idx < remainder else 0)
            player.chips += payout
            state.pot -= payout
            state.log.append({"ev": "POT_AWARD", "player": player.id, "amount": payout, "pot": idx})
        LOGGER.info(
            "Hand %s pot %s (%s) to %s with %s",
            state.hand_number,
            idx,
            pot.amount,
            [player.id for player in ordered],
            best.name,
        )

    if state.pot != 0:
        raise StateInvariantViolation(f"Pot not emptied at showdown ({state.pot} left)")
    state.side_pots = pots
    return _finish_hand(state)


def _finish_hand(state: GameState) -> GameState:
    state.current_player_id = None
    state.game_phase = GamePhase.SHOWDOWN
    for player in state.players:
        if player.chips == 0 and player.status != PlayerStatus.OUT:
            state.log.append({"ev": "ELIMINATED", "player": player.id})
    return state


def build_side_pots(state: GameState) -> List[SidePot]:
    """Split hand contributions into pots layered by wager tiers.

    Each tier holds what every remaining contributor put in up to the smallest
    outstanding contribution. Only players still in the hand are eligible;
    a tier with no eligible player is dead money and joins the pot below it.
    Adjacent tiers with the same eligible players are merged.
    """
    remaining: Dict[str, int] = {
        player.id: player.total_bet for player in state.players if player.total_bet > 0
    }
    live = {player.id for player in state.contenders()}

    pots: List[SidePot] = []
    dead = 0
    while True:
        active = [pid for pid, amount in remaining.items() if amount > 0]
        if not active:
            break
        tier = min(remaining[pid] for pid in active)
        total = 0
        for pid in active:
            remaining[pid] -= tier
            total += tier
        eligible = [pid for pid in active if pid in live]
        if not eligible:
            if pots:
                pots[-1].amount += total
            else:
                dead += total
            continue
        if pots and pots[-1].eligible == eligible:
            pots[-1].amount += total
            continue
        pots.append(SidePot(total + dead, eligible))
        dead = 0

    if dead:
        pots.append(SidePot(dead, [player.id for player in state.contenders()]))
    return pots


def next_hand(state: GameState) -> GameState:
    if state.game_phase != GamePhase.SHOWDOWN:
        raise InvalidAction(f"Cannot rotate the dealer while {state.game_phase.value}", code="WRONG_PHASE")
    new = _evolve(state)
    live = [player for player in new.players if player.chips > 0]
    if len(live) <= 1:
        return _end_session(new)

    dealer = seats_after(new, new.dealer_position, lambda player: player.chips > 0)[0]
    new.dealer_position = dealer.position
    for player in new.players:
        player.is_dealer = player is dealer
        if player.chips == 0:
            player.status = PlayerStatus.OUT
    new.current_player_id = None
    new.game_phase = GamePhase.READY
    new.log.append({"ev": "BUTTON", "player": dealer.id, "seat": dealer.position})
    return new


def _end_session(state: GameState) -> GameState:
    live = [player for player in state.players if player.chips > 0]
    winner = live[0] if live else None
    if winner is not None and state.pot > 0:
        winner.chips += state.pot
        state.log.append({"ev": "POT_AWARD", "player": winner.id, "amount": state.pot, "pot": 0})
        state.pot = 0
    for player in state.players:
        if player.chips == 0:
            player.status = PlayerStatus.OUT
    state.winner_id = winner.id if winner else None
    state.current_player_id = None
    state.game_phase = GamePhase.WAITING
    state.log.append({"ev": "MATCH_END", "winner": state.winner_id})
    LOGGER.info("Session over, winner=%s", state.winner_id)
    return state


# Queries -------------------------------------------------------------


def legal_actions(
    state: GameState, player_id: str
) -> Tuple[List[ActionType], Optional[int], Optional[int], Optional[int]]:
    """Legal moves for ``player_id`` plus call amount and raise-to bounds."""
    player = state.player(player_id)
    if player is None or not player.can_act:
        raise InvalidAction("Player cannot act", code="UNKNOWN_PLAYER")

    legal: List[ActionType] = [ActionType.FOLD]
    call_amount = max(state.current_bet - player.current_bet, 0)
    legal.append(ActionType.CHECK if call_amount == 0 else ActionType.CALL)

    min_raise_to = None
    max_raise_to = None
    stack_to = player.chips + player.current_bet
    if stack_to > state.current_bet:
        max_raise_to = stack_to
        min_raise_to = min(state.current_bet + state.min_raise, stack_to)
        legal.append(ActionType.RAISE)
    legal.append(ActionType.ALL_IN)

    return legal, (min(call_amount, player.chips) if call_amount else None), min_raise_to, max_raise_to


def check_invariants(state: GameState) -> None:
    for player in state.players:
        if player.chips < 0:
            raise StateInvariantViolation(f"{player.id} has a negative stack")
    if state.game_phase in (GamePhase.BETTING, GamePhase.TRANSITION):
        committed = sum(player.total_bet for player in state.players)
        if state.pot != committed:
            raise StateInvariantViolation(f"Pot {state.pot} does not match contributions {committed}")
        cards = list(state.deck) + list(state.community_cards)
        for player in state.players:
            cards.extend(player.hand)
        if len(set(cards)) != len(cards):
            raise StateInvariantViolation("Duplicate card in play")
    elif state.pot != 0:
        raise StateInvariantViolation(f"Pot holds {state.pot} outside of a hand")
    if state.current_player_id is not None:
        current = state.current_player
        if current is None or not current.can_act or state.game_phase != GamePhase.BETTING:
            raise StateInvariantViolation(f"{state.current_player_id} cannot hold the turn")
