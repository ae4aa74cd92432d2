from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import websockets
from websockets.asyncio.server import ServerConnection

from holdem.ai import PERSONALITIES, decide
from holdem.engine import GameEngine
from holdem.errors import InsufficientFunds, InvalidAction
from holdem.ledger import FundsLedger, SimulatedWallet
from holdem.models import ActionType, GamePhase, TableConfig

LOGGER = logging.getLogger("parlor_host")

HUMAN_ID = "human"


class ParlorError(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


def _config_payload(config: TableConfig) -> Dict[str, Any]:
    return {
        "variant": config.variant,
        "seats": config.seats,
        "starting_stack": config.starting_stack,
        "sb": config.sb,
        "bb": config.bb,
    }


async def _send_error(websocket: ServerConnection, code: str, msg: str) -> None:
    await websocket.send(json.dumps({"type": "error", "code": code, "msg": msg}))


@dataclass
class HumanClient:
    name: str
    websocket: ServerConnection
    player_id: str = HUMAN_ID

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps({"v": 1, **payload}))


# PracticeSession paces one table: AI seats act in-process after a short
# delay, the human is prompted over the socket, and street changes wait a
# beat so a UI can animate them. Delays of 0 make it fully headless.


class PracticeSession:
    """Runs one human against AI personalities until a single stack remains."""

    def __init__(
        self,
        config: TableConfig,
        human: HumanClient,
        personalities: Sequence[str],
        ledger: Optional[FundsLedger] = None,
        buy_in: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not personalities:
            raise ValueError("At least one AI opponent required")
        unknown = [name for name in personalities if name not in PERSONALITIES]
        if unknown:
            raise ValueError(f"Unknown personalities: {', '.join(unknown)}")
        self.config = config
        self.rng = rng or random.Random()
        self.engine = GameEngine(config, ledger=ledger, rng=self.rng)
        self.human = human
        self.personalities = list(personalities)
        self.buy_in = buy_in if buy_in is not None else config.starting_stack

    async def run(self) -> None:
        self._seat_players()
        await self.human.send_json(
            {
                "type": "welcome",
                "table_id": "PARLOR",
                "player": self.human.player_id,
                "config": _config_payload(self.config),
                "table": self.engine.snapshot_payload(self.human.player_id),
            }
        )
        while self.engine.can_start_hand():
            await self._broadcast_events(self.engine.start_hand())
            if self.engine.state.game_phase == GamePhase.WAITING:
                break
            await self._play_hand()
            await self._pause(self.config.showdown_delay_ms)
            await self._broadcast_events(self.engine.next_hand())

        await self.human.send_json({"type": "match_end", **self.engine.match_result_payload()})

    def _seat_players(self) -> None:
        self.engine.seat_player(self.human.name, self.buy_in, player_id=self.human.player_id, is_human=True)
        for idx, name in enumerate(self.personalities, start=1):
            self.engine.seat_player(f"AI {idx} ({name.title()})", player_id=f"ai{idx}", personality=name)

    async def _play_hand(self) -> None:
        while not self.engine.is_hand_complete():
            state = self.engine.state
            if state.game_phase == GamePhase.TRANSITION:
                await self._pause(self.config.transition_delay_ms)
                await self._broadcast_events(self.engine.advance_round())
                continue

            actor_id = self.engine.next_actor()
            actor = state.player(actor_id)
            if actor is None:
                raise RuntimeError(f"No actor while {state.game_phase.value}")

            if actor.is_human:
                events = await self._prompt_human(actor.id)
            else:
                await self._pause(self.config.ai_delay_ms)
                decision = decide(state, actor, rng=self.rng)
                LOGGER.debug("%s decides %s %s", actor.id, decision.action.value, decision.amount)
                events = self.engine.apply_action(actor.id, decision.action, decision.amount)
            await self._broadcast_events(events)

        await self.human.send_json({"type": "end_hand", "table": self.engine.snapshot_payload(self.human.player_id)})

    async def _prompt_human(self, player_id: str) -> List[Dict[str, object]]:
        while True:
            await self.human.send_json({"type": "act", **self.engine.act_payload(player_id)})
            message = await self._read_action()
            try:
                action = ActionType(message.get("action"))
            except ValueError:
                await _send_error(self.human.websocket, "BAD_ACTION", f"Unknown action {message.get('action')!r}")
                continue
            amount = message.get("amount")
            if isinstance(amount, float) and amount.is_integer():
                amount = int(amount)
            try:
                return self.engine.apply_action(player_id, action, amount)
            except (InvalidAction, InsufficientFunds) as exc:
                await _send_error(self.human.websocket, exc.code, exc.msg)

    async def _read_action(self) -> Dict[str, Any]:
        while True:
            raw = await self.human.websocket.recv()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(self.human.websocket, "BAD_JSON", "Message is not valid JSON")
                continue
            if isinstance(message, dict) and message.get("type") == "action":
                return message

    async def _broadcast_events(self, events: List[Dict[str, object]]) -> None:
        for event in events:
            await self.human.send_json({"type": "event", **event})
        if events:
            await self.human.send_json({"type": "table", **self.engine.snapshot_payload(self.human.player_id)})

    async def _pause(self, delay_ms: int) -> None:
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)


def _parse_hello(hello: Any, config: TableConfig) -> tuple[str, int, int]:
    if not isinstance(hello, dict) or hello.get("type") != "hello":
        raise ParlorError("BAD_HELLO", "Expected hello")
    name_raw = hello.get("name")
    name = name_raw.strip() if isinstance(name_raw, str) else ""
    name = name or "You"

    buy_in = hello.get("buy_in", config.starting_stack)
    if isinstance(buy_in, bool) or not isinstance(buy_in, int) or buy_in <= 0:
        raise ParlorError("BAD_SCHEMA", "buy_in must be a positive whole number")
    balance = hello.get("balance", buy_in)
    if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
        raise ParlorError("BAD_SCHEMA", "balance must be a non-negative whole number")
    if buy_in > balance:
        raise ParlorError("INSUFFICIENT_FUNDS", "Wallet balance cannot cover the buy-in")
    return name, buy_in, balance


async def handle_connection(
    websocket: ServerConnection,
    config: TableConfig,
    personalities: Sequence[str],
) -> None:
    # First message must be "hello" so we know who sits down and with what.
    try:
        hello = json.loads(await websocket.recv())
        name, buy_in, balance = _parse_hello(hello, config)
    except json.JSONDecodeError:
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return
    except ParlorError as exc:
        await _send_error(websocket, exc.code, exc.msg)
        return

    wallet = SimulatedWallet(balance=balance)
    human = HumanClient(name=name, websocket=websocket)
    session = PracticeSession(config, human, personalities, ledger=wallet, buy_in=buy_in)
    LOGGER.info("%s joined with %s chips (wallet %s)", name, buy_in, wallet.address)
    try:
        await session.run()
    except websockets.ConnectionClosed:
        LOGGER.info("%s disconnected", name)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Practice session crashed: %s", exc)
    else:
        LOGGER.info("Session for %s finished, wallet balance %s", name, wallet.balance)


async def run_server(host: str, port: int, config: TableConfig, personalities: Sequence[str]) -> None:
    async def _handler(websocket: ServerConnection) -> None:
        await handle_connection(websocket, config, personalities)

    async with websockets.serve(_handler, host, port):
        LOGGER.info("Parlor listening on %s:%s with %s", host, port, ", ".join(personalities))
        await asyncio.Future()
