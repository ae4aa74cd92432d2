#!/usr/bin/env python3
"""Play a full practice match headlessly.

This script starts the parlor host in-process with all pacing delays at zero
and connects a toy human client that picks random legal actions. Useful for
shaking out the engine end to end over a real socket.

Example:
    python scripts/table_sim.py --ai shark maniac rock --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import random
from typing import Any, Dict, Optional

import websockets

from holdem.ai import PERSONALITIES
from holdem.models import TableConfig
from parlor.server import run_server

LOGGER = logging.getLogger("table_sim")


def choose_action(message: Dict[str, Any], rng: random.Random) -> tuple[str, Optional[int]]:
    """Pick a random but legal action from an ``act`` prompt."""

    legal = list(message.get("legal", []))
    if not legal:
        return "fold", None

    # Folding for free is silly; check instead.
    if "check" in legal and rng.random() < 0.6:
        return "check", None

    choice = rng.choice(legal)
    if choice == "raise":
        low = message.get("min_raise_to")
        high = message.get("max_raise_to")
        if low is None or high is None:
            return ("call" if "call" in legal else "check"), None
        return "raise", rng.randint(low, high)
    return choice, None


async def play(url: str, name: str, buy_in: int, rng: random.Random) -> Dict[str, Any]:
    async with websockets.connect(url) as ws:
        await ws.send(json.dumps({"type": "hello", "name": name, "buy_in": buy_in}))
        hands = 0
        while True:
            message = json.loads(await ws.recv())
            msg_type = message.get("type")
            if msg_type == "act":
                action, amount = choose_action(message, rng)
                await ws.send(json.dumps({"type": "action", "action": action, "amount": amount}))
            elif msg_type == "error":
                LOGGER.warning("Host rejected action: %s %s", message.get("code"), message.get("msg"))
            elif msg_type == "end_hand":
                hands += 1
                stacks = {p["name"]: p["chips"] for p in message["table"]["players"]}
                LOGGER.info("Hand %s done: %s", hands, stacks)
            elif msg_type == "match_end":
                message["hands"] = hands
                return message


async def main_async(args: argparse.Namespace) -> None:
    config = TableConfig(
        seats=len(args.ai) + 1,
        starting_stack=args.starting_stack,
        sb=args.sb,
        bb=args.bb,
        ai_delay_ms=0,
        transition_delay_ms=0,
        showdown_delay_ms=0,
    )
    server_task = asyncio.create_task(run_server(args.host, args.port, config, args.ai))
    await asyncio.sleep(0.2)
    try:
        result = await play(f"ws://{args.host}:{args.port}", args.name, args.starting_stack, random.Random(args.seed))
    finally:
        server_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await server_task

    winner = result.get("winner") or {}
    LOGGER.info("Match over after %s hands, winner: %s", result["hands"], winner.get("name"))
    for entry in result.get("final_stacks", []):
        LOGGER.info("  %-20s %s", entry["name"], entry["chips"])


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless practice match against AI seats")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8799)
    parser.add_argument("--name", default="Sim")
    parser.add_argument("--ai", nargs="+", default=["shark", "maniac"], choices=sorted(PERSONALITIES))
    parser.add_argument("--starting-stack", type=int, default=500)
    parser.add_argument("--sb", type=int, default=10)
    parser.add_argument("--bb", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
