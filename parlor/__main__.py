import argparse
import asyncio
import logging
from dataclasses import replace

from holdem.ai import PERSONALITIES
from holdem.models import TableConfig

from .server import run_server


def main() -> None:
    # CLI doubles as documentation for the table and pacing knobs.
    parser = argparse.ArgumentParser(description="Hold'em practice table: you against AI seats")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument(
        "--ai",
        nargs="+",
        default=["shark", "maniac"],
        choices=sorted(PERSONALITIES),
        help="Personality for each AI seat",
    )
    parser.add_argument("--starting-stack", type=int, default=1_000)
    parser.add_argument("--sb", type=int, default=10)
    parser.add_argument("--bb", type=int, default=20)
    parser.add_argument("--ai-delay-ms", type=int, default=800, help="Pause before each AI action")
    parser.add_argument("--transition-delay-ms", type=int, default=1_500, help="Pause before dealing a street")
    parser.add_argument("--showdown-delay-ms", type=int, default=3_000, help="Pause after a hand ends")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = replace(
        TableConfig(),
        seats=len(args.ai) + 1,
        starting_stack=args.starting_stack,
        sb=args.sb,
        bb=args.bb,
        ai_delay_ms=args.ai_delay_ms,
        transition_delay_ms=args.transition_delay_ms,
        showdown_delay_ms=args.showdown_delay_ms,
    )
    asyncio.run(run_server(args.host, args.port, config, args.ai))


if __name__ == "__main__":
    main()
