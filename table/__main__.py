import argparse
import asyncio
import logging

from holdem.models import GameMode, TableConfig
from holdem.store import JsonFileStore

from .server import run_server

logging.basicConfig(level=logging.INFO)


def main() -> None:
    # CLI doubles as documentation for the table settings a mode can override.
    parser = argparse.ArgumentParser(description="Hold'em table server: one human against AI opponents")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--mode", choices=[mode.value for mode in GameMode], default=GameMode.CASUAL.value)
    parser.add_argument("--starting-stack", type=int, default=None, help="Override the mode's starting stack")
    parser.add_argument("--sb", type=int, default=None)
    parser.add_argument("--bb", type=int, default=None)
    parser.add_argument("--max-players", type=int, default=None)
    parser.add_argument(
        "--ai-delay-ms",
        type=int,
        default=800,
        help="Pause after each AI action so humans can follow along (0 disables)",
    )
    parser.add_argument("--store", default=None, help="JSON file for match history and win counts")
    args = parser.parse_args()

    config = TableConfig.for_mode(
        GameMode(args.mode),
        starting_stack=args.starting_stack,
        sb=args.sb,
        bb=args.bb,
        max_players=args.max_players,
        ai_delay_ms=args.ai_delay_ms,
    )
    store = JsonFileStore(args.store) if args.store else None
    asyncio.run(run_server(args.host, args.port, config, store))


if __name__ == "__main__":
    main()
