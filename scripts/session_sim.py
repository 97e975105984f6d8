#!/usr/bin/env python3
"""Play many all-AI sessions in-process and check the chip accounting.

Every session seats AI players with random difficulties and runs until one
player holds every chip. After each hand the script asserts that no chips were
created or destroyed.

Example:
    python scripts/session_sim.py --sessions 20 --players 5 --seed 7
"""

from __future__ import annotations

import argparse
import logging
import random
from collections import Counter
from typing import Dict

from holdem.ai import generate_names
from holdem.models import Difficulty, GameMode, PlayerSpec, TableConfig
from holdem.session import GameSession, build_players

LOGGER = logging.getLogger("session_sim")


def run_one(config: TableConfig, num_players: int, rng: random.Random) -> Dict[str, object]:
    specs = [
        PlayerSpec(name=name, difficulty=rng.choice(list(Difficulty)))
        for name in generate_names(num_players, rng)
    ]
    players = build_players(specs, config, rng)
    session = GameSession(config, players, dealer=rng.randrange(num_players), rng=rng)
    expected_total = sum(player.chips for player in players)

    def check_conservation(event: Dict[str, object]) -> None:
        if event.get("ev") == "HAND_END":
            total = session.engine.total_chips()
            if total != expected_total:
                raise AssertionError(f"Chip total drifted: {total} != {expected_total}")

    session.subscribe(check_conservation)
    standings = session.run()
    winner = standings[0]
    difficulty = next(player.difficulty for player in players if player.name == winner.name)
    return {"hands": session.hands_played, "winner": winner.name, "difficulty": difficulty}


def main() -> None:
    parser = argparse.ArgumentParser(description="All-AI session simulator")
    parser.add_argument("--sessions", type=int, default=10)
    parser.add_argument("--players", type=int, default=4)
    parser.add_argument("--mode", choices=[mode.value for mode in GameMode], default=GameMode.CASUAL.value)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    config = TableConfig.for_mode(GameMode(args.mode))
    wins_by_difficulty: Counter = Counter()
    hand_counts = []

    for idx in range(args.sessions):
        result = run_one(config, args.players, rng)
        wins_by_difficulty[result["difficulty"]] += 1
        hand_counts.append(result["hands"])
        LOGGER.info("Session %d: %s won after %d hands", idx + 1, result["winner"], result["hands"])

    LOGGER.info(
        "Played %d sessions, average %.1f hands; wins by difficulty: %s",
        args.sessions,
        sum(hand_counts) / max(len(hand_counts), 1),
        {str(getattr(key, "value", key)): count for key, count in wins_by_difficulty.items()},
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
