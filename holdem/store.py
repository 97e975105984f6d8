from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from .models import GameMode

LOGGER = logging.getLogger("holdem.store")

MATCH_HISTORY_LIMIT = 10


class KeyValueStore(Protocol):
    def load(self, key: str, default: Any = None) -> Any:
        ...

    def save(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}

    def load(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def save(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonFileStore:
    """Keeps every key in one JSON document on disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.error("Failed to read store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.error("Store %s does not hold a JSON object", self.path)
            return {}
        return data

    def load(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def save(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)


class ResultsRecorder:
    """Listens for SESSION_END and files the human's result in a store.

    Ratings are somebody else's job; this only keeps counts and history.
    """

    def __init__(self, store: KeyValueStore, mode: GameMode = GameMode.CASUAL, starting_chips: int = 0) -> None:
        self.store = store
        self.mode = GameMode(mode)
        self.starting_chips = starting_chips
        self.started_at = time.time()

    def __call__(self, event: Dict[str, object]) -> None:
        if event.get("ev") == "SESSION_END":
            self.record(event)

    def record(self, event: Dict[str, object]) -> Optional[Dict[str, object]]:
        standings: List[Dict[str, Any]] = list(event.get("standings") or [])  # type: ignore[arg-type]
        human = next((entry for entry in standings if entry.get("is_human")), None)
        if human is None:
            return None

        placement = int(human["place"])
        won = placement == 1
        for scope in (self.mode.value, "total"):
            self._bump(f"{scope}_games_played")
            self._bump(f"{scope}_wins" if won else f"{scope}_losses")

        best = self.store.load("best_placement", None)
        if best is None or placement < best:
            self.store.save("best_placement", placement)

        record = {
            "timestamp": time.time(),
            "game_mode": self.mode.value,
            "placement": placement,
            "total_players": len(standings),
            "starting_chips": self.starting_chips,
            "final_chips": human["final_chips"],
            "hands_played": event.get("hands_played", 0),
            "duration": round(time.time() - self.started_at, 1),
        }
        history = list(self.store.load("match_history", []))
        history.insert(0, record)
        self.store.save("match_history", history[:MATCH_HISTORY_LIMIT])
        LOGGER.info("Recorded %s result: place %d of %d", self.mode.value, placement, len(standings))
        return record

    def _bump(self, key: str) -> None:
        self.store.save(key, int(self.store.load(key, 0)) + 1)

    def summary(self) -> Dict[str, object]:
        out: Dict[str, object] = {}
        for scope in (GameMode.CASUAL.value, GameMode.RANKED.value, "total"):
            played = int(self.store.load(f"{scope}_games_played", 0))
            wins = int(self.store.load(f"{scope}_wins", 0))
            out[scope] = {
                "games_played": played,
                "wins": wins,
                "losses": int(self.store.load(f"{scope}_losses", 0)),
                "win_rate": round(wins / played * 100, 1) if played else 0.0,
            }
        out["best_placement"] = self.store.load("best_placement", None)
        out["recent"] = list(self.store.load("match_history", []))[:5]
        return out
