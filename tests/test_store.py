import json
import logging

from holdem.models import GameMode
from holdem.store import MATCH_HISTORY_LIMIT, JsonFileStore, MemoryStore, ResultsRecorder


def _session_end(place, total=4, final_chips=0, hands=12):
    standings = []
    for idx in range(1, total + 1):
        standings.append(
            {
                "place": idx,
                "name": "Hero" if idx == place else f"Bot{idx}",
                "final_chips": final_chips if idx == place else 0,
                "is_human": idx == place,
            }
        )
    return {"ev": "SESSION_END", "hands_played": hands, "standings": standings}


def test_memory_store_round_trips_values():
    store = MemoryStore()
    assert store.load("missing", 7) == 7
    store.save("key", {"a": 1})
    assert store.load("key") == {"a": 1}


def test_json_file_store_persists_between_instances(tmp_path):
    path = tmp_path / "data" / "stats.json"
    JsonFileStore(path).save("wins", 3)
    JsonFileStore(path).save("losses", 1)
    reopened = JsonFileStore(path)
    assert reopened.load("wins") == 3
    assert reopened.load("losses") == 1
    assert json.loads(path.read_text(encoding="utf-8")) == {"losses": 1, "wins": 3}
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_store_tolerates_corrupt_file(tmp_path, caplog):
    path = tmp_path / "stats.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)
    with caplog.at_level(logging.ERROR, logger="holdem.store"):
        assert store.load("wins", 0) == 0
    assert "Failed to read store" in caplog.text
    store.save("wins", 1)
    assert store.load("wins") == 1


def test_recorder_counts_wins_and_losses_per_mode():
    store = MemoryStore()
    recorder = ResultsRecorder(store, GameMode.RANKED, starting_chips=10_000)

    recorder(_session_end(place=1, final_chips=40_000))
    recorder(_session_end(place=3))

    assert store.load("ranked_games_played") == 2
    assert store.load("ranked_wins") == 1
    assert store.load("ranked_losses") == 1
    assert store.load("total_games_played") == 2
    assert store.load("casual_games_played") is None
    assert store.load("best_placement") == 1

    summary = recorder.summary()
    assert summary["ranked"]["win_rate"] == 50.0
    assert summary["casual"]["games_played"] == 0
    assert summary["recent"][0]["placement"] == 3


def test_recorder_history_is_newest_first_and_capped():
    store = MemoryStore()
    recorder = ResultsRecorder(store, GameMode.CASUAL, starting_chips=5_000)
    for hands in range(MATCH_HISTORY_LIMIT + 2):
        recorder.record(_session_end(place=2, hands=hands))

    history = store.load("match_history")
    assert len(history) == MATCH_HISTORY_LIMIT
    assert history[0]["hands_played"] == MATCH_HISTORY_LIMIT + 1
    assert history[0]["game_mode"] == "casual"
    assert history[0]["total_players"] == 4
    assert history[0]["starting_chips"] == 5_000


def test_recorder_ignores_other_events_and_missing_human():
    store = MemoryStore()
    recorder = ResultsRecorder(store)
    recorder({"ev": "HAND_END"})
    event = _session_end(place=1)
    for entry in event["standings"]:
        entry["is_human"] = False
    assert recorder.record(event) is None
    assert store.data == {}
