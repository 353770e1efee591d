"""Tests for persisted settings and score snapshots."""

import json

from tictacmatch.ai import Difficulty
from tictacmatch.game import MatchConfig, MatchEngine, MatchType
from tictacmatch.settings import (
    SETTINGS_KEY,
    JsonFileStore,
    MemoryStore,
    SavedSettings,
    apply_settings,
    capture_settings,
    load_settings,
    save_settings,
)


def test_missing_record_gives_defaults():
    settings = load_settings(MemoryStore())
    assert settings == SavedSettings()
    assert settings.match_length == 3
    assert settings.difficulty is Difficulty.HARD


def test_unparseable_record_gives_defaults():
    assert load_settings(MemoryStore("{not json")) == SavedSettings()
    assert load_settings(MemoryStore("[1, 2]")) == SavedSettings()
    assert load_settings(MemoryStore('{"matchType": "sometimes"}')) == SavedSettings()


def test_partial_record_keeps_defaults_and_ignores_unknown():
    raw = json.dumps({"mode": "computer", "matchType": "bestOf", "theme": "dark"})
    settings = load_settings(MemoryStore(raw))
    assert settings.mode == "computer"
    assert settings.match_type is MatchType.BEST_OF
    assert settings.starting_player == "X"
    assert settings.winning_score == {"X": 0, "O": 0}


def test_match_length_is_clamped():
    assert load_settings(MemoryStore('{"matchLength": 40}')).match_length == 15
    assert load_settings(MemoryStore('{"matchLength": 0}')).match_length == 1


def test_apply_restores_score_without_winner():
    engine = MatchEngine()
    settings = SavedSettings(match_length=3, winning_score={"X": 2, "O": 1})
    apply_settings(engine, settings)
    assert engine.winning_score == {"X": 2, "O": 1}
    assert engine.match_winner is None
    assert engine.make_move(0)


def test_apply_rederives_match_winner():
    engine = MatchEngine()
    settings = SavedSettings(
        match_type=MatchType.BEST_OF, match_length=5, winning_score={"X": 1, "O": 3}
    )
    apply_settings(engine, settings)
    assert engine.match_target == 3
    assert engine.match_winner == "O"
    assert not engine.make_move(0)


def test_apply_settings_resets_board():
    engine = MatchEngine()
    engine.make_move(4)
    apply_settings(engine, SavedSettings(starting_player="O"))
    assert engine.board == [None] * 9
    assert engine.current_player == "O"


def test_capture_and_save_round_trip():
    engine = MatchEngine(MatchConfig(starting_player="O", match_length=5))
    engine.winning_score = {"X": 1, "O": 2}
    store = MemoryStore()
    save_settings(store, capture_settings(engine, "computer", Difficulty.MEDIUM))

    payload = json.loads(store.raw)
    assert payload["startingPlayer"] == "O"
    assert payload["matchLength"] == 5
    assert payload["winningScore"] == {"X": 1, "O": 2}

    loaded = load_settings(store)
    assert loaded.mode == "computer"
    assert loaded.difficulty is Difficulty.MEDIUM


def test_file_store_uses_fixed_key_and_keeps_other_entries(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"other": "value"}))
    store = JsonFileStore(path)
    save_settings(store, SavedSettings(mode="computer"))

    data = json.loads(path.read_text())
    assert data["other"] == "value"
    assert SETTINGS_KEY in data
    assert load_settings(store).mode == "computer"


def test_file_store_missing_or_corrupt_file(tmp_path):
    assert load_settings(JsonFileStore(tmp_path / "absent.json")) == SavedSettings()
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{{{")
    assert load_settings(JsonFileStore(corrupt)) == SavedSettings()


def test_file_store_with_invalid_bytes_gives_defaults(tmp_path):
    path = tmp_path / "storage.json"
    path.write_bytes(b"\xff\xfe")
    store = JsonFileStore(path)
    assert load_settings(store) == SavedSettings()

    # Saving replaces the unreadable file
    save_settings(store, SavedSettings(mode="computer"))
    assert load_settings(store).mode == "computer"


def test_file_store_with_invalid_bytes_inside_record(tmp_path):
    path = tmp_path / "storage.json"
    path.write_bytes(b'{"tic-tac-toe-settings": "\xff\xfe"}')
    assert load_settings(JsonFileStore(path)) == SavedSettings()
