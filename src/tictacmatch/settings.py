"""Persisted match settings and score snapshot.

The engine never touches storage itself. A :class:`SettingsStore` holds the
raw JSON text of a :class:`SavedSettings` record; the controller decides when
to load and save it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Literal, Optional, Protocol
import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .ai import Difficulty
from .game import PLAYERS, MatchEngine, MatchType, Player

logger = logging.getLogger(__name__)

SETTINGS_KEY = "tic-tac-toe-settings"
MIN_MATCH_LENGTH = 1
MAX_MATCH_LENGTH = 15


def clamp_match_length(value: int) -> int:
    return max(MIN_MATCH_LENGTH, min(MAX_MATCH_LENGTH, int(value)))


class SavedSettings(BaseModel):
    """Flat record written to storage; unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mode: Literal["human", "computer"] = "human"
    difficulty: Difficulty = Difficulty.HARD
    starting_player: Player = Field(default="X", alias="startingPlayer")
    match_type: MatchType = Field(default=MatchType.FIRST_TO, alias="matchType")
    match_length: int = Field(default=3, alias="matchLength")
    winning_score: Dict[Player, int] = Field(
        default_factory=lambda: {"X": 0, "O": 0}, alias="winningScore"
    )

    @field_validator("starting_player")
    @classmethod
    def ensure_player(cls, value: str) -> str:
        if value not in PLAYERS:
            raise ValueError(f"Unknown player {value!r}")
        return value

    @field_validator("match_length")
    @classmethod
    def clamp_length(cls, value: int) -> int:
        return clamp_match_length(value)

    @field_validator("winning_score")
    @classmethod
    def ensure_score(cls, value: Dict[str, int]) -> Dict[str, int]:
        score = {"X": 0, "O": 0}
        for player, count in value.items():
            if player not in PLAYERS:
                continue
            if count < 0:
                raise ValueError("Scores cannot be negative")
            score[player] = count
        return score


# ---------- Storage port ----------


class SettingsStore(Protocol):
    def load(self) -> Optional[str]: ...

    def save(self, raw: str) -> None: ...


class MemoryStore:
    """Keeps the raw record in memory; used by tests and ephemeral servers."""

    def __init__(self, raw: Optional[str] = None) -> None:
        self.raw = raw

    def load(self) -> Optional[str]:
        return self.raw

    def save(self, raw: str) -> None:
        self.raw = raw


class JsonFileStore:
    """A JSON object on disk used as key/value storage.

    The settings record lives under ``key``; other keys in the file are kept.
    """

    def __init__(self, path: Path | str, key: str = SETTINGS_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def load(self) -> Optional[str]:
        return self._read_all().get(self.key)

    def save(self, raw: str) -> None:
        try:
            data = self._read_all()
        except (OSError, ValueError):
            logger.warning("Overwriting unreadable settings file %s", self.path)
            data = {}
        data[self.key] = raw
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------- Load / save ----------


def load_settings(store: SettingsStore) -> SavedSettings:
    """Read settings from ``store``, falling back to defaults on any problem."""
    try:
        raw = store.load()
        if raw is None:
            return SavedSettings()
        return SavedSettings.model_validate(json.loads(raw))
    except (OSError, ValueError, ValidationError, TypeError) as exc:
        logger.warning("Ignoring stored settings: %s", exc)
        return SavedSettings()


def save_settings(store: SettingsStore, settings: SavedSettings) -> None:
    store.save(settings.model_dump_json(by_alias=True))


def apply_settings(engine: MatchEngine, settings: SavedSettings) -> None:
    """Configure ``engine`` from a loaded record and restore its score.

    The match winner is derived again from the restored score: a player
    already at the target has won. If both are, the higher score wins and X
    takes a tie.
    """
    engine.update_settings(
        starting_player=settings.starting_player,
        match_type=settings.match_type,
        match_length=settings.match_length,
    )
    engine.reset_match()
    engine.winning_score = dict(settings.winning_score)

    target = engine.match_target
    reached = [p for p in PLAYERS if engine.winning_score[p] >= target]
    if reached:
        engine.match_winner = max(reached, key=lambda p: engine.winning_score[p])


def capture_settings(
    engine: MatchEngine, mode: str, difficulty: Difficulty
) -> SavedSettings:
    return SavedSettings(
        mode=mode,
        difficulty=difficulty,
        starting_player=engine.config.starting_player,
        match_type=engine.config.match_type,
        match_length=engine.config.match_length,
        winning_score=dict(engine.winning_score),
    )
