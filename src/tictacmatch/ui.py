"""FastAPI-powered web UI for playing tic-tac-toe matches in the browser."""

from __future__ import annotations

import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import Difficulty, choose_move, strategy_for
from .game import MatchEngine, MatchType, Player
from .settings import (
    MemoryStore,
    SettingsStore,
    apply_settings,
    capture_settings,
    clamp_match_length,
    load_settings,
    save_settings,
)

logger = logging.getLogger(__name__)

Mode = Literal["human", "computer"]


@dataclass
class GameSession:
    """Container for an active match and how its O side is controlled."""

    engine: MatchEngine
    mode: Mode = "human"
    difficulty: Difficulty = Difficulty.HARD
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe matches in the browser")

COMPUTER_PLAYER: Player = "O"
AI_THINK_DELAY: Tuple[float, float] = (0.25, 0.25)
SETTINGS_STORE: SettingsStore = MemoryStore()


def configure_store(store: SettingsStore) -> None:
    """Swap the settings storage used by new and running sessions."""

    global SETTINGS_STORE
    SETTINGS_STORE = store


class SettingsRequest(BaseModel):
    """Partial settings; omitted fields keep their current values."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Optional[Mode] = None
    difficulty: Optional[Difficulty] = None
    starting_player: Optional[Literal["X", "O"]] = Field(
        default=None, alias="startingPlayer"
    )
    match_type: Optional[MatchType] = Field(default=None, alias="matchType")
    match_length: Optional[int] = Field(default=None, alias="matchLength")

    @field_validator("match_length")
    @classmethod
    def clamp_length(cls, value: Optional[int]) -> Optional[int]:
        return None if value is None else clamp_match_length(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    index: int = Field(ge=0, le=8)


def _computer_to_move(session: GameSession) -> bool:
    engine = session.engine
    return (
        session.mode == "computer"
        and not engine.is_round_over
        and not engine.is_match_over
        and engine.current_player == COMPUTER_PLAYER
    )


def _persist(session: GameSession) -> None:
    save_settings(
        SETTINGS_STORE,
        capture_settings(session.engine, session.mode, session.difficulty),
    )


def _apply_request(session: GameSession, request: SettingsRequest) -> None:
    """Apply a settings change and start a fresh match, as a settings change
    always does."""

    try:
        session.engine.update_settings(
            starting_player=request.starting_player,
            match_type=request.match_type,
            match_length=request.match_length,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if request.mode is not None:
        session.mode = request.mode
    if request.difficulty is not None:
        session.difficulty = request.difficulty
    session.engine.reset_match()


def _create_session(request: SettingsRequest) -> Tuple[str, GameSession]:
    """Create a new session from stored settings plus any overrides."""

    stored = load_settings(SETTINGS_STORE)
    engine = MatchEngine()
    apply_settings(engine, stored)
    session = GameSession(
        engine=engine,
        mode=stored.mode,
        difficulty=stored.difficulty,
    )
    if request.model_fields_set:
        _apply_request(session, request)
    _persist(session)

    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created game %s (mode=%s, difficulty=%s)",
        session_id,
        session.mode,
        session.difficulty.value,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _schedule_ai(
    game_id: str, session: GameSession, background_tasks: Optional[BackgroundTasks]
) -> None:
    # Caller holds session.lock
    if background_tasks is None or not _computer_to_move(session):
        return
    session.ai_pending = True
    background_tasks.add_task(_run_ai_turn, game_id)


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if not _computer_to_move(session):
                return
            engine = session.engine
            move = choose_move(
                engine.board, COMPUTER_PLAYER, strategy_for(session.difficulty)
            )
            if move is None:
                return
            engine.make_move(move)
            if engine.is_round_over:
                _persist(session)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        engine = session.engine
        state = engine.snapshot()
        state["board"] = [c if c in ("X", "O") else "" for c in engine.board]
        state.update(
            {
                "id": game_id,
                "settings": {
                    "mode": session.mode,
                    "difficulty": session.difficulty.value,
                    "startingPlayer": engine.config.starting_player,
                    "matchType": engine.config.match_type.value,
                    "matchLength": engine.config.match_length,
                },
                "aiPending": session.ai_pending,
            }
        )
        return state


def _ensure_idle(session: GameSession) -> None:
    if session.ai_pending:
        raise HTTPException(status_code=400, detail="Computer is completing its move")


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        engine = session.engine
        if engine.is_match_over:
            raise HTTPException(status_code=400, detail="Match already finished")
        if engine.is_round_over:
            raise HTTPException(status_code=400, detail="Round already finished")
        _ensure_idle(session)
        if session.mode == "computer" and engine.current_player == COMPUTER_PLAYER:
            raise HTTPException(status_code=400, detail="It is the computer's turn")

        if not engine.make_move(index):
            raise HTTPException(status_code=400, detail="Cell is already taken")

        if engine.is_round_over:
            _persist(session)
        _schedule_ai(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: SettingsRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request)
    with session.lock:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/round")
def new_round(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        _ensure_idle(session)
        if session.engine.is_match_over:
            raise HTTPException(
                status_code=400, detail="Match is over; reset it to play again"
            )
        session.engine.reset_board()
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_match(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        _ensure_idle(session)
        session.engine.reset_match()
        _persist(session)
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.patch("/api/game/{game_id}/settings")
def update_settings(
    game_id: str, request: SettingsRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        _ensure_idle(session)
        _apply_request(session, request)
        _persist(session)
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        width: min(480px, 100%);
      }
      h1 {
        margin: 0 0 1rem;
        text-align: center;
      }
      .settings,
      .controls,
      .scores {
        display: flex;
        flex-wrap: wrap;
        gap: 0.5rem;
        justify-content: center;
        margin-bottom: 1rem;
      }
      button,
      select,
      input {
        font: inherit;
        padding: 0.4rem 0.8rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        margin: 1rem auto;
        width: min(300px, 100%);
      }
      .cell {
        aspect-ratio: 1;
        border-radius: 12px;
        font-size: 2.5rem;
        font-weight: 700;
      }
      .cell.win {
        background: #ffe58a;
      }
      #status {
        text-align: center;
        font-weight: 600;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"settings\">
        <select id=\"mode\">
          <option value=\"human\">Two players</option>
          <option value=\"computer\">Versus computer</option>
        </select>
        <select id=\"difficulty\">
          <option value=\"easy\">Easy</option>
          <option value=\"medium\">Medium</option>
          <option value=\"hard\">Hard</option>
        </select>
        <select id=\"startingPlayer\">
          <option value=\"X\">X starts</option>
          <option value=\"O\">O starts</option>
        </select>
        <select id=\"matchType\">
          <option value=\"firstTo\">First to</option>
          <option value=\"bestOf\">Best of</option>
        </select>
        <input id=\"matchLength\" type=\"number\" min=\"1\" max=\"15\" />
      </div>
      <div class=\"scores\">
        <span>X: <strong id=\"scoreX\">0</strong></span>
        <span>O: <strong id=\"scoreO\">0</strong></span>
        <span>Target: <strong id=\"target\">-</strong></span>
      </div>
      <p id=\"status\">Loading…</p>
      <div class=\"board\" id=\"board\"></div>
      <div class=\"controls\">
        <button id=\"newRound\" type=\"button\">New round</button>
        <button id=\"resetMatch\" type=\"button\">Reset match</button>
      </div>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const settingIds = ['mode', 'difficulty', 'startingPlayer', 'matchType', 'matchLength'];
      let gameId = null;
      let state = null;
      let pollTimer = null;

      async function request(url, options = {}) {
        const response = await fetch(url, {
          headers: { 'Content-Type': 'application/json' },
          ...options,
        });
        const data = await response.json();
        if (!response.ok) {
          statusEl.textContent = data.detail || 'Request failed';
          return null;
        }
        return data;
      }

      function setState(data) {
        if (!data) return;
        state = data;
        gameId = data.id;
        render();
        if (state.aiPending && !pollTimer) {
          pollTimer = setInterval(poll, 200);
        } else if (!state.aiPending && pollTimer) {
          clearInterval(pollTimer);
          pollTimer = null;
        }
      }

      async function poll() {
        setState(await request(`/api/game/${gameId}`));
      }

      function render() {
        boardEl.innerHTML = '';
        const over = state.roundWinner || state.isDraw || state.matchWinner;
        state.board.forEach((cell, index) => {
          const button = document.createElement('button');
          button.className = 'cell';
          button.type = 'button';
          button.textContent = cell;
          if (state.winningLine && state.winningLine.includes(index)) {
            button.classList.add('win');
          }
          button.disabled = Boolean(cell) || Boolean(over) || state.aiPending;
          button.addEventListener('click', () => sendMove(index));
          boardEl.appendChild(button);
        });
        document.getElementById('scoreX').textContent = state.winningScore.X;
        document.getElementById('scoreO').textContent = state.winningScore.O;
        document.getElementById('target').textContent = state.matchTarget;
        settingIds.forEach((id) => {
          document.getElementById(id).value = state.settings[id];
        });
        if (state.matchWinner) {
          statusEl.textContent = `${state.matchWinner} wins the match!`;
        } else if (state.roundWinner) {
          statusEl.textContent = `Winner: ${state.roundWinner}`;
        } else if (state.isDraw) {
          statusEl.textContent = 'Draw game';
        } else {
          statusEl.textContent = `Turn: ${state.currentPlayer}`;
        }
      }

      async function sendMove(index) {
        setState(
          await request(`/api/game/${gameId}/move`, {
            method: 'POST',
            body: JSON.stringify({ index }),
          }),
        );
      }

      async function changeSettings() {
        const body = {};
        settingIds.forEach((id) => {
          const value = document.getElementById(id).value;
          body[id] = id === 'matchLength' ? Number(value) : value;
        });
        setState(
          await request(`/api/game/${gameId}/settings`, {
            method: 'PATCH',
            body: JSON.stringify(body),
          }),
        );
      }

      settingIds.forEach((id) => {
        document.getElementById(id).addEventListener('change', changeSettings);
      });
      document.getElementById('newRound').addEventListener('click', async () => {
        setState(await request(`/api/game/${gameId}/round`, { method: 'POST' }));
      });
      document.getElementById('resetMatch').addEventListener('click', async () => {
        setState(await request(`/api/game/${gameId}/reset`, { method: 'POST' }));
      });

      request('/api/game', { method: 'POST', body: '{}' }).then(setState);
    </script>
  </body>
</html>
"""
