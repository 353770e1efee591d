"""Computer opponents: random, rule-based and exhaustive minimax move selection."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import random

from .game import (
    WINNING_LINES,
    Cell,
    Player,
    board_winner,
    empty_cells,
    find_winning_line,
    is_full,
    opponent,
)

logger = logging.getLogger(__name__)

Board = Tuple[Cell, ...]  # immutable snapshot, hashable for the search cache

CENTER = 4
CORNERS = (0, 2, 6, 8)
EDGES = (1, 3, 5, 7)

WIN_SCORE = 10


class Strategy(str, Enum):
    RANDOM = "random"
    HEURISTIC = "heuristic"
    OPTIMAL = "optimal"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


_DIFFICULTY_STRATEGY: Dict[Difficulty, Strategy] = {
    Difficulty.EASY: Strategy.RANDOM,
    Difficulty.MEDIUM: Strategy.HEURISTIC,
    Difficulty.HARD: Strategy.OPTIMAL,
}


def strategy_for(difficulty: Difficulty) -> Strategy:
    return _DIFFICULTY_STRATEGY[Difficulty(difficulty)]


# ---- public API ----


def choose_move(
    board: Sequence[Cell],
    player: Player,
    strategy: Strategy,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick a move for ``player`` on ``board`` using ``strategy``.

    Returns ``None`` when there is nothing to play: the board is full or
    already won.
    """
    strategy = Strategy(strategy)
    if strategy is Strategy.RANDOM:
        move = random_move(board, rng)
    elif strategy is Strategy.HEURISTIC:
        move = heuristic_move(board, player)
    else:
        move = optimal_move(board, player)
    logger.debug("%s strategy picked %s for %s", strategy.value, move, player)
    return move


def random_move(
    board: Sequence[Cell], rng: Optional[random.Random] = None
) -> Optional[int]:
    moves = _playable(board)
    if not moves:
        return None
    return (rng or random).choice(moves)


def heuristic_move(board: Sequence[Cell], player: Player) -> Optional[int]:
    """Win, block, center, corner, edge, in that order."""
    moves = _playable(board)
    if not moves:
        return None

    # 1) Tactical: take a win, else block the opponent's
    win = _completing_move(board, player)
    if win is not None:
        return win
    block = _completing_move(board, opponent(player))
    if block is not None:
        return block

    # 2) Geometry: center > corner > edge
    if board[CENTER] is None:
        return CENTER
    for k in CORNERS:
        if board[k] is None:
            return k
    for k in EDGES:
        if board[k] is None:
            return k
    return moves[0]


def optimal_move(board: Sequence[Cell], player: Player) -> Optional[int]:
    """Best move by full-depth minimax; ties keep the lowest index."""
    scores = score_moves(board, player)
    best_move: Optional[int] = None
    best_score = -float("inf")
    for move, score in scores.items():
        if score > best_score:
            best_score, best_move = score, move
    return best_move


def score_moves(board: Sequence[Cell], player: Player) -> Dict[int, int]:
    """Minimax value of every playable move for ``player``, in index order."""
    scores: Dict[int, int] = {}
    for move in _playable(board):
        child = _place(tuple(board), move, player)
        scores[move] = _minimax(child, player, opponent(player), 1)
    return scores


# ---- core search ----


@lru_cache(maxsize=None)
def _minimax(board: Board, me: Player, to_move: Player, depth: int) -> int:
    # Terminal/leaf
    if find_winning_line(board, me) is not None:
        return WIN_SCORE - depth
    if find_winning_line(board, opponent(me)) is not None:
        return depth - WIN_SCORE
    if is_full(board):
        return 0

    children = (_place(board, move, to_move) for move in empty_cells(board))
    if to_move == me:
        return max(_minimax(c, me, opponent(to_move), depth + 1) for c in children)
    return min(_minimax(c, me, opponent(to_move), depth + 1) for c in children)


def _place(board: Board, index: int, player: Player) -> Board:
    return board[:index] + (player,) + board[index + 1 :]


# ---- helpers ----


def _playable(board: Sequence[Cell]) -> List[int]:
    if board_winner(board) is not None:
        return []
    return empty_cells(board)


def _completing_move(board: Sequence[Cell], player: Player) -> Optional[int]:
    """Lowest empty cell that would complete a line for ``player``."""
    for cell in empty_cells(board):
        for a, b, c in WINNING_LINES:
            if cell not in (a, b, c):
                continue
            trio = [board[a], board[b], board[c]]
            if trio.count(player) == 2 and trio.count(None) == 1:
                return cell
    return None
